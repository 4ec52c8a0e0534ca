"""Operating system identity reader."""

from __future__ import annotations

from ..models import SystemInfo
from .base import BaseCollector
from .host import HardwareInfo


class SystemIdentityReader(BaseCollector[SystemInfo]):
    def __init__(self, hardware: HardwareInfo) -> None:
        self._hardware = hardware

    @property
    def name(self) -> str:
        return "system"

    def collect(self) -> SystemInfo:
        os_info = self._hardware.refresh_operating_system()
        return SystemInfo(os_description=f"{os_info.name} {os_info.version}")
