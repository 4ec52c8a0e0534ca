"""Physical memory reader."""

from __future__ import annotations

from ..models import MemoryMetrics
from .base import BaseCollector
from .host import HardwareInfo


class MemoryReader(BaseCollector[MemoryMetrics]):
    """Reads total and available physical memory and derives the used amount."""

    def __init__(self, hardware: HardwareInfo) -> None:
        self._hardware = hardware

    @property
    def name(self) -> str:
        return "memory"

    def collect(self) -> MemoryMetrics:
        status = self._hardware.refresh_memory_status()
        if status is None:
            return MemoryMetrics()
        return MemoryMetrics(
            total_physical_bytes=status.total_physical,
            available_physical_bytes=status.available_physical,
            used_physical_bytes=max(0, status.total_physical - status.available_physical),
        )
