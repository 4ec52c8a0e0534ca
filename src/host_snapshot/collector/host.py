"""Thin wrapper over the host's hardware-info sources."""

from __future__ import annotations

import logging
import os
import platform
import time
from dataclasses import dataclass
from typing import Callable

import cpuinfo
import psutil

from ..errors import CounterUnavailable, HostEnvironmentError
from .counters import TotalCpuCounter, settled_read

logger = logging.getLogger(__name__)


@dataclass
class CpuDescriptor:
    """Aggregate processor identity and utilization."""

    name: str | None
    usage: float


@dataclass
class MemoryStatus:
    total_physical: int
    available_physical: int


@dataclass
class OperatingSystem:
    name: str
    version: str


def logical_core_count() -> int:
    """Return the logical processor count reported by the runtime."""
    count = os.cpu_count()
    if not count:
        raise HostEnvironmentError("unable to determine the logical processor count")
    return count


def _read_cpu_brand() -> str | None:
    try:
        return cpuinfo.get_cpu_info().get("brand_raw") or None
    except Exception as e:
        logger.warning("CPU brand detection failed: %s", e)
        return None


class HardwareInfo:
    """Reads CPU, memory and OS descriptors from psutil, py-cpuinfo and platform.

    Each ``refresh_*`` call performs a fresh read. Missing data is reported as
    ``None`` and left to the caller to default.
    """

    def __init__(self) -> None:
        self._cpu_brand: str | None = None
        self._cpu_brand_read = False

    def cpu_brand(self) -> str | None:
        if not self._cpu_brand_read:
            self._cpu_brand = _read_cpu_brand()
            self._cpu_brand_read = True
        return self._cpu_brand

    def refresh_cpu(
        self,
        settle_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CpuDescriptor | None:
        """Measure aggregate utilization over *settle_seconds*."""
        try:
            usage = settled_read(TotalCpuCounter(), settle_seconds, sleep)
        except CounterUnavailable:
            logger.warning("Aggregate CPU utilization unavailable", exc_info=True)
            return None
        return CpuDescriptor(name=self.cpu_brand(), usage=float(usage))

    def refresh_memory_status(self) -> MemoryStatus | None:
        try:
            mem = psutil.virtual_memory()
        except OSError:
            logger.warning("Physical memory status unavailable", exc_info=True)
            return None
        return MemoryStatus(total_physical=int(mem.total), available_physical=int(mem.available))

    def refresh_operating_system(self) -> OperatingSystem:
        return OperatingSystem(name=platform.system(), version=platform.release())
