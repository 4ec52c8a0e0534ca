"""CPU sampler."""

from __future__ import annotations

import logging
import time
from typing import Callable

from ..errors import CounterUnavailable
from ..models import CpuMetrics
from .base import BaseCollector, CapabilityProvider
from .counters import CoreCpuCounter, Counter, settled_read
from .host import HardwareInfo, logical_core_count

logger = logging.getLogger(__name__)

UNKNOWN_CPU = "Unknown"


class CpuSampler(BaseCollector[CpuMetrics]):
    """Collects aggregate CPU usage and, where supported, per-core usage.

    Each core is sampled in turn with a priming read, a settle delay and an
    authoritative read, so a call takes roughly ``settle_seconds`` times the
    number of logical cores.
    """

    def __init__(
        self,
        hardware: HardwareInfo,
        capabilities: CapabilityProvider,
        settle_seconds: float = 0.1,
        counter_factory: Callable[[int], Counter] = CoreCpuCounter,
        core_count: Callable[[], int] = logical_core_count,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._hardware = hardware
        self._capabilities = capabilities
        self._settle_seconds = settle_seconds
        self._counter_factory = counter_factory
        self._core_count = core_count
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "cpu"

    def collect(self) -> CpuMetrics:
        descriptor = self._hardware.refresh_cpu(self._settle_seconds, self._sleep)
        cores = self._core_count()

        per_core: list[float] = []
        if self._capabilities().supports_per_core_cpu_sampling():
            per_core = [self._sample_core(idx) for idx in range(cores)]
        else:
            logger.debug("Per-core CPU sampling unsupported on this host")

        if descriptor is None:
            return CpuMetrics(usage=0.0, name=UNKNOWN_CPU, core_count=cores, per_core_usage=per_core)
        return CpuMetrics(
            usage=descriptor.usage,
            name=descriptor.name or UNKNOWN_CPU,
            core_count=cores,
            per_core_usage=per_core,
        )

    def _sample_core(self, index: int) -> float:
        try:
            return settled_read(self._counter_factory(index), self._settle_seconds, self._sleep)
        except CounterUnavailable as e:
            logger.debug("Core %d unreadable, reporting 0: %s", index, e)
            return 0.0
