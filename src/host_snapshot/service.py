"""Snapshot facade exposing the four collection operations."""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor

from .collector.base import CapabilityProvider
from .collector.capability import HostCapabilities, resolve_capabilities
from .collector.counters import ProcessCounterSource
from .collector.cpu import CpuSampler
from .collector.host import HardwareInfo
from .collector.memory import MemoryReader
from .collector.process import ProcessSampler
from .collector.system import SystemIdentityReader
from .config import SamplerConfig
from .errors import UnsupportedPlatform
from .models import CpuMetrics, HostSnapshot, MemoryMetrics, ProcessMetrics, SystemInfo

logger = logging.getLogger(__name__)


class SnapshotService:
    """Entry point for callers that need host metrics.

    Every ``get_*`` method takes a fresh reading and blocks the calling
    thread; the CPU and process operations include real settle delays. From
    an event loop use the ``*_async`` variants, which run the same operation
    on a worker thread. The operations are independent and may run
    concurrently with each other.

    Usage::

        service = SnapshotService()
        cpu = service.get_cpu_metrics()
        snapshot = service.collect_all()
    """

    def __init__(
        self,
        config: SamplerConfig | None = None,
        *,
        hardware: HardwareInfo | None = None,
        capabilities: CapabilityProvider | None = None,
        process_source: ProcessCounterSource | None = None,
    ) -> None:
        self._config = config or SamplerConfig()
        self._hardware = hardware or HardwareInfo()
        self._capabilities = capabilities or self._resolve_capabilities

        self._cpu = CpuSampler(
            self._hardware,
            self._capabilities,
            settle_seconds=self._config.cpu_settle_seconds,
        )
        self._memory = MemoryReader(self._hardware)
        self._system = SystemIdentityReader(self._hardware)
        self._processes = ProcessSampler(
            self._capabilities,
            source=process_source,
            settle_seconds=self._config.process_cpu_settle_seconds,
        )

    def _resolve_capabilities(self) -> HostCapabilities:
        return resolve_capabilities(self._config)

    def capabilities(self) -> HostCapabilities:
        """Return the capabilities of the host as seen right now."""
        return self._capabilities()

    def get_cpu_metrics(self) -> CpuMetrics:
        return self._cpu.collect()

    def get_memory_metrics(self) -> MemoryMetrics:
        return self._memory.collect()

    def get_system_info(self) -> SystemInfo:
        return self._system.collect()

    def get_process_metrics(self) -> list[ProcessMetrics]:
        """Return live processes above the noise floor, busiest first.

        Raises :class:`UnsupportedPlatform` when the host has no process
        counters.
        """
        return self._processes.collect()

    async def get_cpu_metrics_async(self) -> CpuMetrics:
        return await asyncio.to_thread(self.get_cpu_metrics)

    async def get_memory_metrics_async(self) -> MemoryMetrics:
        return await asyncio.to_thread(self.get_memory_metrics)

    async def get_system_info_async(self) -> SystemInfo:
        return await asyncio.to_thread(self.get_system_info)

    async def get_process_metrics_async(self) -> list[ProcessMetrics]:
        return await asyncio.to_thread(self.get_process_metrics)

    def collect_all(self) -> HostSnapshot:
        """Run all four operations concurrently and combine the results.

        A host without process counters yields ``processes=None``; any other
        error propagates.
        """
        now = time.time()
        with ThreadPoolExecutor(max_workers=4, thread_name_prefix="host-snapshot") as pool:
            cpu_f = pool.submit(self.get_cpu_metrics)
            mem_f = pool.submit(self.get_memory_metrics)
            sys_f = pool.submit(self.get_system_info)
            proc_f = pool.submit(self.get_process_metrics)

            try:
                processes: list[ProcessMetrics] | None = proc_f.result()
            except UnsupportedPlatform as e:
                logger.info("Process metrics skipped: %s", e)
                processes = None

            return HostSnapshot(
                timestamp=now,
                cpu=cpu_f.result(),
                memory=mem_f.result(),
                system=sys_f.result(),
                processes=processes,
            )
