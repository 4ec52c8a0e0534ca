"""Per-process resource sampler – ranks live processes by CPU usage."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator
from contextlib import ExitStack
from typing import Callable

from ..errors import CounterUnavailable, InstanceVanished, UnsupportedPlatform
from ..models import ProcessMetrics
from .base import BaseCollector, CapabilityProvider
from .counters import ProcessCounters, ProcessCounterSource, ProcessInstance, PsutilProcessSource
from .host import logical_core_count

logger = logging.getLogger(__name__)

# synthetic aggregate instances that are not real processes
AGGREGATE_INSTANCES = frozenset({"idle", "_total"})

MIN_CPU_PERCENT = 0.1
MIN_MEMORY_MB = 5.0

_BYTES_PER_MB = 1024 * 1024
_BYTES_PER_KB = 1024


def is_aggregate_instance(name: str) -> bool:
    return name.lower() in AGGREGATE_INSTANCES


def above_noise_floor(cpu_percent: float, memory_mb: float) -> bool:
    """Whether a process is busy or large enough to report."""
    return cpu_percent > MIN_CPU_PERCENT or memory_mb > MIN_MEMORY_MB


class ProcessSampler(BaseCollector[list[ProcessMetrics]]):
    """Collects CPU, memory, I/O and thread counts for every live process.

    Processes that exit or refuse access while being sampled are skipped;
    a partial list is the normal outcome on a busy host. Entries below the
    noise floor (CPU <= 0.1% and memory <= 5 MB) are dropped and the rest
    are sorted by CPU usage, highest first.

    All processes are primed first and share one settle wait, so a listing
    costs a single settle interval however many processes are running.
    """

    def __init__(
        self,
        capabilities: CapabilityProvider,
        source: ProcessCounterSource | None = None,
        settle_seconds: float = 0.1,
        core_count: Callable[[], int] = logical_core_count,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._capabilities = capabilities
        self._source = source or PsutilProcessSource()
        self._settle_seconds = settle_seconds
        self._core_count = core_count
        self._sleep = sleep

    @property
    def name(self) -> str:
        return "process"

    def collect(self) -> list[ProcessMetrics]:
        caps = self._capabilities()
        if not caps.supports_process_sampling():
            raise UnsupportedPlatform(
                f"process metrics are not available on this host ({caps.family or 'unknown'})"
            )

        cores = self._core_count()
        results: list[ProcessMetrics] = []
        skipped = 0
        with ExitStack() as batch:
            # every counter is primed before the single settle wait
            primed: list[tuple[ProcessInstance, ExitStack, ProcessCounters]] = []
            for instance in self._candidates():
                try:
                    handles, counters = self._open_primed(instance.pid)
                except (InstanceVanished, CounterUnavailable) as e:
                    self._log_skip(instance, e)
                    skipped += 1
                    continue
                batch.enter_context(handles)
                primed.append((instance, handles, counters))

            if primed and self._settle_seconds > 0:
                self._sleep(self._settle_seconds)

            for instance, handles, counters in primed:
                try:
                    with handles:
                        metrics = self._read(instance, counters, cores)
                except (InstanceVanished, CounterUnavailable) as e:
                    self._log_skip(instance, e)
                    skipped += 1
                    continue
                if metrics is not None:
                    results.append(metrics)

        if skipped:
            logger.debug("Skipped %d processes that could not be sampled", skipped)
        results.sort(key=lambda m: m.cpu_usage_percent, reverse=True)
        return results

    def _candidates(self) -> Iterator[ProcessInstance]:
        for instance in self._source.instances():
            if is_aggregate_instance(instance.name):
                continue
            if instance.pid == 0 or not self._source.is_alive(instance.pid):
                continue
            yield instance

    def _open_primed(self, pid: int) -> tuple[ExitStack, ProcessCounters]:
        """Open the counters for *pid* and take the discarded first reads.

        The returned stack owns the open counters; closing it releases them.
        """
        with ExitStack() as stack:
            counters = stack.enter_context(self._source.open_counters(pid))
            counters.cpu.read()
            counters.io.read()
            return stack.pop_all(), counters

    @staticmethod
    def _log_skip(instance: ProcessInstance, error: Exception) -> None:
        if isinstance(error, InstanceVanished):
            logger.debug("Process %d (%s) exited during sampling", instance.pid, instance.name)
        else:
            logger.debug("Skipping process %d (%s): %s", instance.pid, instance.name, error)

    def _read(self, instance: ProcessInstance, counters: ProcessCounters, cores: int) -> ProcessMetrics | None:
        cpu = counters.cpu.read()
        memory = counters.memory.read()
        io = counters.io.read()
        threads = counters.threads.read()

        cpu_percent = round(cpu / cores, 1)
        memory_mb = round(memory / _BYTES_PER_MB, 1)
        if not above_noise_floor(cpu_percent, memory_mb):
            return None

        return ProcessMetrics(
            process_id=instance.pid,
            name=instance.name,
            cpu_usage_percent=cpu_percent,
            memory_mb=memory_mb,
            io_kbps=round(io / _BYTES_PER_KB, 1),
            thread_count=int(threads),
        )
