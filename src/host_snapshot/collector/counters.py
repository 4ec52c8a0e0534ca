"""Host counters and the priming/settle read protocol.

A counter is a scoped handle: it is opened right before use and closed right
after its reads. Stateful counters (CPU time, I/O) report a rate relative to their
previous read, so the first read after opening carries no information::

    with CoreCpuCounter(0) as counter:
        value = primed_read(counter, settle_seconds=0.1)

``primed_read`` discards the first read, waits the settle interval and
returns the second one.
"""

from __future__ import annotations

import abc
import logging
import time
from collections.abc import Iterator
from contextlib import AbstractContextManager, ExitStack, contextmanager
from dataclasses import dataclass
from typing import Callable

import psutil

from ..errors import CounterUnavailable, InstanceVanished

logger = logging.getLogger(__name__)


class Counter(abc.ABC):
    """Abstract base for a readable host counter."""

    @abc.abstractmethod
    def open(self) -> None:
        """Acquire the underlying handle. Raises CounterUnavailable."""

    @abc.abstractmethod
    def read(self) -> float:
        """Return the current reading."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release the underlying handle. Safe to call more than once."""

    def __enter__(self) -> Counter:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def primed_read(
    counter: Counter,
    settle_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Discard a priming read, wait *settle_seconds*, return the next read."""
    counter.read()
    if settle_seconds > 0:
        sleep(settle_seconds)
    return counter.read()


def settled_read(
    counter: Counter,
    settle_seconds: float,
    sleep: Callable[[float], None] = time.sleep,
) -> float:
    """Open *counter*, take a primed reading and close it again."""
    with counter:
        return primed_read(counter, settle_seconds, sleep)


# ---------------------------------------------------------------------------
# Per-core CPU
# ---------------------------------------------------------------------------

def _busy_and_total(times: object) -> tuple[float, float]:
    fields = times._asdict()  # type: ignore[attr-defined]
    total = sum(fields.values())
    # guest time is already accounted for in user/nice on Linux
    total -= fields.get("guest", 0.0) + fields.get("guest_nice", 0.0)
    busy = total - fields.get("idle", 0.0) - fields.get("iowait", 0.0)
    return busy, total


class CpuTimesCounter(Counter):
    """Busy share of CPU time since the previous read, in percent."""

    label = "cpu"

    def __init__(self) -> None:
        self._open = False
        self._last: tuple[float, float] | None = None

    @abc.abstractmethod
    def _times(self) -> tuple[float, float]:
        """Return cumulative (busy, total) CPU seconds."""

    def open(self) -> None:
        self._times()
        self._open = True
        self._last = None

    def read(self) -> float:
        if not self._open:
            raise CounterUnavailable(f"counter for {self.label} is not open")
        current = self._times()
        previous, self._last = self._last, current
        if previous is None:
            return 0.0
        busy_delta = current[0] - previous[0]
        total_delta = current[1] - previous[1]
        if total_delta <= 0:
            return 0.0
        return max(0.0, min(100.0, busy_delta / total_delta * 100.0))

    def close(self) -> None:
        self._open = False
        self._last = None


class TotalCpuCounter(CpuTimesCounter):
    """Utilization of all cores together."""

    label = "total CPU"

    def _times(self) -> tuple[float, float]:
        try:
            return _busy_and_total(psutil.cpu_times(percpu=False))
        except OSError as e:
            raise CounterUnavailable(f"CPU times unavailable: {e}") from e


class CoreCpuCounter(CpuTimesCounter):
    """Utilization of one logical core."""

    def __init__(self, index: int) -> None:
        super().__init__()
        self.index = index
        self.label = f"core {index}"

    def _times(self) -> tuple[float, float]:
        try:
            per_cpu = psutil.cpu_times(percpu=True)
        except OSError as e:
            raise CounterUnavailable(f"per-core CPU times unavailable: {e}") from e
        if self.index >= len(per_cpu):
            raise CounterUnavailable(f"no CPU counter for core {self.index}")
        return _busy_and_total(per_cpu[self.index])


# ---------------------------------------------------------------------------
# Per-process
# ---------------------------------------------------------------------------

@contextmanager
def _translate_errors(pid: int) -> Iterator[None]:
    try:
        yield
    except psutil.NoSuchProcess as e:
        raise InstanceVanished(f"process {pid} exited") from e
    except psutil.AccessDenied as e:
        raise CounterUnavailable(f"access denied to process {pid}") from e


class ProcessCounter(Counter):
    """Base class for counters bound to one process id."""

    def __init__(self, pid: int) -> None:
        self.pid = pid
        self._proc: psutil.Process | None = None

    def open(self) -> None:
        with _translate_errors(self.pid):
            self._proc = psutil.Process(self.pid)

    def read(self) -> float:
        if self._proc is None:
            raise CounterUnavailable(f"counter for process {self.pid} is not open")
        with _translate_errors(self.pid):
            return self._read(self._proc)

    @abc.abstractmethod
    def _read(self, proc: psutil.Process) -> float:
        """Read the value from an open process handle."""

    def close(self) -> None:
        self._proc = None


class ProcessCpuCounter(ProcessCounter):
    """Process CPU time since the previous read, in percent of one core."""

    def _read(self, proc: psutil.Process) -> float:
        return float(proc.cpu_percent(interval=None))


class ProcessMemoryCounter(ProcessCounter):
    """Resident working set in bytes."""

    def _read(self, proc: psutil.Process) -> float:
        return float(proc.memory_info().rss)


class ProcessIoCounter(ProcessCounter):
    """I/O bytes per second since the previous read.

    The first read after opening has no window yet and reports the average
    over the process lifetime. Reads 0.0 where the host does not expose
    per-process I/O or hides it from the current user.
    """

    def __init__(self, pid: int, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__(pid)
        self._clock = clock
        self._last: tuple[float, float] | None = None

    def _read(self, proc: psutil.Process) -> float:
        if not hasattr(proc, "io_counters"):
            return 0.0
        try:
            io = proc.io_counters()
        except psutil.AccessDenied:
            logger.debug("I/O counters hidden for pid %d", self.pid)
            return 0.0
        total = float(io.read_bytes + io.write_bytes + getattr(io, "other_bytes", 0))
        now = self._clock()
        previous, self._last = self._last, (total, now)
        if previous is None:
            elapsed = time.time() - proc.create_time()
            return total / elapsed if elapsed > 0 else 0.0
        window = now - previous[1]
        if window <= 0:
            return 0.0
        return max(0.0, total - previous[0]) / window

    def close(self) -> None:
        super().close()
        self._last = None


class ProcessThreadCounter(ProcessCounter):
    def _read(self, proc: psutil.Process) -> float:
        return float(proc.num_threads())


@dataclass
class ProcessCounters:
    """The four correlated counters opened for one process."""

    cpu: Counter
    memory: Counter
    io: Counter
    threads: Counter


@dataclass(frozen=True)
class ProcessInstance:
    """A process as enumerated by the counter source."""

    name: str
    pid: int


class ProcessCounterSource(abc.ABC):
    """Enumerates processes and opens their counters."""

    @abc.abstractmethod
    def instances(self) -> list[ProcessInstance]:
        """Return every process instance currently known to the host."""

    @abc.abstractmethod
    def is_alive(self, pid: int) -> bool:
        """Return whether *pid* still refers to a running process."""

    @abc.abstractmethod
    def open_counters(self, pid: int) -> AbstractContextManager[ProcessCounters]:
        """Open the counters for *pid*; must be used as a context manager."""


class PsutilProcessSource(ProcessCounterSource):
    """Process counters backed by psutil."""

    def instances(self) -> list[ProcessInstance]:
        found: list[ProcessInstance] = []
        for proc in psutil.process_iter(["name"]):
            found.append(ProcessInstance(name=proc.info.get("name") or "", pid=proc.pid))
        return found

    def is_alive(self, pid: int) -> bool:
        return psutil.pid_exists(pid)

    @contextmanager
    def open_counters(self, pid: int) -> Iterator[ProcessCounters]:  # type: ignore[override]
        with ExitStack() as stack:
            yield ProcessCounters(
                cpu=stack.enter_context(ProcessCpuCounter(pid)),
                memory=stack.enter_context(ProcessMemoryCounter(pid)),
                io=stack.enter_context(ProcessIoCounter(pid)),
                threads=stack.enter_context(ProcessThreadCounter(pid)),
            )
