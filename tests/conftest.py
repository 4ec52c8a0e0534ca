"""Shared fakes for the sampler tests."""

from __future__ import annotations

import subprocess
import sys
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field

import pytest

from host_snapshot.collector.capability import HostCapabilities
from host_snapshot.collector.counters import (
    Counter,
    ProcessCounters,
    ProcessCounterSource,
    ProcessInstance,
)
from host_snapshot.collector.host import CpuDescriptor, MemoryStatus, OperatingSystem
from host_snapshot.errors import CounterUnavailable, InstanceVanished


class FakeCapabilities(HostCapabilities):
    family = "Fake"

    def __init__(self, per_core: bool = True, processes: bool = True) -> None:
        self.per_core = per_core
        self.processes = processes

    def supports_per_core_cpu_sampling(self) -> bool:
        return self.per_core

    def supports_process_sampling(self) -> bool:
        return self.processes


class FakeCounter(Counter):
    """Counter returning canned readings and recording its lifecycle."""

    def __init__(self, readings, label="counter", events=None, fail_open=None):
        self._readings = list(readings)
        self.label = label
        self.events = events if events is not None else []
        self.fail_open = fail_open
        self.opened = False
        self.closed = False

    def open(self) -> None:
        if self.fail_open is not None:
            raise self.fail_open
        self.opened = True
        self.events.append(("open", self.label))

    def read(self) -> float:
        self.events.append(("read", self.label))
        value = self._readings.pop(0)
        if isinstance(value, Exception):
            raise value
        return value

    def close(self) -> None:
        self.closed = True
        self.events.append(("close", self.label))


class FakeHardware:
    def __init__(self, cpu=None, memory=None, os_info=None):
        self.cpu = cpu
        self.memory = memory
        self.os_info = os_info or OperatingSystem(name="FakeOS", version="1.0")
        self.cpu_settles: list[float] = []

    def refresh_cpu(self, settle_seconds=0.0, sleep=None) -> CpuDescriptor | None:
        self.cpu_settles.append(settle_seconds)
        return self.cpu

    def refresh_memory_status(self) -> MemoryStatus | None:
        return self.memory

    def refresh_operating_system(self) -> OperatingSystem:
        return self.os_info


@dataclass
class FakeProcess:
    name: str
    pid: int
    cpu: float = 0.0
    memory_bytes: float = 0.0
    io_bytes_per_sec: float = 0.0
    threads: int = 1
    alive: bool = True
    fail: str | None = None  # "vanish-open", "vanish-read", "denied"


@dataclass
class FakeProcessSource(ProcessCounterSource):
    processes: list[FakeProcess] = field(default_factory=list)
    opened: list[int] = field(default_factory=list)
    counters: list[FakeCounter] = field(default_factory=list)

    def instances(self) -> list[ProcessInstance]:
        return [ProcessInstance(name=p.name, pid=p.pid) for p in self.processes]

    def is_alive(self, pid: int) -> bool:
        return any(p.pid == pid and p.alive for p in self.processes)

    @contextmanager
    def open_counters(self, pid: int):
        proc = next(p for p in self.processes if p.pid == pid)
        self.opened.append(pid)

        fail_open = None
        if proc.fail == "vanish-open":
            fail_open = InstanceVanished(f"process {pid} exited")
        elif proc.fail == "denied":
            fail_open = CounterUnavailable(f"access denied to process {pid}")
        cpu_readings = [0.0, InstanceVanished("gone")] if proc.fail == "vanish-read" else [0.0, proc.cpu]

        made = [
            FakeCounter(cpu_readings, label="cpu"),
            FakeCounter([proc.memory_bytes], label="memory", fail_open=fail_open),
            FakeCounter([proc.io_bytes_per_sec, proc.io_bytes_per_sec], label="io"),
            FakeCounter([float(proc.threads)], label="threads"),
        ]
        self.counters.extend(made)
        with ExitStack() as stack:
            yield ProcessCounters(*(stack.enter_context(c) for c in made))


@pytest.fixture
def no_sleep():
    calls: list[float] = []
    return calls.append, calls


@pytest.fixture
def spinning_child():
    """A child process that keeps one core busy until the test ends."""
    proc = subprocess.Popen([sys.executable, "-c", "while True: pass"])
    try:
        yield proc
    finally:
        proc.terminate()
        proc.wait(timeout=10)
