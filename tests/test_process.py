"""Tests for the process sampler."""

import pytest

from conftest import FakeCapabilities, FakeProcess, FakeProcessSource
from host_snapshot.collector.process import ProcessSampler, above_noise_floor, is_aggregate_instance
from host_snapshot.config import SamplerConfig
from host_snapshot.errors import UnsupportedPlatform
from host_snapshot.service import SnapshotService

MB = 1024 * 1024


def _sampler(processes, caps=None, cores=1, settle=0.0, sleep=None):
    source = FakeProcessSource(processes=list(processes))
    sampler = ProcessSampler(
        lambda: caps or FakeCapabilities(),
        source=source,
        settle_seconds=settle,
        core_count=lambda: cores,
        sleep=sleep or (lambda _s: None),
    )
    return sampler, source


def test_noise_floor_scenario():
    """A quiet small process is dropped; a busy one is kept."""
    sampler, _ = _sampler([
        FakeProcess(name="a", pid=10, cpu=0.05, memory_bytes=2 * MB),
        FakeProcess(name="b", pid=11, cpu=0.2, memory_bytes=1 * MB),
    ])
    result = sampler.collect()
    assert [p.name for p in result] == ["b"]
    assert result[0].process_id == 11


def test_large_idle_process_is_kept():
    sampler, _ = _sampler([FakeProcess(name="db", pid=5, cpu=0.0, memory_bytes=512 * MB)])
    result = sampler.collect()
    assert len(result) == 1
    assert result[0].memory_mb == 512.0


def test_normalization_and_rounding():
    sampler, _ = _sampler(
        [FakeProcess(name="worker", pid=42, cpu=150.0, memory_bytes=10.56 * MB, io_bytes_per_sec=3 * 1024 + 100, threads=7)],
        cores=4,
    )
    (proc,) = sampler.collect()
    assert proc.cpu_usage_percent == 37.5
    assert proc.memory_mb == 10.6
    assert proc.io_kbps == 3.1
    assert proc.thread_count == 7


def test_aggregate_instances_excluded():
    sampler, source = _sampler([
        FakeProcess(name="Idle", pid=1, cpu=90.0, memory_bytes=100 * MB),
        FakeProcess(name="_TOTAL", pid=2, cpu=100.0, memory_bytes=100 * MB),
        FakeProcess(name="real", pid=3, cpu=1.0, memory_bytes=100 * MB),
    ])
    result = sampler.collect()
    assert [p.name for p in result] == ["real"]
    assert source.opened == [3]


def test_pid_zero_and_dead_processes_skipped():
    sampler, source = _sampler([
        FakeProcess(name="kernel", pid=0, cpu=5.0, memory_bytes=100 * MB),
        FakeProcess(name="gone", pid=7, cpu=5.0, memory_bytes=100 * MB, alive=False),
        FakeProcess(name="here", pid=8, cpu=5.0, memory_bytes=100 * MB),
    ])
    result = sampler.collect()
    assert [p.process_id for p in result] == [8]
    assert source.opened == [8]


def test_failing_instances_are_skipped_and_released():
    sampler, source = _sampler([
        FakeProcess(name="vanish-open", pid=20, cpu=5.0, memory_bytes=100 * MB, fail="vanish-open"),
        FakeProcess(name="vanish-read", pid=21, cpu=5.0, memory_bytes=100 * MB, fail="vanish-read"),
        FakeProcess(name="denied", pid=22, cpu=5.0, memory_bytes=100 * MB, fail="denied"),
        FakeProcess(name="ok", pid=23, cpu=5.0, memory_bytes=100 * MB),
    ])
    result = sampler.collect()
    assert [p.name for p in result] == ["ok"]
    assert all(c.closed for c in source.counters if c.opened)


def test_sorted_by_cpu_descending_and_stable():
    sampler, _ = _sampler([
        FakeProcess(name="low", pid=1, cpu=0.5, memory_bytes=10 * MB),
        FakeProcess(name="tie-first", pid=2, cpu=3.0, memory_bytes=10 * MB),
        FakeProcess(name="high", pid=3, cpu=9.0, memory_bytes=10 * MB),
        FakeProcess(name="tie-second", pid=4, cpu=3.0, memory_bytes=10 * MB),
    ])
    result = sampler.collect()
    assert [p.name for p in result] == ["high", "tie-first", "tie-second", "low"]


def test_cpu_counter_is_primed():
    sleeps = []
    sampler, source = _sampler(
        [FakeProcess(name="p", pid=9, cpu=50.0, memory_bytes=10 * MB)],
        settle=0.05,
        sleep=sleeps.append,
    )
    (proc,) = sampler.collect()
    assert proc.cpu_usage_percent == 50.0
    assert sleeps == [0.05]
    cpu_counter = next(c for c in source.counters if c.label == "cpu")
    assert [e for e in cpu_counter.events if e[0] == "read"] == [("read", "cpu"), ("read", "cpu")]


def test_one_settle_wait_for_all_processes():
    """Every CPU counter is primed before a single shared settle wait."""
    at_sleep = []
    sampler, source = _sampler(
        [FakeProcess(name=f"p{pid}", pid=pid, cpu=float(pid), memory_bytes=10 * MB) for pid in (1, 2, 3)],
        settle=0.05,
        sleep=lambda s: at_sleep.append((s, [c.events[:] for c in source.counters if c.label == "cpu"])),
    )
    result = sampler.collect()

    assert [p.process_id for p in result] == [3, 2, 1]
    assert len(at_sleep) == 1
    seconds, cpu_events = at_sleep[0]
    assert seconds == 0.05
    assert cpu_events == [[("open", "cpu"), ("read", "cpu")]] * 3
    assert all(c.closed for c in source.counters)


def test_no_candidates_no_wait():
    sleeps = []
    sampler, _ = _sampler([FakeProcess(name="gone", pid=7, alive=False)], settle=0.05, sleep=sleeps.append)
    assert sampler.collect() == []
    assert sleeps == []


def test_unsupported_platform_opens_nothing():
    sampler, source = _sampler(
        [FakeProcess(name="p", pid=9, cpu=50.0, memory_bytes=10 * MB)],
        caps=FakeCapabilities(processes=False),
    )
    with pytest.raises(UnsupportedPlatform):
        sampler.collect()
    assert source.opened == []


def test_helpers():
    assert is_aggregate_instance("idle")
    assert is_aggregate_instance("_Total")
    assert not is_aggregate_instance("Idle Worker")
    assert above_noise_floor(0.2, 0.0)
    assert above_noise_floor(0.0, 5.1)
    assert not above_noise_floor(0.1, 5.0)


def test_real_host_processes():
    """Properties of a live process listing on hosts that support it."""
    service = SnapshotService(SamplerConfig(cpu_settle_seconds=0.0))
    if not service.capabilities().supports_process_sampling():
        with pytest.raises(UnsupportedPlatform):
            service.get_process_metrics()
        return

    result = service.get_process_metrics()
    assert result, "the test runner itself uses more than 5 MB"
    for proc in result:
        assert proc.process_id != 0
        assert proc.name.lower() not in ("idle", "_total")
        assert proc.cpu_usage_percent > 0.1 or proc.memory_mb > 5
        assert proc.thread_count >= 0
    cpu = [p.cpu_usage_percent for p in result]
    assert cpu == sorted(cpu, reverse=True)


def test_busy_child_has_cpu_usage(spinning_child):
    """A process spinning on one core is reported with non-zero CPU."""
    service = SnapshotService(SamplerConfig(cpu_settle_seconds=0.0, process_cpu_settle_seconds=0.3))
    if not service.capabilities().supports_process_sampling():
        pytest.skip("process counters are not available on this host")

    result = service.get_process_metrics()
    child = next(p for p in result if p.process_id == spinning_child.pid)
    assert child.cpu_usage_percent > 0.1
    assert child.thread_count >= 1
