"""Snapshot records returned by the collection operations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass
class CpuMetrics:
    """Aggregate and per-core CPU utilization.

    ``per_core_usage`` is either empty (per-core sampling unsupported) or
    holds exactly ``core_count`` entries.
    """

    usage: float
    name: str
    core_count: int
    per_core_usage: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MemoryMetrics:
    """Physical memory totals in bytes."""

    total_physical_bytes: int = 0
    available_physical_bytes: int = 0
    used_physical_bytes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SystemInfo:
    """Operating system identity as ``"{name} {version}"``."""

    os_description: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ProcessMetrics:
    """Resource usage of a single live process.

    ``cpu_usage_percent`` is normalized by the logical core count, so it is
    not on the same scale as :attr:`CpuMetrics.per_core_usage`.
    """

    process_id: int
    name: str
    cpu_usage_percent: float
    memory_mb: float
    io_kbps: float
    thread_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class MetricSample:
    """A single flattened metric data point, as handed to exporters."""

    name: str
    value: float
    unit: str
    timestamp: float
    labels: dict[str, str]
    description: str = ""


@dataclass
class HostSnapshot:
    """All four collection results taken together.

    ``processes`` is ``None`` when the host cannot sample processes.
    """

    timestamp: float
    cpu: CpuMetrics
    memory: MemoryMetrics
    system: SystemInfo
    processes: list[ProcessMetrics] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "cpu": self.cpu.to_dict(),
            "memory": self.memory.to_dict(),
            "system": self.system.to_dict(),
            "processes": None if self.processes is None else [p.to_dict() for p in self.processes],
        }

    def to_samples(self) -> list[MetricSample]:
        """Flatten the snapshot into metric samples."""
        now = self.timestamp
        host = {"os": self.system.os_description}
        samples = [
            MetricSample(
                name="host.cpu.usage_percent",
                value=self.cpu.usage,
                unit="%",
                timestamp=now,
                labels={**host, "cpu": "total", "cpu_name": self.cpu.name},
                description="Aggregate CPU usage percentage",
            ),
            MetricSample(
                name="host.cpu.logical_cores",
                value=float(self.cpu.core_count),
                unit="1",
                timestamp=now,
                labels=host,
                description="Logical processor count",
            ),
        ]
        for idx, pct in enumerate(self.cpu.per_core_usage):
            samples.append(MetricSample(
                name="host.cpu.usage_percent",
                value=pct,
                unit="%",
                timestamp=now,
                labels={**host, "cpu": str(idx)},
                description=f"CPU core {idx} usage percentage",
            ))

        for attr, metric in (
            ("total_physical_bytes", "host.memory.total_bytes"),
            ("available_physical_bytes", "host.memory.available_bytes"),
            ("used_physical_bytes", "host.memory.used_bytes"),
        ):
            samples.append(MetricSample(
                name=metric,
                value=float(getattr(self.memory, attr)),
                unit="bytes",
                timestamp=now,
                labels=host,
                description=f"Physical memory {attr.split('_')[0]} in bytes",
            ))

        for proc in self.processes or []:
            labels = {**host, "pid": str(proc.process_id), "process_name": proc.name}
            samples.extend([
                MetricSample(
                    name="process.cpu.usage_percent",
                    value=proc.cpu_usage_percent,
                    unit="%",
                    timestamp=now,
                    labels=labels,
                    description=f"CPU usage for {proc.name} (pid {proc.process_id})",
                ),
                MetricSample(
                    name="process.memory.working_set_mb",
                    value=proc.memory_mb,
                    unit="MBy",
                    timestamp=now,
                    labels=labels,
                    description=f"Working set for {proc.name} (pid {proc.process_id})",
                ),
                MetricSample(
                    name="process.io.rate_kbps",
                    value=proc.io_kbps,
                    unit="KBy/s",
                    timestamp=now,
                    labels=labels,
                    description=f"IO rate for {proc.name} (pid {proc.process_id})",
                ),
                MetricSample(
                    name="process.threads",
                    value=float(proc.thread_count),
                    unit="1",
                    timestamp=now,
                    labels=labels,
                    description=f"Thread count for {proc.name} (pid {proc.process_id})",
                ),
            ])
        return samples
