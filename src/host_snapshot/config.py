"""Configuration loading and validation for host_snapshot."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml


@dataclass
class SamplerConfig:
    """Collection settings shared by the samplers."""

    cpu_settle_seconds: float = 0.1
    process_cpu_settle_seconds: float = 0.1
    per_core_cpu: bool = True
    processes: bool = True


@dataclass
class OtelExporterConfig:
    """OpenTelemetry exporter settings."""

    endpoint: str = "http://localhost:4318"
    service_name: str = "host-snapshot"
    headers: dict[str, str] = field(default_factory=dict)
    export_interval_ms: int = 10000


@dataclass
class LocalExporterConfig:
    """Local file exporter settings."""

    enabled: bool = False
    output_dir: str = "./snapshots"


@dataclass
class HostSnapshotConfig:
    """Top-level host_snapshot configuration."""

    mode: str = "local"
    sampler: SamplerConfig = field(default_factory=SamplerConfig)
    otel: OtelExporterConfig = field(default_factory=OtelExporterConfig)
    local_exporter: LocalExporterConfig = field(default_factory=LocalExporterConfig)


_BOOL_TRUE = {"1", "true", "yes", "on"}


def _coerce(key: str, value: str) -> Any:
    if key in ("cpu_settle_seconds", "process_cpu_settle_seconds"):
        return float(value)
    if key in ("per_core_cpu", "processes", "enabled"):
        return value.strip().lower() in _BOOL_TRUE
    return value


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variable overrides using HOST_SNAPSHOT_ prefix."""
    env_map = {
        "HOST_SNAPSHOT_MODE": ("mode",),
        "HOST_SNAPSHOT_CPU_SETTLE_SECONDS": ("sampler", "cpu_settle_seconds"),
        "HOST_SNAPSHOT_PROCESS_CPU_SETTLE_SECONDS": ("sampler", "process_cpu_settle_seconds"),
        "HOST_SNAPSHOT_PER_CORE_CPU": ("sampler", "per_core_cpu"),
        "HOST_SNAPSHOT_PROCESSES": ("sampler", "processes"),
        "HOST_SNAPSHOT_OTEL_ENDPOINT": ("otel", "endpoint"),
        "HOST_SNAPSHOT_OTEL_SERVICE_NAME": ("otel", "service_name"),
        "HOST_SNAPSHOT_LOCAL_ENABLED": ("local_exporter", "enabled"),
        "HOST_SNAPSHOT_LOCAL_OUTPUT_DIR": ("local_exporter", "output_dir"),
    }
    for env_key, path in env_map.items():
        value = os.environ.get(env_key)
        if value is not None:
            obj = data
            for part in path[:-1]:
                obj = obj.setdefault(part, {})
            final_key = path[-1]
            obj[final_key] = _coerce(final_key, value)
    return data


def _section(cls: type, raw: Any) -> Any:
    if not isinstance(raw, dict):
        raw = {}
    return cls(**{k: v for k, v in raw.items() if k in cls.__dataclass_fields__})


def _dict_to_config(data: dict[str, Any]) -> HostSnapshotConfig:
    """Convert a raw dictionary to a HostSnapshotConfig dataclass."""
    return HostSnapshotConfig(
        mode=data.get("mode", "local"),
        sampler=_section(SamplerConfig, data.get("sampler")),
        otel=_section(OtelExporterConfig, data.get("otel")),
        local_exporter=_section(LocalExporterConfig, data.get("local_exporter")),
    )


def load_config(path: str | Path | None = None) -> HostSnapshotConfig:
    """Load configuration from a YAML file with environment overrides.

    Looks for ``host_snapshot.yaml`` in the current directory if *path* is None.
    """
    data: dict[str, Any] = {}
    if path is None:
        path = Path("host_snapshot.yaml")
    else:
        path = Path(path)

    if path.exists():
        with open(path, encoding="utf-8") as fh:
            loaded = yaml.safe_load(fh)
            if isinstance(loaded, dict):
                data = loaded

    data = _apply_env_overrides(data)
    return _dict_to_config(data)
