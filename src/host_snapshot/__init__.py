"""Point-in-time CPU, memory, OS identity and process snapshots for the local host."""

from __future__ import annotations

__version__ = "0.1.0"

from .errors import HostEnvironmentError, SnapshotError, UnsupportedPlatform
from .models import CpuMetrics, HostSnapshot, MemoryMetrics, ProcessMetrics, SystemInfo
from .service import SnapshotService

__all__ = [
    "CpuMetrics",
    "HostEnvironmentError",
    "HostSnapshot",
    "MemoryMetrics",
    "ProcessMetrics",
    "SnapshotError",
    "SnapshotService",
    "SystemInfo",
    "UnsupportedPlatform",
    "__version__",
]
