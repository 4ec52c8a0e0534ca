"""Exception hierarchy for host_snapshot."""

from __future__ import annotations


class SnapshotError(Exception):
    """Base class for errors raised by host_snapshot."""


class UnsupportedPlatform(SnapshotError):
    """The host cannot provide the counters an operation needs."""


class HostEnvironmentError(SnapshotError):
    """A basic environment fact (such as the logical core count) is unavailable."""


class CounterUnavailable(SnapshotError):
    """A counter could not be opened or read."""


class InstanceVanished(CounterUnavailable):
    """The entity behind a counter went away between enumeration and read."""
