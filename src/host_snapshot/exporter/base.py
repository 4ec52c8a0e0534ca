"""Base interface for snapshot exporters."""

from __future__ import annotations

import abc

from ..models import HostSnapshot


class BaseExporter(abc.ABC):
    """Abstract base for exporters that receive a host snapshot."""

    @abc.abstractmethod
    def export(self, snapshot: HostSnapshot) -> None:
        """Export one snapshot."""

    @abc.abstractmethod
    def shutdown(self) -> None:
        """Flush and release resources."""
