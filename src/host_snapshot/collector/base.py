"""Base interface for snapshot collectors."""

from __future__ import annotations

import abc
from typing import Callable, Generic, TypeVar

from .capability import HostCapabilities

T = TypeVar("T")

CapabilityProvider = Callable[[], HostCapabilities]


class BaseCollector(abc.ABC, Generic[T]):
    """Abstract base class for collectors producing one snapshot record."""

    @property
    @abc.abstractmethod
    def name(self) -> str:
        """Collector name used in logs and CLI output."""

    @abc.abstractmethod
    def collect(self) -> T:
        """Take a fresh reading and return it as a record."""
