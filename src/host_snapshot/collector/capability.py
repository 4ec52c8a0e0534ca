"""Per-host answers to "can this machine provide counter X?"."""

from __future__ import annotations

import abc
import os
import platform

from ..config import SamplerConfig


class HostCapabilities(abc.ABC):
    """Which counter-backed metrics the current host can supply."""

    family: str = ""

    @abc.abstractmethod
    def supports_per_core_cpu_sampling(self) -> bool:
        """Whether per-core CPU counters can be opened."""

    @abc.abstractmethod
    def supports_process_sampling(self) -> bool:
        """Whether per-process counters can be enumerated and opened."""


class WindowsCapabilities(HostCapabilities):
    family = "Windows"

    def supports_per_core_cpu_sampling(self) -> bool:
        return True

    def supports_process_sampling(self) -> bool:
        return True


class LinuxCapabilities(HostCapabilities):
    """Linux exposes both counter kinds through procfs, when it is mounted."""

    family = "Linux"

    def supports_per_core_cpu_sampling(self) -> bool:
        return os.path.exists("/proc/stat")

    def supports_process_sampling(self) -> bool:
        return os.path.isdir("/proc/self")


class MacCapabilities(HostCapabilities):
    family = "Darwin"

    def supports_per_core_cpu_sampling(self) -> bool:
        return True

    def supports_process_sampling(self) -> bool:
        return True


class NoCounterCapabilities(HostCapabilities):
    """Fallback for hosts without a known counter backend."""

    def __init__(self, family: str = "") -> None:
        self.family = family

    def supports_per_core_cpu_sampling(self) -> bool:
        return False

    def supports_process_sampling(self) -> bool:
        return False


class ConfiguredCapabilities(HostCapabilities):
    """Host capabilities further restricted by :class:`SamplerConfig` flags."""

    def __init__(self, host: HostCapabilities, config: SamplerConfig) -> None:
        self._host = host
        self._config = config
        self.family = host.family

    def supports_per_core_cpu_sampling(self) -> bool:
        return self._config.per_core_cpu and self._host.supports_per_core_cpu_sampling()

    def supports_process_sampling(self) -> bool:
        return self._config.processes and self._host.supports_process_sampling()


_FAMILIES: dict[str, type[HostCapabilities]] = {
    "Windows": WindowsCapabilities,
    "Linux": LinuxCapabilities,
    "Darwin": MacCapabilities,
}


def capabilities_for(system: str) -> HostCapabilities:
    """Return the capabilities implementation for an OS family name."""
    cls = _FAMILIES.get(system)
    if cls is None:
        return NoCounterCapabilities(system)
    return cls()


def resolve_capabilities(config: SamplerConfig | None = None) -> HostCapabilities:
    """Evaluate the running host's capabilities.

    Not cached: the answer is recomputed on every call.
    """
    host = capabilities_for(platform.system())
    if config is None:
        return host
    return ConfiguredCapabilities(host, config)
