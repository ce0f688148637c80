"""Remote file access: per-call sessions plus tail and whole-file helpers."""

from __future__ import annotations

from vehicle_dashboard.config import DashboardSettings
from vehicle_dashboard.core.errors import ConfigError

from .base import TransportSession
from .fetchers import TailFetcher, WholeFileStore, tail_command
from .local import LocalTransport
from .ssh import SshTransport, load_private_key


def build_transport(settings: DashboardSettings) -> TransportSession:
    """Create the session implementation selected by the settings."""
    if settings.transport == "local":
        return LocalTransport()
    if settings.remote is None:
        raise ConfigError("SSH transport selected without remote settings")
    return SshTransport(settings.remote)


__all__ = [
    "LocalTransport",
    "SshTransport",
    "TailFetcher",
    "TransportSession",
    "WholeFileStore",
    "build_transport",
    "load_private_key",
    "tail_command",
]
