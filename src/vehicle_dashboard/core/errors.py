"""Error taxonomy for the dashboard service.

Every error carries the HTTP status it maps to at the request boundary.
"""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for errors surfaced to dashboard clients."""

    status_code: int = 500

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict[str, str]:
        return {"message": self.message, "error": self.detail or self.message}


class ConfigError(DashboardError):
    """Startup configuration is missing or invalid."""


class TransportError(DashboardError):
    """A remote session could not be established or used."""


class RemoteExecutionError(TransportError):
    """A remote command exited non-zero or its stream failed."""

    def __init__(self, message: str, *, diagnostics: str = "", exit_status: int | None = None) -> None:
        super().__init__(message, detail=diagnostics or message)
        self.diagnostics = diagnostics
        self.exit_status = exit_status


class RemoteWriteError(TransportError):
    """Overwriting a remote file failed; the file may be left partially written."""


class NotFoundError(DashboardError):
    status_code = 404


class ValidationError(DashboardError):
    status_code = 400
