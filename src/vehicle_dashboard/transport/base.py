"""Transport session interface."""

from __future__ import annotations

from typing import Protocol


class TransportSession(Protocol):
    """One remote operation per call; implementations never keep a connection open between calls."""

    async def run_command(self, command: str) -> str:
        """Run a command to completion and return stdout with trailing newlines trimmed."""
        ...

    async def read_file(self, path: str) -> bytes:
        """Return the full content of a file."""
        ...

    async def write_file(self, path: str, data: bytes) -> None:
        """Truncate a file and write data to it (not atomic)."""
        ...
