"""Read and write helpers layered on a TransportSession."""

from __future__ import annotations

import logging
import shlex
from dataclasses import dataclass

from .base import TransportSession

LOGGER = logging.getLogger(__name__)

TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"


def tail_command(path: str, line_count: int, *, include_header: bool = False) -> str:
    """Build the shell command for a bounded tail read (path is shell-quoted)."""
    quoted = shlex.quote(path)
    tail = f"tail -n {line_count} {quoted}"
    if include_header:
        return f"head -n 1 {quoted} && {tail}"
    return tail


@dataclass(frozen=True, slots=True)
class TailFetcher:
    """Fetch the last N lines of a remote log."""

    session: TransportSession

    async def fetch_tail(self, path: str, line_count: int, *, include_header: bool = False) -> str:
        """Return at most ``line_count`` data lines, oldest first.

        With ``include_header`` the file's first line is prepended, unless the
        tail already starts at it (file shorter than the window).
        """
        if isinstance(line_count, bool) or not isinstance(line_count, int) or line_count < 1:
            raise ValueError("line_count must be a positive integer")

        LOGGER.debug("Tailing %d lines of %s", line_count, path)
        out = await self.session.run_command(tail_command(path, line_count, include_header=include_header))
        if not include_header:
            return out

        header, sep, rest = out.partition("\n")
        lines = rest.split("\n") if sep else []
        # The whole file fit in the window: the tail repeats the header.
        if lines and lines[0] == header and len(lines) <= line_count:
            lines = lines[1:]
        return "\n".join([header, *lines])


@dataclass(frozen=True, slots=True)
class WholeFileStore:
    """Read or replace a remote file in full."""

    session: TransportSession

    async def fetch_all(self, path: str) -> str:
        LOGGER.debug("Reading %s", path)
        data = await self.session.read_file(path)
        return data.decode(TEXT_ENCODING, errors=TEXT_ERRORS)

    async def overwrite(self, path: str, content: str) -> None:
        """Truncate and rewrite the file; a failure may leave it partially written."""
        LOGGER.info("Overwriting %s (%d bytes)", path, len(content))
        await self.session.write_file(path, content.encode(TEXT_ENCODING))
