"""Local transport for deployments that run on the sensor host itself."""

from __future__ import annotations

import asyncio
import logging

import aiofiles

from vehicle_dashboard.core.errors import RemoteExecutionError, RemoteWriteError

LOGGER = logging.getLogger(__name__)


class LocalTransport:
    """TransportSession over the local filesystem and a shell subprocess."""

    def __init__(self, *, command_timeout: float = 30.0) -> None:
        self._command_timeout = command_timeout

    async def run_command(self, command: str) -> str:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=self._command_timeout)
        except asyncio.TimeoutError as exc:
            proc.kill()
            await proc.wait()
            raise RemoteExecutionError(
                f"Command timed out after {self._command_timeout}s", diagnostics=command
            ) from exc

        stdout = out.decode("utf-8", errors="replace")
        if proc.returncode != 0:
            stderr = err.decode("utf-8", errors="replace")
            raise RemoteExecutionError(
                f"Command exited with code {proc.returncode}",
                diagnostics=(stderr or stdout).strip(),
                exit_status=proc.returncode,
            )
        return stdout.rstrip("\r\n")

    async def read_file(self, path: str) -> bytes:
        try:
            async with aiofiles.open(path, mode="rb") as f:
                return await f.read()
        except OSError as exc:
            raise RemoteExecutionError(f"Could not read {path}", diagnostics=str(exc)) from exc

    async def write_file(self, path: str, data: bytes) -> None:
        try:
            async with aiofiles.open(path, mode="wb") as f:
                await f.write(data)
        except OSError as exc:
            raise RemoteWriteError(f"Could not overwrite {path}", detail=str(exc)) from exc
