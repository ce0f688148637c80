"""SSH/SFTP transport built on paramiko.

Every public call opens its own connection and closes it on every exit path.
paramiko is blocking, so calls run in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import paramiko

from vehicle_dashboard.config import RemoteSettings
from vehicle_dashboard.core.errors import ConfigError, RemoteExecutionError, RemoteWriteError, TransportError

LOGGER = logging.getLogger(__name__)


def load_private_key(path: Path, passphrase: str | None = None) -> paramiko.PKey:
    """Load key material once at startup (RSA, ECDSA or Ed25519)."""
    try:
        return paramiko.PKey.from_path(path, passphrase=passphrase.encode() if passphrase else None)
    except (OSError, ValueError, TypeError, paramiko.SSHException) as exc:
        raise ConfigError(f"Could not load private key {path}", detail=str(exc)) from exc


class SshTransport:
    """TransportSession over SSH exec + SFTP."""

    def __init__(self, settings: RemoteSettings, *, pkey: paramiko.PKey | None = None) -> None:
        self._settings = settings
        self._pkey = pkey or load_private_key(settings.key_path, settings.key_passphrase)

    @property
    def target(self) -> str:
        s = self._settings
        return f"{s.username}@{s.host}:{s.port}"

    def _new_client(self) -> paramiko.SSHClient:
        client = paramiko.SSHClient()
        if self._settings.strict_host_keys:
            client.load_system_host_keys()
            client.set_missing_host_key_policy(paramiko.RejectPolicy())
        else:
            client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        return client

    @contextmanager
    def session(self) -> Iterator[paramiko.SSHClient]:
        """Open one authenticated connection for the duration of the block."""
        s = self._settings
        client = self._new_client()
        try:
            client.connect(
                hostname=s.host,
                port=s.port,
                username=s.username,
                pkey=self._pkey,
                timeout=s.connect_timeout,
                banner_timeout=s.connect_timeout,
                auth_timeout=s.connect_timeout,
                allow_agent=False,
                look_for_keys=False,
            )
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise TransportError(f"Could not connect to {self.target}", detail=str(exc)) from exc

        LOGGER.debug("SSH session opened to %s", self.target)
        try:
            yield client
        finally:
            client.close()
            LOGGER.debug("SSH session closed to %s", self.target)

    @contextmanager
    def open_stream(self, client: paramiko.SSHClient, path: str, mode: str) -> Iterator[paramiko.SFTPFile]:
        """Open a remote file over SFTP on an existing session."""
        with client.open_sftp() as sftp:
            sftp.get_channel().settimeout(self._settings.command_timeout)
            with sftp.open(path, mode) as handle:
                yield handle

    def _run_sync(self, command: str) -> str:
        with self.session() as client:
            try:
                _stdin, stdout, stderr = client.exec_command(command, timeout=self._settings.command_timeout)
                out = stdout.read().decode("utf-8", errors="replace")
                err = stderr.read().decode("utf-8", errors="replace")
                status = stdout.channel.recv_exit_status()
            except (paramiko.SSHException, OSError) as exc:
                raise RemoteExecutionError(f"Remote command failed on {self.target}", diagnostics=str(exc)) from exc

        if status != 0:
            raise RemoteExecutionError(
                f"Command exited with code {status}",
                diagnostics=(err or out).strip(),
                exit_status=status,
            )
        if err:
            LOGGER.debug("stderr from %r: %s", command, err.strip())
        return out.rstrip("\r\n")

    def _read_sync(self, path: str) -> bytes:
        with self.session() as client:
            try:
                with self.open_stream(client, path, "rb") as handle:
                    handle.prefetch()
                    return handle.read()
            except (paramiko.SSHException, OSError) as exc:
                raise RemoteExecutionError(f"Could not read {path} on {self.target}", diagnostics=str(exc)) from exc

    def _write_sync(self, path: str, data: bytes) -> None:
        with self.session() as client:
            try:
                with self.open_stream(client, path, "wb") as handle:
                    handle.write(data)
            except (paramiko.SSHException, OSError) as exc:
                raise RemoteWriteError(f"Could not overwrite {path} on {self.target}", detail=str(exc)) from exc

    async def run_command(self, command: str) -> str:
        return await asyncio.to_thread(self._run_sync, command)

    async def read_file(self, path: str) -> bytes:
        return await asyncio.to_thread(self._read_sync, path)

    async def write_file(self, path: str, data: bytes) -> None:
        await asyncio.to_thread(self._write_sync, path, data)
