"""Startup configuration.

Settings are read once from the environment (optionally seeded from a ``.env``
file) into frozen dataclasses and passed explicitly to the components that
need them.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, tzinfo
from pathlib import Path
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from vehicle_dashboard.core.errors import ConfigError
from vehicle_dashboard.core.models import LogSource

ENV_HOST = "VM_HOST"
ENV_USER = "VM_USER"
ENV_KEY_PATH = "VM_KEY_PATH"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}

TransportKind = Literal["ssh", "local"]


@dataclass(frozen=True, slots=True)
class RemoteSettings:
    """Credentials and limits for the SSH transport."""

    host: str
    username: str
    key_path: Path
    port: int = 22
    key_passphrase: str | None = None
    strict_host_keys: bool = False
    connect_timeout: float = 10.0
    command_timeout: float = 30.0


@dataclass(frozen=True, slots=True)
class SourcePaths:
    """Fixed remote locations of each log family."""

    alcohol: str = "/home/fast-and-furious/main/section_4_test_drive/mq3_data.csv"
    complaint: str = "/home/fast-and-furious/main/drishti/complaints/complaints.csv"
    drowsiness: str = "/home/fast-and-furious/main/section_2_test_drive/drowsiness_log.csv"
    feedback: str = "/home/fast-and-furious/main/drishti/feedback/feedback.csv"
    history: str = "/home/fast-and-furious/main/master_log.csv"
    obd: str = "/home/fast-and-furious/main/obd_data/trackLog.csv"
    ticket: str = "/home/fast-and-furious/main/drishti/tickets/tickets.csv"
    visibility: str = "/home/fast-and-furious/main/section_1_test_drive/visibility_log.csv"

    def for_source(self, source: LogSource) -> str:
        return getattr(self, source.value)


@dataclass(frozen=True, slots=True)
class DashboardSettings:
    """Everything the service needs, resolved once at startup."""

    transport: TransportKind = "ssh"
    remote: RemoteSettings | None = None
    paths: SourcePaths = field(default_factory=SourcePaths)
    tail_lines: int = 50
    timezone: tzinfo = UTC
    http_host: str = "127.0.0.1"
    http_port: int = 8000
    log_level: str = "INFO"


def _env_int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer") from exc
    if value < minimum:
        raise ConfigError(f"{name} must be >= {minimum}")
    return value


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number") from exc
    if value <= 0:
        raise ConfigError(f"{name} must be > 0")
    return value


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    lowered = raw.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean (true/false)")


def _env_timezone(env: Mapping[str, str], name: str) -> tzinfo:
    raw = (env.get(name) or "").strip()
    if not raw or raw.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(raw)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ConfigError(f"{name} is not a known timezone: {raw}") from exc


def load_remote_settings(env: Mapping[str, str]) -> RemoteSettings:
    """Build SSH settings; every credential variable is required."""
    missing = [name for name in (ENV_HOST, ENV_USER, ENV_KEY_PATH) if not env.get(name)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    key_path = Path(env[ENV_KEY_PATH]).expanduser().resolve()
    if not key_path.is_file():
        raise ConfigError(f"{ENV_KEY_PATH} does not point to a readable file: {key_path}")

    return RemoteSettings(
        host=env[ENV_HOST],
        username=env[ENV_USER],
        key_path=key_path,
        port=_env_int(env, "VM_PORT", 22),
        key_passphrase=env.get("VM_KEY_PASSPHRASE") or None,
        strict_host_keys=_env_bool(env, "VM_STRICT_HOST_KEYS", False),
        connect_timeout=_env_float(env, "VM_CONNECT_TIMEOUT", 10.0),
        command_timeout=_env_float(env, "VM_COMMAND_TIMEOUT", 30.0),
    )


def load_settings(env: Mapping[str, str] | None = None, *, use_dotenv: bool = True) -> DashboardSettings:
    """Resolve settings from the environment; raise ConfigError on anything missing or invalid."""
    if env is None:
        if use_dotenv:
            load_dotenv()
        env = os.environ

    transport = (env.get("DASHBOARD_TRANSPORT") or "ssh").strip().lower()
    if transport not in ("ssh", "local"):
        raise ConfigError("DASHBOARD_TRANSPORT must be 'ssh' or 'local'")

    remote = load_remote_settings(env) if transport == "ssh" else None

    return DashboardSettings(
        transport=transport,
        remote=remote,
        tail_lines=_env_int(env, "DASHBOARD_TAIL_LINES", 50),
        timezone=_env_timezone(env, "DASHBOARD_TIMEZONE"),
        http_host=env.get("DASHBOARD_HOST") or "127.0.0.1",
        http_port=_env_int(env, "DASHBOARD_PORT", 8000),
        log_level=(env.get("DASHBOARD_LOG_LEVEL") or "INFO").upper(),
    )
