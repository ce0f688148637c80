from __future__ import annotations

from datetime import UTC
from pathlib import Path

import pytest

from vehicle_dashboard.config import SourcePaths, load_settings
from vehicle_dashboard.core.errors import ConfigError
from vehicle_dashboard.core.models import LogSource
from vehicle_dashboard.transport import LocalTransport, build_transport


@pytest.fixture
def key_file(tmp_path: Path) -> Path:
    key = tmp_path / "id_ed25519"
    key.write_text("placeholder", encoding="utf-8")
    return key


def _ssh_env(key_file: Path, **extra: str) -> dict[str, str]:
    return {"VM_HOST": "10.0.0.5", "VM_USER": "fast", "VM_KEY_PATH": str(key_file), **extra}


def test_defaults(key_file: Path) -> None:
    settings = load_settings(_ssh_env(key_file))

    assert settings.transport == "ssh"
    assert settings.remote is not None
    assert settings.remote.host == "10.0.0.5"
    assert settings.remote.port == 22
    assert settings.remote.strict_host_keys is False
    assert settings.remote.connect_timeout == 10.0
    assert settings.remote.command_timeout == 30.0
    assert settings.tail_lines == 50
    assert settings.timezone is UTC
    assert settings.http_host == "127.0.0.1"
    assert settings.http_port == 8000
    assert settings.log_level == "INFO"


def test_overrides(key_file: Path) -> None:
    settings = load_settings(
        _ssh_env(
            key_file,
            VM_PORT="2222",
            VM_STRICT_HOST_KEYS="yes",
            VM_COMMAND_TIMEOUT="5.5",
            DASHBOARD_TAIL_LINES="200",
            DASHBOARD_TIMEZONE="Asia/Kolkata",
            DASHBOARD_LOG_LEVEL="debug",
        )
    )

    assert settings.remote.port == 2222
    assert settings.remote.strict_host_keys is True
    assert settings.remote.command_timeout == 5.5
    assert settings.tail_lines == 200
    assert str(settings.timezone) == "Asia/Kolkata"
    assert settings.log_level == "DEBUG"


def test_missing_credentials_are_named() -> None:
    with pytest.raises(ConfigError) as exc:
        load_settings({"VM_HOST": "h"})
    assert "VM_USER" in exc.value.message
    assert "VM_KEY_PATH" in exc.value.message


def test_key_path_must_exist(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_settings(_ssh_env(tmp_path / "missing"))


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("VM_PORT", "ssh"),
        ("VM_PORT", "0"),
        ("VM_CONNECT_TIMEOUT", "-1"),
        ("VM_STRICT_HOST_KEYS", "maybe"),
        ("DASHBOARD_TAIL_LINES", "0"),
        ("DASHBOARD_TIMEZONE", "Mars/Olympus"),
        ("DASHBOARD_TRANSPORT", "ftp"),
    ],
)
def test_invalid_values(key_file: Path, name: str, value: str) -> None:
    with pytest.raises(ConfigError):
        load_settings(_ssh_env(key_file, **{name: value}))


def test_local_transport_needs_no_credentials() -> None:
    settings = load_settings({"DASHBOARD_TRANSPORT": "local"})

    assert settings.remote is None
    assert isinstance(build_transport(settings), LocalTransport)


def test_ssh_transport_with_unreadable_key_fails_at_startup(key_file: Path) -> None:
    settings = load_settings(_ssh_env(key_file))
    with pytest.raises(ConfigError):
        build_transport(settings)


def test_source_paths_cover_every_source() -> None:
    paths = SourcePaths()
    assert paths.for_source(LogSource.TICKET) == "/home/fast-and-furious/main/drishti/tickets/tickets.csv"
    assert paths.for_source(LogSource.OBD) == "/home/fast-and-furious/main/obd_data/trackLog.csv"
    assert len({paths.for_source(s) for s in LogSource}) == len(LogSource)
