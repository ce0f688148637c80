from __future__ import annotations

import shlex
from collections.abc import Callable
from datetime import UTC, datetime

import pytest

from vehicle_dashboard.config import SourcePaths
from vehicle_dashboard.core.data_service import DashboardService
from vehicle_dashboard.core.errors import RemoteExecutionError, RemoteWriteError

PATHS = SourcePaths()
NOW = datetime(2025, 7, 1, 12, 0, 0, tzinfo=UTC)

ALCOHOL_CSV = """\
2025-07-01T13:16:08.723716+05:30,Sensor Value: 323
2025-07-01T08:20:00Z,Sensor Value: 410
garbage line
"""

VISIBILITY_CSV = """\
2025-07-01,07:50:00,img_001.jpg,69.28,78.33
2025-07-01,08:10:00,img_002.jpg,40.5,12.0
"""

DROWSINESS_CSV = """\
image_name,timestamp,left_ear,right_ear,closed_ratio,state,alert,vehicleNumber
frame_001.jpg,2025-07-01T08:01:00Z,0.31,0.29,0.10,awake,0,MH12AB1234
frame_002.jpg,2025-07-01T08:02:00Z,0.12,0.11,0.85,drowsy,1,MH12AB1234
frame_003.jpg,2025-07-01T08:03:00Z,0.30,0.30,0.05,awake,0,KA01XY9999
"""

OBD_CSV = """\
GPS Time,Device Time,Speed (OBD)(km/h),Engine RPM(rpm),Engine Coolant Temperature(°C),vehicleNumber
2025-07-01T08:00:05Z,01-Jul-2025 08:00:05.123,42,1800,88.5,MH12AB1234
-,01-Jul-2025 09:45:00.000,0,750,90,MH12AB1234
"""

HISTORY_CSV = """\
datetime,vehicleNumber,alert,value
2025-07-01T08:05:00Z,MH12AB1234,drowsiness,0.85
2025-07-01T09:30:00Z,MH12AB1234,alcohol,410
2025-07-01T08:06:00Z,KA01XY9999,visibility,40.5
"""

COMPLAINTS_CSV = """\
"CMPLT001","Driver Behavior","Driver of MH12AB1234 was rude, honked constantly","2025-07-01T10:00:00.000Z"
"CMPLT002","Cleanliness","Seats were dirty","2025-07-01T11:00:00.000Z"
"""

FEEDBACK_CSV = """\
"FDBK001","Service","Great service, 4/5","2025-06-30T09:00:00.000Z"
"FDBK002","Ride","Driver of KA01XY9999 was always late","2025-07-01T09:00:00.000Z"
"FDBK003","General","no mention","2025-06-29T09:00:00.000Z"
"""

TICKETS_CSV = """\
id,vehicleNumber,issueType,title,description,incidentDate,incidentTime,status,priority,createdAt,adminResponse
TCK001,MH12AB1234,Safety,Drowsy driver,"Driver nodded off, twice",2025-07-01,08:15,Pending,High,2025-07-01T08:30:00.000Z,
TCK002,KA01XY9999,Comfort,AC broken,"Said ""fixed"" but wasn't",2025-06-30,17:00,Resolved,Low,2025-06-30T18:00:00.000Z,Replaced filter
TCK003,MH12AB1234,Billing,Overcharged,Fare too high,2025-06-29,10:00,processing,Medium,2025-06-29T11:00:00.000Z,
"""


class FakeTransport:
    """In-memory TransportSession that understands ``head -n``/``tail -n`` commands."""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.commands: list[str] = []
        self.writes: list[tuple[str, str]] = []
        self.failing: set[str] = set()
        self.fail_writes = False

    def _lines(self, path: str) -> list[str]:
        if path in self.failing or path not in self.files:
            raise RemoteExecutionError(f"Could not read {path}", diagnostics=f"tail: cannot open '{path}'")
        return self.files[path].splitlines()

    async def run_command(self, command: str) -> str:
        self.commands.append(command)
        out: list[str] = []
        for part in command.split(" && "):
            prog, flag, count, path = shlex.split(part)
            assert flag == "-n"
            lines = self._lines(path)
            n = int(count)
            out.extend(lines[:n] if prog == "head" else lines[-n:])
        return "\n".join(out)

    async def read_file(self, path: str) -> bytes:
        self._lines(path)
        return self.files[path].encode("utf-8")

    async def write_file(self, path: str, data: bytes) -> None:
        if self.fail_writes:
            raise RemoteWriteError(f"Could not overwrite {path}", detail="Permission denied")
        text = data.decode("utf-8")
        self.writes.append((path, text))
        self.files[path] = text


@pytest.fixture
def sample_files() -> dict[str, str]:
    return {
        PATHS.alcohol: ALCOHOL_CSV,
        PATHS.complaint: COMPLAINTS_CSV,
        PATHS.drowsiness: DROWSINESS_CSV,
        PATHS.feedback: FEEDBACK_CSV,
        PATHS.history: HISTORY_CSV,
        PATHS.obd: OBD_CSV,
        PATHS.ticket: TICKETS_CSV,
        PATHS.visibility: VISIBILITY_CSV,
    }


@pytest.fixture
def fake_transport(sample_files: dict[str, str]) -> FakeTransport:
    return FakeTransport(sample_files)


@pytest.fixture
def make_service() -> Callable[..., DashboardService]:
    def _make(transport: FakeTransport, **kwargs) -> DashboardService:
        kwargs.setdefault("clock", lambda: NOW)
        return DashboardService(transport, **kwargs)

    return _make


@pytest.fixture
def service(fake_transport: FakeTransport, make_service: Callable[..., DashboardService]) -> DashboardService:
    return make_service(fake_transport)


@pytest.fixture
def transport_factory() -> Callable[..., FakeTransport]:
    return FakeTransport


@pytest.fixture
def now() -> datetime:
    return NOW
