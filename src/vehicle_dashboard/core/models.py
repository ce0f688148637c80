"""Core data models for the dashboard service."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Any, ClassVar, Protocol

NA = "N/A"

FieldValue = str | int | float | datetime | None


class LogSource(str, Enum):
    """Log families served by the dashboard."""

    ALCOHOL = "alcohol"
    COMPLAINT = "complaint"
    DROWSINESS = "drowsiness"
    FEEDBACK = "feedback"
    HISTORY = "history"
    OBD = "obd"
    TICKET = "ticket"
    VISIBILITY = "visibility"

    @property
    def label(self) -> str:
        """Human-facing source name used by the history timeline."""
        return _SOURCE_LABELS[self]

    @property
    def kind(self) -> str:
        """Timeline entry type (master-history rows are alerts)."""
        return "alert" if self is LogSource.HISTORY else self.value


_SOURCE_LABELS = {
    LogSource.ALCOHOL: "Alcohol CSV",
    LogSource.COMPLAINT: "Complaints CSV",
    LogSource.DROWSINESS: "Drowsiness CSV",
    LogSource.FEEDBACK: "Feedback CSV",
    LogSource.HISTORY: "History CSV",
    LogSource.OBD: "OBD CSV",
    LogSource.TICKET: "Tickets CSV",
    LogSource.VISIBILITY: "Visibility CSV",
}


class TicketStatus(str, Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    RESOLVED = "Resolved"


class TicketPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


def json_value(value: FieldValue) -> Any:
    """Convert a field value into a JSON-serializable value."""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def _epoch_ms(value: int | float) -> datetime | None:
    try:
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


class Record(Protocol):
    """Common view over every parsed record, consumed by the correlator."""

    source: ClassVar[LogSource]
    line_no: int
    vehicle_number: str

    def display_timestamp(self) -> datetime | None: ...

    def to_dict(self) -> dict[str, Any]: ...


@dataclass(frozen=True, slots=True)
class AlcoholRecord:
    """MQ-3 alcohol sensor reading (no vehicle column in the source)."""

    source: ClassVar[LogSource] = LogSource.ALCOHOL

    line_no: int
    timestamp: datetime | str
    sensor_value: int | None
    vehicle_number: str = NA

    def display_timestamp(self) -> datetime | None:
        return self.timestamp if isinstance(self.timestamp, datetime) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": json_value(self.timestamp),
            "sensorValue": self.sensor_value,
            "vehicleNumber": self.vehicle_number,
        }


@dataclass(frozen=True, slots=True)
class VisibilityRecord:
    """Camera visibility measurement."""

    source: ClassVar[LogSource] = LogSource.VISIBILITY

    line_no: int
    date: str
    time: str
    image_name: str
    metric1: float | None
    metric2: float | None
    timestamp: datetime | str
    vehicle_number: str = NA

    def display_timestamp(self) -> datetime | None:
        return self.timestamp if isinstance(self.timestamp, datetime) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "time": self.time,
            "imageName": self.image_name,
            "metric1": self.metric1,
            "metric2": self.metric2,
            "timestamp": json_value(self.timestamp),
            "vehicleNumber": self.vehicle_number,
        }


@dataclass(frozen=True, slots=True)
class ComplaintRecord:
    """Complaint submitted through the driver app."""

    source: ClassVar[LogSource] = LogSource.COMPLAINT

    line_no: int
    id: str
    category: str
    description: str
    timestamp: datetime
    vehicle_number: str = NA
    status: str = "Pending"
    admin_response: str = ""

    @property
    def title(self) -> str:
        return self.category or "Complaint"

    def display_timestamp(self) -> datetime | None:
        return self.timestamp

    def to_dict(self) -> dict[str, Any]:
        ts = json_value(self.timestamp)
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "timestamp": ts,
            "status": self.status,
            "vehicleNumber": self.vehicle_number,
            "title": self.title,
            "date": ts,
            "adminResponse": self.admin_response,
        }


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    """Feedback entry; rating and topic are derived from the free text."""

    source: ClassVar[LogSource] = LogSource.FEEDBACK

    line_no: int
    id: str
    category: str
    description: str
    timestamp: datetime
    rating: int
    topic: str
    vehicle_number: str = NA
    status: str = "Received"
    admin_response: str = ""

    @property
    def title(self) -> str:
        return self.category or "Feedback"

    def display_timestamp(self) -> datetime | None:
        return self.timestamp

    def to_dict(self) -> dict[str, Any]:
        ts = json_value(self.timestamp)
        return {
            "id": self.id,
            "category": self.category,
            "description": self.description,
            "timestamp": ts,
            "status": self.status,
            "vehicleNumber": self.vehicle_number,
            "title": self.title,
            "rating": self.rating,
            "topic": self.topic,
            "date": ts,
            "adminResponse": self.admin_response,
            "type": self.category,
            "message": self.description,
        }


@dataclass(frozen=True, slots=True)
class _ColumnRecord:
    """Record whose columns come from the file's own header row."""

    line_no: int
    fields: Mapping[str, FieldValue]
    vehicle_number: str = NA

    def get(self, name: str, default: FieldValue = None) -> FieldValue:
        return self.fields.get(name, default)

    def to_dict(self) -> dict[str, Any]:
        out = {k: json_value(v) for k, v in self.fields.items()}
        out["vehicleNumber"] = self.vehicle_number
        return out

    def _timestamp_of(self, name: str) -> datetime | None:
        value = self.fields.get(name)
        if isinstance(value, datetime):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return _epoch_ms(value)
        return None


@dataclass(frozen=True, slots=True)
class DrowsinessRecord(_ColumnRecord):
    """Eye-aspect-ratio drowsiness detection row."""

    source: ClassVar[LogSource] = LogSource.DROWSINESS

    def display_timestamp(self) -> datetime | None:
        return self._timestamp_of("timestamp")


@dataclass(frozen=True, slots=True)
class HistoryRecord(_ColumnRecord):
    """Row of the master alert log."""

    source: ClassVar[LogSource] = LogSource.HISTORY

    def display_timestamp(self) -> datetime | None:
        return self._timestamp_of("datetime")


@dataclass(frozen=True, slots=True)
class ObdRecord(_ColumnRecord):
    """On-board diagnostics sample with normalized column names."""

    source: ClassVar[LogSource] = LogSource.OBD

    def display_timestamp(self) -> datetime | None:
        return self._timestamp_of("GPSTime") or self._timestamp_of("DeviceTime")


@dataclass(frozen=True, slots=True)
class TicketRecord(_ColumnRecord):
    """Support ticket; the only record family that is ever written back."""

    source: ClassVar[LogSource] = LogSource.TICKET

    @property
    def id(self) -> str:
        return str(self.fields.get("id", ""))

    @property
    def status(self) -> str:
        return str(self.fields.get("status", ""))

    @property
    def priority(self) -> str:
        return str(self.fields.get("priority", ""))

    @property
    def admin_response(self) -> str:
        return str(self.fields.get("adminResponse", ""))

    @property
    def updated_at(self) -> FieldValue:
        return self.fields.get("updatedAt")

    def display_timestamp(self) -> datetime | None:
        return self._timestamp_of("updatedAt") or self._timestamp_of("createdAt")

    def to_dict(self) -> dict[str, Any]:
        # Tickets are served exactly as stored; no sentinel column is injected.
        return {k: json_value(v) for k, v in self.fields.items()}


@dataclass(frozen=True, slots=True)
class CorrelatedHistoryEntry:
    """A record placed on a vehicle's timeline."""

    record: Record
    source: LogSource
    display_timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        out = self.record.to_dict()
        out["vehicleNumber"] = self.record.vehicle_number
        out["type"] = self.source.kind
        out["source"] = self.source.label
        out["displayTimestamp"] = self.display_timestamp.isoformat()
        return out
