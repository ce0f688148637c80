"""Dashboard data access.

This module is the main integration point: it binds each log family to its
remote path, fetch strategy and parser, and returns typed records for the
HTTP, MCP and CLI surfaces.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from typing import Any

from vehicle_dashboard.config import DashboardSettings, SourcePaths
from vehicle_dashboard.transport.base import TransportSession
from vehicle_dashboard.transport.fetchers import TailFetcher, WholeFileStore

from . import tickets as ticket_ops
from .correlator import correlate, matches_vehicle, matches_window
from .dialects import (
    AlcoholParser,
    ComplaintParser,
    DialectParser,
    DrowsinessParser,
    FeedbackParser,
    HistoryParser,
    ObdParser,
    ParseResult,
    TicketParser,
    VisibilityParser,
)
from .errors import DashboardError, NotFoundError, ValidationError
from .models import (
    ComplaintRecord,
    CorrelatedHistoryEntry,
    FeedbackRecord,
    HistoryRecord,
    LogSource,
    Record,
    TicketRecord,
    TicketStatus,
)
from .time_window import incident_window

LOGGER = logging.getLogger(__name__)

DEFAULT_TAIL_LINES = 50

SENSOR_SOURCES: tuple[LogSource, ...] = (
    LogSource.OBD,
    LogSource.ALCOHOL,
    LogSource.DROWSINESS,
    LogSource.VISIBILITY,
)
# Master history first, then the sensor logs; ties on timestamp keep this order.
TIMELINE_SOURCES: tuple[LogSource, ...] = (LogSource.HISTORY, *SENSOR_SOURCES)


@dataclass(frozen=True, slots=True)
class SourceBinding:
    """How one log family is fetched and parsed."""

    source: LogSource
    parser: DialectParser[Any]
    tail: bool = False
    include_header: bool = False


def default_bindings(default_tz: tzinfo = UTC) -> dict[LogSource, SourceBinding]:
    return {
        LogSource.ALCOHOL: SourceBinding(LogSource.ALCOHOL, AlcoholParser(default_tz=default_tz), tail=True),
        LogSource.COMPLAINT: SourceBinding(LogSource.COMPLAINT, ComplaintParser(default_tz=default_tz)),
        LogSource.DROWSINESS: SourceBinding(
            LogSource.DROWSINESS, DrowsinessParser(default_tz=default_tz), tail=True, include_header=True
        ),
        LogSource.FEEDBACK: SourceBinding(LogSource.FEEDBACK, FeedbackParser(default_tz=default_tz)),
        LogSource.HISTORY: SourceBinding(LogSource.HISTORY, HistoryParser(default_tz=default_tz)),
        LogSource.OBD: SourceBinding(LogSource.OBD, ObdParser(default_tz=default_tz), tail=True, include_header=True),
        LogSource.TICKET: SourceBinding(LogSource.TICKET, TicketParser(default_tz=default_tz)),
        LogSource.VISIBILITY: SourceBinding(LogSource.VISIBILITY, VisibilityParser(default_tz=default_tz), tail=True),
    }


@dataclass(frozen=True, slots=True)
class Timeline:
    """Correlated entries for one vehicle plus the sources that could not be read."""

    vehicle_number: str | None
    entries: Sequence[CorrelatedHistoryEntry]
    unavailable: Mapping[LogSource, str] = field(default_factory=dict)
    window_start: datetime | None = None
    window_end: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "vehicleNumber": self.vehicle_number,
            "windowStart": self.window_start.isoformat() if self.window_start else None,
            "windowEnd": self.window_end.isoformat() if self.window_end else None,
            "count": len(self.entries),
            "records": [e.to_dict() for e in self.entries],
            "unavailableSources": {s.label: msg for s, msg in self.unavailable.items()},
        }


class DashboardService:
    """Read, correlate and update the dashboard's CSV logs.

    Every call opens its own transport session(s); the service keeps no state
    between calls.
    """

    def __init__(
        self,
        session: TransportSession,
        *,
        paths: SourcePaths | None = None,
        tail_lines: int = DEFAULT_TAIL_LINES,
        default_tz: tzinfo = UTC,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if tail_lines < 1:
            raise ValueError("tail_lines must be > 0")
        self.paths = paths or SourcePaths()
        self.tail_lines = tail_lines
        self.default_tz = default_tz
        self.bindings = default_bindings(default_tz)
        self._tail = TailFetcher(session)
        self._store = WholeFileStore(session)
        self._clock = clock or (lambda: datetime.now(UTC))

    @classmethod
    def from_settings(cls, settings: DashboardSettings, session: TransportSession) -> DashboardService:
        return cls(
            session,
            paths=settings.paths,
            tail_lines=settings.tail_lines,
            default_tz=settings.timezone,
        )

    async def load(self, source: LogSource) -> ParseResult[Any]:
        """Fetch and parse one log family using its bound strategy."""
        binding = self.bindings[source]
        path = self.paths.for_source(source)
        if binding.tail:
            text = await self._tail.fetch_tail(path, self.tail_lines, include_header=binding.include_header)
        else:
            text = await self._store.fetch_all(path)
        result = binding.parser.parse(text)
        LOGGER.info(
            "Loaded %d %s records from %s (%d skipped)", len(result), source.value, path, len(result.skipped)
        )
        return result

    async def sensor_records(
        self,
        source: LogSource,
        *,
        vehicle_number: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[Record]:
        """Latest tail window of a sensor log, filtered by vehicle and time (file order)."""
        if source not in SENSOR_SOURCES:
            raise ValueError(f"{source.value} is not a sensor log")
        records = list(await self.load(source))
        if not vehicle_number and start is None and end is None:
            return records
        return [
            r
            for r in records
            if matches_vehicle(r, vehicle_number) and matches_window(r.display_timestamp(), start, end)
        ]

    async def complaints(self) -> list[ComplaintRecord]:
        return list(await self.load(LogSource.COMPLAINT))

    async def feedback(self) -> list[FeedbackRecord]:
        """Feedback entries, newest first."""
        records: list[FeedbackRecord] = list(await self.load(LogSource.FEEDBACK))
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    async def history(self) -> list[HistoryRecord]:
        return list(await self.load(LogSource.HISTORY))

    async def tickets(self) -> list[TicketRecord]:
        return list(await self.load(LogSource.TICKET))

    async def get_ticket(self, ticket_id: str) -> TicketRecord:
        if not ticket_id:
            raise ValidationError("Ticket ID is required")
        for ticket in await self.tickets():
            if ticket.id == ticket_id:
                return ticket
        raise NotFoundError("Ticket not found", detail=f"No ticket with id {ticket_id!r}")

    async def update_ticket(
        self,
        ticket_id: str,
        *,
        status: str | None = None,
        priority: str | None = None,
        admin_response: str | None = None,
    ) -> TicketRecord:
        return await ticket_ops.update_ticket(
            self._store,
            self.paths.ticket,
            ticket_id,
            status=status,
            priority=priority,
            admin_response=admin_response,
            now=self._clock(),
            default_tz=self.default_tz,
        )

    async def _load_many(
        self, sources: Iterable[LogSource]
    ) -> tuple[dict[LogSource, Sequence[Record]], dict[LogSource, DashboardError]]:
        sources = list(sources)
        results = await asyncio.gather(*(self.load(s) for s in sources), return_exceptions=True)

        loaded: dict[LogSource, Sequence[Record]] = {}
        failed: dict[LogSource, DashboardError] = {}
        for source, result in zip(sources, results):
            if isinstance(result, DashboardError):
                LOGGER.warning("Source %s unavailable: %s", source.value, result.message)
                failed[source] = result
            elif isinstance(result, BaseException):
                raise result
            else:
                loaded[source] = result.records

        if failed and not loaded:
            raise next(iter(failed.values()))
        return loaded, failed

    async def vehicle_history(
        self,
        vehicle_number: str | None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        newest_first: bool | None = None,
    ) -> Timeline:
        """Correlate master history and the sensor logs for a vehicle.

        Without a window the timeline is newest first; with one it is ascending.
        A source that cannot be read is reported instead of failing the whole view.
        """
        if newest_first is None:
            newest_first = start is None and end is None
        loaded, failed = await self._load_many(TIMELINE_SOURCES)
        entries = correlate(vehicle_number, start, end, loaded, newest_first=newest_first)
        return Timeline(
            vehicle_number=vehicle_number,
            entries=entries,
            unavailable={s: e.detail or e.message for s, e in failed.items()},
            window_start=start,
            window_end=end,
        )

    async def ticket_history(self, ticket_id: str) -> tuple[TicketRecord, Timeline]:
        """Timeline for a ticket's vehicle within 30 minutes either side of its incident."""
        ticket = await self.get_ticket(ticket_id)
        incident_date = ticket.get("incidentDate")
        incident_time = str(ticket.get("incidentTime") or "")
        if not incident_date or not incident_time:
            raise ValidationError("Ticket has no incident date/time", detail=f"ticket {ticket_id!r}")
        try:
            start, end = incident_window(
                incident_date if isinstance(incident_date, datetime) else str(incident_date),
                incident_time,
                default_tz=self.default_tz,
            )
        except ValueError as exc:
            raise ValidationError("Ticket has an invalid incident date/time", detail=str(exc)) from exc

        timeline = await self.vehicle_history(ticket.vehicle_number, start=start, end=end, newest_first=False)
        return ticket, timeline

    async def stats(self) -> dict[str, Any]:
        """Ticket, complaint and feedback counts for the dashboard summary."""
        tickets, complaints, feedback = await asyncio.gather(
            self.tickets(), self.complaints(), self.load(LogSource.FEEDBACK)
        )
        midnight = self._clock().astimezone(self.default_tz).replace(hour=0, minute=0, second=0, microsecond=0)

        def count(items: Iterable[Any], status: str) -> int:
            return sum(1 for i in items if str(i.status).casefold() == status.casefold())

        resolved_today = 0
        for t in tickets:
            if t.status.casefold() != TicketStatus.RESOLVED.value.casefold():
                continue
            ts = t.display_timestamp()
            if ts is not None and ts >= midnight:
                resolved_today += 1

        return {
            "tickets": {
                "total": len(tickets),
                "pending": count(tickets, TicketStatus.PENDING.value),
                "processing": count(tickets, TicketStatus.PROCESSING.value),
                "resolved": count(tickets, TicketStatus.RESOLVED.value),
                "resolvedToday": resolved_today,
            },
            "complaints": {"total": len(complaints), "pending": count(complaints, "Pending")},
            "feedback": {"total": len(feedback), "pending": count(feedback, "Pending")},
        }
