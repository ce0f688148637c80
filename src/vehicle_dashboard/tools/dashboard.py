"""Request-facing implementations shared by the HTTP routes, MCP tools and CLI.

Keep this layer thin: validate inputs, translate them into service calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

import pydantic
from pydantic import BaseModel, ConfigDict, Field

from vehicle_dashboard.core.data_service import DashboardService
from vehicle_dashboard.core.errors import ValidationError
from vehicle_dashboard.core.models import LogSource, Record, TicketPriority, TicketStatus
from vehicle_dashboard.core.time_window import parse_iso_dt, resolve_time_window


class TicketUpdate(BaseModel):
    """Body of a ticket update; unknown keys are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: TicketStatus | None = None
    priority: TicketPriority | None = None
    admin_response: str | None = Field(default=None, alias="adminResponse")

    def is_empty(self) -> bool:
        return self.status is None and self.priority is None and self.admin_response is None


def _records_to_dicts(records: list[Record]) -> list[dict[str, Any]]:
    return [r.to_dict() for r in records]


def parse_time_param(name: str, value: str | None) -> datetime | None:
    """Parse an optional ISO-8601 query parameter."""
    if not value:
        return None
    try:
        return parse_iso_dt(value)
    except ValueError as exc:
        raise ValidationError(f"Invalid {name}: {value!r}", detail="expected an ISO-8601 timestamp") from exc


def parse_ticket_update(payload: Any) -> TicketUpdate:
    """Validate a ticket update body."""
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        update = TicketUpdate.model_validate(dict(payload))
    except pydantic.ValidationError as exc:
        raise ValidationError("Invalid update data", detail=str(exc)) from exc
    if update.is_empty():
        raise ValidationError("No update data provided")
    return update


async def sensor_data_impl(
    service: DashboardService,
    source: LogSource,
    *,
    vehicle_number: str | None = None,
    start_time: str | None = None,
    end_time: str | None = None,
) -> list[dict[str, Any]]:
    start = parse_time_param("startTime", start_time)
    end = parse_time_param("endTime", end_time)
    records = await service.sensor_records(source, vehicle_number=vehicle_number, start=start, end=end)
    return _records_to_dicts(records)


async def complaints_impl(service: DashboardService) -> list[dict[str, Any]]:
    return _records_to_dicts(await service.complaints())


async def feedback_impl(service: DashboardService) -> list[dict[str, Any]]:
    return _records_to_dicts(await service.feedback())


async def history_impl(service: DashboardService) -> list[dict[str, Any]]:
    return _records_to_dicts(await service.history())


async def tickets_impl(service: DashboardService) -> list[dict[str, Any]]:
    return _records_to_dicts(await service.tickets())


async def update_ticket_impl(service: DashboardService, ticket_id: str | None, payload: Any) -> dict[str, Any]:
    """Implementation for PUT /tickets and the ``update_ticket`` tool."""
    if not ticket_id:
        raise ValidationError("Ticket ID is required")
    update = parse_ticket_update(payload)
    ticket = await service.update_ticket(
        ticket_id,
        status=update.status.value if update.status else None,
        priority=update.priority.value if update.priority else None,
        admin_response=update.admin_response,
    )
    return {"message": "Ticket updated successfully", "ticket": ticket.to_dict()}


async def vehicle_history_impl(
    service: DashboardService,
    *,
    vehicle_number: str | None = None,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    hour: str | None = None,
    week: str | None = None,
) -> dict[str, Any]:
    """Implementation for /vehicle-history and the ``vehicle_history`` tool.

    Notes
    -----
    - date/hour/week selectors win over since/until.
    - No window means newest first; a window means ascending.
    """
    try:
        start, end = resolve_time_window(since=since, until=until, date_=date, hour=hour, week=week)
    except ValueError as exc:
        raise ValidationError("Invalid time window", detail=str(exc)) from exc
    timeline = await service.vehicle_history(vehicle_number or None, start=start, end=end)
    return timeline.to_dict()


async def ticket_history_impl(service: DashboardService, ticket_id: str | None) -> dict[str, Any]:
    if not ticket_id:
        raise ValidationError("Ticket ID is required")
    ticket, timeline = await service.ticket_history(ticket_id)
    out = timeline.to_dict()
    out["ticket"] = ticket.to_dict()
    return out


async def stats_impl(service: DashboardService) -> dict[str, Any]:
    return await service.stats()
