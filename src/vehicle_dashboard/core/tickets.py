"""Ticket mutation path: read the whole ticket file, patch one row, write it back.

Rows are kept as their original strings, so records that are not updated are
re-serialized unchanged apart from normalized quoting. The rewrite is not
atomic and concurrent updates are last-writer-wins.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo

from vehicle_dashboard.transport.fetchers import WholeFileStore

from .dialects.base import Row, convert_row, read_table
from .dialects.ticket import TICKET_SPEC, iso_utc, to_csv_text
from .errors import NotFoundError, ValidationError
from .models import NA, TicketPriority, TicketRecord, TicketStatus

LOGGER = logging.getLogger(__name__)

UPDATED_AT = "updatedAt"

_STATUS_VALUES = [s.value for s in TicketStatus]
_PRIORITY_VALUES = [p.value for p in TicketPriority]


def _check_choice(field_name: str, value: str, allowed: list[str]) -> str:
    if value not in allowed:
        raise ValidationError(f"Invalid {field_name}: {value!r}. Allowed: {', '.join(allowed)}")
    return value


def build_changes(
    *,
    status: str | None = None,
    priority: str | None = None,
    admin_response: str | None = None,
) -> dict[str, str]:
    """Collect the supplied fields as column -> new value."""
    changes: dict[str, str] = {}
    if status is not None:
        changes["status"] = _check_choice("status", status, _STATUS_VALUES)
    if priority is not None:
        changes["priority"] = _check_choice("priority", priority, _PRIORITY_VALUES)
    if admin_response is not None:
        changes["adminResponse"] = admin_response
    if not changes:
        raise ValidationError("No update data provided")
    return changes


async def update_ticket(
    store: WholeFileStore,
    path: str,
    ticket_id: str,
    *,
    status: str | None = None,
    priority: str | None = None,
    admin_response: str | None = None,
    now: datetime | None = None,
    default_tz: tzinfo = UTC,
) -> TicketRecord:
    """Apply a partial update to the first ticket whose id matches exactly."""
    if not ticket_id:
        raise ValidationError("Ticket ID is required")
    changes = build_changes(status=status, priority=priority, admin_response=admin_response)

    text = await store.fetch_all(path)
    table = read_table(text, TICKET_SPEC)
    rows = [dict(row.values) for row in table.rows]

    index = next((i for i, row in enumerate(rows) if row.get("id") == ticket_id), None)
    if index is None:
        raise NotFoundError("Ticket not found", detail=f"No ticket with id {ticket_id!r} in {path}")

    columns = list(table.columns)
    if UPDATED_AT not in columns:
        columns.append(UPDATED_AT)
        for row in rows:
            row.setdefault(UPDATED_AT, "")

    stamp = now or datetime.now(UTC)
    target = rows[index]
    target.update(changes)
    target[UPDATED_AT] = iso_utc(stamp)

    await store.overwrite(path, to_csv_text(columns, rows, default_tz=default_tz))
    LOGGER.info("Updated ticket %s (%s)", ticket_id, ", ".join(sorted(changes)))

    line_no = table.rows[index].line_no
    fields = convert_row(Row(line_no=line_no, values=target), TICKET_SPEC, default_tz=default_tz)
    return TicketRecord(line_no=line_no, fields=fields, vehicle_number=str(fields.get("vehicleNumber") or NA))

