"""Ticket log parser and serializer.

Header (``updatedAt`` is appended on first update)::

    id,vehicleNumber,issueType,title,description,incidentDate,incidentTime,status,priority,createdAt,adminResponse
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo

from ..models import NA, FieldValue, TicketRecord
from .base import DialectSpec, FieldType, ParseResult, convert_row, read_table

DATE_ONLY_COLUMNS = frozenset({"incidentDate"})
_QUOTE_TRIGGERS = (",", '"', "\n", "\r")

TICKET_SPEC = DialectSpec(
    name="ticket",
    types={
        "createdAt": FieldType.TIMESTAMP,
        "incidentDate": FieldType.TIMESTAMP,
        "updatedAt": FieldType.TIMESTAMP,
    },
    has_header=True,
    strict_width=False,
)


@dataclass(frozen=True, slots=True)
class TicketParser:
    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[TicketRecord]:
        table = read_table(text, TICKET_SPEC, first_line_is_data=first_line_is_data)
        records: list[TicketRecord] = []
        for row in table.rows:
            fields = convert_row(row, TICKET_SPEC, default_tz=self.default_tz)
            records.append(
                TicketRecord(
                    line_no=row.line_no,
                    fields=fields,
                    vehicle_number=str(fields.get("vehicleNumber") or NA),
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)


def iso_utc(value: datetime) -> str:
    """ISO-8601 in UTC with a Z suffix (millisecond precision when exact)."""
    value = value.astimezone(UTC)
    timespec = "milliseconds" if value.microsecond % 1000 == 0 else "microseconds"
    return value.isoformat(timespec=timespec).replace("+00:00", "Z")


def format_value(column: str, value: FieldValue, *, default_tz: tzinfo = UTC) -> str:
    """Render one field for the CSV file."""
    if isinstance(value, datetime):
        if column in DATE_ONLY_COLUMNS:
            return value.astimezone(default_tz).date().isoformat()
        return iso_utc(value)
    if value is None:
        return ""
    return str(value)


def escape_csv_value(value: str) -> str:
    """Quote a field containing a comma, quote or line break, or with edge whitespace; double embedded quotes."""
    if any(c in value for c in _QUOTE_TRIGGERS) or value != value.strip():
        return '"' + value.replace('"', '""') + '"'
    return value


def to_csv_text(
    columns: Sequence[str],
    rows: Iterable[Mapping[str, FieldValue]],
    *,
    default_tz: tzinfo = UTC,
) -> str:
    """Serialize the full ticket table (header plus every row), newline-terminated."""
    lines = [",".join(escape_csv_value(c) for c in columns)]
    for row in rows:
        lines.append(
            ",".join(escape_csv_value(format_value(c, row.get(c), default_tz=default_tz)) for c in columns)
        )
    return "\n".join(lines) + "\n"
