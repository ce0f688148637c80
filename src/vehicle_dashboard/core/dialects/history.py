"""Master alert log parser (generic headered CSV with a ``datetime`` column)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..models import NA, HistoryRecord
from .base import DialectSpec, FieldType, ParseResult, convert_row, read_table

HISTORY_SPEC = DialectSpec(
    name="history",
    types={"datetime": FieldType.TIMESTAMP},
    has_header=True,
    strict_width=True,
)


@dataclass(frozen=True, slots=True)
class HistoryParser:
    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[HistoryRecord]:
        table = read_table(text, HISTORY_SPEC, first_line_is_data=first_line_is_data)
        records: list[HistoryRecord] = []
        for row in table.rows:
            fields = convert_row(row, HISTORY_SPEC, default_tz=self.default_tz)
            records.append(
                HistoryRecord(
                    line_no=row.line_no,
                    fields=fields,
                    vehicle_number=str(fields.get("vehicleNumber") or NA),
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
