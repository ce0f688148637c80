"""Visibility camera log parser.

Lines look like ``2025-06-24,15:15:49,image_20250624_151549.jpg,69.28,78.33`` with no header.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..models import VisibilityRecord
from .base import DialectSpec, FieldType, ParseResult, convert_field, parse_float, read_table

VISIBILITY_SPEC = DialectSpec(
    name="visibility",
    columns=("date", "time", "imageName", "metric1", "metric2"),
    types={"metric1": FieldType.FLOAT, "metric2": FieldType.FLOAT},
    has_header=False,
    strict_width=True,
)


@dataclass(frozen=True, slots=True)
class VisibilityParser:
    """Parse the headerless five-column visibility log."""

    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[VisibilityRecord]:
        table = read_table(text, VISIBILITY_SPEC, first_line_is_data=first_line_is_data)
        records: list[VisibilityRecord] = []
        for row in table.rows:
            v = row.values
            records.append(
                VisibilityRecord(
                    line_no=row.line_no,
                    date=v["date"],
                    time=v["time"],
                    image_name=v["imageName"],
                    metric1=parse_float(v["metric1"]),
                    metric2=parse_float(v["metric2"]),
                    timestamp=convert_field(
                        f"{v['date']}T{v['time']}", FieldType.TIMESTAMP, default_tz=self.default_tz
                    ),
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
