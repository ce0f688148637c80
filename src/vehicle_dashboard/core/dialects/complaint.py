"""Complaint log parser.

Lines look like ``"CMPLT70554799","category","message","2025-07-01T11:49:14.800Z"`` with no header.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..heuristics import extract_vehicle_number
from ..models import NA, ComplaintRecord
from .base import DialectSpec, FieldType, ParseResult, convert_field, read_table

SUBMISSION_COLUMNS = ("id", "category", "description", "timestamp")

COMPLAINT_SPEC = DialectSpec(
    name="complaint",
    columns=SUBMISSION_COLUMNS,
    types={"timestamp": FieldType.REQUIRED_TIMESTAMP},
    has_header=False,
    strict_width=False,
)


@dataclass(frozen=True, slots=True)
class ComplaintParser:
    """Parse complaints; the vehicle number is mined from the description."""

    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[ComplaintRecord]:
        table = read_table(text, COMPLAINT_SPEC, first_line_is_data=first_line_is_data)
        records: list[ComplaintRecord] = []
        for row in table.rows:
            v = row.values
            records.append(
                ComplaintRecord(
                    line_no=row.line_no,
                    id=v["id"],
                    category=v["category"],
                    description=v["description"],
                    timestamp=convert_field(
                        v["timestamp"], FieldType.REQUIRED_TIMESTAMP, default_tz=self.default_tz
                    ),
                    vehicle_number=extract_vehicle_number(v["description"]) or NA,
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
