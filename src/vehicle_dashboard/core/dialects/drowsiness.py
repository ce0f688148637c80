"""Drowsiness detection log parser.

Header: ``image_name,timestamp,left_ear,right_ear,closed_ratio,state,alert``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..models import NA, DrowsinessRecord
from .base import DialectSpec, FieldType, ParseResult, convert_row, read_table

DROWSINESS_SPEC = DialectSpec(
    name="drowsiness",
    columns=("image_name", "timestamp", "left_ear", "right_ear", "closed_ratio", "state", "alert"),
    types={
        "timestamp": FieldType.TIMESTAMP,
        "left_ear": FieldType.FLOAT,
        "right_ear": FieldType.FLOAT,
        "closed_ratio": FieldType.FLOAT,
    },
    has_header=True,
    strict_width=True,
)


@dataclass(frozen=True, slots=True)
class DrowsinessParser:
    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[DrowsinessRecord]:
        table = read_table(text, DROWSINESS_SPEC, first_line_is_data=first_line_is_data)
        records: list[DrowsinessRecord] = []
        for row in table.rows:
            fields = convert_row(row, DROWSINESS_SPEC, default_tz=self.default_tz)
            records.append(
                DrowsinessRecord(
                    line_no=row.line_no,
                    fields=fields,
                    vehicle_number=str(fields.get("vehicleNumber") or NA),
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
