"""Alcohol sensor log parser.

Lines look like ``2025-07-01T13:16:08.723716+05:30,Sensor Value: 323`` with no header.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..models import AlcoholRecord
from .base import DialectSpec, FieldType, ParseResult, convert_field, parse_int, read_table

SENSOR_PREFIX = "Sensor Value:"

ALCOHOL_SPEC = DialectSpec(
    name="alcohol",
    columns=("timestamp", "sensorValue"),
    types={"timestamp": FieldType.TIMESTAMP, "sensorValue": FieldType.INTEGER},
    has_header=False,
    strict_width=True,
)


@dataclass(frozen=True, slots=True)
class AlcoholParser:
    """Parse the headerless two-column MQ-3 log."""

    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[AlcoholRecord]:
        table = read_table(text, ALCOHOL_SPEC, first_line_is_data=first_line_is_data)
        records = [
            AlcoholRecord(
                line_no=row.line_no,
                timestamp=convert_field(row.values["timestamp"], FieldType.TIMESTAMP, default_tz=self.default_tz),
                sensor_value=parse_int(row.values["sensorValue"].replace(SENSOR_PREFIX, "")),
            )
            for row in table.rows
        ]
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
