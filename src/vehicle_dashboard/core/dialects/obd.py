"""On-board diagnostics (OBD) track log parser.

The OBD logger writes wide headers with unit annotations, e.g.
``GPS Time, Device Time, Speed (OBD)(km/h), Engine Coolant Temperature(°C)``.
Header names are normalized to camel-cased identifiers and values are typed by sniffing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..models import NA, FieldValue, ObdRecord
from ..time_window import parse_timestamp
from .base import DialectSpec, ParseResult, read_table

_UNIT_CHARS_RE = re.compile(r"[()°%Â]")
_NON_WORD_RE = re.compile(r"[^a-zA-Z0-9\s]")
_WORD_BREAK_RE = re.compile(r"\s(.)")
_SPACE_RE = re.compile(r"\s")
_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

OBD_SPEC = DialectSpec(name="obd", has_header=True, strict_width=True)


def normalize_obd_header(header: str) -> str:
    """Strip units and punctuation, then camel-case the remaining words."""
    s = _UNIT_CHARS_RE.sub("", header)
    s = _NON_WORD_RE.sub("", s).strip()
    s = _WORD_BREAK_RE.sub(lambda m: m.group(1).upper(), s)
    return _SPACE_RE.sub("", s)


def sniff_value(name: str, raw: str, *, default_tz: tzinfo = UTC) -> FieldValue:
    """Type a value: numbers first, then timestamps for time/date columns."""
    if _NUMBER_RE.fullmatch(raw):
        value = float(raw)
        if value.is_integer() and not any(c in raw for c in ".eE"):
            return int(raw)
        return value

    lowered = name.lower()
    if "time" in lowered or "date" in lowered:
        ts = parse_timestamp(raw, default_tz=default_tz)
        if ts is not None:
            return ts
    return raw


@dataclass(frozen=True, slots=True)
class ObdParser:
    default_tz: tzinfo = UTC

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[ObdRecord]:
        table = read_table(text, OBD_SPEC, first_line_is_data=first_line_is_data, rename=normalize_obd_header)
        records: list[ObdRecord] = []
        for row in table.rows:
            fields = {
                name: sniff_value(name, raw, default_tz=self.default_tz) for name, raw in row.values.items()
            }
            records.append(
                ObdRecord(
                    line_no=row.line_no,
                    fields=fields,
                    vehicle_number=str(fields.get("vehicleNumber") or NA),
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
