"""Dialect descriptions and the shared CSV row reader."""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, tzinfo
from enum import Enum
from typing import Generic, Protocol, TypeVar

from ..models import FieldValue, Record
from ..time_window import parse_timestamp

LOGGER = logging.getLogger(__name__)

R = TypeVar("R", bound=Record, covariant=True)

_INT_RE = re.compile(r"^[+-]?\d+")
_FLOAT_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class FieldType(str, Enum):
    """How a raw CSV value is interpreted."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    TIMESTAMP = "timestamp"  # raw string kept when unparsable
    REQUIRED_TIMESTAMP = "required_timestamp"  # current time when unparsable


@dataclass(frozen=True, slots=True)
class DialectSpec:
    """Static description of one CSV log family."""

    name: str
    columns: tuple[str, ...] = ()
    types: Mapping[str, FieldType] = field(default_factory=dict)
    has_header: bool = False
    strict_width: bool = True

    def type_of(self, column: str) -> FieldType:
        return self.types.get(column, FieldType.STRING)


@dataclass(frozen=True, slots=True)
class ParseSkip:
    """A line excluded from the result, with the reason."""

    line_no: int
    line: str
    reason: str


@dataclass(frozen=True, slots=True)
class Row:
    """One CSV data row keyed by column name (values trimmed, unconverted)."""

    line_no: int
    values: dict[str, str]


@dataclass(frozen=True, slots=True)
class Table:
    columns: list[str]
    rows: list[Row]
    skipped: list[ParseSkip]


@dataclass(frozen=True, slots=True)
class ParseResult(Generic[R]):
    """Parsed records plus diagnostics for the lines that were dropped."""

    records: Sequence[R]
    skipped: Sequence[ParseSkip] = ()
    columns: Sequence[str] = ()

    def __iter__(self) -> Iterator[R]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)


class DialectParser(Protocol[R]):
    """Parser interface: raw CSV text in, typed records out."""

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[R]:
        ...


def _split_fields(text: str) -> tuple[list[str], bool, bool]:
    """Split one CSV record into fields.

    Raw tokens are trimmed before unquoting, so whitespace inside quotes is
    kept. A doubled quote inside a quoted field is one literal quote.

    Returns ``(fields, open_quote, stray)``: ``open_quote`` is set when a quoted
    field is still open at the end of ``text``; ``stray`` when characters follow
    a closing quote.
    """
    fields: list[str] = []
    buf: list[str] = []
    quoted = in_quotes = stray = False
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if in_quotes:
            if ch != '"':
                buf.append(ch)
            elif i + 1 < n and text[i + 1] == '"':
                buf.append('"')
                i += 1
            else:
                in_quotes = False
        elif ch == ",":
            fields.append("".join(buf) if quoted else "".join(buf).strip())
            buf, quoted = [], False
        elif quoted:
            if not ch.isspace():
                stray = True
                buf.append(ch)
        elif ch == '"' and not "".join(buf).strip():
            buf, quoted, in_quotes = [], True, True
        else:
            buf.append(ch)
        i += 1
    fields.append("".join(buf) if quoted else "".join(buf).strip())
    return fields, in_quotes, stray


def _physical_lines(text: str) -> list[str]:
    return [line.rstrip("\r") for line in text.lstrip("\ufeff").split("\n")]


def _read_record(
    lines: Sequence[str],
    start: int,
    width: int | None,
    *,
    strict: bool,
) -> tuple[list[str], int, bool]:
    """Read the record that opens at ``lines[start]``.

    A quoted value may continue onto following lines only when its quote closes
    cleanly and the record still fits ``width`` (exactly, for strict dialects).
    Otherwise the record is the opening line alone, its open quote ending at the
    line break, and the returned flag is set.

    Returns ``(fields, next_index, unbalanced)``.
    """
    fields, open_quote, _ = _split_fields(lines[start])
    if not open_quote:
        return fields, start + 1, False

    if width is not None and len(fields) <= width:
        buf = lines[start]
        for end in range(start + 1, len(lines)):
            buf = f"{buf}\n{lines[end]}"
            candidate, still_open, stray = _split_fields(buf)
            if len(candidate) > width:
                break
            if still_open:
                continue
            if not stray and (len(candidate) == width or not strict):
                return candidate, end + 1, False
            break
    return fields, start + 1, True


def read_table(
    text: str,
    spec: DialectSpec,
    *,
    first_line_is_data: bool | None = None,
    rename: Callable[[str], str] | None = None,
) -> Table:
    """Split text into rows keyed by column, applying the dialect's width rules.

    ``first_line_is_data`` defaults to ``not spec.has_header``. When a headered
    dialect is told its first line is data, the dialect's canonical columns are used.
    ``rename`` maps raw header names to record field names.

    Every physical line is parsed on its own unless a quoted value legitimately
    spans line breaks, so a malformed line never affects the lines after it.
    """
    if first_line_is_data is None:
        first_line_is_data = not spec.has_header

    lines = _physical_lines(text)
    index = 0
    if first_line_is_data:
        if not spec.columns:
            raise ValueError(f"{spec.name} dialect has no fixed columns; a header row is required")
        columns = list(spec.columns)
    else:
        header: list[str] | None = None
        while header is None and index < len(lines):
            fields, index, _ = _read_record(lines, index, None, strict=False)
            if any(fields):
                header = fields
        if header is None:
            return Table(columns=[], rows=[], skipped=[])
        columns = header

    if rename is not None:
        columns = [rename(c) for c in columns]

    width = len(columns)
    rows: list[Row] = []
    skipped: list[ParseSkip] = []

    def skip(line_no: int, line: str, reason: str) -> None:
        LOGGER.warning("Skipping malformed %s row %d (%s): %s", spec.name, line_no, reason, line)
        skipped.append(ParseSkip(line_no=line_no, line=line, reason=reason))

    while index < len(lines):
        line_no = index + 1
        values, next_index, unbalanced = _read_record(lines, index, width, strict=spec.strict_width)
        line = "\n".join(lines[index:next_index])
        index = next_index
        if not any(values):
            continue
        if unbalanced:
            if spec.strict_width:
                skip(line_no, line, "unbalanced quote")
                continue
            LOGGER.warning("Unbalanced quote in %s row %d; value closed at the line break", spec.name, line_no)
        if len(values) != width:
            if spec.strict_width:
                skip(line_no, line, f"expected {width} fields, got {len(values)}")
                continue
            values = (values + [""] * width)[:width]
        rows.append(Row(line_no=line_no, values=dict(zip(columns, values))))

    return Table(columns=columns, rows=rows, skipped=skipped)


def parse_int(raw: str) -> int | None:
    """Base-10 integer from the leading digits of raw, else None."""
    m = _INT_RE.match(raw.strip())
    return int(m.group(0)) if m else None


def parse_float(raw: str) -> float | None:
    """Decimal number from the leading part of raw, else None."""
    m = _FLOAT_RE.match(raw.strip())
    if not m:
        return None
    value = float(m.group(0))
    return value if math.isfinite(value) else None


def convert_field(
    raw: str,
    ftype: FieldType,
    *,
    default_tz: tzinfo = UTC,
    now: datetime | None = None,
) -> FieldValue:
    """Convert a raw CSV value according to its dialect type."""
    if ftype is FieldType.INTEGER:
        return parse_int(raw)
    if ftype is FieldType.FLOAT:
        return parse_float(raw)
    if ftype is FieldType.TIMESTAMP:
        ts = parse_timestamp(raw, default_tz=default_tz)
        return ts if ts is not None else raw
    if ftype is FieldType.REQUIRED_TIMESTAMP:
        ts = parse_timestamp(raw, default_tz=default_tz)
        if ts is not None:
            return ts
        return now or datetime.now(UTC)
    return raw


def convert_row(row: Row, spec: DialectSpec, *, default_tz: tzinfo = UTC) -> dict[str, FieldValue]:
    """Convert every value of a row according to the dialect's column types."""
    return {
        name: convert_field(raw, spec.type_of(name), default_tz=default_tz)
        for name, raw in row.values.items()
    }
