"""Feedback log parser (same layout as complaints)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, tzinfo

from ..heuristics import DEFAULT_RATING, categorize_feedback, extract_rating, extract_vehicle_number
from ..models import NA, FeedbackRecord
from .base import DialectSpec, FieldType, ParseResult, convert_field, read_table
from .complaint import SUBMISSION_COLUMNS

FEEDBACK_SPEC = DialectSpec(
    name="feedback",
    columns=SUBMISSION_COLUMNS,
    types={"timestamp": FieldType.REQUIRED_TIMESTAMP},
    has_header=False,
    strict_width=False,
)


@dataclass(frozen=True, slots=True)
class FeedbackParser:
    """Parse feedback and derive rating, topic and vehicle number from the text."""

    default_tz: tzinfo = UTC
    fallback_rating: int = DEFAULT_RATING

    def parse(self, text: str, *, first_line_is_data: bool | None = None) -> ParseResult[FeedbackRecord]:
        table = read_table(text, FEEDBACK_SPEC, first_line_is_data=first_line_is_data)
        records: list[FeedbackRecord] = []
        for row in table.rows:
            v = row.values
            description = v["description"]
            records.append(
                FeedbackRecord(
                    line_no=row.line_no,
                    id=v["id"],
                    category=v["category"],
                    description=description,
                    timestamp=convert_field(
                        v["timestamp"], FieldType.REQUIRED_TIMESTAMP, default_tz=self.default_tz
                    ),
                    rating=extract_rating(description, fallback=self.fallback_rating),
                    topic=categorize_feedback(description),
                    vehicle_number=extract_vehicle_number(description) or NA,
                )
            )
        return ParseResult(records=records, skipped=table.skipped, columns=table.columns)
