"""CSV dialect parsers, one per log family."""

from __future__ import annotations

from .alcohol import ALCOHOL_SPEC, AlcoholParser
from .base import DialectParser, DialectSpec, FieldType, ParseResult, ParseSkip, convert_field, read_table
from .complaint import COMPLAINT_SPEC, ComplaintParser
from .drowsiness import DROWSINESS_SPEC, DrowsinessParser
from .feedback import FEEDBACK_SPEC, FeedbackParser
from .history import HISTORY_SPEC, HistoryParser
from .obd import OBD_SPEC, ObdParser, normalize_obd_header, sniff_value
from .ticket import TICKET_SPEC, TicketParser, escape_csv_value, format_value, iso_utc, to_csv_text
from .visibility import VISIBILITY_SPEC, VisibilityParser

__all__ = [
    "ALCOHOL_SPEC",
    "AlcoholParser",
    "COMPLAINT_SPEC",
    "ComplaintParser",
    "DROWSINESS_SPEC",
    "DialectParser",
    "DialectSpec",
    "DrowsinessParser",
    "FEEDBACK_SPEC",
    "FeedbackParser",
    "FieldType",
    "HISTORY_SPEC",
    "HistoryParser",
    "OBD_SPEC",
    "ObdParser",
    "ParseResult",
    "ParseSkip",
    "TICKET_SPEC",
    "TicketParser",
    "VISIBILITY_SPEC",
    "VisibilityParser",
    "convert_field",
    "escape_csv_value",
    "format_value",
    "iso_utc",
    "normalize_obd_header",
    "read_table",
    "sniff_value",
    "to_csv_text",
]
