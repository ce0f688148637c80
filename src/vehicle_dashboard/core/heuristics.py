"""Best-effort field extraction from free-text descriptions."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence

DEFAULT_RATING = 5

# Strict Indian registration format first (MH12AB1234), then common variations.
VEHICLE_NUMBER_PATTERNS: Sequence[re.Pattern[str]] = (
    re.compile(r"[A-Z]{2}[0-9]{2}[A-Z]{2}[0-9]{4}"),
    re.compile(r"[A-Z]{2}[0-9]{1,2}[A-Z]{1,2}[0-9]{1,4}"),
)

RATING_PATTERNS: Sequence[re.Pattern[str]] = (
    re.compile(r"(\d+)\s*stars?", re.IGNORECASE),
    re.compile(r"rating[:\s]*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)/5", re.IGNORECASE),
    re.compile(r"(\d+)\s*out\s*of\s*5", re.IGNORECASE),
)

FEEDBACK_TOPICS: Mapping[str, Sequence[str]] = {
    "Service Quality": ("service", "quality", "experience", "satisfaction"),
    "Driver Behavior": ("driver", "behavior", "driving", "rude", "polite"),
    "Vehicle Condition": ("vehicle", "car", "condition", "clean", "dirty"),
    "Timeliness": ("time", "late", "early", "punctual", "delay"),
    "Pricing": ("price", "cost", "expensive", "cheap", "fare"),
    "General": ("general", "overall", "feedback"),
}


def extract_vehicle_number(text: str) -> str | None:
    """Return the first registration-number-like token in text, if any."""
    for pattern in VEHICLE_NUMBER_PATTERNS:
        m = pattern.search(text)
        if m:
            return m.group(0)
    return None


def extract_rating(text: str, fallback: int | None = None) -> int | None:
    """Return a 1..5 rating mentioned in text, else fallback.

    Patterns are tried in order; a pattern whose number falls outside 1..5
    does not stop later patterns from matching.
    """
    for pattern in RATING_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        rating = int(m.group(1))
        if 1 <= rating <= 5:
            return rating
    return fallback


def categorize_feedback(text: str) -> str:
    """Classify feedback into a topic by keyword."""
    lower = text.lower()
    for topic, keywords in FEEDBACK_TOPICS.items():
        if any(k in lower for k in keywords):
            return topic
    return "General"
