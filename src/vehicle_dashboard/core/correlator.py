"""Merge records from several log families into one vehicle timeline."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

from .models import CorrelatedHistoryEntry, LogSource, Record


def matches_vehicle(record: Record, vehicle_number: str | None) -> bool:
    """Case-insensitive vehicle match; no target means every vehicle."""
    if not vehicle_number:
        return True
    return record.vehicle_number.casefold() == vehicle_number.strip().casefold()


def matches_window(ts: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    """True when ts lies in [start, end]; open bounds are unbounded.

    A missing timestamp only matches when no bound is set.
    """
    if ts is None:
        return start is None and end is None
    if start is not None and ts < start:
        return False
    if end is not None and ts > end:
        return False
    return True


def correlate(
    vehicle_number: str | None,
    window_start: datetime | None,
    window_end: datetime | None,
    sources: Mapping[LogSource, Iterable[Record]],
    *,
    newest_first: bool = False,
) -> list[CorrelatedHistoryEntry]:
    """Filter each source by vehicle and window, tag it, and sort by display timestamp.

    The sort is stable, so equal timestamps keep source order and then line order.
    Records without a display timestamp cannot be placed on a timeline and are dropped.
    """
    entries: list[CorrelatedHistoryEntry] = []
    for source, records in sources.items():
        for record in records:
            if not matches_vehicle(record, vehicle_number):
                continue
            ts = record.display_timestamp()
            if ts is None or not matches_window(ts, window_start, window_end):
                continue
            entries.append(CorrelatedHistoryEntry(record=record, source=source, display_timestamp=ts))

    return sorted(entries, key=lambda e: e.display_timestamp, reverse=newest_first)
