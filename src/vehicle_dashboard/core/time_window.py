"""Timestamp and time-window helpers.

Converts request parameters and loosely formatted CSV timestamps into
timezone-aware UTC datetimes. Windows are inclusive on both ends.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta, tzinfo

_TICK = timedelta(microseconds=1)
_WEEK_RE = re.compile(r"^(?P<y>\d{4})-W(?P<w>\d{2})$")
_GMT_OFFSET_RE = re.compile(r"\bGMT(?=[+-]\d)")
_TZ_NAME_SUFFIX_RE = re.compile(r"\s*\([^)]*\)\s*$")

INCIDENT_MARGIN = timedelta(minutes=30)

# Tried in order after ISO-8601. Month-first slashed dates follow browser Date parsing.
FALLBACK_FORMATS: tuple[str, ...] = (
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d-%m-%Y %H:%M:%S",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y",
    "%d-%b-%Y %H:%M:%S.%f",
    "%d-%b-%Y %H:%M:%S",
    "%a %b %d %H:%M:%S %z %Y",
    "%a %b %d %Y %H:%M:%S %z",
)


def to_utc(ts: datetime, *, default_tz: tzinfo = UTC) -> datetime:
    """Normalize a timestamp to timezone-aware UTC."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=default_tz)
    return ts.astimezone(UTC)


def parse_timestamp(value: str, *, default_tz: tzinfo = UTC) -> datetime | None:
    """Best-effort timestamp parse: ISO-8601 first, then known log formats."""
    s = value.strip()
    if not s:
        return None

    try:
        return to_utc(datetime.fromisoformat(s.replace("Z", "+00:00")), default_tz=default_tz)
    except ValueError:
        pass

    s = _TZ_NAME_SUFFIX_RE.sub("", s)
    s = _GMT_OFFSET_RE.sub("", s).replace("GMT", "+0000")
    for fmt in FALLBACK_FORMATS:
        try:
            return to_utc(datetime.strptime(s, fmt), default_tz=default_tz)
        except ValueError:
            continue
    return None


def parse_iso_dt(s: str) -> datetime:
    """Parse an ISO-8601 request parameter. If tz is missing, assume UTC."""
    dt = datetime.fromisoformat(s.strip().replace("Z", "+00:00"))
    return to_utc(dt)


def range_for_date(s: str) -> tuple[datetime, datetime]:
    """Return the UTC day window for an ISO date string."""
    d = date.fromisoformat(s)
    start = datetime(d.year, d.month, d.day, tzinfo=UTC)
    return start, start + timedelta(days=1) - _TICK


def range_for_hour(s: str) -> tuple[datetime, datetime]:
    """Return the UTC hour window for a YYYY-MM-DDTHH selector."""
    base = datetime.fromisoformat(s)
    start = to_utc(base).replace(minute=0, second=0, microsecond=0)
    return start, start + timedelta(hours=1) - _TICK


def range_for_week(s: str) -> tuple[datetime, datetime]:
    """Return the UTC week window for a YYYY-Www selector."""
    m = _WEEK_RE.match(s)
    if not m:
        raise ValueError("week must look like YYYY-Www (e.g., 2025-W27)")
    start_date = date.fromisocalendar(int(m.group("y")), int(m.group("w")), 1)  # Monday
    start = datetime(start_date.year, start_date.month, start_date.day, tzinfo=UTC)
    return start, start + timedelta(days=7) - _TICK


def resolve_time_window(
    *,
    since: str | None = None,
    until: str | None = None,
    date_: str | None = None,
    hour: str | None = None,
    week: str | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve an inclusive UTC window; selectors win over explicit bounds."""
    if date_:
        return range_for_date(date_)
    if hour:
        return range_for_hour(hour)
    if week:
        return range_for_week(week)

    s = parse_iso_dt(since) if since else None
    u = parse_iso_dt(until) if until else None
    if s is not None and u is not None and s > u:
        raise ValueError("startTime must not be after endTime")
    return s, u


def incident_window(
    incident_date: datetime | str,
    incident_time: str,
    *,
    margin: timedelta = INCIDENT_MARGIN,
    default_tz: tzinfo = UTC,
) -> tuple[datetime, datetime]:
    """Return the window of +/- margin around a ticket's incident date and time."""
    if isinstance(incident_date, datetime):
        day = incident_date.astimezone(default_tz).date().isoformat()
    else:
        day = incident_date.strip()[:10]
    try:
        at = datetime.fromisoformat(f"{day}T{incident_time.strip()}")
    except ValueError as exc:
        raise ValueError(f"Invalid incident date/time: {incident_date!r} {incident_time!r}") from exc
    at = to_utc(at, default_tz=default_tz)
    return at - margin, at + margin
