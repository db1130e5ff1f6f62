"""Time utility helpers."""

from __future__ import annotations

from datetime import UTC, date, datetime


def now_utc() -> datetime:
    """Return current timezone-aware UTC datetime."""
    return datetime.now(tz=UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse a PostgREST timestamp into an aware UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def epoch_millis(moment: datetime) -> int:
    """Return milliseconds since the Unix epoch."""
    return int(moment.timestamp() * 1000)


def format_cs_date(value: str | datetime | date | None) -> str:
    """Format a date the way Czech locales print it (``d. m. yyyy``)."""
    if not value:
        return ""
    if isinstance(value, (str, datetime)):
        value = parse_timestamp(value).date()
    return f"{value.day}. {value.month}. {value.year}"
