"""Read-time display helpers for feedback timestamps.

These values are derived from ``created_at`` whenever a record is served and
are never written to the table.
"""

from datetime import UTC, datetime


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def formatted_date(dt: datetime) -> str:
    """Long-form date, e.g. ``October 17, 2026 at 03:04 PM``."""
    dt = dt.astimezone(UTC)
    return f"{dt:%B} {dt.day}, {dt.year} at {dt:%I:%M %p}"


def calendar_date(dt: datetime) -> str:
    """Plain calendar date, e.g. ``10/17/2026``."""
    dt = dt.astimezone(UTC)
    return f"{dt.month}/{dt.day}/{dt.year}"


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'' if count == 1 else 's'} ago"


def time_ago(dt: datetime, now: datetime | None = None) -> str:
    """Relative age of a timestamp.

    Buckets: under a minute is "Just now", then minutes, hours and days up to
    a week; anything older falls back to the calendar date.
    """
    now = now or datetime.now(UTC)
    diff_minutes = int((now - dt).total_seconds() // 60)
    diff_hours = diff_minutes // 60
    diff_days = diff_hours // 24

    if diff_minutes < 1:
        return "Just now"
    if diff_minutes < 60:
        return _plural(diff_minutes, "minute")
    if diff_hours < 24:
        return _plural(diff_hours, "hour")
    if diff_days < 7:
        return _plural(diff_days, "day")
    return calendar_date(dt)
