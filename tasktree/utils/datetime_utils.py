"""DateTime utility functions for TaskTree."""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


def utcnow() -> datetime:
    """
    Current UTC time as a naive datetime.

    SQLite DateTime columns drop tzinfo on the way back, so timestamps are
    kept naive-UTC everywhere to stay comparable after a round trip.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_task_date(dt: Optional[datetime], timezone_name: str = "UTC") -> str:
    """
    Format a task timestamp for compact display.

    Args:
        dt: UTC datetime to format (naive values are treated as UTC)
        timezone_name: IANA timezone name (e.g., 'America/Denver')

    Returns:
        Formatted string like "Nov 22, 2025", or "" for None

    Examples:
        >>> format_task_date(datetime(2025, 11, 22, 14, 13))
        'Nov 22, 2025'
        >>> format_task_date(None)
        ''
    """
    if dt is None:
        return ""

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    try:
        local_dt = dt.astimezone(ZoneInfo(timezone_name))
    except ZoneInfoNotFoundError:
        local_dt = dt.astimezone(timezone.utc)

    return f"{local_dt.strftime('%b')} {local_dt.day}, {local_dt.year}"


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert a datetime to naive UTC.

    Aware values are shifted to UTC before tzinfo is dropped; naive values
    are assumed to be UTC already and returned unchanged.

    Examples:
        >>> to_naive_utc(datetime(2025, 1, 14, 12, 0, tzinfo=ZoneInfo("Europe/Berlin")))
        datetime.datetime(2025, 1, 14, 11, 0)
    """
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_task_date(text: str) -> Optional[datetime]:
    """
    Parse a date typed into the task dialog.

    Args:
        text: ``YYYY-MM-DD`` or an ISO 8601 datetime; blank means no date

    Returns:
        Naive UTC datetime, or None for blank input

    Raises:
        ValueError: If the text is not a valid date
    """
    text = text.strip()
    if not text:
        return None
    return to_naive_utc(datetime.fromisoformat(text))
