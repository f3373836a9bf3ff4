"""Timestamp and display helpers.

Backend timestamps are UTC; naive values are assumed to be UTC as well.
"""

from datetime import datetime, timezone


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime is timezone-aware UTC.

    Args:
        dt: A datetime object (naive or timezone-aware)

    Returns:
        Timezone-aware datetime in UTC
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_duration(seconds: float) -> str:
    """Format a video offset as m:ss."""
    total = max(int(seconds), 0)
    mins, secs = divmod(total, 60)
    return f"{mins}:{secs:02d}"


def format_size(size_bytes: int) -> str:
    """Human-readable file size (binary units)."""
    size = float(size_bytes)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            break
        size /= 1024
    if unit == "B":
        return f"{int(size)} B"
    return f"{size:.1f} {unit}"
