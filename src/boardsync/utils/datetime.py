"""Utilities for datetime handling."""

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def from_iso(value: str) -> datetime:
    """Parse ISO format string to datetime."""
    # Handle both 'Z' suffix and explicit timezone
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def parse_optional_datetime(value: str | datetime | None) -> datetime | None:
    """Parse datetime from string or pass through, tolerating garbage.

    Remote payloads occasionally carry empty strings or malformed dates;
    those degrade to None instead of failing the whole conversion.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return from_iso(value)
    except (TypeError, ValueError):
        return None
