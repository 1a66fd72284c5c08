"""Timestamp parsing utilities for backup manifests."""

from datetime import datetime, timedelta, timezone
from typing import Union

from dateutil import parser as date_parser

# Numeric timestamps written by the iOS app count seconds from
# this reference date rather than from the Unix epoch.
REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """Parse a manifest timestamp into a timezone-aware datetime.

    Supports:
    - ISO-8601 strings: "2025-10-18T14:30:00Z", "2025-10-18 14:30:00+02:00"
    - Any other string python-dateutil understands
    - Numbers: seconds since 2001-01-01T00:00:00Z
    - datetime objects (returned as-is, made UTC if naive)

    Naive values are interpreted as UTC.

    Args:
        value: Timestamp value from a manifest

    Returns:
        Timezone-aware datetime

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Could not parse timestamp {value!r}")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)):
        try:
            dt = REFERENCE_DATE + timedelta(seconds=value)
        except OverflowError as e:
            raise ValueError(f"Could not parse timestamp {value!r}: {e}")
    elif isinstance(value, str):
        if not value.strip():
            raise ValueError("Empty timestamp string")
        try:
            dt = date_parser.isoparse(value.strip())
        except ValueError:
            try:
                dt = date_parser.parse(value.strip())
            except (ValueError, OverflowError) as e:
                raise ValueError(f"Could not parse timestamp '{value}': {e}")
    else:
        raise ValueError(f"Could not parse timestamp {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an ISO-8601 UTC string with a trailing 'Z'."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc_value = value.astimezone(timezone.utc)
    return utc_value.isoformat(timespec="microseconds").replace("+00:00", "Z")


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
