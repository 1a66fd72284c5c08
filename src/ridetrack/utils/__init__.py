"""Utility functions for ridetrack."""

from ridetrack.utils.date_parser import format_timestamp, parse_timestamp, utc_now

__all__ = ["parse_timestamp", "format_timestamp", "utc_now"]
