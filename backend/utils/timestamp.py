"""
Utility functions for timestamps.
Stored timestamps are timezone-aware UTC datetimes, matching TIMESTAMPTZ columns.
"""
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Get the current UTC time as an aware datetime.

    Returns:
        datetime with tzinfo=timezone.utc
    """
    return datetime.now(timezone.utc)
