"""
Utility functions for row ids.
Postgres ids are UUIDs; a value that does not parse as one can never match a row.
"""
import uuid
from typing import Any


def is_uuid(*values: Any) -> bool:
    """
    Check that every value is a UUID string.

    Returns:
        False if any value is None or fails to parse.
    """
    for value in values:
        if value is None:
            return False
        try:
            uuid.UUID(str(value))
        except ValueError:
            return False
    return True
