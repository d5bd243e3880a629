"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import datetime
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to a naive datetime.

    Some backends (SQLite) hand back naive datetimes even for
    timezone-aware columns; those values are stored in UTC.
    """
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value


def to_iso(value: Optional[Union[datetime, str]]) -> Optional[str]:
    """
    Serialize a datetime as an ISO-8601 string.

    Strings pass through unchanged; None stays None.
    """
    if value is None or isinstance(value, str):
        return value
    return ensure_aware(value).isoformat()
