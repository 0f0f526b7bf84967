"""
Time utilities for the chat stream client.
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Get current UTC time (timezone-aware, Python 3.12+ compatible)."""
    return datetime.now(timezone.utc)


def utc_timestamp() -> str:
    """Current UTC time as an ISO-8601 string, the format chunk records carry."""
    return utcnow().isoformat()
