"""
Activation Evaluator

Decides whether a single offer is currently valid: the owner's active flag
plus an optional [start_date, end_date] window, both ends inclusive.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional

from dateutil import parser as dtparser


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Read naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an offer date field into an aware UTC datetime.

    Accepts datetimes, dates (midnight UTC) and strings in any format
    dateutil understands. Returns None for empty or unparsable input
    instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str):
        if not value.strip():
            return None
        value = value.strip()
    elif not isinstance(value, datetime):
        return None

    try:
        parsed = value if isinstance(value, datetime) else dtparser.parse(value)
        return as_utc(parsed)
    except (ValueError, OverflowError):
        # Out-of-range after the UTC shift, e.g. "9999-12-31T23:59:59-05:00"
        return None


def is_valid_now(offer, now: Optional[datetime] = None) -> bool:
    """
    Check whether an offer is valid at `now` (defaults to the current time).

    The inactive flag always wins. Missing or unparsable bounds are treated
    as open. The two bounds are compared independently, so an offer whose
    end precedes its start is never valid.
    """
    if not offer.is_active:
        return False

    current = as_utc(now) if now is not None else utc_now()

    start = parse_timestamp(offer.start_date)
    if start is not None and current < start:
        return False

    end = parse_timestamp(offer.end_date)
    if end is not None and current > end:
        return False

    return True
