"""
Time math for the attention rules.

Every function takes "now" explicitly. Nothing here reads the wall clock,
so a snapshot evaluated twice at the same instant gives the same answer.
"""

import math
from datetime import datetime, timezone
from typing import Optional, Union

MS_PER_HOUR = 60 * 60 * 1000
MS_PER_DAY = 24 * MS_PER_HOUR

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; aware values pass through."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_timestamp(value: Union[datetime, str, None]) -> Optional[datetime]:
    """
    Parse a record timestamp into an aware datetime.

    Accepts datetimes, ISO-8601 strings (a trailing "Z" included) and
    date-only strings. Naive values are read as UTC. Falsy or unparseable
    input gives None.
    """
    if not value:
        return None
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text))
    except (ValueError, TypeError, OverflowError):
        return None


def timestamp_or_epoch(value: Union[datetime, str, None]) -> datetime:
    """Sort key for records whose timestamp may be missing."""
    return parse_timestamp(value) or EPOCH


def _elapsed_ms(then: datetime, now: datetime) -> float:
    return (as_utc(now) - then).total_seconds() * 1000


def days_since(value: Union[datetime, str, None], now: datetime) -> Optional[int]:
    """Whole days from value to now. Future dates give negative numbers."""
    then = parse_timestamp(value)
    if then is None:
        return None
    return math.floor(_elapsed_ms(then, now) / MS_PER_DAY)


def hours_since(value: Union[datetime, str, None], now: datetime) -> Optional[int]:
    """Whole hours from value to now. Future dates give negative numbers."""
    then = parse_timestamp(value)
    if then is None:
        return None
    return math.floor(_elapsed_ms(then, now) / MS_PER_HOUR)


def hours_until(value: Union[datetime, str, None], now: datetime) -> Optional[float]:
    """Fractional hours from now until value."""
    then = parse_timestamp(value)
    if then is None:
        return None
    return -_elapsed_ms(then, now) / MS_PER_HOUR


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)
