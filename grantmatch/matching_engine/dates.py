"""Date arithmetic shared by the scorers and the explanation layer."""

import math
from datetime import date, datetime, timezone
from typing import Optional, Union

import pandas as pd

DateLike = Union[date, datetime]


def to_datetime(value: Optional[DateLike]) -> Optional[datetime]:
    """Promote a date to midnight datetime; datetimes pass through. NaT counts as absent."""
    if value is None or pd.isna(value):
        return None
    if isinstance(value, datetime):
        return value
    return datetime(value.year, value.month, value.day)


def resolve_now(now: Optional[datetime], reference: Optional[datetime] = None) -> datetime:
    """Current time, matching the tz-awareness of the reference value."""
    if now is None:
        now = datetime.now(timezone.utc) if reference is not None and reference.tzinfo else datetime.now()
    if reference is not None:
        if reference.tzinfo and now.tzinfo is None:
            now = now.replace(tzinfo=reference.tzinfo)
        elif reference.tzinfo is None and now.tzinfo is not None:
            now = now.replace(tzinfo=None)
    return now


def days_until(deadline: Optional[DateLike], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days remaining until the deadline, rounded up; negative once past."""
    deadline_dt = to_datetime(deadline)
    if deadline_dt is None:
        return None
    current = resolve_now(now, deadline_dt)
    return math.ceil((deadline_dt - current).total_seconds() / 86400)


def is_past(deadline: Optional[DateLike], now: Optional[datetime] = None) -> bool:
    deadline_dt = to_datetime(deadline)
    if deadline_dt is None:
        return False
    return deadline_dt < resolve_now(now, deadline_dt)


def years_since(start: Optional[DateLike], now: Optional[datetime] = None) -> Optional[int]:
    """Completed years (365.25-day years) between start and now."""
    start_dt = to_datetime(start)
    if start_dt is None:
        return None
    current = resolve_now(now, start_dt)
    return math.floor((current - start_dt).total_seconds() / (86400 * 365.25))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive scores."""
    return int(math.floor(value + 0.5))
