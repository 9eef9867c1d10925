"""Date and time utilities."""

from datetime import date, datetime, timedelta
from typing import List, Optional, Sequence, Union

DEFAULT_WORKING_DAYS = (0, 1, 2, 3, 4)  # Monday to Friday

DateLike = Union[date, datetime, str]


def is_working_day(day: date, working_days: Sequence[int] = DEFAULT_WORKING_DAYS) -> bool:
    """Check if a date is a working day."""
    return day.weekday() in working_days


def next_working_day(day: date, working_days: Sequence[int] = DEFAULT_WORKING_DAYS) -> date:
    """Roll a date forward until it lands on a working day (no-op if it already does)."""
    if not working_days:
        raise ValueError("At least one working day is required")

    current = day
    while not is_working_day(current, working_days):
        current += timedelta(days=1)
    return current


def add_working_days(
    start: date,
    working_days_count: int,
    working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
) -> date:
    """Advance `start` by a number of working days.

    Non-working days are spanned but not counted, so adding 1 to a Friday
    lands on the following Monday. Adding 0 returns `start` unchanged.
    """
    current = start
    remaining = working_days_count

    while remaining > 0:
        current += timedelta(days=1)
        if is_working_day(current, working_days):
            remaining -= 1

    return current


def get_working_days(
    start_date: date,
    end_date: date,
    working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
) -> List[date]:
    """Get list of working days between start and end dates (inclusive)."""
    days = []
    current = start_date

    while current <= end_date:
        if is_working_day(current, working_days):
            days.append(current)
        current += timedelta(days=1)

    return days


def count_working_days(
    start_date: date,
    end_date: date,
    working_days: Sequence[int] = DEFAULT_WORKING_DAYS,
) -> int:
    """Number of working days in the inclusive range."""
    return len(get_working_days(start_date, end_date, working_days))


def to_date(value: Optional[DateLike]) -> Optional[date]:
    """Coerce an ISO string, datetime or date into a date. Empty values map to None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    # Accept full ISO timestamps as well as plain dates
    return date.fromisoformat(str(value).strip()[:10])


def format_date(value: Optional[date]) -> Optional[str]:
    """Format a date as YYYY-MM-DD."""
    if value is None:
        return None
    return value.isoformat()
