"""Calendar-to-timestamp conversion.

Pure and stateless: no clock, no side effects.

Validation is deliberately permissive about day-of-month: any day in
1..31 is accepted for every month, and overflow rolls into the next
month (2025-02-30 is 2025-03-02). Existing callers rely on this, so it
is kept as-is.
"""

from __future__ import annotations

from timecapsule.errors import InvalidArgument
from timecapsule.policy.resolver import DEFAULT_MAX_YEAR, DEFAULT_MIN_YEAR

EPOCH_YEAR = 1970
SECONDS_PER_MINUTE = 60
SECONDS_PER_HOUR = 60 * SECONDS_PER_MINUTE
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR

_MONTH_DAYS = (31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31)


def is_leap_year(year: int) -> bool:
    """Proleptic Gregorian leap-year rule."""
    return year % 4 == 0 and (year % 100 != 0 or year % 400 == 0)


def days_in_month(year: int, month: int) -> int:
    if not 1 <= month <= 12:
        raise InvalidArgument(f"Invalid month: {month}")
    if month == 2 and is_leap_year(year):
        return 29
    return _MONTH_DAYS[month - 1]


def date_to_timestamp(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    min_year: int = DEFAULT_MIN_YEAR,
    max_year: int = DEFAULT_MAX_YEAR,
) -> int:
    """Convert a UTC calendar date and time to Unix seconds.

    Raises InvalidArgument for out-of-range components.
    """
    if not min_year <= year <= max_year:
        raise InvalidArgument(
            f"Invalid year: {year} (must be {min_year}..{max_year})"
        )
    if not 1 <= month <= 12:
        raise InvalidArgument(f"Invalid month: {month}")
    if not 1 <= day <= 31:
        raise InvalidArgument(f"Invalid day: {day}")
    if not 0 <= hour <= 23:
        raise InvalidArgument(f"Invalid hour: {hour}")
    if not 0 <= minute <= 59:
        raise InvalidArgument(f"Invalid minute: {minute}")

    timestamp = 0
    for y in range(EPOCH_YEAR, year):
        timestamp += (366 if is_leap_year(y) else 365) * SECONDS_PER_DAY

    for m in range(1, month):
        timestamp += days_in_month(year, m) * SECONDS_PER_DAY

    timestamp += (day - 1) * SECONDS_PER_DAY
    timestamp += hour * SECONDS_PER_HOUR
    timestamp += minute * SECONDS_PER_MINUTE
    return timestamp
