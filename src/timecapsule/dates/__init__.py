"""Calendar helpers: pure date-to-timestamp conversion."""

from timecapsule.dates.converter import date_to_timestamp, days_in_month, is_leap_year

__all__ = ["date_to_timestamp", "days_in_month", "is_leap_year"]
