"""Calendar arithmetic for recency windows and monthly forecasts."""

import calendar
from datetime import datetime


def add_months(value: datetime, months: int) -> datetime:
    """
    Shift by whole calendar months.

    The day is clamped to the last day of the target month,
    so Jan 31 + 1 month is Feb 28 (or 29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def subtract_years(value: datetime, years: int) -> datetime:
    """Shift back by whole calendar years; Feb 29 maps to Feb 28."""
    return add_months(value, -12 * years)
