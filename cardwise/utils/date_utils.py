"""Calendar arithmetic helpers shared by the scheduling core"""

import calendar
from datetime import date, datetime


def to_date(value: date | datetime) -> date:
    """Normalize a date or datetime to its calendar day (start-of-day)"""
    if isinstance(value, datetime):
        return value.date()
    return value


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given month (month is 1-12)"""
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Build a date, clamping day to the last day of the month (31 in April -> 30)"""
    return date(year, month, min(day, days_in_month(year, month)))


def add_months(from_date: date, months: int, anchor_day: int | None = None) -> date:
    """
    Calendar month addition with month-end clamping.

    anchor_day keeps a recurring schedule on its configured day: a Jan 31 anchor
    yields Feb 28, then Mar 31 (not Mar 28) when stepping from the clamped date.
    """
    day = anchor_day if anchor_day is not None else from_date.day
    month_index = from_date.year * 12 + (from_date.month - 1) + months
    year, month = divmod(month_index, 12)
    return clamp_day(year, month + 1, day)


def add_years(from_date: date, years: int, anchor_day: int | None = None) -> date:
    """Calendar year addition (Feb 29 falls back to Feb 28)"""
    return add_months(from_date, years * 12, anchor_day)


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end, with time-of-day dropped on both sides"""
    return (to_date(end) - to_date(start)).days


def month_key(value: date) -> str:
    """YYYY-MM identifier for the month containing value"""
    return f"{value.year}-{value.month:02d}"
