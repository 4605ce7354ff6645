"""Occurrence resolver - turns a day-of-month setting into a concrete date"""

from datetime import date, datetime

from cardwise.domain.exceptions import InvalidDayOfMonthError, InvalidMonthError
from cardwise.utils.date_utils import add_months, clamp_day, to_date


def validate_day_of_month(day: int) -> int:
    """Fail fast on day-of-month values outside 1-31"""
    if isinstance(day, bool) or not isinstance(day, int) or not 1 <= day <= 31:
        raise InvalidDayOfMonthError(day)
    return day


def validate_month(month: int) -> int:
    """Fail fast on month values outside 1-12"""
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidMonthError(month)
    return month


def next_occurrence(day: int, from_date: date | datetime, inclusive: bool) -> date:
    """
    Resolve the next calendar date falling on `day`, starting from from_date.

    The candidate is built in from_date's month and clamped to the month length
    (day 31 in a 30-day month resolves to the 30th). A candidate before
    from_date moves to the next month and is clamped again.

    Same-day policy is explicit:
    - inclusive=True: a candidate equal to from_date is kept (due today)
    - inclusive=False: a candidate equal to from_date counts as already
      occurred and moves to the next month

    Raises:
        InvalidDayOfMonthError: day is not an int in 1-31
    """
    validate_day_of_month(day)
    reference = to_date(from_date)

    candidate = clamp_day(reference.year, reference.month, day)
    if candidate < reference or (candidate == reference and not inclusive):
        candidate = add_months(candidate, 1, anchor_day=day)

    return candidate
