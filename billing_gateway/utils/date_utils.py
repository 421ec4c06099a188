"""Date manipulation utilities"""

from datetime import date, datetime
from typing import Union

from dateutil.relativedelta import relativedelta

from billing_gateway.domain.exceptions import InvalidDateError


class SystemClock:
    """Clock backed by the host calendar"""

    def today(self) -> date:
        return date.today()


def parse_date(value: Union[date, str]) -> date:
    """Accept a date or an ISO calendar string (YYYY-MM-DD)"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {value!r}") from e


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to month end (31 Jan + 1 = 28/29 Feb)"""
    return from_date + relativedelta(months=months)


def add_years(from_date: date, years: int) -> date:
    """Add calendar years keeping month/day (29 Feb clamps to 28 Feb)"""
    return from_date + relativedelta(years=years)
