"""Date manipulation utilities"""

import calendar
from datetime import date, timedelta


def add_months(from_date: date, months: int) -> date:
    """Add calendar months, clamping to the last day of the target month (Jan 31 + 1 -> Feb 28/29)"""
    month_index = from_date.month - 1 + months
    year = from_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(from_date.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def window_start(today: date, days: int) -> date:
    """First day of a trailing window of `days` days ending today"""
    return today - timedelta(days=days)
