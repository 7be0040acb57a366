"""Date manipulation utilities"""

from datetime import date, timedelta
from typing import Tuple
from dateutil.relativedelta import relativedelta


def add_months(from_date: date, months: int) -> date:
    """Calendar-month offset, clamped to the end of shorter months (Jan 31 + 1 -> Feb 28/29)"""
    return from_date + relativedelta(months=months)


def add_days(from_date: date, days: int) -> date:
    return from_date + timedelta(days=days)


def quick_date_range(name: str, today: date | None = None) -> Tuple[date, date] | None:
    """
    Resolve a quick filter name to an inclusive (from, to) date range.

    Weeks start on Sunday. Returns None for "custom" or unknown names.
    """
    today = today or date.today()

    if name == "today":
        return today, today

    if name == "this_week":
        # date.weekday(): Monday=0 ... Sunday=6
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return start, start + timedelta(days=6)

    if name == "this_month":
        start = today.replace(day=1)
        return start, start + relativedelta(months=1, days=-1)

    if name == "this_quarter":
        start = date(today.year, 3 * ((today.month - 1) // 3) + 1, 1)
        return start, start + relativedelta(months=3, days=-1)

    return None
