"""
Month arithmetic on month-aligned dates.

All fee-window calculations work on dates normalized to the first day of
their month.  Adding months to such a date never overflows a day-of-month.
"""

from datetime import date
from typing import Iterator

from club_kernel.domain.clock import Clock


def align_month(value: date) -> date:
    """Normalize a date to the first day of its month."""
    return value.replace(day=1)


def add_months(value: date, months: int) -> date:
    """Add (or subtract) whole months to a month-aligned date."""
    index = value.year * 12 + (value.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def iter_months(start: date, end: date) -> Iterator[date]:
    """Yield the first day of every month from start to end inclusive."""
    current = align_month(start)
    end = align_month(end)
    while current <= end:
        yield current
        current = add_months(current, 1)


def last_month(clock: Clock) -> date:
    """First day of the month before the clock's current date."""
    return add_months(align_month(clock.today()), -1)
