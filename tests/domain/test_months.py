"""Tests for month arithmetic (club_kernel/domain/months.py)."""

from datetime import date, datetime, timezone

from club_kernel.domain.clock import DeterministicClock
from club_kernel.domain.months import (
    add_months,
    align_month,
    iter_months,
    last_month,
)


class TestAlignMonth:
    def test_first_day_unchanged(self):
        assert align_month(date(2022, 3, 1)) == date(2022, 3, 1)

    def test_end_of_month(self):
        assert align_month(date(2022, 2, 28)) == date(2022, 2, 1)


class TestAddMonths:
    def test_within_year(self):
        assert add_months(date(2022, 1, 1), 2) == date(2022, 3, 1)

    def test_across_year_boundary(self):
        assert add_months(date(2022, 11, 1), 3) == date(2023, 2, 1)

    def test_negative(self):
        assert add_months(date(2023, 1, 1), -1) == date(2022, 12, 1)

    def test_from_epoch(self):
        assert add_months(date(1900, 1, 1), 1) == date(1900, 2, 1)


class TestIterMonths:
    def test_inclusive_range(self):
        months = list(iter_months(date(2021, 11, 20), date(2022, 2, 3)))
        assert months == [
            date(2021, 11, 1),
            date(2021, 12, 1),
            date(2022, 1, 1),
            date(2022, 2, 1),
        ]

    def test_same_month(self):
        assert list(iter_months(date(2022, 5, 9), date(2022, 5, 30))) == [
            date(2022, 5, 1)
        ]

    def test_empty_when_start_after_end(self):
        assert list(iter_months(date(2022, 6, 1), date(2022, 5, 1))) == []


class TestLastMonth:
    def test_previous_month(self):
        clock = DeterministicClock(datetime(2024, 3, 15, tzinfo=timezone.utc))
        assert last_month(clock) == date(2024, 2, 1)

    def test_january_wraps(self):
        clock = DeterministicClock(datetime(2024, 1, 2, tzinfo=timezone.utc))
        assert last_month(clock) == date(2023, 12, 1)
