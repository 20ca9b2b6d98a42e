"""Tests for calendar arithmetic: month clamping, leap years, next occurrence."""

from datetime import datetime

import pytest

from models.obligation import Frequency
from tests.conftest import make_obligation
from utils.calendar import add_days, add_months, add_years, default_due, next_occurrence


@pytest.mark.parametrize(
    "start, expected",
    [
        (datetime(2025, 1, 31, 9, 30), datetime(2025, 2, 28, 9, 30)),
        (datetime(2024, 1, 31, 9, 30), datetime(2024, 2, 29, 9, 30)),
        (datetime(2026, 3, 31, 18, 0), datetime(2026, 4, 30, 18, 0)),
        (datetime(2026, 12, 15, 8, 0), datetime(2027, 1, 15, 8, 0)),
        (datetime(2026, 4, 30, 8, 0), datetime(2026, 5, 30, 8, 0)),
    ],
)
def test_add_months_clamps_to_month_end(start, expected):
    assert add_months(start, 1) == expected


def test_add_months_never_overflows_into_next_month():
    result = add_months(datetime(2026, 1, 31), 1)
    assert result.month == 2


def test_add_months_multiple():
    assert add_months(datetime(2026, 1, 31), 3) == datetime(2026, 4, 30)
    assert add_months(datetime(2026, 1, 31), 12) == datetime(2027, 1, 31)


def test_add_years_leap_day():
    assert add_years(datetime(2024, 2, 29, 7, 0), 1) == datetime(2025, 2, 28, 7, 0)
    assert add_years(datetime(2024, 2, 29, 7, 0), 4) == datetime(2028, 2, 29, 7, 0)
    assert add_years(datetime(2025, 6, 1), 1) == datetime(2026, 6, 1)


def test_add_days_keeps_time_of_day():
    assert add_days(datetime(2026, 2, 28, 21, 45), 1) == datetime(2026, 3, 1, 21, 45)
    assert add_days(datetime(2026, 12, 31, 6, 5), 3) == datetime(2027, 1, 3, 6, 5)


def test_next_occurrence_by_frequency():
    due = datetime(2026, 1, 31, 9, 0)
    assert next_occurrence(make_obligation(due_at=due, frequency=Frequency.ONE_TIME)) == due
    assert next_occurrence(make_obligation(due_at=due, frequency=Frequency.MONTHLY)) == datetime(2026, 2, 28, 9, 0)
    assert next_occurrence(make_obligation(due_at=due, frequency=Frequency.YEARLY)) == datetime(2027, 1, 31, 9, 0)
    assert next_occurrence(make_obligation(due_at=due, frequency=Frequency.WEEKLY)) == datetime(2026, 2, 7, 9, 0)


def test_next_occurrence_is_pure():
    ob = make_obligation(due_at=datetime(2026, 1, 31, 9, 0), frequency=Frequency.MONTHLY)
    next_occurrence(ob)
    assert ob.due_at == datetime(2026, 1, 31, 9, 0)


def test_default_due_is_tomorrow_morning():
    assert default_due(datetime(2026, 3, 15, 22, 17, 5)) == datetime(2026, 3, 16, 9, 0)
