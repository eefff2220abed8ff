"""Tests for period construction."""
from datetime import date, datetime

import pytest

from taskstats.config import StatsPeriod
from taskstats.models.entities import DateRange, InvalidDateRangeError
from taskstats.services.periods import _add_months, custom_range, period_label, range_for_period

from conftest import NOW


class TestPresets:
    def test_week_is_seven_days_before_end_of_today(self):
        r = range_for_period(StatsPeriod.WEEK, now=NOW)
        assert r.end == datetime(2026, 3, 15, 23, 59, 59)
        assert r.start == datetime(2026, 3, 8, 23, 59, 59)

    @pytest.mark.parametrize("period, expected_start", [
        (StatsPeriod.MONTH, datetime(2026, 2, 15)),
        (StatsPeriod.THREE_MONTHS, datetime(2025, 12, 15)),
        (StatsPeriod.SIX_MONTHS, datetime(2025, 9, 15)),
        (StatsPeriod.YEAR, datetime(2025, 3, 15)),
    ])
    def test_calendar_presets(self, period, expected_start):
        r = range_for_period(period, now=NOW)
        assert r.start == expected_start
        assert r.end == datetime(2026, 3, 15, 23, 59, 59)

    def test_month_from_may_31_clamps_to_april_30(self):
        r = range_for_period(StatsPeriod.MONTH, now=datetime(2026, 5, 31, 8, 0))
        assert r.start == datetime(2026, 4, 30)

    def test_three_months_from_may_31_clamps_to_february(self):
        r = range_for_period(StatsPeriod.THREE_MONTHS, now=datetime(2026, 5, 31, 8, 0))
        assert r.start == datetime(2026, 2, 28)

    def test_year_from_leap_day(self):
        r = range_for_period(StatsPeriod.YEAR, now=datetime(2028, 2, 29, 8, 0))
        assert r.start == datetime(2027, 2, 28)

    def test_month_across_year_boundary(self):
        assert _add_months(date(2026, 1, 10), -1) == date(2025, 12, 10)

    def test_label(self):
        assert period_label(StatsPeriod.WEEK) == "7D"
        assert period_label(StatsPeriod.YEAR) == "1Y"


class TestCustom:
    def test_normalizes_both_ends(self):
        r = range_for_period(
            StatsPeriod.CUSTOM,
            now=NOW,
            custom_start=date(2026, 1, 10),
            custom_end=date(2026, 1, 20),
        )
        assert r.start == datetime(2026, 1, 10, 0, 0, 0)
        assert r.end == datetime(2026, 1, 20, 23, 59, 59)

    def test_inverted_days_are_swapped(self):
        r = custom_range(date(2026, 2, 1), date(2026, 1, 1))
        assert r.start == datetime(2026, 1, 1)
        assert r.end == datetime(2026, 2, 1, 23, 59, 59)

    def test_single_day(self):
        r = custom_range(date(2026, 1, 1), date(2026, 1, 1))
        assert r.start < r.end

    def test_requires_both_days(self):
        with pytest.raises(ValueError):
            range_for_period(StatsPeriod.CUSTOM, now=NOW, custom_start=date(2026, 1, 1))


class TestDateRange:
    def test_rejects_inverted_bounds(self):
        with pytest.raises(InvalidDateRangeError):
            DateRange(start=datetime(2026, 3, 2), end=datetime(2026, 3, 1))

    def test_padded_bounds(self):
        r = DateRange(start=datetime(2026, 3, 1), end=datetime(2026, 3, 2))
        assert r.padded() == (datetime(2026, 2, 28), datetime(2026, 3, 3))

    def test_padded_test_is_strict(self):
        r = DateRange(start=datetime(2026, 3, 1), end=datetime(2026, 3, 2))
        assert not r.contains_padded(datetime(2026, 2, 28))
        assert r.contains_padded(datetime(2026, 2, 28, 0, 0, 1))
        assert not r.contains_padded(datetime(2026, 3, 3))
        assert not r.contains_padded(None)
