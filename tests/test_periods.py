"""Tests for period, money and description helpers."""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.exceptions import InvalidPeriodError, MissingPeriodError
from finance_tracker.schemas.common import BudgetCycle, BudgetStatus, PeriodType
from finance_tracker.services import periods
from finance_tracker.services.money import to_money, whole_percent
from finance_tracker.services.savings import default_description


class TestResolvePeriod:
    def test_date_pair_wins_over_month_year(self):
        period = periods.resolve_period(
            date(2024, 3, 1), date(2024, 3, 10), month=1, year=2024, period_type="weekly"
        )
        assert period.start_date == date(2024, 3, 1)
        assert period.end_date == date(2024, 3, 10)
        assert period.period_type is PeriodType.WEEKLY

    def test_date_pair_defaults_to_custom(self):
        period = periods.resolve_period(date(2024, 3, 1), date(2024, 3, 10))
        assert period.period_type is PeriodType.CUSTOM
        assert period.total_days == 10

    def test_month_year_covers_leap_february(self):
        period = periods.resolve_period(month=2, year=2024)
        assert period.start_date == date(2024, 2, 1)
        assert period.end_date == date(2024, 2, 29)
        assert period.period_type is PeriodType.MONTHLY

    @pytest.mark.parametrize("end", [date(2024, 3, 1), date(2024, 2, 28)])
    def test_end_not_after_start_is_rejected(self, end):
        with pytest.raises(InvalidPeriodError):
            periods.resolve_period(date(2024, 3, 1), end)

    def test_nothing_supplied(self):
        with pytest.raises(MissingPeriodError):
            periods.resolve_period()
        with pytest.raises(MissingPeriodError):
            periods.resolve_period(month=3)

    @pytest.mark.parametrize(
        "start,end", [(date(2024, 3, 1), None), (None, date(2024, 3, 31))]
    )
    def test_lone_date_is_not_dropped_for_month_year(self, start, end):
        with pytest.raises(MissingPeriodError):
            periods.resolve_period(start, end, month=3, year=2024)


class TestStatus:
    start, end = date(2024, 1, 1), date(2024, 1, 31)

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2023, 12, 31), BudgetStatus.UPCOMING),
            (date(2024, 1, 1), BudgetStatus.ACTIVE),
            (date(2024, 1, 31), BudgetStatus.ACTIVE),
            (date(2024, 2, 1), BudgetStatus.COMPLETED),
        ],
    )
    def test_status_for(self, today, expected):
        assert periods.status_for(self.start, self.end, today) is expected

    def test_days_remaining(self):
        assert periods.days_remaining(self.start, self.end, "upcoming", date(2023, 12, 1)) == 31
        assert periods.days_remaining(self.start, self.end, "active", date(2024, 1, 31)) == 1
        assert periods.days_remaining(self.start, self.end, "completed", date(2024, 1, 15)) == 0

    def test_period_progress(self):
        assert periods.period_progress(self.start, self.end, "upcoming", date(2023, 12, 1)) == 0
        assert periods.period_progress(self.start, self.end, "active", date(2024, 1, 16)) == 48
        assert periods.period_progress(self.start, self.end, "completed", date(2024, 2, 1)) == 100


def test_format_period():
    assert periods.format_period(date(2024, 1, 1), date(2024, 1, 31)) == "Jan 1 - Jan 31, 2024"
    assert (
        periods.format_period(date(2023, 12, 25), date(2024, 1, 7))
        == "Dec 25, 2023 - Jan 7, 2024"
    )


def test_preset_periods():
    presets = {p["key"]: p for p in periods.preset_periods(date(2024, 2, 15))}

    assert (presets["this_week"]["start_date"], presets["this_week"]["end_date"]) == (
        date(2024, 2, 12),
        date(2024, 2, 18),
    )
    assert presets["next_week"]["start_date"] == date(2024, 2, 19)
    assert presets["this_month"]["end_date"] == date(2024, 2, 29)
    assert presets["this_month"]["label"] == "February 2024"
    assert presets["next_month"]["start_date"] == date(2024, 3, 1)


def test_preset_next_month_rolls_over_year():
    presets = {p["key"]: p for p in periods.preset_periods(date(2024, 12, 10))}
    assert presets["next_month"]["start_date"] == date(2025, 1, 1)
    assert presets["next_month"]["label"] == "January 2025"


def test_money_helpers():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(3) == Decimal("3.00")
    assert whole_percent(Decimal("250"), Decimal("300")) == 83
    assert whole_percent(Decimal("1"), Decimal("8")) == 13
    assert whole_percent(Decimal("100.00"), Decimal("100.00")) == 100


def test_default_description():
    cycle = BudgetCycle(month=3, year=2024)
    assert default_description("budget_surplus", "credit", cycle) == "Budget surplus transfer for 3/2024"
    assert default_description("manual", "credit") == "Manual deposit"
    assert default_description("manual", "debit") == "Manual withdrawal"
    assert default_description("interest", "credit") == "Interest earned"
