"""Calendar helpers for budget periods."""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal

from ..exceptions import InvalidPeriodError, MissingPeriodError
from ..schemas.common import BudgetStatus, PeriodType
from .money import whole_percent

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass(frozen=True)
class Period:
    """Inclusive date window of a budget."""

    start_date: date
    end_date: date
    period_type: PeriodType

    @property
    def total_days(self) -> int:
        return (self.end_date - self.start_date).days + 1


def month_name(month: int) -> str:
    """Get month name from number."""
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return "Unknown"


def month_bounds(month: int, year: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    _, last_day = calendar.monthrange(year, month)
    return date(year, month, 1), date(year, month, last_day)


def week_bounds(day: date) -> tuple[date, date]:
    """Monday to Sunday of the week containing ``day``."""
    start = day - timedelta(days=day.weekday())
    return start, start + timedelta(days=6)


def resolve_period(
    start_date: date | None = None,
    end_date: date | None = None,
    month: int | None = None,
    year: int | None = None,
    period_type: PeriodType | str | None = None,
) -> Period:
    """Build a period from an explicit date pair or a legacy month/year pair.

    The date pair wins when both are supplied. A lone start or end date is
    rejected rather than ignored.
    """
    if (start_date is None) != (end_date is None):
        raise MissingPeriodError()

    if start_date is not None and end_date is not None:
        if end_date <= start_date:
            raise InvalidPeriodError(start_date, end_date)
        return Period(start_date, end_date, PeriodType(period_type or PeriodType.CUSTOM))

    if month is not None and year is not None:
        start, end = month_bounds(month, year)
        return Period(start, end, PeriodType.MONTHLY)

    raise MissingPeriodError()


def status_for(start_date: date, end_date: date, today: date) -> BudgetStatus:
    """Lifecycle status implied by the calendar."""
    if today < start_date:
        return BudgetStatus.UPCOMING
    if today > end_date:
        return BudgetStatus.COMPLETED
    return BudgetStatus.ACTIVE


def days_remaining(start_date: date, end_date: date, status: str, today: date) -> int:
    if status in (BudgetStatus.COMPLETED.value, BudgetStatus.CANCELLED.value) or today > end_date:
        return 0
    if today < start_date:
        return (end_date - start_date).days + 1
    return (end_date - today).days + 1


def period_progress(start_date: date, end_date: date, status: str, today: date) -> int:
    """Elapsed share of the period as a whole percentage."""
    if status in (BudgetStatus.COMPLETED.value, BudgetStatus.CANCELLED.value) or today > end_date:
        return 100
    if today < start_date:
        return 0
    elapsed = Decimal((today - start_date).days)
    return whole_percent(elapsed, Decimal((end_date - start_date).days + 1))


def format_period(start_date: date, end_date: date) -> str:
    """Human-readable period, e.g. ``Jan 1 - Jan 31, 2024``."""
    start = f"{start_date:%b} {start_date.day}"
    end = f"{end_date:%b} {end_date.day}, {end_date.year}"
    if start_date.year != end_date.year:
        start = f"{start}, {start_date.year}"
    return f"{start} - {end}"


def preset_periods(today: date) -> list[dict]:
    """Common periods offered when creating a budget."""
    this_week = week_bounds(today)
    next_week = week_bounds(this_week[1] + timedelta(days=1))
    this_month = month_bounds(today.month, today.year)
    next_month_day = this_month[1] + timedelta(days=1)
    next_month = month_bounds(next_month_day.month, next_month_day.year)

    return [
        {
            "key": "this_week",
            "label": "This Week",
            "period_type": PeriodType.WEEKLY.value,
            "start_date": this_week[0],
            "end_date": this_week[1],
        },
        {
            "key": "next_week",
            "label": "Next Week",
            "period_type": PeriodType.WEEKLY.value,
            "start_date": next_week[0],
            "end_date": next_week[1],
        },
        {
            "key": "this_month",
            "label": f"{month_name(today.month)} {today.year}",
            "period_type": PeriodType.MONTHLY.value,
            "start_date": this_month[0],
            "end_date": this_month[1],
        },
        {
            "key": "next_month",
            "label": f"{month_name(next_month_day.month)} {next_month_day.year}",
            "period_type": PeriodType.MONTHLY.value,
            "start_date": next_month[0],
            "end_date": next_month[1],
        },
    ]
