import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Optional

from taskstats.config import (
    PERIOD_LABELS,
    PERIOD_MONTHS,
    WEEK_PERIOD_DAYS,
    StatsPeriod,
)
from taskstats.models.entities import DateRange

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59)


def _add_months(base: date, months: int) -> date:
    """Add (or subtract) months to a date, clamping to the month's last day.
    """
    total_months = base.year * 12 + base.month - 1 + months
    new_year = total_months // 12
    new_month = total_months % 12 + 1
    last_day_of_month = calendar.monthrange(new_year, new_month)[1]
    clamped_day = min(base.day, last_day_of_month)
    return date(new_year, new_month, clamped_day)


def end_of_day(day: date) -> datetime:
    return datetime.combine(day, END_OF_DAY)


def period_label(period: StatsPeriod) -> str:
    return PERIOD_LABELS[period]


def custom_range(start_day: date, end_day: date) -> DateRange:
    """Range from midnight of start_day through 23:59:59 of end_day.

    An inverted pair is swapped rather than rejected.
    """
    if start_day > end_day:
        logger.warning(
            f"Custom range start {start_day.isoformat()} is after end "
            f"{end_day.isoformat()}; swapping"
        )
        start_day, end_day = end_day, start_day
    return DateRange(
        start=datetime.combine(start_day, time.min),
        end=end_of_day(end_day),
    )


def range_for_period(
    period: StatsPeriod,
    now: Optional[datetime] = None,
    custom_start: Optional[date] = None,
    custom_end: Optional[date] = None,
) -> DateRange:
    """Resolve a selectable period to a concrete DateRange.

    Presets end at 23:59:59 today. The week preset starts exactly seven days
    before that; the month and year presets start at midnight of the same
    day N months back.

    Args:
        period: The selected period
        now: Clock override (default: datetime.now())
        custom_start: First day for StatsPeriod.CUSTOM
        custom_end: Last day for StatsPeriod.CUSTOM

    Raises:
        ValueError: If CUSTOM is requested without both days
    """
    if now is None:
        now = datetime.now()
    today_end = end_of_day(now.date())

    if period == StatsPeriod.WEEK:
        return DateRange(start=today_end - timedelta(days=WEEK_PERIOD_DAYS), end=today_end)

    if period in PERIOD_MONTHS:
        start_day = _add_months(now.date(), -PERIOD_MONTHS[period])
        return DateRange(start=datetime.combine(start_day, time.min), end=today_end)

    if period == StatsPeriod.CUSTOM:
        if custom_start is None or custom_end is None:
            raise ValueError("Custom period requires both a start and an end day")
        return custom_range(custom_start, custom_end)

    raise ValueError(f"Unsupported period: {period}")
