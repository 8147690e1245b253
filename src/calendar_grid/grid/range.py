"""Week-aligned month grid range calculation."""

import calendar
from datetime import date, datetime, timedelta

from ..models.grid import GridLayout, GridRange, WeekStart


def month_start(day: date) -> date:
    """First day of the month containing ``day``."""
    if isinstance(day, datetime):
        day = day.date()
    return day.replace(day=1)


def shift_month(month: date, delta: int) -> date:
    """First day of the month ``delta`` months away from ``month``."""
    index = month.year * 12 + (month.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def compute_grid_layout(
    reference_month: date,
    week_starts_on_monday: bool = True,
) -> GridLayout:
    """
    Compute the visible grid for a month.

    The grid starts on the configured first weekday on or before the 1st and
    ends (exclusive) the day after the last weekday on or after the month's
    last day, so it always holds 4 to 6 full weeks.

    Args:
        reference_month: Any day of the month to display
        week_starts_on_monday: Monday-first rows when True, Sunday-first otherwise

    Returns:
        GridLayout with the range and the month bounds
    """
    first_of_month = month_start(reference_month)
    days_in_month = calendar.monthrange(first_of_month.year, first_of_month.month)[1]
    last_of_month = first_of_month.replace(day=days_in_month)

    week_start = WeekStart.MONDAY if week_starts_on_monday else WeekStart.SUNDAY
    week_end = (week_start.weekday + 6) % 7

    leading_offset = (first_of_month.weekday() - week_start.weekday) % 7
    trailing_offset = (week_end - last_of_month.weekday()) % 7

    grid_start = first_of_month - timedelta(days=leading_offset)
    grid_end = last_of_month + timedelta(days=trailing_offset + 1)

    return GridLayout(
        grid_range=GridRange(
            start=grid_start,
            end=grid_end,
            cell_count=(grid_end - grid_start).days,
        ),
        first_of_month=first_of_month,
        last_of_month=last_of_month,
    )
