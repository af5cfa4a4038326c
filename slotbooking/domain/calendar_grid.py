"""
Month grid helpers for rendering a booking calendar.
"""

from datetime import date as _date
from typing import List, Optional

import pendulum
from pendulum import DateTime

from .models import DEFAULT_TIMEZONE, weekday_index


def days_in_month(
    year: int,
    month: int,
    tz: str = DEFAULT_TIMEZONE,
) -> List[Optional[DateTime]]:
    """
    Build the cells of a month view whose weeks start on Sunday.

    Args:
        year: Calendar year
        month: Zero-based month (0=January .. 11=December)
        tz: Timezone the day cells are anchored to

    Returns:
        ``None`` placeholders for the leading blank cells, followed by one
        DateTime at local midnight for every day of the month
    """
    first_day = pendulum.datetime(year, month + 1, 1, tz=tz)

    cells: List[Optional[DateTime]] = [None] * weekday_index(first_day)
    cells.extend(
        first_day.set(day=day)
        for day in range(1, first_day.days_in_month + 1)
    )

    return cells


def month_name(value: _date, locale: str = "it") -> str:
    """Localised full month name, e.g. ``novembre``."""
    return pendulum.date(value.year, value.month, 1).format("MMMM", locale=locale)


def year_of(value: _date) -> int:
    return value.year
