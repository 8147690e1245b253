"""Month grid range models."""

from collections.abc import Iterator
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Optional

from pydantic import BaseModel, model_validator

from ..utils.date_utils import day_start


class WeekStart(str, Enum):
    """First weekday of a grid row."""

    MONDAY = "monday"
    SUNDAY = "sunday"

    @property
    def weekday(self) -> int:
        """Python weekday number (Monday=0 .. Sunday=6)."""
        return 0 if self is WeekStart.MONDAY else 6


class GridRange(BaseModel):
    """Week-aligned span of grid cells; ``end`` is exclusive."""

    start: date
    end: date
    cell_count: int

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_cells(self) -> "GridRange":
        if (self.end - self.start).days != self.cell_count:
            raise ValueError("cell_count must equal the number of days in the range")
        if self.cell_count <= 0 or self.cell_count % 7:
            raise ValueError("cell_count must be a positive multiple of 7")
        return self

    def days(self) -> Iterator[date]:
        """Iterate over every cell date in order."""
        for offset in range(self.cell_count):
            yield self.start + timedelta(days=offset)

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def bounds(self, tz: Optional[tzinfo] = None) -> tuple[datetime, datetime]:
        """Local midnights of the first cell and of the day after the last."""
        return day_start(self.start, tz), day_start(self.end, tz)


class GridLayout(BaseModel):
    """Grid range together with the month it was derived from."""

    grid_range: GridRange
    first_of_month: date
    last_of_month: date

    model_config = {"frozen": True}

    def in_month(self, day: date) -> bool:
        return self.first_of_month <= day <= self.last_of_month
