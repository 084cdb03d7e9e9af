from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import IntEnum
from typing import Iterator, NewType, Optional, Tuple


class Weekday(IntEnum):
    """Calendar-fixed day numbering used for storage (0=Sunday ... 6=Saturday)."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6


# Position 0..6 of a day inside a displayed week, relative to first_day_of_week.
DisplayIndex = NewType("DisplayIndex", int)


@dataclass(frozen=True)
class WeekWindow:
    """Seven consecutive calendar dates starting on ``first_day_of_week``."""

    first_day_of_week: Weekday
    dates: Tuple[date, ...]

    @property
    def start(self) -> date:
        return self.dates[0]

    @property
    def end(self) -> date:
        return self.dates[-1]

    def __len__(self) -> int:
        return len(self.dates)

    def __iter__(self) -> Iterator[date]:
        return iter(self.dates)

    def __getitem__(self, index: int) -> date:
        return self.dates[index]

    def date_for(self, index: DisplayIndex) -> date:
        return self.dates[int(index)]

    def index_of(self, value: date) -> Optional[DisplayIndex]:
        """Display index of ``value`` or None when it falls outside the window."""
        offset = (value - self.start).days
        if 0 <= offset < len(self.dates):
            return DisplayIndex(offset)
        return None

    def contains(self, value: date) -> bool:
        return self.index_of(value) is not None
