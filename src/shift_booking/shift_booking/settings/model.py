from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.constants import DEFAULT_FIRST_DAY_OF_WEEK


@dataclass(frozen=True)
class SystemSettings:
    """Process-wide display settings (singleton row).

    ``first_day_of_week`` only orders displayed weeks; stored weekdays and
    dates always keep calendar semantics.
    """

    first_day_of_week: int = DEFAULT_FIRST_DAY_OF_WEEK
    updated_by: Optional[int] = None
    updated_at: Optional[datetime] = None
