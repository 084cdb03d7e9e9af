from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class SlotAvailability:
    time_slot_id: int
    count: int
    max_employees: Optional[int]

    @property
    def available(self) -> bool:
        # No limit set means unlimited.
        return self.max_employees is None or self.count < self.max_employees

    @property
    def remaining(self) -> Optional[int]:
        if self.max_employees is None:
            return None
        return max(self.max_employees - self.count, 0)
