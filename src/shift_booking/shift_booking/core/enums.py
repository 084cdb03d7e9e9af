from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Actor role used by the HTTP layer for admin-only routes."""

    ADMIN = "admin"
    EMPLOYEE = "employee"


class BookingStatus(str, Enum):
    """Stored booking state. Cancelled bookings are removed, not stored."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class WriteOutcome(str, Enum):
    """Result of a conditional write performed by a repository."""

    OK = "ok"
    DUPLICATE = "duplicate"
    FULL = "full"
    STALE = "stale"
