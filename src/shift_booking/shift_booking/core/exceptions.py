class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    code = "domain_error"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "validation_error"


class NotFoundError(DomainError):
    """Raised when a booking or time slot id is unknown."""

    status_code = 404
    code = "not_found"


class DuplicateBookingError(DomainError):
    """Raised when a non-rejected booking already exists for the same employee, date and slot."""

    status_code = 409
    code = "duplicate_booking"


class CapacityExceededError(DomainError):
    """Raised when approving would exceed the slot's employee limit."""

    status_code = 409
    code = "capacity_exceeded"


class ConflictError(DomainError):
    """Raised when a concurrent mutation of the same booking won the race.

    Safe to retry once after re-fetching the booking.
    """

    status_code = 409
    code = "conflict"


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""

    status_code = 403
    code = "forbidden"
