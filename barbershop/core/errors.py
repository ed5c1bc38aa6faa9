# barbershop/core/errors.py
"""Failure kinds surfaced by the booking core.

Each error carries a machine-readable ``kind`` and the HTTP status the API
answers with, so callers can tell "someone else took this slot" apart from
"you already have a booking this week" or "you are blocked".
"""


class BookingError(Exception):
    kind = "error"
    status_code = 400

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason

    def to_dict(self) -> dict:
        return {"detail": self.reason, "kind": self.kind}


class InvalidInput(BookingError, ValueError):
    kind = "invalid_input"
    status_code = 422


class NotFound(BookingError):
    kind = "not_found"
    status_code = 404


class Unauthorized(BookingError):
    kind = "unauthorized"
    status_code = 401


class PolicyDenied(BookingError):
    kind = "policy_denied"
    status_code = 403


class BookingBlocked(PolicyDenied):
    kind = "booking_blocked"
    status_code = 403


class WeeklyLimitReached(PolicyDenied):
    kind = "weekly_limit"
    status_code = 409


class SlotConflict(BookingError):
    kind = "conflict"
    status_code = 409


class InvalidTransition(BookingError):
    kind = "invalid_transition"
    status_code = 409
