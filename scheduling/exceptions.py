class SchedulingError(Exception):
    """Base class for errors raised by the scheduling engine."""


class ValidationError(SchedulingError):
    """Malformed window or request input. Raised before any state is touched."""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class NotFoundError(SchedulingError):
    """Unknown provider, appointment or window id."""


class InvalidTransitionError(SchedulingError):
    def __init__(self, appointment_id, current, requested):
        super().__init__(
            f"Appointment {appointment_id} cannot move from '{current}' to '{requested}'"
        )
        self.appointment_id = appointment_id
        self.current = current
        self.requested = requested


class SideEffectFailure(SchedulingError):
    """
    Patient/history or notification work that failed after a committed
    status transition. Returned and recorded, never raised to the caller.
    """

    def __init__(self, appointment_id, status, target, cause):
        super().__init__(
            f"{target} side effect failed for appointment {appointment_id} "
            f"({status}): {cause!r}"
        )
        self.appointment_id = appointment_id
        self.status = status
        self.target = target
        self.cause = cause
