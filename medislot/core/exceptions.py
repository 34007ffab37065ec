"""
Typed errors raised by the scheduling core.

Every error carries a stable ``code`` and an HTTP ``status_code`` so the API
layer can render it without knowing which service raised it. Nothing here
depends on FastAPI.
"""
from typing import Any, Dict, Optional


class SchedulingError(Exception):
    status_code: int = 500
    code: str = "scheduling_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(SchedulingError):
    """Malformed input, out-of-range values or overlapping windows."""
    status_code = 422
    code = "validation_error"


class NotFoundError(SchedulingError):
    status_code = 404
    code = "not_found"


class ForbiddenError(SchedulingError):
    status_code = 403
    code = "forbidden"


class ConflictError(SchedulingError):
    status_code = 409
    code = "conflict"


class SlotUnavailableError(ConflictError):
    code = "slot_already_booked"


class DoctorUnavailableError(ConflictError):
    """The doctor has switched their schedule off."""
    code = "doctor_not_accepting_bookings"


class DuplicatePrescriptionError(ConflictError):
    code = "prescription_exists"


class StateError(SchedulingError):
    """Transition requested without the metadata it requires."""
    status_code = 400
    code = "invalid_state"


class InvalidTransitionError(ConflictError, StateError):
    """The appointment's current status does not allow the requested change."""
    status_code = 409
    code = "invalid_transition"


class PersistenceError(SchedulingError):
    status_code = 503
    code = "storage_unavailable"
