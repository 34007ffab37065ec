"""Allowed appointment status transitions."""
from typing import Dict, FrozenSet

from ..core.exceptions import InvalidTransitionError
from ..models.appointment import AppointmentStatus

TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED
    }),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(
    status for status, targets in TRANSITIONS.items() if not targets
)


def is_terminal(status: AppointmentStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """True for a listed transition, or a no-op on a non-terminal status."""
    if current == target:
        return not is_terminal(current)
    return target in TRANSITIONS[current]


def check_transition(current: AppointmentStatus, target: AppointmentStatus):
    if can_transition(current, target):
        return
    if is_terminal(current):
        message = f"Appointment is already {current.value}"
    else:
        message = f"Cannot change appointment status from {current.value} to {target.value}"
    raise InvalidTransitionError(
        message, details={"from": current.value, "to": target.value}
    )
