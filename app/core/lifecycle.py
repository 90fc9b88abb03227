"""
Appointment state machine.

Every status change goes through ``plan_transition``, which validates the
move against ``TRANSITIONS`` and returns the column values to write. Callers
never assign ``status`` or the lifecycle timestamps directly.
"""

from datetime import datetime
from typing import Any

from app.core.exceptions import AlreadyProcessedException, InvalidTransitionException
from app.schemas.appointments import AppointmentStatus

S = AppointmentStatus

DEFAULT_CANCELLATION_REASON = "cancelled by patient via link"

TERMINAL_STATUSES: frozenset[AppointmentStatus] = frozenset({S.CANCELLED, S.COMPLETED, S.NO_SHOW})

# Statuses from which the patient may still confirm or cancel through the link
PATIENT_ACTIONABLE: frozenset[AppointmentStatus] = frozenset({S.SCHEDULED, S.CONFIRMED})

TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    S.SCHEDULED: frozenset({S.CONFIRMED, S.CANCELLED, S.ARRIVED, S.COMPLETED, S.NO_SHOW}),
    S.CONFIRMED: frozenset({S.CONFIRMED, S.CANCELLED, S.ARRIVED, S.COMPLETED, S.NO_SHOW}),
    S.ARRIVED: frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.CANCELLED: frozenset(),
    S.COMPLETED: frozenset(),
    S.NO_SHOW: frozenset(),
}


def is_terminal(status: AppointmentStatus) -> bool:
    """Return True when no further transition is permitted."""
    return status in TERMINAL_STATUSES


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Return True when ``current -> target`` is in the transition table."""
    return target in TRANSITIONS[current]


def plan_transition(
    current: AppointmentStatus,
    target: AppointmentStatus,
    now: datetime,
    *,
    reason: str | None = None,
) -> dict[str, Any]:
    """
    Compute the column updates for a status change.

    Args:
        current: Status the appointment is in
        target: Requested status
        now: Time of the action, used for the lifecycle stamps
        reason: Cancellation reason, required when target is cancelled

    Returns:
        Column values to write. Empty when the request is a no-op
        (re-confirming a confirmed appointment keeps ``confirmed_at``).

    Raises:
        AlreadyProcessedException: If ``current`` is terminal
        InvalidTransitionException: If the move is not in the table
    """
    if is_terminal(current):
        raise AlreadyProcessedException(current.value)

    if not can_transition(current, target):
        raise InvalidTransitionException(current.value, target.value)

    if current == target:
        return {}

    values: dict[str, Any] = {"status": target.value, "updated_at": now}

    if target == S.CONFIRMED:
        values["confirmed_at"] = now
    elif target == S.CANCELLED:
        if not reason:
            raise ValueError("cancellation requires a reason")
        values["cancelled_at"] = now
        values["cancellation_reason"] = reason
    elif target == S.IN_PROGRESS:
        values["started_at"] = now
    elif target == S.COMPLETED:
        values["completed_at"] = now

    return values


def _ensure_patient_actionable(current: AppointmentStatus) -> None:
    if current not in PATIENT_ACTIONABLE:
        raise AlreadyProcessedException(current.value)


def plan_patient_confirm(current: AppointmentStatus, now: datetime) -> dict[str, Any]:
    """Column updates for a patient confirming through the public link."""
    _ensure_patient_actionable(current)
    return plan_transition(current, S.CONFIRMED, now)


def plan_patient_cancel(
    current: AppointmentStatus,
    now: datetime,
    reason: str | None = None,
) -> dict[str, Any]:
    """Column updates for a patient cancelling through the public link."""
    _ensure_patient_actionable(current)
    cleaned = (reason or "").strip()
    return plan_transition(
        current,
        S.CANCELLED,
        now,
        reason=cleaned or DEFAULT_CANCELLATION_REASON,
    )
