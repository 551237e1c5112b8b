"""
Appointment status lifecycle

    Scheduled → Confirmed → InProgress → Completed
        │           │            └─────→ NoShow
        └───────────┴─→ Cancelled

Scheduled may also go straight to InProgress (presence or sweep).
Completed, Cancelled and NoShow are terminal.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from sqlalchemy.orm import Session

from ...auth import CurrentUser
from ...database import transaction
from ...enums import TERMINAL_STATUSES, AppointmentStatus, Role
from ...errors import NotFoundError, PermissionDeniedError, ValidationError
from ...models import Appointment
from ...permissions import Capability
from ...services.notification_service import CONFIRMATION, build_client_notice

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[AppointmentStatus, frozenset] = {
    AppointmentStatus.SCHEDULED: frozenset(
        {AppointmentStatus.CONFIRMED, AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.CONFIRMED: frozenset(
        {AppointmentStatus.IN_PROGRESS, AppointmentStatus.CANCELLED}
    ),
    AppointmentStatus.IN_PROGRESS: frozenset(
        {AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW}
    ),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
    AppointmentStatus.NO_SHOW: frozenset(),
}


def _status(value: Union[AppointmentStatus, str]) -> Optional[AppointmentStatus]:
    try:
        return AppointmentStatus(value)
    except ValueError:
        return None


def can_transition(current: Union[AppointmentStatus, str], new: Union[AppointmentStatus, str]) -> bool:
    """True when `current` → `new` is in the transition table. Same-state moves are not transitions."""
    current_status = _status(current)
    new_status = _status(new)
    if current_status is None or new_status is None:
        return False
    return new_status in VALID_TRANSITIONS[current_status]


def is_terminal(status: Union[AppointmentStatus, str]) -> bool:
    return _status(status) in TERMINAL_STATUSES


class AppointmentLifecycle:
    """Manual status transitions. The automatic ones run in the status sweep."""

    def __init__(self, db: Session):
        self.db = db

    def _load_for_update(self, appointment_id: int) -> Appointment:
        appointment = (
            self.db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .first()
        )
        if not appointment:
            raise NotFoundError("Appointment not found")
        return appointment

    def move(self, appointment: Appointment, new_status: AppointmentStatus) -> None:
        """Apply one transition from the table inside the caller's transaction."""
        if not can_transition(appointment.status, new_status):
            raise ValidationError(
                f"Appointment cannot go from {appointment.status} to {new_status.value}"
            )
        logger.info(f"✅ Appointment {appointment.id} transitioned: {appointment.status} → {new_status.value}")
        appointment.status = new_status.value

    @staticmethod
    def authorize_cancel(appointment: Appointment, current_user: CurrentUser) -> None:
        if current_user.role == Role.CLIENT:
            if appointment.client_id != current_user.id:
                raise PermissionDeniedError("This appointment belongs to another client")
        elif not current_user.can(Capability.APPOINTMENTS_CANCEL):
            raise PermissionDeniedError("Access denied")

    @staticmethod
    def check_edit_status(
        appointment: Appointment, requested: str, current_user: CurrentUser
    ) -> Optional[AppointmentStatus]:
        """
        Status change asked for through an appointment edit. Only confirmation
        and cancellation can be requested that way, each under the same rules
        as its own endpoint. Returns None when the status is unchanged.
        """
        target = _status(requested)
        if target is None:
            raise ValidationError(f"Unknown status: {requested}")
        if target.value == appointment.status:
            return None

        if target == AppointmentStatus.CANCELLED:
            AppointmentLifecycle.authorize_cancel(appointment, current_user)
        elif current_user.role == Role.CLIENT:
            raise PermissionDeniedError("Clients can only cancel their appointments")
        elif target == AppointmentStatus.CONFIRMED:
            if not current_user.can(Capability.APPOINTMENTS_CONFIRM):
                raise PermissionDeniedError("Only a manager or the owner can confirm appointments")
        else:
            raise ValidationError(
                f"{target.value} is reached through presence, sales or the status sweep, not by editing"
            )

        if not can_transition(appointment.status, target):
            raise ValidationError(f"Appointment cannot go from {appointment.status} to {target.value}")
        return target

    def confirm(self, appointment_id: int) -> tuple[dict, Optional[dict]]:
        """
        Confirm a booking. Confirming twice is a no-op.
        Returns the result and the client notice to send, if any.
        """
        with transaction(self.db):
            appointment = self._load_for_update(appointment_id)
            if appointment.status == AppointmentStatus.CONFIRMED.value:
                return (
                    {"id": appointment.id, "status": appointment.status, "message": "Appointment already confirmed"},
                    None,
                )
            if appointment.status == AppointmentStatus.CANCELLED.value:
                raise ValidationError("A cancelled appointment cannot be confirmed")
            self.move(appointment, AppointmentStatus.CONFIRMED)

        notice = build_client_notice(self.db, appointment, CONFIRMATION)
        return (
            {"id": appointment.id, "status": appointment.status, "message": "Appointment confirmed and client notified"},
            notice,
        )

    def confirm_presence(self, appointment_id: int, current_user: CurrentUser) -> dict:
        """The client checks in: Scheduled or Confirmed → InProgress."""
        if current_user.role != Role.CLIENT:
            raise PermissionDeniedError("Only the client can confirm presence")

        with transaction(self.db):
            appointment = self._load_for_update(appointment_id)
            if appointment.client_id != current_user.id:
                raise PermissionDeniedError("This appointment belongs to another client")
            if appointment.status not in (
                AppointmentStatus.SCHEDULED.value,
                AppointmentStatus.CONFIRMED.value,
            ):
                raise ValidationError("Current status does not allow presence confirmation")
            self.move(appointment, AppointmentStatus.IN_PROGRESS)
            appointment.checked_in_at = datetime.now()

        return {"id": appointment.id, "status": appointment.status, "message": "Presence confirmed"}

    def cancel(self, appointment_id: int, current_user: CurrentUser) -> dict:
        """Clients cancel their own appointments; staff and above cancel any."""
        with transaction(self.db):
            appointment = self._load_for_update(appointment_id)
            self.authorize_cancel(appointment, current_user)

            if appointment.status == AppointmentStatus.CANCELLED.value:
                return {"id": appointment.id, "status": appointment.status, "message": "Appointment already cancelled"}
            self.move(appointment, AppointmentStatus.CANCELLED)

        return {"id": appointment.id, "status": appointment.status, "message": "Appointment cancelled"}

    def mark_completed(self, appointment: Appointment) -> None:
        """InProgress → Completed inside the caller's transaction."""
        self.move(appointment, AppointmentStatus.COMPLETED)

    def complete(self, appointment_id: int) -> dict:
        with transaction(self.db):
            appointment = self._load_for_update(appointment_id)
            self.mark_completed(appointment)
        return {"id": appointment.id, "status": appointment.status, "message": "Appointment completed"}
