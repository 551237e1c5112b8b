"""
Staff availability

A staff member is free for [start, start + duration) on a day when that
interval overlaps none of their active appointments on the same day.
Cancelled and NoShow appointments release their slot.
"""

import logging
from collections import defaultdict
from datetime import date, time
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import DEFAULT_SERVICE_MINUTES
from ...enums import AppointmentStatus, Role
from ...models import Appointment, AppointmentServiceItem, Service, User, UserRole
from .time_calculator import intervals_conflict, time_to_minutes

logger = logging.getLogger(__name__)

RELEASED_STATUSES = (AppointmentStatus.CANCELLED.value, AppointmentStatus.NO_SHOW.value)


def resolve_duration(durations: Iterable[Optional[int]]) -> int:
    """
    Sum per-service durations, counting unknown ones as the default slot.
    An empty or zero total falls back to the default slot as well.
    """
    total = 0
    for minutes in durations:
        total += DEFAULT_SERVICE_MINUTES if minutes is None else int(minutes)
    return total or DEFAULT_SERVICE_MINUTES


class AvailabilityEngine:
    """Answers "is this staff member free" and picks a free staff member."""

    def __init__(self, db: Session):
        self.db = db

    def duration_for_services(self, service_ids: Iterable[Optional[int]]) -> int:
        """Total minutes for the given services. Never raises."""
        ids = [sid for sid in service_ids if sid]
        if not ids:
            return DEFAULT_SERVICE_MINUTES

        try:
            known = dict(
                self.db.query(Service.id, Service.duration_minutes)
                .filter(Service.id.in_(set(ids)))
                .all()
            )
        except SQLAlchemyError as e:
            logger.warning(f"⚠️ Service duration lookup failed, using default slot: {e}")
            known = {}

        return resolve_duration(known.get(sid) for sid in ids)

    def staff_intervals(
        self, day: date, staff_id: int, exclude_appointment_id: Optional[int] = None
    ) -> list[tuple[int, int, int]]:
        """(appointment_id, start_minute, end_minute) for the staff member's active appointments."""
        query = (
            self.db.query(Appointment.id, Appointment.start_time, Service.id, Service.duration_minutes)
            .outerjoin(AppointmentServiceItem, AppointmentServiceItem.appointment_id == Appointment.id)
            .outerjoin(Service, Service.id == AppointmentServiceItem.service_id)
            .filter(
                Appointment.staff_id == staff_id,
                Appointment.date == day,
                Appointment.status.notin_(RELEASED_STATUSES),
            )
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        starts: dict[int, time] = {}
        durations: dict[int, list] = defaultdict(list)
        for appointment_id, start_time, service_id, minutes in query.all():
            starts[appointment_id] = start_time
            if service_id is not None:
                durations[appointment_id].append(minutes)

        intervals = []
        for appointment_id, start_time in starts.items():
            start = time_to_minutes(start_time)
            intervals.append((appointment_id, start, start + resolve_duration(durations[appointment_id])))
        return intervals

    def appointment_duration(self, appointment_id: int) -> int:
        rows = (
            self.db.query(Service.duration_minutes)
            .select_from(AppointmentServiceItem)
            .outerjoin(Service, Service.id == AppointmentServiceItem.service_id)
            .filter(AppointmentServiceItem.appointment_id == appointment_id)
            .all()
        )
        return resolve_duration(minutes for (minutes,) in rows)

    def is_staff_free(
        self,
        day: date,
        start_time: time,
        duration_minutes: int,
        staff_id: Optional[int],
        exclude_appointment_id: Optional[int] = None,
    ) -> bool:
        if not staff_id:
            return False
        start = time_to_minutes(start_time)
        end = start + duration_minutes
        for _, other_start, other_end in self.staff_intervals(day, staff_id, exclude_appointment_id):
            if intervals_conflict(start, end, other_start, other_end):
                return False
        return True

    def active_staff_ids(self) -> list[int]:
        """Active staff members (user and role both active), ascending id."""
        rows = (
            self.db.query(User.id)
            .join(UserRole, UserRole.user_id == User.id)
            .filter(
                UserRole.role == Role.STAFF.value,
                UserRole.active.is_(True),
                User.active.is_(True),
            )
            .order_by(User.id.asc())
            .distinct()
            .all()
        )
        return [row[0] for row in rows]

    def is_active_staff(self, staff_id: int) -> bool:
        return staff_id in self.active_staff_ids()

    def choose_free_staff(
        self, day: date, start_time: time, duration_minutes: int
    ) -> Optional[int]:
        """First-fit: the lowest-id active staff member who is free, or None."""
        for staff_id in self.active_staff_ids():
            if self.is_staff_free(day, start_time, duration_minutes, staff_id):
                return staff_id
        return None

    def lock_staff_row(self, staff_id: int) -> Optional[UserRole]:
        """
        SELECT ... FOR UPDATE on the staff member's role row, serializing
        bookings for that staff member across processes. No-op on SQLite.
        """
        return (
            self.db.query(UserRole)
            .filter(UserRole.user_id == staff_id, UserRole.role == Role.STAFF.value)
            .with_for_update()
            .first()
        )
