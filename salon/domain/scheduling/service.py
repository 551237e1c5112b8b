"""Booking service - create and update appointments without double booking"""

import logging
from datetime import date, time
from typing import Optional

from sqlalchemy.orm import Session

from ...auth import CurrentUser
from ...database import transaction
from ...enums import AppointmentStatus, Role
from ...errors import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ...models import Appointment
from ...permissions import Capability
from ...services.notification_service import CONFIRMATION, build_client_notice
from .availability_service import AvailabilityEngine, resolve_duration
from .lifecycle import AppointmentLifecycle, is_terminal
from .locks import StaffDayLocks, booking_locks
from .repository import AppointmentRepository
from .schemas import AppointmentCreate, AppointmentUpdate, PaymentLineItemIn, ServiceLineItemIn
from .time_calculator import (
    add_minutes_to_time,
    combine,
    minutes_to_time,
    parse_date_field,
    parse_time_field,
)

logger = logging.getLogger(__name__)


def service_rows(items: list[ServiceLineItemIn]) -> list[dict]:
    return [
        {
            "service_id": item.serviceId,
            "quantity": item.quantity,
            "unit_price": item.unitPrice,
            "notes": item.notes,
        }
        for item in items
    ]


def payment_rows(items: list[PaymentLineItemIn]) -> list[dict]:
    return [
        {
            "method_id": item.methodId,
            "method": item.method,
            "amount": item.amount or 0,
            "reference": item.reference,
        }
        for item in items
    ]


class BookingService:
    """
    Books appointments.

    The availability check and the insert run in one transaction while
    holding the (staff, day) lock and a row lock on the staff member, so two
    concurrent requests can never both take the same slot.
    """

    def __init__(self, db: Session, locks: StaffDayLocks = booking_locks):
        self.db = db
        self.repo = AppointmentRepository()
        self.availability = AvailabilityEngine(db)
        self.locks = locks
        self.lifecycle = AppointmentLifecycle(db)

    def _authorize_for_client(self, client_id: int, current_user: CurrentUser) -> None:
        if current_user.role == Role.CLIENT:
            if client_id != current_user.id:
                raise PermissionDeniedError("Clients can only book for themselves")
        elif not current_user.can(Capability.APPOINTMENTS_MANAGE):
            raise PermissionDeniedError("Access denied")

    def _require_active_staff(self, staff_id: int) -> None:
        if not self.availability.is_active_staff(staff_id):
            raise ValidationError("Staff member not found or inactive")

    def _book_with_staff(
        self,
        staff_id: int,
        day: date,
        start: time,
        duration: int,
        fields: dict,
        services: list[dict],
        payments: list[dict],
    ) -> Optional[Appointment]:
        """Insert the appointment for `staff_id` if the slot is free, else return None."""
        with self.locks.hold(staff_id, day):
            with transaction(self.db):
                self.availability.lock_staff_row(staff_id)
                if not self.availability.is_staff_free(day, start, duration, staff_id):
                    return None

                appointment = self.repo.add_appointment(
                    self.db,
                    staff_id=staff_id,
                    date=day,
                    start_time=start,
                    starts_at=combine(day, start),
                    status=AppointmentStatus.SCHEDULED.value,
                    **fields,
                )
                self.repo.add_service_items(self.db, appointment.id, services)
                self.repo.add_payment_items(self.db, appointment.id, payments)
                return appointment

    def create_appointment(self, data: AppointmentCreate, current_user: CurrentUser) -> dict:
        """Validate, pick or check the staff member, then insert everything atomically."""
        day = parse_date_field(data.date)
        start = parse_time_field(data.time)
        if not data.clientId or not day or not start:
            logger.warning(f"⚠️ Invalid booking: client={data.clientId} date={data.date!r} time={data.time!r}")
            raise ValidationError("Missing required fields: clientId, date and time")

        self._authorize_for_client(data.clientId, current_user)
        if not self.repo.client_exists(self.db, data.clientId):
            raise ValidationError("Client not found")

        services = service_rows(data.services)
        payments = payment_rows(data.payments)
        duration = self.availability.duration_for_services(s["service_id"] for s in services)
        fields = {"client_id": data.clientId, "notes": data.notes}

        if data.staffId:
            self._require_active_staff(data.staffId)
            appointment = self._book_with_staff(data.staffId, day, start, duration, fields, services, payments)
            if appointment is None:
                raise ConflictError("Time slot unavailable for the selected staff member")
        else:
            appointment = None
            for staff_id in self.availability.active_staff_ids():
                appointment = self._book_with_staff(staff_id, day, start, duration, fields, services, payments)
                if appointment is not None:
                    break
            if appointment is None:
                raise ConflictError("Time slot unavailable: all staff members are busy")

        logger.info(
            f"📅 Appointment {appointment.id} booked: client {data.clientId}, staff {appointment.staff_id}, "
            f"{day} {start} ({duration} min)"
        )
        return {
            "id": appointment.id,
            "staffId": appointment.staff_id,
            "durationMinutes": duration,
            "message": "Appointment created",
        }

    def update_appointment(
        self, appointment_id: int, data: AppointmentUpdate, current_user: CurrentUser
    ) -> tuple[dict, Optional[dict]]:
        """
        Partial update. Duration and availability are rechecked when the
        date, time, staff member or services change; the appointment never
        collides with itself. A status in the payload may only confirm or
        cancel.

        Returns the result and the client notice to send, if any.
        """
        provided = data.model_fields_set

        existing = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not existing:
            raise NotFoundError("Appointment not found")
        if current_user.role == Role.CLIENT:
            if existing.client_id != current_user.id:
                raise PermissionDeniedError("This appointment belongs to another client")
        elif not current_user.can(Capability.APPOINTMENTS_MANAGE):
            raise PermissionDeniedError("Access denied")
        if is_terminal(existing.status):
            raise ValidationError(f"A {existing.status} appointment cannot be edited")

        day = existing.date
        if "date" in provided:
            day = parse_date_field(data.date)
            if not day:
                raise ValidationError("Invalid date")
        start = existing.start_time
        if "time" in provided:
            start = parse_time_field(data.time)
            if not start:
                raise ValidationError("Invalid time")

        client_id = existing.client_id
        if "clientId" in provided:
            if not data.clientId:
                raise ValidationError("clientId cannot be empty")
            self._authorize_for_client(data.clientId, current_user)
            if not self.repo.client_exists(self.db, data.clientId):
                raise ValidationError("Client not found")
            client_id = data.clientId

        staff_id = existing.staff_id
        if "staffId" in provided and data.staffId:
            staff_id = data.staffId

        new_status = None
        if "status" in provided and data.status:
            new_status = self.lifecycle.check_edit_status(existing, data.status, current_user)

        services = service_rows(data.services) if data.services is not None else None
        payments = payment_rows(data.payments) if data.payments is not None else None

        if services is not None:
            duration = self.availability.duration_for_services(s["service_id"] for s in services)
        else:
            duration = self.availability.appointment_duration(appointment_id)

        reschedule = bool(provided & {"date", "time", "staffId", "services"})
        if reschedule and staff_id and staff_id != existing.staff_id:
            self._require_active_staff(staff_id)

        def apply() -> None:
            appointment = self.repo.lock_appointment(self.db, appointment_id)
            if appointment is None:
                raise NotFoundError("Appointment not found")
            if reschedule and staff_id:
                self.availability.lock_staff_row(staff_id)
                if not self.availability.is_staff_free(
                    day, start, duration, staff_id, exclude_appointment_id=appointment_id
                ):
                    raise ConflictError("Time slot unavailable for the selected staff member")

            appointment.client_id = client_id
            appointment.staff_id = staff_id
            appointment.date = day
            appointment.start_time = start
            appointment.starts_at = combine(day, start)
            if "notes" in provided:
                appointment.notes = data.notes
            if new_status:
                self.lifecycle.move(appointment, new_status)

            if services is not None:
                self.repo.delete_service_items(self.db, appointment_id)
                self.repo.add_service_items(self.db, appointment_id, services)
            if payments is not None:
                self.repo.delete_payment_items(self.db, appointment_id)
                self.repo.add_payment_items(self.db, appointment_id, payments)

        if staff_id:
            with self.locks.hold(staff_id, day):
                with transaction(self.db):
                    apply()
        else:
            with transaction(self.db):
                apply()

        logger.info(f"✏️ Appointment {appointment_id} updated (staff {staff_id}, {day} {start})")
        refreshed = self.repo.get_appointment_by_id(self.db, appointment_id)
        notice = None
        if new_status == AppointmentStatus.CONFIRMED:
            notice = build_client_notice(self.db, refreshed, CONFIRMATION)
        result = {
            "id": appointment_id,
            "staffId": refreshed.staff_id,
            "durationMinutes": duration,
            "status": refreshed.status,
            "message": "Appointment updated",
        }
        return result, notice


def _appointment_minutes(appointment: Appointment) -> int:
    return resolve_duration(
        item.service.duration_minutes if item.service else None for item in appointment.service_items
    )


def _timing(appointment: Appointment) -> dict:
    minutes = _appointment_minutes(appointment)
    return {
        "date": appointment.date.isoformat(),
        "time": appointment.start_time.strftime("%H:%M:%S"),
        "durationMinutes": minutes,
        "totalDuration": minutes_to_time(minutes),
        "endTime": add_minutes_to_time(appointment.start_time, minutes),
    }


class AppointmentQueries:
    """Read side: lists, details and availability lookups"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AppointmentRepository()
        self.availability = AvailabilityEngine(db)

    def list_appointments(
        self,
        current_user: CurrentUser,
        client_ids: Optional[list[int]] = None,
        staff_ids: Optional[list[int]] = None,
        service_ids: Optional[list[int]] = None,
        statuses: Optional[list[str]] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
    ) -> list[dict]:
        if current_user.role == Role.CLIENT:
            # Clients only ever see their own appointments
            client_ids = [current_user.id]
        elif not current_user.can(Capability.APPOINTMENTS_VIEW):
            raise PermissionDeniedError("Access denied")

        appointments = self.repo.list_appointments(
            self.db,
            client_ids=client_ids,
            staff_ids=staff_ids,
            service_ids=service_ids,
            statuses=statuses,
            start_date=parse_date_field(start_date),
            end_date=parse_date_field(end_date),
        )
        return [
            {
                "id": a.id,
                "status": a.status,
                "notes": a.notes,
                "clientId": a.client_id,
                "staffId": a.staff_id,
                "clientName": a.client.name if a.client else None,
                "staffName": a.staff.name if a.staff else None,
                "services": ", ".join(
                    dict.fromkeys(item.service.name for item in a.service_items if item.service)
                ),
                **_timing(a),
            }
            for a in appointments
        ]

    def get_appointment(self, appointment_id: int, current_user: CurrentUser) -> dict:
        appointment = self.repo.get_appointment_by_id(self.db, appointment_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        if current_user.role == Role.CLIENT:
            if appointment.client_id != current_user.id:
                raise PermissionDeniedError("This appointment belongs to another client")
        elif not current_user.can(Capability.APPOINTMENTS_VIEW):
            raise PermissionDeniedError("Access denied")

        return {
            "id": appointment.id,
            "status": appointment.status,
            "notes": appointment.notes,
            "clientId": appointment.client_id,
            "staffId": appointment.staff_id,
            "checkedInAt": appointment.checked_in_at.isoformat() if appointment.checked_in_at else None,
            **_timing(appointment),
            "services": [
                {
                    "id": item.id,
                    "serviceId": item.service_id,
                    "serviceName": item.service.name if item.service else None,
                    "quantity": item.quantity,
                    "unitPrice": item.unit_price,
                    "notes": item.notes,
                }
                for item in appointment.service_items
            ],
            "payments": [
                {
                    "id": pay.id,
                    "methodId": pay.method_id,
                    "method": pay.method,
                    "amount": pay.amount,
                    "reference": pay.reference,
                    "createdAt": pay.created_at.isoformat() if pay.created_at else None,
                }
                for pay in appointment.payment_items
            ],
        }

    def check_availability(self, raw_date: Optional[str], raw_time: Optional[str], service_ids: list[int]) -> dict:
        """Which active staff members could take this slot"""
        day = parse_date_field(raw_date)
        start = parse_time_field(raw_time)
        if not day or not start:
            raise ValidationError("date and time are required")

        duration = self.availability.duration_for_services(service_ids)
        free = [
            staff_id
            for staff_id in self.availability.active_staff_ids()
            if self.availability.is_staff_free(day, start, duration, staff_id)
        ]
        return {
            "date": day.isoformat(),
            "time": start.strftime("%H:%M:%S"),
            "durationMinutes": duration,
            "freeStaffIds": free,
            "suggestedStaffId": free[0] if free else None,
        }
