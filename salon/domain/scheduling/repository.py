"""Appointment repository - Database operations for appointments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import (
    Appointment,
    AppointmentPaymentItem,
    AppointmentServiceItem,
    User,
)


class AppointmentRepository:
    """Repository for appointment database operations. Writes are committed by the caller."""

    @staticmethod
    def get_appointment_by_id(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .options(
                joinedload(Appointment.service_items).joinedload(AppointmentServiceItem.service),
                joinedload(Appointment.payment_items),
            )
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def lock_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        return (
            db.query(Appointment)
            .filter(Appointment.id == appointment_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def list_appointments(
        db: Session,
        client_ids: Optional[list[int]] = None,
        staff_ids: Optional[list[int]] = None,
        service_ids: Optional[list[int]] = None,
        statuses: Optional[list[str]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Appointment]:
        """Appointments matching every given filter, newest first"""
        query = db.query(Appointment).options(
            joinedload(Appointment.client),
            joinedload(Appointment.staff),
            joinedload(Appointment.service_items).joinedload(AppointmentServiceItem.service),
        )

        if client_ids:
            query = query.filter(Appointment.client_id.in_(client_ids))
        if staff_ids:
            query = query.filter(Appointment.staff_id.in_(staff_ids))
        if service_ids:
            with_service = (
                db.query(AppointmentServiceItem.appointment_id)
                .filter(AppointmentServiceItem.service_id.in_(service_ids))
            )
            query = query.filter(Appointment.id.in_(with_service))
        if statuses:
            query = query.filter(Appointment.status.in_(statuses))
        if start_date and end_date:
            query = query.filter(Appointment.date.between(start_date, end_date))

        return query.order_by(Appointment.date.desc(), Appointment.start_time.desc()).all()

    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def add_service_items(db: Session, appointment_id: int, items: list[dict]) -> None:
        for item in items:
            db.add(AppointmentServiceItem(appointment_id=appointment_id, **item))
        db.flush()

    @staticmethod
    def add_payment_items(db: Session, appointment_id: int, items: list[dict]) -> None:
        for item in items:
            db.add(AppointmentPaymentItem(appointment_id=appointment_id, **item))
        db.flush()

    @staticmethod
    def delete_service_items(db: Session, appointment_id: int) -> int:
        return (
            db.query(AppointmentServiceItem)
            .filter(AppointmentServiceItem.appointment_id == appointment_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def delete_payment_items(db: Session, appointment_id: int) -> int:
        return (
            db.query(AppointmentPaymentItem)
            .filter(AppointmentPaymentItem.appointment_id == appointment_id)
            .delete(synchronize_session=False)
        )

    @staticmethod
    def client_exists(db: Session, client_id: int) -> bool:
        return db.query(User.id).filter(User.id == client_id).first() is not None
