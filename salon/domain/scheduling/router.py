"""Appointment router - FastAPI endpoints for booking and the status lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, forbid_owner_delete, get_current_user, require_permission
from ...database import get_db
from ...errors import ValidationError
from ...permissions import Capability
from ...services.notification_service import send_client_notice
from .lifecycle import AppointmentLifecycle
from .schemas import (
    AppointmentCreate,
    AppointmentCreated,
    AppointmentDetail,
    AppointmentSummary,
    AppointmentUpdate,
    AppointmentUpdated,
    AvailabilityResponse,
    StatusChangeResponse,
)
from .service import AppointmentQueries, BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_appointment_queries(db: Session = Depends(get_db)) -> AppointmentQueries:
    return AppointmentQueries(db)


def get_lifecycle(db: Session = Depends(get_db)) -> AppointmentLifecycle:
    return AppointmentLifecycle(db)


def parse_id_list(raw: Optional[str], name: str) -> Optional[list[int]]:
    """Comma separated ids, e.g. "1,2,3". Non-numeric entries are rejected."""
    if not raw:
        return None
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError as e:
        raise ValidationError(f"{name} must be a comma separated list of ids") from e


# ============================================================================
# QUERIES
# ============================================================================


@router.get("", response_model=list[AppointmentSummary])
async def list_appointments(
    clientIds: Optional[str] = Query(None),
    staffIds: Optional[str] = Query(None),
    serviceIds: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    startDate: Optional[str] = Query(None),
    endDate: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    queries: AppointmentQueries = Depends(get_appointment_queries),
):
    """List appointments, newest first. Clients only see their own."""
    return queries.list_appointments(
        current_user,
        client_ids=parse_id_list(clientIds, "clientIds"),
        staff_ids=parse_id_list(staffIds, "staffIds"),
        service_ids=parse_id_list(serviceIds, "serviceIds"),
        statuses=[s.strip() for s in status.split(",") if s.strip()] if status else None,
        start_date=startDate,
        end_date=endDate,
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    date: Optional[str] = Query(None),
    time: Optional[str] = Query(None),
    serviceIds: Optional[str] = Query(None),
    current_user: CurrentUser = Depends(get_current_user),
    queries: AppointmentQueries = Depends(get_appointment_queries),
):
    """Free staff members for a slot, with the one a booking would get"""
    return queries.check_availability(date, time, parse_id_list(serviceIds, "serviceIds") or [])


@router.get("/{appointment_id}", response_model=AppointmentDetail)
async def get_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    queries: AppointmentQueries = Depends(get_appointment_queries),
):
    return queries.get_appointment(appointment_id, current_user)


# ============================================================================
# BOOKING
# ============================================================================


@router.post("", response_model=AppointmentCreated, status_code=201)
def create_appointment(
    data: AppointmentCreate,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    """Book an appointment. Without staffId the first free staff member is assigned."""
    return service.create_appointment(data, current_user)


@router.put("/{appointment_id}", response_model=AppointmentUpdated)
def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    service: BookingService = Depends(get_booking_service),
):
    result, notice = service.update_appointment(appointment_id, data, current_user)
    if notice:
        background_tasks.add_task(send_client_notice, notice)
    return result


# ============================================================================
# LIFECYCLE
# ============================================================================


@router.post("/{appointment_id}/confirm", response_model=StatusChangeResponse)
def confirm_appointment(
    appointment_id: int,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(require_permission(Capability.APPOINTMENTS_CONFIRM)),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    """Shop-side confirmation (manager or owner). Notifies the client."""
    result, notice = lifecycle.confirm(appointment_id)
    if notice:
        background_tasks.add_task(send_client_notice, notice)
    return result


@router.post("/{appointment_id}/presence", response_model=StatusChangeResponse)
def confirm_presence(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    """The client confirms they arrived"""
    return lifecycle.confirm_presence(appointment_id, current_user)


@router.post("/{appointment_id}/cancel", response_model=StatusChangeResponse)
def cancel_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    return lifecycle.cancel(appointment_id, current_user)


@router.post("/{appointment_id}/complete", response_model=StatusChangeResponse)
def complete_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.SALES_CREATE)),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    return lifecycle.complete(appointment_id)


@router.delete("/{appointment_id}", response_model=StatusChangeResponse)
def delete_appointment(
    appointment_id: int,
    current_user: CurrentUser = Depends(forbid_owner_delete),
    lifecycle: AppointmentLifecycle = Depends(get_lifecycle),
):
    """Soft delete: the appointment is cancelled, never removed"""
    return lifecycle.cancel(appointment_id, current_user)
