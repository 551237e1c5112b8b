"""Staff router - FastAPI endpoints for employee management"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, forbid_owner_delete, require_permission
from ...database import get_db
from ...errors import PermissionDeniedError
from ...permissions import Capability
from ..accounts.schemas import CreatedResponse, MessageResponse
from .schemas import RoleChange, StaffCreate, StaffResponse, StaffUpdate
from .service import StaffService, staff_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/staff", tags=["Staff"])


def get_staff_service(db: Session = Depends(get_db)) -> StaffService:
    return StaffService(db)


@router.get("", response_model=list[StaffResponse])
async def list_staff(
    includeInactive: bool = Query(False),
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_VIEW)),
    service: StaffService = Depends(get_staff_service),
):
    return [staff_response(m) for m in service.list_staff(includeInactive)]


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_VIEW)),
    service: StaffService = Depends(get_staff_service),
):
    return staff_response(service.get_staff(staff_id))


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_staff(
    data: StaffCreate,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_MANAGE)),
    service: StaffService = Depends(get_staff_service),
):
    member = service.create_staff(data)
    return {"id": member.id, "message": "Staff member created"}


@router.put("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: int,
    data: StaffUpdate,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_MANAGE)),
    service: StaffService = Depends(get_staff_service),
):
    return staff_response(service.update_staff(staff_id, data))


@router.post("/{staff_id}/inactivate", response_model=MessageResponse)
async def inactivate_staff(
    staff_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_INACTIVATE)),
    service: StaffService = Depends(get_staff_service),
):
    return service.set_staff_active(staff_id, False)


@router.post("/{staff_id}/activate", response_model=MessageResponse)
async def activate_staff(
    staff_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_INACTIVATE)),
    service: StaffService = Depends(get_staff_service),
):
    return service.set_staff_active(staff_id, True)


@router.put("/{staff_id}/role", response_model=StaffResponse)
async def change_staff_role(
    staff_id: int,
    data: RoleChange,
    current_user: CurrentUser = Depends(require_permission(Capability.STAFF_ROLE_CHANGE)),
    service: StaffService = Depends(get_staff_service),
):
    return staff_response(service.change_role(staff_id, data.role))


@router.delete("/{staff_id}", response_model=MessageResponse)
async def delete_staff(
    staff_id: int,
    current_user: CurrentUser = Depends(forbid_owner_delete),
    service: StaffService = Depends(get_staff_service),
):
    """Soft delete: the staff member is inactivated"""
    if not current_user.can(Capability.STAFF_INACTIVATE):
        raise PermissionDeniedError("Access denied")
    return service.set_staff_active(staff_id, False)
