"""Catalog router - salon services"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, forbid_owner_delete, get_current_user, require_permission
from ...database import get_db
from ...errors import PermissionDeniedError
from ...permissions import Capability
from ..accounts.schemas import CreatedResponse, MessageResponse
from .schemas import ServiceCreate, ServiceResponse, ServiceUpdate
from .service import CatalogService, service_response

router = APIRouter(prefix="/services", tags=["Services"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


@router.get("", response_model=list[ServiceResponse])
async def list_services(
    includeInactive: bool = Query(False),
    current_user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return [service_response(s) for s in service.list_services(includeInactive)]


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(
    service_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_response(service.get_service(service_id))


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_service(
    data: ServiceCreate,
    current_user: CurrentUser = Depends(require_permission(Capability.SERVICES_CREATE)),
    service: CatalogService = Depends(get_catalog_service),
):
    created = service.create_service(data)
    return {"id": created.id, "message": "Service created"}


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    current_user: CurrentUser = Depends(require_permission(Capability.SERVICES_UPDATE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service_response(service.update_service(service_id, data))


@router.post("/{service_id}/inactivate", response_model=MessageResponse)
async def inactivate_service(
    service_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.SERVICES_INACTIVATE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.set_service_active(service_id, False)


@router.post("/{service_id}/activate", response_model=MessageResponse)
async def activate_service(
    service_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.SERVICES_INACTIVATE)),
    service: CatalogService = Depends(get_catalog_service),
):
    return service.set_service_active(service_id, True)


@router.delete("/{service_id}", response_model=MessageResponse)
async def delete_service(
    service_id: int,
    current_user: CurrentUser = Depends(forbid_owner_delete),
    service: CatalogService = Depends(get_catalog_service),
):
    """Soft delete: the service is inactivated"""
    if not current_user.can(Capability.SERVICES_INACTIVATE):
        raise PermissionDeniedError("Access denied")
    return service.set_service_active(service_id, False)
