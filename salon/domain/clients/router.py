"""Client router - FastAPI endpoints for client operations"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import CurrentUser, forbid_owner_delete, get_current_user, require_permission
from ...database import get_db
from ...errors import PermissionDeniedError
from ...permissions import Capability
from ..accounts.schemas import CreatedResponse, MessageResponse
from .schemas import ClientCreate, ClientResponse, ClientUpdate
from .service import ClientService, client_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(db: Session = Depends(get_db)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(db)


# ============================================================================
# CORE CRUD OPERATIONS
# ============================================================================


@router.get("", response_model=list[ClientResponse])
async def get_clients(
    includeInactive: bool = Query(False),
    current_user: CurrentUser = Depends(require_permission(Capability.CLIENTS_VIEW)),
    service: ClientService = Depends(get_client_service),
):
    """All clients by name. Inactive ones only when includeInactive=true"""
    return [client_response(c) for c in service.get_clients(includeInactive)]


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return client_response(service.get_client(client_id, current_user))


@router.post("", response_model=CreatedResponse, status_code=201)
async def create_client(
    data: ClientCreate,
    current_user: CurrentUser = Depends(require_permission(Capability.CLIENTS_MANAGE)),
    service: ClientService = Depends(get_client_service),
):
    client = service.create_client(data)
    return {"id": client.id, "message": "Client created"}


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: int,
    data: ClientUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    service: ClientService = Depends(get_client_service),
):
    return client_response(service.update_client(client_id, data, current_user))


@router.post("/{client_id}/inactivate", response_model=MessageResponse)
async def inactivate_client(
    client_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.CLIENTS_INACTIVATE)),
    service: ClientService = Depends(get_client_service),
):
    return service.set_client_active(client_id, False)


@router.post("/{client_id}/activate", response_model=MessageResponse)
async def activate_client(
    client_id: int,
    current_user: CurrentUser = Depends(require_permission(Capability.CLIENTS_INACTIVATE)),
    service: ClientService = Depends(get_client_service),
):
    return service.set_client_active(client_id, True)


@router.delete("/{client_id}", response_model=MessageResponse)
async def delete_client(
    client_id: int,
    current_user: CurrentUser = Depends(forbid_owner_delete),
    service: ClientService = Depends(get_client_service),
):
    """Soft delete: the client is inactivated, history is kept"""
    if not current_user.can(Capability.CLIENTS_INACTIVATE):
        raise PermissionDeniedError("Access denied")
    return service.set_client_active(client_id, False)
