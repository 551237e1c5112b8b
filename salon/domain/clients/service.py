"""Client service - Business logic for client operations"""

import logging

from sqlalchemy.orm import Session

from ...auth import CurrentUser
from ...enums import Role
from ...errors import NotFoundError, PermissionDeniedError
from ...models import User
from ...permissions import Capability
from ..accounts.repository import AccountRepository
from ..accounts.service import AccountService, address_out
from .schemas import ClientCreate, ClientUpdate

logger = logging.getLogger(__name__)


def client_response(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "birthDate": user.birth_date,
        "active": user.active,
        "createdAt": user.created_at,
        "address": address_out(user),
    }


class ClientService:
    """Service layer for client business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()
        self.accounts = AccountService(db)

    def _is_self(self, client_id: int, current_user: CurrentUser) -> bool:
        return current_user.role == Role.CLIENT and current_user.id == client_id

    def get_clients(self, include_inactive: bool = False) -> list[User]:
        return self.repo.list_users_with_role(self.db, Role.CLIENT.value, include_inactive)

    def get_client(self, client_id: int, current_user: CurrentUser) -> User:
        """Get a specific client. Clients may read their own record."""
        if not self._is_self(client_id, current_user) and not current_user.can(Capability.CLIENTS_VIEW):
            raise PermissionDeniedError("Access denied")
        client = self.repo.get_user_with_role(self.db, client_id, Role.CLIENT.value)
        if not client:
            raise NotFoundError("Client not found")
        return client

    def create_client(self, data: ClientCreate) -> User:
        """Create a new client with validation"""
        logger.info(f"📥 Creating client {data.email}")
        return self.accounts.create_person(data, Role.CLIENT, require_password=True)

    def update_client(self, client_id: int, data: ClientUpdate, current_user: CurrentUser) -> User:
        if self._is_self(client_id, current_user):
            allowed = current_user.can(Capability.SELF_UPDATE)
        else:
            allowed = current_user.can(Capability.CLIENTS_MANAGE)
        if not allowed:
            raise PermissionDeniedError("Access denied")

        client = self.repo.get_user_with_role(self.db, client_id, Role.CLIENT.value)
        if not client:
            raise NotFoundError("Client not found")
        return self.accounts.update_person(client, data)

    def set_client_active(self, client_id: int, active: bool) -> dict:
        client = self.repo.get_user_with_role(self.db, client_id, Role.CLIENT.value)
        if not client:
            raise NotFoundError("Client not found")
        self.accounts.set_active(client, active)
        return {"message": "Client activated" if active else "Client inactivated"}
