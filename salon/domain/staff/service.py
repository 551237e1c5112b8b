"""Staff service - employees and managers"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import transaction
from ...enums import Role
from ...errors import ConflictError, NotFoundError
from ...models import User, UserRole
from ..accounts.repository import AccountRepository
from ..accounts.service import AccountService, address_out
from .schemas import STAFF_ROLES, StaffCreate, StaffUpdate

logger = logging.getLogger(__name__)

# New employees can take bookings and nothing else until granted more
DEFAULT_STAFF_FLAGS = {
    "can_schedule": True,
    "can_sell": False,
    "can_view_reports": False,
    "can_manage": False,
}


def staff_membership(user: User) -> Optional[UserRole]:
    for membership in user.roles:
        if membership.role in STAFF_ROLES:
            return membership
    return None


def staff_response(user: User) -> dict:
    membership = staff_membership(user)
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "birthDate": user.birth_date,
        "active": user.active,
        "role": membership.role if membership else None,
        "canSchedule": bool(membership and membership.can_schedule),
        "canSell": bool(membership and membership.can_sell),
        "canViewReports": bool(membership and membership.can_view_reports),
        "canManage": bool(membership and membership.can_manage),
        "createdAt": user.created_at,
        "address": address_out(user),
    }


class StaffService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()
        self.accounts = AccountService(db)

    def _get(self, staff_id: int) -> User:
        member = self.repo.get_user_with_any_role(self.db, staff_id, STAFF_ROLES)
        if not member:
            raise NotFoundError("Staff member not found")
        return member

    def list_staff(self, include_inactive: bool = False) -> list[User]:
        return self.repo.list_users_with_role(self.db, STAFF_ROLES, include_inactive)

    def get_staff(self, staff_id: int) -> User:
        return self._get(staff_id)

    def create_staff(self, data: StaffCreate) -> User:
        flags = dict(DEFAULT_STAFF_FLAGS)
        if data.permissions:
            flags.update(data.permissions.as_columns())
        logger.info(f"📥 Creating staff member {data.email}")
        return self.accounts.create_person(
            data,
            Role.STAFF,
            require_password=False,
            require_address=True,
            role_flags=flags,
        )

    def update_staff(self, staff_id: int, data: StaffUpdate) -> User:
        member = self._get(staff_id)
        member = self.accounts.update_person(member, data)

        if data.permissions:
            flags = data.permissions.as_columns()
            membership = staff_membership(member)
            if flags and membership:
                with transaction(self.db):
                    for column, value in flags.items():
                        setattr(membership, column, value)
                logger.info(f"🔧 Permissions updated for staff {staff_id}: {flags}")
        return self.repo.get_user(self.db, staff_id)

    def set_staff_active(self, staff_id: int, active: bool) -> dict:
        member = self._get(staff_id)
        self.accounts.set_active(member, active)
        return {"message": "Staff member activated" if active else "Staff member inactivated"}

    def change_role(self, staff_id: int, role: str) -> User:
        """Promote staff to manager or demote a manager back to staff"""
        member = self._get(staff_id)
        membership = staff_membership(member)
        if membership.role == role:
            return member
        if self.repo.get_role(self.db, staff_id, role):
            raise ConflictError(f"User already holds the {role} role")

        previous = membership.role
        with transaction(self.db):
            membership.role = role
            # Managers act on everything their role grants
            membership.can_manage = role == Role.MANAGER.value
        logger.info(f"🔀 Staff {staff_id} role changed {previous} → {role}")
        return self.repo.get_user(self.db, staff_id)
