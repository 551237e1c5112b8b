"""Account service - person records, login and role resolution"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...database import transaction
from ...enums import Role
from ...errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ...models import User
from ...permissions import ADMIN_ROLE_PRECEDENCE
from ...security_utils import create_access_token, hash_password, verify_password
from .repository import AccountRepository
from .schemas import AddressOut, LoginRequest, PersonFields

logger = logging.getLogger(__name__)


def resolve_login_role(held: list[str], requested: Optional[str]) -> str:
    """
    Pick the role a session acts under.

    - "admin" is an alias for the highest administrative role held
      (owner > manager > staff)
    - any other value must be a role the user holds
    - nothing requested: client when held, otherwise the first role
    """
    held_lower = [r.lower() for r in held]
    if requested and requested.strip():
        wanted = requested.strip().lower()
        if wanted == "admin":
            for role in ADMIN_ROLE_PRECEDENCE:
                if role.value in held_lower:
                    return role.value
            raise PermissionDeniedError("User has no administrative access")
        if wanted not in held_lower:
            raise PermissionDeniedError("User does not have the requested role")
        return wanted

    if Role.CLIENT.value in held_lower:
        return Role.CLIENT.value
    if held_lower:
        return held_lower[0]
    return Role.CLIENT.value


def address_out(user: User) -> Optional[dict]:
    if not user.address:
        return None
    a = user.address
    return AddressOut(
        id=a.id,
        postalCode=a.postal_code,
        street=a.street,
        district=a.district,
        city=a.city,
        complement=a.complement,
    ).model_dump()


class AccountService:
    """Service layer shared by client and staff management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AccountRepository()

    # ------------------------------------------------------------------
    # Person records
    # ------------------------------------------------------------------

    def _resolve_address_id(self, data: PersonFields) -> Optional[int]:
        if data.addressId:
            if not self.repo.get_address(self.db, data.addressId):
                raise ValidationError("Address not found")
            return data.addressId
        if data.address and data.address.has_values():
            return self.repo.find_or_create_address(self.db, **data.address.as_columns()).id
        return None

    def create_person(
        self,
        data: PersonFields,
        role: Role,
        require_password: bool = True,
        require_address: bool = False,
        role_flags: Optional[dict] = None,
        active: bool = True,
    ) -> User:
        """Create a user with credentials and one role membership, atomically"""
        missing = [
            label
            for label, value in (("name", data.name), ("email", data.email), ("phone", data.phone))
            if not value
        ]
        if require_password and not data.password:
            missing.append("password")
        if missing:
            raise ValidationError({"message": "Invalid payload", "missing": missing})

        if self.repo.email_taken(self.db, data.email):
            raise ConflictError("Email already registered")

        with transaction(self.db):
            address_id = self._resolve_address_id(data)
            if require_address and not address_id:
                raise ValidationError("Address is required")

            user = self.repo.add_user(
                self.db,
                name=data.name,
                email=data.email,
                phone=data.phone,
                birth_date=data.birthDate,
                address_id=address_id,
                active=active,
            )
            self.repo.add_credential(
                self.db,
                user.id,
                data.email,
                hash_password(data.password) if data.password else None,
            )
            self.repo.add_role(self.db, user.id, role.value, active=active, **(role_flags or {}))

        logger.info(f"👤 Created {role.value} {user.id} ({user.email})")
        return self.repo.get_user(self.db, user.id)

    def update_person(self, user: User, data: PersonFields) -> User:
        """Apply the provided fields. Email must stay unique."""
        provided = data.model_fields_set
        if "email" in provided and data.email:
            if self.repo.email_taken(self.db, data.email, exclude_user_id=user.id):
                raise ConflictError("Email already registered by another user")

        with transaction(self.db):
            if "name" in provided and data.name:
                user.name = data.name
            if "phone" in provided and data.phone:
                user.phone = data.phone
            if "birthDate" in provided:
                user.birth_date = data.birthDate
            if "email" in provided and data.email:
                user.email = data.email
                if user.credential:
                    user.credential.login_email = data.email
            if provided & {"addressId", "address"}:
                address_id = self._resolve_address_id(data)
                if address_id:
                    user.address_id = address_id
            if "password" in provided and data.password:
                password_hash = hash_password(data.password)
                if user.credential:
                    user.credential.password_hash = password_hash
                else:
                    self.repo.add_credential(self.db, user.id, user.email, password_hash)

        logger.info(f"✏️ Updated user {user.id}")
        return self.repo.get_user(self.db, user.id)

    def set_active(self, user: User, active: bool) -> None:
        with transaction(self.db):
            self.repo.set_active(self.db, user, active)
        logger.info(f"{'✅ Activated' if active else '⛔ Inactivated'} user {user.id}")

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, data: LoginRequest) -> dict:
        if not data.email or not data.password:
            raise ValidationError("Email and password are required")

        credential = self.repo.get_credential_by_login(self.db, data.email)
        if not credential or not verify_password(data.password, credential.password_hash):
            logger.warning(f"🔒 Failed login for {data.email}")
            raise AuthenticationError("Invalid credentials")

        user = self.repo.get_user(self.db, credential.user_id)
        if not user:
            raise NotFoundError("User not found")
        if not user.active:
            raise PermissionDeniedError("User is inactive")

        held = [membership.role for membership in self.repo.get_roles(self.db, user.id)]
        role = resolve_login_role(held, data.role)
        if role not in held:
            raise PermissionDeniedError("User has no active role")

        token = create_access_token(user.id, user.name, role)
        logger.info(f"🔑 User {user.id} logged in as {role}")
        return {
            "token": token,
            "user": {"id": user.id, "name": user.name, "email": user.email, "role": role},
        }
