import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .enums import Role
from .errors import AuthenticationError, PermissionDeniedError
from .models import User, UserRole
from .permissions import Capability, capabilities_for, has_permission
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    """Identity and active role of the caller, built once per request."""

    id: int
    name: str
    email: str
    role: Role
    capabilities: frozenset = field(default_factory=frozenset)

    def can(self, action) -> bool:
        return has_permission(self.role, action)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    """Resolve the bearer token into a CurrentUser."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Not authenticated. Provide a Bearer token.")

    claims = decode_access_token(credentials.credentials)
    if not claims:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(claims.get("sub"))
        role = Role(claims.get("role"))
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError("User not found")
    if not user.active:
        logger.warning(f"🔒 Inactive user {user_id} attempted access")
        raise PermissionDeniedError("User is inactive")

    membership = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role == role.value, UserRole.active.is_(True))
        .first()
    )
    if not membership:
        logger.warning(f"🔒 User {user_id} no longer holds role {role.value}")
        raise PermissionDeniedError("Role is not active for this user")

    return CurrentUser(
        id=user.id,
        name=user.name,
        email=user.email,
        role=role,
        capabilities=capabilities_for(role),
    )


def require_permission(action: Capability):
    """
    Create a dependency that only lets callers holding `action` through.

    Example usage:
        @router.post("/{appointment_id}/confirm")
        async def confirm(current_user: CurrentUser = Depends(require_permission(Capability.APPOINTMENTS_CONFIRM))):
            ...
    """

    def permission_checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_permission(current_user.role, action):
            logger.info(
                f"🚫 {current_user.role.value} {current_user.id} denied {action.value}"
            )
            raise PermissionDeniedError("Access denied")
        return current_user

    return permission_checker


def forbid_owner_delete(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """The owner inactivates records instead of deleting them."""
    if current_user.role == Role.OWNER and not has_permission(Role.OWNER, Capability.RECORDS_DELETE):
        raise PermissionDeniedError("Owner cannot delete records; inactivate them instead")
    return current_user
