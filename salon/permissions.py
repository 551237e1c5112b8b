"""
Role → capability table.

Every role has an explicit, static capability set. Checks are pure lookups;
callers turn a False into a 403.
"""

from enum import Enum
from typing import Union

from .enums import Role


class Capability(str, Enum):
    # Own records (client self-service)
    SELF_VIEW = "self:view"
    SELF_UPDATE = "self:update"
    SELF_SALES = "self:sales"
    SELF_APPOINTMENTS = "self:appointments"

    CLIENTS_VIEW = "clients:view"
    CLIENTS_MANAGE = "clients:manage"
    CLIENTS_INACTIVATE = "clients:inactivate"

    STAFF_VIEW = "staff:view"
    STAFF_MANAGE = "staff:manage"
    STAFF_INACTIVATE = "staff:inactivate"
    STAFF_PROMOTE = "staff:promote"
    STAFF_DEMOTE = "staff:demote"
    STAFF_ROLE_CHANGE = "staff:role:change"

    SERVICES_CREATE = "services:create"
    SERVICES_UPDATE = "services:update"
    SERVICES_INACTIVATE = "services:inactivate"

    APPOINTMENTS_VIEW = "appointments:view"
    APPOINTMENTS_MANAGE = "appointments:manage"
    APPOINTMENTS_CANCEL = "appointments:cancel"
    APPOINTMENTS_CONFIRM = "appointments:confirm"

    SALES_VIEW = "sales:view"
    SALES_CREATE = "sales:create"
    SALES_CORRECT = "sales:correct"

    REPORTS_VIEW = "reports:view"
    COMMISSION_SELF = "commission:self"
    COMMISSION_ALL = "commission:all"

    CONFIG_VIEW = "config:view"
    CONFIG_UPDATE = "config:update"

    # Physical deletion of records. Granted to nobody: deletes are soft.
    RECORDS_DELETE = "records:delete"


_CLIENT = frozenset(
    {
        Capability.SELF_VIEW,
        Capability.SELF_UPDATE,
        Capability.SELF_SALES,
        Capability.SELF_APPOINTMENTS,
    }
)

_STAFF = frozenset(
    {
        Capability.CLIENTS_VIEW,
        Capability.APPOINTMENTS_VIEW,
        Capability.APPOINTMENTS_MANAGE,
        Capability.APPOINTMENTS_CANCEL,
        Capability.SALES_VIEW,
        Capability.SALES_CREATE,
        Capability.COMMISSION_SELF,
    }
)

_MANAGER = frozenset(
    {
        Capability.CLIENTS_VIEW,
        Capability.CLIENTS_MANAGE,
        Capability.CLIENTS_INACTIVATE,
        Capability.STAFF_VIEW,
        Capability.STAFF_INACTIVATE,
        Capability.APPOINTMENTS_VIEW,
        Capability.APPOINTMENTS_MANAGE,
        Capability.APPOINTMENTS_CANCEL,
        Capability.APPOINTMENTS_CONFIRM,
        Capability.SALES_VIEW,
        Capability.SALES_CREATE,
        Capability.SALES_CORRECT,
        Capability.REPORTS_VIEW,
        Capability.COMMISSION_ALL,
        Capability.CONFIG_VIEW,
        Capability.CONFIG_UPDATE,
    }
)

_OWNER = _MANAGER | frozenset(
    {
        Capability.STAFF_MANAGE,
        Capability.STAFF_PROMOTE,
        Capability.STAFF_DEMOTE,
        Capability.STAFF_ROLE_CHANGE,
        Capability.SERVICES_CREATE,
        Capability.SERVICES_UPDATE,
        Capability.SERVICES_INACTIVATE,
    }
)

ROLE_CAPABILITIES: dict[Role, frozenset] = {
    Role.CLIENT: _CLIENT,
    Role.STAFF: _STAFF,
    Role.MANAGER: _MANAGER,
    Role.OWNER: _OWNER,
}

# Capabilities a role may never hold, whatever the table above says
EXPLICIT_DENIALS: dict[Role, frozenset] = {
    Role.OWNER: frozenset({Capability.RECORDS_DELETE}),
}

# Highest first; used to resolve the "admin" login alias
ADMIN_ROLE_PRECEDENCE = (Role.OWNER, Role.MANAGER, Role.STAFF)


def _as_role(role: Union[Role, str, None]):
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).lower())
    except ValueError:
        return None


def _as_capability(action: Union[Capability, str]):
    if isinstance(action, Capability):
        return action
    try:
        return Capability(action)
    except ValueError:
        return None


def has_permission(role: Union[Role, str, None], action: Union[Capability, str]) -> bool:
    """True when `role` holds `action`. Unknown roles and actions hold nothing."""
    resolved_role = _as_role(role)
    capability = _as_capability(action)
    if resolved_role is None or capability is None:
        return False
    if capability in EXPLICIT_DENIALS.get(resolved_role, frozenset()):
        return False
    return capability in ROLE_CAPABILITIES.get(resolved_role, frozenset())


def capabilities_for(role: Union[Role, str, None]) -> frozenset:
    resolved_role = _as_role(role)
    if resolved_role is None:
        return frozenset()
    return ROLE_CAPABILITIES[resolved_role] - EXPLICIT_DENIALS.get(resolved_role, frozenset())
