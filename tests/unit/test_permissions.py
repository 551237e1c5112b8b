"""Role → capability table."""
import pytest

from salon.enums import Role
from salon.permissions import Capability, capabilities_for, has_permission


def test_staff_can_manage_appointments_but_not_confirm():
    assert has_permission(Role.STAFF, Capability.APPOINTMENTS_MANAGE)
    assert not has_permission(Role.STAFF, Capability.APPOINTMENTS_CONFIRM)


def test_manager_confirms_and_edits_config():
    assert has_permission(Role.MANAGER, Capability.APPOINTMENTS_CONFIRM)
    assert has_permission(Role.MANAGER, Capability.CONFIG_UPDATE)
    assert not has_permission(Role.MANAGER, Capability.STAFF_ROLE_CHANGE)


def test_owner_holds_everything_except_physical_delete():
    assert has_permission(Role.OWNER, Capability.STAFF_ROLE_CHANGE)
    assert has_permission(Role.OWNER, Capability.SERVICES_CREATE)
    assert not has_permission(Role.OWNER, Capability.RECORDS_DELETE)
    assert Capability.RECORDS_DELETE not in capabilities_for(Role.OWNER)


def test_client_only_has_self_service():
    assert capabilities_for(Role.CLIENT) == {
        Capability.SELF_VIEW,
        Capability.SELF_UPDATE,
        Capability.SELF_SALES,
        Capability.SELF_APPOINTMENTS,
    }


def test_string_roles_and_actions_are_accepted():
    assert has_permission("manager", "appointments:confirm")
    assert has_permission("OWNER", "services:create")


@pytest.mark.parametrize(
    "role,action",
    [("janitor", "appointments:view"), ("owner", "appointments:fly"), (None, "self:view")],
)
def test_unknown_roles_and_actions_hold_nothing(role, action):
    assert has_permission(role, action) is False
