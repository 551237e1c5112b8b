"""Session role resolution at login."""
import pytest

from salon.domain.accounts.service import resolve_login_role
from salon.errors import PermissionDeniedError


def test_admin_alias_picks_highest_role():
    assert resolve_login_role(["staff", "owner", "client"], "admin") == "owner"
    assert resolve_login_role(["client", "manager", "staff"], "admin") == "manager"
    assert resolve_login_role(["staff"], "admin") == "staff"


def test_admin_alias_without_admin_roles_is_forbidden():
    with pytest.raises(PermissionDeniedError):
        resolve_login_role(["client"], "admin")


def test_explicit_role_must_be_held():
    assert resolve_login_role(["client", "staff"], "Staff") == "staff"
    with pytest.raises(PermissionDeniedError):
        resolve_login_role(["client"], "manager")


def test_no_role_prefers_client_then_first_held():
    assert resolve_login_role(["staff", "client"], None) == "client"
    assert resolve_login_role(["manager", "staff"], "") == "manager"
