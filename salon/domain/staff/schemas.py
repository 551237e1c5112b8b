"""Staff domain schemas"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ..accounts.schemas import AddressOut, PersonFields

STAFF_ROLES = ("staff", "manager")


class StaffPermissions(BaseModel):
    canSchedule: Optional[bool] = None
    canSell: Optional[bool] = None
    canViewReports: Optional[bool] = None
    canManage: Optional[bool] = None

    def as_columns(self, only_set: bool = True) -> dict:
        mapping = {
            "canSchedule": "can_schedule",
            "canSell": "can_sell",
            "canViewReports": "can_view_reports",
            "canManage": "can_manage",
        }
        fields = self.model_fields_set if only_set else mapping.keys()
        return {mapping[name]: bool(getattr(self, name)) for name in fields if name in mapping}


class StaffCreate(PersonFields):
    """Name, email, phone and an address are required. Password is optional."""

    permissions: Optional[StaffPermissions] = None


class StaffUpdate(PersonFields):
    permissions: Optional[StaffPermissions] = None


class RoleChange(BaseModel):
    role: str

    @field_validator("role")
    @classmethod
    def check_role(cls, v):
        v = (v or "").strip().lower()
        if v not in STAFF_ROLES:
            raise ValueError("Role must be staff or manager")
        return v


class StaffResponse(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    birthDate: Optional[date] = None
    active: bool
    role: Optional[str] = None
    canSchedule: bool = False
    canSell: bool = False
    canViewReports: bool = False
    canManage: bool = False
    createdAt: Optional[datetime] = None
    address: Optional[AddressOut] = None
