"""Account schemas shared by clients, staff and registration"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import (
    validate_birth_date,
    validate_email,
    validate_name,
    validate_password,
    validate_phone,
)


class AddressIn(BaseModel):
    postalCode: Optional[str] = None
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    complement: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    def has_values(self) -> bool:
        return any(getattr(self, name) for name in type(self).model_fields)

    def as_columns(self) -> dict:
        return {
            "postal_code": self.postalCode,
            "street": self.street,
            "district": self.district,
            "city": self.city,
            "complement": self.complement,
        }


class AddressOut(BaseModel):
    id: int
    postalCode: Optional[str] = None
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    complement: Optional[str] = None


class PersonFields(BaseModel):
    """Fields every person record accepts. All optional so updates can be partial."""

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    birthDate: Optional[date] = None
    addressId: Optional[int] = None
    address: Optional[AddressIn] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        return validate_name(v)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator("birthDate", mode="before")
    @classmethod
    def check_birth_date(cls, v):
        return validate_birth_date(v)


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None  # "admin" picks the highest administrative role


class LoginUser(BaseModel):
    id: int
    name: str
    email: str
    role: str


class LoginResponse(BaseModel):
    token: str
    user: LoginUser


class CreatedResponse(BaseModel):
    id: int
    message: str


class MessageResponse(BaseModel):
    message: str
