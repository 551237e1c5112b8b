"""Client domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel

from ..accounts.schemas import AddressOut, PersonFields


class ClientCreate(PersonFields):
    """Schema for creating a new client (name, email, phone and password required)"""


class ClientUpdate(PersonFields):
    """Schema for updating an existing client"""


class ClientResponse(BaseModel):
    """Schema for client response"""

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    birthDate: Optional[date] = None
    active: bool
    createdAt: Optional[datetime] = None
    address: Optional[AddressOut] = None
