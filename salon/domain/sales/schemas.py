"""Sales schemas"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...enums import OrderStatus
from ..scheduling.schemas import PaymentLineItemIn, ServiceLineItemIn


class SaleCreate(BaseModel):
    clientId: Optional[int] = None
    staffId: Optional[int] = None
    appointmentId: Optional[int] = None
    total: Optional[float] = None
    services: list[ServiceLineItemIn] = Field(default_factory=list)
    payments: list[PaymentLineItemIn] = Field(default_factory=list)
    # Shortcut for a single payment of the whole total
    paymentMethod: Optional[str] = None
    paymentMethodId: Optional[int] = None

    @field_validator("total")
    @classmethod
    def check_total(cls, v):
        if v is not None and v < 0:
            raise ValueError("Total cannot be negative")
        return v


class SaleStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def check_status(cls, v):
        allowed = {s.value.lower(): s.value for s in OrderStatus}
        key = (v or "").strip().lower()
        if key not in allowed:
            raise ValueError(f"Status must be one of: {', '.join(allowed.values())}")
        return allowed[key]


class SaleServiceOut(BaseModel):
    serviceId: int
    serviceName: Optional[str] = None
    quantity: int
    unitPrice: Optional[float] = None
    notes: Optional[str] = None


class SalePaymentOut(BaseModel):
    methodId: Optional[int] = None
    method: Optional[str] = None
    amount: float
    reference: Optional[str] = None


class SaleResponse(BaseModel):
    id: int
    appointmentId: Optional[int] = None
    clientId: int
    clientName: Optional[str] = None
    staffId: Optional[int] = None
    total: float
    status: str
    createdAt: Optional[datetime] = None
    services: list[SaleServiceOut] = Field(default_factory=list)
    payments: list[SalePaymentOut] = Field(default_factory=list)


class SaleCreated(BaseModel):
    id: int
    total: float
    appointmentStatus: Optional[str] = None
    message: str = "Sale registered"
