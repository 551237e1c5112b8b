"""Scheduling domain schemas - Pydantic models for appointment requests and responses"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ServiceLineItemIn(BaseModel):
    serviceId: int
    quantity: int = 1
    unitPrice: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        # 0 or missing means one unit
        if v in (None, "", 0):
            return 1
        return v

    @field_validator("quantity")
    @classmethod
    def positive_quantity(cls, v):
        if v < 1:
            raise ValueError("Quantity must be positive")
        return v


class PaymentLineItemIn(BaseModel):
    methodId: Optional[int] = None
    method: Optional[str] = None
    amount: float = 0
    reference: Optional[str] = None


class AppointmentCreate(BaseModel):
    """
    Booking request. Date accepts YYYY-MM-DD or an ISO timestamp, time
    accepts HH:MM or HH:MM:SS; unusable values are rejected with 400.
    """

    clientId: Optional[int] = None
    staffId: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    services: list[ServiceLineItemIn] = Field(default_factory=list)
    payments: list[PaymentLineItemIn] = Field(default_factory=list)
    notes: Optional[str] = None


class AppointmentUpdate(BaseModel):
    """Partial update. Service and payment lists, when present, replace the stored sets."""

    clientId: Optional[int] = None
    staffId: Optional[int] = None
    date: Optional[str] = None
    time: Optional[str] = None
    status: Optional[str] = None
    services: Optional[list[ServiceLineItemIn]] = None
    payments: Optional[list[PaymentLineItemIn]] = None
    notes: Optional[str] = None


class AppointmentCreated(BaseModel):
    id: int
    staffId: Optional[int]
    durationMinutes: int
    message: str = "Appointment created"


class AppointmentUpdated(BaseModel):
    id: int
    staffId: Optional[int]
    durationMinutes: int
    status: str
    message: str = "Appointment updated"


class StatusChangeResponse(BaseModel):
    id: int
    status: str
    message: str


class ServiceLineItemOut(BaseModel):
    id: int
    serviceId: int
    serviceName: Optional[str] = None
    quantity: int
    unitPrice: Optional[float] = None
    notes: Optional[str] = None


class PaymentLineItemOut(BaseModel):
    id: int
    methodId: Optional[int] = None
    method: Optional[str] = None
    amount: float
    reference: Optional[str] = None
    createdAt: Optional[str] = None


class AppointmentSummary(BaseModel):
    """Schema for appointment list rows"""

    id: int
    status: str
    notes: Optional[str] = None
    date: str
    time: str
    clientId: int
    staffId: Optional[int] = None
    clientName: Optional[str] = None
    staffName: Optional[str] = None
    services: str = ""
    durationMinutes: int
    totalDuration: str
    endTime: str


class AppointmentDetail(BaseModel):
    id: int
    status: str
    notes: Optional[str] = None
    date: str
    time: str
    clientId: int
    staffId: Optional[int] = None
    durationMinutes: int
    totalDuration: str
    endTime: str
    checkedInAt: Optional[str] = None
    services: list[ServiceLineItemOut] = Field(default_factory=list)
    payments: list[PaymentLineItemOut] = Field(default_factory=list)


class AvailabilityResponse(BaseModel):
    date: str
    time: str
    durationMinutes: int
    freeStaffIds: list[int]
    suggestedStaffId: Optional[int] = None
