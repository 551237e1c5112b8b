"""Catalog schemas - salon services"""

import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

_DURATION_RE = re.compile(r"^(\d{1,2}):([0-5]\d)(?::([0-5]\d))?$")


def parse_duration(value) -> Optional[int]:
    """Accept "HH:MM[:SS]" or a number of minutes. Returns whole minutes."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValueError("Invalid duration")
    if isinstance(value, (int, float)):
        minutes = int(value)
    else:
        text = str(value).strip()
        if text.isdigit():
            minutes = int(text)
        else:
            match = _DURATION_RE.match(text)
            if not match:
                raise ValueError("Duration must be HH:MM:SS or minutes")
            minutes = int(match.group(1)) * 60 + int(match.group(2))
    if minutes < 0:
        raise ValueError("Duration cannot be negative")
    return minutes


def format_duration(minutes: Optional[int]) -> Optional[str]:
    if minutes is None:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}:00"


class ServiceBase(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None  # minutes; "HH:MM:SS" accepted on input
    price: Optional[float] = None

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v

    @field_validator("duration", mode="before")
    @classmethod
    def check_duration(cls, v):
        return parse_duration(v)

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("Price cannot be negative")
        return v


class ServiceCreate(ServiceBase):
    name: str
    price: float = 0.0


class ServiceUpdate(ServiceBase):
    pass


class ServiceResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    duration: Optional[str] = None
    durationMinutes: Optional[int] = None
    price: float
    active: bool
    createdAt: Optional[datetime] = None
