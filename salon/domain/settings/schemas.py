"""Settings schemas"""

from typing import Any

from pydantic import BaseModel


class NoShowGraceUpdate(BaseModel):
    # Validated by the service so bad input answers 400 with the range message
    value: Any = None


class NoShowGraceResponse(BaseModel):
    key: str
    value: int
