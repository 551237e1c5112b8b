"""Error taxonomy shared by every layer.

Each error is an ``HTTPException`` so services can raise it directly and
FastAPI answers with the matching status code.
"""

from typing import Any, Optional

from fastapi import HTTPException


class SalonError(HTTPException):
    status_code = 500
    default_detail = "Internal error"

    def __init__(self, detail: Optional[Any] = None, headers: Optional[dict] = None):
        super().__init__(
            status_code=self.status_code,
            detail=detail if detail is not None else self.default_detail,
            headers=headers,
        )


class ValidationError(SalonError):
    """Malformed or missing input."""

    status_code = 400
    default_detail = "Invalid request"


class NotFoundError(SalonError):
    status_code = 404
    default_detail = "Not found"


class ConflictError(SalonError):
    """Slot taken, duplicate email and similar constraint violations."""

    status_code = 409
    default_detail = "Conflict"


class PermissionDeniedError(SalonError):
    status_code = 403
    default_detail = "Forbidden"


class AuthenticationError(SalonError):
    status_code = 401
    default_detail = "Not authenticated"

    def __init__(self, detail: Optional[Any] = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class TransientStoreError(SalonError):
    """The database failed underneath us. Not retried."""

    status_code = 500
    default_detail = "Database error"
