import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import CurrentUser, get_current_user
from ..config import LOGIN_RATE_LIMIT, LOGIN_RATE_WINDOW_SECONDS
from ..database import get_db
from ..domain.accounts.schemas import CreatedResponse, LoginRequest, LoginResponse
from ..domain.accounts.service import AccountService
from ..domain.clients.schemas import ClientCreate
from ..domain.clients.service import ClientService
from ..rate_limiter import create_rate_limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

login_rate_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="login"
)
register_rate_limit = create_rate_limiter(
    limit=LOGIN_RATE_LIMIT, window_seconds=LOGIN_RATE_WINDOW_SECONDS, key_prefix="register"
)


@router.post("/login", response_model=LoginResponse)
async def login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    _rate_limit: None = Depends(login_rate_limit),
):
    """
    Exchange email and password for a bearer token.

    `role` selects the role the session acts under; "admin" picks the
    highest administrative role held.
    """
    return AccountService(db).login(data)


@router.post("/register", response_model=CreatedResponse, status_code=201)
async def register(
    data: ClientCreate,
    db: Session = Depends(get_db),
    _rate_limit: None = Depends(register_rate_limit),
):
    """Public client signup"""
    client = ClientService(db).create_client(data)
    logger.info(f"🆕 Client {client.id} registered")
    return {"id": client.id, "message": "Registration complete"}


@router.get("/me")
async def me(current_user: CurrentUser = Depends(get_current_user)):
    return {
        "id": current_user.id,
        "name": current_user.name,
        "email": current_user.email,
        "role": current_user.role.value,
        "capabilities": sorted(c.value for c in current_user.capabilities),
    }
