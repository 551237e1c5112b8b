"""Settings router - runtime configuration endpoints"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import CurrentUser, require_permission
from ...database import get_db
from ...permissions import Capability
from .schemas import NoShowGraceResponse, NoShowGraceUpdate
from .service import NO_SHOW_GRACE_KEY, SettingsService

router = APIRouter(prefix="/config", tags=["Configuration"])


def get_settings_service(db: Session = Depends(get_db)) -> SettingsService:
    """Dependency injection for SettingsService"""
    return SettingsService(db)


@router.get("", response_model=dict[str, str])
async def get_config(
    current_user: CurrentUser = Depends(require_permission(Capability.CONFIG_VIEW)),
    service: SettingsService = Depends(get_settings_service),
):
    """All settings as a key → value map"""
    return service.get_settings()


@router.put("/no_show_grace", response_model=NoShowGraceResponse)
async def update_no_show_grace(
    data: NoShowGraceUpdate,
    current_user: CurrentUser = Depends(require_permission(Capability.CONFIG_UPDATE)),
    service: SettingsService = Depends(get_settings_service),
):
    """Set the no-show grace period (0-240 minutes). Takes effect on the next sweep."""
    minutes = service.update_no_show_grace(data.value)
    return NoShowGraceResponse(key=NO_SHOW_GRACE_KEY, value=minutes)
