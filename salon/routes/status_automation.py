"""
API endpoint for appointment status automation
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import CurrentUser, require_permission
from ..database import get_db
from ..permissions import Capability
from ..services.status_automation import appointment_sweeper

router = APIRouter(prefix="/status", tags=["status"])


class AutomationResult(BaseModel):
    skipped: bool = False
    started: int = 0
    no_show: int = 0
    total_updated: int = 0
    grace_minutes: Optional[int] = None


class SweepState(BaseModel):
    running: bool
    last_run_at: Optional[datetime] = None
    last_summary: Optional[dict] = None
    skipped_runs: int


@router.post("/automation/run", response_model=AutomationResult)
def run_status_automation(
    current_user: CurrentUser = Depends(require_permission(Capability.CONFIG_UPDATE)),
    db: Session = Depends(get_db),
):
    """
    Manually trigger the appointment sweep
    (normally run every minute in-process or by the arq worker)
    """
    result = appointment_sweeper.run_once(db)
    if result is None:
        return AutomationResult(skipped=True)
    return AutomationResult(**result)


@router.get("/automation", response_model=SweepState)
async def get_status_automation(
    current_user: CurrentUser = Depends(require_permission(Capability.CONFIG_VIEW)),
):
    return SweepState(
        running=appointment_sweeper.running,
        last_run_at=appointment_sweeper.last_run_at,
        last_summary=appointment_sweeper.last_summary,
        skipped_runs=appointment_sweeper.skipped_runs,
    )
