"""
Automated status transitions for appointments
Handles Scheduled/Confirmed → InProgress once the start time arrives
Handles InProgress → NoShow once the grace period has elapsed without a check-in
"""

import asyncio
import logging
import threading
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import SessionLocal
from ..domain.scheduling.locks import booking_locks
from ..domain.settings.service import get_no_show_grace
from ..enums import AppointmentStatus
from ..errors import TransientStoreError
from ..models import Appointment

logger = logging.getLogger(__name__)


def update_appointment_statuses(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Advance appointment statuses based on the clock.
    Should be run periodically (every minute)

    Both steps are single conditional UPDATEs; a second run with nothing
    eligible changes nothing.

    Returns:
        dict: Summary of status changes made
    """
    now = now or datetime.now()
    grace_minutes = get_no_show_grace(db)

    summary = {
        "started": 0,
        "no_show": 0,
        "total_updated": 0,
        "grace_minutes": grace_minutes,
    }

    try:
        # 1. SCHEDULED/CONFIRMED → IN PROGRESS (start time has arrived)
        summary["started"] = (
            db.query(Appointment)
            .filter(
                Appointment.status.in_(
                    [AppointmentStatus.SCHEDULED.value, AppointmentStatus.CONFIRMED.value]
                ),
                Appointment.starts_at <= now,
            )
            .update(
                {Appointment.status: AppointmentStatus.IN_PROGRESS.value, Appointment.updated_at: now},
                synchronize_session=False,
            )
        )

        # 2. IN PROGRESS → NO SHOW (grace elapsed and the client never checked in)
        summary["no_show"] = (
            db.query(Appointment)
            .filter(
                Appointment.status == AppointmentStatus.IN_PROGRESS.value,
                Appointment.checked_in_at.is_(None),
                Appointment.starts_at <= now - timedelta(minutes=grace_minutes),
            )
            .update(
                {Appointment.status: AppointmentStatus.NO_SHOW.value, Appointment.updated_at: now},
                synchronize_session=False,
            )
        )

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"❌ Error updating appointment statuses: {str(e)}")
        raise TransientStoreError("Appointment status sweep failed") from e

    summary["total_updated"] = summary["started"] + summary["no_show"]
    if summary["total_updated"]:
        logger.info(f"📊 Appointment sweep summary: {summary}")
    else:
        logger.debug("ℹ️ No appointment status updates needed")
    return summary


class AppointmentSweeper:
    """
    Runs the status sweep without ever overlapping itself. A run that finds
    the previous one still in flight is skipped.
    """

    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self._in_flight = threading.Lock()
        self.last_run_at: Optional[datetime] = None
        self.last_summary: Optional[dict] = None
        self.skipped_runs = 0

    @property
    def running(self) -> bool:
        return self._in_flight.locked()

    def run_once(self, db: Optional[Session] = None, now: Optional[datetime] = None) -> Optional[dict]:
        """Run one sweep. Returns the summary, or None when skipped."""
        if not self._in_flight.acquire(blocking=False):
            self.skipped_runs += 1
            logger.info("⏭️ Appointment sweep still running, skipping this tick")
            return None

        own_session = db is None
        session = self.session_factory() if own_session else db
        try:
            summary = update_appointment_statuses(session, now)
            self.last_run_at = now or datetime.now()
            self.last_summary = summary
            booking_locks.prune(before=self.last_run_at.date())
            return summary
        finally:
            if own_session:
                session.close()
            self._in_flight.release()

    async def run_forever(self, interval_seconds: int) -> None:
        """Sweep every `interval_seconds` until cancelled."""
        logger.info(f"⏱️ Appointment sweep started (every {interval_seconds}s)")
        while True:
            try:
                await asyncio.to_thread(self.run_once)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("❌ Appointment sweep failed, retrying on next tick")
            await asyncio.sleep(interval_seconds)


appointment_sweeper = AppointmentSweeper()
