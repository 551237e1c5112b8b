"""In-process locks serializing bookings per (staff member, day)"""

import logging
import threading
from contextlib import contextmanager
from datetime import date
from typing import Optional

from ...config import BOOKING_LOCK_TIMEOUT
from ...errors import ConflictError

logger = logging.getLogger(__name__)


class StaffDayLocks:
    """
    One lock per (staff_id, day). Two bookings for the same staff member on
    the same day run their availability check and insert one after the other.
    """

    def __init__(self, timeout: float = BOOKING_LOCK_TIMEOUT):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: dict[tuple[int, date], threading.Lock] = {}

    def _lock_for(self, staff_id: int, day: date) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault((staff_id, day), threading.Lock())

    @contextmanager
    def hold(self, staff_id: int, day: date, timeout: Optional[float] = None):
        lock = self._lock_for(staff_id, day)
        wait = self.timeout if timeout is None else timeout
        if not lock.acquire(timeout=wait):
            logger.warning(f"⏳ Booking lock timeout for staff {staff_id} on {day}")
            raise ConflictError("Schedule is busy, try again")
        try:
            yield
        finally:
            lock.release()

    def prune(self, before: date) -> int:
        """Drop idle locks for days earlier than `before`. Returns how many were dropped."""
        with self._guard:
            stale = [k for k, v in self._locks.items() if k[1] < before and not v.locked()]
            for key in stale:
                del self._locks[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._locks)


booking_locks = StaffDayLocks()
