"""Settings service - runtime configuration such as the no-show grace period"""

import logging
import math

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...config import NO_SHOW_GRACE_DEFAULT, NO_SHOW_GRACE_MAX, NO_SHOW_GRACE_MIN
from ...database import transaction
from ...errors import ValidationError
from .repository import ConfigurationRepository

logger = logging.getLogger(__name__)

NO_SHOW_GRACE_KEY = "no_show_grace"

# Seeded at startup when missing
DEFAULT_SETTINGS = {
    NO_SHOW_GRACE_KEY: str(NO_SHOW_GRACE_DEFAULT),
}


def get_no_show_grace(db: Session) -> int:
    """
    Current grace period in minutes, read from the database on every call.
    Falls back to the default when the row is missing, unreadable or not a number.
    """
    try:
        raw = ConfigurationRepository.get_value(db, NO_SHOW_GRACE_KEY)
    except SQLAlchemyError as e:
        logger.warning(f"⚠️ Could not read {NO_SHOW_GRACE_KEY}, using default: {e}")
        return NO_SHOW_GRACE_DEFAULT

    if raw is None:
        return NO_SHOW_GRACE_DEFAULT
    try:
        minutes = int(float(raw))
    except (ValueError, OverflowError):
        logger.warning(f"⚠️ Invalid {NO_SHOW_GRACE_KEY} value {raw!r}, using default")
        return NO_SHOW_GRACE_DEFAULT
    # Rows written outside the API may hold anything
    return min(max(minutes, NO_SHOW_GRACE_MIN), NO_SHOW_GRACE_MAX)


def ensure_default_settings(db: Session) -> list[str]:
    """Create missing settings rows. Returns the keys that were created."""
    created = []
    with transaction(db):
        for key, value in DEFAULT_SETTINGS.items():
            if ConfigurationRepository.ensure_value(db, key, value):
                created.append(key)
    if created:
        logger.info(f"⚙️ Seeded default settings: {created}")
    return created


class SettingsService:
    """Service layer for configuration"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConfigurationRepository()

    def get_settings(self) -> dict[str, str]:
        return self.repo.get_all(self.db)

    def update_no_show_grace(self, value) -> int:
        try:
            minutes = float(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(
                f"Invalid value ({NO_SHOW_GRACE_MIN}-{NO_SHOW_GRACE_MAX} minutes)"
            ) from e
        if not math.isfinite(minutes) or not NO_SHOW_GRACE_MIN <= minutes <= NO_SHOW_GRACE_MAX:
            raise ValidationError(f"Invalid value ({NO_SHOW_GRACE_MIN}-{NO_SHOW_GRACE_MAX} minutes)")

        minutes = int(minutes)
        with transaction(self.db):
            self.repo.set_value(self.db, NO_SHOW_GRACE_KEY, str(minutes))
        logger.info(f"⚙️ {NO_SHOW_GRACE_KEY} set to {minutes} minutes")
        return minutes
