"""
Client notifications for appointment events

Delivery is best-effort: a failed notification is logged and never fails
the status change that triggered it. Notices are built while the request's
session is open and sent afterwards as a background task.
"""

import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..config import NOTIFICATION_TIMEOUT_SECONDS, NOTIFICATION_WEBHOOK_URL
from ..models import Appointment, User

logger = logging.getLogger(__name__)

CONFIRMATION = "confirmation"


def build_message(appointment: Appointment) -> str:
    return (
        f"Your appointment #{appointment.id} on {appointment.date.isoformat()} "
        f"at {appointment.start_time.strftime('%H:%M')} is confirmed."
    )


def build_client_notice(db: Session, appointment: Appointment, kind: str = CONFIRMATION) -> Optional[dict]:
    """Snapshot everything the notification needs. None when the client is gone."""
    client = db.query(User).filter(User.id == appointment.client_id).first()
    if not client:
        logger.debug(f"⚠️ No client found for appointment {appointment.id}, skipping notification")
        return None
    return {
        "type": kind,
        "appointmentId": appointment.id,
        "clientId": client.id,
        "email": client.email,
        "phone": client.phone,
        "message": build_message(appointment),
    }


async def send_client_notice(notice: dict, webhook_url: Optional[str] = None) -> dict:
    """
    Deliver a notice built by `build_client_notice`.

    Posts to the notification webhook when one is configured, otherwise the
    message is only logged.

    Returns:
        Dict with `sent` and `error` keys
    """
    result = {"sent": False, "error": None}
    url = webhook_url if webhook_url is not None else NOTIFICATION_WEBHOOK_URL
    kind = notice.get("type")
    appointment_id = notice.get("appointmentId")

    if not url:
        logger.info(f"📧 Client notification ({notice.get('email')}): {notice.get('message')}")
        result["sent"] = True
        return result

    try:
        async with httpx.AsyncClient() as client:
            response = await client.post(url, json=notice, timeout=NOTIFICATION_TIMEOUT_SECONDS)
        response.raise_for_status()
        result["sent"] = True
        logger.info(f"✅ {kind} notification sent for appointment {appointment_id}")
    except httpx.HTTPError as e:
        result["error"] = str(e)
        logger.error(f"❌ Failed to send {kind} notification for appointment {appointment_id}: {e}")

    return result
