"""Status and role enums."""

from enum import Enum


class Role(str, Enum):
    """Role a user acts under for a session."""

    CLIENT = "client"
    STAFF = "staff"
    MANAGER = "manager"
    OWNER = "owner"


class AppointmentStatus(str, Enum):
    """
    Appointment lifecycle status.

    Flow: Scheduled → Confirmed → InProgress → Completed
              ↘ Cancelled     ↘ Cancelled   ↘ NoShow
    """

    SCHEDULED = "Scheduled"  # Booked, awaiting confirmation
    CONFIRMED = "Confirmed"  # Approved by a manager or the owner
    IN_PROGRESS = "InProgress"  # Client arrived, or the start time passed
    COMPLETED = "Completed"  # Paid through a sale
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"  # Grace period elapsed without presence


TERMINAL_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)


class OrderStatus(str, Enum):
    COMPLETED = "Completed"
    VOIDED = "Voided"
    REFUNDED = "Refunded"


DEFAULT_APPOINTMENT_STATUS = AppointmentStatus.SCHEDULED
