"""Sales service - register sales and close the appointments they pay for"""

import logging
from datetime import datetime, time, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta
from sqlalchemy.orm import Session

from ...auth import CurrentUser
from ...database import transaction
from ...enums import AppointmentStatus, OrderStatus, Role
from ...errors import NotFoundError, PermissionDeniedError, ValidationError
from ...models import Appointment, Order
from ...permissions import Capability
from ..accounts.repository import AccountRepository
from ..scheduling.lifecycle import AppointmentLifecycle
from ..scheduling.service import payment_rows, service_rows
from ..scheduling.time_calculator import parse_date_field
from .repository import SalesRepository
from .schemas import SaleCreate

logger = logging.getLogger(__name__)

PERIODS = ("last7", "month", "3months", "6months", "year", "lastyear", "custom")


def period_bounds(
    period: Optional[str],
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Optional[datetime], Optional[datetime]]:
    """
    Translate a period name into a half-open [start, end) datetime range.

    No period means no bounds. `custom` uses startDate/endDate, both
    inclusive days, either of which may be left open.
    """
    if not period:
        return None, None
    now = now or datetime.now()
    today = datetime.combine(now.date(), time.min)

    if period == "last7":
        return today - timedelta(days=7), None
    if period == "month":
        return today.replace(day=1), None
    if period == "3months":
        return today - relativedelta(months=3), None
    if period == "6months":
        return today - relativedelta(months=6), None
    if period == "year":
        return today.replace(month=1, day=1), None
    if period == "lastyear":
        this_year = today.replace(month=1, day=1)
        return this_year - relativedelta(years=1), this_year
    if period == "custom":
        start = parse_date_field(start_date) if start_date else None
        end = parse_date_field(end_date) if end_date else None
        if (start_date and start is None) or (end_date and end is None):
            raise ValidationError("Invalid date format. Use YYYY-MM-DD")
        return (
            datetime.combine(start, time.min) if start else None,
            datetime.combine(end + timedelta(days=1), time.min) if end else None,
        )
    raise ValidationError(f"Unknown period. Use one of: {', '.join(PERIODS)}")


def sale_total(data: SaleCreate) -> float:
    """An explicit total wins, otherwise Σ unit price × quantity."""
    if data.total is not None:
        return round(data.total, 2)
    return round(sum((item.unitPrice or 0) * item.quantity for item in data.services), 2)


def sale_response(order: Order) -> dict:
    return {
        "id": order.id,
        "appointmentId": order.appointment_id,
        "clientId": order.client_id,
        "clientName": order.client.name if order.client else None,
        "staffId": order.staff_id,
        "total": order.total,
        "status": order.status,
        "createdAt": order.created_at,
        "services": [
            {
                "serviceId": item.service_id,
                "serviceName": item.service.name if item.service else None,
                "quantity": item.quantity,
                "unitPrice": item.unit_price,
                "notes": item.notes,
            }
            for item in order.service_items
        ],
        "payments": [
            {
                "methodId": item.method_id,
                "method": item.method,
                "amount": item.amount,
                "reference": item.reference,
            }
            for item in order.payment_items
        ],
    }


class SalesService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = SalesRepository()
        self.accounts = AccountRepository()
        self.lifecycle = AppointmentLifecycle(db)

    def list_sales(
        self,
        current_user: CurrentUser,
        period: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        client_ids: Optional[list[int]] = None,
        client_name: Optional[str] = None,
        payment: Optional[str] = None,
        sort: str = "date",
    ) -> list[Order]:
        if current_user.role == Role.CLIENT:
            if not current_user.can(Capability.SELF_SALES):
                raise PermissionDeniedError("Access denied")
            client_ids, client_name = [current_user.id], None
        elif not current_user.can(Capability.SALES_VIEW):
            raise PermissionDeniedError("Access denied")

        start, end = period_bounds(period, start_date, end_date)
        return self.repo.list_orders(
            self.db,
            start=start,
            end=end,
            client_ids=client_ids,
            client_name=client_name,
            payment=payment,
            sort=sort,
        )

    def get_sale(self, order_id: int, current_user: CurrentUser) -> Order:
        order = self.repo.get_order(self.db, order_id)
        if not order:
            raise NotFoundError("Sale not found")
        if current_user.role == Role.CLIENT:
            if order.client_id != current_user.id:
                raise PermissionDeniedError("Access denied")
        elif not current_user.can(Capability.SALES_VIEW):
            raise PermissionDeniedError("Access denied")
        return order

    def create_sale(self, data: SaleCreate, current_user: CurrentUser) -> dict:
        """
        Register a sale with its items and payments in one transaction.

        A linked appointment that is InProgress is completed in the same
        transaction; in any other state it is left untouched.
        """
        if not data.clientId:
            raise ValidationError("Client is required")
        if not self.accounts.get_user_with_role(self.db, data.clientId, Role.CLIENT.value):
            raise ValidationError("Client not found")

        total = sale_total(data)
        services = service_rows(data.services)
        if len(services) == 1 and services[0]["unit_price"] is None:
            services[0]["unit_price"] = total

        payments = payment_rows(data.payments)
        if not payments and (data.paymentMethod or data.paymentMethodId):
            payments = [
                {
                    "method_id": data.paymentMethodId,
                    "method": data.paymentMethod,
                    "amount": total,
                    "reference": None,
                }
            ]

        appointment_status = None
        with transaction(self.db):
            appointment = None
            if data.appointmentId:
                appointment = (
                    self.db.query(Appointment)
                    .filter(Appointment.id == data.appointmentId)
                    .with_for_update()
                    .first()
                )
                if not appointment:
                    raise ValidationError("Appointment not found")
                if appointment.client_id != data.clientId:
                    raise ValidationError("Appointment belongs to another client")

            staff_id = data.staffId
            if staff_id is None:
                staff_id = appointment.staff_id if appointment else current_user.id

            order = self.repo.add_order(
                self.db,
                appointment_id=data.appointmentId,
                client_id=data.clientId,
                staff_id=staff_id,
                total=total,
                status=OrderStatus.COMPLETED.value,
                created_at=datetime.now(),
            )
            self.repo.add_service_items(self.db, order.id, services)
            self.repo.add_payment_items(self.db, order.id, payments)

            if appointment is not None:
                if appointment.status == AppointmentStatus.IN_PROGRESS.value:
                    self.lifecycle.mark_completed(appointment)
                appointment_status = appointment.status

        logger.info(f"💰 Sale {order.id} registered: client {data.clientId}, total {total:.2f}")
        return {
            "id": order.id,
            "total": total,
            "appointmentStatus": appointment_status,
            "message": "Sale registered",
        }

    def update_status(self, order_id: int, status: str) -> Order:
        """Status correction only. Items, payments and totals never change."""
        with transaction(self.db):
            order = self.db.query(Order).filter(Order.id == order_id).with_for_update().first()
            if not order:
                raise NotFoundError("Sale not found")
            previous = order.status
            order.status = status
        logger.info(f"🔧 Sale {order_id} status corrected: {previous} → {status}")
        return self.repo.get_order(self.db, order_id)
