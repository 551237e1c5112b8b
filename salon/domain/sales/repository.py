from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import Order, OrderPaymentItem, OrderServiceItem, User


class SalesRepository:
    """Repository for orders. Writes are flushed, the caller commits."""

    @staticmethod
    def get_order(db: Session, order_id: int) -> Optional[Order]:
        return (
            db.query(Order)
            .options(
                joinedload(Order.client),
                joinedload(Order.service_items).joinedload(OrderServiceItem.service),
                joinedload(Order.payment_items),
            )
            .filter(Order.id == order_id)
            .first()
        )

    @staticmethod
    def list_orders(
        db: Session,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_ids: Optional[list[int]] = None,
        client_name: Optional[str] = None,
        payment: Optional[str] = None,
        sort: str = "date",
    ) -> list[Order]:
        query = db.query(Order).options(
            joinedload(Order.client),
            joinedload(Order.service_items).joinedload(OrderServiceItem.service),
            joinedload(Order.payment_items),
        )
        if start is not None:
            query = query.filter(Order.created_at >= start)
        if end is not None:
            query = query.filter(Order.created_at < end)
        if client_ids:
            query = query.filter(Order.client_id.in_(client_ids))
        elif client_name:
            query = query.join(User, User.id == Order.client_id).filter(
                User.name.ilike(f"%{client_name}%")
            )
        if payment:
            conditions = [OrderPaymentItem.method.ilike(payment)]
            if payment.isdigit():
                conditions.append(OrderPaymentItem.method_id == int(payment))
            paid_with = db.query(OrderPaymentItem.order_id).filter(or_(*conditions))
            query = query.filter(Order.id.in_(paid_with))

        if sort == "value":
            query = query.order_by(Order.total.desc(), Order.id.desc())
        else:
            query = query.order_by(Order.created_at.desc(), Order.id.desc())
        return query.all()

    @staticmethod
    def add_order(db: Session, **fields) -> Order:
        order = Order(**fields)
        db.add(order)
        db.flush()
        return order

    @staticmethod
    def add_service_items(db: Session, order_id: int, rows: list[dict]) -> None:
        for row in rows:
            db.add(OrderServiceItem(order_id=order_id, **row))
        db.flush()

    @staticmethod
    def add_payment_items(db: Session, order_id: int, rows: list[dict]) -> None:
        for row in rows:
            db.add(OrderPaymentItem(order_id=order_id, **row))
        db.flush()
