from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .enums import DEFAULT_APPOINTMENT_STATUS, OrderStatus


class Address(Base):
    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, index=True)
    postal_code = Column(String(20), nullable=True)
    street = Column(String(255), nullable=True)
    district = Column(String(120), nullable=True)
    city = Column(String(120), nullable=True)
    complement = Column(String(255), nullable=True)


class User(Base):
    """A person: client, employee, manager or owner. Roles live in UserRole."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(30), nullable=True)
    birth_date = Column(Date, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    address_id = Column(Integer, ForeignKey("addresses.id"), nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now())

    address = relationship("Address")
    credential = relationship(
        "Credential", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")


class Credential(Base):
    __tablename__ = "credentials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    login_email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)  # NULL until a password is set

    user = relationship("User", back_populates="credential")


class UserRole(Base):
    """Role membership. Staff rows also carry the per-employee permission flags."""

    __tablename__ = "user_roles"
    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(20), nullable=False, index=True)  # client, staff, manager, owner
    active = Column(Boolean, default=True, nullable=False)
    can_schedule = Column(Boolean, default=False, nullable=False)
    can_sell = Column(Boolean, default=False, nullable=False)
    can_view_reports = Column(Boolean, default=False, nullable=False)
    can_manage = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=False), server_default=func.now())

    user = relationship("User", back_populates="roles")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    duration_minutes = Column(Integer, nullable=True)  # NULL means "use the 30 minute default"
    price = Column(Float, nullable=False, default=0.0)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=False), server_default=func.now())


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_staff_date", "staff_id", "date"),)

    id = Column(Integer, primary_key=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    # date + start_time, kept so the sweep can run as plain conditional UPDATEs
    starts_at = Column(DateTime(timezone=False), nullable=False, index=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default=DEFAULT_APPOINTMENT_STATUS.value, nullable=False, index=True)
    checked_in_at = Column(DateTime(timezone=False), nullable=True)  # presence confirmed by the client
    created_at = Column(DateTime(timezone=False), server_default=func.now())
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    staff = relationship("User", foreign_keys=[staff_id])
    service_items = relationship(
        "AppointmentServiceItem",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentServiceItem.id",
    )
    payment_items = relationship(
        "AppointmentPaymentItem",
        back_populates="appointment",
        cascade="all, delete-orphan",
        order_by="AppointmentPaymentItem.id",
    )


class AppointmentServiceItem(Base):
    __tablename__ = "appointment_services"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, nullable=True)  # price captured at booking time
    notes = Column(Text, nullable=True)

    appointment = relationship("Appointment", back_populates="service_items")
    service = relationship("Service")


class AppointmentPaymentItem(Base):
    __tablename__ = "appointment_payments"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, index=True)
    method_id = Column(Integer, nullable=True)
    method = Column(String(50), nullable=True)  # cash, card, pix...
    amount = Column(Float, nullable=False)
    reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now())

    appointment = relationship("Appointment", back_populates="payment_items")


class Order(Base):
    """A sale. Immutable after creation except for status corrections."""

    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=True, index=True)
    client_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    total = Column(Float, nullable=False, default=0.0)
    status = Column(String(20), default=OrderStatus.COMPLETED.value, nullable=False)
    created_at = Column(DateTime(timezone=False), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now())

    client = relationship("User", foreign_keys=[client_id])
    service_items = relationship(
        "OrderServiceItem", back_populates="order", cascade="all, delete-orphan"
    )
    payment_items = relationship(
        "OrderPaymentItem", back_populates="order", cascade="all, delete-orphan"
    )


class OrderServiceItem(Base):
    __tablename__ = "order_services"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="service_items")
    service = relationship("Service")


class OrderPaymentItem(Base):
    __tablename__ = "order_payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    method_id = Column(Integer, nullable=True)
    method = Column(String(50), nullable=True)
    amount = Column(Float, nullable=False)
    reference = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=False), server_default=func.now())

    order = relationship("Order", back_populates="payment_items")


class Configuration(Base):
    """Runtime settings as key/value rows (e.g. no_show_grace)."""

    __tablename__ = "configuration"

    key = Column(String(100), primary_key=True)
    value = Column(String(255), nullable=False)
    updated_at = Column(DateTime(timezone=False), server_default=func.now(), onupdate=func.now())
