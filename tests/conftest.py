"""Shared test fixtures."""
import os

# Configure the app for tests before any salon module reads the environment
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["APPOINTMENT_SWEEP_MODE"] = "off"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
os.environ.pop("REDIS_URL", None)
os.environ.pop("REDIS_HOST", None)
os.environ.pop("NOTIFICATION_WEBHOOK_URL", None)

from datetime import date, datetime, time  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from salon.database import Base, get_db  # noqa: E402
from salon.enums import AppointmentStatus, Role  # noqa: E402
from salon.main import app  # noqa: E402
from salon.models import (  # noqa: E402
    Appointment,
    AppointmentServiceItem,
    Credential,
    Service,
    User,
    UserRole,
)
from salon.rate_limiter import reset_rate_limits  # noqa: E402
from salon.security_utils import create_access_token, hash_password  # noqa: E402

DEFAULT_PASSWORD = "Secret#123"

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def fresh_database():
    """Every test starts from empty tables."""
    Base.metadata.create_all(bind=engine)
    reset_rate_limits()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def session_factory():
    return TestingSessionLocal


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# FACTORIES
# ============================================================================


def make_user(
    db,
    name: str,
    email: str,
    role: Role = Role.CLIENT,
    password: str = DEFAULT_PASSWORD,
    active: bool = True,
    extra_roles=(),
    **flags,
) -> User:
    user = User(name=name, email=email, phone="11999998888", active=active)
    db.add(user)
    db.flush()
    db.add(Credential(user_id=user.id, login_email=email, password_hash=hash_password(password)))
    for held in (role, *extra_roles):
        db.add(UserRole(user_id=user.id, role=Role(held).value, active=active, **flags))
    db.commit()
    db.refresh(user)
    return user


def make_service(db, name: str = "Haircut", duration_minutes=30, price: float = 50.0) -> Service:
    service = Service(name=name, duration_minutes=duration_minutes, price=price)
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def make_appointment(
    db,
    client: User,
    staff: User,
    day: date,
    start: time,
    services=(),
    status: AppointmentStatus = AppointmentStatus.SCHEDULED,
    checked_in_at=None,
) -> Appointment:
    appointment = Appointment(
        client_id=client.id,
        staff_id=staff.id if staff else None,
        date=day,
        start_time=start,
        starts_at=datetime.combine(day, start),
        status=status.value,
        checked_in_at=checked_in_at,
    )
    db.add(appointment)
    db.flush()
    for service in services:
        db.add(AppointmentServiceItem(appointment_id=appointment.id, service_id=service.id, quantity=1))
    db.commit()
    db.refresh(appointment)
    return appointment


def auth_headers(user: User, role: Role) -> dict:
    token = create_access_token(user.id, user.name, Role(role).value)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def owner(db):
    return make_user(db, "Olivia Owner", "owner@salon.test", Role.OWNER)


@pytest.fixture
def manager(db):
    return make_user(db, "Mario Manager", "manager@salon.test", Role.MANAGER)


@pytest.fixture
def staff(db):
    return make_user(db, "Sam Stylist", "sam@salon.test", Role.STAFF, can_schedule=True)


@pytest.fixture
def customer(db):
    return make_user(db, "Carla Client", "carla@salon.test", Role.CLIENT)


@pytest.fixture
def haircut(db):
    return make_service(db, "Haircut", 30, 50.0)


@pytest.fixture
def owner_headers(owner):
    return auth_headers(owner, Role.OWNER)


@pytest.fixture
def manager_headers(manager):
    return auth_headers(manager, Role.MANAGER)


@pytest.fixture
def staff_headers(staff):
    return auth_headers(staff, Role.STAFF)


@pytest.fixture
def customer_headers(customer):
    return auth_headers(customer, Role.CLIENT)
