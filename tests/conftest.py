"""
Pytest configuration and fixtures
"""
import os

# Point the app at a shared in-memory database and keep external services
# unconfigured before anything from beautybook is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-jwt-secret"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"
for name in (
    "DODO_PAYMENTS_API_KEY",
    "DODO_PAYMENTS_WEBHOOK_SECRET",
    "DODO_ADHOC_PRODUCT_ID",
    "RESEND_API_KEY",
    "TWILIO_ACCOUNT_SID",
    "TWILIO_AUTH_TOKEN",
    "TWILIO_PHONE_NUMBER",
    "GOOGLE_CLIENT_ID",
    "GOOGLE_CLIENT_SECRET",
):
    os.environ[name] = ""

from datetime import date, datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi import Depends  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from beautybook.config import AUTH_JWT_ALGORITHM, AUTH_JWT_SECRET  # noqa: E402
from beautybook.database import Base, SessionLocal, engine, get_db  # noqa: E402
from beautybook.domain.appointments.router import get_booking_service  # noqa: E402
from beautybook.domain.appointments.service import BookingService  # noqa: E402
from beautybook.main import app  # noqa: E402
from beautybook.models import (  # noqa: E402
    ROLE_PROVIDER,
    Appointment,
    Availability,
    CustomerProfile,
    ProviderProfile,
    Service,
    Staff,
    User,
)

# Monday 7 January 2030 is the booking day used throughout the suite
MONDAY = date(2030, 1, 7)
SUNDAY_NOON = datetime(2030, 1, 6, 12, 0)


class Clock:
    """Mutable clock handed to BookingService by the client fixture"""

    def __init__(self, now: datetime):
        self.now = now


@pytest.fixture
def clock():
    return Clock(SUNDAY_NOON)


@pytest.fixture(scope="function")
def db_session():
    """Fresh tables per test on the shared in-memory engine"""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session, clock):
    """Test client whose booking service runs on the test clock"""

    def booking_service_override(db: Session = Depends(get_db)) -> BookingService:
        return BookingService(db, now=clock.now)

    app.dependency_overrides[get_booking_service] = booking_service_override
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(auth_id: str, email: str, **claims) -> str:
    return jwt.encode({"sub": auth_id, "email": email, **claims}, AUTH_JWT_SECRET, algorithm=AUTH_JWT_ALGORITHM)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {make_token(user.auth_id, user.email)}"}


@pytest.fixture
def provider_user(db_session):
    """Provider open Monday 09:00-17:00 with the STANDARD cancellation policy"""
    user = User(auth_id="provider-auth", email="glow@example.com", first_name="Gina", role=ROLE_PROVIDER)
    db_session.add(user)
    db_session.flush()
    profile = ProviderProfile(
        user_id=user.id,
        business_name="Glow Studio",
        address="12 Main St",
        city="Springfield",
        booking_slug="glow-studio",
        cancellation_policy="STANDARD",
    )
    db_session.add(profile)
    db_session.flush()
    db_session.add(Availability(provider_id=profile.id, day_of_week=1, start_time="09:00", end_time="17:00"))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def provider(provider_user):
    return provider_user.provider_profile


@pytest.fixture
def facial(db_session, provider):
    """60 minute service below the deposit threshold"""
    service = Service(provider_id=provider.id, name="Hydrating Facial", duration=60, price=80, category="Skin")
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def color(db_session, provider):
    """90 minute service that requires a deposit"""
    service = Service(provider_id=provider.id, name="Full Color", duration=90, price=150, category="Hair")
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def stylist(db_session, provider):
    staff = Staff(provider_id=provider.id, name="Sam Rivera", title="Stylist")
    db_session.add(staff)
    db_session.commit()
    db_session.refresh(staff)
    return staff


@pytest.fixture
def customer(db_session):
    user = User(auth_id="customer-auth", email="jane@example.com", first_name="Jane", last_name="Doe")
    db_session.add(user)
    db_session.flush()
    db_session.add(CustomerProfile(user_id=user.id, phone="+15555550100"))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def other_customer(db_session):
    user = User(auth_id="other-auth", email="max@example.com", first_name="Max")
    db_session.add(user)
    db_session.flush()
    db_session.add(CustomerProfile(user_id=user.id))
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def make_appointment(db_session, customer, provider, facial):
    """Factory inserting an appointment directly"""

    def _make(start_time="10:00", end_time="11:00", status="CONFIRMED", day=MONDAY, **fields):
        appointment = Appointment(
            customer_id=fields.pop("customer_id", customer.id),
            provider_id=provider.id,
            service_id=fields.pop("service_id", facial.id),
            date=day,
            start_time=start_time,
            end_time=end_time,
            status=status,
            amount=fields.pop("amount", facial.price),
            cancellation_policy=provider.cancellation_policy,
            **fields,
        )
        db_session.add(appointment)
        db_session.commit()
        db_session.refresh(appointment)
        return appointment

    return _make


# Test markers
def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
