import os

# In-memory database; must be set before the app modules read their config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SECURITY_HEADERS_ENABLED"] = "true"

from datetime import date, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from pytest_mock import MockerFixture  # noqa: E402

from zentra.auth import get_firebase_claims  # noqa: E402
from zentra.database import Base, SessionLocal, engine  # noqa: E402
from zentra.main import app  # noqa: E402
from zentra.models import Appointment, Business, Client, Service, Staff  # noqa: E402
from zentra.rate_limiter import (  # noqa: E402
    password_reset_limiter,
    sms_verification_limiter,
    support_ticket_limiter,
    voucher_validate_limiter,
)
from zentra.shared.validators import WEEKDAYS  # noqa: E402

OWNER_UID = "owner-1"


async def _no_rate_limit():
    return None


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def mock_send_email(mocker: MockerFixture):
    # Every sender in email_service goes through send_email
    return mocker.patch(
        "zentra.email_service.send_email",
        new_callable=mocker.AsyncMock,
        return_value={"id": "email_123"},
    )


@pytest.fixture
def client():
    app.dependency_overrides[get_firebase_claims] = lambda: {"uid": OWNER_UID}
    for limiter in (
        voucher_validate_limiter,
        sms_verification_limiter,
        password_reset_limiter,
        support_ticket_limiter,
    ):
        app.dependency_overrides[limiter] = _no_rate_limit

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    """Client without the auth override, for public endpoints and auth failures"""
    for limiter in (voucher_validate_limiter, support_ticket_limiter):
        app.dependency_overrides[limiter] = _no_rate_limit
    yield TestClient(app)
    app.dependency_overrides.clear()


# ============================================================================
# SEED DATA
# ============================================================================


@pytest.fixture
def seed_business(db_session):
    now = datetime.utcnow()
    business = Business(
        owner_uid=OWNER_UID,
        business_name="Glow Studio",
        owner_name="Sam Taylor",
        email="owner@glowstudio.co.uk",
        business_type="salon",
        currency="gbp",
        settings={
            "timezone": "Europe/London",
            "currency": "gbp",
            "bookingBuffer": 0,
            "cancellationPolicy": "",
            "depositRequired": True,
            "depositPercentage": 20,
            "notifications": {"email": True, "sms": False},
        },
        trial_start=now,
        trial_end=now + timedelta(days=14),
    )
    db_session.add(business)
    db_session.commit()
    db_session.refresh(business)
    return business


@pytest.fixture
def loyalty_business(db_session, seed_business):
    seed_business.loyalty_program = {
        "active": True,
        "settings": {"pointsPerDollar": 1, "birthdayBonus": 50, "referralBonus": 100, "expirationMonths": 12},
        "rewards": [{"id": "free-blowdry", "name": "Free blow-dry", "pointsCost": 100, "active": True}],
    }
    db_session.commit()
    db_session.refresh(seed_business)
    return seed_business


@pytest.fixture
def seed_service(db_session, seed_business):
    service = Service(
        business_id=seed_business.id,
        name="Cut & Colour",
        category="Hair",
        duration=90,
        price=85.0,
        deposit_required=True,
        active=True,
    )
    db_session.add(service)
    db_session.commit()
    db_session.refresh(service)
    return service


@pytest.fixture
def seed_staff(db_session, seed_business):
    member = Staff(
        business_id=seed_business.id,
        name="Priya Shah",
        email="priya@glowstudio.co.uk",
        role="Senior Stylist",
        services=[],
        schedule={day: [{"start": "09:00", "end": "17:00"}] for day in WEEKDAYS},
        status="active",
    )
    db_session.add(member)
    db_session.commit()
    db_session.refresh(member)
    return member


@pytest.fixture
def seed_client(db_session, seed_business):
    record = Client(
        business_id=seed_business.id,
        name="Jordan Lee",
        email="jordan@example.com",
        phone="+447700900123",
        loyalty_points=0,
        membership_level="bronze",
        total_visits=0,
        total_spent=0.0,
        points_expired=0,
    )
    db_session.add(record)
    db_session.commit()
    db_session.refresh(record)
    return record


@pytest.fixture
def seed_appointment(db_session, seed_business, seed_service, seed_client):
    appointment = Appointment(
        business_id=seed_business.id,
        client_id=seed_client.id,
        service_id=seed_service.id,
        client_name=seed_client.name,
        client_email=seed_client.email,
        client_phone=seed_client.phone,
        service_name=seed_service.name,
        date=date.today() + timedelta(days=1),
        start_time="10:00",
        end_time="11:30",
        duration=90,
        price=85.0,
        status="confirmed",
        payment_status="pending",
        amount_paid=0.0,
        remaining_balance=85.0,
        deposit_amount=17.0,
    )
    db_session.add(appointment)
    db_session.commit()
    db_session.refresh(appointment)
    return appointment
