import os
from datetime import datetime, timedelta
from typing import Optional

import pytest
from fastapi.testclient import TestClient

# Settings are read at import time, so they must be in place before the app loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CSRF_ENABLED"] = "false"
os.environ["PROFILE_LOOKUP_RETRY_DELAY"] = "0"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["RAZORPAY_WEBHOOK_SECRET"] = "whsec_test"
os.environ["RESEND_API_KEY"] = ""
os.environ["MSG91_AUTH_KEY"] = ""
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

from homeservices.auth import create_auth_user, create_session_token  # noqa: E402
from homeservices.cache import cache  # noqa: E402
from homeservices.database import Base, SessionLocal, engine, get_db  # noqa: E402
from homeservices.main import app  # noqa: E402
from homeservices.models import (  # noqa: E402
    Address,
    AvailabilitySlot,
    Booking,
    Payment,
    ProfessionalService,
    Profile,
    Review,
    Service,
)
from homeservices.routes.auth import otp_send_rate_limit  # noqa: E402


async def _no_rate_limit():
    return None


@pytest.fixture()
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _no_redis(monkeypatch):
    """CMS cache reads fall through to the database"""
    monkeypatch.setattr(cache, "_get_client", lambda: None)


@pytest.fixture()
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[otp_send_rate_limit] = _no_rate_limit
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def make_user(db):
    counter = {"n": 0}

    def _make(
        role: str = "customer",
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        password: Optional[str] = None,
        is_verified: bool = False,
        **profile_fields,
    ) -> Profile:
        counter["n"] += 1
        user = create_auth_user(
            db,
            email=email or f"{role}{counter['n']}@example.com",
            password=password,
            phone=f"+91{phone}" if phone else None,
            metadata={
                "role": role,
                "full_name": full_name or f"{role.title()} {counter['n']}",
                "phone": phone,
                "is_verified": is_verified,
            },
        )
        profile = db.query(Profile).filter(Profile.id == user.id).one()
        for key, value in profile_fields.items():
            setattr(profile, key, value)
        db.commit()
        db.refresh(profile)
        return profile

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(profile: Profile) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_session_token(profile.user, profile.role)}"}

    return _headers


@pytest.fixture()
def make_service(db):
    def _make(name: str = "Deep Cleaning", category: str = "cleaning", base_price: float = 499.0, **fields) -> Service:
        service = Service(name=name, category=category, base_price=base_price, **fields)
        db.add(service)
        db.commit()
        db.refresh(service)
        return service

    return _make


@pytest.fixture()
def make_offering(db):
    def _make(professional: Profile, service: Service, price: float = 599.0, **fields) -> ProfessionalService:
        offering = ProfessionalService(professional_id=professional.id, service_id=service.id, price=price, **fields)
        db.add(offering)
        db.commit()
        db.refresh(offering)
        return offering

    return _make


@pytest.fixture()
def make_address(db):
    def _make(customer: Profile, **fields) -> Address:
        data = {
            "address_line1": "12 MG Road",
            "city": "Bengaluru",
            "state": "Karnataka",
            "postal_code": "560001",
        }
        data.update(fields)
        address = Address(user_id=customer.id, **data)
        db.add(address)
        db.commit()
        db.refresh(address)
        return address

    return _make


@pytest.fixture()
def make_booking(db):
    def _make(
        customer: Profile,
        service: Service,
        professional: Optional[Profile] = None,
        status: str = "pending",
        final_amount: float = 549.0,
        **fields,
    ) -> Booking:
        booking = Booking(
            customer_id=customer.id,
            professional_id=professional.id if professional else None,
            service_id=service.id,
            status=status,
            scheduled_at=fields.pop("scheduled_at", datetime.utcnow() + timedelta(days=2)),
            total_amount=fields.pop("total_amount", final_amount - 50.0),
            service_fee=fields.pop("service_fee", 50.0),
            discount_amount=0.0,
            final_amount=final_amount,
            **fields,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _make


@pytest.fixture()
def make_payment(db):
    def _make(booking: Booking, status: str = "completed", **fields) -> Payment:
        payment = Payment(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            amount=fields.pop("amount", booking.final_amount),
            status=status,
            payment_gateway="razorpay",
            **fields,
        )
        db.add(payment)
        db.commit()
        db.refresh(payment)
        return payment

    return _make


@pytest.fixture()
def make_review(db):
    def _make(booking: Booking, rating: int = 5, is_visible: bool = True, comment: Optional[str] = None) -> Review:
        review = Review(
            booking_id=booking.id,
            customer_id=booking.customer_id,
            professional_id=booking.professional_id,
            service_id=booking.service_id,
            rating=rating,
            comment=comment,
            is_verified=True,
            is_visible=is_visible,
        )
        db.add(review)
        db.commit()
        db.refresh(review)
        return review

    return _make


@pytest.fixture()
def make_slot(db):
    def _make(professional: Profile, start: Optional[datetime] = None, hours: int = 2, status: str = "available") -> AvailabilitySlot:
        start = start or datetime.utcnow().replace(microsecond=0) + timedelta(days=3)
        slot = AvailabilitySlot(
            professional_id=professional.id, start_time=start, end_time=start + timedelta(hours=hours), status=status
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)
        return slot

    return _make
