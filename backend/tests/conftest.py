"""Pytest fixtures for the mailroom backend.

Provides reusable test fixtures for:
- Database session on an in-memory SQLite engine
- Profiles for every role/plan/KYC combination the access policy cares about
- In-memory fakes for object storage and the payment gateway
- A TestClient wired to all of the above

Usage:
    def test_inbox(client, paid_user, auth_headers):
        response = client.get("/api/v1/mail-items", headers=auth_headers(paid_user))
        assert response.status_code == 200
"""

import sys
import os
from pathlib import Path

# Set environment variables BEFORE any imports to ensure they take effect
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-key-256-bits-minimum-length-required-for-security")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("APP_BASE_URL", "https://mailroom.test")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Dict, Generator, List

backend_src = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(backend_src))

from models import Base, BusinessAccount, Profile
from auth.jwt import create_access_token
from auth.principal import principal_from_profile
from domain.billing.ports import (
    CreatedInvoice,
    InvoiceRequest,
    PaymentGatewayError,
    PaymentGatewayPort,
)
from domain.identity import Principal
from domain.mail.ports import ObjectStoragePort


# Single shared connection so every session sees the same in-memory database
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


from database import get_db as database_get_db


class FakeObjectStorage(ObjectStoragePort):
    """Dict-backed storage; signing a missing key raises like S3 does."""

    def __init__(self):
        self.objects: Dict[str, bytes] = {}

    def store_file(self, storage_key: str, content: bytes, mime_type: str) -> str:
        if not content:
            raise ValueError("Cannot store empty file")
        self.objects[storage_key] = content
        return storage_key

    def file_exists(self, storage_key: str) -> bool:
        return storage_key in self.objects

    def generate_presigned_url(self, storage_key: str, expires_in_seconds: int = 3600) -> str:
        if storage_key not in self.objects:
            raise FileNotFoundError(storage_key)
        return f"https://storage.test/{storage_key}?expires={expires_in_seconds}"


class FakePaymentGateway(PaymentGatewayPort):
    """Records invoice requests; set fail=True to simulate an outage."""

    def __init__(self):
        self.requests: List[InvoiceRequest] = []
        self.fail = False

    def create_invoice(self, request: InvoiceRequest) -> CreatedInvoice:
        self.requests.append(request)
        if self.fail:
            raise PaymentGatewayError("gateway down", status_code=503)
        return CreatedInvoice(
            invoice_id=f"inv-{len(self.requests)}",
            invoice_url=f"https://pay.test/invoices/{len(self.requests)}",
            status="PENDING",
        )


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    """Create a fresh database session for each test.

    Creates all tables before the test and drops them after.
    """
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


def _make_profile(db_session: Session, email: str, **attrs) -> Profile:
    profile = Profile(email=email, **attrs)
    db_session.add(profile)
    db_session.commit()
    db_session.refresh(profile)
    return profile


@pytest.fixture
def paid_user(db_session: Session) -> Profile:
    """END_USER on a paid plan with approved KYC."""
    return _make_profile(
        db_session, "paid@example.com",
        role="END_USER", plan_type="BASIC", kyc_status="APPROVED",
    )


@pytest.fixture
def free_user(db_session: Session) -> Profile:
    return _make_profile(
        db_session, "free@example.com",
        role="END_USER", plan_type="FREE", kyc_status="APPROVED",
    )


@pytest.fixture
def kyc_pending_user(db_session: Session) -> Profile:
    return _make_profile(
        db_session, "pending@example.com",
        role="END_USER", plan_type="BASIC", kyc_status="PENDING",
    )


@pytest.fixture
def operator_user(db_session: Session) -> Profile:
    return _make_profile(db_session, "operator@example.com", role="OPERATOR")


@pytest.fixture
def admin_user(db_session: Session) -> Profile:
    return _make_profile(db_session, "admin@example.com", role="SYSTEM_ADMIN")


@pytest.fixture
def business_account(db_session: Session) -> BusinessAccount:
    account = BusinessAccount(business_name="Acme Trading", kyb_status="APPROVED")
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def business_member(db_session: Session, business_account: BusinessAccount) -> Profile:
    return _make_profile(
        db_session, "member@example.com",
        role="BUSINESS_MEMBER", plan_type="BUSINESS", kyc_status="APPROVED",
        business_account_id=business_account.id,
    )


def as_principal(profile: Profile) -> Principal:
    return principal_from_profile(profile)


@pytest.fixture
def principal_of():
    """Turn a Profile fixture into the Principal services expect."""
    return as_principal


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a profile."""

    def _headers(profile: Profile) -> Dict[str, str]:
        token = create_access_token(profile_id=profile.id, email=profile.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def fake_storage() -> FakeObjectStorage:
    return FakeObjectStorage()


@pytest.fixture
def fake_gateway() -> FakePaymentGateway:
    return FakePaymentGateway()


@pytest.fixture(scope="function")
def client(db_session: Session, fake_storage: FakeObjectStorage, fake_gateway: FakePaymentGateway):
    """Create an unauthenticated test client.

    Redirects are not followed so access decisions can be asserted on.
    """
    from main import app
    from dependencies import get_object_storage, get_payment_gateway

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[database_get_db] = override_get_db
    app.dependency_overrides[get_object_storage] = lambda: fake_storage
    app.dependency_overrides[get_payment_gateway] = lambda: fake_gateway

    yield TestClient(app, follow_redirects=False)

    app.dependency_overrides.clear()
