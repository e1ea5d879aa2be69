"""
Shared fixtures for the session ledger test suite.

Every test gets its own in-memory SQLite database; services commit freely
because nothing outlives the test.
"""

from datetime import datetime, timedelta, timezone
import os
from typing import Any, Callable, Dict, Optional

# Settings are read at import time, so the environment must be in place first.
os.environ["CI"] = "1"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IS_TESTING"] = "true"
os.environ["ENVIRONMENT"] = "test"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["HUNDREDMS_ENABLED"] = "false"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ.pop("CREDIT_EXPIRY_DAYS", None)

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.dependencies.database import get_db
from app.api.dependencies.services import get_notification_client, get_video_client
from app.auth import create_access_token
from app.core.ulid_helper import generate_ulid
from app.database import Base
from app.integrations import FakeHundredMsClient, FakeNotificationClient
from app.main import app
from app.models import (
    CancellationPolicy,
    CreditGrant,
    Practitioner,
    SessionPackage,
    SessionType,
)

WEBHOOK_SECRET = "test-webhook-secret"


@pytest.fixture(scope="function")
def db():
    """Fresh database and session for each test."""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    TestSessionLocal = sessionmaker(bind=test_engine, autoflush=False, expire_on_commit=False)
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def video_client() -> FakeHundredMsClient:
    return FakeHundredMsClient()


@pytest.fixture
def notification_client() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture
def client(db: Session, video_client, notification_client):
    """Create a test client bound to the test database and fake collaborators."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_video_client] = lambda: video_client
    app.dependency_overrides[get_notification_client] = lambda: notification_client

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# Data builders
# ============================================================================


@pytest.fixture
def client_id() -> str:
    return generate_ulid()


@pytest.fixture
def practitioner(db: Session) -> Practitioner:
    practitioner = Practitioner(name="Dr. Rivera", is_active=True)
    db.add(practitioner)
    db.commit()
    return practitioner


@pytest.fixture
def session_type(db: Session) -> SessionType:
    session_type = SessionType(
        name="Individual Therapy",
        duration_minutes=60,
        is_group=False,
        price_usd_cents=10000,
        price_cad_cents=13700,
    )
    db.add(session_type)
    db.commit()
    return session_type


@pytest.fixture
def make_grant(db: Session) -> Callable[..., CreditGrant]:
    """Insert a credit grant directly, bypassing the ledger service."""

    def _make(
        owner_id: str,
        *,
        credits: int = 1,
        remaining: Optional[int] = None,
        session_type_id: Optional[str] = None,
        amount_cents: int = 10000,
        currency: str = "usd",
        purchased_at: Optional[datetime] = None,
        expires_at: Optional[datetime] = None,
    ) -> CreditGrant:
        grant = CreditGrant(
            owner_id=owner_id,
            session_type_id=session_type_id,
            credits_granted=credits,
            credits_remaining=credits if remaining is None else remaining,
            purchased_at=purchased_at or datetime.now(timezone.utc),
            expires_at=expires_at,
            currency=currency,
            amount_cents=amount_cents,
            grant_metadata={},
        )
        db.add(grant)
        db.commit()
        return grant

    return _make


@pytest.fixture
def make_package(db: Session) -> Callable[..., SessionPackage]:
    def _make(session_count: int = 5, session_type_id: Optional[str] = None) -> SessionPackage:
        package = SessionPackage(
            name=f"{session_count}-session bundle",
            session_count=session_count,
            session_type_id=session_type_id,
            price_usd_cents=45000,
        )
        db.add(package)
        db.commit()
        return package

    return _make


@pytest.fixture
def active_policy(db: Session) -> CancellationPolicy:
    """12h standard / 5h late / $25 late fee, one grace cancellation."""
    policy = CancellationPolicy(
        version=1,
        standard_cancellation_hours=12,
        late_cancellation_hours=5,
        late_fees={"usd": 2500, "cad": 3425},
        grace_cancellations_allowed=1,
        is_active=True,
    )
    db.add(policy)
    db.commit()
    return policy


@pytest.fixture
def t0() -> datetime:
    """Fixed 'now' for deterministic policy windows."""
    return datetime.now(timezone.utc).replace(microsecond=0) + timedelta(minutes=1)


# ============================================================================
# Auth helpers
# ============================================================================


def auth_headers_for(subject: str, role: str = "client") -> Dict[str, str]:
    token = create_access_token(data={"sub": subject, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client_id: str) -> Dict[str, str]:
    return auth_headers_for(client_id)


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return auth_headers_for(generate_ulid(), role="admin")


@pytest.fixture
def webhook_headers() -> Dict[str, Any]:
    return {"X-Webhook-Secret": WEBHOOK_SECRET}


@pytest.fixture
def make_headers() -> Callable[..., Dict[str, str]]:
    return auth_headers_for
