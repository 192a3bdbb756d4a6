"""Pytest configuration and fixtures."""

import os

# Must be set before app.config is imported so the app never touches a real database
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.models.user import User  # noqa: E402, F401
from app.services.auth import AuthService  # noqa: E402
from app.services.email import EmailDeliveryError, get_email_service  # noqa: E402


class FakeEmailService:
    """Records outgoing mail instead of talking to an SMTP relay."""

    def __init__(self) -> None:
        self.sent: list[dict] = []
        self.fail = False

    def _record(self, **message) -> None:
        if self.fail:
            raise EmailDeliveryError("relay unavailable")
        self.sent.append(message)

    def send_password_reset(self, to: str, reset_url: str, expire_minutes: int) -> None:
        self._record(to=to, kind="reset", reset_url=reset_url)

    def send_unknown_account_notice(self, to: str) -> None:
        self._record(to=to, kind="unknown")


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="mailer")
def mailer_fixture() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mailer: FakeEmailService):
    """Test client with overridden DB and email dependencies and rate limiting disabled."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: mailer
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="test_user")
def test_user_fixture(db_session: Session):
    """Register user@example.com / secret1 and return its data and a token."""
    from app.services.jwt import get_jwt_service

    result = AuthService().register(db_session, "Test User", "user@example.com", "secret1")

    token = get_jwt_service().create_token(user_id=result.user_id, email=result.email, name=result.name)

    return {
        "user_id": result.user_id,
        "email": result.email,
        "name": result.name,
        "password": "secret1",
        "token": token,
    }
