"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-that-is-long-enough-for-hs256-signing")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine, event  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from storefront_auth.database import Base, enable_sqlite_foreign_keys, get_db  # noqa: E402
from storefront_auth.models.account import Account  # noqa: E402, F401
from storefront_auth.models.password_reset import PasswordReset  # noqa: E402, F401
from storefront_auth.services.auth import AuthService  # noqa: E402

TEST_PASSWORD = "Passw0rd!"


class RecordingNotifier:
    """Captures notifications instead of sending them."""

    def __init__(self) -> None:
        self.welcome: list[tuple[str, str]] = []
        self.resets: list[tuple[str, str]] = []

    def send_password_reset_email(self, address: str, token: str) -> None:
        self.resets.append((address, token))

    def send_welcome_email(self, address: str, first_name: str) -> None:
        self.welcome.append((address, first_name))


@pytest.fixture(name="db_session")
def db_session_fixture():
    """Create an in-memory SQLite database for tests."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", enable_sqlite_foreign_keys)
    Base.metadata.create_all(bind=engine)
    testing_session_local = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(name="notifier")
def notifier_fixture() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture(name="auth_service")
def auth_service_fixture(notifier: RecordingNotifier) -> AuthService:
    return AuthService(notifier=notifier)


@pytest.fixture(name="client")
def client_fixture(db_session: Session, auth_service: AuthService):
    """Create a test client with overridden DB and auth service dependencies."""
    from main import app
    from storefront_auth.dependencies import get_auth_service

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(name="test_account")
def test_account_fixture(db_session: Session, auth_service: AuthService):
    """Create a test account and return its data and session token."""
    result = auth_service.register(db_session, "test@example.com", TEST_PASSWORD, "Test", "User")
    return {
        "id": result.account.id,
        "email": result.account.email,
        "password": TEST_PASSWORD,
        "token": result.token,
    }


@pytest.fixture(name="deactivate")
def deactivate_fixture(db_session: Session):
    """Flip an account's is_active flag off, as an operator would."""

    def deactivate(account: Account) -> None:
        account.is_active = False
        db_session.commit()

    return deactivate
