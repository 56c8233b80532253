"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_MIN_COST", "true")
os.environ.setdefault("MAIL_DELIVERY_METHOD", "test")

import re  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.database import Base, get_db  # noqa: E402
from app.models.micropost import Micropost  # noqa: E402, F401
from app.models.user import User  # noqa: E402
from app.services.credentials import get_credential_service  # noqa: E402
from app.services.mailer import get_mailer  # noqa: E402

PASSWORD = "password"


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
def mailer_fixture():
    """The shared mailer with an empty outbox."""
    mailer = get_mailer()
    mailer.deliveries.clear()
    yield mailer
    mailer.deliveries.clear()


@pytest.fixture(name="client")
def client_fixture(db_session: Session, mailer):
    """Create a test client with overridden DB dependency and disabled rate limiting."""
    from app.rate_limit import limiter
    from main import app

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    limiter.enabled = False
    with TestClient(app) as c:
        yield c
    limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture(name="make_user")
def make_user_fixture(db_session: Session):
    """Factory for persisted users. Activated and non-admin unless told otherwise."""
    credentials = get_credential_service()

    def make_user(
        email: str,
        name: str = "Example User",
        password: str = PASSWORD,
        activated: bool = True,
        admin: bool = False,
    ) -> User:
        user = User(name=name, email=email, activated=activated, admin=admin)
        credentials.set_password(user, password)
        credentials.normalize_email(user)
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return make_user


@pytest.fixture(name="test_user")
def test_user_fixture(make_user) -> User:
    return make_user("michael@example.com", name="Michael Example")


@pytest.fixture(name="other_user")
def other_user_fixture(make_user) -> User:
    return make_user("archer@example.gov", name="Sterling Archer")


@pytest.fixture(name="admin_user")
def admin_user_fixture(make_user) -> User:
    return make_user("admin@example.com", name="Admin User", admin=True)


def log_in_as(client: TestClient, user: User, password: str = PASSWORD, remember_me: bool = False):
    """Log in through the API and return the response."""
    return client.post(
        "/api/v1/auth/login",
        json={"email": user.email, "password": password, "remember_me": remember_me},
    )


def token_from_mail(body: str, path: str) -> str:
    """Pull the raw token out of an activation or reset link."""
    match = re.search(rf"/{path}/([\w\-]+)\?email=", body)
    assert match, f"No {path} link in mail body"
    return match.group(1)
