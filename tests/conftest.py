"""
CrimeWatch - Test Configuration

Pytest fixtures for API testing.
Provides test client, database and user fixtures.

Environment is set before the application is imported so that the
settings object picks it up.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault("EXPOSE_RESET_TOKENS", "true")
os.environ.setdefault("SESSION_STORE", "database")
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Generator, Optional

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from crimewatch.app import app
from crimewatch.auth.models import User, Role
from crimewatch.auth.password import hash_password
from crimewatch.config import settings
from crimewatch.reports.models import Report, ReportStatus


class RecordingNotifier:
    """Stands in for EmailNotifier; records calls instead of sending mail."""

    def __init__(self):
        self.reports = []
        self.resets = []

    def notify_report_created(self, report, reporter_name=None):
        self.reports.append((report, reporter_name))

    def send_password_reset(self, to_email, username, token):
        self.resets.append((to_email, username, token))


@pytest.fixture(scope="function")
def client() -> Generator[TestClient, None, None]:
    """Test client with a fresh in-memory database per test."""
    with TestClient(app) as c:
        app.state.notifier = RecordingNotifier()
        yield c


@pytest.fixture(scope="function")
def memory_client(monkeypatch) -> Generator[TestClient, None, None]:
    """Test client using the in-memory session store."""
    monkeypatch.setattr(settings, "SESSION_STORE", "memory")
    with TestClient(app) as c:
        app.state.notifier = RecordingNotifier()
        yield c


@pytest.fixture(scope="function")
def notifier(client) -> RecordingNotifier:
    return app.state.notifier


@pytest.fixture(scope="function")
def db_session(client) -> Generator[Session, None, None]:
    """Database session on the client's engine."""
    with Session(app.state.db_engine) as session:
        yield session


def make_user(db: Session, username: str, password: str, role: Role) -> User:
    user = User(
        username=username,
        email=f"{username}@test.com",
        password_hash=hash_password(password),
        role=role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture(scope="function")
def test_admin(db_session) -> User:
    """Create a test admin user."""
    return make_user(db_session, "admin", "AdminPass123", Role.ADMIN)


@pytest.fixture(scope="function")
def test_reporter(db_session) -> User:
    """Create a test reporter user."""
    return make_user(db_session, "reporter", "ReportPass123", Role.REPORTER)


@pytest.fixture(scope="function")
def other_reporter(db_session) -> User:
    """A second reporter, for ownership checks."""
    return make_user(db_session, "bob", "BobPass123", Role.REPORTER)


def make_report(db: Session, reporter_id: int, **overrides) -> Report:
    fields = dict(
        title="Stolen bike",
        description="Bike taken from the rack",
        category="theft",
        location="Main St",
        status=ReportStatus.PENDING,
        reporter_id=reporter_id,
    )
    fields.update(overrides)
    report = Report(**fields)
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


def login_user(client: TestClient, username: str, password: str) -> Optional[dict]:
    """
    Log in and return X-Session-ID headers for that user.

    The cookie jar is cleared so several users can act within one test
    through explicit headers.
    """
    response = client.post(
        "/api/login",
        json={"username": username, "password": password},
    )
    client.cookies.clear()
    if response.status_code != 200:
        return None
    return auth_headers(response.headers["X-Session-ID"])


def auth_headers(session_id: str) -> dict:
    """Create session headers for authenticated requests."""
    return {"X-Session-ID": session_id}


@pytest.fixture(scope="function")
def admin_headers(client, test_admin) -> dict:
    return login_user(client, "admin", "AdminPass123")


@pytest.fixture(scope="function")
def reporter_headers(client, test_reporter) -> dict:
    return login_user(client, "reporter", "ReportPass123")
