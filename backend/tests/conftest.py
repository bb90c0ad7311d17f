import os
import re
import uuid
from datetime import datetime, timedelta, timezone

# Point the app's own engine at SQLite before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from neorelis.core.deps import get_db, get_mail_sink
from neorelis.core.security import create_user_token
from neorelis.main import app
from neorelis.models import Base
from neorelis.services import users as user_service
from neorelis.services.email import MailDeliveryError, MailMessage

CODE_RE = re.compile(r"\b(\d{6})\b")


class FakeMailSink:
    """Records messages instead of sending them; set fail=True to simulate an outage."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send(self, message: MailMessage) -> None:
        if self.fail:
            raise MailDeliveryError("SMTP unreachable")
        self.sent.append(message)

    def last_code(self) -> str:
        return CODE_RE.search(self.sent[-1].text).group(1)


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: int) -> None:
        self.now = self.now + timedelta(minutes=minutes)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def mail_sink():
    return FakeMailSink()


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def client(session_factory, mail_sink):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_mail_sink] = lambda: mail_sink
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    """Create a user directly in the database (verified unless told otherwise)."""

    def _make(username=None, verified=True, password="correct-horse"):
        username = username or f"user{uuid.uuid4().hex[:8]}"
        user = user_service.create_user(
            db,
            email=f"{username}@example.com",
            username=username,
            name=username.capitalize(),
            password=password,
        )
        if verified:
            user = user_service.mark_email_verified(db, user)
        return user

    return _make


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}
