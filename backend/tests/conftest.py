"""
Gatherly Backend: Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   Every test gets its own in-memory SQLite database (aiosqlite) with the
       full schema created from the model metadata, plus a recording
       LogNotifier in place of real delivery.

Fixture Hierarchy (all function-scoped):
    ├── engine / session_factory / db_session: isolated database
    ├── mock_db_session: AsyncMock session for store-failure paths
    ├── notifier / failing_notifier / strict_failing_notifier: notification collaborators
    ├── make_user, parent, child, guest: persisted users
    └── client: HTTPX AsyncClient against the app, wired to the above
"""

import os

# Override settings BEFORE any gatherly import
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["NOTIFIER_WEBHOOK_URL"] = ""
os.environ["NOTIFICATION_STRICT"] = "false"

from typing import Any, Dict, Optional  # noqa: E402
from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from gatherly.database import Base, get_db_session  # noqa: E402
from gatherly.exceptions import NotificationError  # noqa: E402
from gatherly.models.user import ROLE_CHILD, ROLE_GUEST, ROLE_PARENT, User  # noqa: E402
from gatherly.services.notifications import get_notifier  # noqa: E402
from gatherly.services.notifier_base import LogNotifier, Notification, Notifier  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Database
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def engine():
    """Fresh in-memory database; StaticPool keeps one connection alive."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def mock_db_session():
    """
    AsyncMock standing in for AsyncSession.

    Usage:
        mock_db_session.flush.side_effect = SQLAlchemyError("disk full")
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Notifiers
# ══════════════════════════════════════════════════════════════════════════

class FailingNotifier(Notifier):
    """Rejects every notification with the configured error."""

    def __init__(self, error: Optional[Exception] = None, strict: bool = False):
        super().__init__(strict=strict)
        self.error = error or NotificationError(
            message="The notification could not be delivered.",
            context={"error_type": "ConnectError"},
        )
        self.attempts = 0

    async def notify(self, notification: Notification) -> None:
        self.attempts += 1
        raise self.error

    async def health_check(self) -> bool:
        return False


@pytest.fixture
def notifier():
    return LogNotifier(outbox_size=50)


@pytest.fixture
def failing_notifier():
    return FailingNotifier()


@pytest.fixture
def strict_failing_notifier():
    """Failing notifier built with the strict dispatch policy."""
    return FailingNotifier(strict=True)


# ══════════════════════════════════════════════════════════════════════════
# Users
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_user(db_session):
    """Factory persisting a user with a unique e-mail."""

    async def _make(role: str = ROLE_GUEST, name: Optional[str] = None, email: Optional[str] = None) -> User:
        user = User(
            name=name or f"{role.title()} {uuid4().hex[:4]}",
            email=email or f"{uuid4().hex[:10]}@example.com",
            role=role,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest_asyncio.fixture
async def parent(make_user):
    return await make_user(ROLE_PARENT, name="Pat Parent")


@pytest_asyncio.fixture
async def child(make_user):
    return await make_user(ROLE_CHILD, name="Casey Child")


@pytest_asyncio.fixture
async def guest(make_user):
    return await make_user(ROLE_GUEST, name="Gale Guest")


@pytest.fixture
def as_user():
    """Principal header for requests made on behalf of a user."""

    def _headers(user: User) -> Dict[str, Any]:
        return {"X-User-ID": str(user.id)}

    return _headers


# ══════════════════════════════════════════════════════════════════════════
# API Client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def client(engine, session_factory, notifier, monkeypatch):
    """
    HTTPX AsyncClient against the FastAPI app.

    Sessions come from the per-test database and the notifier is the
    recording `notifier` fixture. raise_app_exceptions=False lets unexpected
    errors come back as the 500 response the error handler produced.
    """
    from gatherly.main import app

    async def override_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_db_session
    app.dependency_overrides[get_notifier] = lambda: notifier
    monkeypatch.setattr("gatherly.routes.health.engine", engine)

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
