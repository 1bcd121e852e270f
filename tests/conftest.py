"""
Shared fixtures: in-memory SQLite for fast tests.

The module-level session factory in app.core.database is patched, so request
sessions and the recorder's own sessions all hit the same test database.
"""

import os

os.environ.setdefault("GHAC_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("GHAC_SECRET_KEY", "test-secret-key-that-is-at-least-32-bytes")

from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core import database
from app.core.auth import create_access_token
from app.main import app
from app.models.audit_log import AuditLog
from app.models.organization import Organization
from app.models.user import User

ORG_ONE = 1
ORG_TWO = 2
OCTOCAT = 7  # member of ORG_ONE
HUBOT = 8  # member of ORG_TWO
DRIFTER = 9  # no organization


def _make_engine():
    return create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
async def engine():
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def db(engine, monkeypatch):
    """Session factory bound to the test database."""
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "async_session_factory", factory)
    return factory


@pytest.fixture
async def broken_db(monkeypatch):
    """Session factory for a database with no tables: every query fails."""
    engine = _make_engine()
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "async_session_factory", factory)
    yield factory
    await engine.dispose()


@pytest.fixture
async def seeded(db):
    """Two organizations, a member of each, and a user with no organization."""
    async with db() as session:
        session.add_all([
            Organization(id=ORG_ONE, login="acme", name="Acme"),
            Organization(id=ORG_TWO, login="globex", name="Globex"),
        ])
        await session.flush()
        session.add_all([
            User(id=OCTOCAT, username="octocat", email="octocat@github.com", organization_id=ORG_ONE),
            User(id=HUBOT, username="hubot", email="hubot@github.com", organization_id=ORG_TWO),
            User(id=DRIFTER, username="drifter", email=None, organization_id=None),
        ])
        await session.commit()
    return db


@pytest.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def at(day: int, hour: int = 12, minute: int = 0) -> datetime:
    """A fixed UTC timestamp in January 2026."""
    return datetime(2026, 1, day, hour, minute, tzinfo=timezone.utc)


async def add_events(factory, *entries: AuditLog) -> None:
    async with factory() as session:
        session.add_all(entries)
        await session.commit()


def event(
    organization_id: int = ORG_ONE,
    action: str = "user_login",
    resource_type: str = "user",
    resource_id: str = "7",
    user_id=OCTOCAT,
    details=None,
    created_at=None,
) -> AuditLog:
    entry = AuditLog(
        organization_id=organization_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        details=details if details is not None else {},
    )
    if created_at is not None:
        entry.created_at = created_at
        entry.updated_at = created_at
    return entry
