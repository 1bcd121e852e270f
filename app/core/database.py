"""
Async engine and session handling for the audit store.

Two ways in:
- `get_session`: FastAPI dependency, one session per request
- `get_session_context`: for the recorder and scripts, which write outside a request

Both read the module-level `async_session_factory` at call time, so swapping
it (tests do) redirects every caller.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel

from app.core.config import get_settings

settings = get_settings()


def engine_options(database_url: str, *, echo: bool = False) -> dict[str, Any]:
    """Keyword arguments for `create_async_engine` suited to the URL's backend."""
    options: dict[str, Any] = {"echo": echo}
    if make_url(database_url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
        options["pool_recycle"] = 1800
    return options


engine = create_async_engine(
    settings.database_url,
    **engine_options(settings.database_url, echo=settings.debug),
)

async_session_factory = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def init_db() -> None:
    """Create all tables (local setups only; deployments run the Alembic migration)."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def ping() -> None:
    """Round-trip a trivial query. Raises if the database is unreachable."""
    async with async_session_factory() as session:
        await session.execute(text("SELECT 1"))


@asynccontextmanager
async def get_session_context() -> AsyncGenerator[AsyncSession, None]:
    """One transaction outside a request: commit on exit, roll back on error."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: the same transaction scope, one per request."""
    async with get_session_context() as session:
        yield session
