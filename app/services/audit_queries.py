"""
Audit log read side: filtered listing and summary statistics.

Handles:
- Organization-scoped listing with exact, date-range and free-text filters
- Newest-first ordering with a deterministic id tie-break
- 1-indexed pagination
- Top-N grouped counts by action, resource type and actor
- Daily activity trend

Organization membership is not checked here; callers authorize first.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

import sqlalchemy as sa
import structlog
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.audit_log import AuditLog
from app.models.user import User
from ghac_shared.schemas.audit import (
    ActionCount,
    ActivityPoint,
    ActorProfile,
    AuditLogFilters,
    AuditLogPage,
    AuditLogRead,
    AuditStatsResponse,
    ResourceCount,
    UserCount,
)

log = structlog.get_logger()
settings = get_settings()

UNKNOWN_USERNAME = "Unknown"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _date_conditions(
    start_date: Optional[datetime], end_date: Optional[datetime]
) -> list:
    conditions = []
    if start_date:
        conditions.append(AuditLog.created_at >= _as_utc(start_date))
    if end_date:
        conditions.append(AuditLog.created_at <= _as_utc(end_date))
    return conditions


def _details_value_match(pattern: str, dialect: str):
    """EXISTS over the scalar leaves of `details`; keys and JSON syntax never match."""
    if dialect == "sqlite":
        nodes = sa.func.json_tree(AuditLog.details).table_valued("atom", "type")
        return (
            sa.select(sa.literal(1))
            .select_from(nodes)
            .where(
                nodes.c["type"].not_in(["object", "array", "null"]),
                nodes.c.atom.ilike(pattern, escape="\\"),
            )
            .correlate(AuditLog)
            .exists()
        )

    leaf = sa.func.jsonb_path_query(
        AuditLog.details, sa.literal_column("'strict $.**'")
    ).column_valued("leaf")
    leaf_text = leaf.op("#>>", return_type=sa.Text)(sa.literal_column("'{}'"))
    return (
        sa.select(sa.literal(1))
        .where(
            sa.func.jsonb_typeof(leaf).in_(["string", "number", "boolean"]),
            leaf_text.ilike(pattern, escape="\\"),
        )
        .correlate(AuditLog)
        .exists()
    )


def _search_condition(term: str, dialect: str):
    """Case-insensitive substring match on the tag columns and the detail values."""
    pattern = f"%{_escape_like(term)}%"
    return or_(
        AuditLog.resource_id.ilike(pattern, escape="\\"),
        AuditLog.action.ilike(pattern, escape="\\"),
        AuditLog.resource_type.ilike(pattern, escape="\\"),
        _details_value_match(pattern, dialect),
    )


def build_conditions(
    organization_id: int, filters: AuditLogFilters, dialect: str = "postgresql"
) -> list:
    """WHERE clauses for an organization's events under the given filters."""
    conditions = [AuditLog.organization_id == organization_id]
    if filters.action:
        conditions.append(AuditLog.action == filters.action)
    if filters.resource_type:
        conditions.append(AuditLog.resource_type == filters.resource_type)
    if filters.resource_id:
        conditions.append(AuditLog.resource_id == filters.resource_id)
    if filters.user_id is not None:
        conditions.append(AuditLog.user_id == filters.user_id)
    conditions.extend(_date_conditions(filters.start_date, filters.end_date))
    if filters.search_term:
        conditions.append(_search_condition(filters.search_term, dialect))
    return conditions


def to_read(entry: AuditLog, actor: Optional[User]) -> AuditLogRead:
    return AuditLogRead(
        id=entry.id,
        user_id=entry.user_id,
        organization_id=entry.organization_id,
        action=entry.action,
        resource_type=entry.resource_type,
        resource_id=entry.resource_id,
        details=entry.details or {},
        ip_address=entry.ip_address,
        user_agent=entry.user_agent,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
        user=(
            ActorProfile(id=actor.id, username=actor.username, email=actor.email)
            if actor
            else None
        ),
    )


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def list_events(
    session: AsyncSession,
    organization_id: int,
    filters: Optional[AuditLogFilters] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> AuditLogPage:
    """Return one newest-first page of an organization's events."""
    filters = filters or AuditLogFilters()
    page = max(page, 1)
    page_size = page_size or settings.audit_default_page_size
    conditions = build_conditions(
        organization_id, filters, session.get_bind().dialect.name
    )

    total = (
        await session.execute(
            select(func.count()).select_from(AuditLog).where(*conditions)
        )
    ).scalar_one()

    stmt = (
        select(AuditLog, User)
        .outerjoin(User, User.id == AuditLog.user_id)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    rows = (await session.execute(stmt)).all()

    return AuditLogPage(
        items=[to_read(entry, actor) for entry, actor in rows],
        total=total,
        total_pages=math.ceil(total / page_size),
        page=page,
        page_size=page_size,
    )


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


async def _count(session: AsyncSession, conditions: list) -> int:
    result = await session.execute(
        select(func.count()).select_from(AuditLog).where(*conditions)
    )
    return result.scalar_one()


async def _top_actions(session: AsyncSession, conditions: list, limit: int) -> list[ActionCount]:
    count = func.count(AuditLog.id).label("count")
    result = await session.execute(
        select(AuditLog.action, count)
        .where(*conditions)
        .group_by(AuditLog.action)
        .order_by(count.desc(), AuditLog.action)
        .limit(limit)
    )
    return [ActionCount(action=action, count=n) for action, n in result.all()]


async def _top_resource_types(
    session: AsyncSession, conditions: list, limit: int
) -> list[ResourceCount]:
    count = func.count(AuditLog.id).label("count")
    result = await session.execute(
        select(AuditLog.resource_type, count)
        .where(*conditions)
        .group_by(AuditLog.resource_type)
        .order_by(count.desc(), AuditLog.resource_type)
        .limit(limit)
    )
    return [ResourceCount(resource_type=rt, count=n) for rt, n in result.all()]


async def _top_users(session: AsyncSession, conditions: list, limit: int) -> list[UserCount]:
    count = func.count(AuditLog.id).label("count")
    result = await session.execute(
        select(AuditLog.user_id, User.username, count)
        .outerjoin(User, User.id == AuditLog.user_id)
        .where(*conditions, AuditLog.user_id.is_not(None))
        .group_by(AuditLog.user_id, User.username)
        .order_by(count.desc(), AuditLog.user_id)
        .limit(limit)
    )
    return [
        UserCount(user_id=user_id, username=username or UNKNOWN_USERNAME, count=n)
        for user_id, username, n in result.all()
    ]


async def _activity_trend(
    session: AsyncSession, conditions: list, days: int
) -> list[ActivityPoint]:
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    since = today - timedelta(days=days - 1)
    day = func.date(AuditLog.created_at).label("day")
    result = await session.execute(
        select(day, func.count(AuditLog.id))
        .where(*conditions, AuditLog.created_at >= since)
        .group_by(day)
        .order_by(day)
    )
    return [ActivityPoint(date=str(d), count=n) for d, n in result.all()]


async def get_stats(
    session: AsyncSession,
    organization_id: int,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> AuditStatsResponse:
    """Summary statistics for an organization, computed fresh on every call.

    Without a date window every figure covers the organization's whole log.
    The queries share one session, so they run one after another.
    """
    top_n = settings.audit_stats_top_n
    conditions = [AuditLog.organization_id == organization_id]
    conditions.extend(_date_conditions(start_date, end_date))

    return AuditStatsResponse(
        total_logs=await _count(session, conditions),
        action_counts=await _top_actions(session, conditions, top_n),
        resource_counts=await _top_resource_types(session, conditions, top_n),
        user_counts=await _top_users(session, conditions, top_n),
        activity_trend=await _activity_trend(
            session, conditions, settings.audit_activity_trend_days
        ),
    )
