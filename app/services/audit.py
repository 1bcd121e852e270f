"""
Audit recording: the single write path into the audit log.

Every subsystem that changes state calls `record()` after its own write has
committed. Recording is fail-open: a storage failure is logged and reported
as False, never raised, so auditing cannot undo or block the audited action.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import database
from app.models.audit_log import AuditLog
from ghac_shared.schemas.common import ResourceType

log = structlog.get_logger()


def missing_required_fields(
    action: Optional[str],
    resource_type: Optional[str],
    resource_id: Optional[str],
) -> list[str]:
    """Return the wire names of required event fields that are absent or blank."""
    values = {
        "action": action,
        "resourceType": resource_type,
        "resourceId": resource_id,
    }
    return [name for name, value in values.items() if value is None or not str(value).strip()]


async def append_event(
    session: AsyncSession,
    *,
    organization_id: int,
    action: str,
    resource_type: str,
    resource_id: str,
    user_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> AuditLog:
    """Add one event to the session and flush so the store assigns its id."""
    entry = AuditLog(
        user_id=user_id,
        organization_id=organization_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details or {},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    session.add(entry)
    await session.flush()
    return entry


async def record(
    *,
    organization_id: int,
    action: str,
    resource_type: str,
    resource_id: str,
    user_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> bool:
    """Append one audit event in its own transaction.

    Returns True once the event is committed, False if storage failed.
    Incomplete events are logged as a warning and still handed to the store.
    """
    missing = missing_required_fields(action, resource_type, resource_id)
    if organization_id is None:
        missing.insert(0, "organizationId")
    if missing:
        log.warning(
            "audit.record_incomplete",
            missing=missing,
            organization_id=organization_id,
            action=action,
        )

    try:
        async with database.get_session_context() as session:
            entry = await append_event(
                session,
                organization_id=organization_id,
                action=action,
                resource_type=resource_type,
                resource_id=resource_id,
                user_id=user_id,
                details=details,
                ip_address=ip_address,
                user_agent=user_agent,
            )
    except Exception:
        log.exception(
            "audit.record_failed",
            organization_id=organization_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        return False

    log.debug(
        "audit.recorded",
        audit_id=entry.id,
        organization_id=organization_id,
        action=action,
    )
    return True


# ---------------------------------------------------------------------------
# Typed helpers for common event families
# ---------------------------------------------------------------------------


async def record_policy_violation(
    *,
    organization_id: int,
    policy_name: str,
    resource_type: str,
    resource_id: str,
    user_id: Optional[int] = None,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    return await record(
        organization_id=organization_id,
        user_id=user_id,
        action="policy_violated",
        resource_type=resource_type,
        resource_id=resource_id,
        details={
            **(details or {}),
            "policyName": policy_name,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def record_resource_access(
    *,
    organization_id: int,
    user_id: Optional[int],
    access_type: str,
    resource_type: str,
    resource_id: str,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    """Record a read/write/delete of a resource as `<resource_type>_<access_type>`."""
    return await record(
        organization_id=organization_id,
        user_id=user_id,
        action=f"{resource_type}_{access_type}",
        resource_type=resource_type,
        resource_id=resource_id,
        details={
            **(details or {}),
            "accessType": access_type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


async def record_user_management(
    *,
    organization_id: int,
    performed_by: Optional[int],
    target_user_id: int,
    change: str,
    details: Optional[dict[str, Any]] = None,
) -> bool:
    """Record a membership change (added, removed, role_changed) on a user."""
    return await record(
        organization_id=organization_id,
        user_id=performed_by,
        action=f"user_{change}",
        resource_type=ResourceType.USER.value,
        resource_id=str(target_user_id),
        details=details,
    )
