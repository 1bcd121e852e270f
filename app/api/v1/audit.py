"""
Audit log endpoints.

GET  /api/v1/audit/organization/{organizationId}/logs   - Filtered, paginated events
GET  /api/v1/audit/organization/{organizationId}/stats  - Summary statistics
POST /api/v1/audit/organization/{organizationId}/logs   - Record an event directly

All routes require a bearer token whose user belongs to {organizationId}.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, require_org_access
from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuditStorageError, AuditValidationError
from app.services import audit as audit_service
from app.services import audit_queries
from ghac_shared.schemas.audit import (
    AuditLogCreate,
    AuditLogCreated,
    AuditLogFilters,
    AuditLogListResponse,
    AuditStatsResponse,
)
from ghac_shared.schemas.common import ErrorResponse

log = structlog.get_logger()
settings = get_settings()

router = APIRouter()

ERROR_RESPONSES = {
    401: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.get(
    "/organization/{organizationId}/logs",
    response_model=AuditLogListResponse,
    responses=ERROR_RESPONSES,
)
async def list_organization_logs(
    organizationId: str,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    action: Optional[str] = None,
    resource_type: Optional[str] = Query(None, alias="resourceType"),
    resource_id: Optional[str] = Query(None, alias="resourceId"),
    user_id: Optional[int] = Query(None, alias="userId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    search_term: Optional[str] = Query(None, alias="searchTerm"),
    auth: AuthenticatedUser = Depends(require_org_access),
    session: AsyncSession = Depends(get_session),
):
    """Page through the organization's audit log, newest first."""
    page_size = min(limit or settings.audit_default_page_size, settings.audit_max_page_size)
    filters = AuditLogFilters(
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        user_id=user_id,
        start_date=start_date,
        end_date=end_date,
        search_term=search_term,
    )
    try:
        result = await audit_queries.list_events(
            session, auth.organization_id, filters, page=page, page_size=page_size
        )
    except SQLAlchemyError:
        log.exception("audit.list_failed", organization_id=auth.organization_id)
        raise AuditStorageError("Failed to fetch audit logs", code="AUDIT_QUERY_FAILED")

    return AuditLogListResponse(
        logs=result.items,
        total_logs=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
    )


@router.get(
    "/organization/{organizationId}/stats",
    response_model=AuditStatsResponse,
    responses=ERROR_RESPONSES,
)
async def get_organization_stats(
    organizationId: str,
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    auth: AuthenticatedUser = Depends(require_org_access),
    session: AsyncSession = Depends(get_session),
):
    """Totals and top-N breakdowns for the organization's audit log."""
    try:
        return await audit_queries.get_stats(
            session, auth.organization_id, start_date=start_date, end_date=end_date
        )
    except SQLAlchemyError:
        log.exception("audit.stats_failed", organization_id=auth.organization_id)
        raise AuditStorageError(
            "Failed to fetch audit statistics", code="AUDIT_QUERY_FAILED"
        )


@router.post(
    "/organization/{organizationId}/logs",
    response_model=AuditLogCreated,
    status_code=201,
    responses={400: {"model": ErrorResponse}, **ERROR_RESPONSES},
)
async def create_organization_log(
    request: Request,
    organizationId: str,
    body: Optional[AuditLogCreate] = None,
    auth: AuthenticatedUser = Depends(require_org_access),
    session: AsyncSession = Depends(get_session),
):
    """Record an event on behalf of the caller. action, resourceType and resourceId are required."""
    body = body or AuditLogCreate()
    missing = audit_service.missing_required_fields(
        body.action, body.resource_type, body.resource_id
    )
    if missing:
        raise AuditValidationError(missing)

    try:
        entry = await audit_service.append_event(
            session,
            organization_id=auth.organization_id,
            user_id=auth.user_id,
            action=body.action,
            resource_type=body.resource_type,
            resource_id=body.resource_id,
            details=body.details,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
        )
        await session.commit()
    except SQLAlchemyError:
        await session.rollback()
        log.exception("audit.create_failed", organization_id=auth.organization_id)
        raise AuditStorageError("Failed to create audit log", code="AUDIT_WRITE_FAILED")

    log.info(
        "audit.created",
        audit_id=entry.id,
        organization_id=auth.organization_id,
        action=entry.action,
    )
    return AuditLogCreated(message="Audit log created successfully", id=entry.id)
