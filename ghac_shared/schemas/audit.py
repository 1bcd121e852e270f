"""Audit log schemas shared between the server and API clients."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import CamelModel


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

class AuditLogFilters(BaseModel):
    """Optional filters for an organization's audit log. All are ANDed."""
    action: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    user_id: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search_term: Optional[str] = None


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------

class ActorProfile(CamelModel):
    id: int
    username: Optional[str] = None
    email: Optional[str] = None


class AuditLogRead(CamelModel):
    id: int
    user_id: Optional[int] = None
    organization_id: int
    action: str
    resource_type: str
    resource_id: str
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[ActorProfile] = None


class AuditLogPage(BaseModel):
    """One page of a filtered, newest-first event listing."""
    items: List[AuditLogRead]
    total: int
    total_pages: int
    page: int
    page_size: int


class AuditLogListResponse(CamelModel):
    """Response for GET /organization/{organizationId}/logs."""
    logs: List[AuditLogRead]
    total_logs: int
    total_pages: int
    current_page: int


# ---------------------------------------------------------------------------
# Direct write
# ---------------------------------------------------------------------------

class AuditLogCreate(CamelModel):
    """Request body for POST /organization/{organizationId}/logs.

    Required fields are checked by the endpoint so that a missing field is
    reported as a 400 listing every missing name.
    """
    model_config = ConfigDict(coerce_numbers_to_str=True)

    action: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None


class AuditLogCreated(CamelModel):
    message: str
    id: int


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

class ActionCount(CamelModel):
    action: str
    count: int


class ResourceCount(CamelModel):
    resource_type: str
    count: int


class UserCount(CamelModel):
    user_id: int
    username: str
    count: int


class ActivityPoint(CamelModel):
    date: str  # YYYY-MM-DD
    count: int


class AuditStatsResponse(CamelModel):
    total_logs: int
    action_counts: List[ActionCount] = Field(default_factory=list)
    resource_counts: List[ResourceCount] = Field(default_factory=list)
    user_counts: List[UserCount] = Field(default_factory=list)
    activity_trend: List[ActivityPoint] = Field(default_factory=list)
