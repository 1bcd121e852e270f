"""Audit log model (append-only, organization-scoped)."""

from typing import Any, Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import JSONVariant, TimestampMixin


class AuditLog(TimestampMixin, SQLModel, table=True):
    __tablename__ = "audit_logs"
    __table_args__ = (
        sa.Index("audit_organization_idx", "organization_id"),
        sa.Index("audit_user_idx", "user_id"),
        sa.Index("audit_resource_type_idx", "resource_type"),
        sa.Index("audit_action_idx", "action"),
        sa.Index("audit_created_at_idx", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: Optional[int] = Field(
        default=None, foreign_key="users.id", ondelete="SET NULL"
    )  # null for system events
    organization_id: int = Field(
        foreign_key="organizations.id", nullable=False, ondelete="CASCADE"
    )
    action: str = Field(max_length=50, nullable=False)  # e.g. role_assigned, policy_created
    resource_type: str = Field(max_length=50, nullable=False)  # user | team | repository | policy | role
    resource_id: str = Field(max_length=255, nullable=False)
    details: Optional[dict[str, Any]] = Field(default_factory=dict, sa_type=JSONVariant)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    user_agent: Optional[str] = None
