"""User model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IntIdMixin, TimestampMixin


class User(IntIdMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    username: str = Field(unique=True, nullable=False, index=True)  # GitHub login
    email: Optional[str] = Field(default=None, index=True)
    avatar_url: Optional[str] = None
    github_id: Optional[int] = Field(default=None, unique=True, sa_type=sa.BigInteger)
    organization_id: Optional[int] = Field(
        default=None, foreign_key="organizations.id", index=True
    )
