"""Organization model (a GitHub organization under management)."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import IntIdMixin, TimestampMixin


class Organization(IntIdMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    login: str = Field(unique=True, nullable=False, index=True)  # GitHub org login
    name: str = Field(nullable=False)
    github_id: Optional[int] = Field(default=None, unique=True, sa_type=sa.BigInteger)
