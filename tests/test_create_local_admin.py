"""
Tests for the local admin bootstrap script.
"""

from unittest.mock import AsyncMock, patch

import pytest

from app.core.auth import decode_access_token
from app.models.user import User
from app.scripts.create_local_admin import create_admin
from app.services import audit_queries
from conftest import OCTOCAT, ORG_ONE, ORG_TWO


@pytest.mark.asyncio
async def test_new_user_joins_existing_organization(seeded):
    with patch("app.scripts.create_local_admin.init_db", AsyncMock()):
        token = await create_admin("acme", "mona", "mona@github.com")

    user_id = int(decode_access_token(token)["sub"])
    async with seeded() as session:
        page = await audit_queries.list_events(session, ORG_ONE)
    assert page.total == 1
    entry = page.items[0]
    assert entry.action == "user_added"
    assert entry.resource_type == "user"
    assert entry.resource_id == str(user_id)
    assert entry.user_id is None


@pytest.mark.asyncio
async def test_existing_member_is_not_audited(seeded):
    with patch("app.scripts.create_local_admin.init_db", AsyncMock()):
        token = await create_admin("acme", "octocat", None)

    assert decode_access_token(token)["sub"] == str(OCTOCAT)
    async with seeded() as session:
        assert (await audit_queries.list_events(session, ORG_ONE)).total == 0


@pytest.mark.asyncio
async def test_membership_move_is_audited(seeded):
    with patch("app.scripts.create_local_admin.init_db", AsyncMock()):
        await create_admin("globex", "octocat", None)

    async with seeded() as session:
        assert (await session.get(User, OCTOCAT)).organization_id == ORG_TWO
        page = await audit_queries.list_events(session, ORG_TWO)
    assert page.total == 1
    entry = page.items[0]
    assert entry.action == "user_organization_changed"
    assert entry.resource_id == str(OCTOCAT)
    assert entry.details["from"] == ORG_ONE
    assert entry.details["to"] == ORG_TWO
