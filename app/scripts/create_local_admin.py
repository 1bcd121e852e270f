"""
Script to create a local organization and admin user, and print a bearer
token for calling the audit API during local testing.
"""

import argparse
import asyncio
from typing import Optional

from sqlmodel import select

from app.core.auth import create_access_token
from app.core.database import get_session_context, init_db
from app.models.organization import Organization
from app.models.user import User
from app.services.audit import record_user_management


async def create_admin(org_login: str, username: str, email: Optional[str]) -> str:
    await init_db()

    async with get_session_context() as session:
        # 1. Ensure organization exists
        result = await session.execute(
            select(Organization).where(Organization.login == org_login)
        )
        org = result.scalar_one_or_none()
        if not org:
            org = Organization(login=org_login, name=org_login)
            session.add(org)
            await session.flush()
            print(f"Created organization: {org_login} (id={org.id})")

        # 2. Ensure user exists and belongs to the organization
        result = await session.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        created = user is None
        previous_org_id = None if created else user.organization_id
        if created:
            user = User(username=username, email=email, organization_id=org.id)
            session.add(user)
            print(f"Created user: {username}")
        elif previous_org_id != org.id:
            user.organization_id = org.id
            print(f"User {username} already exists; membership moved to {org_login}.")
        else:
            print(f"User {username} already belongs to {org_login}.")
        await session.flush()
        org_id, user_id = org.id, user.id

    if created:
        await record_user_management(
            organization_id=org_id,
            performed_by=None,
            target_user_id=user_id,
            change="added",
            details={"source": "create_local_admin"},
        )
    elif previous_org_id != org_id:
        await record_user_management(
            organization_id=org_id,
            performed_by=None,
            target_user_id=user_id,
            change="organization_changed",
            details={"from": previous_org_id, "to": org_id, "source": "create_local_admin"},
        )

    return create_access_token(user_id)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local admin user.")
    parser.add_argument("--org", required=True, help="GitHub organization login")
    parser.add_argument("--username", required=True, help="GitHub username")
    parser.add_argument("--email", default=None, help="Email address for the user")

    args = parser.parse_args()

    token = asyncio.run(create_admin(args.org, args.username, args.email))
    print(f"Bearer token: {token}")
