"""
Authentication and organization scoping.

Supports:
- Bearer JWT verification (token issuance for tooling and tests only;
  the GitHub OAuth login flow lives outside this service)
- Loading the calling user and their organization membership
- Org-scoping: a caller may only touch their own organization's audit log
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.errors import AuthenticationError, OrganizationAccessDenied
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

bearer_header = APIKeyHeader(name="Authorization", auto_error=False)


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_access_token(
    user_id: int,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed bearer token for a user."""
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict:
    """Decode and verify a bearer token. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for an authenticated user + their organization membership."""

    def __init__(self, user: User):
        self.user = user
        self.user_id = user.id
        self.organization_id = user.organization_id


async def get_current_user(
    authorization: Optional[str] = Depends(bearer_header),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency: `Authorization: Bearer <jwt>`."""
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError()

    token = authorization[7:].strip()
    try:
        payload = decode_access_token(token)
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise AuthenticationError("Invalid token subject")

    user = await session.get(User, user_id)
    if not user:
        raise AuthenticationError("User not found")
    return AuthenticatedUser(user)


# ---------------------------------------------------------------------------
# Authorization (org-scoping)
# ---------------------------------------------------------------------------

def ensure_org_access(auth: AuthenticatedUser, organization_id: str) -> int:
    """Return the caller's organization id if it matches the requested one.

    The comparison is on the string form, so a non-numeric path id never matches.
    """
    if auth.organization_id is None or str(auth.organization_id) != organization_id:
        log.warning(
            "auth.org_access_denied",
            user_id=auth.user_id,
            member_of=auth.organization_id,
            requested=organization_id,
        )
        raise OrganizationAccessDenied()
    return auth.organization_id


async def require_org_access(
    organizationId: str,
    auth: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    """Caller must belong to the organization named in the path."""
    ensure_org_access(auth, organizationId)
    return auth
