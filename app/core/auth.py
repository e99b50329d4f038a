# app/core/auth.py
"""Authentication dependencies for routers."""
from typing import Callable, Optional
from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from .database import get_db
from .exceptions import AuthenticationError, ForbiddenError, MissingOrgError
from .security import TokenError, decode_access_token
from ..models.shared.user import User, UserRole

logger = logging.getLogger(__name__)

ALL_ROLES = tuple(r.value for r in UserRole)


def _parse_token(auth_header: Optional[str]) -> str:
    if not auth_header:
        raise AuthenticationError("Missing Authorization header")
    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid auth scheme")
    return parts[1].strip()


async def authenticate_token(db: AsyncSession, token: str) -> User:
    """Resolve a bearer token to an active user."""
    try:
        payload = decode_access_token(token)
        user_id = UUID(str(payload["sub"]))
    except (TokenError, ValueError) as exc:
        raise AuthenticationError(str(exc)) from exc

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active or user.is_deleted:
        raise AuthenticationError("Invalid user")
    return user


async def get_current_user(
    authorization: Optional[str] = Header(default=None, alias="Authorization"),
    db: AsyncSession = Depends(get_db),
) -> User:
    token = _parse_token(authorization)
    return await authenticate_token(db, token)


def require_roles(*allowed_roles: str, require_org: bool = True) -> Callable:
    """Dependency factory: the caller must hold one of the roles (and an org)."""
    allowed = set(allowed_roles or ALL_ROLES)

    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            logger.warning(f"User {current_user.id} ({current_user.role}) denied; needs one of {sorted(allowed)}")
            raise ForbiddenError()
        if require_org and not current_user.org_id:
            raise MissingOrgError()
        return current_user

    return dependency
