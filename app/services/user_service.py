# app/services/user_service.py
"""Shared user lookups and serialisers for the people-management services."""
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import BadRequestError
from ..core.security import hash_password
from ..models.shared.user import User
from .base_service import BaseService

EMAIL_IN_USE = "This email is already being used by another user"


@lru_cache(maxsize=1)
def default_password_hash() -> str:
    return hash_password(settings.default_user_password)


def user_summary(user: Optional[User]) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    return {
        "id": str(user.id),
        "first_name": user.first_name,
        "last_name": user.last_name,
        "email": user.email,
        "role": user.role,
    }


def user_detail(user: User, redact: bool = False) -> Dict[str, Any]:
    data = {
        **user_summary(user),
        "org_id": str(user.org_id) if user.org_id else None,
        "full_name": user.full_name,
        "phone": user.phone,
        "address": user.address,
        "ssn": user.ssn,
        "gender": user.gender,
        "dob": user.dob.isoformat() if user.dob else None,
        "is_active": user.is_active,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    if redact:
        for key in ("phone", "address", "ssn"):
            data.pop(key)
    return data


class UserService(BaseService[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def email_taken(self, email: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        result = await self.db.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None

    async def ensure_email_free(self, email: Optional[str], exclude_id: Optional[UUID] = None) -> None:
        if email and await self.email_taken(email, exclude_id):
            raise BadRequestError(EMAIL_IN_USE)

    def build_user(self, org_id: Optional[UUID], role: str, **fields) -> User:
        """New user with the default password; caller adds and commits."""
        if fields.get("email"):
            fields["email"] = fields["email"].lower()
        user = User(
            org_id=org_id,
            role=role,
            password_hash=default_password_hash(),
            is_active=True,
            **fields
        )
        self.db.add(user)
        return user

    async def get_in_org(self, user_id: UUID, org_id: UUID, roles: Optional[Iterable[str]] = None) -> Optional[User]:
        stmt = select(User).where(
            User.id == user_id,
            User.org_id == org_id,
            User.is_deleted == False
        )
        if roles:
            stmt = stmt.where(User.role.in_(list(roles)))
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_many(self, user_ids: Iterable[UUID]) -> Dict[UUID, User]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await self.db.execute(select(User).where(User.id.in_(ids)))
        return {u.id: u for u in result.scalars().all()}

    async def list_by_role(self, org_id: UUID, role: str) -> List[User]:
        stmt = select(User).where(
            User.org_id == org_id,
            User.role == role,
            User.is_deleted == False
        ).order_by(User.first_name, User.last_name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
