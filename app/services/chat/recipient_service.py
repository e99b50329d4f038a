# app/services/chat/recipient_service.py
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID
from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ...core.cache import cache
from ...core.config import settings
from ...models.shared.user import User, UserRole
from ..access_service import (
    guardian_class_ids, guardians_of_classes, teacher_class_ids, teachers_of_classes
)

logger = logging.getLogger(__name__)

ADMIN = UserRole.ADMIN.value
PRINCIPAL = UserRole.PRINCIPAL.value
TEACHER = UserRole.TEACHER.value
GUARDIAN = UserRole.GUARDIAN.value

# Which roles each role may start a conversation with
MESSAGEABLE_ROLES: Dict[str, Sequence[str]] = {
    ADMIN: (TEACHER, GUARDIAN, PRINCIPAL),
    PRINCIPAL: (TEACHER, GUARDIAN, PRINCIPAL),
    TEACHER: (PRINCIPAL, GUARDIAN, TEACHER),
    GUARDIAN: (TEACHER, PRINCIPAL),
}

MAX_RECIPIENTS = 100


def recipient_payload(user: User) -> Dict[str, Any]:
    return {
        "id": str(user.id),
        "email": user.email,
        "name": user.full_name or user.email,
        "role": user.role,
        "org_id": str(user.org_id) if user.org_id else None,
    }


def group_by_role(recipients: List[Dict[str, Any]]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {}
    for r in recipients:
        grouped.setdefault(r["role"], []).append(r)
    return grouped


class RecipientService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _visibility_clauses(self, caller: User) -> list:
        """Extra WHERE clauses narrowing which teachers/guardians the caller sees."""
        clauses = []
        if caller.role == GUARDIAN:
            children_classes = await guardian_class_ids(self.db, caller.id)
            teachers = await teachers_of_classes(self.db, children_classes)
            # no assigned teachers yet: fall back to every teacher
            if teachers:
                clauses.append(or_(User.role != TEACHER, User.id.in_(list(teachers))))
        elif caller.role == TEACHER:
            own_classes = await teacher_class_ids(self.db, caller.id)
            guardians = await guardians_of_classes(self.db, own_classes)
            if guardians:
                clauses.append(or_(User.role != GUARDIAN, User.id.in_(list(guardians))))
            else:
                clauses.append(User.role != GUARDIAN)
        return clauses

    async def _base_query(self, caller: User):
        roles = MESSAGEABLE_ROLES.get(caller.role, ())
        stmt = select(User).where(
            User.org_id == caller.org_id,
            User.role.in_(list(roles)),
            User.id != caller.id,
            User.is_active == True,
            User.is_deleted == False
        )
        for clause in await self._visibility_clauses(caller):
            stmt = stmt.where(clause)
        return stmt

    async def list_recipients(self, caller: User, search: Optional[str] = None) -> Dict[str, Any]:
        term = (search or "").strip()
        cache_key = cache.make_key("recipients", caller.org_id, caller.id, term.lower())
        cached = await cache.get(cache_key)
        if cached is not None:
            return cached

        stmt = await self._base_query(caller)
        if term:
            pattern = f"%{term}%"
            stmt = stmt.where(or_(
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.email.ilike(pattern)
            ))
        stmt = stmt.order_by(User.first_name, User.last_name).limit(MAX_RECIPIENTS)
        result = await self.db.execute(stmt)

        recipients = [recipient_payload(u) for u in result.scalars().all()]
        payload = {"recipients": recipients, "grouped": group_by_role(recipients)}
        await cache.set(cache_key, payload, expire=settings.cache_ttl_seconds)
        return payload

    async def can_message(self, caller: User, recipient_ids: List[UUID]) -> bool:
        wanted = set(recipient_ids)
        if not wanted:
            return False
        stmt = await self._base_query(caller)
        count_stmt = select(func.count()).select_from(
            stmt.where(User.id.in_(list(wanted))).subquery()
        )
        allowed = (await self.db.execute(count_stmt)).scalar() or 0
        if allowed != len(wanted):
            logger.warning(f"User {caller.id} tried to message {len(wanted) - allowed} hidden recipient(s)")
            return False
        return True
