# app/services/announcement_service.py
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Set
from uuid import UUID
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import ForbiddenError, NotFoundError
from ..models.shared.user import User, UserRole
from ..models.tenant_specific.announcement import Announcement
from ..models.tenant_specific.class_model import ClassModel
from ..schemas.announcement_schemas import AnnouncementCreate, AnnouncementUpdate
from .access_service import guardian_class_ids, teacher_class_ids
from .base_service import BaseService

logger = logging.getLogger(__name__)

MANAGER_ROLES = (UserRole.PRINCIPAL.value, UserRole.ADMIN.value)


def week_start(today: Optional[date] = None) -> date:
    """Monday of the week containing today."""
    today = today or date.today()
    return today - timedelta(days=today.weekday())


class AnnouncementService(BaseService[Announcement]):
    def __init__(self, db: AsyncSession):
        super().__init__(Announcement, db)

    def _serialize(self, a: Announcement, author: Optional[User], class_name: Optional[str]) -> Dict[str, Any]:
        return {
            "id": str(a.id),
            "org_id": str(a.org_id),
            "class_id": str(a.class_id) if a.class_id else None,
            "class_name": class_name,
            "author_id": str(a.author_id) if a.author_id else None,
            "author_name": author.full_name if author else None,
            "title": a.title,
            "body": a.body,
            "week_start": a.week_start.isoformat() if a.week_start else None,
            "is_public": a.is_public,
            "created_at": a.created_at.isoformat(),
            "updated_at": a.updated_at.isoformat(),
        }

    async def _visible_classes(self, caller: User) -> Optional[Set[UUID]]:
        """None means every class of the org."""
        if caller.role in MANAGER_ROLES:
            return None
        if caller.role == UserRole.TEACHER.value:
            return await teacher_class_ids(self.db, caller.id)
        if caller.role == UserRole.GUARDIAN.value:
            return await guardian_class_ids(self.db, caller.id)
        return set()

    async def list_announcements(
        self,
        caller: User,
        class_id: Optional[UUID] = None,
        class_ids: Optional[List[UUID]] = None,
        limit: int = 10,
        announcement_id: Optional[UUID] = None,
    ) -> List[Dict[str, Any]]:
        stmt = (
            select(Announcement, User, ClassModel.name)
            .outerjoin(User, User.id == Announcement.author_id)
            .outerjoin(ClassModel, ClassModel.id == Announcement.class_id)
            .where(Announcement.org_id == caller.org_id, Announcement.is_deleted == False)
        )
        if announcement_id:
            stmt = stmt.where(Announcement.id == announcement_id)
        else:
            if class_id:
                scope: Optional[Set[UUID]] = {class_id}
            elif class_ids:
                scope = set(class_ids)
            else:
                scope = await self._visible_classes(caller)
            if scope is not None:
                stmt = stmt.where(or_(
                    Announcement.class_id.is_(None),
                    Announcement.class_id.in_(list(scope))
                ))

        stmt = stmt.order_by(Announcement.created_at.desc()).limit(limit)
        result = await self.db.execute(stmt)
        return [self._serialize(a, author, name) for a, author, name in result.all()]

    async def _assert_class_allowed(self, caller: User, class_id: Optional[UUID]) -> None:
        if class_id is None:
            return
        class_obj = await self.db.execute(
            select(ClassModel.id).where(
                ClassModel.id == class_id,
                ClassModel.org_id == caller.org_id,
                ClassModel.is_deleted == False
            )
        )
        if class_obj.scalar_one_or_none() is None:
            raise NotFoundError("Class")
        if caller.role == UserRole.TEACHER.value and class_id not in await teacher_class_ids(self.db, caller.id):
            raise ForbiddenError("You can only post announcements to your own classes")

    async def create_announcement(self, caller: User, data: AnnouncementCreate) -> Dict[str, Any]:
        await self._assert_class_allowed(caller, data.class_id)
        announcement = await self.create({
            "org_id": caller.org_id,
            "class_id": data.class_id,
            "author_id": caller.id,
            "title": data.title.strip(),
            "body": data.body.strip(),
            "week_start": week_start(),
            "is_public": data.is_public,
        })
        logger.info(f"Announcement {announcement.id} created by {caller.id}")
        return (await self.list_announcements(caller, announcement_id=announcement.id))[0]

    async def _owned(self, caller: User, announcement_id: UUID) -> Announcement:
        announcement = await self.get(announcement_id, org_id=caller.org_id)
        if not announcement:
            raise NotFoundError("Announcement")
        if announcement.author_id != caller.id and caller.role not in MANAGER_ROLES:
            raise ForbiddenError("Only the author can modify this announcement")
        return announcement

    async def update_announcement(self, caller: User, data: AnnouncementUpdate) -> Dict[str, Any]:
        announcement = await self._owned(caller, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if "class_id" in changes:
            await self._assert_class_allowed(caller, changes["class_id"])
        await self.update(announcement, changes)
        return (await self.list_announcements(caller, announcement_id=announcement.id))[0]

    async def delete_announcement(self, caller: User, announcement_id: UUID) -> None:
        announcement = await self._owned(caller, announcement_id)
        await self.soft_delete(announcement)
