# app/services/class_service.py
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, delete, update
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import BadRequestError, NotFoundError
from ..models.shared.user import User
from ..models.tenant_specific.class_model import ClassModel, ClassMembership
from ..models.tenant_specific.student import Student
from ..schemas.class_schemas import ClassCreate, ClassOut, ClassUpdate
from .access_service import TEACHER_MEMBERSHIP
from .base_service import BaseService
from .user_service import UserService

logger = logging.getLogger(__name__)


def serialize_class(class_obj: ClassModel, teachers: Optional[List[User]] = None) -> Dict[str, Any]:
    data = ClassOut.model_validate(class_obj).model_dump(mode="json")
    data["assigned_teachers"] = [
        {
            "id": str(t.id),
            "full_name": t.full_name,
            "first_name": t.first_name,
            "last_name": t.last_name,
            "email": t.email,
        }
        for t in (teachers or [])
    ]
    return data


class ClassService(BaseService[ClassModel]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassModel, db)

    async def get_or_404(self, class_id: UUID, org_id: UUID) -> ClassModel:
        class_obj = await self.get(class_id, org_id=org_id)
        if not class_obj:
            raise NotFoundError("Class")
        return class_obj

    async def assigned_teachers(self, class_ids: List[UUID]) -> Dict[UUID, List[User]]:
        if not class_ids:
            return {}
        stmt = (
            select(ClassMembership.class_id, User)
            .join(User, User.id == ClassMembership.user_id)
            .where(
                ClassMembership.class_id.in_(class_ids),
                ClassMembership.membership_role == TEACHER_MEMBERSHIP,
                User.is_deleted == False
            )
            .order_by(User.first_name, User.last_name)
        )
        result = await self.db.execute(stmt)
        teachers: Dict[UUID, List[User]] = {}
        for class_id, user in result.all():
            teachers.setdefault(class_id, []).append(user)
        return teachers

    async def list_classes(self, org_id: UUID, created_by: Optional[UUID] = None) -> List[Dict[str, Any]]:
        classes = await self.get_multi(limit=1000, org_id=org_id, created_by=created_by)
        teachers = await self.assigned_teachers([c.id for c in classes])
        return [serialize_class(c, teachers.get(c.id)) for c in classes]

    async def get_class(self, org_id: UUID, class_id: UUID) -> Dict[str, Any]:
        class_obj = await self.get_or_404(class_id, org_id)
        teachers = await self.assigned_teachers([class_obj.id])
        return serialize_class(class_obj, teachers.get(class_obj.id))

    async def _require_teacher(self, org_id: UUID, user_id: UUID) -> User:
        teacher = await UserService(self.db).get_in_org(user_id, org_id, roles=("teacher", "principal"))
        if not teacher:
            raise BadRequestError("Teacher not found in organization")
        return teacher

    async def _replace_membership(self, class_id: UUID, user_id: UUID) -> ClassMembership:
        await self.db.execute(
            delete(ClassMembership).where(
                ClassMembership.class_id == class_id,
                ClassMembership.user_id == user_id
            )
        )
        membership = ClassMembership(class_id=class_id, user_id=user_id, membership_role=TEACHER_MEMBERSHIP)
        self.db.add(membership)
        return membership

    async def create_class(self, org_id: UUID, caller_id: UUID, data: ClassCreate) -> Tuple[Dict[str, Any], bool]:
        if data.teacher_id:
            await self._require_teacher(org_id, data.teacher_id)
        if data.created_by and not await UserService(self.db).get_in_org(data.created_by, org_id):
            raise BadRequestError("Creator not found in organization")

        class_obj = ClassModel(
            org_id=org_id,
            name=data.name,
            code=data.code,
            created_by=data.created_by or caller_id
        )
        self.db.add(class_obj)
        await self.db.flush()

        if data.teacher_id:
            self.db.add(ClassMembership(class_id=class_obj.id, user_id=data.teacher_id, membership_role=TEACHER_MEMBERSHIP))

        await self.db.commit()
        logger.info(f"Class {class_obj.id} created in org {org_id} (teacher: {data.teacher_id})")
        return await self.get_class(org_id, class_obj.id), data.teacher_id is not None

    async def update_class(self, org_id: UUID, data: ClassUpdate) -> Dict[str, Any]:
        class_obj = await self.get_or_404(data.id, org_id)
        changes = data.model_dump(exclude_unset=True, exclude={"id", "teacher_id"})
        if "name" in changes and changes["name"] is not None:
            changes["name"] = changes["name"].strip()
        for key, value in changes.items():
            setattr(class_obj, key, value)

        if data.teacher_id:
            await self._require_teacher(org_id, data.teacher_id)
            await self._replace_membership(class_obj.id, data.teacher_id)

        await self.db.commit()
        return await self.get_class(org_id, class_obj.id)

    async def delete_class(self, org_id: UUID, class_id: UUID) -> None:
        class_obj = await self.get_or_404(class_id, org_id)
        class_obj.mark_deleted()
        await self.db.execute(delete(ClassMembership).where(ClassMembership.class_id == class_id))
        await self.db.execute(
            update(Student)
            .where(Student.class_id == class_id)
            .values(class_id=None)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        logger.info(f"Class {class_id} deleted from org {org_id}")

    async def assign_teacher(self, org_id: UUID, user_id: UUID, class_id: UUID) -> ClassMembership:
        await self.get_or_404(class_id, org_id)
        await self._require_teacher(org_id, user_id)
        membership = await self._replace_membership(class_id, user_id)
        await self.db.commit()
        await self.db.refresh(membership)
        return membership

    async def remove_teacher(self, org_id: UUID, user_id: UUID, class_id: UUID) -> int:
        await self.get_or_404(class_id, org_id)
        result = await self.db.execute(
            delete(ClassMembership).where(
                ClassMembership.class_id == class_id,
                ClassMembership.user_id == user_id
            )
        )
        await self.db.commit()
        return result.rowcount or 0

    async def assign_students(self, org_id: UUID, class_id: UUID, student_ids: List[UUID]) -> int:
        await self.get_or_404(class_id, org_id)
        wanted = list(dict.fromkeys(student_ids))
        result = await self.db.execute(
            select(Student.id).where(
                Student.id.in_(wanted),
                Student.org_id == org_id,
                Student.is_deleted == False
            )
        )
        found = set(result.scalars().all())
        missing = [str(s) for s in wanted if s not in found]
        if missing:
            raise NotFoundError("Some students", extra={"missingStudentIds": missing})

        await self.db.execute(
            update(Student)
            .where(Student.id.in_(wanted))
            .values(class_id=class_id)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return len(wanted)

    async def teacher_classes(self, org_id: UUID, user_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(ClassModel)
            .join(ClassMembership, ClassMembership.class_id == ClassModel.id)
            .where(
                ClassMembership.user_id == user_id,
                ClassMembership.membership_role == TEACHER_MEMBERSHIP,
                ClassModel.org_id == org_id,
                ClassModel.is_deleted == False
            )
            .order_by(ClassModel.name)
        )
        result = await self.db.execute(stmt)
        return [
            {"id": str(c.id), "name": c.name, "code": c.code, "created_at": c.created_at.isoformat()}
            for c in result.scalars().unique().all()
        ]
