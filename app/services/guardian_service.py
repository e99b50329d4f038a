# app/services/guardian_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from ..models.shared.user import User, UserRole
from ..models.tenant_specific.class_model import ClassModel
from ..models.tenant_specific.student import Student, GuardianStudent
from ..schemas.guardian_schemas import (
    GuardianCreate, GuardianStudentCreate, GuardianStudentOut, GuardianUpdate
)
from .user_service import UserService, user_detail

logger = logging.getLogger(__name__)

GUARDIAN = UserRole.GUARDIAN.value


class GuardianService(UserService):
    """Guardian accounts and their links to students."""

    async def get_guardian_or_404(self, org_id: UUID, guardian_id: UUID) -> User:
        guardian = await self.get_in_org(guardian_id, org_id, roles=(GUARDIAN,))
        if not guardian:
            raise NotFoundError("Guardian")
        return guardian

    async def _children(self, guardian_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Student, User, GuardianStudent.relation, ClassModel.name)
            .join(GuardianStudent, GuardianStudent.student_id == Student.id)
            .join(User, User.id == Student.user_id)
            .outerjoin(ClassModel, ClassModel.id == Student.class_id)
            .where(GuardianStudent.guardian_id == guardian_id, Student.is_deleted == False)
            .order_by(User.first_name)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "id": str(student.id),
                "first_name": user.first_name,
                "last_name": user.last_name,
                "dob": user.dob.isoformat() if user.dob else None,
                "gender": user.gender,
                "relation": relation,
                "class_id": str(student.class_id) if student.class_id else None,
                "class_name": class_name,
            }
            for student, user, relation, class_name in result.all()
        ]

    async def get_guardian(self, org_id: UUID, guardian_id: UUID) -> Dict[str, Any]:
        guardian = await self.get_guardian_or_404(org_id, guardian_id)
        children = await self._children(guardian.id)
        return {**user_detail(guardian), "children": children, "total_children": len(children)}

    async def list_guardians(self, org_id: UUID) -> List[Dict[str, Any]]:
        return [user_detail(g) for g in await self.list_by_role(org_id, GUARDIAN)]

    async def create_guardian(self, org_id: UUID, data: GuardianCreate) -> Dict[str, Any]:
        await self.ensure_email_free(data.email)
        student = None
        if data.student_id:
            student = await self._student_in_org(org_id, data.student_id)

        guardian = self.build_user(
            org_id, GUARDIAN,
            **data.model_dump(include={"first_name", "last_name", "email", "phone", "ssn", "address"})
        )
        await self.db.flush()
        if student:
            self.db.add(GuardianStudent(guardian_id=guardian.id, student_id=student.id,
                                        org_id=org_id, relation=data.relation))
        await self.db.commit()
        logger.info(f"Guardian {guardian.id} created in org {org_id}")
        return await self.get_guardian(org_id, guardian.id)

    async def update_guardian(self, org_id: UUID, data: GuardianUpdate) -> Dict[str, Any]:
        guardian = await self.get_guardian_or_404(org_id, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if changes.get("email"):
            await self.ensure_email_free(changes["email"], exclude_id=guardian.id)
            changes["email"] = changes["email"].lower()
        await self.update(guardian, changes)
        return await self.get_guardian(org_id, guardian.id)

    async def delete_guardian(self, org_id: UUID, guardian_id: UUID) -> None:
        guardian = await self.get_guardian_or_404(org_id, guardian_id)
        await self.db.execute(delete(GuardianStudent).where(GuardianStudent.guardian_id == guardian.id))
        await self.hard_delete(guardian)
        logger.info(f"Guardian {guardian_id} removed from org {org_id}")

    async def _student_in_org(self, org_id: UUID, student_id: UUID) -> Student:
        result = await self.db.execute(
            select(Student).where(
                Student.id == student_id,
                Student.org_id == org_id,
                Student.is_deleted == False
            )
        )
        student = result.scalar_one_or_none()
        if not student:
            raise BadRequestError("Student not found in organization")
        return student

    # guardian <-> student links

    async def list_links(self, caller: User, student_id: Optional[UUID] = None,
                         guardian_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        if caller.role == GUARDIAN:
            if guardian_id and guardian_id != caller.id:
                raise ForbiddenError("Guardians can only view their own relationships")
            guardian_id = caller.id

        stmt = select(GuardianStudent).where(GuardianStudent.org_id == caller.org_id)
        if student_id:
            stmt = stmt.where(GuardianStudent.student_id == student_id)
        if guardian_id:
            stmt = stmt.where(GuardianStudent.guardian_id == guardian_id)
        result = await self.db.execute(stmt.order_by(GuardianStudent.created_at))
        return [GuardianStudentOut.model_validate(l).model_dump(mode="json") for l in result.scalars().all()]

    async def create_link(self, org_id: UUID, data: GuardianStudentCreate) -> Dict[str, Any]:
        await self._student_in_org(org_id, data.student_id)
        if not await self.get_in_org(data.guardian_id, org_id, roles=(GUARDIAN,)):
            raise BadRequestError("Guardian not found in organization")

        link = GuardianStudent(org_id=org_id, **data.model_dump())
        self.db.add(link)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Duplicate guardian link {data.guardian_id} -> {data.student_id}: {e}")
            raise ConflictError("Relationship already exists") from e
        return GuardianStudentOut.model_validate(link).model_dump(mode="json")

    async def delete_link(self, org_id: UUID, link_id: Optional[UUID] = None,
                          guardian_id: Optional[UUID] = None, student_id: Optional[UUID] = None) -> int:
        stmt = delete(GuardianStudent).where(GuardianStudent.org_id == org_id)
        if link_id:
            stmt = stmt.where(GuardianStudent.id == link_id)
        elif guardian_id and student_id:
            stmt = stmt.where(
                GuardianStudent.guardian_id == guardian_id,
                GuardianStudent.student_id == student_id
            )
        else:
            raise BadRequestError("Either id or both guardianId and studentId are required")
        result = await self.db.execute(stmt)
        await self.db.commit()
        return result.rowcount or 0
