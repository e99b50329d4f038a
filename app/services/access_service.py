# app/services/access_service.py
"""Who-can-see-what lookups shared by the org-scoped services."""
from typing import Optional, Set
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.tenant_specific.class_model import ClassModel, ClassMembership
from ..models.tenant_specific.student import Student, GuardianStudent

TEACHER_MEMBERSHIP = "teacher"


def assigned_classes_query(user_id: UUID, org_id: Optional[UUID] = None):
    """Ids of non-deleted classes the user teaches."""
    stmt = (
        select(ClassMembership.class_id)
        .join(ClassModel, ClassModel.id == ClassMembership.class_id)
        .where(
            ClassMembership.user_id == user_id,
            ClassMembership.membership_role == TEACHER_MEMBERSHIP,
            ClassModel.is_deleted == False
        )
    )
    if org_id is not None:
        stmt = stmt.where(ClassModel.org_id == org_id)
    return stmt


async def teacher_class_ids(db: AsyncSession, user_id: UUID) -> Set[UUID]:
    result = await db.execute(assigned_classes_query(user_id))
    return set(result.scalars().all())


async def guardian_student_ids(db: AsyncSession, guardian_id: UUID) -> Set[UUID]:
    stmt = (
        select(GuardianStudent.student_id)
        .join(Student, Student.id == GuardianStudent.student_id)
        .where(GuardianStudent.guardian_id == guardian_id, Student.is_deleted == False)
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())


async def guardian_class_ids(db: AsyncSession, guardian_id: UUID) -> Set[UUID]:
    """Classes of the guardian's linked children."""
    stmt = (
        select(Student.class_id)
        .join(GuardianStudent, GuardianStudent.student_id == Student.id)
        .where(
            GuardianStudent.guardian_id == guardian_id,
            Student.is_deleted == False,
            Student.class_id.is_not(None)
        )
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())


async def teachers_of_classes(db: AsyncSession, class_ids: Set[UUID]) -> Set[UUID]:
    if not class_ids:
        return set()
    stmt = select(ClassMembership.user_id).where(
        ClassMembership.class_id.in_(list(class_ids)),
        ClassMembership.membership_role == TEACHER_MEMBERSHIP
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())


async def guardians_of_classes(db: AsyncSession, class_ids: Set[UUID]) -> Set[UUID]:
    if not class_ids:
        return set()
    stmt = (
        select(GuardianStudent.guardian_id)
        .join(Student, Student.id == GuardianStudent.student_id)
        .where(Student.class_id.in_(list(class_ids)), Student.is_deleted == False)
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())
