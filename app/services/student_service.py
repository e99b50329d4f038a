# app/services/student_service.py
from datetime import date
from typing import Any, Dict, List, Optional, Set
from uuid import UUID, uuid4
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ..models.shared.user import User, UserRole
from ..models.tenant_specific.class_model import ClassModel
from ..models.tenant_specific.student import Student, GuardianStudent
from ..schemas.common import age_on
from ..schemas.student_schemas import StudentCreate, StudentUpdate
from .access_service import guardian_student_ids, teacher_class_ids
from .base_service import BaseService
from .user_service import UserService

logger = logging.getLogger(__name__)

# Enrolment window enforced on top of the schema's 0-18 check
ENROLMENT_MIN_AGE = 3
ENROLMENT_MAX_AGE = 18

USER_FIELDS = {
    "first_name": "first_name",
    "last_name": "last_name",
    "dob": "dob",
    "gender": "gender",
    "address": "address",
    "social_security_number": "ssn",
    "phone": "phone",
    "email": "email",
}
STUDENT_FIELDS = (
    "class_id", "start_date", "barngildi", "student_language",
    "medical_notes", "allergies", "emergency_contact",
)


def placeholder_email() -> str:
    """Students without a login still need a unique address."""
    return f"student-{uuid4().hex[:16]}@students.schoolhub.invalid"


def check_enrolment_age(dob: Optional[date], today: Optional[date] = None) -> None:
    if dob is None:
        return
    age = age_on(dob, today)
    if age < ENROLMENT_MIN_AGE or age > ENROLMENT_MAX_AGE:
        raise BadRequestError("Student age must be between 3 and 18 years old")


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def _guardians_for(self, student_ids: List[UUID]) -> Dict[UUID, List[Dict[str, Any]]]:
        if not student_ids:
            return {}
        stmt = (
            select(GuardianStudent, User)
            .join(User, User.id == GuardianStudent.guardian_id)
            .where(GuardianStudent.student_id.in_(student_ids), User.is_deleted == False)
        )
        result = await self.db.execute(stmt)
        guardians: Dict[UUID, List[Dict[str, Any]]] = {}
        for link, user in result.all():
            guardians.setdefault(link.student_id, []).append({
                "id": str(user.id),
                "first_name": user.first_name,
                "last_name": user.last_name,
                "email": user.email,
                "phone": user.phone,
                "relation": link.relation,
            })
        return guardians

    async def _rows(self, org_id: UUID, student_ids: Optional[Set[UUID]] = None,
                    class_ids: Optional[Set[UUID]] = None, student_id: Optional[UUID] = None):
        stmt = (
            select(Student, User, ClassModel.name)
            .join(User, User.id == Student.user_id)
            .outerjoin(ClassModel, ClassModel.id == Student.class_id)
            .where(Student.org_id == org_id, Student.is_deleted == False)
            .order_by(User.first_name, User.last_name)
        )
        if student_ids is not None:
            stmt = stmt.where(Student.id.in_(list(student_ids)))
        if class_ids is not None:
            stmt = stmt.where(Student.class_id.in_(list(class_ids)))
        if student_id is not None:
            stmt = stmt.where(Student.id == student_id)
        result = await self.db.execute(stmt)
        return result.all()

    def _serialize(self, student: Student, user: User, class_name: Optional[str],
                   guardians: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "id": str(student.id),
            "user_id": str(user.id),
            "first_name": user.first_name,
            "last_name": user.last_name,
            "dob": user.dob.isoformat() if user.dob else None,
            "gender": user.gender,
            "phone": user.phone,
            "address": user.address,
            "social_security_number": user.ssn,
            "class_id": str(student.class_id) if student.class_id else None,
            "class_name": class_name,
            "start_date": student.start_date.isoformat() if student.start_date else None,
            "barngildi": student.barngildi,
            "student_language": student.student_language,
            "medical_notes": student.medical_notes,
            "allergies": student.allergies,
            "emergency_contact": student.emergency_contact,
            "created_at": student.created_at.isoformat(),
            "guardians": guardians,
        }

    async def list_students(self, caller: User, class_id: Optional[UUID] = None,
                            student_id: Optional[UUID] = None) -> List[Dict[str, Any]]:
        """Students visible to the caller; guardians only see their own children."""
        allowed_ids: Optional[Set[UUID]] = None
        class_filter: Optional[Set[UUID]] = {class_id} if class_id else None

        if caller.role == UserRole.GUARDIAN.value:
            allowed_ids = await guardian_student_ids(self.db, caller.id)
        elif caller.role == UserRole.TEACHER.value:
            assigned = await teacher_class_ids(self.db, caller.id)
            class_filter = (class_filter & assigned) if class_filter else assigned
        elif caller.role not in (UserRole.PRINCIPAL.value, UserRole.ADMIN.value):
            raise ForbiddenError("Access denied. Valid role required.")

        rows = await self._rows(caller.org_id, allowed_ids, class_filter, student_id)
        guardians = await self._guardians_for([s.id for s, _, _ in rows])
        return [self._serialize(s, u, name, guardians.get(s.id, [])) for s, u, name in rows]

    async def get_student(self, org_id: UUID, student_id: UUID) -> Dict[str, Any]:
        rows = await self._rows(org_id, student_id=student_id)
        if not rows:
            raise NotFoundError("Student")
        student, user, class_name = rows[0]
        guardians = await self._guardians_for([student.id])
        return self._serialize(student, user, class_name, guardians.get(student.id, []))

    async def _check_class(self, org_id: UUID, class_id: Optional[UUID]) -> None:
        if class_id is None:
            return
        result = await self.db.execute(
            select(ClassModel.id).where(
                ClassModel.id == class_id,
                ClassModel.org_id == org_id,
                ClassModel.is_deleted == False
            )
        )
        if result.scalar_one_or_none() is None:
            raise BadRequestError("Class not found in organization")

    async def _link_guardians(self, org_id: UUID, student_id: UUID, guardian_ids: List[UUID]) -> List[GuardianStudent]:
        """Create links for valid org guardians; invalid or existing ones are skipped."""
        unique_ids = list(dict.fromkeys(guardian_ids))
        if not unique_ids:
            return []
        valid = await self.db.execute(
            select(User.id).where(
                User.id.in_(unique_ids),
                User.org_id == org_id,
                User.role == UserRole.GUARDIAN.value,
                User.is_deleted == False
            )
        )
        valid_ids = set(valid.scalars().all())
        existing = await self.db.execute(
            select(GuardianStudent.guardian_id).where(GuardianStudent.student_id == student_id)
        )
        linked = set(existing.scalars().all())

        created = []
        for guardian_id in unique_ids:
            if guardian_id not in valid_ids:
                logger.warning(f"Guardian {guardian_id} not found in org {org_id}; skipping link")
                continue
            if guardian_id in linked:
                continue
            link = GuardianStudent(guardian_id=guardian_id, student_id=student_id, org_id=org_id, relation="parent")
            self.db.add(link)
            created.append(link)
        return created

    async def create_student(self, org_id: UUID, data: StudentCreate) -> Dict[str, Any]:
        check_enrolment_age(data.dob)
        await self._check_class(org_id, data.class_id)
        users = UserService(self.db)
        await users.ensure_email_free(data.email)

        values = data.model_dump()
        if not values.get("email"):
            values["email"] = placeholder_email()
        user = users.build_user(
            org_id,
            UserRole.STUDENT.value,
            **{col: values[field] for field, col in USER_FIELDS.items()}
        )
        await self.db.flush()

        student = Student(user_id=user.id, org_id=org_id, **{f: values[f] for f in STUDENT_FIELDS})
        self.db.add(student)
        await self.db.flush()

        links = await self._link_guardians(org_id, student.id, data.guardian_ids)
        await self.db.commit()
        logger.info(f"Student {student.id} created in org {org_id} with {len(links)} guardian link(s)")

        return {
            "student": await self.get_student(org_id, student.id),
            "relationships": [
                {"id": str(l.id), "guardian_id": str(l.guardian_id), "student_id": str(l.student_id), "relation": l.relation}
                for l in links
            ],
        }

    async def update_student(self, org_id: UUID, data: StudentUpdate) -> Dict[str, Any]:
        check_enrolment_age(data.dob)
        student = await self.get(data.id, org_id=org_id)
        if not student:
            raise NotFoundError("Student")
        user = await self.db.get(User, student.user_id)

        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if "class_id" in changes:
            await self._check_class(org_id, changes["class_id"])
        if changes.get("email"):
            await UserService(self.db).ensure_email_free(changes["email"], exclude_id=user.id)

        for field, col in USER_FIELDS.items():
            if field in changes:
                setattr(user, col, changes[field])
        for field in STUDENT_FIELDS:
            if field in changes:
                setattr(student, field, changes[field])

        if "guardian_ids" in changes:
            wanted = set(data.guardian_ids)
            stale = delete(GuardianStudent).where(GuardianStudent.student_id == student.id)
            if wanted:
                stale = stale.where(GuardianStudent.guardian_id.not_in(list(wanted)))
            await self.db.execute(stale)
            await self._link_guardians(org_id, student.id, data.guardian_ids)

        await self.db.commit()
        return await self.get_student(org_id, student.id)

    async def delete_student(self, org_id: UUID, student_id: UUID) -> None:
        student = await self.get(student_id, org_id=org_id)
        if not student:
            raise NotFoundError("Student")
        student.mark_deleted()
        user = await self.db.get(User, student.user_id)
        if user:
            user.mark_deleted()
            user.is_active = False
        await self.db.commit()
        logger.info(f"Student {student_id} deleted from org {org_id}")
