# app/services/staff_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ..models.shared.user import User, Staff, STAFF_ROLES
from ..models.tenant_specific.class_model import ClassModel, ClassMembership
from ..schemas.staff_schemas import StaffCreate, StaffUpdate
from .access_service import TEACHER_MEMBERSHIP
from .user_service import UserService, user_detail

logger = logging.getLogger(__name__)

STAFF_CREATED = "Staff account created successfully with default password."


class StaffService(UserService):

    async def _classes_by_user(self, org_id: UUID) -> Dict[UUID, List[Dict[str, str]]]:
        stmt = (
            select(ClassMembership.user_id, ClassModel.id, ClassModel.name)
            .join(ClassModel, ClassModel.id == ClassMembership.class_id)
            .where(ClassModel.org_id == org_id, ClassModel.is_deleted == False)
            .order_by(ClassModel.name)
        )
        result = await self.db.execute(stmt)
        classes: Dict[UUID, List[Dict[str, str]]] = {}
        for user_id, class_id, name in result.all():
            classes.setdefault(user_id, []).append({"id": str(class_id), "name": name})
        return classes

    def _entry(self, user: User, staff: Optional[Staff], classes: List[Dict[str, str]], redact: bool) -> Dict[str, Any]:
        entry = user_detail(user, redact=redact)
        entry.update({
            "staff_id": str(staff.id) if staff else None,
            "education_level": staff.education_level if staff else None,
            "union_name": staff.union_name if staff else None,
            "classes": classes,
        })
        return entry

    async def list_staff(self, org_id: UUID, redact: bool = False) -> List[Dict[str, Any]]:
        """Merge staff rows, teacher users and membership teachers without duplicates."""
        staff_rows = await self.db.execute(
            select(Staff, User)
            .join(User, User.id == Staff.user_id)
            .where(
                Staff.org_id == org_id,
                Staff.is_deleted == False,
                Staff.is_active == True,
                User.is_deleted == False
            )
        )
        merged: Dict[UUID, tuple] = {}
        for staff, user in staff_rows.all():
            merged[user.id] = (user, staff)

        for teacher in await self.list_by_role(org_id, "teacher"):
            merged.setdefault(teacher.id, (teacher, None))

        classes = await self._classes_by_user(org_id)
        missing = [uid for uid in classes if uid not in merged]
        if missing:
            for uid, user in (await self.get_many(missing)).items():
                if not user.is_deleted and user.role in STAFF_ROLES:
                    merged.setdefault(uid, (user, None))

        entries = [
            self._entry(user, staff, classes.get(uid, []), redact)
            for uid, (user, staff) in merged.items()
        ]
        entries.sort(key=lambda e: ((e["first_name"] or "").lower(), (e["last_name"] or "").lower()))
        return entries

    async def _staff_user(self, org_id: UUID, user_id: UUID) -> User:
        user = await self.get(user_id)
        if not user:
            raise NotFoundError("Staff member")
        if user.org_id != org_id:
            raise ForbiddenError("Staff member belongs to another organization")
        if user.role not in STAFF_ROLES:
            raise NotFoundError("Staff member")
        return user

    async def _staff_row(self, user: User) -> Optional[Staff]:
        result = await self.db.execute(select(Staff).where(Staff.user_id == user.id))
        return result.scalar_one_or_none()

    async def create_staff(self, org_id: UUID, data: StaffCreate) -> Dict[str, Any]:
        await self.ensure_email_free(data.email)
        if data.class_id:
            class_obj = await self.db.execute(
                select(ClassModel.id).where(
                    ClassModel.id == data.class_id,
                    ClassModel.org_id == org_id,
                    ClassModel.is_deleted == False
                )
            )
            if class_obj.scalar_one_or_none() is None:
                raise BadRequestError("Class not found in organization")

        user = self.build_user(
            org_id, data.role,
            **data.model_dump(include={"first_name", "last_name", "email", "phone", "address", "ssn"})
        )
        await self.db.flush()
        staff = Staff(
            user_id=user.id,
            org_id=org_id,
            education_level=data.education_level,
            union_name=data.union_membership,
        )
        self.db.add(staff)
        if data.class_id:
            self.db.add(ClassMembership(class_id=data.class_id, user_id=user.id, membership_role=TEACHER_MEMBERSHIP))
        await self.db.commit()
        logger.info(f"Staff {user.id} ({data.role}) created in org {org_id}")

        classes = await self._classes_by_user(org_id)
        return self._entry(user, staff, classes.get(user.id, []), redact=False)

    async def update_staff(self, org_id: UUID, data: StaffUpdate) -> Dict[str, Any]:
        user = await self._staff_user(org_id, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})
        if changes.get("email"):
            await self.ensure_email_free(changes["email"], exclude_id=user.id)
            changes["email"] = changes["email"].lower()

        staff_changes = {}
        if "education_level" in changes:
            staff_changes["education_level"] = changes.pop("education_level")
        if "union_membership" in changes:
            staff_changes["union_name"] = changes.pop("union_membership")
        if changes.get("role") is None:
            changes.pop("role", None)

        for key, value in changes.items():
            setattr(user, key, value)

        staff = await self._staff_row(user)
        if staff_changes:
            if staff is None:
                staff = Staff(user_id=user.id, org_id=org_id)
                self.db.add(staff)
            for key, value in staff_changes.items():
                setattr(staff, key, value)
        if staff is not None and "is_active" in changes:
            staff.is_active = changes["is_active"]

        await self.db.commit()
        classes = await self._classes_by_user(org_id)
        return self._entry(user, staff, classes.get(user.id, []), redact=False)

    async def delete_staff(self, org_id: UUID, user_id: UUID) -> None:
        user = await self._staff_user(org_id, user_id)
        user.mark_deleted()
        user.is_active = False
        staff = await self._staff_row(user)
        if staff:
            staff.mark_deleted()
            staff.is_active = False
        await self.db.commit()
        logger.info(f"Staff {user_id} deactivated in org {org_id}")
