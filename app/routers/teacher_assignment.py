# app/routers/teacher_assignment.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..core.exceptions import ForbiddenError
from ..models.shared.user import User
from ..schemas.class_schemas import AssignStudentsRequest, AssignTeacherRequest
from ..services.class_service import ClassService
from ..utils.cache_invalidation import invalidate_directory_cache

router = APIRouter(prefix="/api", tags=["Teacher Assignment"])

managers = require_roles("principal", "admin")

@router.post("/assign-teacher-class")
async def assign_teacher_to_class(
    payload: AssignTeacherRequest,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    """Give a teacher a fresh membership in a class"""
    membership = await ClassService(db).assign_teacher(current_user.org_id, payload.user_id, payload.class_id)
    await invalidate_directory_cache(current_user.org_id)
    return {
        "success": True,
        "membership": {
            "id": str(membership.id),
            "class_id": str(membership.class_id),
            "user_id": str(membership.user_id),
            "membership_role": membership.membership_role,
            "created_at": membership.created_at.isoformat()
        }
    }

@router.post("/remove-teacher-class")
async def remove_teacher_from_class(
    payload: AssignTeacherRequest,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    await ClassService(db).remove_teacher(current_user.org_id, payload.user_id, payload.class_id)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "message": "Teacher removed from class"}

@router.post("/assign-students-class")
async def assign_students_to_class(
    payload: AssignStudentsRequest,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    updated = await ClassService(db).assign_students(current_user.org_id, payload.class_id, payload.student_ids)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "updated": updated, "message": f"{updated} student(s) assigned to class"}

@router.get("/teacher-classes")
async def get_teacher_classes(
    user_id: Optional[UUID] = Query(None, alias="userId"),
    current_user: User = Depends(require_roles("teacher", "principal", "admin")),
    db: AsyncSession = Depends(get_db)
):
    """Classes the caller (or, for managers, the given teacher) is assigned to"""
    target = current_user.id
    if user_id and user_id != current_user.id:
        if current_user.role == "teacher":
            raise ForbiddenError("Teachers can only view their own classes")
        target = user_id
    return {"classes": await ClassService(db).teacher_classes(current_user.org_id, target)}
