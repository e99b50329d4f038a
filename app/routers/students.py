# app/routers/students.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.student_schemas import StudentCreate, StudentUpdate
from ..services.student_service import StudentService
from ..utils.cache_invalidation import invalidate_directory_cache

router = APIRouter(prefix="/api/students", tags=["Students"])

editors = require_roles("principal", "admin", "teacher")

@router.get("")
async def get_students(
    class_id: Optional[UUID] = Query(None, alias="classId"),
    student_id: Optional[UUID] = Query(None, alias="id"),
    current_user: User = Depends(require_roles("principal", "admin", "teacher", "guardian")),
    db: AsyncSession = Depends(get_db)
):
    """Students visible to the caller, with their guardians"""
    students = await StudentService(db).list_students(current_user, class_id=class_id, student_id=student_id)
    return {"students": students, "total_students": len(students)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_student(
    payload: StudentCreate,
    current_user: User = Depends(editors),
    db: AsyncSession = Depends(get_db)
):
    result = await StudentService(db).create_student(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {**result, "message": "Student created successfully"}

@router.put("")
async def update_student(
    payload: StudentUpdate,
    current_user: User = Depends(editors),
    db: AsyncSession = Depends(get_db)
):
    student = await StudentService(db).update_student(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"student": student, "message": "Student updated successfully"}

@router.delete("")
async def delete_student(
    student_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(editors),
    db: AsyncSession = Depends(get_db)
):
    await StudentService(db).delete_student(current_user.org_id, student_id)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "message": "Student deleted successfully"}
