# app/routers/guardian_students.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.guardian_schemas import GuardianStudentCreate
from ..services.guardian_service import GuardianService
from ..utils.cache_invalidation import invalidate_directory_cache

router = APIRouter(prefix="/api/guardian-students", tags=["Guardian Students"])

editors = require_roles("principal", "admin", "teacher")

@router.get("")
async def get_relationships(
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    guardian_id: Optional[UUID] = Query(None, alias="guardianId"),
    current_user: User = Depends(require_roles("principal", "admin", "teacher", "guardian")),
    db: AsyncSession = Depends(get_db)
):
    links = await GuardianService(db).list_links(current_user, student_id=student_id, guardian_id=guardian_id)
    return {"relationships": links}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_relationship(
    payload: GuardianStudentCreate,
    current_user: User = Depends(editors),
    db: AsyncSession = Depends(get_db)
):
    link = await GuardianService(db).create_link(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"relationship": link}

@router.delete("")
async def delete_relationship(
    link_id: Optional[UUID] = Query(None, alias="id"),
    guardian_id: Optional[UUID] = Query(None, alias="guardianId"),
    student_id: Optional[UUID] = Query(None, alias="studentId"),
    current_user: User = Depends(editors),
    db: AsyncSession = Depends(get_db)
):
    await GuardianService(db).delete_link(
        current_user.org_id, link_id=link_id, guardian_id=guardian_id, student_id=student_id
    )
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True}
