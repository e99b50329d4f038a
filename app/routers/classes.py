# app/routers/classes.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.class_schemas import ClassCreate, ClassUpdate
from ..services.class_service import ClassService
from ..utils.cache_invalidation import invalidate_directory_cache
from ..utils.cache_headers import user_data_headers

router = APIRouter(prefix="/api/classes", tags=["Classes"])

read_roles = require_roles("principal", "admin", "teacher")
write_roles = require_roles("principal", "admin")

@router.get("")
async def get_classes(
    response: Response,
    created_by: Optional[UUID] = Query(None, alias="createdBy"),
    class_id: Optional[UUID] = Query(None, alias="id"),
    current_user: User = Depends(read_roles),
    db: AsyncSession = Depends(get_db)
):
    """List the org's classes, or fetch one by id"""
    response.headers.update(user_data_headers())
    service = ClassService(db)
    if class_id:
        return {"class": await service.get_class(current_user.org_id, class_id)}

    classes = await service.list_classes(current_user.org_id, created_by=created_by)
    return {"classes": classes, "total_classes": len(classes)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_class(
    payload: ClassCreate,
    current_user: User = Depends(write_roles),
    db: AsyncSession = Depends(get_db)
):
    class_data, teacher_assigned = await ClassService(db).create_class(
        current_user.org_id, current_user.id, payload
    )
    await invalidate_directory_cache(current_user.org_id)
    message = "Class created and teacher assigned successfully" if teacher_assigned else "Class created successfully"
    return {"class": class_data, "message": message}

@router.put("")
async def update_class(
    payload: ClassUpdate,
    current_user: User = Depends(write_roles),
    db: AsyncSession = Depends(get_db)
):
    class_data = await ClassService(db).update_class(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"class": class_data, "message": "Class updated successfully"}

@router.delete("")
async def delete_class(
    class_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(write_roles),
    db: AsyncSession = Depends(get_db)
):
    await ClassService(db).delete_class(current_user.org_id, class_id)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "message": "Class deleted successfully"}
