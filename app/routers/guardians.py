# app/routers/guardians.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.guardian_schemas import GuardianCreate, GuardianUpdate
from ..services.guardian_service import GuardianService
from ..utils.cache_invalidation import invalidate_directory_cache

router = APIRouter(prefix="/api/guardians", tags=["Guardians"])

managers = require_roles("principal", "admin")

@router.get("")
async def get_guardians(
    guardian_id: Optional[UUID] = Query(None, alias="id"),
    current_user: User = Depends(require_roles("principal", "admin", "teacher")),
    db: AsyncSession = Depends(get_db)
):
    service = GuardianService(db)
    if guardian_id:
        return {"guardian": await service.get_guardian(current_user.org_id, guardian_id)}
    guardians = await service.list_guardians(current_user.org_id)
    return {"guardians": guardians, "total_guardians": len(guardians)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_guardian(
    payload: GuardianCreate,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    guardian = await GuardianService(db).create_guardian(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"guardian": guardian, "message": "Guardian created successfully"}

@router.put("")
async def update_guardian(
    payload: GuardianUpdate,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    guardian = await GuardianService(db).update_guardian(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"guardian": guardian, "message": "Guardian updated successfully"}

@router.delete("")
async def delete_guardian(
    guardian_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    await GuardianService(db).delete_guardian(current_user.org_id, guardian_id)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "message": "Guardian deleted successfully"}
