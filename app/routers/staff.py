# app/routers/staff.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.staff_schemas import StaffCreate, StaffUpdate
from ..services.staff_service import STAFF_CREATED, StaffService
from ..utils.cache_invalidation import invalidate_directory_cache

router = APIRouter(prefix="/api/staff-management", tags=["Staff Management"])

managers = require_roles("principal", "admin")

@router.get("")
async def get_staff(
    current_user: User = Depends(require_roles("principal", "admin", "teacher")),
    db: AsyncSession = Depends(get_db)
):
    """Staff directory; teachers get contact details stripped"""
    staff = await StaffService(db).list_staff(current_user.org_id, redact=current_user.role == "teacher")
    return {"staff": staff, "total_staff": len(staff)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_staff(
    payload: StaffCreate,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    staff = await StaffService(db).create_staff(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"staff": staff, "message": STAFF_CREATED}

@router.put("")
async def update_staff(
    payload: StaffUpdate,
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    staff = await StaffService(db).update_staff(current_user.org_id, payload)
    await invalidate_directory_cache(current_user.org_id)
    return {"staff": staff, "message": "Staff updated successfully"}

@router.delete("")
async def delete_staff(
    user_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(managers),
    db: AsyncSession = Depends(get_db)
):
    await StaffService(db).delete_staff(current_user.org_id, user_id)
    await invalidate_directory_cache(current_user.org_id)
    return {"success": True, "message": "Staff member deleted successfully"}
