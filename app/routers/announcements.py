# app/routers/announcements.py
from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..core.exceptions import BadRequestError
from ..models.shared.user import User
from ..schemas.announcement_schemas import AnnouncementCreate, AnnouncementUpdate
from ..services.announcement_service import AnnouncementService

router = APIRouter(prefix="/api/announcements", tags=["Announcements"])

authors = require_roles("teacher", "principal", "admin")


def parse_id_list(raw: Optional[str]) -> List[UUID]:
    """Parse a comma separated list of UUIDs; blanks are ignored."""
    if not raw:
        return []
    try:
        return [UUID(part.strip()) for part in raw.split(",") if part.strip()]
    except ValueError as e:
        raise BadRequestError("teacherClassIds must be a comma separated list of ids") from e


@router.get("")
async def get_announcements(
    announcement_id: Optional[UUID] = Query(None, alias="id"),
    class_id: Optional[UUID] = Query(None, alias="classId"),
    teacher_class_ids: Optional[str] = Query(None, alias="teacherClassIds"),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(require_roles("principal", "admin", "teacher", "guardian")),
    db: AsyncSession = Depends(get_db)
):
    """Newest announcements the caller can see"""
    announcements = await AnnouncementService(db).list_announcements(
        current_user,
        class_id=class_id,
        class_ids=parse_id_list(teacher_class_ids),
        limit=limit,
        announcement_id=announcement_id
    )
    return {"announcements": announcements}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_announcement(
    payload: AnnouncementCreate,
    current_user: User = Depends(authors),
    db: AsyncSession = Depends(get_db)
):
    return {"announcement": await AnnouncementService(db).create_announcement(current_user, payload)}

@router.put("")
async def update_announcement(
    payload: AnnouncementUpdate,
    current_user: User = Depends(authors),
    db: AsyncSession = Depends(get_db)
):
    return {"announcement": await AnnouncementService(db).update_announcement(current_user, payload)}

@router.delete("")
async def delete_announcement(
    announcement_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(authors),
    db: AsyncSession = Depends(get_db)
):
    await AnnouncementService(db).delete_announcement(current_user, announcement_id)
    return {"success": True, "message": "Announcement deleted successfully"}
