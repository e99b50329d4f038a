# app/routers/events.py
from datetime import datetime
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.auth import require_roles
from ..core.database import get_db
from ..models.shared.user import User
from ..schemas.event_schemas import EventCreate, EventUpdate, as_utc
from ..services.event_service import EventService

router = APIRouter(prefix="/api/events", tags=["Events"])

organisers = require_roles("principal", "admin", "teacher")

@router.get("")
async def get_events(
    class_id: Optional[UUID] = Query(None, alias="classId"),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    current_user: User = Depends(require_roles("principal", "admin", "teacher", "guardian")),
    db: AsyncSession = Depends(get_db)
):
    events = await EventService(db).list_events(
        current_user,
        class_id=class_id,
        start=as_utc(start_date) if start_date else None,
        end=as_utc(end_date) if end_date else None
    )
    return {"events": events}

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    current_user: User = Depends(organisers),
    db: AsyncSession = Depends(get_db)
):
    return {"event": await EventService(db).create_event(current_user, payload)}

@router.put("")
async def update_event(
    payload: EventUpdate,
    current_user: User = Depends(organisers),
    db: AsyncSession = Depends(get_db)
):
    return {"event": await EventService(db).update_event(current_user, payload)}

@router.delete("")
async def delete_event(
    event_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(organisers),
    db: AsyncSession = Depends(get_db)
):
    await EventService(db).delete_event(current_user, event_id)
    return {"success": True, "message": "Event deleted successfully"}
