# app/services/event_service.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Set
from uuid import UUID
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..core.exceptions import BadRequestError, ForbiddenError, NotFoundError
from ..models.shared.user import User, UserRole
from ..models.tenant_specific.class_model import ClassModel
from ..models.tenant_specific.event import Event
from ..schemas.event_schemas import EventCreate, EventUpdate, as_utc
from .access_service import guardian_class_ids, teacher_class_ids
from .base_service import BaseService

logger = logging.getLogger(__name__)

TEACHER = UserRole.TEACHER.value
GUARDIAN = UserRole.GUARDIAN.value


def serialize_event(event: Event) -> Dict[str, Any]:
    return {
        "id": str(event.id),
        "org_id": str(event.org_id),
        "class_id": str(event.class_id) if event.class_id else None,
        "title": event.title,
        "description": event.description,
        "start_at": event.start_at.isoformat(),
        "end_at": event.end_at.isoformat() if event.end_at else None,
        "location": event.location,
        "created_by": str(event.created_by) if event.created_by else None,
        "created_at": event.created_at.isoformat(),
    }


class EventService(BaseService[Event]):
    def __init__(self, db: AsyncSession):
        super().__init__(Event, db)

    async def list_events(
        self,
        caller: User,
        class_id: Optional[UUID] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        stmt = select(Event).where(Event.org_id == caller.org_id, Event.is_deleted == False)

        scope: Optional[Set[UUID]] = None
        if caller.role == GUARDIAN:
            scope = {class_id} if class_id else await guardian_class_ids(self.db, caller.id)
        elif caller.role == TEACHER:
            assigned = await teacher_class_ids(self.db, caller.id)
            scope = (assigned & {class_id}) if class_id else assigned
        elif class_id:
            scope = {class_id}

        if scope is not None:
            stmt = stmt.where(or_(Event.class_id.is_(None), Event.class_id.in_(list(scope))))
        if start:
            stmt = stmt.where(Event.start_at >= start)
        if end:
            stmt = stmt.where(Event.start_at <= end)

        result = await self.db.execute(stmt.order_by(Event.start_at.asc()))
        return [serialize_event(e) for e in result.scalars().all()]

    async def _check_class(self, caller: User, class_id: UUID) -> None:
        found = await self.db.execute(
            select(ClassModel.id).where(
                ClassModel.id == class_id,
                ClassModel.org_id == caller.org_id,
                ClassModel.is_deleted == False
            )
        )
        if found.scalar_one_or_none() is None:
            raise NotFoundError("Class")
        if caller.role == TEACHER and class_id not in await teacher_class_ids(self.db, caller.id):
            raise ForbiddenError("You are not assigned to this class")

    async def create_event(self, caller: User, data: EventCreate) -> Dict[str, Any]:
        if caller.role == TEACHER and not data.class_id:
            raise BadRequestError("Teachers must select a class for the event")
        if data.class_id:
            await self._check_class(caller, data.class_id)

        event = await self.create({
            "org_id": caller.org_id,
            "created_by": caller.id,
            **data.model_dump(),
        })
        logger.info(f"Event {event.id} created by {caller.id}")
        return serialize_event(event)

    async def _editable(self, caller: User, event_id: UUID) -> Event:
        event = await self.get(event_id, org_id=caller.org_id)
        if not event:
            raise NotFoundError("Event")
        if caller.role == TEACHER:
            if event.class_id is None:
                raise ForbiddenError("Teachers cannot modify organization-wide events")
            if event.class_id not in await teacher_class_ids(self.db, caller.id):
                raise ForbiddenError("You are not assigned to this class")
        return event

    async def update_event(self, caller: User, data: EventUpdate) -> Dict[str, Any]:
        event = await self._editable(caller, data.id)
        changes = data.model_dump(exclude_unset=True, exclude={"id"})

        if "class_id" in changes and changes["class_id"] != event.class_id:
            if caller.role == TEACHER:
                raise ForbiddenError("Teachers cannot move events to another class")
            if changes["class_id"]:
                await self._check_class(caller, changes["class_id"])

        start_at = changes.get("start_at", event.start_at)
        end_at = changes.get("end_at", event.end_at)
        if start_at is None:
            raise BadRequestError("start_at is required")
        if end_at is not None and as_utc(end_at) < as_utc(start_at):
            raise BadRequestError("end_at must be after start_at")

        return serialize_event(await self.update(event, changes))

    async def delete_event(self, caller: User, event_id: UUID) -> None:
        event = await self._editable(caller, event_id)
        await self.soft_delete(event)
        logger.info(f"Event {event_id} deleted by {caller.id}")
