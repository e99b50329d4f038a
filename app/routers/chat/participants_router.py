# app/routers/chat/participants_router.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import require_roles
from ...core.database import get_db
from ...models.shared.user import User
from ...schemas.message_schemas import ParticipantCreate, ParticipantUpdate
from ...services.chat.message_service import MessageService
from ...services.chat.websocket_manager import websocket_manager

router = APIRouter(prefix="/api/message-participants", tags=["Message Participants"])

messaging_roles = require_roles("principal", "admin", "teacher", "guardian")

@router.get("")
async def get_participants(
    thread_id: UUID = Query(..., alias="messageId"),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    return {"participants": await MessageService(db).list_participants(current_user, thread_id)}

@router.post("", status_code=status.HTTP_201_CREATED)
async def add_participant(
    payload: ParticipantCreate,
    response: Response,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    participant, created = await MessageService(db).add_participant(
        current_user, payload.message_id, payload.user_id, payload.role
    )
    if not created:
        response.status_code = status.HTTP_200_OK
        return {"participant": participant}

    await websocket_manager.broadcast_to_thread(
        {"type": "participant_added", "thread_id": str(payload.message_id), "participant": participant},
        payload.message_id,
        exclude_user=current_user.id
    )
    await websocket_manager.notify_users(
        {"type": "new_thread", "thread_id": str(payload.message_id)},
        [payload.user_id]
    )
    return {"participant": participant}

@router.put("")
async def update_participant(
    payload: ParticipantUpdate,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    """Set the caller's own unread flag"""
    participant = await MessageService(db).set_unread(current_user, payload.message_id, payload.unread)
    await websocket_manager.broadcast_to_thread(
        {"type": "participant_updated", "thread_id": str(payload.message_id), "participant": participant},
        payload.message_id,
        exclude_user=current_user.id
    )
    return {"participant": participant}

@router.delete("")
async def remove_participant(
    thread_id: UUID = Query(..., alias="messageId"),
    user_id: UUID = Query(..., alias="userId"),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    await MessageService(db).remove_participant(current_user, thread_id, user_id)
    await websocket_manager.unsubscribe(user_id, thread_id)
    return {"success": True}
