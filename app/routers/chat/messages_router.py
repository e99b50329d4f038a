# app/routers/chat/messages_router.py
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ...core.auth import require_roles
from ...core.database import get_db
from ...models.shared.user import User
from ...schemas.message_schemas import ItemBody, ThreadCreate, ThreadUpdate
from ...services.chat.message_service import MessageService
from ...services.chat.recipient_service import RecipientService
from ...services.chat.websocket_manager import websocket_manager
from ...utils.cache_headers import no_cache_headers

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/messages", tags=["Messages"])

messaging_roles = require_roles("principal", "admin", "teacher", "guardian")

@router.get("")
async def get_threads(
    response: Response,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    """Threads the caller participates in, newest first"""
    response.headers.update(no_cache_headers())
    return {"threads": await MessageService(db).list_threads(current_user)}

@router.get("/recipients")
async def get_recipients(
    search: Optional[str] = Query(None, max_length=100),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    """People the caller may start a conversation with"""
    return await RecipientService(db).list_recipients(current_user, search)

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_thread(
    payload: ThreadCreate,
    response: Response,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    result = await MessageService(db).create_thread(current_user, payload)
    if result.created:
        await websocket_manager.notify_users(
            {"type": "new_thread", "thread": result.thread},
            [p for p in result.participant_ids if p != current_user.id]
        )
    else:
        response.status_code = status.HTTP_200_OK

    if result.first_item:
        await websocket_manager.publish_new_message(
            result.first_item, result.thread["id"], exclude_user=current_user.id
        )
    return {"message": result.thread}

@router.put("")
async def update_thread(
    payload: ThreadUpdate,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    return {"message": await MessageService(db).update_thread(current_user, payload)}

@router.delete("")
async def delete_thread(
    thread_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    await MessageService(db).delete_thread(current_user, thread_id)
    return {"success": True}

@router.get("/{thread_id}/items")
async def get_thread_items(
    thread_id: UUID,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    """Items of a thread, oldest first; marks the thread read for the caller"""
    return await MessageService(db).list_items(current_user, thread_id, limit=limit, offset=offset)

@router.post("/{thread_id}/items", status_code=status.HTTP_201_CREATED)
async def post_thread_item(
    thread_id: UUID,
    payload: ItemBody,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    item = await MessageService(db).post_item(current_user, thread_id, payload.body, payload.attachments)
    await websocket_manager.publish_new_message(item, thread_id, exclude_user=current_user.id)
    return {"item": item}
