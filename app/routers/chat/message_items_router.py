# app/routers/chat/message_items_router.py
from uuid import UUID
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.auth import require_roles
from ...core.database import get_db
from ...models.shared.user import User
from ...schemas.message_schemas import ItemCreate, ItemUpdate
from ...services.chat.message_service import MessageService
from ...services.chat.websocket_manager import websocket_manager

router = APIRouter(prefix="/api/message-items", tags=["Message Items"])

messaging_roles = require_roles("principal", "admin", "teacher", "guardian")

@router.get("")
async def get_items(
    thread_id: UUID = Query(..., alias="messageId"),
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    return await MessageService(db).list_items(current_user, thread_id, limit=limit, offset=offset)

@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(
    payload: ItemCreate,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    item = await MessageService(db).post_item(current_user, payload.message_id, payload.body, payload.attachments)
    await websocket_manager.publish_new_message(item, payload.message_id, exclude_user=current_user.id)
    return {"item": item}

@router.put("")
async def edit_item(
    payload: ItemUpdate,
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    """Edit an item; the previous body is kept in edit_history"""
    item = await MessageService(db).edit_item(current_user, payload.id, payload.body)
    await websocket_manager.broadcast_to_thread(
        {"type": "message_updated", "thread_id": item["message_id"], "item": item},
        UUID(item["message_id"]),
        exclude_user=current_user.id
    )
    return {"item": item}

@router.delete("")
async def delete_item(
    item_id: UUID = Query(..., alias="id"),
    current_user: User = Depends(messaging_roles),
    db: AsyncSession = Depends(get_db)
):
    item = await MessageService(db).delete_item(current_user, item_id)
    await websocket_manager.broadcast_to_thread(
        {"type": "message_deleted", "thread_id": str(item.message_id), "item_id": str(item.id)},
        item.message_id,
        exclude_user=current_user.id
    )
    return {"success": True}
