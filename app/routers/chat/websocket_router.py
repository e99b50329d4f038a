# app/routers/chat/websocket_router.py
from uuid import UUID
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Depends, Query, status
from sqlalchemy.ext.asyncio import async_sessionmaker
import json
import logging

from ...core.auth import authenticate_token
from ...core.database import get_session_factory
from ...core.exceptions import SchoolHubException
from ...models.shared.user import User
from ...services.chat.message_service import MessageService
from ...services.chat.websocket_manager import websocket_manager

logger = logging.getLogger(__name__)
router = APIRouter()


async def _thread_id(user: User, message_data: dict) -> UUID:
    try:
        return UUID(str(message_data.get("thread_id")))
    except ValueError:
        await websocket_manager.send_personal_message(
            {"type": "error", "message": "A valid thread_id is required"}, user.id
        )
        raise


async def handle_client_message(user: User, message_data: dict, session_factory: async_sessionmaker):
    """Dispatch one decoded client frame."""
    message_type = message_data.get("type")

    if message_type == "ping":
        await websocket_manager.send_personal_message({"type": "pong"}, user.id)

    elif message_type == "subscribe":
        thread_id = await _thread_id(user, message_data)
        async with session_factory() as db:
            allowed = await MessageService(db).is_participant(thread_id, user.id)
        if not allowed:
            await websocket_manager.send_personal_message({
                "type": "error",
                "message": "Not a participant of this thread",
                "thread_id": str(thread_id)
            }, user.id)
            return
        await websocket_manager.subscribe(user.id, thread_id)

    elif message_type == "unsubscribe":
        thread_id = await _thread_id(user, message_data)
        await websocket_manager.unsubscribe(user.id, thread_id)

    elif message_type == "typing":
        thread_id = await _thread_id(user, message_data)
        if str(user.id) not in websocket_manager.thread_subscriptions.get(str(thread_id), ()):
            return
        await websocket_manager.broadcast_to_thread({
            "type": "typing_indicator",
            "thread_id": str(thread_id),
            "user_id": str(user.id),
            "role": user.role,
            "is_typing": bool(message_data.get("is_typing", False))
        }, thread_id, exclude_user=user.id)

    elif message_type == "mark_read":
        thread_id = await _thread_id(user, message_data)
        async with session_factory() as db:
            try:
                participant = await MessageService(db).set_unread(user, thread_id, False)
            except SchoolHubException as e:
                await websocket_manager.send_personal_message(
                    {"type": "error", "message": e.message, "thread_id": str(thread_id)}, user.id
                )
                return
        await websocket_manager.broadcast_to_thread({
            "type": "participant_updated",
            "thread_id": str(thread_id),
            "participant": participant
        }, thread_id)

    else:
        await websocket_manager.send_personal_message({
            "type": "error",
            "message": f"Unknown message type: {message_type}"
        }, user.id)


@router.websocket("/ws/messages")
async def websocket_endpoint(
    websocket: WebSocket,
    token: str = Query(""),
    session_factory: async_sessionmaker = Depends(get_session_factory)
):
    """WebSocket endpoint for real-time messaging"""
    try:
        async with session_factory() as db:
            user = await authenticate_token(db, token)
    except SchoolHubException as e:
        logger.warning(f"Rejected websocket connection: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket_manager.connect(websocket, user.id, user.role, user.org_id)

    try:
        while True:
            data = await websocket.receive_text()
            try:
                message_data = json.loads(data)
            except json.JSONDecodeError:
                await websocket_manager.send_personal_message(
                    {"type": "error", "message": "Invalid JSON"}, user.id
                )
                continue
            if not isinstance(message_data, dict):
                await websocket_manager.send_personal_message(
                    {"type": "error", "message": "Expected a JSON object"}, user.id
                )
                continue

            try:
                await handle_client_message(user, message_data, session_factory)
            except ValueError:
                continue

    except WebSocketDisconnect:
        websocket_manager.disconnect(user.id, websocket)
        logger.info(f"User {user.id} disconnected from messaging")
    except Exception as e:
        logger.error(f"WebSocket error for user {user.id}: {e}")
        websocket_manager.disconnect(user.id, websocket)
