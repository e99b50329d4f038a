# app/routers/chat/__init__.py
from . import messages_router, message_items_router, participants_router, websocket_router

__all__ = ["messages_router", "message_items_router", "participants_router", "websocket_router"]
