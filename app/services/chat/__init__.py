# app/services/chat/__init__.py
from .message_service import MessageService
from .recipient_service import RecipientService
from .websocket_manager import WebSocketManager, websocket_manager

__all__ = ["MessageService", "RecipientService", "WebSocketManager", "websocket_manager"]
