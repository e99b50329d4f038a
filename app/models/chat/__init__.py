# app/models/chat/__init__.py
from .message_thread import MessageThread, MessageParticipant, THREAD_TYPES
from .message_item import MessageItem

__all__ = ["MessageThread", "MessageParticipant", "MessageItem", "THREAD_TYPES"]
