# app/services/chat/websocket_manager.py
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID
from fastapi import WebSocket, status
import json
import logging

logger = logging.getLogger(__name__)

# How many recent message ids each thread remembers for de-duplication
SEEN_IDS_PER_THREAD = 500


class WebSocketManager:
    def __init__(self):
        # {user_id: {websocket, role, org_id}}
        self.active_connections: Dict[str, Dict] = {}
        # {thread_id: {user_ids}}
        self.thread_subscriptions: Dict[str, Set[str]] = {}
        # {thread_id: OrderedDict[message_id, None]}
        self._seen_message_ids: Dict[str, "OrderedDict[str, None]"] = {}

    async def connect(self, websocket: WebSocket, user_id: UUID, role: str, org_id: Optional[UUID]):
        """Accept websocket connection and store user info"""
        await websocket.accept()
        user_key = str(user_id)

        previous = self.active_connections.get(user_key)
        if previous and previous["websocket"] is not websocket:
            logger.info(f"User {user_key} reconnected; closing previous socket")
            try:
                await previous["websocket"].close(code=status.WS_1000_NORMAL_CLOSURE)
            except Exception as e:
                logger.debug(f"Previous socket for {user_key} already closed: {e}")

        self.active_connections[user_key] = {
            "websocket": websocket,
            "role": role,
            "org_id": str(org_id) if org_id else None,
            "user_id": user_key
        }
        logger.info(f"User {user_key} ({role}) connected")

        await self.send_personal_message({
            "type": "connection_status",
            "status": "connected",
            "user_id": user_key,
            "role": role
        }, user_id)

    def disconnect(self, user_id: UUID, websocket: Optional[WebSocket] = None):
        """Remove user connection and clean up subscriptions.

        With ``websocket`` given, only that socket is dropped; a newer
        connection of the same user stays registered.
        """
        user_key = str(user_id)
        connection = self.active_connections.get(user_key)
        if connection is None:
            return
        if websocket is not None and connection["websocket"] is not websocket:
            logger.debug(f"Stale socket of user {user_key} closed; keeping current connection")
            return

        for subscribers in self.thread_subscriptions.values():
            subscribers.discard(user_key)
        self.thread_subscriptions = {
            thread_id: subscribers
            for thread_id, subscribers in self.thread_subscriptions.items()
            if subscribers
        }
        del self.active_connections[user_key]
        logger.info(f"User {user_key} disconnected")

    async def subscribe(self, user_id: UUID, thread_id: UUID):
        user_key = str(user_id)
        thread_key = str(thread_id)

        if user_key not in self.active_connections:
            logger.warning(f"User {user_key} not connected, cannot subscribe to {thread_key}")
            return

        self.thread_subscriptions.setdefault(thread_key, set()).add(user_key)
        logger.debug(f"User {user_key} subscribed to thread {thread_key}")

        await self.send_personal_message({"type": "subscribed", "thread_id": thread_key}, user_id)

    async def unsubscribe(self, user_id: UUID, thread_id: UUID):
        thread_key = str(thread_id)
        if thread_key in self.thread_subscriptions:
            self.thread_subscriptions[thread_key].discard(str(user_id))
            if not self.thread_subscriptions[thread_key]:
                del self.thread_subscriptions[thread_key]

    async def send_personal_message(self, message: dict, user_id: UUID):
        """Send message to specific user"""
        user_key = str(user_id)
        connection = self.active_connections.get(user_key)
        if not connection:
            return
        try:
            await connection["websocket"].send_text(json.dumps(message, default=str))
        except Exception as e:
            # socket is gone
            logger.error(f"Error sending message to {user_key}: {e}")
            self.disconnect(user_id, connection["websocket"])

    async def broadcast_to_thread(self, message: dict, thread_id: UUID, exclude_user: Optional[UUID] = None) -> int:
        """Send message to every subscriber of a thread"""
        thread_key = str(thread_id)
        exclude_key = str(exclude_user) if exclude_user else None

        sent_count = 0
        for user_key in list(self.thread_subscriptions.get(thread_key, ())):
            if user_key == exclude_key or user_key not in self.active_connections:
                continue
            await self.send_personal_message(message, UUID(user_key))
            if user_key in self.active_connections:
                sent_count += 1

        logger.debug(f"Broadcast {message.get('type')} to thread {thread_key}: {sent_count} recipient(s)")
        return sent_count

    def _remember(self, thread_key: str, message_id: str) -> bool:
        """Record a message id; False when it was already delivered."""
        seen = self._seen_message_ids.setdefault(thread_key, OrderedDict())
        if message_id in seen:
            return False
        seen[message_id] = None
        while len(seen) > SEEN_IDS_PER_THREAD:
            seen.popitem(last=False)
        return True

    async def publish_new_message(self, item: dict, thread_id: UUID, exclude_user: Optional[UUID] = None) -> bool:
        """Push a new_message event once per message id."""
        thread_key = str(thread_id)
        if not self._remember(thread_key, str(item["id"])):
            logger.debug(f"Skipping duplicate message {item['id']} for thread {thread_key}")
            return False
        await self.broadcast_to_thread(
            {"type": "new_message", "thread_id": thread_key, "item": item},
            thread_id,
            exclude_user=exclude_user
        )
        return True

    async def notify_users(self, message: dict, user_ids: Iterable[UUID]):
        """Send to connected users regardless of subscriptions"""
        for user_id in user_ids:
            await self.send_personal_message(message, user_id)

    def get_online_users_in_thread(self, thread_id: UUID) -> List[str]:
        return [
            user_key for user_key in self.thread_subscriptions.get(str(thread_id), ())
            if user_key in self.active_connections
        ]

    def is_user_online(self, user_id: UUID) -> bool:
        return str(user_id) in self.active_connections

# Global WebSocket manager instance
websocket_manager = WebSocketManager()
