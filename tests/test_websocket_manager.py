import json
import uuid

from app.services.chat.websocket_manager import SEEN_IDS_PER_THREAD, WebSocketManager


class FakeWebSocket:
    def __init__(self, fail: bool = False):
        self.accepted = False
        self.sent = []
        self.fail = fail
        self.close_code = None

    async def accept(self):
        self.accepted = True

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))

    async def close(self, code: int = 1000):
        self.close_code = code

    def types(self):
        return [m["type"] for m in self.sent]


async def connected(manager, role="teacher"):
    ws = FakeWebSocket()
    user_id = uuid.uuid4()
    await manager.connect(ws, user_id, role, uuid.uuid4())
    return ws, user_id


async def test_connect_sends_status():
    manager = WebSocketManager()
    ws, user_id = await connected(manager)
    assert ws.accepted
    assert ws.sent[0] == {"type": "connection_status", "status": "connected",
                          "user_id": str(user_id), "role": "teacher"}
    assert manager.is_user_online(user_id)


async def test_broadcast_reaches_subscribers_except_sender():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    sender_ws, sender = await connected(manager)
    other_ws, other = await connected(manager, role="guardian")
    await manager.subscribe(sender, thread_id)
    await manager.subscribe(other, thread_id)

    sent = await manager.broadcast_to_thread({"type": "typing_indicator"}, thread_id, exclude_user=sender)

    assert sent == 1
    assert "typing_indicator" in other_ws.types()
    assert "typing_indicator" not in sender_ws.types()
    assert sorted(manager.get_online_users_in_thread(thread_id)) == sorted([str(sender), str(other)])


async def test_new_message_is_delivered_once_per_id():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    ws, user_id = await connected(manager)
    await manager.subscribe(user_id, thread_id)
    item = {"id": str(uuid.uuid4()), "body": "hello"}

    assert await manager.publish_new_message(item, thread_id) is True
    assert await manager.publish_new_message(item, thread_id) is False
    assert ws.types().count("new_message") == 1


async def test_seen_ids_are_bounded():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    first = {"id": "first"}
    await manager.publish_new_message(first, thread_id)
    for n in range(SEEN_IDS_PER_THREAD):
        await manager.publish_new_message({"id": f"m{n}"}, thread_id)

    assert len(manager._seen_message_ids[str(thread_id)]) == SEEN_IDS_PER_THREAD
    # the oldest id was evicted, so it is accepted again
    assert await manager.publish_new_message(first, thread_id) is True


async def test_disconnect_cleans_subscriptions():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    _, user_id = await connected(manager)
    await manager.subscribe(user_id, thread_id)

    manager.disconnect(user_id)

    assert not manager.is_user_online(user_id)
    assert str(thread_id) not in manager.thread_subscriptions


async def test_failed_send_drops_connection():
    manager = WebSocketManager()
    broken = FakeWebSocket(fail=True)
    user_id = uuid.uuid4()
    await manager.connect(broken, user_id, "teacher", None)

    assert not manager.is_user_online(user_id)


async def test_subscribe_requires_connection():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    await manager.subscribe(uuid.uuid4(), thread_id)
    assert str(thread_id) not in manager.thread_subscriptions


async def test_notify_users_ignores_offline_users():
    manager = WebSocketManager()
    ws, user_id = await connected(manager)
    await manager.notify_users({"type": "new_thread"}, [user_id, uuid.uuid4()])
    assert ws.types()[-1] == "new_thread"


async def test_reconnect_closes_previous_socket():
    manager = WebSocketManager()
    old_ws, user_id = await connected(manager)
    new_ws = FakeWebSocket()
    await manager.connect(new_ws, user_id, "teacher", None)

    assert old_ws.close_code == 1000
    assert new_ws.close_code is None
    assert manager.active_connections[str(user_id)]["websocket"] is new_ws


async def test_stale_socket_disconnect_keeps_new_connection():
    manager = WebSocketManager()
    thread_id = uuid.uuid4()
    old_ws, user_id = await connected(manager)
    new_ws = FakeWebSocket()
    await manager.connect(new_ws, user_id, "teacher", None)
    await manager.subscribe(user_id, thread_id)

    manager.disconnect(user_id, old_ws)

    assert manager.is_user_online(user_id)
    assert manager.get_online_users_in_thread(thread_id) == [str(user_id)]

    manager.disconnect(user_id, new_ws)
    assert not manager.is_user_online(user_id)
    assert str(thread_id) not in manager.thread_subscriptions
