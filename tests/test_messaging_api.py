import json

import pytest

from app.services.chat.websocket_manager import websocket_manager


class FakeWebSocket:
    def __init__(self):
        self.sent = []

    async def accept(self):
        pass

    async def send_text(self, data: str):
        self.sent.append(json.loads(data))

    def of_type(self, kind):
        return [m for m in self.sent if m["type"] == kind]


@pytest.fixture
async def school(factory, org, principal, teacher, guardian):
    """Teacher teaches the guardian's child; a second teacher and guardian are unrelated."""
    own = await factory.school_class(org, "Own", teacher=teacher)
    await factory.student(org, own, guardian=guardian)
    return {
        "class": own,
        "idle_teacher": await factory.user("teacher", org, first_name="Ivan"),
        "lone_guardian": await factory.user("guardian", org, first_name="Lena"),
        "inactive": await factory.user("teacher", org, first_name="Gone", is_active=False),
    }


def recipient_ids(response):
    return {r["id"] for r in response.json()["recipients"]}


async def start_thread(client, sender, recipient, headers, **fields):
    payload = {"recipient_id": str(recipient.id)}
    payload.update(fields)
    return await client.post("/api/messages", json=payload, headers=headers(sender))


async def test_recipients_for_guardian_are_narrowed(client, school, principal, teacher, guardian, headers):
    response = await client.get("/api/messages/recipients", headers=headers(guardian))

    assert response.status_code == 200
    assert recipient_ids(response) == {str(principal.id), str(teacher.id)}
    assert set(response.json()["grouped"]) == {"principal", "teacher"}


async def test_guardian_without_children_sees_all_teachers(client, school, principal, teacher, headers):
    response = await client.get("/api/messages/recipients", headers=headers(school["lone_guardian"]))
    assert recipient_ids(response) == {str(principal.id), str(teacher.id), str(school["idle_teacher"].id)}


async def test_recipients_for_teachers(client, school, principal, teacher, guardian, headers):
    mine = await client.get("/api/messages/recipients", headers=headers(teacher))
    assert recipient_ids(mine) == {str(principal.id), str(guardian.id), str(school["idle_teacher"].id)}

    idle = await client.get("/api/messages/recipients", headers=headers(school["idle_teacher"]))
    assert recipient_ids(idle) == {str(principal.id), str(teacher.id)}


async def test_recipients_for_principal_and_search(client, school, principal, teacher, guardian, headers):
    everyone = await client.get("/api/messages/recipients", headers=headers(principal))
    assert str(principal.id) not in recipient_ids(everyone)
    assert str(school["inactive"].id) not in recipient_ids(everyone)
    assert len(recipient_ids(everyone)) == 4

    names = [r["name"] for r in everyone.json()["recipients"]]
    assert names == sorted(names)

    found = await client.get("/api/messages/recipients?search=GIN", headers=headers(principal))
    assert recipient_ids(found) == {str(guardian.id)}


async def test_dm_threads_are_reused(client, school, teacher, guardian, headers):
    first = await start_thread(client, guardian, teacher, headers, subject="Pickup", body="Hi!")
    assert first.status_code == 201
    thread = first.json()["message"]
    assert thread["thread_type"] == "dm"

    second = await start_thread(client, guardian, teacher, headers)
    assert second.status_code == 200
    assert second.json()["message"]["id"] == thread["id"]

    reverse = await start_thread(client, teacher, guardian, headers)
    assert reverse.json()["message"]["id"] == thread["id"]


async def test_thread_creation_rules(client, school, guardian, headers):
    hidden = await start_thread(client, guardian, school["idle_teacher"], headers)
    assert hidden.status_code == 403

    nobody = await client.post("/api/messages", json={"subject": "?"}, headers=headers(guardian))
    assert nobody.status_code == 400


async def test_new_thread_notifies_recipients(client, school, teacher, guardian, headers):
    socket = FakeWebSocket()
    await websocket_manager.connect(socket, teacher.id, "teacher", teacher.org_id)

    await start_thread(client, guardian, teacher, headers, body="Hello")

    assert len(socket.of_type("new_thread")) == 1


async def test_thread_listing_and_read_state(client, school, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers, body="Is Kid coming tomorrow?")
    thread_id = created.json()["message"]["id"]

    inbox = await client.get("/api/messages", headers=headers(teacher))
    threads = inbox.json()["threads"]
    assert len(threads) == 1
    assert threads[0]["unread"] is True
    assert threads[0]["unread_count"] == 1
    assert threads[0]["latest_item"]["body"] == "Is Kid coming tomorrow?"
    assert threads[0]["other_participant"]["id"] == str(guardian.id)
    assert threads[0]["other_participant"]["role"] == "guardian"

    items = await client.get(f"/api/messages/{thread_id}/items", headers=headers(teacher))
    assert items.json()["total"] == 1
    assert items.json()["items"][0]["author_role"] == "guardian"

    inbox = await client.get("/api/messages", headers=headers(teacher))
    assert inbox.json()["threads"][0]["unread"] is False

    sender_inbox = await client.get("/api/messages", headers=headers(guardian))
    assert sender_inbox.json()["threads"][0]["unread"] is False


async def test_posting_items_marks_others_unread_and_broadcasts(client, school, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    socket = FakeWebSocket()
    await websocket_manager.connect(socket, guardian.id, "guardian", guardian.org_id)
    await websocket_manager.subscribe(guardian.id, thread_id)

    posted = await client.post(f"/api/messages/{thread_id}/items", json={"body": "  Yes, see you!  "},
                               headers=headers(teacher))
    assert posted.status_code == 201
    item = posted.json()["item"]
    assert item["body"] == "Yes, see you!"

    pushed = socket.of_type("new_message")
    assert len(pushed) == 1
    assert pushed[0]["item"]["id"] == item["id"]

    inbox = await client.get("/api/messages", headers=headers(guardian))
    assert inbox.json()["threads"][0]["unread"] is True

    blank = await client.post(f"/api/messages/{thread_id}/items", json={"body": "   "}, headers=headers(teacher))
    assert blank.status_code == 400


async def test_non_participants_are_kept_out(client, school, principal, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    items = await client.get(f"/api/messages/{thread_id}/items", headers=headers(principal))
    assert items.status_code == 403

    post = await client.post(f"/api/messages/{thread_id}/items", json={"body": "hi"}, headers=headers(principal))
    assert post.status_code == 403

    update = await client.put("/api/messages", json={"id": thread_id, "subject": "x"}, headers=headers(principal))
    assert update.status_code == 404
    assert update.json() == {"error": "Message not found or access denied"}


async def test_thread_update_and_delete(client, school, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    renamed = await client.put("/api/messages", json={"id": thread_id, "subject": "Field trip"},
                               headers=headers(teacher))
    assert renamed.json()["message"]["subject"] == "Field trip"

    deleted = await client.delete(f"/api/messages?id={thread_id}", headers=headers(guardian))
    assert deleted.json() == {"success": True}
    inbox = await client.get("/api/messages", headers=headers(teacher))
    assert inbox.json()["threads"] == []

    fresh = await start_thread(client, guardian, teacher, headers)
    assert fresh.status_code == 201
    assert fresh.json()["message"]["id"] != thread_id


async def test_message_items_edit_and_delete(client, school, principal, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    posted = await client.post("/api/message-items", json={"message_id": thread_id, "body": "First draft"},
                               headers=headers(guardian))
    assert posted.status_code == 201
    item_id = posted.json()["item"]["id"]

    socket = FakeWebSocket()
    await websocket_manager.connect(socket, teacher.id, "teacher", teacher.org_id)
    await websocket_manager.subscribe(teacher.id, thread_id)

    not_author = await client.put("/api/message-items", json={"id": item_id, "body": "Hacked"},
                                  headers=headers(teacher))
    assert not_author.status_code == 403

    edited = await client.put("/api/message-items", json={"id": item_id, "body": "Final"},
                              headers=headers(guardian))
    assert edited.status_code == 200
    history = edited.json()["item"]["edit_history"]
    assert [h["body"] for h in history] == ["First draft"]
    assert socket.of_type("message_updated")[0]["item"]["body"] == "Final"

    listing = await client.get(f"/api/message-items?messageId={thread_id}", headers=headers(teacher))
    assert [i["body"] for i in listing.json()["items"]] == ["Final"]

    teacher_delete = await client.delete(f"/api/message-items?id={item_id}", headers=headers(teacher))
    assert teacher_delete.status_code == 403

    manager_delete = await client.delete(f"/api/message-items?id={item_id}", headers=headers(principal))
    assert manager_delete.json() == {"success": True}
    assert socket.of_type("message_deleted")[0]["item_id"] == item_id

    listing = await client.get(f"/api/message-items?messageId={thread_id}", headers=headers(teacher))
    assert listing.json()["total"] == 0


async def test_participants(client, school, principal, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    listing = await client.get(f"/api/message-participants?messageId={thread_id}", headers=headers(teacher))
    assert {p["user_id"] for p in listing.json()["participants"]} == {str(guardian.id), str(teacher.id)}

    added = await client.post("/api/message-participants",
                              json={"message_id": thread_id, "user_id": str(principal.id)},
                              headers=headers(teacher))
    assert added.status_code == 201
    assert added.json()["participant"]["role"] == "principal"

    again = await client.post("/api/message-participants",
                              json={"message_id": thread_id, "user_id": str(principal.id)},
                              headers=headers(teacher))
    assert again.status_code == 200

    flagged = await client.put("/api/message-participants", json={"message_id": thread_id, "unread": True},
                               headers=headers(teacher))
    assert flagged.json()["participant"]["unread"] is True

    kick = await client.delete(f"/api/message-participants?messageId={thread_id}&userId={principal.id}",
                               headers=headers(teacher))
    assert kick.status_code == 403

    removed = await client.delete(f"/api/message-participants?messageId={thread_id}&userId={principal.id}",
                                  headers=headers(guardian))
    assert removed.json() == {"success": True}

    leave = await client.delete(f"/api/message-participants?messageId={thread_id}&userId={teacher.id}",
                                headers=headers(teacher))
    assert leave.json() == {"success": True}
    outside = await client.get(f"/api/message-participants?messageId={thread_id}", headers=headers(teacher))
    assert outside.status_code == 403


async def test_students_cannot_use_messaging(client, factory, org, headers):
    student_user = await factory.user("student", org)
    response = await client.get("/api/messages", headers=headers(student_user))
    assert response.status_code == 403


async def test_reused_dm_body_reaches_subscribers(client, school, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    socket = FakeWebSocket()
    await websocket_manager.connect(socket, teacher.id, "teacher", teacher.org_id)
    await websocket_manager.subscribe(teacher.id, thread_id)

    again = await start_thread(client, guardian, teacher, headers, body="Running late today")
    assert again.status_code == 200
    assert again.json()["message"]["id"] == thread_id

    pushed = socket.of_type("new_message")
    assert len(pushed) == 1
    assert pushed[0]["item"]["body"] == "Running late today"
    assert socket.of_type("new_thread") == []

    items = await client.get(f"/api/messages/{thread_id}/items", headers=headers(teacher))
    assert [i["id"] for i in items.json()["items"]] == [pushed[0]["item"]["id"]]


async def test_first_item_of_new_thread_is_published(client, school, teacher, guardian, headers):
    socket = FakeWebSocket()
    await websocket_manager.connect(socket, teacher.id, "teacher", teacher.org_id)

    created = await start_thread(client, guardian, teacher, headers, body="Field trip form")
    assert created.status_code == 201
    thread_id = created.json()["message"]["id"]

    items = await client.get(f"/api/messages/{thread_id}/items", headers=headers(teacher))
    item_id = items.json()["items"][0]["id"]
    assert item_id in websocket_manager._seen_message_ids[thread_id]

    # A late duplicate publish of the same item is dropped.
    assert await websocket_manager.publish_new_message({"id": item_id}, thread_id) is False
    assert len(socket.of_type("new_thread")) == 1


async def test_added_participant_is_announced_to_thread(client, school, principal, teacher, guardian, headers):
    created = await start_thread(client, guardian, teacher, headers)
    thread_id = created.json()["message"]["id"]

    guardian_socket = FakeWebSocket()
    principal_socket = FakeWebSocket()
    await websocket_manager.connect(guardian_socket, guardian.id, "guardian", guardian.org_id)
    await websocket_manager.connect(principal_socket, principal.id, "principal", principal.org_id)
    await websocket_manager.subscribe(guardian.id, thread_id)

    added = await client.post("/api/message-participants",
                              json={"message_id": thread_id, "user_id": str(principal.id)},
                              headers=headers(teacher))
    assert added.status_code == 201

    announced = guardian_socket.of_type("participant_added")
    assert len(announced) == 1
    assert announced[0]["thread_id"] == thread_id
    assert announced[0]["participant"]["user_id"] == str(principal.id)
    assert principal_socket.of_type("new_thread") == [{"type": "new_thread", "thread_id": thread_id}]
