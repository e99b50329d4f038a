from datetime import date, timedelta

from app.services.announcement_service import week_start


async def post_announcement(client, user, headers, **fields):
    payload = {"title": "Hello", "body": "Body text"}
    payload.update(fields)
    return await client.post("/api/announcements", json=payload, headers=headers(user))


async def test_create_announcement_sets_week_start(client, principal, headers):
    response = await post_announcement(client, principal, headers, title="  Welcome  ")

    assert response.status_code == 201
    data = response.json()["announcement"]
    assert data["title"] == "Welcome"
    assert data["class_id"] is None
    assert data["week_start"] == week_start().isoformat()
    assert data["author_name"] == principal.full_name


async def test_teacher_posts_only_to_own_classes(client, factory, org, teacher, headers):
    own = await factory.school_class(org, "Own", teacher=teacher)
    other = await factory.school_class(org, "Other")

    allowed = await post_announcement(client, teacher, headers, class_id=str(own.id))
    assert allowed.status_code == 201
    assert allowed.json()["announcement"]["class_name"] == "Own"

    denied = await post_announcement(client, teacher, headers, class_id=str(other.id))
    assert denied.status_code == 403


async def test_announcement_visibility(client, factory, org, principal, teacher, guardian, headers):
    own = await factory.school_class(org, "Own", teacher=teacher)
    other = await factory.school_class(org, "Other")
    await factory.student(org, own, guardian=guardian)

    await post_announcement(client, principal, headers, title="Org wide")
    await post_announcement(client, principal, headers, title="Own class", class_id=str(own.id))
    await post_announcement(client, principal, headers, title="Other class", class_id=str(other.id))

    def titles(response):
        return {a["title"] for a in response.json()["announcements"]}

    everything = await client.get("/api/announcements", headers=headers(principal))
    assert titles(everything) == {"Org wide", "Own class", "Other class"}

    for user in (teacher, guardian):
        scoped = await client.get("/api/announcements", headers=headers(user))
        assert titles(scoped) == {"Org wide", "Own class"}

    by_class = await client.get(f"/api/announcements?classId={other.id}", headers=headers(principal))
    assert titles(by_class) == {"Org wide", "Other class"}

    by_list = await client.get(f"/api/announcements?teacherClassIds={other.id},{own.id}", headers=headers(teacher))
    assert titles(by_list) == {"Org wide", "Own class", "Other class"}

    limited = await client.get("/api/announcements?limit=1", headers=headers(principal))
    assert titles(limited) == {"Other class"}


async def test_only_author_or_manager_edits(client, factory, org, principal, teacher, headers):
    created = await post_announcement(client, teacher, headers)
    announcement_id = created.json()["announcement"]["id"]
    other_teacher = await factory.user("teacher", org)

    denied = await client.put("/api/announcements", json={"id": announcement_id, "title": "Hacked"},
                              headers=headers(other_teacher))
    assert denied.status_code == 403

    edited = await client.put("/api/announcements", json={"id": announcement_id, "title": "Edited"},
                              headers=headers(principal))
    assert edited.json()["announcement"]["title"] == "Edited"

    deleted = await client.delete(f"/api/announcements?id={announcement_id}", headers=headers(teacher))
    assert deleted.json()["success"] is True
    listing = await client.get("/api/announcements", headers=headers(principal))
    assert listing.json()["announcements"] == []


async def test_guardian_cannot_post_announcements(client, guardian, headers):
    response = await post_announcement(client, guardian, headers)
    assert response.status_code == 403


def at(days: int, hour: int = 9) -> str:
    day = date.today() + timedelta(days=days)
    return f"{day.isoformat()}T{hour:02d}:00:00Z"


async def test_events_crud_and_ordering(client, factory, org, principal, teacher, guardian, headers):
    own = await factory.school_class(org, "Own", teacher=teacher)
    other = await factory.school_class(org, "Other")
    await factory.student(org, own, guardian=guardian)

    late = await client.post("/api/events", json={"title": "Late", "start_at": at(5)}, headers=headers(principal))
    assert late.status_code == 201
    await client.post("/api/events", json={"title": "Early", "start_at": at(1), "class_id": str(own.id)},
                      headers=headers(teacher))
    await client.post("/api/events", json={"title": "Hidden", "start_at": at(2), "class_id": str(other.id)},
                      headers=headers(principal))

    everything = await client.get("/api/events", headers=headers(principal))
    assert [e["title"] for e in everything.json()["events"]] == ["Early", "Hidden", "Late"]

    for user in (teacher, guardian):
        scoped = await client.get("/api/events", headers=headers(user))
        assert [e["title"] for e in scoped.json()["events"]] == ["Early", "Late"]

    windowed = await client.get(
        "/api/events", params={"startDate": at(2, 0), "endDate": at(3, 0)}, headers=headers(principal)
    )
    assert [e["title"] for e in windowed.json()["events"]] == ["Hidden"]


async def test_event_rules_for_teachers(client, factory, org, principal, teacher, headers):
    own = await factory.school_class(org, "Own", teacher=teacher)
    other = await factory.school_class(org, "Other")

    no_class = await client.post("/api/events", json={"title": "X", "start_at": at(1)}, headers=headers(teacher))
    assert no_class.status_code == 400

    wrong_class = await client.post("/api/events", json={"title": "X", "start_at": at(1), "class_id": str(other.id)},
                                    headers=headers(teacher))
    assert wrong_class.status_code == 403

    backwards = await client.post("/api/events", json={"title": "X", "start_at": at(2), "end_at": at(1)},
                                  headers=headers(principal))
    assert backwards.status_code == 400

    org_wide = await client.post("/api/events", json={"title": "Org", "start_at": at(1)}, headers=headers(principal))
    org_wide_id = org_wide.json()["event"]["id"]
    touch = await client.put("/api/events", json={"id": org_wide_id, "title": "Mine"}, headers=headers(teacher))
    assert touch.status_code == 403

    mine = await client.post("/api/events", json={"title": "Mine", "start_at": at(1), "class_id": str(own.id)},
                             headers=headers(teacher))
    mine_id = mine.json()["event"]["id"]
    move = await client.put("/api/events", json={"id": mine_id, "class_id": str(other.id)}, headers=headers(teacher))
    assert move.status_code == 403

    renamed = await client.put("/api/events", json={"id": mine_id, "location": "Gym"}, headers=headers(teacher))
    assert renamed.json()["event"]["location"] == "Gym"

    deleted = await client.delete(f"/api/events?id={mine_id}", headers=headers(teacher))
    assert deleted.json()["success"] is True


async def test_required_fields_cannot_be_nulled(client, principal, headers):
    announcement = await post_announcement(client, principal, headers)
    announcement_id = announcement.json()["announcement"]["id"]
    for field in ("title", "body", "is_public"):
        response = await client.put("/api/announcements", json={"id": announcement_id, field: None},
                                    headers=headers(principal))
        assert response.status_code == 400
        assert field in response.json()["details"]

    event = await client.post("/api/events", json={"title": "Trip", "start_at": at(1)}, headers=headers(principal))
    event_id = event.json()["event"]["id"]
    for field in ("title", "start_at"):
        response = await client.put("/api/events", json={"id": event_id, field: None}, headers=headers(principal))
        assert response.status_code == 400

    cleared = await client.put("/api/events", json={"id": event_id, "location": None, "end_at": None},
                               headers=headers(principal))
    assert cleared.status_code == 200
    assert cleared.json()["event"]["title"] == "Trip"
