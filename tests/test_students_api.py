import re
import uuid
from datetime import date

from sqlalchemy import select

from app.models import ClassMembership, GuardianStudent, User
from app.services.access_service import teacher_class_ids


def dob_years_ago(years: int) -> str:
    today = date.today()
    return date(today.year - years, 1, 1).isoformat()


def student_payload(**overrides):
    payload = {
        "first_name": "Anna",
        "last_name": "Jonsdottir",
        "dob": dob_years_ago(5),
        "address": "Laugavegur 1",
        "social_security_number": "010120-1234",
    }
    payload.update(overrides)
    return payload


async def test_create_student_normalises_fields(client, factory, org, principal, guardian, headers, session_factory):
    class_obj = await factory.school_class(org, "Blue")
    other_org = await factory.org("Elsewhere")
    foreign_guardian = await factory.user("guardian", other_org)

    response = await client.post(
        "/api/students",
        json=student_payload(
            class_id=str(class_obj.id),
            barngildi="3.7",
            student_language="is",
            guardian_ids=[str(guardian.id), str(guardian.id), str(foreign_guardian.id)]
        ),
        headers=headers(principal)
    )

    assert response.status_code == 201
    body = response.json()
    student = body["student"]
    assert student["barngildi"] == 1.9
    assert student["student_language"] == "icelandic"
    assert student["gender"] == "other"
    assert student["class_name"] == "Blue"
    assert [g["id"] for g in student["guardians"]] == [str(guardian.id)]
    assert len(body["relationships"]) == 1

    async with session_factory() as s:
        user = (await s.execute(select(User).where(User.id == uuid.UUID(student["user_id"])))).scalar_one()
        assert user.role == "student"
        assert user.email.endswith(".invalid")


async def test_student_age_window(client, principal, headers):
    too_young = await client.post("/api/students", json=student_payload(dob=dob_years_ago(1)),
                                  headers=headers(principal))
    assert too_young.status_code == 400
    assert "between 3 and 18" in too_young.json()["error"]

    too_old = await client.post("/api/students", json=student_payload(dob=dob_years_ago(25)),
                                headers=headers(principal))
    assert too_old.status_code == 400
    assert too_old.json()["error"] == "Validation failed"


async def test_create_student_requires_address_and_ssn(client, principal, headers):
    payload = student_payload()
    del payload["social_security_number"]
    response = await client.post("/api/students", json=payload, headers=headers(principal))
    assert response.status_code == 400


async def test_create_student_rejects_foreign_class(client, factory, principal, headers):
    other_org = await factory.org("Elsewhere")
    foreign = await factory.school_class(other_org, "Foreign")
    response = await client.post("/api/students", json=student_payload(class_id=str(foreign.id)),
                                 headers=headers(principal))
    assert response.status_code == 400


async def test_guardian_sees_only_linked_children(client, factory, org, guardian, headers):
    mine = await factory.student(org, guardian=guardian, first_name="Mine")
    await factory.student(org, first_name="NotMine")

    response = await client.get("/api/students", headers=headers(guardian))

    assert response.status_code == 200
    body = response.json()
    assert body["total_students"] == 1
    assert body["students"][0]["id"] == str(mine.id)
    assert body["students"][0]["guardians"][0]["relation"] == "parent"


async def test_teacher_sees_assigned_classes(client, factory, org, teacher, headers):
    own = await factory.school_class(org, "Own", teacher=teacher)
    other = await factory.school_class(org, "Other")
    await factory.student(org, own, first_name="InClass")
    await factory.student(org, other, first_name="Elsewhere")

    response = await client.get("/api/students", headers=headers(teacher))
    assert [s["first_name"] for s in response.json()["students"]] == ["InClass"]

    filtered = await client.get(f"/api/students?classId={other.id}", headers=headers(teacher))
    assert filtered.json()["students"] == []


async def test_update_student_syncs_guardians(client, factory, org, principal, guardian, headers, session_factory):
    second = await factory.user("guardian", org)
    student = await factory.student(org, guardian=guardian)

    response = await client.put(
        "/api/students",
        json={"id": str(student.id), "allergies": "nuts", "guardian_ids": [str(second.id)]},
        headers=headers(principal)
    )

    assert response.status_code == 200
    data = response.json()["student"]
    assert data["allergies"] == "nuts"
    assert [g["id"] for g in data["guardians"]] == [str(second.id)]

    async with session_factory() as s:
        links = await s.execute(select(GuardianStudent.guardian_id).where(GuardianStudent.student_id == student.id))
        assert set(links.scalars().all()) == {second.id}


async def test_delete_student(client, factory, org, principal, headers):
    student = await factory.student(org)

    response = await client.delete(f"/api/students?id={student.id}", headers=headers(principal))
    assert response.json()["success"] is True

    listing = await client.get("/api/students", headers=headers(principal))
    assert listing.json()["total_students"] == 0

    again = await client.delete(f"/api/students?id={student.id}", headers=headers(principal))
    assert again.status_code == 404


async def test_students_without_email_get_unique_placeholders(client, principal, headers, session_factory):
    created = []
    for name in ("Anna", "Bjorn"):
        response = await client.post("/api/students", json=student_payload(first_name=name),
                                     headers=headers(principal))
        assert response.status_code == 201
        created.append(uuid.UUID(response.json()["student"]["user_id"]))

    async with session_factory() as s:
        emails = (await s.execute(select(User.email).where(User.id.in_(created)))).scalars().all()

    assert len(set(emails)) == 2
    for email in emails:
        assert re.fullmatch(r"student-[0-9a-f]{16}@students\.schoolhub\.invalid", email)


async def test_other_memberships_do_not_grant_class_access(client, factory, org, teacher, headers, db):
    own = await factory.school_class(org, "Own", teacher=teacher)
    observed = await factory.school_class(org, "Observed")
    db.add(ClassMembership(class_id=observed.id, user_id=teacher.id, membership_role="assistant"))
    await db.commit()
    await factory.student(org, own, first_name="InClass")
    await factory.student(org, observed, first_name="Observed")

    assert await teacher_class_ids(db, teacher.id) == {own.id}

    response = await client.get("/api/students", headers=headers(teacher))
    assert [s["first_name"] for s in response.json()["students"]] == ["InClass"]

    classes = await client.get("/api/teacher-classes", headers=headers(teacher))
    assert [c["name"] for c in classes.json()["classes"]] == ["Own"]
