from datetime import date

import pytest

from app.core.exceptions import BadRequestError
from app.routers.announcements import parse_id_list
from app.schemas.common import age_on, normalize_barngildi, normalize_gender, normalize_language
from app.services.announcement_service import week_start
from app.services.chat.recipient_service import MESSAGEABLE_ROLES, group_by_role
from app.services.student_service import check_enrolment_age
from app.utils.cache_headers import (
    cache_control, no_cache_headers, realtime_headers, stable_headers, user_data_headers
)
from app.utils.pagination import Paginator


def test_week_start_is_monday():
    assert week_start(date(2026, 10, 15)) == date(2026, 10, 12)  # Thursday
    assert week_start(date(2026, 10, 12)) == date(2026, 10, 12)
    assert week_start(date(2026, 10, 18)) == date(2026, 10, 12)  # Sunday


def test_age_on_counts_whole_years():
    assert age_on(date(2020, 6, 15), today=date(2026, 6, 14)) == 5
    assert age_on(date(2020, 6, 15), today=date(2026, 6, 15)) == 6


@pytest.mark.parametrize("raw, expected", [
    ("1.25", 1.2),
    ("5", 1.9),
    ("0.1", 0.5),
    ("abc", 0.5),
    (None, 0.5),
    (1.0, 1.0),
])
def test_normalize_barngildi(raw, expected):
    assert normalize_barngildi(raw) == expected


def test_normalize_barngildi_rejects_out_of_range_numbers():
    with pytest.raises(ValueError):
        normalize_barngildi(2.5)
    with pytest.raises(ValueError):
        normalize_barngildi(0.2)


def test_normalize_language():
    assert normalize_language("en") == "english"
    assert normalize_language("IS") == "icelandic"
    assert normalize_language(None) == "english"
    with pytest.raises(ValueError):
        normalize_language("klingon")


def test_normalize_gender_defaults_to_other():
    assert normalize_gender("Female") == "female"
    assert normalize_gender(None) == "other"
    assert normalize_gender("n/a") == "other"


def test_enrolment_age_window():
    today = date(2026, 10, 17)
    check_enrolment_age(date(2020, 1, 1), today=today)
    check_enrolment_age(None, today=today)
    with pytest.raises(BadRequestError):
        check_enrolment_age(date(2025, 1, 1), today=today)


def test_cache_control_presets():
    assert stable_headers()["Cache-Control"] == "public, s-maxage=300, stale-while-revalidate=600"
    assert user_data_headers()["Cache-Control"] == "public, s-maxage=60, stale-while-revalidate=120"
    assert realtime_headers()["Cache-Control"] == "public, s-maxage=30, stale-while-revalidate=60"
    assert no_cache_headers()["Cache-Control"] == "no-store, no-cache, must-revalidate"
    assert cache_control(10, 20, private=True).startswith("private")


def test_messageable_roles():
    assert set(MESSAGEABLE_ROLES["guardian"]) == {"teacher", "principal"}
    assert set(MESSAGEABLE_ROLES["teacher"]) == {"principal", "guardian", "teacher"}
    assert set(MESSAGEABLE_ROLES["principal"]) == {"teacher", "guardian", "principal"}
    assert "student" not in MESSAGEABLE_ROLES


def test_group_by_role():
    grouped = group_by_role([{"role": "teacher", "id": "1"}, {"role": "principal", "id": "2"},
                             {"role": "teacher", "id": "3"}])
    assert [r["id"] for r in grouped["teacher"]] == ["1", "3"]
    assert len(grouped["principal"]) == 1


def test_parse_id_list():
    ids = parse_id_list("6f1c3c1e-1111-4a4a-9c9c-000000000001, ,6f1c3c1e-1111-4a4a-9c9c-000000000002")
    assert len(ids) == 2
    assert parse_id_list(None) == []
    with pytest.raises(BadRequestError):
        parse_id_list("not-a-uuid")


def test_paginator_response():
    response = Paginator.create_response(["a", "b"], page=2, size=2, total=5)
    assert response["meta"]["total_pages"] == 3
    assert response["meta"]["has_next"] is True
    assert response["meta"]["has_previous"] is True
    assert response["total"] == 5
