# app/schemas/common.py
"""Shared field normalisers used by several request schemas."""
from datetime import date
from typing import Any, Optional

GENDERS = ("male", "female", "other")
LANGUAGE_ALIASES = {"en": "english", "is": "icelandic", "english": "english", "icelandic": "icelandic"}

BARNGILDI_MIN = 0.5
BARNGILDI_MAX = 1.9


def age_on(dob: date, today: Optional[date] = None) -> int:
    """Whole years between dob and today."""
    today = today or date.today()
    years = today.year - dob.year
    if (today.month, today.day) < (dob.month, dob.day):
        years -= 1
    return years


def normalize_barngildi(value: Any) -> float:
    """Numbers must be in range; strings are parsed and clamped."""
    if value is None:
        return BARNGILDI_MIN
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return BARNGILDI_MIN
        return min(BARNGILDI_MAX, max(BARNGILDI_MIN, round(number, 1)))
    number = float(value)
    if number < BARNGILDI_MIN:
        raise ValueError(f"Barngildi must be at least {BARNGILDI_MIN}")
    if number > BARNGILDI_MAX:
        raise ValueError(f"Barngildi must be at most {BARNGILDI_MAX}")
    return round(number, 1)


def normalize_language(value: Optional[str]) -> str:
    if value is None:
        return "english"
    language = LANGUAGE_ALIASES.get(value.strip().lower())
    if not language:
        raise ValueError("Invalid language. Must be one of: english, icelandic, en, is")
    return language


def normalize_gender(value: Optional[str]) -> str:
    if not value:
        return "other"
    gender = value.strip().lower()
    return gender if gender in GENDERS else "other"


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def reject_nulls(data: Any, fields) -> Any:
    """Partial updates may omit these fields but not set them to null."""
    if isinstance(data, dict):
        nulls = [f for f in fields if f in data and data[f] is None]
        if nulls:
            raise ValueError(f"{', '.join(nulls)} cannot be null")
    return data
