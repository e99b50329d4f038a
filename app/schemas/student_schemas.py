# app/schemas/student_schemas.py
from typing import List, Optional, Union
from datetime import date
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .common import (
    age_on, blank_to_none, normalize_barngildi, normalize_gender, normalize_language
)

STUDENT_MIN_AGE = 0
STUDENT_MAX_AGE = 18


class StudentFields(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    dob: Optional[date] = None
    gender: Optional[str] = Field(default=None, validate_default=True)
    class_id: Optional[UUID] = None
    start_date: Optional[date] = None
    barngildi: Optional[Union[float, str]] = Field(default=None, validate_default=True)
    student_language: Optional[str] = Field(default=None, validate_default=True)
    medical_notes: Optional[str] = Field(default=None, max_length=2000)
    allergies: Optional[str] = Field(default=None, max_length=2000)
    emergency_contact: Optional[str] = Field(default=None, max_length=2000)
    address: str = Field(..., min_length=1, max_length=500)
    social_security_number: str = Field(..., min_length=1, max_length=50)
    phone: Optional[str] = Field(default=None, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255)
    guardian_ids: List[UUID] = Field(default_factory=list)

    @field_validator("class_id", "dob", "start_date", "email", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)

    @field_validator("dob")
    @classmethod
    def dob_in_range(cls, v: Optional[date]) -> Optional[date]:
        if v is not None and not (STUDENT_MIN_AGE <= age_on(v) <= STUDENT_MAX_AGE):
            raise ValueError("Student age must be between 0 and 18 years old")
        return v

    @field_validator("gender")
    @classmethod
    def gender_value(cls, v: Optional[str]) -> str:
        return normalize_gender(v)

    @field_validator("barngildi")
    @classmethod
    def barngildi_value(cls, v) -> float:
        return normalize_barngildi(v)

    @field_validator("student_language")
    @classmethod
    def language_value(cls, v: Optional[str]) -> str:
        return normalize_language(v)

class StudentCreate(StudentFields):
    pass

class StudentUpdate(StudentFields):
    id: UUID
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1, max_length=500)
    social_security_number: Optional[str] = Field(default=None, min_length=1, max_length=50)
