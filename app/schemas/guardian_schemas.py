# app/schemas/guardian_schemas.py
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from .common import blank_to_none, reject_nulls

Relation = Literal["parent", "guardian", "other"]


class GuardianCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    ssn: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    student_id: Optional[UUID] = None
    relation: Relation = "parent"

    @field_validator("student_id", mode="before")
    @classmethod
    def empty_student(cls, v):
        return blank_to_none(v)

class GuardianUpdate(BaseModel):
    id: UUID
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    ssn: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def active_flag(cls, data):
        return reject_nulls(data, ("is_active",))

class GuardianStudentCreate(BaseModel):
    guardian_id: UUID
    student_id: UUID
    relation: Relation = "parent"

class GuardianStudentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    guardian_id: UUID
    student_id: UUID
    org_id: UUID
    relation: str
