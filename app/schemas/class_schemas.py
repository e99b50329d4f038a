# app/schemas/class_schemas.py
from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .common import blank_to_none, reject_nulls


class ClassBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    code: Optional[str] = Field(default=None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("code", mode="before")
    @classmethod
    def empty_code(cls, v):
        return blank_to_none(v)

class ClassCreate(ClassBase):
    created_by: Optional[UUID] = None
    teacher_id: Optional[UUID] = None

    @field_validator("created_by", "teacher_id", mode="before")
    @classmethod
    def empty_ids(cls, v):
        return blank_to_none(v)

class ClassUpdate(BaseModel):
    id: UUID
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    code: Optional[str] = Field(default=None, max_length=50)
    teacher_id: Optional[UUID] = None

    @field_validator("teacher_id", mode="before")
    @classmethod
    def empty_teacher(cls, v):
        return blank_to_none(v)

    @model_validator(mode="before")
    @classmethod
    def required_columns(cls, data):
        return reject_nulls(data, ("name",))

class ClassOut(BaseModel):
    id: UUID
    org_id: UUID
    name: str
    code: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class AssignTeacherRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(..., alias="userId")
    class_id: UUID = Field(..., alias="classId")

class AssignStudentsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_id: UUID = Field(..., alias="classId")
    student_ids: List[UUID] = Field(..., alias="studentIds", min_length=1)
