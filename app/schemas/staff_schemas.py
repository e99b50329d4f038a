# app/schemas/staff_schemas.py
from typing import Optional, Union
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .common import blank_to_none, reject_nulls

STAFF_ASSIGNABLE_ROLES = ("teacher", "principal")


def union_value(v: Union[bool, str, None]) -> Optional[str]:
    """A checkbox arrives as bool; store 'Yes' or nothing."""
    if isinstance(v, bool):
        return "Yes" if v else None
    return blank_to_none(v)


class StaffCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: EmailStr
    role: Optional[str] = "teacher"
    phone: Optional[str] = Field(default=None, max_length=50)
    class_id: Optional[UUID] = None
    address: Optional[str] = Field(default=None, max_length=500)
    ssn: Optional[str] = Field(default=None, max_length=50)
    education_level: Optional[str] = Field(default=None, max_length=100)
    union_membership: Optional[Union[bool, str]] = None

    @field_validator("role")
    @classmethod
    def fallback_role(cls, v: Optional[str]) -> str:
        return v if v in STAFF_ASSIGNABLE_ROLES else "teacher"

    @field_validator("class_id", mode="before")
    @classmethod
    def empty_class(cls, v):
        return blank_to_none(v)

    @field_validator("union_membership")
    @classmethod
    def union_to_name(cls, v):
        return union_value(v)

class StaffUpdate(BaseModel):
    id: UUID
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[str] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=500)
    ssn: Optional[str] = Field(default=None, max_length=50)
    education_level: Optional[str] = Field(default=None, max_length=100)
    union_membership: Optional[Union[bool, str]] = None
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def active_flag(cls, data):
        return reject_nulls(data, ("is_active",))

    @field_validator("role")
    @classmethod
    def fallback_role(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v if v in STAFF_ASSIGNABLE_ROLES else "teacher"

    @field_validator("union_membership")
    @classmethod
    def union_to_name(cls, v):
        return union_value(v)
