# app/schemas/announcement_schemas.py
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field, field_validator, model_validator

from .common import blank_to_none, reject_nulls


class AnnouncementCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=5000)
    class_id: Optional[UUID] = None
    is_public: bool = True

    @field_validator("class_id", mode="before")
    @classmethod
    def org_wide(cls, v):
        return blank_to_none(v)

class AnnouncementUpdate(BaseModel):
    id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    body: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    class_id: Optional[UUID] = None
    is_public: Optional[bool] = None

    @field_validator("class_id", mode="before")
    @classmethod
    def org_wide(cls, v):
        return blank_to_none(v)

    @model_validator(mode="before")
    @classmethod
    def required_columns(cls, data):
        return reject_nulls(data, ("title", "body", "is_public"))
