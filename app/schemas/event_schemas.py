# app/schemas/event_schemas.py
from typing import Optional
from datetime import datetime, timezone
from uuid import UUID
from pydantic import BaseModel, Field, field_validator, model_validator

from .common import blank_to_none, reject_nulls


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class EventFields(BaseModel):
    description: Optional[str] = Field(default=None, max_length=5000)
    end_at: Optional[datetime] = None
    location: Optional[str] = Field(default=None, max_length=500)
    class_id: Optional[UUID] = None

    @field_validator("class_id", "end_at", mode="before")
    @classmethod
    def empty_to_none(cls, v):
        return blank_to_none(v)

class EventCreate(EventFields):
    title: str = Field(..., min_length=1, max_length=200)
    start_at: datetime

    @field_validator("start_at", "end_at")
    @classmethod
    def utc(cls, v):
        return as_utc(v)

    @model_validator(mode="after")
    def end_after_start(self):
        if self.end_at is not None and self.end_at < self.start_at:
            raise ValueError("end_at must be after start_at")
        return self

class EventUpdate(EventFields):
    id: UUID
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    start_at: Optional[datetime] = None

    @field_validator("start_at", "end_at")
    @classmethod
    def utc(cls, v):
        return as_utc(v)

    @model_validator(mode="before")
    @classmethod
    def required_columns(cls, data):
        return reject_nulls(data, ("title", "start_at"))
