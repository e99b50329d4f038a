# app/schemas/message_schemas.py
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ThreadType = Literal["dm", "class", "announcement"]

MAX_ITEM_LENGTH = 10000


class ThreadCreate(BaseModel):
    thread_type: ThreadType = "dm"
    subject: Optional[str] = Field(default=None, max_length=500)
    recipient_id: Optional[UUID] = None
    recipient_ids: Optional[List[UUID]] = None
    body: Optional[str] = Field(default=None, max_length=MAX_ITEM_LENGTH)

    @model_validator(mode="after")
    def needs_recipient(self):
        if not self.recipient_id and not self.recipient_ids:
            raise ValueError("recipient_id or recipient_ids is required")
        return self

    def all_recipients(self) -> List[UUID]:
        ids = list(self.recipient_ids or [])
        if self.recipient_id:
            ids.insert(0, self.recipient_id)
        return list(dict.fromkeys(ids))

class ThreadUpdate(BaseModel):
    id: UUID
    subject: Optional[str] = Field(default=None, max_length=500)
    deleted_at: Optional[datetime] = None

class ThreadOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    thread_type: str
    subject: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None

def clean_body(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Message body is required")
    if len(v) > MAX_ITEM_LENGTH:
        raise ValueError(f"Message body must be {MAX_ITEM_LENGTH} characters or less")
    return v

class ItemBody(BaseModel):
    body: str
    attachments: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("body")
    @classmethod
    def trimmed(cls, v: str) -> str:
        return clean_body(v)

class ItemCreate(ItemBody):
    message_id: UUID

class ItemUpdate(BaseModel):
    id: UUID
    body: str

    @field_validator("body")
    @classmethod
    def trimmed(cls, v: str) -> str:
        return clean_body(v)

class ItemOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message_id: UUID
    author_id: Optional[UUID] = None
    body: str
    attachments: List[Dict[str, Any]] = []
    edit_history: List[Dict[str, Any]] = []
    created_at: datetime
    updated_at: datetime

class ParticipantCreate(BaseModel):
    message_id: UUID
    user_id: UUID
    role: Optional[str] = None

class ParticipantUpdate(BaseModel):
    message_id: UUID
    unread: bool
