# app/schemas/principal_schemas.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, model_validator

from .common import reject_nulls


class PrincipalCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: EmailStr
    org_id: UUID
    phone: Optional[str] = Field(default=None, max_length=50)

class PrincipalUpdate(BaseModel):
    id: UUID
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    is_active: Optional[bool] = None

    @model_validator(mode="before")
    @classmethod
    def active_flag(cls, data):
        return reject_nulls(data, ("is_active",))

class UserOut(BaseModel):
    id: UUID
    org_id: Optional[UUID] = None
    email: str
    role: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True
