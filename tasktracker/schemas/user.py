"""Schemas for users"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class UserResponse(UserSummary):
    created_at: datetime


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    # Already hashed by the registration collaborator
    password_hash: str = Field(..., min_length=1)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None

    class Config:
        extra = "forbid"
