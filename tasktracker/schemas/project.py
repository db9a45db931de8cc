"""Schemas for projects and sharing"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tasktracker.models import ProjectRole
from tasktracker.schemas.user import UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name is required")
        return value


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None

    class Config:
        extra = "forbid"

    @field_validator("name", mode="before")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("name cannot be null")
        return value

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name cannot be empty")
        return value


class ProjectShareCreate(BaseModel):
    user_id: int
    role: ProjectRole = ProjectRole.VIEWER


class ProjectShareResponse(BaseModel):
    user: UserSummary
    role: ProjectRole

    class Config:
        from_attributes = True


class ProjectResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    owner: UserSummary
    shared_with: List[ProjectShareResponse] = []
    user_role: ProjectRole
    created_at: datetime
    updated_at: datetime
