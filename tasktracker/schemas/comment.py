"""Schemas for task comments"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from tasktracker.schemas.user import UserSummary


class TaskCommentCreate(BaseModel):
    text: str = Field(..., min_length=1)


class TaskCommentResponse(BaseModel):
    id: int
    task_id: int
    text: str
    created_at: datetime
    author: Optional[UserSummary]

    class Config:
        from_attributes = True
