"""
Pydantic schemas for request/response validation
"""
from tasktracker.schemas.user import UserCreate, UserResponse, UserSummary, UserUpdate
from tasktracker.schemas.project import (
    ProjectCreate,
    ProjectResponse,
    ProjectShareCreate,
    ProjectShareResponse,
    ProjectUpdate,
)
from tasktracker.schemas.task import (
    ProjectTaskResponse,
    TaskCreate,
    TaskFilterParams,
    TaskMove,
    TaskReorder,
    TaskResponse,
    TaskSummaryResponse,
    TaskUpdate,
)
from tasktracker.schemas.comment import TaskCommentCreate, TaskCommentResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "UserSummary",
    "UserUpdate",
    "ProjectCreate",
    "ProjectResponse",
    "ProjectShareCreate",
    "ProjectShareResponse",
    "ProjectUpdate",
    "ProjectTaskResponse",
    "TaskCreate",
    "TaskFilterParams",
    "TaskMove",
    "TaskReorder",
    "TaskResponse",
    "TaskSummaryResponse",
    "TaskUpdate",
    "TaskCommentCreate",
    "TaskCommentResponse",
]
