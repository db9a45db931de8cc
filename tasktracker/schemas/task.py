"""Schemas for tasks

Status values are normalised here and nowhere else: clients may send the
display form ("In Progress"), snake case ("in_progress") or the legacy
"completed"; everything past this module sees :class:`TaskStatus`.
"""
from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from tasktracker.models import TaskPriority, TaskStatus
from tasktracker.schemas.user import UserSummary
from tasktracker.services.filters import TaskFilter

STATUS_ALIASES = {
    "to do": TaskStatus.TODO,
    "todo": TaskStatus.TODO,
    "in progress": TaskStatus.IN_PROGRESS,
    "inprogress": TaskStatus.IN_PROGRESS,
    "done": TaskStatus.DONE,
    "completed": TaskStatus.DONE,
}


def normalize_status(value):
    if value is None or isinstance(value, TaskStatus):
        return value
    if isinstance(value, str):
        key = " ".join(value.strip().lower().replace("_", " ").replace("-", " ").split())
        if key in STATUS_ALIASES:
            return STATUS_ALIASES[key]
    raise ValueError(f"Invalid status: {value!r}")


def normalize_priority(value):
    if value is None or isinstance(value, TaskPriority):
        return value
    if isinstance(value, str):
        for priority in TaskPriority:
            if priority.value.lower() == value.strip().lower():
                return priority
    raise ValueError(f"Invalid priority: {value!r}")


def normalize_tags(values: List[str]) -> List[str]:
    seen = set()
    tags = []
    for value in values:
        tag = value.strip()
        if tag and tag not in seen:
            seen.add(tag)
            tags.append(tag)
    return tags


class TaskCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    parent_task_id: Optional[int] = None
    order: Optional[int] = None
    assignee_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task name is required")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return normalize_status(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return normalize_priority(value)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied.

    ``parent_task_id: null`` promotes the task to a root task.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    parent_task_id: Optional[int] = None
    order: Optional[int] = None
    assignee_id: Optional[int] = None
    tags: Optional[List[str]] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)

    class Config:
        extra = "forbid"

    @field_validator("name", "status", "priority", "order", "tags", mode="before")
    @classmethod
    def _not_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Task name cannot be empty")
        return value

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return normalize_status(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        return normalize_priority(value)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: List[str]) -> List[str]:
        return normalize_tags(value)


class TaskReorder(BaseModel):
    task_ids: List[int]


class TaskMove(BaseModel):
    status: TaskStatus
    position: Optional[int] = Field(None, ge=0)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return normalize_status(value)


class TaskFilterParams(BaseModel):
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assignee_id: Optional[int] = None
    tags: Optional[str] = None
    search: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        if value == "":
            return None
        return normalize_status(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value):
        if value == "":
            return None
        return normalize_priority(value)

    def to_filter(self) -> TaskFilter:
        return TaskFilter(**self.model_dump())


class TaskSummaryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[datetime]
    project_id: int
    parent_task_id: Optional[int]
    order: int
    assignee_id: Optional[int]
    assignee: Optional[UserSummary]
    tags: List[str]
    estimated_hours: Optional[float]
    actual_hours: Optional[float]
    is_overdue: bool
    progress_percentage: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TaskResponse(TaskSummaryResponse):
    sub_tasks: List["TaskResponse"] = []

    @classmethod
    def from_node(cls, node) -> "TaskResponse":
        """Build from a ``TaskNode``, nesting its computed sub-tasks."""
        data = TaskSummaryResponse.model_validate(node.task).model_dump()
        return cls(**data, sub_tasks=[cls.from_node(child) for child in node.sub_tasks])


class ProjectTaskResponse(TaskSummaryResponse):
    project_name: str

    @classmethod
    def from_task(cls, task) -> "ProjectTaskResponse":
        data = TaskSummaryResponse.model_validate(task).model_dump()
        return cls(**data, project_name=task.project.name)


TaskResponse.model_rebuild()
