"""Task endpoints, scoped to a project"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.dependencies import get_current_user
from tasktracker.exceptions import ValidationException
from tasktracker.models import User
from tasktracker.schemas import (
    TaskCreate,
    TaskFilterParams,
    TaskMove,
    TaskReorder,
    TaskResponse,
    TaskSummaryResponse,
    TaskUpdate,
)
from tasktracker.services import tasks as task_service
from tasktracker.services.filters import TaskFilter

router = APIRouter()


def task_filters(
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, alias="startDate"),
    end_date: Optional[date] = Query(None, alias="endDate"),
    assignee_id: Optional[int] = Query(None, alias="assigneeId"),
    tags: Optional[str] = Query(None, description="Comma separated tag fragments"),
    search: Optional[str] = Query(None),
) -> TaskFilter:
    try:
        params = TaskFilterParams(
            status=status_filter,
            priority=priority,
            start_date=start_date,
            end_date=end_date,
            assignee_id=assignee_id,
            tags=tags,
            search=search,
        )
    except ValidationError as exc:
        raise ValidationException("; ".join(error["msg"] for error in exc.errors()))
    return params.to_filter()


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    project_id: int,
    task_in: TaskCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task, optionally as a sub-task of ``parent_task_id``."""
    task = task_service.create_task(db, project_id, current_user.id, task_in)
    return TaskResponse.from_node(task_service.get_task(db, project_id, task.id, current_user.id))


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    project_id: int,
    parent_task_id: Optional[int] = Query(None, alias="parentTaskId"),
    filters: TaskFilter = Depends(task_filters),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return root tasks (or the children of ``parentTaskId``) with nested sub-tasks."""
    nodes = task_service.list_tasks(db, project_id, current_user.id, filters, parent_task_id)
    return [TaskResponse.from_node(node) for node in nodes]


@router.post("/reorder", response_model=List[TaskSummaryResponse])
def reorder_tasks(
    project_id: int,
    reorder_in: TaskReorder,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Set the display order of the given tasks to their position in ``task_ids``."""
    tasks = task_service.reorder_tasks(db, project_id, current_user.id, reorder_in.task_ids)
    return [TaskSummaryResponse.model_validate(task) for task in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return TaskResponse.from_node(task_service.get_task(db, project_id, task_id, current_user.id))


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    project_id: int,
    task_id: int,
    task_update: TaskUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update task fields; may reparent the task and roll status up to its ancestors."""
    task_service.update_task(db, project_id, task_id, current_user.id, task_update)
    return TaskResponse.from_node(task_service.get_task(db, project_id, task_id, current_user.id))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a task together with all of its sub-tasks."""
    task_service.delete_task(db, project_id, task_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{task_id}/move", response_model=TaskSummaryResponse)
def move_task(
    project_id: int,
    task_id: int,
    move_in: TaskMove,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Drag and drop a task into a status column at a position."""
    task = task_service.move_task(db, project_id, task_id, current_user.id, move_in)
    return TaskSummaryResponse.model_validate(task)
