"""Cross-project task listings for the current user"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tasktracker.config import settings
from tasktracker.database import get_db
from tasktracker.dependencies import get_current_user
from tasktracker.models import User
from tasktracker.schemas import ProjectTaskResponse
from tasktracker.services import tasks as task_service

router = APIRouter()


@router.get("", response_model=List[ProjectTaskResponse])
def list_my_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Every task in every project the caller can see, newest first."""
    tasks = task_service.list_accessible_tasks(db, current_user.id)
    return [ProjectTaskResponse.from_task(task) for task in tasks]


@router.get("/recent", response_model=List[ProjectTaskResponse])
def list_recent_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The most recently created tasks across the caller's projects."""
    tasks = task_service.list_accessible_tasks(db, current_user.id, limit=settings.RECENT_TASKS_LIMIT)
    return [ProjectTaskResponse.from_task(task) for task in tasks]
