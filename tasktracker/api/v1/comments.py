"""Task comment endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.dependencies import get_current_user
from tasktracker.models import TaskComment, User
from tasktracker.schemas import TaskCommentCreate, TaskCommentResponse, UserSummary
from tasktracker.services import tasks as task_service

router = APIRouter()


def _serialize_comment(comment: TaskComment) -> TaskCommentResponse:
    return TaskCommentResponse(
        id=comment.id,
        task_id=comment.task_id,
        text=comment.text,
        created_at=comment.created_at,
        author=UserSummary.model_validate(comment.author) if comment.author else None,
    )


@router.post("", response_model=TaskCommentResponse, status_code=status.HTTP_201_CREATED)
def add_comment(
    project_id: int,
    task_id: int,
    comment_in: TaskCommentCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Append a comment to a task. Any project member may comment."""
    comment = task_service.add_comment(db, project_id, task_id, current_user.id, comment_in.text)
    return _serialize_comment(comment)


@router.get("", response_model=List[TaskCommentResponse])
def list_comments(
    project_id: int,
    task_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Return a task's comments, oldest first."""
    comments = task_service.list_comments(db, project_id, task_id, current_user.id)
    return [_serialize_comment(comment) for comment in comments]
