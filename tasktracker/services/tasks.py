"""
Task operations exposed to the API layer.

Each operation authorizes the caller on the project, then delegates structure
to :mod:`tasktracker.services.task_tree` and ordering to
:mod:`tasktracker.services.ordering`. Writes hold the project lock from the
first read to the commit.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from tasktracker.database import commit
from tasktracker.exceptions import NotFoundException, ValidationException
from tasktracker.models import Project, ProjectRole, Task, TaskComment, User
from tasktracker.schemas import TaskCreate, TaskMove, TaskUpdate
from tasktracker.services import access, ordering, task_tree
from tasktracker.services.filters import TaskFilter
from tasktracker.services.task_tree import TaskIndex, TaskNode
from tasktracker.utils.locks import project_locks

logger = logging.getLogger(__name__)


def _ensure_assignee(db: Session, assignee_id: Optional[int]) -> None:
    if assignee_id is not None and db.get(User, assignee_id) is None:
        raise ValidationException("Assignee not found")


def create_task(
    db: Session,
    project_id: int,
    user_id: int,
    task_in: TaskCreate,
    parent_id: Optional[int] = None,
) -> Task:
    """Create a task; ``parent_id`` overrides ``task_in.parent_task_id`` when given."""
    if parent_id is None:
        parent_id = task_in.parent_task_id

    with project_locks.hold(project_id):
        access.load_project(db, project_id, user_id, ProjectRole.EDITOR)
        _ensure_assignee(db, task_in.assignee_id)

        attrs = task_in.model_dump(exclude={"parent_task_id"})
        task = task_tree.create_task(db, project_id, attrs, parent_id)
        commit(db)

    db.refresh(task)
    return task


def list_tasks(
    db: Session,
    project_id: int,
    user_id: int,
    filters: Optional[TaskFilter] = None,
    parent_task_id: Optional[int] = None,
) -> List[TaskNode]:
    """Top-level tasks (roots, or the children of ``parent_task_id``) with nested sub-tasks.

    Filters select among the top-level tasks; each selected task keeps its
    complete subtree.
    """
    access.load_project(db, project_id, user_id, ProjectRole.VIEWER)

    index = TaskIndex.load(db, project_id)
    if parent_task_id is not None:
        if parent_task_id not in index.by_id:
            raise NotFoundException("Task not found")
        top_level = index.children_of(parent_task_id)
    else:
        top_level = index.roots()

    if filters is not None:
        top_level = filters.apply(top_level)
    return index.build(top_level)


def get_task(db: Session, project_id: int, task_id: int, user_id: int) -> TaskNode:
    access.load_project(db, project_id, user_id, ProjectRole.VIEWER)

    index = TaskIndex.load(db, project_id)
    task = index.by_id.get(task_id)
    if task is None:
        raise NotFoundException("Task not found")
    return index.build([task])[0]


def update_task(
    db: Session, project_id: int, task_id: int, user_id: int, task_update: TaskUpdate
) -> Task:
    """Apply a partial update. A ``parent_task_id`` in the patch reparents the task;
    a ``status`` change rolls up the parent chain."""
    data = task_update.model_dump(exclude_unset=True)

    with project_locks.hold(project_id):
        access.load_project(db, project_id, user_id, ProjectRole.EDITOR)
        task = task_tree.get_project_task(db, project_id, task_id)
        if "assignee_id" in data:
            _ensure_assignee(db, data["assignee_id"])

        # Structural checks run before any field is touched.
        if "parent_task_id" in data:
            task_tree.reparent(db, task, data.pop("parent_task_id"))

        previous_status = task.status
        for field_name, value in data.items():
            setattr(task, field_name, value)
        db.flush()

        if task.status != previous_status and task.parent_task_id is not None:
            task_tree.roll_up_status(db, task.parent_task_id)
        commit(db)

    db.refresh(task)
    logger.info("User %s updated task %s fields %s", user_id, task_id, sorted(data))
    return task


def delete_task(db: Session, project_id: int, task_id: int, user_id: int) -> List[int]:
    with project_locks.hold(project_id):
        access.load_project(db, project_id, user_id, ProjectRole.EDITOR)
        task_tree.get_project_task(db, project_id, task_id)
        removed = task_tree.delete_task(db, task_id)
        commit(db)
    return removed


def reorder_tasks(db: Session, project_id: int, user_id: int, task_ids: Sequence[int]) -> List[Task]:
    with project_locks.hold(project_id):
        access.load_project(db, project_id, user_id, ProjectRole.EDITOR)
        tasks = ordering.reorder(db, project_id, task_ids)
        commit(db)
    return tasks


def move_task(db: Session, project_id: int, task_id: int, user_id: int, move: TaskMove) -> Task:
    """Drag and drop a task into a status column."""
    with project_locks.hold(project_id):
        access.load_project(db, project_id, user_id, ProjectRole.EDITOR)
        task = task_tree.get_project_task(db, project_id, task_id)
        ordering.move_to_column(db, task, move.status, move.position)
        commit(db)

    db.refresh(task)
    return task


def add_comment(db: Session, project_id: int, task_id: int, user_id: int, text: str) -> TaskComment:
    access.load_project(db, project_id, user_id, ProjectRole.VIEWER)
    task = task_tree.get_project_task(db, project_id, task_id)

    text = (text or "").strip()
    if not text:
        raise ValidationException("Comment text cannot be empty")

    comment = TaskComment(task_id=task.id, author_id=user_id, text=text)
    db.add(comment)
    commit(db)
    db.refresh(comment)
    return comment


def list_comments(db: Session, project_id: int, task_id: int, user_id: int) -> List[TaskComment]:
    access.load_project(db, project_id, user_id, ProjectRole.VIEWER)
    task = task_tree.get_project_task(db, project_id, task_id)
    return (
        db.query(TaskComment)
        .filter(TaskComment.task_id == task.id)
        .order_by(TaskComment.created_at.asc(), TaskComment.id.asc())
        .all()
    )


def list_accessible_tasks(db: Session, user_id: int, limit: Optional[int] = None) -> List[Task]:
    """Tasks of every project ``user_id`` can see, newest first."""
    query = (
        db.query(Task)
        .join(Project, Task.project_id == Project.id)
        .filter(access.accessible_projects_filter(user_id))
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    return query.all()
