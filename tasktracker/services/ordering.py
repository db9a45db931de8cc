"""
Display ordering of tasks inside a column or sibling group.

``reorder`` trusts the caller to pass one coherent group (usually a status
column); it only checks that every id belongs to the project.
"""
import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from tasktracker.exceptions import ValidationException
from tasktracker.models import Task, TaskStatus
from tasktracker.services import task_tree

logger = logging.getLogger(__name__)


def reorder(db: Session, project_id: int, ordered_task_ids: Sequence[int]) -> List[Task]:
    """Set ``order`` of each task to its index in ``ordered_task_ids``.

    Raises:
        ValidationException: duplicate ids, or ids that are not tasks of the project
    """
    ordered_task_ids = list(ordered_task_ids)
    if len(set(ordered_task_ids)) != len(ordered_task_ids):
        raise ValidationException("Task ids must not repeat")

    if not ordered_task_ids:
        return []

    tasks = (
        db.query(Task)
        .filter(Task.id.in_(ordered_task_ids), Task.project_id == project_id)
        .all()
    )
    if len(tasks) != len(ordered_task_ids):
        raise ValidationException("Some tasks do not belong to this project")

    by_id = {task.id: task for task in tasks}
    ordered = [by_id[task_id] for task_id in ordered_task_ids]
    for position, task in enumerate(ordered):
        task.order = position

    db.flush()
    logger.info("Reordered %d tasks in project %s", len(ordered), project_id)
    return ordered


def column_siblings(db: Session, task: Task, status: TaskStatus) -> List[Task]:
    """Tasks sharing ``task``'s parent that sit in the ``status`` column, excluding ``task``."""
    query = db.query(Task).filter(
        Task.project_id == task.project_id,
        Task.status == status,
        Task.id != task.id,
    )
    if task.parent_task_id is None:
        query = query.filter(Task.parent_task_id.is_(None))
    else:
        query = query.filter(Task.parent_task_id == task.parent_task_id)
    return query.order_by(Task.order.asc(), Task.id.asc()).all()


def move_to_column(db: Session, task: Task, status: TaskStatus, position: Optional[int] = None) -> Task:
    """Drag and drop: put ``task`` into the ``status`` column at ``position``.

    The destination column is renumbered 0..n-1. ``position`` past the end (or
    None) appends. The parent chain is rolled up afterwards.
    """
    status = TaskStatus(status)
    column = column_siblings(db, task, status)

    if position is None or position > len(column):
        position = len(column)
    if position < 0:
        raise ValidationException("Position must not be negative")

    column.insert(position, task)
    previous_status = task.status
    task.status = status
    for index, item in enumerate(column):
        item.order = index

    db.flush()
    logger.info(
        "Moved task %s from %s to %s at position %d",
        task.id,
        TaskStatus(previous_status).value,
        status.value,
        position,
    )

    if task.parent_task_id is not None:
        task_tree.roll_up_status(db, task.parent_task_id)
    return task
