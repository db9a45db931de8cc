"""
Task hierarchy.

Tasks reference their parent by id only (``Task.parent_task_id``); children are
never stored on the parent. Every structural operation loads the project's
tasks into a :class:`TaskIndex` (id -> task, parent -> children) and walks it
with explicit worklists, so arbitrarily deep trees never hit the recursion
limit.

Invariants kept here:

* a parent task belongs to the same project as its child,
* following ``parent_task_id`` never revisits a task,
* deleting a task removes its whole subtree in one statement,
* a task with children carries the status rolled up from its subtree.

Callers hold the project lock (``tasktracker.utils.locks``) and commit.
"""
import logging
from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from tasktracker.exceptions import (
    ConflictException,
    InvalidArgumentException,
    NotFoundException,
    ValidationException,
)
from tasktracker.models import Task, TaskComment, TaskStatus

logger = logging.getLogger(__name__)


@dataclass
class TaskNode:
    """A task together with its (computed) sub-tasks, for nested views."""

    task: Task
    sub_tasks: List["TaskNode"] = field(default_factory=list)


def _sibling_key(task: Task):
    return (task.order, task.id)


class TaskIndex:
    """In-memory parent/child index over one project's tasks."""

    def __init__(self, tasks: Iterable[Task]):
        self.by_id: Dict[int, Task] = {}
        self._children: Dict[Optional[int], List[Task]] = defaultdict(list)
        for task in tasks:
            self.by_id[task.id] = task
            self._children[task.parent_task_id].append(task)
        for siblings in self._children.values():
            siblings.sort(key=_sibling_key)

    @classmethod
    def load(cls, db: Session, project_id: int) -> "TaskIndex":
        return cls(db.query(Task).filter(Task.project_id == project_id).all())

    def children_of(self, task_id: Optional[int]) -> List[Task]:
        return list(self._children.get(task_id, []))

    def roots(self) -> List[Task]:
        return self.children_of(None)

    def has_children(self, task_id: int) -> bool:
        return bool(self._children.get(task_id))

    def ancestor_ids(self, task_id: int) -> List[int]:
        """Ids from the direct parent of ``task_id`` up to its root."""
        ancestors: List[int] = []
        seen: Set[int] = {task_id}
        current = self.by_id.get(task_id)
        while current is not None and current.parent_task_id is not None:
            parent_id = current.parent_task_id
            if parent_id in seen:
                raise ConflictException("Circular reference detected in task hierarchy")
            seen.add(parent_id)
            ancestors.append(parent_id)
            current = self.by_id.get(parent_id)
        return ancestors

    def descendant_ids(self, task_id: int) -> List[int]:
        """Breadth-first ids of every task below ``task_id`` (excluding itself)."""
        found: List[int] = []
        seen: Set[int] = {task_id}
        queue = deque([task_id])
        while queue:
            current = queue.popleft()
            for child in self._children.get(current, []):
                if child.id in seen:
                    continue
                seen.add(child.id)
                found.append(child.id)
                queue.append(child.id)
        return found

    def build(self, roots: Iterable[Task]) -> List[TaskNode]:
        """Nest the subtree of every task in ``roots`` into :class:`TaskNode` objects."""
        result: List[TaskNode] = []
        stack = []
        for task in roots:
            node = TaskNode(task)
            result.append(node)
            stack.append(node)
        while stack:
            node = stack.pop()
            for child in self._children.get(node.task.id, []):
                child_node = TaskNode(child)
                node.sub_tasks.append(child_node)
                stack.append(child_node)
        return result


def aggregate_status(statuses: Iterable[TaskStatus]) -> Optional[TaskStatus]:
    """Status of a parent whose subtree holds ``statuses``; None when empty."""
    statuses = [TaskStatus(value) for value in statuses]
    if not statuses:
        return None
    if all(value == TaskStatus.DONE for value in statuses):
        return TaskStatus.DONE
    if any(value in (TaskStatus.DONE, TaskStatus.IN_PROGRESS) for value in statuses):
        return TaskStatus.IN_PROGRESS
    return TaskStatus.TODO


def next_sibling_order(db: Session, project_id: int, parent_id: Optional[int]) -> int:
    """Order value that places a new task after its current siblings."""
    query = db.query(func.max(Task.order)).filter(Task.project_id == project_id)
    if parent_id is None:
        query = query.filter(Task.parent_task_id.is_(None))
    else:
        query = query.filter(Task.parent_task_id == parent_id)
    max_order = query.scalar()
    return 0 if max_order is None else max_order + 1


def get_project_task(db: Session, project_id: int, task_id: int) -> Task:
    task = (
        db.query(Task)
        .filter(Task.id == task_id, Task.project_id == project_id)
        .first()
    )
    if task is None:
        raise NotFoundException("Task not found")
    return task


def create_task(db: Session, project_id: int, attrs: dict, parent_id: Optional[int] = None) -> Task:
    """Add a task to ``project_id``, optionally below ``parent_id``.

    Args:
        db: Database session
        project_id: Project the task belongs to
        attrs: Column values; ``order`` defaults to the end of the sibling list
        parent_id: Optional parent task id

    Raises:
        ValidationException: parent missing or in another project
    """
    if parent_id is not None:
        parent = db.get(Task, parent_id)
        if parent is None or parent.project_id != project_id:
            raise ValidationException("Parent task not found or does not belong to this project")

    attrs = dict(attrs)
    if attrs.get("order") is None:
        attrs["order"] = next_sibling_order(db, project_id, parent_id)

    task = Task(project_id=project_id, parent_task_id=parent_id, **attrs)
    db.add(task)
    db.flush()
    logger.info("Created task %s in project %s under parent %s", task.id, project_id, parent_id)

    if parent_id is not None:
        roll_up_status(db, parent_id)
    return task


def reparent(db: Session, task: Task, new_parent_id: Optional[int]) -> Task:
    """Move ``task`` (with its subtree) below ``new_parent_id``; None makes it a root.

    Every check runs before ``task`` is modified.

    Raises:
        InvalidArgumentException: the task would become its own parent
        ValidationException: the new parent does not exist
        ConflictException: the new parent is in another project or inside the task's subtree
    """
    old_parent_id = task.parent_task_id
    if new_parent_id == old_parent_id:
        return task

    if new_parent_id is not None:
        if new_parent_id == task.id:
            raise InvalidArgumentException("Task cannot be its own parent")

        new_parent = db.get(Task, new_parent_id)
        if new_parent is None:
            raise ValidationException("Parent task not found")
        if new_parent.project_id != task.project_id:
            raise ConflictException("Parent task belongs to a different project")

        index = TaskIndex.load(db, task.project_id)
        if task.id in index.ancestor_ids(new_parent_id):
            logger.warning("Rejected moving task %s below its descendant %s", task.id, new_parent_id)
            raise ConflictException("Cannot move task to its own descendant")

    task.parent_task_id = new_parent_id
    task.order = next_sibling_order(db, task.project_id, new_parent_id)
    db.flush()
    logger.info("Moved task %s from parent %s to %s", task.id, old_parent_id, new_parent_id)

    if old_parent_id is not None:
        roll_up_status(db, old_parent_id)
    if new_parent_id is not None:
        roll_up_status(db, new_parent_id)
    return task


def delete_task(db: Session, task_id: int) -> List[int]:
    """Delete ``task_id`` and its whole subtree.

    Returns:
        Ids of every removed task, the requested one first

    Raises:
        NotFoundException: no task with that id
    """
    task = db.get(Task, task_id)
    if task is None:
        raise NotFoundException("Task not found")

    parent_id = task.parent_task_id
    index = TaskIndex.load(db, task.project_id)
    removed = [task_id] + index.descendant_ids(task_id)

    db.query(TaskComment).filter(TaskComment.task_id.in_(removed)).delete(synchronize_session="fetch")
    # One statement, so no row ever points at an already removed parent.
    db.query(Task).filter(Task.id.in_(removed)).delete(synchronize_session="fetch")
    db.flush()
    logger.info("Deleted task %s with %d descendants", task_id, len(removed) - 1)

    if parent_id is not None:
        roll_up_status(db, parent_id)
    return removed


def roll_up_status(db: Session, task_id: int) -> List[Task]:
    """Recompute the status of ``task_id`` and every ancestor from their subtrees.

    A task without children keeps whatever status it has. The walk goes all
    the way to the root.

    Returns:
        Tasks whose status changed, bottom-up
    """
    task = db.get(Task, task_id)
    if task is None:
        return []

    index = TaskIndex.load(db, task.project_id)
    changed: List[Task] = []
    for node_id in [task_id] + index.ancestor_ids(task_id):
        if not index.has_children(node_id):
            continue
        subtree = [index.by_id[child_id].status for child_id in index.descendant_ids(node_id)]
        new_status = aggregate_status(subtree)
        node = index.by_id[node_id]
        if new_status is not None and node.status != new_status:
            logger.info("Rolled up task %s status %s -> %s", node_id, node.status.value, new_status.value)
            node.status = new_status
            changed.append(node)

    if changed:
        db.flush()
    return changed
