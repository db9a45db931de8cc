"""Task filtering: every active criterion must match (logical AND)."""
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, List, Optional

from tasktracker.models import Task, TaskPriority, TaskStatus


def _calendar_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class TaskFilter:
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    assignee_id: Optional[int] = None
    # Comma separated fragments, e.g. "backend, urgent"
    tags: Optional[str] = None
    search: Optional[str] = None

    @property
    def tag_fragments(self) -> List[str]:
        if not self.tags:
            return []
        return [fragment.strip().lower() for fragment in self.tags.split(",") if fragment.strip()]

    @property
    def search_term(self) -> Optional[str]:
        if self.search is None or not self.search.strip():
            return None
        return self.search.strip().lower()

    def is_empty(self) -> bool:
        return (
            self.status is None
            and self.priority is None
            and self.start_date is None
            and self.end_date is None
            and self.assignee_id is None
            and not self.tag_fragments
            and self.search_term is None
        )

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status != self.status:
            return False

        if self.priority is not None and task.priority != self.priority:
            return False

        # Tasks without a due date are never excluded by the date range.
        due = _calendar_date(task.due_date)
        if due is not None:
            if self.start_date is not None and due < _calendar_date(self.start_date):
                return False
            if self.end_date is not None and due > _calendar_date(self.end_date):
                return False

        if self.assignee_id is not None and task.assignee_id != self.assignee_id:
            return False

        fragments = self.tag_fragments
        if fragments:
            task_tags = [tag.lower() for tag in (task.tags or [])]
            if not any(fragment in tag for tag in task_tags for fragment in fragments):
                return False

        term = self.search_term
        if term is not None:
            name = (task.name or "").lower()
            description = (task.description or "").lower()
            if term not in name and term not in description:
                return False

        return True

    def apply(self, tasks: Iterable[Task]) -> List[Task]:
        tasks = list(tasks)
        if self.is_empty():
            return tasks
        return [task for task in tasks if self.matches(task)]
