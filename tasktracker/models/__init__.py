"""Task tracker database models"""
from tasktracker.models.user import User
from tasktracker.models.project import Project
from tasktracker.models.project_share import ProjectRole, ProjectShare
from tasktracker.models.task import Task, TaskPriority, TaskStatus
from tasktracker.models.task_comment import TaskComment

__all__ = [
    "User",
    "Project",
    "ProjectRole",
    "ProjectShare",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "TaskComment",
]
