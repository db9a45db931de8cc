"""
Project operations: creation, listing, updates, deletion and sharing.

Every function authorizes the caller first and commits on success.
"""
import logging
from typing import List, Tuple

from sqlalchemy.orm import Session, selectinload

from tasktracker.database import commit
from tasktracker.models import Project, ProjectRole, Task, TaskComment
from tasktracker.schemas import ProjectCreate, ProjectUpdate
from tasktracker.services import access
from tasktracker.utils.locks import project_locks

logger = logging.getLogger(__name__)


def create_project(db: Session, project_in: ProjectCreate, owner_id: int) -> Tuple[Project, ProjectRole]:
    project = Project(
        name=project_in.name,
        description=project_in.description,
        owner_id=owner_id,
    )
    db.add(project)
    commit(db)
    db.refresh(project)
    logger.info("User %s created project %s", owner_id, project.id)
    return project, ProjectRole.OWNER


def list_projects(db: Session, user_id: int) -> List[Tuple[Project, ProjectRole]]:
    """All projects ``user_id`` owns or is shared on, each with the caller's role."""
    projects = (
        db.query(Project)
        .options(selectinload(Project.shares))
        .filter(access.accessible_projects_filter(user_id))
        .order_by(Project.created_at.desc(), Project.id.desc())
        .all()
    )
    return [(project, access.resolve_role(project, user_id)) for project in projects]


def get_project(db: Session, project_id: int, user_id: int) -> Tuple[Project, ProjectRole]:
    return access.load_project(db, project_id, user_id, ProjectRole.VIEWER)


def update_project(
    db: Session, project_id: int, user_id: int, project_update: ProjectUpdate
) -> Tuple[Project, ProjectRole]:
    project, role = access.load_project(db, project_id, user_id, ProjectRole.EDITOR)

    for field_name, value in project_update.model_dump(exclude_unset=True).items():
        setattr(project, field_name, value)

    commit(db)
    db.refresh(project)
    return project, role


def delete_project(db: Session, project_id: int, user_id: int) -> None:
    """Delete a project with every task, comment and share it owns. Owner only."""
    with project_locks.hold(project_id):
        project, _ = access.load_project(db, project_id, user_id, ProjectRole.OWNER)

        task_ids = [row[0] for row in db.query(Task.id).filter(Task.project_id == project.id).all()]
        if task_ids:
            db.query(TaskComment).filter(TaskComment.task_id.in_(task_ids)).delete(synchronize_session="fetch")
            db.query(Task).filter(Task.id.in_(task_ids)).delete(synchronize_session="fetch")
        db.delete(project)
        commit(db)

    project_locks.discard(project_id)
    logger.info("User %s deleted project %s with %d tasks", user_id, project_id, len(task_ids))


def share_project(
    db: Session, project_id: int, user_id: int, target_user_id: int, role: ProjectRole
) -> Tuple[Project, ProjectRole]:
    project, caller_role = access.load_project(db, project_id, user_id, ProjectRole.OWNER)
    access.share(db, project, user_id, target_user_id, role)
    commit(db)
    db.refresh(project)
    logger.info("Project %s shared with user %s as %s", project_id, target_user_id, ProjectRole(role).value)
    return project, caller_role


def unshare_project(db: Session, project_id: int, user_id: int, target_user_id: int) -> None:
    project, _ = access.load_project(db, project_id, user_id, ProjectRole.OWNER)
    if access.unshare(project, target_user_id):
        commit(db)
        logger.info("User %s removed from project %s", target_user_id, project_id)
