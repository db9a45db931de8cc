"""
Project access guard.

Resolves the role a user holds on a project and gates operations on a
minimum role. Every project and task operation calls :func:`authorize` (or
:func:`load_project`, which wraps it) before touching any data.
"""
import logging
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from tasktracker.exceptions import (
    ForbiddenException,
    InsufficientPermissionsException,
    InvalidArgumentException,
    NotFoundException,
)
from tasktracker.models import Project, ProjectRole, ProjectShare, User
from tasktracker.services import roles

logger = logging.getLogger(__name__)


def resolve_role(project: Project, user_id: int) -> Optional[ProjectRole]:
    """Return the role ``user_id`` holds on ``project``, or None for no access."""
    if project.owner_id == user_id:
        return ProjectRole.OWNER

    for share in project.shares:
        if share.user_id == user_id:
            return share.role
    return None


def accessible_projects_filter(user_id: int):
    """SQL criterion matching projects ``user_id`` owns or is shared on."""
    return or_(
        Project.owner_id == user_id,
        Project.shares.any(ProjectShare.user_id == user_id),
    )


def authorize(project: Project, user_id: int, min_role: ProjectRole) -> ProjectRole:
    """Ensure ``user_id`` holds at least ``min_role`` on ``project``.

    Returns the resolved role so callers can branch on it.

    Raises:
        ForbiddenException: the user has no access to the project at all
        InsufficientPermissionsException: the user's role ranks below ``min_role``
    """
    role = resolve_role(project, user_id)
    if role is None:
        logger.warning("User %s has no access to project %s", user_id, project.id)
        raise ForbiddenException("Access denied")

    if not roles.satisfies(role, min_role):
        logger.warning(
            "User %s holds %s on project %s, %s required",
            user_id,
            role.value,
            project.id,
            min_role.value,
        )
        raise InsufficientPermissionsException("Insufficient permissions")

    return role


def load_project(db: Session, project_id: int, user_id: int, min_role: ProjectRole):
    """Fetch a project and authorize ``user_id`` on it in one step.

    Returns:
        ``(project, role)`` tuple
    """
    project = (
        db.query(Project)
        .options(selectinload(Project.shares))
        .filter(Project.id == project_id)
        .first()
    )
    if project is None:
        raise NotFoundException("Project not found")

    role = authorize(project, user_id, min_role)
    return project, role


def share(
    db: Session,
    project: Project,
    acting_user_id: int,
    target_user_id: int,
    role: ProjectRole,
) -> ProjectShare:
    """Grant ``role`` on ``project`` to ``target_user_id``, replacing any existing grant.

    The caller commits.
    """
    role = ProjectRole(role)
    if target_user_id == acting_user_id:
        raise InvalidArgumentException("Cannot share project with yourself")
    if target_user_id == project.owner_id:
        raise InvalidArgumentException("Cannot share project with its owner")
    if role == ProjectRole.OWNER:
        raise InvalidArgumentException("Ownership cannot be granted through sharing")

    if db.get(User, target_user_id) is None:
        raise NotFoundException("User not found")

    for existing in project.shares:
        if existing.user_id == target_user_id:
            existing.role = role
            return existing

    new_share = ProjectShare(user_id=target_user_id, role=role)
    project.shares.append(new_share)
    return new_share


def unshare(project: Project, target_user_id: int) -> bool:
    """Remove ``target_user_id`` from the share list. Returns whether anything was removed."""
    for existing in list(project.shares):
        if existing.user_id == target_user_id:
            project.shares.remove(existing)
            return True
    return False
