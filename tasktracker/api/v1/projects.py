"""Project endpoints"""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.dependencies import get_current_user
from tasktracker.models import Project, ProjectRole, User
from tasktracker.schemas import (
    ProjectCreate,
    ProjectResponse,
    ProjectShareCreate,
    ProjectShareResponse,
    ProjectUpdate,
    UserSummary,
)
from tasktracker.services import projects as project_service

router = APIRouter()


def _serialize_project(project: Project, role: ProjectRole) -> ProjectResponse:
    return ProjectResponse(
        id=project.id,
        name=project.name,
        description=project.description,
        owner=UserSummary.model_validate(project.owner),
        shared_with=[ProjectShareResponse.model_validate(share) for share in project.shares],
        user_role=role,
        created_at=project.created_at,
        updated_at=project.updated_at,
    )


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a project owned by the caller."""
    project, role = project_service.create_project(db, project_in, current_user.id)
    return _serialize_project(project, role)


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List every project the caller owns or is shared on, with the caller's role."""
    return [
        _serialize_project(project, role)
        for project, role in project_service.list_projects(db, current_user.id)
    ]


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    project, role = project_service.get_project(db, project_id, current_user.id)
    return _serialize_project(project, role)


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: int,
    project_update: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Rename or re-describe a project. Editors and owners only."""
    project, role = project_service.update_project(db, project_id, current_user.id, project_update)
    return _serialize_project(project, role)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a project and all of its tasks. Owner only."""
    project_service.delete_project(db, project_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{project_id}/share", response_model=ProjectResponse)
def share_project(
    project_id: int,
    share_in: ProjectShareCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Grant (or change) a user's role on the project. Owner only."""
    project, role = project_service.share_project(
        db, project_id, current_user.id, share_in.user_id, share_in.role
    )
    return _serialize_project(project, role)


@router.delete("/{project_id}/share/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unshare_project(
    project_id: int,
    user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Remove a user from the project's share list. Owner only."""
    project_service.unshare_project(db, project_id, current_user.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
