import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy.orm import Session

from tasktracker.api.v1 import comments as comment_routes
from tasktracker.api.v1 import my_tasks as my_task_routes
from tasktracker.api.v1 import projects as project_routes
from tasktracker.api.v1 import tasks as task_routes
from tasktracker.config import settings
from tasktracker.database import get_db
from tasktracker.dependencies import decode_user_id, get_current_user
from tasktracker.exceptions import ValidationException
from tasktracker.main import app
from tasktracker.models import ProjectRole, TaskStatus
from tasktracker.schemas import (
    ProjectCreate,
    ProjectShareCreate,
    TaskCommentCreate,
    TaskCreate,
    TaskMove,
    TaskUpdate,
)


def _token(user_id) -> str:
    return jwt.encode({"sub": str(user_id)}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


@pytest.fixture
def client(db_session: Session):
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_project_routes_report_roles(db_session: Session, owner, editor):
    created = project_routes.create_project(ProjectCreate(name="Website"), owner, db_session)
    assert created.user_role == ProjectRole.OWNER
    assert created.owner.id == owner.id

    shared = project_routes.share_project(
        created.id, ProjectShareCreate(user_id=editor.id, role=ProjectRole.EDITOR), owner, db_session
    )
    assert [(entry.user.id, entry.role) for entry in shared.shared_with] == [(editor.id, ProjectRole.EDITOR)]

    listed = project_routes.list_projects(editor, db_session)
    assert [(item.name, item.user_role) for item in listed] == [("Website", ProjectRole.EDITOR)]


def test_task_routes_nest_sub_tasks(db_session: Session, project, editor, viewer):
    parent = task_routes.create_task(project.id, TaskCreate(name="Parent"), editor, db_session)
    child = task_routes.create_task(
        project.id, TaskCreate(name="Child", parent_task_id=parent.id), editor, db_session
    )

    fetched = task_routes.get_task(project.id, parent.id, viewer, db_session)
    assert [sub.id for sub in fetched.sub_tasks] == [child.id]

    task_routes.update_task(project.id, child.id, TaskUpdate(status="done"), editor, db_session)
    refreshed = task_routes.get_task(project.id, parent.id, viewer, db_session)
    assert refreshed.status == TaskStatus.DONE
    assert refreshed.progress_percentage == 100


def test_task_filters_dependency_rejects_bad_status():
    with pytest.raises(ValidationException):
        task_routes.task_filters(
            status_filter="blocked",
            priority=None,
            start_date=None,
            end_date=None,
            assignee_id=None,
            tags=None,
            search=None,
        )


def test_move_and_recent_routes(db_session: Session, project, editor, viewer, make_task):
    task = make_task("Card")

    moved = task_routes.move_task(project.id, task.id, TaskMove(status="In Progress", position=0), editor, db_session)
    assert moved.status == TaskStatus.IN_PROGRESS
    assert moved.order == 0

    recent = my_task_routes.list_recent_tasks(viewer, db_session)
    assert [(item.id, item.project_name) for item in recent] == [(task.id, "Launch")]


def test_comment_routes_include_author(db_session: Session, project, viewer, make_task):
    task = make_task("Discuss")

    created = comment_routes.add_comment(project.id, task.id, TaskCommentCreate(text="Ship it"), viewer, db_session)
    listed = comment_routes.list_comments(project.id, task.id, viewer, db_session)

    assert created.author.id == viewer.id
    assert [comment.text for comment in listed] == ["Ship it"]


def test_decode_user_id_round_trip():
    assert decode_user_id(_token(42)) == 42


def test_decode_user_id_rejects_bad_token():
    with pytest.raises(HTTPException) as exc:
        decode_user_id("not-a-token")
    assert exc.value.status_code == 401


def test_missing_token_is_unauthorized(client):
    response = client.get("/api/v1/users/me")

    assert response.status_code == 401


def test_bearer_token_identifies_user(client, owner):
    response = client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {_token(owner.id)}"})

    assert response.status_code == 200
    assert response.json()["email"] == "owner@example.com"


def test_errors_are_mapped_to_json(client, project, owner, viewer, outsider, make_task):
    parent = make_task("A")
    child = make_task("B", parent=parent)

    app.dependency_overrides[get_current_user] = lambda: outsider
    response = client.get(f"/api/v1/projects/{project.id}")
    assert response.status_code == 403
    assert response.json()["error"] == "forbidden"

    app.dependency_overrides[get_current_user] = lambda: viewer
    response = client.post(f"/api/v1/projects/{project.id}/tasks", json={"name": "Nope"})
    assert response.status_code == 403
    assert response.json()["error"] == "insufficient_permissions"

    app.dependency_overrides[get_current_user] = lambda: owner
    response = client.patch(
        f"/api/v1/projects/{project.id}/tasks/{parent.id}", json={"parent_task_id": child.id}
    )
    assert response.status_code == 409
    assert response.json() == {"error": "conflict", "detail": "Cannot move task to its own descendant"}

    response = client.get(f"/api/v1/projects/{project.id}/tasks/999")
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"

    response = client.post(f"/api/v1/projects/{project.id}/tasks", json={})
    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


def test_null_project_name_is_a_validation_error(client, project, owner):
    app.dependency_overrides[get_current_user] = lambda: owner

    response = client.patch(f"/api/v1/projects/{project.id}", json={"name": None})

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"
    assert client.get(f"/api/v1/projects/{project.id}").json()["name"] == "Launch"
