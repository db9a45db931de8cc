import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tasktracker import models
from tasktracker.database import Base
from tasktracker.models import ProjectRole
from tasktracker.schemas import ProjectCreate, TaskCreate
from tasktracker.services import projects as project_service
from tasktracker.services import tasks as task_service

TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session() -> Session:
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db_session: Session):
    def _make_user(name: str) -> models.User:
        user = models.User(name=name, email=f"{name.lower()}@example.com", password_hash="hashed")
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def owner(make_user) -> models.User:
    return make_user("Owner")


@pytest.fixture
def editor(make_user) -> models.User:
    return make_user("Editor")


@pytest.fixture
def viewer(make_user) -> models.User:
    return make_user("Viewer")


@pytest.fixture
def outsider(make_user) -> models.User:
    return make_user("Outsider")


@pytest.fixture
def project(db_session: Session, owner, editor, viewer) -> models.Project:
    """Project owned by ``owner``, shared with ``editor`` (Editor) and ``viewer`` (Viewer)."""
    project, _ = project_service.create_project(
        db_session, ProjectCreate(name="Launch", description="Product launch"), owner.id
    )
    project_service.share_project(db_session, project.id, owner.id, editor.id, ProjectRole.EDITOR)
    project_service.share_project(db_session, project.id, owner.id, viewer.id, ProjectRole.VIEWER)
    return project


@pytest.fixture
def make_task(db_session: Session, project, editor):
    def _make_task(name: str, parent=None, **fields) -> models.Task:
        task_in = TaskCreate(name=name, **fields)
        parent_id = parent.id if parent is not None else None
        return task_service.create_task(db_session, project.id, editor.id, task_in, parent_id)

    return _make_task
