import pytest
from pydantic import ValidationError

from tasktracker.models import TaskPriority, TaskStatus
from tasktracker.schemas import TaskCreate, TaskFilterParams, TaskMove, TaskUpdate
from tasktracker.schemas.task import normalize_status


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("To Do", TaskStatus.TODO),
        ("todo", TaskStatus.TODO),
        ("to_do", TaskStatus.TODO),
        ("In Progress", TaskStatus.IN_PROGRESS),
        ("in-progress", TaskStatus.IN_PROGRESS),
        ("IN_PROGRESS", TaskStatus.IN_PROGRESS),
        ("done", TaskStatus.DONE),
        ("Completed", TaskStatus.DONE),
    ],
)
def test_status_spellings(raw, expected):
    assert normalize_status(raw) == expected


def test_unknown_status_is_rejected():
    with pytest.raises(ValidationError):
        TaskCreate(name="x", status="blocked")


def test_priority_is_case_insensitive():
    assert TaskCreate(name="x", priority="critical").priority == TaskPriority.CRITICAL


def test_blank_name_is_rejected():
    with pytest.raises(ValidationError):
        TaskCreate(name="   ")


def test_update_keeps_only_sent_fields():
    update = TaskUpdate(status="done")

    assert update.model_dump(exclude_unset=True) == {"status": TaskStatus.DONE}


@pytest.mark.parametrize("field_name", ["name", "status", "priority", "order", "tags"])
def test_update_rejects_null_for_required_fields(field_name):
    with pytest.raises(ValidationError):
        TaskUpdate(**{field_name: None})


def test_update_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        TaskUpdate(project_id=2)


def test_move_position_must_not_be_negative():
    with pytest.raises(ValidationError):
        TaskMove(status="Done", position=-1)


def test_filter_params_ignore_empty_strings():
    task_filter = TaskFilterParams(status="", priority="", tags="a,b").to_filter()

    assert task_filter.status is None
    assert task_filter.priority is None
    assert task_filter.tag_fragments == ["a", "b"]
