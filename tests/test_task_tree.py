import random

import pytest

from tasktracker.exceptions import (
    ConflictException,
    InvalidArgumentException,
    NotFoundException,
    ValidationException,
)
from tasktracker.models import Task, TaskStatus
from tasktracker.schemas import ProjectCreate, TaskUpdate
from tasktracker.services import projects as project_service
from tasktracker.services import task_tree
from tasktracker.services import tasks as task_service
from tasktracker.services.task_tree import TaskIndex, aggregate_status


def _chain_is_acyclic(db_session, task_id):
    seen = set()
    current = db_session.get(Task, task_id)
    while current is not None:
        if current.id in seen:
            return False
        seen.add(current.id)
        current = db_session.get(Task, current.parent_task_id) if current.parent_task_id else None
    return True


class TestAggregateStatus:
    def test_all_done(self):
        assert aggregate_status([TaskStatus.DONE, TaskStatus.DONE]) == TaskStatus.DONE

    def test_some_progress(self):
        assert aggregate_status([TaskStatus.DONE, TaskStatus.TODO]) == TaskStatus.IN_PROGRESS
        assert aggregate_status([TaskStatus.IN_PROGRESS, TaskStatus.TODO]) == TaskStatus.IN_PROGRESS

    def test_nothing_started(self):
        assert aggregate_status([TaskStatus.TODO, TaskStatus.TODO]) == TaskStatus.TODO

    def test_no_children(self):
        assert aggregate_status([]) is None


class TestCreate:
    def test_sub_task_links_to_parent(self, make_task):
        parent = make_task("Parent")
        child = make_task("Child", parent=parent)

        assert child.parent_task_id == parent.id
        assert child.project_id == parent.project_id

    def test_order_defaults_to_end_of_siblings(self, make_task):
        first = make_task("First")
        second = make_task("Second")
        child = make_task("Child", parent=first)
        explicit = make_task("Explicit", order=10)

        assert (first.order, second.order) == (0, 1)
        assert child.order == 0
        assert explicit.order == 10

    def test_missing_parent_is_rejected(self, db_session, project):
        with pytest.raises(ValidationException):
            task_tree.create_task(db_session, project.id, {"name": "Orphan"}, parent_id=999)
        assert db_session.query(Task).count() == 0

    def test_parent_in_other_project_is_rejected(self, db_session, project, owner, make_task):
        parent = make_task("Parent")
        other, _ = project_service.create_project(db_session, ProjectCreate(name="Other"), owner.id)

        with pytest.raises(ValidationException):
            task_tree.create_task(db_session, other.id, {"name": "Stray"}, parent_id=parent.id)
        assert db_session.query(Task).filter(Task.project_id == other.id).count() == 0

    def test_new_child_reopens_done_parent(self, db_session, make_task):
        parent = make_task("Parent")
        make_task("Finished", parent=parent, status="Done")
        db_session.refresh(parent)
        assert parent.status == TaskStatus.DONE

        make_task("Fresh", parent=parent)
        db_session.refresh(parent)
        assert parent.status == TaskStatus.IN_PROGRESS


class TestReparent:
    def test_move_under_descendant_is_a_conflict(self, db_session, project, editor, make_task):
        a = make_task("A")
        b = make_task("B", parent=a)
        c = make_task("C", parent=b)

        with pytest.raises(ConflictException):
            task_service.update_task(db_session, project.id, a.id, editor.id, TaskUpdate(parent_task_id=c.id))

        db_session.refresh(a)
        assert a.parent_task_id is None

    def test_self_parenting_is_rejected(self, db_session, make_task):
        a = make_task("A")

        with pytest.raises(InvalidArgumentException):
            task_tree.reparent(db_session, a, a.id)
        assert a.parent_task_id is None

    def test_missing_parent_is_rejected(self, db_session, make_task):
        a = make_task("A")

        with pytest.raises(ValidationException):
            task_tree.reparent(db_session, a, 999)

    def test_cross_project_parent_is_a_conflict(self, db_session, owner, make_task):
        a = make_task("A")
        other, _ = project_service.create_project(db_session, ProjectCreate(name="Other"), owner.id)
        foreign = task_tree.create_task(db_session, other.id, {"name": "Foreign"})
        db_session.commit()

        with pytest.raises(ConflictException):
            task_tree.reparent(db_session, a, foreign.id)
        assert a.parent_task_id is None

    def test_promote_to_root(self, db_session, make_task):
        a = make_task("A")
        b = make_task("B", parent=a)

        task_tree.reparent(db_session, b, None)
        db_session.commit()

        assert b.parent_task_id is None
        assert b.order == 1

    def test_rolls_up_old_and_new_parent(self, db_session, make_task):
        old_parent = make_task("Old")
        new_parent = make_task("New")
        make_task("Pending", parent=old_parent)
        moving = make_task("Moving", parent=old_parent, status="Done")
        make_task("Waiting", parent=new_parent)
        db_session.refresh(old_parent)
        assert old_parent.status == TaskStatus.IN_PROGRESS

        task_tree.reparent(db_session, moving, new_parent.id)
        db_session.commit()

        db_session.refresh(old_parent)
        db_session.refresh(new_parent)
        assert old_parent.status == TaskStatus.TODO
        assert new_parent.status == TaskStatus.IN_PROGRESS

    def test_random_moves_keep_the_tree_acyclic(self, db_session, make_task):
        tasks = [make_task(f"T{i}") for i in range(8)]
        rng = random.Random(7)

        for _ in range(60):
            task = rng.choice(tasks)
            target = rng.choice(tasks + [None])
            try:
                task_tree.reparent(db_session, task, target.id if target is not None else None)
                db_session.commit()
            except (ConflictException, InvalidArgumentException):
                db_session.rollback()

            for item in tasks:
                assert _chain_is_acyclic(db_session, item.id)


class TestDelete:
    def test_removes_whole_subtree(self, db_session, project, editor, make_task):
        a = make_task("A")
        b = make_task("B", parent=a)
        c = make_task("C", parent=b)
        sibling = make_task("Sibling")
        a_id, b_id, c_id = a.id, b.id, c.id

        removed = task_service.delete_task(db_session, project.id, a_id, editor.id)

        assert set(removed) == {a_id, b_id, c_id}
        remaining = db_session.query(Task).all()
        assert [task.id for task in remaining] == [sibling.id]
        assert all(task.parent_task_id not in removed for task in remaining)

        with pytest.raises(NotFoundException):
            task_service.get_task(db_session, project.id, b_id, editor.id)

    def test_missing_task_is_not_found(self, db_session):
        with pytest.raises(NotFoundException):
            task_tree.delete_task(db_session, 12345)

    def test_rolls_up_surviving_parent(self, db_session, make_task):
        parent = make_task("Parent")
        make_task("Done", parent=parent, status="Done")
        todo = make_task("Todo", parent=parent)
        db_session.refresh(parent)
        assert parent.status == TaskStatus.IN_PROGRESS

        task_tree.delete_task(db_session, todo.id)
        db_session.commit()

        db_session.refresh(parent)
        assert parent.status == TaskStatus.DONE

    def test_deep_hierarchy(self, db_session, project):
        depth = 1500
        previous = None
        for level in range(depth):
            task = Task(
                name=f"L{level}",
                project_id=project.id,
                parent_task_id=previous.id if previous else None,
            )
            db_session.add(task)
            db_session.flush()
            previous = task
        db_session.commit()
        root_id = db_session.query(Task.id).filter(Task.parent_task_id.is_(None)).scalar()

        removed = task_tree.delete_task(db_session, root_id)
        db_session.commit()

        assert len(removed) == depth
        assert db_session.query(Task).count() == 0


class TestRollUp:
    def test_scenario_from_nested_status_changes(self, db_session, project, editor, make_task):
        a = make_task("A")
        b = make_task("B", parent=a)
        c = make_task("C", parent=b)

        task_service.update_task(db_session, project.id, b.id, editor.id, TaskUpdate(status="Done"))
        db_session.refresh(a)
        assert a.status == TaskStatus.IN_PROGRESS

        task_service.update_task(db_session, project.id, c.id, editor.id, TaskUpdate(status="Done"))
        db_session.refresh(a)
        db_session.refresh(b)
        assert b.status == TaskStatus.DONE
        assert a.status == TaskStatus.DONE

    def test_every_parent_matches_its_children(self, db_session, project, editor, make_task):
        root = make_task("Root")
        left = make_task("Left", parent=root)
        right = make_task("Right", parent=root)
        leaves = [make_task(f"Leaf{i}", parent=left if i % 2 else right) for i in range(4)]
        rng = random.Random(3)
        statuses = list(TaskStatus)

        for _ in range(20):
            leaf = rng.choice(leaves)
            task_service.update_task(
                db_session, project.id, leaf.id, editor.id, TaskUpdate(status=rng.choice(statuses))
            )
            index = TaskIndex.load(db_session, project.id)
            for parent in (root, left, right):
                children = [child.status for child in index.children_of(parent.id)]
                assert index.by_id[parent.id].status == aggregate_status(children)

    def test_leaf_status_is_left_alone(self, db_session, make_task):
        leaf = make_task("Leaf", status="In Progress")

        assert task_tree.roll_up_status(db_session, leaf.id) == []
        assert leaf.status == TaskStatus.IN_PROGRESS


class TestIndex:
    def test_ancestors_and_descendants(self, db_session, project, make_task):
        a = make_task("A")
        b = make_task("B", parent=a)
        c = make_task("C", parent=b)
        d = make_task("D", parent=a)

        index = TaskIndex.load(db_session, project.id)

        assert index.ancestor_ids(c.id) == [b.id, a.id]
        assert set(index.descendant_ids(a.id)) == {b.id, c.id, d.id}
        assert index.descendant_ids(c.id) == []

    def test_build_nests_sub_tasks_in_order(self, db_session, project, make_task):
        a = make_task("A")
        second = make_task("Second", parent=a, order=5)
        first = make_task("First", parent=a, order=1)

        nodes = TaskIndex.load(db_session, project.id).build([a])

        assert [node.task.id for node in nodes[0].sub_tasks] == [first.id, second.id]
