"""
Tests for the TaskTree application class (tasktree/ui/app.py).

Tests cover:
- App initialization against an in-memory database
- Task creation through the modal, including due date and tags
- Priority and status filter keys
- The completion confirmation flow
- Deletion confirmation and reparenting from the app
"""

from datetime import datetime
from uuid import uuid4

import pytest
import pytest_asyncio
from textual.widgets import Input

import tasktree.database
from tasktree.ui.app import TaskTreeApp, build_initial_filter
from tasktree.ui.components.confirm_modals import CompletionConfirmModal, DeleteConfirmModal
from tasktree.ui.components.task_modal import MODE_EDIT, TaskCreationModal
from tasktree.ui.components.task_tree import TaskTreeView
from tasktree.models import Priority, SortDirection, SortField

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(autouse=True)
async def reset_database(monkeypatch):
    """Give every test a fresh global database manager."""
    for name in ("TASKTREE_DATABASE_URL", "TASKTREE_SORT_BY", "TASKTREE_SORT_DIRECTION", "TASKTREE_SHOW_COMPLETED"):
        monkeypatch.delenv(name, raising=False)
    tasktree.database._db_manager = None

    yield

    if tasktree.database._db_manager is not None:
        await tasktree.database._db_manager.close()
        tasktree.database._db_manager = None


class TestBuildInitialFilter:
    """Tests for build_initial_filter."""

    def test_valid_config(self):
        """Test display settings become the startup filter."""
        task_filter = build_initial_filter(
            {"sort_by": "priority", "sort_direction": "asc", "show_completed": False}
        )

        assert task_filter.sort_by == SortField.PRIORITY
        assert task_filter.sort_direction == SortDirection.ASC
        assert not task_filter.show_completed

    def test_invalid_sort_falls_back(self):
        """Test an unknown sort key falls back to the default order."""
        task_filter = build_initial_filter(
            {"sort_by": "colour", "sort_direction": "asc", "show_completed": True}
        )

        assert task_filter.sort_by == SortField.CREATED_AT


class TestAppInitialization:
    """Tests for app startup."""

    @pytest.mark.asyncio
    async def test_app_mounts_with_empty_store(self):
        """Test the app opens the database and renders an empty tree."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            assert app.store is not None
            assert app.store.tasks == []
            assert not app.store.is_loading
            assert app.query_one(TaskTreeView).selected_task_id is None


class TestAppTaskCreation:
    """Tests for creating tasks from the UI."""

    @pytest.mark.asyncio
    async def test_new_task_modal_creates_task(self):
        """Test N opens the modal and Enter saves the task."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            await pilot.press("n")
            await pilot.pause()
            assert isinstance(app.screen, TaskCreationModal)

            await pilot.press("M", "i", "l", "k")
            await pilot.press("enter")
            await pilot.pause()

            assert not isinstance(app.screen, TaskCreationModal)
            assert [t.title for t in app.store.tasks] == ["Milk"]

    @pytest.mark.asyncio
    async def test_escape_cancels_modal(self):
        """Test Escape closes the modal without creating anything."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            await pilot.press("n")
            await pilot.pause()
            await pilot.press("escape")
            await pilot.pause()

            assert not isinstance(app.screen, TaskCreationModal)
            assert app.store.tasks == []

    @pytest.mark.asyncio
    async def test_create_child_task(self):
        """Test a subtask gets its parent pre-populated."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            parent = await app.create_task("Parent")
            child = await app.create_task("Child", parent=parent)

            assert child.parent_ids == [parent.id]
            assert app.store.children_of(parent.id) == [child]

    @pytest.mark.asyncio
    async def test_due_date_and_tags_saved(self):
        """Test the due date and comma-separated tags reach the new task."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            await pilot.press("n")
            await pilot.pause()
            modal = app.screen
            modal.query_one("#title-input", Input).value = "Report"
            modal.query_one("#due-date-input", Input).value = "2025-03-01"
            modal.query_one("#tags-input", Input).value = "work, q1, work"
            modal.action_save()
            await pilot.pause()

            task = app.store.tasks[0]
            assert task.end_date == datetime(2025, 3, 1)
            assert task.tags == ["work", "q1"]

    @pytest.mark.asyncio
    async def test_invalid_due_date_keeps_modal_open(self):
        """Test a malformed due date shows an error and saves nothing."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()

            await pilot.press("n")
            await pilot.pause()
            modal = app.screen
            modal.query_one("#title-input", Input).value = "Report"
            modal.query_one("#due-date-input", Input).value = "next friday"
            modal.action_save()
            await pilot.pause()

            assert isinstance(app.screen, TaskCreationModal)
            assert modal.error == "Due date must be YYYY-MM-DD"
            assert app.store.tasks == []

    @pytest.mark.asyncio
    async def test_edit_keeps_parent_that_is_not_loaded(self):
        """Test saving an edit keeps a parent id that has no loaded task."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            missing_parent = uuid4()
            task = await app.store.add_task("Orphan", parent_ids=[missing_parent])

            app.push_screen(
                TaskCreationModal(
                    mode=MODE_EDIT,
                    edit_task=task,
                    parent_choices=app.store.parent_candidates(task.id),
                )
            )
            await pilot.pause()
            modal = app.screen
            modal.query_one("#title-input", Input).value = "Orphan, renamed"
            modal.action_save()
            await pilot.pause()

            edited = app.store.get_task(task.id)
            assert edited.title == "Orphan, renamed"
            assert edited.parent_ids == [missing_parent]


class TestAppCompletionFlow:
    """Tests for the completion confirmation dialogs."""

    @pytest.mark.asyncio
    async def test_confirm_completes_parent(self):
        """Test completing the only child asks about the parent and Y completes it."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            parent = await app.create_task("Parent")
            child = await app.create_task("Child", parent=parent)

            await app.toggle_task(child.id)
            await pilot.pause()
            assert isinstance(app.screen, CompletionConfirmModal)

            await pilot.press("y")
            await pilot.pause()

            assert app.store.get_task(parent.id).completed
            assert app.completion_cursor.finished
            assert not isinstance(app.screen, CompletionConfirmModal)

    @pytest.mark.asyncio
    async def test_decline_keeps_parent_open(self):
        """Test N leaves the parent incomplete."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            parent = await app.create_task("Parent")
            child = await app.create_task("Child", parent=parent)

            await app.toggle_task(child.id)
            await pilot.pause()
            await pilot.press("n")
            await pilot.pause()

            assert app.store.get_task(child.id).completed
            assert not app.store.get_task(parent.id).completed
            assert app.completion_cursor.finished

    @pytest.mark.asyncio
    async def test_no_dialog_without_eligible_parent(self):
        """Test completing a root task asks nothing."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            task = await app.create_task("Solo")

            cursor = await app.toggle_task(task.id)
            await pilot.pause()

            assert cursor.finished
            assert not isinstance(app.screen, CompletionConfirmModal)


class TestAppDeletionAndMoves:
    """Tests for deletion confirmation and reparenting."""

    @pytest.mark.asyncio
    async def test_delete_with_open_subtasks_asks_first(self):
        """Test deleting a task with open subtasks shows the warning dialog."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            parent = await app.create_task("Parent")
            await app.create_task("Open child", parent=parent)

            await app.request_delete(parent.id)
            await pilot.pause()
            assert isinstance(app.screen, DeleteConfirmModal)

            await pilot.press("y")
            await pilot.pause()

            assert app.store.tasks == []

    @pytest.mark.asyncio
    async def test_delete_without_open_subtasks_is_immediate(self):
        """Test a task without open subtasks is deleted directly."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            task = await app.create_task("Leaf")

            await app.request_delete(task.id)
            await pilot.pause()

            assert not isinstance(app.screen, DeleteConfirmModal)
            assert app.store.tasks == []

    @pytest.mark.asyncio
    async def test_move_onto_descendant_rejected(self):
        """Test the app refuses a move that would create a cycle."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            parent = await app.create_task("Parent")
            child = await app.create_task("Child", parent=parent)

            accepted = await app.move_task(parent.id, child.id)

            assert not accepted
            assert app.store.get_task(parent.id).parent_ids == []
            assert app.move_source_id is None


class TestAppFilterKeys:
    """Tests for the priority and status filter keys."""

    @pytest.mark.asyncio
    async def test_priority_filter_cycles(self):
        """Test P narrows to high, then medium, then low, then shows all."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            high = await app.create_task("Urgent", priority=Priority.HIGH)
            await app.create_task("Later", priority=Priority.LOW)
            app.query_one(TaskTreeView).focus()

            await pilot.press("p")
            await pilot.pause()
            assert app.store.filter.priority == Priority.HIGH
            assert app.store.visible_tasks() == [high]

            await pilot.press("p", "p", "p")
            await pilot.pause()
            assert app.store.filter.priority is None
            assert len(app.store.visible_tasks()) == 2

    @pytest.mark.asyncio
    async def test_status_filter_cycles(self):
        """Test F shows open tasks, then done tasks, then all."""
        app = TaskTreeApp(database_url=TEST_DB_URL)
        async with app.run_test() as pilot:
            await pilot.pause()
            done = await app.create_task("Done")
            open_task = await app.create_task("Open")
            await app.toggle_task(done.id)
            await pilot.pause()
            app.query_one(TaskTreeView).focus()

            await pilot.press("f")
            await pilot.pause()
            assert app.store.filter.completed is False
            assert app.store.visible_tasks() == [open_task]

            await pilot.press("f")
            await pilot.pause()
            assert [t.id for t in app.store.visible_tasks()] == [done.id]

            await pilot.press("f")
            await pilot.pause()
            assert app.store.filter.completed is None
