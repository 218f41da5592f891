"""Main Textual application for TaskTree.

This module contains the TaskTree application:
- Search box for filtering the list
- Nested task tree (a task with several parents appears under each)
- Confirmation dialogs for completion propagation and deletion

Every change goes through the TaskStore; the app only renders the store's
view and turns its results into dialogs and notifications.
"""

from typing import List, Optional
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import Footer, Input, Static

from tasktree.config import Config
from tasktree.database import DatabaseManager, get_database_manager
from tasktree.logging_config import get_logger
from tasktree.models import Task, TaskFilter
from tasktree.services.completion import CompletionCursor
from tasktree.services.hierarchy import effective_roots, get_parents
from tasktree.services.task_service import TaskServiceError
from tasktree.services.task_store import TaskStore
from tasktree.ui.components.confirm_modals import CompletionConfirmModal, DeleteConfirmModal
from tasktree.ui.components.task_modal import (
    MODE_CREATE,
    MODE_CREATE_CHILD,
    MODE_EDIT,
    TaskCreationModal,
)
from tasktree.ui.components.task_tree import TaskTreeView
from tasktree.ui.constants import (
    MAX_TITLE_LENGTH_IN_NOTIFICATION,
    NOTIFICATION_TIMEOUT_LONG,
    NOTIFICATION_TIMEOUT_MEDIUM,
    NOTIFICATION_TIMEOUT_SHORT,
    SCREEN_STACK_SIZE_MAIN_APP,
)
from tasktree.ui.keybindings import (
    get_all_bindings,
    get_next_completed_filter,
    get_next_priority_filter,
    get_next_sort_field,
    get_reversed_direction,
)
from tasktree.ui.theme import BACKGROUND, BORDER, COMMENT, FOREGROUND, SELECTION

logger = get_logger(__name__)

# Errors a store operation can surface to the UI
STORE_ERRORS = (TaskServiceError, SQLAlchemyError, ValidationError)


def build_initial_filter(display_config: dict) -> TaskFilter:
    """Build the startup view filter from the display configuration.

    Invalid sort settings fall back to the defaults with a warning.

    Args:
        display_config: Result of Config.get_display_config()

    Returns:
        TaskFilter for the first render
    """
    try:
        return TaskFilter(
            sort_by=display_config["sort_by"],
            sort_direction=display_config["sort_direction"],
            show_completed=display_config["show_completed"],
        )
    except ValidationError:
        logger.warning(f"Invalid display config {display_config}, using default sort")
        return TaskFilter(show_completed=display_config.get("show_completed", True))


class TaskTreeApp(App):
    """TaskTree application: one nested tree of tasks."""

    CSS = f"""
    Screen {{
        background: {BACKGROUND};
        layout: vertical;
    }}

    #main-container {{
        width: 100%;
        height: 1fr;
        background: {BACKGROUND};
    }}

    #search-input {{
        width: 100%;
        border: round {BORDER};
        color: {FOREGROUND};
    }}

    #status-bar {{
        width: 100%;
        height: 1;
        color: {COMMENT};
        padding: 0 1;
    }}

    #task-tree {{
        width: 100%;
        height: 1fr;
    }}

    Footer {{
        background: {SELECTION};
    }}
    """

    BINDINGS = get_all_bindings()

    # ==============================================================================
    # LIFECYCLE METHODS
    # ==============================================================================

    def __init__(self, database_url: Optional[str] = None, **kwargs) -> None:
        """Initialize the TaskTree application.

        Args:
            database_url: Overrides the configured database URL
            **kwargs: Additional keyword arguments for App
        """
        super().__init__(**kwargs)
        self.title = "TaskTree"
        self.sub_title = "Nested tasks with shared parents"
        self._database_url = database_url
        self._db_manager: Optional[DatabaseManager] = None
        self.store: Optional[TaskStore] = None
        self.completion_cursor: CompletionCursor = CompletionCursor.empty()
        self.move_source_id: Optional[UUID] = None

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        with Container(id="main-container"):
            yield Input(placeholder="Search tasks... (/)", id="search-input")
            yield Static("", id="status-bar")
            yield TaskTreeView(id="task-tree")
        yield Footer()

    async def on_mount(self) -> None:
        """Open the database, load tasks and render the tree."""
        logger.info("TaskTree application mounted, initializing...")

        config = Config()
        database_url = self._database_url or config.get_database_config()["url"]
        self._db_manager = get_database_manager(database_url)
        await self._db_manager.initialize()
        logger.info("Database initialized")

        self.store = TaskStore(
            self._db_manager,
            task_filter=build_initial_filter(config.get_display_config()),
        )
        try:
            await self.store.initialize()
        except STORE_ERRORS:
            self._notify_store_error()

        self.refresh_tree()
        self.query_one(TaskTreeView).focus()
        logger.info("TaskTree application ready")

    async def on_unmount(self) -> None:
        """Called when app is shutting down."""
        logger.info("TaskTree application shutting down")

    # ==============================================================================
    # RENDERING
    # ==============================================================================

    def refresh_tree(self) -> None:
        """Re-render the tree and the status line from the store."""
        if self.store is None:
            return

        visible = self.store.visible_tasks()
        tree = self.query_one(TaskTreeView)
        tree.marked_task_id = self.move_source_id
        tree.render_tasks(
            effective_roots(visible),
            lambda task_id: self.store.children_of(task_id, visible),
            self.store.tasks,
        )
        self._update_status(len(visible))

    def _update_status(self, visible_count: int) -> None:
        task_filter = self.store.filter
        parts = [
            f"{visible_count}/{len(self.store.tasks)} tasks",
            f"sort: {task_filter.sort_by.value} {task_filter.sort_direction.value}",
        ]
        if task_filter.priority is not None:
            parts.append(f"priority: {task_filter.priority.value}")
        if task_filter.completed is not None:
            parts.append("status: done" if task_filter.completed else "status: open")
        if not task_filter.show_completed:
            parts.append("completed hidden")
        if self.move_source_id is not None:
            parts.append("moving: press m on the new parent, Esc to cancel")
        self.query_one("#status-bar", Static).update(" | ".join(parts))

    def _selected_task(self) -> Optional[Task]:
        if self.store is None:
            return None
        task_id = self.query_one(TaskTreeView).selected_task_id
        return self.store.get_task(task_id) if task_id else None

    # ==============================================================================
    # TASK OPERATIONS
    # ==============================================================================

    async def create_task(
        self,
        title: str,
        parent: Optional[Task] = None,
        **fields,
    ) -> Optional[Task]:
        """Create a task, as a subtask of ``parent`` when given.

        Returns:
            The created task, or None when the store rejected it
        """
        parent_ids = [parent.id] if parent else []
        try:
            task = await self.store.add_task(title, parent_ids=parent_ids, **fields)
        except STORE_ERRORS:
            self._notify_store_error()
            return None

        self._notify_task_success("created", task.title)
        self.refresh_tree()
        return task

    async def toggle_task(self, task_id: UUID) -> CompletionCursor:
        """Toggle completion and start asking about completable parents.

        Args:
            task_id: Task to toggle

        Returns:
            The cursor over the confirmation chains
        """
        try:
            cursor = await self.store.toggle_completion(task_id)
        except STORE_ERRORS:
            self._notify_store_error()
            return CompletionCursor.empty()

        self.completion_cursor = cursor
        self.refresh_tree()
        self._ask_next_completion()
        return cursor

    def _ask_next_completion(self) -> None:
        """Show the dialog for the cursor's current step, if any."""
        task = self.completion_cursor.current
        if task is None:
            return
        remaining = len(self.completion_cursor.remaining) - 1
        self.push_screen(CompletionConfirmModal(task, remaining=remaining))

    async def confirm_completion_step(self) -> None:
        """Complete the current chain step and move on."""
        try:
            self.completion_cursor = await self.store.confirm_completion(self.completion_cursor)
        except STORE_ERRORS:
            # Steps already confirmed stay committed
            self.completion_cursor = self.completion_cursor.cancel()
            self._notify_store_error()
        self.refresh_tree()
        self._ask_next_completion()

    def decline_completion_step(self) -> None:
        """Skip the rest of the current chain and move on."""
        self.completion_cursor = self.store.decline_completion(self.completion_cursor)
        self._ask_next_completion()

    def cancel_completion(self) -> None:
        """Stop asking about the remaining steps."""
        self.completion_cursor = self.completion_cursor.cancel()

    async def request_delete(self, task_id: UUID) -> None:
        """Delete a task, asking first when unfinished subtasks would go with it."""
        task = self.store.get_task(task_id)
        if task is None:
            return

        preview = self.store.preview_deletion(task_id)
        if preview.has_incomplete_descendants:
            self.push_screen(DeleteConfirmModal(task, preview))
            return
        await self.delete_task(task_id)

    async def delete_task(self, task_id: UUID) -> None:
        """Delete a task and its deletion closure without asking."""
        task = self.store.get_task(task_id)
        try:
            deleted = await self.store.delete_task(task_id)
        except STORE_ERRORS:
            self._notify_store_error()
            self.refresh_tree()
            return

        if task is not None and deleted:
            extra = f" (+{len(deleted) - 1} subtasks)" if len(deleted) > 1 else ""
            self._notify_task_success("deleted", task.title + extra)
        if self.move_source_id in deleted:
            self.move_source_id = None
        self.refresh_tree()

    async def move_task(self, moved_id: UUID, target_id: UUID) -> bool:
        """Drop ``moved_id`` onto ``target_id``.

        Returns:
            True when the drop was accepted
        """
        try:
            result = await self.store.move_task(moved_id, target_id)
        except STORE_ERRORS:
            self._notify_store_error()
            return False
        finally:
            self.move_source_id = None

        if not result.accepted:
            self.notify(result.reason or "Move rejected", severity="warning", timeout=NOTIFICATION_TIMEOUT_MEDIUM)
        self.refresh_tree()
        return result.accepted

    async def edit_task(
        self,
        task_id: UUID,
        parent_ids: Optional[List[UUID]] = None,
        **changes,
    ) -> bool:
        """Apply edits from the task dialog.

        Field changes are saved first; a new parent list is then validated
        separately and may be rejected on its own.

        Returns:
            True when every part of the edit was applied
        """
        try:
            if changes:
                await self.store.update_task(task_id, **changes)
            applied = True
            if parent_ids is not None:
                result = await self.store.set_parents(task_id, parent_ids)
                if not result.accepted:
                    self.notify(result.reason or "Parents rejected", severity="warning", timeout=NOTIFICATION_TIMEOUT_MEDIUM)
                    applied = False
        except STORE_ERRORS:
            self._notify_store_error()
            applied = False

        self.refresh_tree()
        return applied

    # ==============================================================================
    # EVENT HANDLERS
    # ==============================================================================

    async def on_completion_confirm_modal_confirmed(self, message: CompletionConfirmModal.Confirmed) -> None:
        """Handle a confirmed completion step."""
        await self.confirm_completion_step()

    def on_completion_confirm_modal_declined(self, message: CompletionConfirmModal.Declined) -> None:
        """Handle a declined completion step."""
        self.decline_completion_step()

    def on_completion_confirm_modal_cancelled(self, message: CompletionConfirmModal.Cancelled) -> None:
        """Handle the completion dialog being closed."""
        self.cancel_completion()

    async def on_delete_confirm_modal_delete_confirmed(self, message: DeleteConfirmModal.DeleteConfirmed) -> None:
        """Handle a confirmed deletion."""
        await self.delete_task(message.task.id)

    def on_delete_confirm_modal_delete_cancelled(self, message: DeleteConfirmModal.DeleteCancelled) -> None:
        """Handle a cancelled deletion."""
        logger.debug("Deletion cancelled")

    async def on_task_creation_modal_task_saved(self, message: TaskCreationModal.TaskSaved) -> None:
        """Handle TaskSaved from the task dialog."""
        fields = {
            "description": message.description,
            "priority": message.priority,
            "end_date": message.end_date,
            "tags": message.tags,
        }
        if message.mode == MODE_EDIT and message.edit_task is not None:
            await self.edit_task(
                message.edit_task.id,
                parent_ids=message.parent_ids,
                title=message.title,
                **fields,
            )
        elif message.mode == MODE_CREATE_CHILD:
            await self.create_task(message.title, parent=message.parent_task, **fields)
        else:
            await self.create_task(message.title, **fields)

    def on_task_creation_modal_task_cancelled(self, message: TaskCreationModal.TaskCancelled) -> None:
        """Handle TaskCancelled from the task dialog."""
        pass

    def on_input_changed(self, event: Input.Changed) -> None:
        """Apply the search term as it is typed."""
        if event.input.id != "search-input" or self.store is None:
            return
        self.store.set_filter(search_term=event.value)
        self.refresh_tree()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in the search box returns focus to the tree."""
        if event.input.id == "search-input":
            self.query_one(TaskTreeView).focus()

    # ==============================================================================
    # ACTION HANDLERS
    # ==============================================================================

    def action_new_task(self) -> None:
        """Create a new top-level task (N key)."""
        self.push_screen(TaskCreationModal(mode=MODE_CREATE))

    def action_new_child_task(self) -> None:
        """Create a subtask of the selected task (C key)."""
        selected = self._selected_task()
        if selected is None:
            return
        self.push_screen(TaskCreationModal(mode=MODE_CREATE_CHILD, parent_task=selected))

    def action_edit_task(self) -> None:
        """Edit the selected task (E key)."""
        selected = self._selected_task()
        if selected is None:
            return
        choices = get_parents(selected.id, self.store.tasks) + self.store.parent_candidates(selected.id)
        self.push_screen(TaskCreationModal(mode=MODE_EDIT, edit_task=selected, parent_choices=choices))

    async def action_toggle_completion(self) -> None:
        """Toggle the selected task (Space key)."""
        selected = self._selected_task()
        if selected is None:
            logger.debug("No task selected for completion toggle")
            return
        await self.toggle_task(selected.id)

    async def action_delete_task(self) -> None:
        """Delete the selected task (X/Delete key)."""
        selected = self._selected_task()
        if selected is None:
            logger.debug("No task selected for delete")
            return
        await self.request_delete(selected.id)

    async def action_move_task(self) -> None:
        """Mark the selected task for moving, or drop the marked task on it (M key)."""
        selected = self._selected_task()
        if selected is None:
            return

        if self.move_source_id is None:
            self.move_source_id = selected.id
            self.refresh_tree()
            return

        if self.move_source_id == selected.id:
            self.move_source_id = None
            self.refresh_tree()
            return

        await self.move_task(self.move_source_id, selected.id)

    def action_focus_search(self) -> None:
        """Focus the search box (/ key)."""
        self.query_one("#search-input", Input).focus()

    def action_cycle_sort(self) -> None:
        """Switch to the next sort key (S key)."""
        self.store.set_filter(sort_by=get_next_sort_field(self.store.filter.sort_by))
        self.refresh_tree()

    def action_reverse_sort(self) -> None:
        """Reverse the sort direction (R key)."""
        self.store.set_filter(sort_direction=get_reversed_direction(self.store.filter.sort_direction))
        self.refresh_tree()

    def action_toggle_show_completed(self) -> None:
        """Show or hide completed tasks (H key)."""
        self.store.set_filter(show_completed=not self.store.filter.show_completed)
        self.refresh_tree()

    def action_cycle_priority_filter(self) -> None:
        """Show only one priority, cycling high, medium, low, all (P key)."""
        self.store.set_filter(priority=get_next_priority_filter(self.store.filter.priority))
        self.refresh_tree()

    def action_cycle_completed_filter(self) -> None:
        """Show only open, only done, or all tasks (F key)."""
        self.store.set_filter(completed=get_next_completed_filter(self.store.filter.completed))
        self.refresh_tree()

    def action_cancel(self) -> None:
        """Cancel a pending move or leave the search box (Escape)."""
        if len(self.screen_stack) != SCREEN_STACK_SIZE_MAIN_APP:
            return
        if self.move_source_id is not None:
            self.move_source_id = None
            self.refresh_tree()
        self.query_one(TaskTreeView).focus()

    # ==============================================================================
    # PRIVATE HELPERS
    # ==============================================================================

    def _notify_task_success(self, action: str, title: str) -> None:
        """Show success notification for a task operation."""
        truncated = title[:MAX_TITLE_LENGTH_IN_NOTIFICATION]
        self.notify(f"Task {action}: {truncated}", severity="information", timeout=NOTIFICATION_TIMEOUT_SHORT)

    def _notify_store_error(self) -> None:
        """Show the store's last error."""
        message = (self.store.error if self.store else None) or "Operation failed"
        logger.error(f"UI operation failed: {message}")
        self.notify(message, severity="error", timeout=NOTIFICATION_TIMEOUT_LONG)
