"""
Client-side task store for TaskTree.

Owns the in-memory task collection and the view filter. UI actions call the
store; the store asks the hierarchy engine what to do and applies the result
through the task service, one database session per mutation. Multi-step
operations (completion chains) are best-effort: a failure stops the sequence,
but steps already committed stay committed.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Iterable, List, Optional, Sequence, Set
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from tasktree.database import DatabaseManager
from tasktree.logging_config import get_logger
from tasktree.models import Task, TaskFilter
from tasktree.services.completion import (
    CompletionCursor,
    children_all_complete,
    find_completion_chains,
)
from tasktree.services.deletion import (
    DeletionPreview,
    compute_deletion_closure,
    preview_deletion,
)
from tasktree.services.hierarchy import effective_roots
from tasktree.services.reparenting import (
    ReparentResult,
    available_parents,
    resolve_drop,
    validate_parent_ids,
)
from tasktree.services.task_filters import apply_filter
from tasktree.services.task_service import TaskService, TaskServiceError

logger = get_logger(__name__)


class TaskStore:
    """
    In-memory owner of the task collection.

    Attributes:
        tasks: Every loaded task, newest first
        filter: Active search/filter/sort state
        is_loading: True until the first successful load
        error: Message of the last failed operation, cleared on success
    """

    def __init__(
        self,
        db_manager: DatabaseManager,
        task_filter: Optional[TaskFilter] = None,
    ) -> None:
        """
        Initialize the store.

        Args:
            db_manager: Initialized database manager used for every mutation
            task_filter: Initial view filter (defaults to no filter, newest first)
        """
        self._db_manager = db_manager
        self.tasks: List[Task] = []
        self.filter = task_filter or TaskFilter()
        self.is_loading = True
        self.error: Optional[str] = None

    # ==============================================================================
    # HELPERS
    # ==============================================================================

    @asynccontextmanager
    async def _with_task_service(self, action: str) -> AsyncGenerator[TaskService, None]:
        """
        Open a session-scoped TaskService and record failures on the store.

        Args:
            action: Short description used in the error message

        Yields:
            TaskService bound to a fresh session
        """
        try:
            async with self._db_manager.get_session() as session:
                yield TaskService(session)
        except (TaskServiceError, SQLAlchemyError, ValidationError) as e:
            self.error = f"Failed to {action}: {e}"
            logger.error(self.error, exc_info=True)
            raise
        self.error = None

    def _replace(self, task: Task) -> None:
        """Swap the in-memory copy of ``task`` for the fresh one."""
        self.tasks = [task if existing.id == task.id else existing for existing in self.tasks]

    def get_task(self, task_id: UUID) -> Optional[Task]:
        """Get a loaded task by id."""
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    # ==============================================================================
    # LOADING
    # ==============================================================================

    async def initialize(self) -> List[Task]:
        """
        Load every task from the database.

        Returns:
            The loaded tasks, newest first
        """
        async with self._with_task_service("load tasks") as service:
            self.tasks = await service.list_tasks()
        self.is_loading = False
        logger.info(f"Task store initialized with {len(self.tasks)} task(s)")
        return self.tasks

    # ==============================================================================
    # CREATE / UPDATE
    # ==============================================================================

    async def add_task(self, title: str, **fields: Any) -> Task:
        """
        Create a task and add it to the front of the collection.

        Args:
            title: Task title
            **fields: Optional TaskService.create_task() arguments, including
                      ``parent_ids`` pre-populated from UI context

        Returns:
            The created task
        """
        async with self._with_task_service("add task") as service:
            task = await service.create_task(title, **fields)
        self.tasks = [task] + self.tasks
        return task

    async def update_task(self, task_id: UUID, **changes: Any) -> Task:
        """
        Update non-structural fields of a task.

        Parent changes must go through ``set_parents`` or ``move_task`` so they
        are checked for cycles.

        Args:
            task_id: Task to update
            **changes: Field values to set

        Returns:
            The updated task

        Raises:
            ValueError: If ``parent_ids`` is among the changes
        """
        if "parent_ids" in changes:
            raise ValueError("Use set_parents() or move_task() to change parents")

        async with self._with_task_service("update task") as service:
            task = await service.update_task(task_id, **changes)
        self._replace(task)
        return task

    async def _apply_parents(self, task_id: UUID, result: ReparentResult) -> ReparentResult:
        """Persist an accepted reparenting result."""
        if not result.accepted:
            return result
        current = self.get_task(task_id)
        if current is not None and current.parent_ids == result.parent_ids:
            return result

        async with self._with_task_service("change parents") as service:
            task = await service.update_task(task_id, parent_ids=result.parent_ids)
        self._replace(task)
        return result

    async def set_parents(self, task_id: UUID, parent_ids: Sequence[UUID]) -> ReparentResult:
        """
        Replace a task's parent list after checking it for cycles.

        Args:
            task_id: Task being edited
            parent_ids: The complete new parent list

        Returns:
            The validation result; nothing is written when it was rejected
        """
        result = validate_parent_ids(task_id, parent_ids, self.tasks)
        return await self._apply_parents(task_id, result)

    async def move_task(self, moved_id: UUID, target_id: UUID) -> ReparentResult:
        """
        Drop one task onto another in the list view.

        Args:
            moved_id: The dragged task
            target_id: The task it was dropped onto

        Returns:
            The drop result; nothing is written when it was rejected
        """
        result = resolve_drop(moved_id, target_id, self.tasks)
        return await self._apply_parents(moved_id, result)

    def parent_candidates(self, task_id: UUID) -> List[Task]:
        """Tasks the edit dialog may offer as new parents for ``task_id``."""
        return available_parents(task_id, self.tasks)

    # ==============================================================================
    # COMPLETION
    # ==============================================================================

    async def toggle_completion(self, task_id: UUID) -> CompletionCursor:
        """
        Flip a task's completion state.

        When the task becomes complete, the returned cursor holds the ancestor
        chains the user should be asked about. Reopening a task never
        propagates.

        Args:
            task_id: Task to toggle

        Returns:
            Cursor over the confirmation chains (finished when there are none)
        """
        task = self.get_task(task_id)
        if task is None:
            logger.debug(f"Toggle ignored, task {task_id} is not loaded")
            return CompletionCursor.empty()

        async with self._with_task_service("toggle task completion") as service:
            updated = await service.update_task(task_id, completed=not task.completed)
        self._replace(updated)

        if not updated.completed:
            return CompletionCursor.empty()

        chains = find_completion_chains(task_id, self.tasks)
        return self._skip_blocked(CompletionCursor(chains=chains))

    def _skip_blocked(self, cursor: CompletionCursor) -> CompletionCursor:
        """Advance past steps whose children are not all completed any more."""
        while cursor.current is not None and not children_all_complete(cursor.current.id, self.tasks):
            logger.info(
                f"Skipping completion of task {cursor.current.id} "
                f"('{cursor.current.title}'): a child is still open"
            )
            cursor = cursor.confirm()
        return cursor

    async def confirm_completion(self, cursor: CompletionCursor) -> CompletionCursor:
        """
        Complete the cursor's current task and advance.

        The step is re-checked against the loaded tasks first; when a child
        was left open by an earlier declined step, nothing is written.

        Args:
            cursor: Cursor returned by ``toggle_completion`` or a previous step

        Returns:
            The advanced cursor, positioned on the next step that can still
            be completed. On a persistence failure the error propagates and
            earlier confirmed steps remain committed.
        """
        task = cursor.current
        if task is None:
            return cursor

        current = self.get_task(task.id)
        if current is not None and not current.completed and children_all_complete(task.id, self.tasks):
            async with self._with_task_service("complete parent task") as service:
                updated = await service.update_task(task.id, completed=True)
            self._replace(updated)
            logger.info(f"Propagated completion to task {task.id} ('{task.title}')")

        return self._skip_blocked(cursor.confirm())

    def decline_completion(self, cursor: CompletionCursor) -> CompletionCursor:
        """Skip the rest of the cursor's current chain."""
        return self._skip_blocked(cursor.decline())

    # ==============================================================================
    # DELETION
    # ==============================================================================

    def preview_deletion(self, task_id: UUID) -> DeletionPreview:
        """Describe what deleting ``task_id`` would remove."""
        return preview_deletion(task_id, self.tasks)

    async def delete_task(self, task_id: UUID) -> Set[UUID]:
        """
        Delete a task together with its deletion closure.

        The closure is removed in a single call. Surviving tasks that listed a
        deleted task as a parent then have that reference removed, one update
        each.

        Args:
            task_id: Task to delete

        Returns:
            Ids that were deleted (empty when the task is not loaded)
        """
        closure = compute_deletion_closure(task_id, self.tasks)
        if not closure:
            logger.debug(f"Delete ignored, task {task_id} is not loaded")
            return set()

        async with self._with_task_service("delete task") as service:
            await service.delete_tasks(closure)
        self.tasks = [task for task in self.tasks if task.id not in closure]
        logger.info(f"Deleted task {task_id} with {len(closure) - 1} descendant(s)")

        await self._detach_deleted_parents(closure)
        return closure

    async def _detach_deleted_parents(self, deleted: Iterable[UUID]) -> None:
        """Drop references to deleted tasks from the survivors' parent lists."""
        deleted = set(deleted)
        for task in list(self.tasks):
            if not deleted.intersection(task.parent_ids):
                continue
            remaining = [parent_id for parent_id in task.parent_ids if parent_id not in deleted]
            async with self._with_task_service("detach deleted parent") as service:
                updated = await service.update_task(task.id, parent_ids=remaining)
            self._replace(updated)

    # ==============================================================================
    # VIEW STATE
    # ==============================================================================

    def set_filter(self, **changes: Any) -> TaskFilter:
        """
        Update the view filter.

        Args:
            **changes: TaskFilter fields to change

        Returns:
            The new filter
        """
        merged = self.filter.model_dump()
        merged.update(changes)
        self.filter = TaskFilter.model_validate(merged)
        logger.debug(f"Filter changed: {changes}")
        return self.filter

    def visible_tasks(self) -> List[Task]:
        """Tasks matching the filter (with their subtrees), in sort order."""
        return apply_filter(self.tasks, self.filter)

    def root_tasks(self) -> List[Task]:
        """Top-level tasks of the nested view."""
        return effective_roots(self.visible_tasks())

    def children_of(self, task_id: UUID, tasks: Optional[Sequence[Task]] = None) -> List[Task]:
        """
        Children of ``task_id`` within the visible tasks, in sort order.

        Args:
            task_id: Parent task id
            tasks: Precomputed visible tasks, to avoid refiltering per node
        """
        visible = self.visible_tasks() if tasks is None else tasks
        return [task for task in visible if task_id in task.parent_ids]
