"""
Task service for the TaskTree application.

The persistence collaborator: a plain CRUD record store over the ``tasks``
table. It knows nothing about the hierarchy rules; cascades and validation
are decided by the hierarchy engine and applied by the task store.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tasktree.database import TaskORM
from tasktree.logging_config import get_logger
from tasktree.models import Priority, Task
from tasktree.utils.datetime_utils import utcnow

logger = get_logger(__name__)

# Fields update_task() accepts; id and timestamps are managed here
UPDATABLE_FIELDS = frozenset({
    "title",
    "description",
    "completed",
    "priority",
    "start_date",
    "end_date",
    "tags",
    "parent_ids",
})


class TaskServiceError(Exception):
    """Base exception for task service errors."""
    pass


class TaskNotFoundError(TaskServiceError):
    """Raised when a task is not found."""
    pass


class PersistenceError(TaskServiceError):
    """Raised when the database rejects or fails an operation."""
    pass


class TaskService:
    """
    Service layer for task persistence.

    Handles create, update, delete and listing of task records. Ids and
    timestamps are assigned here, the way a hosted record store would.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize task service with database session.

        Args:
            session: Active async database session
        """
        self.session = session

    # ==============================================================================
    # CONVERSION HELPERS
    # ==============================================================================

    @staticmethod
    def _orm_to_pydantic(task_orm: TaskORM) -> Task:
        """
        Convert TaskORM to Pydantic Task model.

        Args:
            task_orm: SQLAlchemy ORM task instance

        Returns:
            Pydantic Task instance
        """
        return Task.model_validate(
            {
                "id": UUID(task_orm.id),
                "title": task_orm.title,
                "description": task_orm.description,
                "completed": task_orm.completed,
                "priority": task_orm.priority,
                "start_date": task_orm.start_date,
                "end_date": task_orm.end_date,
                "tags": list(task_orm.tags or []),
                "parent_ids": [UUID(parent_id) for parent_id in (task_orm.parent_ids or [])],
                "created_at": task_orm.created_at,
                "updated_at": task_orm.updated_at,
            }
        )

    @staticmethod
    def _column_value(field: str, value: Any) -> Any:
        """Convert a model-level value to what the ORM column stores."""
        if field == "parent_ids":
            return [str(parent_id) for parent_id in dict.fromkeys(value or [])]
        if field == "tags":
            return list(value or [])
        if field == "priority" and isinstance(value, Priority):
            return value.value
        return value

    async def _get_task_or_raise(self, task_id: UUID) -> TaskORM:
        """
        Get a task by ID or raise an exception.

        Args:
            task_id: UUID of the task

        Returns:
            TaskORM instance

        Raises:
            TaskNotFoundError: If task does not exist
        """
        result = await self.session.execute(
            select(TaskORM).where(TaskORM.id == str(task_id))
        )
        task_orm = result.scalar_one_or_none()
        if not task_orm:
            raise TaskNotFoundError(f"Task with id {task_id} not found")
        return task_orm

    # ==============================================================================
    # CREATE OPERATIONS
    # ==============================================================================

    async def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        completed: bool = False,
        priority: Optional[Priority] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        tags: Optional[List[str]] = None,
        parent_ids: Optional[List[UUID]] = None,
    ) -> Task:
        """
        Create a new task.

        Args:
            title: Task title (required, non-empty)
            description: Optional description
            completed: Initial completion state
            priority: Optional priority
            start_date: Optional start date
            end_date: Optional due date
            tags: Optional tags
            parent_ids: Optional parent ids (for example the task "add child" was used on)

        Returns:
            Created Task instance with id and timestamps assigned

        Raises:
            pydantic.ValidationError: If the task data is invalid
            PersistenceError: If the database write fails
        """
        now = utcnow()
        # Validate through the model before touching the database
        task = Task(
            id=uuid4(),
            title=title,
            description=description,
            completed=completed,
            priority=priority,
            start_date=start_date,
            end_date=end_date,
            tags=tags or [],
            parent_ids=parent_ids or [],
            created_at=now,
            updated_at=now,
        )

        task_orm = TaskORM(
            id=str(task.id),
            title=task.title,
            description=task.description,
            completed=task.completed,
            priority=self._column_value("priority", task.priority),
            start_date=task.start_date,
            end_date=task.end_date,
            tags=self._column_value("tags", task.tags),
            parent_ids=self._column_value("parent_ids", task.parent_ids),
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

        try:
            self.session.add(task_orm)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to create task '{title}': {e}", exc_info=True)
            raise PersistenceError(f"Failed to create task '{title}'") from e

        logger.info(
            f"Created task: id={task.id}, title='{task.title}', "
            f"parents={len(task.parent_ids)}"
        )
        return task

    # ==============================================================================
    # READ OPERATIONS
    # ==============================================================================

    async def list_tasks(self) -> List[Task]:
        """
        Get every task, newest first.

        Returns:
            List of Task instances ordered by creation time descending

        Raises:
            PersistenceError: If the query fails
        """
        try:
            result = await self.session.execute(
                select(TaskORM).order_by(TaskORM.created_at.desc())
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to list tasks: {e}", exc_info=True)
            raise PersistenceError("Failed to list tasks") from e

        tasks = [self._orm_to_pydantic(task_orm) for task_orm in result.scalars().all()]
        logger.debug(f"Loaded {len(tasks)} task(s)")
        return tasks

    async def get_task_by_id(self, task_id: UUID) -> Optional[Task]:
        """
        Get a task by its ID.

        Args:
            task_id: UUID of the task

        Returns:
            Task instance or None if not found
        """
        result = await self.session.execute(
            select(TaskORM).where(TaskORM.id == str(task_id))
        )
        task_orm = result.scalar_one_or_none()
        if not task_orm:
            return None
        return self._orm_to_pydantic(task_orm)

    # ==============================================================================
    # UPDATE OPERATIONS
    # ==============================================================================

    async def update_task(self, task_id: UUID, **changes: Any) -> Task:
        """
        Apply a partial update to a task.

        Only fields in ``UPDATABLE_FIELDS`` are accepted. ``updated_at`` is
        refreshed on every call.

        Args:
            task_id: UUID of the task to update
            **changes: Field values to set

        Returns:
            Updated Task instance

        Raises:
            ValueError: If an unknown field is passed
            pydantic.ValidationError: If the resulting task is invalid
            TaskNotFoundError: If task does not exist
            PersistenceError: If the database write fails
        """
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        task_orm = await self._get_task_or_raise(task_id)

        # Validate the merged result before writing it
        merged = self._orm_to_pydantic(task_orm).model_dump()
        merged.update(changes)
        merged["updated_at"] = utcnow()
        task = Task.model_validate(merged)

        for field in changes:
            setattr(task_orm, field, self._column_value(field, getattr(task, field)))
        task_orm.updated_at = task.updated_at

        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to update task {task_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update task {task_id}") from e

        logger.info(f"Updated task: id={task_id}, fields={sorted(changes)}")
        return task

    # ==============================================================================
    # DELETE OPERATIONS
    # ==============================================================================

    async def delete_task(self, task_id: UUID) -> None:
        """
        Delete a single task record.

        No cascade happens here; children keep their (now dangling) parent
        reference unless the caller deletes them too.

        Args:
            task_id: UUID of the task to delete

        Raises:
            TaskNotFoundError: If task does not exist
            PersistenceError: If the database write fails
        """
        task_orm = await self._get_task_or_raise(task_id)
        try:
            await self.session.delete(task_orm)
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete task {task_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete task {task_id}") from e

        logger.info(f"Deleted task: id={task_id}, title='{task_orm.title}'")

    async def delete_tasks(self, task_ids: Iterable[UUID]) -> int:
        """
        Delete a set of task records in one statement.

        Ids without a matching record are ignored.

        Args:
            task_ids: UUIDs of the tasks to delete

        Returns:
            Number of records deleted

        Raises:
            PersistenceError: If the database write fails
        """
        ids = [str(task_id) for task_id in set(task_ids)]
        if not ids:
            return 0

        try:
            result = await self.session.execute(
                delete(TaskORM).where(TaskORM.id.in_(ids))
            )
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete {len(ids)} task(s): {e}", exc_info=True)
            raise PersistenceError(f"Failed to delete {len(ids)} task(s)") from e

        logger.info(f"Deleted {result.rowcount} task(s) in one batch")
        return result.rowcount
