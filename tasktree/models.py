"""
Pydantic models for the TaskTree application.

Defines the task entity, its priority levels, and the view state used to
filter and sort the task collection.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from tasktree.utils.datetime_utils import to_naive_utc, utcnow


class Priority(str, Enum):
    """Task priority levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SortField(str, Enum):
    """Keys the task list can be ordered by."""

    CREATED_AT = "created_at"
    PRIORITY = "priority"
    DUE_DATE = "due_date"
    COMPLETED = "completed"


class SortDirection(str, Enum):
    """Sort direction for the task list."""

    ASC = "asc"
    DESC = "desc"


class Task(BaseModel):
    """
    Represents a single task in the multi-parent hierarchy.

    A task may list several parents in ``parent_ids``; together the tasks
    form a directed acyclic graph. The children of a task are never stored,
    they are derived by scanning the collection for tasks that list it as
    a parent. A task with no parents is a root.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique identifier for the task")
    title: str = Field(..., min_length=1, max_length=500, description="Task title")
    description: Optional[str] = Field(default=None, max_length=5000, description="Optional description")

    completed: bool = Field(default=False, description="Whether the task is completed")
    priority: Optional[Priority] = Field(default=None, description="Task priority, None sorts as medium")

    start_date: Optional[datetime] = Field(default=None, description="Optional start date")
    end_date: Optional[datetime] = Field(default=None, description="Optional due date")

    tags: List[str] = Field(default_factory=list, description="Ordered tags")
    parent_ids: List[UUID] = Field(default_factory=list, description="Parent task IDs (set semantics)")

    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174001",
                "title": "Write release notes",
                "description": "Cover the new hierarchy features",
                "completed": False,
                "priority": "high",
                "tags": ["docs"],
                "parent_ids": ["123e4567-e89b-12d3-a456-426614174000"],
                "created_at": "2025-01-14T10:00:00",
                "updated_at": "2025-01-14T10:00:00",
            }
        }
    )

    @field_validator("parent_ids")
    @classmethod
    def dedupe_parent_ids(cls, v: List[UUID]) -> List[UUID]:
        """
        Drop duplicate parent ids, keeping the first occurrence.

        Args:
            v: The parent id list to normalize

        Returns:
            The parent ids with duplicates removed
        """
        return list(dict.fromkeys(v))

    @field_validator("start_date", "end_date", "created_at", "updated_at")
    @classmethod
    def normalize_datetimes(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store every timestamp as naive UTC so they stay comparable."""
        return to_naive_utc(v)

    @field_validator("tags")
    @classmethod
    def strip_tags(cls, v: List[str]) -> List[str]:
        """Trim whitespace and drop empty tags."""
        return [tag.strip() for tag in v if tag and tag.strip()]

    @computed_field
    @property
    def is_root(self) -> bool:
        """True when the task has no parents at all."""
        return not self.parent_ids

    @property
    def effective_priority(self) -> Priority:
        """Priority used for ordering; absent priority counts as medium."""
        return self.priority or Priority.MEDIUM

    def has_parent(self, parent_id: UUID) -> bool:
        """Check whether ``parent_id`` is one of this task's parents."""
        return parent_id in self.parent_ids


class TaskFilter(BaseModel):
    """
    View state for the task list: search, filters and ordering.

    ``priority`` and ``completed`` are inactive when None.
    """

    search_term: str = Field(default="", description="Case-insensitive title/description search")
    priority: Optional[Priority] = Field(default=None, description="Only tasks with this priority")
    completed: Optional[bool] = Field(default=None, description="Only tasks with this completion state")
    show_completed: bool = Field(default=True, description="When False, completed tasks are hidden after filtering")
    sort_by: SortField = Field(default=SortField.CREATED_AT)
    sort_direction: SortDirection = Field(default=SortDirection.DESC)

    @property
    def is_active(self) -> bool:
        """True when any filter narrows the collection."""
        return (
            bool(self.search_term)
            or self.priority is not None
            or self.completed is not None
            or not self.show_completed
        )
