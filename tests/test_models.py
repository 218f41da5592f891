"""
Tests for the Pydantic models.

Covers validation of Task fields, parent id normalization and the TaskFilter
view state.
"""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from pydantic import ValidationError

from tasktree.models import Priority, SortDirection, SortField, Task, TaskFilter


class TestTask:
    """Tests for the Task model."""

    def test_defaults(self):
        """Test a task built from a title alone."""
        task = Task(title="Write docs")

        assert task.id is not None
        assert task.completed is False
        assert task.priority is None
        assert task.tags == []
        assert task.parent_ids == []
        assert task.is_root

    def test_empty_title_rejected(self):
        """Test that an empty title fails validation."""
        with pytest.raises(ValidationError):
            Task(title="")

    def test_title_too_long_rejected(self):
        """Test that titles longer than 500 characters fail validation."""
        with pytest.raises(ValidationError):
            Task(title="x" * 501)

    def test_parent_ids_deduplicated_in_order(self):
        """Test duplicate parent ids are dropped, first occurrence kept."""
        a, b = uuid4(), uuid4()
        task = Task(title="Child", parent_ids=[a, b, a, b])

        assert task.parent_ids == [a, b]
        assert not task.is_root
        assert task.has_parent(a)
        assert not task.has_parent(uuid4())

    def test_parent_ids_accept_strings(self):
        """Test parent ids given as strings are parsed to UUIDs."""
        parent = uuid4()
        task = Task(title="Child", parent_ids=[str(parent)])

        assert task.parent_ids == [parent]

    def test_tags_stripped(self):
        """Test tags are trimmed and blanks removed."""
        task = Task(title="Tagged", tags=[" work ", "", "  ", "home"])

        assert task.tags == ["work", "home"]

    def test_effective_priority_defaults_to_medium(self):
        """Test missing priority is treated as medium."""
        assert Task(title="t").effective_priority == Priority.MEDIUM
        assert Task(title="t", priority="high").effective_priority == Priority.HIGH

    def test_invalid_priority_rejected(self):
        """Test unknown priority values fail validation."""
        with pytest.raises(ValidationError):
            Task(title="t", priority="urgent")

    def test_is_root_in_dump(self):
        """Test the computed is_root field is serialized."""
        assert Task(title="t").model_dump()["is_root"] is True

    def test_aware_dates_normalized_to_naive_utc(self):
        """Test timezone-aware dates are stored as naive UTC."""
        task = Task(title="t", end_date=datetime(2025, 3, 1, 9, 30, tzinfo=timezone(timedelta(hours=2))))

        assert task.end_date == datetime(2025, 3, 1, 7, 30)
        assert task.end_date.tzinfo is None


class TestTaskFilter:
    """Tests for the TaskFilter view state."""

    def test_defaults_inactive(self):
        """Test the default filter narrows nothing and sorts newest first."""
        task_filter = TaskFilter()

        assert not task_filter.is_active
        assert task_filter.sort_by == SortField.CREATED_AT
        assert task_filter.sort_direction == SortDirection.DESC
        assert task_filter.show_completed is True

    @pytest.mark.parametrize(
        "changes",
        [
            {"search_term": "docs"},
            {"priority": Priority.LOW},
            {"completed": False},
            {"show_completed": False},
        ],
    )
    def test_active_when_narrowing(self, changes):
        """Test each narrowing field activates the filter."""
        assert TaskFilter(**changes).is_active

    def test_sort_only_is_not_active(self):
        """Test changing the order alone does not activate the filter."""
        task_filter = TaskFilter(sort_by="priority", sort_direction="asc")

        assert task_filter.sort_by == SortField.PRIORITY
        assert not task_filter.is_active
