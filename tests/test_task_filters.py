"""
Tests for searching, filtering and sorting the task list.
"""

from datetime import datetime, timezone

from tasktree.models import Priority, SortDirection, SortField, TaskFilter
from tasktree.services.task_filters import (
    apply_filter,
    filter_tasks,
    matches_filter,
    sort_tasks,
)


class TestMatchesFilter:
    """Tests for matches_filter."""

    def test_search_title_and_description(self, make_task):
        """Test the search term matches title or description, ignoring case."""
        by_title = make_task("Write REPORT")
        by_description = make_task("Misc", description="quarterly report draft")
        neither = make_task("Groceries")
        task_filter = TaskFilter(search_term="report")

        assert matches_filter(by_title, task_filter)
        assert matches_filter(by_description, task_filter)
        assert not matches_filter(neither, task_filter)

    def test_priority_and_completed(self, make_task):
        """Test priority and completion filters must both match."""
        task = make_task("Task", priority=Priority.HIGH, completed=True)

        assert matches_filter(task, TaskFilter(priority=Priority.HIGH, completed=True))
        assert not matches_filter(task, TaskFilter(priority=Priority.LOW))
        assert not matches_filter(task, TaskFilter(completed=False))

    def test_blank_search_matches_all(self, make_task):
        """Test a whitespace-only search term matches everything."""
        assert matches_filter(make_task("Anything"), TaskFilter(search_term="   "))


class TestFilterTasks:
    """Tests for filter_tasks."""

    def test_inactive_filter_keeps_all(self, chain_hierarchy):
        """Test an inactive filter returns the collection unchanged."""
        tasks = list(chain_hierarchy.values())

        assert filter_tasks(tasks, TaskFilter()) == tasks

    def test_match_brings_subtree(self, chain_hierarchy, make_task):
        """Test descendants of a match are kept even if they do not match."""
        h = chain_hierarchy
        other = make_task("Other")
        tasks = [h["root"], h["mid"], h["leaf"], other]

        kept = filter_tasks(tasks, TaskFilter(search_term="mid"))

        assert kept == [h["mid"], h["leaf"]]

    def test_hide_completed(self, make_task):
        """Test completed tasks are dropped when show_completed is off."""
        parent = make_task("Parent")
        done = make_task("Done", parents=[parent], completed=True)
        todo = make_task("Todo", parents=[parent])

        kept = filter_tasks([parent, done, todo], TaskFilter(show_completed=False))

        assert kept == [parent, todo]


class TestSortTasks:
    """Tests for sort_tasks."""

    def test_created_at_directions(self, make_task):
        """Test ascending is oldest first and descending newest first."""
        first, second, third = make_task("1"), make_task("2"), make_task("3")
        tasks = [second, third, first]

        assert sort_tasks(tasks, SortField.CREATED_AT, SortDirection.ASC) == [first, second, third]
        assert sort_tasks(tasks, SortField.CREATED_AT, SortDirection.DESC) == [third, second, first]

    def test_priority_missing_counts_as_medium(self, make_task):
        """Test ascending priority is high to low with None as medium."""
        low = make_task("Low", priority=Priority.LOW)
        none = make_task("None")
        high = make_task("High", priority=Priority.HIGH)

        assert sort_tasks([low, none, high], SortField.PRIORITY, SortDirection.ASC) == [high, none, low]

    def test_due_date_missing_sorts_first(self, make_task):
        """Test tasks without a due date sort as earliest."""
        later = make_task("Later", end_date=datetime(2025, 3, 1))
        undated = make_task("Undated")
        sooner = make_task("Sooner", end_date=datetime(2025, 2, 1))

        assert sort_tasks([later, undated, sooner], SortField.DUE_DATE, SortDirection.ASC) == [
            undated, sooner, later,
        ]

    def test_due_date_mixes_aware_and_naive(self, make_task):
        """Test aware and naive due dates sort together without errors."""
        aware = make_task("Aware", end_date=datetime(2025, 2, 1, 12, 0, tzinfo=timezone.utc))
        naive = make_task("Naive", end_date=datetime(2025, 1, 15))
        undated = make_task("Undated")

        assert sort_tasks([aware, undated, naive], SortField.DUE_DATE, SortDirection.DESC) == [
            aware, naive, undated,
        ]

    def test_completed_ascending_puts_open_first(self, make_task):
        """Test ascending completion order lists open tasks first."""
        done = make_task("Done", completed=True)
        todo = make_task("Todo")

        assert sort_tasks([done, todo], SortField.COMPLETED, SortDirection.ASC) == [todo, done]

    def test_stable_for_equal_keys(self, make_task):
        """Test equal keys keep collection order."""
        a = make_task("A", priority=Priority.HIGH)
        b = make_task("B", priority=Priority.HIGH)

        assert sort_tasks([b, a], SortField.PRIORITY, SortDirection.ASC) == [b, a]


class TestApplyFilter:
    """Tests for apply_filter."""

    def test_filter_then_sort(self, make_task):
        """Test filtering and sorting combine."""
        a = make_task("alpha task", priority=Priority.LOW)
        b = make_task("beta task", priority=Priority.HIGH)
        c = make_task("gamma")
        task_filter = TaskFilter(search_term="task", sort_by="priority", sort_direction="asc")

        assert apply_filter([a, b, c], task_filter) == [b, a]
