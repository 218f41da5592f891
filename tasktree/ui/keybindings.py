"""Keyboard bindings for TaskTree.

This module defines the keyboard shortcuts of the TaskTree application:
- Task actions (N, C, E, Space, X/Delete, M)
- View controls (/, S, R, H, P, F)
- Application controls (Q, Escape)

Bindings are not priority bindings, so keys typed into the search box are
never taken as commands.
"""

from typing import Optional

from textual.binding import Binding

from tasktree.logging_config import get_logger
from tasktree.models import Priority, SortDirection, SortField

logger = get_logger(__name__)


# Task action keybindings
TASK_ACTION_BINDINGS = [
    Binding("n,N", "new_task", "New Task", show=True),
    Binding("c,C", "new_child_task", "New Subtask", show=True),
    Binding("e,E", "edit_task", "Edit Task", show=True),
    Binding("space", "toggle_completion", "Toggle Complete", show=True),
    Binding("x,delete", "delete_task", "Delete Task", show=True),
    Binding("m,M", "move_task", "Move", show=True),
]

# View keybindings
VIEW_BINDINGS = [
    Binding("slash", "focus_search", "Search", show=True),
    Binding("s,S", "cycle_sort", "Sort", show=True),
    Binding("r,R", "reverse_sort", "Reverse", show=False),
    Binding("h,H", "toggle_show_completed", "Hide Done", show=True),
    Binding("p,P", "cycle_priority_filter", "Priority Filter", show=True),
    Binding("f,F", "cycle_completed_filter", "Status Filter", show=True),
]

# Application control keybindings
APP_CONTROL_BINDINGS = [
    Binding("q,Q", "quit", "Quit", show=True),
    Binding("escape", "cancel", "Cancel", show=False),
]

# Order the priority filter cycles through; None shows every priority
PRIORITY_FILTER_CYCLE = [None, Priority.HIGH, Priority.MEDIUM, Priority.LOW]

# Order the completion filter cycles through: all, open only, done only
COMPLETED_FILTER_CYCLE = [None, False, True]

# Order the sort key cycles through
SORT_CYCLE = [
    SortField.CREATED_AT,
    SortField.PRIORITY,
    SortField.DUE_DATE,
    SortField.COMPLETED,
]


def get_next_sort_field(current: SortField) -> SortField:
    """Get the sort key after ``current`` in SORT_CYCLE, wrapping around.

    Args:
        current: The active sort key

    Returns:
        The next sort key
    """
    position = SORT_CYCLE.index(current) if current in SORT_CYCLE else -1
    next_field = SORT_CYCLE[(position + 1) % len(SORT_CYCLE)]
    logger.debug(f"Keybindings: Sort key - from {current.value} to {next_field.value}")
    return next_field


def get_reversed_direction(current: SortDirection) -> SortDirection:
    """Flip the sort direction."""
    if current == SortDirection.ASC:
        return SortDirection.DESC
    return SortDirection.ASC


def get_next_priority_filter(current: Optional[Priority]) -> Optional[Priority]:
    """Get the priority filter after ``current``, wrapping back to None."""
    position = PRIORITY_FILTER_CYCLE.index(current)
    return PRIORITY_FILTER_CYCLE[(position + 1) % len(PRIORITY_FILTER_CYCLE)]


def get_next_completed_filter(current: Optional[bool]) -> Optional[bool]:
    """Get the completion filter after ``current``, wrapping back to None."""
    position = COMPLETED_FILTER_CYCLE.index(current)
    return COMPLETED_FILTER_CYCLE[(position + 1) % len(COMPLETED_FILTER_CYCLE)]


def get_all_bindings() -> list[Binding]:
    """Get all application keybindings.

    Returns:
        List of all Binding objects
    """
    return TASK_ACTION_BINDINGS + VIEW_BINDINGS + APP_CONTROL_BINDINGS
