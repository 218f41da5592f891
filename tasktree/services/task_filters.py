"""
Search, filter and sort for the task list.

A task that matches the filter brings its whole subtree with it, so a match
is always shown in context. The result is then ordered by the selected sort
key; nesting in the tree view is rebuilt from ``parent_ids`` afterwards.
"""

from datetime import datetime
from typing import List, Sequence, Set
from uuid import UUID

from tasktree.logging_config import get_logger
from tasktree.models import Priority, SortDirection, SortField, Task, TaskFilter
from tasktree.services.hierarchy import build_child_index, get_descendants

logger = get_logger(__name__)

# Ascending priority order puts high first
PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


def matches_filter(task: Task, task_filter: TaskFilter) -> bool:
    """
    Check a single task against the search term and filters.

    The search term matches case-insensitively against title and description.

    Args:
        task: Task to check
        task_filter: Active filter

    Returns:
        True when the task matches directly
    """
    term = task_filter.search_term.strip().lower()
    if term:
        in_title = term in task.title.lower()
        in_description = term in (task.description or "").lower()
        if not (in_title or in_description):
            return False

    if task_filter.priority is not None and task.priority != task_filter.priority:
        return False

    if task_filter.completed is not None and task.completed != task_filter.completed:
        return False

    return True


def filter_tasks(tasks: Sequence[Task], task_filter: TaskFilter) -> List[Task]:
    """
    Keep direct matches and every descendant of a direct match.

    With ``show_completed`` off, completed tasks are then dropped; their
    remaining children surface as effective roots.

    Args:
        tasks: The full task collection
        task_filter: Active filter

    Returns:
        Matching tasks in collection order
    """
    if not task_filter.is_active:
        return list(tasks)

    index = build_child_index(tasks)
    included: Set[UUID] = set()
    for task in tasks:
        if matches_filter(task, task_filter):
            included.add(task.id)
            included |= get_descendants(task.id, tasks, index)

    kept = [task for task in tasks if task.id in included]
    if not task_filter.show_completed:
        kept = [task for task in kept if not task.completed]

    logger.debug(f"Filter kept {len(kept)} of {len(tasks)} task(s)")
    return kept


def sort_tasks(
    tasks: Sequence[Task],
    sort_by: SortField = SortField.CREATED_AT,
    direction: SortDirection = SortDirection.DESC,
) -> List[Task]:
    """
    Order tasks by one key.

    - ``priority``: ascending is high -> low; missing priority counts as medium
    - ``due_date``: by ``end_date``; tasks without one sort as earliest
    - ``completed``: ascending puts incomplete tasks first
    - ``created_at``: ascending is oldest first

    The sort is stable, so equal keys keep collection order.

    Args:
        tasks: Tasks to order
        sort_by: Sort key
        direction: Sort direction

    Returns:
        New sorted list
    """
    if sort_by == SortField.PRIORITY:
        key = lambda task: PRIORITY_RANK[task.effective_priority]
    elif sort_by == SortField.DUE_DATE:
        key = lambda task: task.end_date or datetime.min
    elif sort_by == SortField.COMPLETED:
        key = lambda task: task.completed
    else:
        key = lambda task: task.created_at

    return sorted(tasks, key=key, reverse=direction == SortDirection.DESC)


def apply_filter(tasks: Sequence[Task], task_filter: TaskFilter) -> List[Task]:
    """Filter then sort ``tasks`` according to ``task_filter``."""
    return sort_tasks(
        filter_tasks(tasks, task_filter),
        task_filter.sort_by,
        task_filter.sort_direction,
    )
