"""
Ancestor/descendant resolution for the TaskTree hierarchy.

Tasks store only their parents (``Task.parent_ids``); the children relation
is derived by scanning the collection. Every function here takes the task
collection as an argument, builds whatever index it needs for that one call,
and keeps no state between calls.

All traversals use an explicit worklist plus a visited set, so they terminate
even when a cycle has slipped into stored data.
"""

from collections import deque
from typing import Dict, List, Optional, Sequence, Set
from uuid import UUID

from tasktree.logging_config import get_logger
from tasktree.models import Task

logger = get_logger(__name__)

# Maps a task id to the ids of tasks listing it as a parent, in collection order
ChildIndex = Dict[UUID, List[UUID]]


def index_by_id(tasks: Sequence[Task]) -> Dict[UUID, Task]:
    """Map task ids to tasks."""
    return {task.id: task for task in tasks}


def build_child_index(tasks: Sequence[Task]) -> ChildIndex:
    """
    Build the transient parent -> children index for one operation.

    Parent ids that are not loaded still get an entry, so children of a
    filtered-out parent remain reachable from its id.

    Args:
        tasks: The full task collection

    Returns:
        Mapping of parent id to ordered list of child ids
    """
    index: ChildIndex = {}
    for task in tasks:
        for parent_id in task.parent_ids:
            index.setdefault(parent_id, []).append(task.id)
    return index


def get_children(task_id: UUID, tasks: Sequence[Task]) -> List[Task]:
    """
    Get the direct children of a task.

    Args:
        task_id: Parent task id
        tasks: The full task collection

    Returns:
        Tasks listing ``task_id`` as a parent, in collection order
    """
    return [task for task in tasks if task_id in task.parent_ids]


def get_parents(task_id: UUID, tasks: Sequence[Task]) -> List[Task]:
    """
    Get the loaded direct parents of a task.

    Parent ids that are not present in ``tasks`` are skipped.

    Args:
        task_id: Child task id
        tasks: The full task collection

    Returns:
        Parent tasks in ``parent_ids`` order, or [] for an unknown task
    """
    by_id = index_by_id(tasks)
    task = by_id.get(task_id)
    if task is None:
        return []
    return [by_id[parent_id] for parent_id in task.parent_ids if parent_id in by_id]


def get_descendants(
    task_id: UUID,
    tasks: Sequence[Task],
    index: Optional[ChildIndex] = None,
) -> Set[UUID]:
    """
    Collect every task reachable by following child links from ``task_id``.

    Args:
        task_id: Task to start from
        tasks: The full task collection
        index: Optional prebuilt child index for the same collection

    Returns:
        Set of descendant ids. Empty for an unknown task or a leaf. The start
        id is only included when a cycle leads back to it.
    """
    if not any(task.id == task_id for task in tasks):
        return set()

    if index is None:
        index = build_child_index(tasks)

    descendants: Set[UUID] = set()
    stack = list(index.get(task_id, []))
    while stack:
        current = stack.pop()
        if current in descendants:
            continue
        descendants.add(current)
        stack.extend(index.get(current, []))

    logger.debug(f"Resolved {len(descendants)} descendants for task {task_id}")
    return descendants


def ancestor_depths(task_id: UUID, tasks: Sequence[Task]) -> Dict[UUID, int]:
    """
    Breadth-first distance from ``task_id`` to each of its ancestors.

    Direct parents have depth 1. Parent ids that are not loaded are reported
    (they are ancestors by reference) but cannot be walked past.

    Args:
        task_id: Task to start from
        tasks: The full task collection

    Returns:
        Mapping of ancestor id to its shortest distance, {} for an unknown task
    """
    by_id = index_by_id(tasks)
    start = by_id.get(task_id)
    if start is None:
        return {}

    depths: Dict[UUID, int] = {}
    queue = deque((parent_id, 1) for parent_id in start.parent_ids)
    while queue:
        current, depth = queue.popleft()
        if current in depths:
            continue
        depths[current] = depth
        node = by_id.get(current)
        if node is not None:
            queue.extend((parent_id, depth + 1) for parent_id in node.parent_ids)

    return depths


def get_ancestors(task_id: UUID, tasks: Sequence[Task]) -> Set[UUID]:
    """
    Collect every id reachable by following ``parent_ids`` from ``task_id``.

    Args:
        task_id: Task to start from
        tasks: The full task collection

    Returns:
        Set of ancestor ids. Empty for an unknown task or a root.
    """
    ancestors = set(ancestor_depths(task_id, tasks))
    logger.debug(f"Resolved {len(ancestors)} ancestors for task {task_id}")
    return ancestors


def effective_roots(tasks: Sequence[Task]) -> List[Task]:
    """
    Tasks to show at the top level of a nested view.

    A task is effectively a root when it has no parents, or when none of its
    parents is part of ``tasks`` (for example because they were filtered out).
    Missing parents are display-only; nothing is deleted or rewritten.

    Args:
        tasks: The displayed task collection

    Returns:
        Effective root tasks in collection order
    """
    present = {task.id for task in tasks}
    return [
        task for task in tasks
        if not any(parent_id in present for parent_id in task.parent_ids)
    ]


def completion_progress(task_id: UUID, tasks: Sequence[Task]) -> Optional[int]:
    """
    Percentage of a task's direct children that are completed.

    Args:
        task_id: Parent task id
        tasks: The task collection

    Returns:
        Rounded percentage (0-100), or None when the task has no children
    """
    children = get_children(task_id, tasks)
    if not children:
        return None
    completed = sum(1 for child in children if child.completed)
    return round(completed / len(children) * 100)
