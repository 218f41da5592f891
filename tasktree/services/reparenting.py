"""
Reparenting validation for the TaskTree hierarchy.

Structural edits come from two places: dropping a task onto another task in
the list view, and editing a task's parent list directly. Both go through
this module, which refuses any change that would make a task its own
ancestor. A refusal is an ordinary result (``accepted=False``), not an
exception; callers check it before persisting anything.
"""

from typing import List, Optional, Sequence
from uuid import UUID

from pydantic import BaseModel, Field

from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.hierarchy import (
    ancestor_depths,
    get_ancestors,
    get_descendants,
    index_by_id,
)

logger = get_logger(__name__)


class ReparentResult(BaseModel):
    """
    Outcome of a reparenting request.

    Attributes:
        accepted: Whether the change may be applied
        parent_ids: Resulting parent ids when accepted, the unchanged ones otherwise
        reason: Why the request was rejected
        replaced_parent_id: Parent swapped out by a drop onto the same lineage
    """

    accepted: bool
    parent_ids: List[UUID] = Field(default_factory=list)
    reason: Optional[str] = None
    replaced_parent_id: Optional[UUID] = None

    @classmethod
    def rejected(cls, reason: str, parent_ids: Optional[List[UUID]] = None) -> "ReparentResult":
        """Build a rejection that leaves ``parent_ids`` as they were."""
        logger.info(f"Reparenting rejected: {reason}")
        return cls(accepted=False, parent_ids=list(parent_ids or []), reason=reason)


def would_create_cycle(task_id: UUID, new_parent_id: UUID, tasks: Sequence[Task]) -> bool:
    """
    Check whether making ``new_parent_id`` a parent of ``task_id`` closes a cycle.

    Args:
        task_id: The task receiving a new parent
        new_parent_id: The proposed parent
        tasks: The full task collection

    Returns:
        True when the ids are equal or ``task_id`` is already an ancestor of
        ``new_parent_id``
    """
    if task_id == new_parent_id:
        return True
    return task_id in get_ancestors(new_parent_id, tasks)


def find_shared_parent(moved: Task, target: Task, tasks: Sequence[Task]) -> Optional[UUID]:
    """
    Find the parent of ``moved`` that is also an ancestor of ``target``.

    When several of the moved task's parents are ancestors of the target,
    the one nearest to the target (fewest parent links up from it) wins;
    equal distances go to the entry listed first in ``moved.parent_ids``.

    Args:
        moved: The task being dropped
        target: The task it is dropped onto
        tasks: The full task collection

    Returns:
        The shared parent id, or None when the lineages do not meet
    """
    depths = ancestor_depths(target.id, tasks)
    candidates = [
        (depths[parent_id], position, parent_id)
        for position, parent_id in enumerate(moved.parent_ids)
        if parent_id in depths
    ]
    if not candidates:
        return None
    return min(candidates)[2]


def resolve_drop(moved_id: UUID, target_id: UUID, tasks: Sequence[Task]) -> ReparentResult:
    """
    Work out the parent list after dropping one task onto another.

    If the moved task and the target share a lineage (one of the moved
    task's parents is an ancestor of the target), that parent is replaced by
    the target, so the task changes branch within the lineage. Otherwise the
    target is appended and the task gains a second lineage.

    Args:
        moved_id: The task being dragged
        target_id: The task it was dropped onto
        tasks: The full task collection

    Returns:
        ReparentResult with the new parent ids, or a rejection
    """
    by_id = index_by_id(tasks)
    moved = by_id.get(moved_id)
    target = by_id.get(target_id)

    if moved is None or target is None:
        return ReparentResult.rejected(
            f"Cannot move {moved_id} onto {target_id}: task not found",
            moved.parent_ids if moved else None,
        )

    if moved_id == target_id:
        return ReparentResult.rejected("A task cannot be dropped onto itself", moved.parent_ids)

    if target_id in moved.parent_ids:
        return ReparentResult(accepted=True, parent_ids=list(moved.parent_ids))

    if would_create_cycle(moved_id, target_id, tasks):
        return ReparentResult.rejected(
            f"'{target.title}' is a descendant of '{moved.title}'", moved.parent_ids
        )

    shared = find_shared_parent(moved, target, tasks)
    if shared is not None:
        parent_ids = [parent_id for parent_id in moved.parent_ids if parent_id != shared]
    else:
        parent_ids = list(moved.parent_ids)
    parent_ids.append(target_id)

    logger.debug(
        f"Drop of {moved_id} onto {target_id}: replaced={shared}, parents={parent_ids}"
    )
    return ReparentResult(accepted=True, parent_ids=parent_ids, replaced_parent_id=shared)


def validate_parent_ids(
    task_id: UUID,
    proposed: Sequence[UUID],
    tasks: Sequence[Task],
) -> ReparentResult:
    """
    Validate a complete replacement parent list from the edit dialog.

    Duplicates are dropped. The request is rejected when any proposed parent
    is the task itself or one of its descendants.

    Args:
        task_id: The task being edited
        proposed: The new parent ids
        tasks: The full task collection

    Returns:
        ReparentResult with the normalized parent ids, or a rejection
    """
    by_id = index_by_id(tasks)
    task = by_id.get(task_id)
    if task is None:
        return ReparentResult.rejected(f"Task {task_id} not found")

    parent_ids = list(dict.fromkeys(proposed))
    descendants = get_descendants(task_id, tasks)

    for parent_id in parent_ids:
        if parent_id == task_id or parent_id in descendants:
            parent = by_id.get(parent_id)
            label = parent.title if parent else str(parent_id)
            return ReparentResult.rejected(
                f"'{label}' cannot be a parent of '{task.title}': it would create a cycle",
                task.parent_ids,
            )

    return ReparentResult(accepted=True, parent_ids=parent_ids)


def available_parents(task_id: UUID, tasks: Sequence[Task]) -> List[Task]:
    """
    Tasks that may be offered as additional parents for ``task_id``.

    Excludes the task itself, its descendants and its current parents.

    Args:
        task_id: The task being edited
        tasks: The full task collection

    Returns:
        Candidate parent tasks in collection order
    """
    by_id = index_by_id(tasks)
    task = by_id.get(task_id)
    current = set(task.parent_ids) if task else set()
    excluded = get_descendants(task_id, tasks) | current | {task_id}
    return [candidate for candidate in tasks if candidate.id not in excluded]
