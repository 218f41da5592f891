"""
Deletion closure for the TaskTree hierarchy.

Deleting a task also deletes the descendants that would otherwise be left
pointing at deleted parents, except those still held by a surviving parent
("shared custody").
"""

from collections import deque
from typing import List, Sequence, Set
from uuid import UUID

from pydantic import BaseModel, Field

from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.hierarchy import build_child_index, get_descendants, index_by_id

logger = get_logger(__name__)


def compute_deletion_closure(task_id: UUID, tasks: Sequence[Task]) -> Set[UUID]:
    """
    Compute every task id that must be deleted together with ``task_id``.

    The closure starts with the target and grows top-down. A child of a
    closure member joins only when all of its parents are closure members;
    a child with any parent outside the closure survives, along with its
    own subtree. Parent ids that are not loaded count as surviving parents.

    Completion state is not consulted.

    Args:
        task_id: The task targeted for deletion
        tasks: The full task collection

    Returns:
        Set of ids to delete (including ``task_id``), or an empty set when
        the task is unknown
    """
    by_id = index_by_id(tasks)
    if task_id not in by_id:
        return set()

    children_index = build_child_index(tasks)
    closure: Set[UUID] = {task_id}
    queue = deque([task_id])
    while queue:
        current = queue.popleft()
        for child_id in children_index.get(current, []):
            if child_id in closure:
                continue
            child = by_id[child_id]
            # Rechecked each time another of its parents joins the closure
            if all(parent_id in closure for parent_id in child.parent_ids):
                closure.add(child_id)
                queue.append(child_id)

    logger.debug(f"Deletion closure for task {task_id}: {len(closure)} task(s)")
    return closure


class DeletionPreview(BaseModel):
    """
    What deleting a task would remove, for the confirmation dialog.

    Attributes:
        target_id: The task the user asked to delete
        task_ids: The full deletion closure
        incomplete_descendants: Incomplete tasks in the closure other than the target
        spared_ids: Descendants kept alive by a parent outside the closure
    """

    target_id: UUID
    task_ids: Set[UUID] = Field(default_factory=set)
    incomplete_descendants: List[Task] = Field(default_factory=list)
    spared_ids: Set[UUID] = Field(default_factory=set)

    @property
    def has_incomplete_descendants(self) -> bool:
        """True when the deletion removes unfinished work below the target."""
        return bool(self.incomplete_descendants)


def preview_deletion(task_id: UUID, tasks: Sequence[Task]) -> DeletionPreview:
    """
    Describe the effect of deleting ``task_id`` without deleting anything.

    Args:
        task_id: The task targeted for deletion
        tasks: The full task collection

    Returns:
        DeletionPreview for the target
    """
    closure = compute_deletion_closure(task_id, tasks)
    incomplete = [
        task for task in tasks
        if task.id in closure and task.id != task_id and not task.completed
    ]
    spared = get_descendants(task_id, tasks) - closure
    return DeletionPreview(
        target_id=task_id,
        task_ids=closure,
        incomplete_descendants=incomplete,
        spared_ids=spared,
    )
