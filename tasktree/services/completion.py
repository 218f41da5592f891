"""
Completion propagation for the TaskTree hierarchy.

When a task is marked complete, some of its ancestors may now have only
completed children. ``find_completion_chains`` discovers those ancestors and
groups them into chains the UI confirms one step at a time; the
``CompletionCursor`` carries the position in that conversation between the
store and the UI.
"""

from collections import deque
from typing import List, Optional, Sequence, Set
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.hierarchy import build_child_index, index_by_id

logger = get_logger(__name__)


def find_completion_chains(task_id: UUID, tasks: Sequence[Task]) -> List[List[Task]]:
    """
    Find ancestor chains that can be completed after ``task_id`` was completed.

    ``tasks`` must already reflect the completion of ``task_id``. For each
    direct parent that is incomplete and whose children are all complete, a
    chain is started; the walk then climbs breadth-first from that parent,
    appending every eligible ancestor to the same chain, closest first.

    Eligibility treats the just-completed task and every ancestor already
    placed in a chain as complete, since the user is about to be asked about
    them in order. Each ancestor appears in at most one chain, once, no matter
    how many paths lead to it.

    Args:
        task_id: The task that was just marked complete
        tasks: The full task collection, with the completion applied

    Returns:
        Ordered list of chains; [] when the task is unknown or incomplete
    """
    by_id = index_by_id(tasks)
    task = by_id.get(task_id)
    if task is None or not task.completed:
        return []

    children_index = build_child_index(tasks)
    projected: Set[UUID] = {task_id}
    processed: Set[UUID] = set()

    def is_eligible(candidate: Task) -> bool:
        if candidate.completed:
            return False
        return all(
            child_id in projected or by_id[child_id].completed
            for child_id in children_index.get(candidate.id, [])
        )

    def claim(candidate_id: UUID) -> Optional[Task]:
        # Returns the ancestor when it joins a chain, None otherwise
        candidate = by_id.get(candidate_id)
        if candidate is None or candidate_id in processed or not is_eligible(candidate):
            return None
        processed.add(candidate_id)
        projected.add(candidate_id)
        return candidate

    chains: List[List[Task]] = []
    for parent_id in task.parent_ids:
        parent = claim(parent_id)
        if parent is None:
            continue

        chain = [parent]
        queue = deque([parent])
        while queue:
            current = queue.popleft()
            for ancestor_id in current.parent_ids:
                ancestor = claim(ancestor_id)
                if ancestor is not None:
                    chain.append(ancestor)
                    queue.append(ancestor)

        chains.append(chain)

    logger.debug(
        f"Completion of task {task_id} produced {len(chains)} chain(s): "
        f"{[[str(t.id) for t in chain] for chain in chains]}"
    )
    return chains


def children_all_complete(task_id: UUID, tasks: Sequence[Task]) -> bool:
    """
    Check whether every direct child of ``task_id`` is completed right now.

    Chains are planned against projected completions; this is the check
    against the actual collection once earlier answers are known.

    Args:
        task_id: Candidate ancestor
        tasks: The full task collection

    Returns:
        True when no loaded child of ``task_id`` is still open
    """
    return all(task.completed for task in tasks if task_id in task.parent_ids)


class CompletionCursor(BaseModel):
    """
    Position in a sequence of completion confirmations.

    The UI asks about ``current``; on an answer it calls ``confirm`` or
    ``decline`` and keeps the returned cursor. Declining abandons only the
    rest of the current chain. ``cancel`` abandons everything still pending.
    Cursors are immutable; every move returns a new one.
    """

    chains: List[List[Task]] = Field(default_factory=list)
    chain_index: int = Field(default=0, ge=0)
    step_index: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def empty(cls) -> "CompletionCursor":
        """A cursor with nothing to confirm."""
        return cls()

    @property
    def finished(self) -> bool:
        """True when there is nothing left to ask about."""
        return self.chain_index >= len(self.chains)

    @property
    def current(self) -> Optional[Task]:
        """The task awaiting confirmation, or None when finished."""
        if self.finished:
            return None
        return self.chains[self.chain_index][self.step_index]

    @property
    def remaining(self) -> List[Task]:
        """All tasks still pending, in the order they will be asked about."""
        if self.finished:
            return []
        pending = list(self.chains[self.chain_index][self.step_index:])
        for chain in self.chains[self.chain_index + 1:]:
            pending.extend(chain)
        return pending

    def confirm(self) -> "CompletionCursor":
        """Advance past the current step after the user accepted it."""
        if self.finished:
            return self
        chain = self.chains[self.chain_index]
        if self.step_index + 1 < len(chain):
            return self.model_copy(update={"step_index": self.step_index + 1})
        return self._next_chain()

    def decline(self) -> "CompletionCursor":
        """Abandon the rest of the current chain and move to the next one."""
        if self.finished:
            return self
        logger.debug(
            f"Completion chain {self.chain_index} declined at step {self.step_index}"
        )
        return self._next_chain()

    def cancel(self) -> "CompletionCursor":
        """Abandon every unconfirmed step."""
        return self.model_copy(update={"chain_index": len(self.chains), "step_index": 0})

    def _next_chain(self) -> "CompletionCursor":
        return self.model_copy(update={"chain_index": self.chain_index + 1, "step_index": 0})
