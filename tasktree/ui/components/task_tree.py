"""Tree widget for displaying the task hierarchy.

A task with several parents is shown under each visible parent, so the
same task can occupy several nodes. Every node carries the task id as its
data; actions look the task up in the store by id.
"""

from typing import Callable, Dict, List, Optional, Sequence, Set
from uuid import UUID

from rich.text import Text
from textual.binding import Binding
from textual.widgets import Tree
from textual.widgets.tree import TreeNode

from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.hierarchy import completion_progress
from tasktree.ui.theme import (
    BACKGROUND,
    BORDER,
    COMMENT,
    COMPLETE_COLOR,
    LEVEL_0_COLOR,
    ORANGE,
    SELECTION,
    TAG_COLOR,
    get_level_style,
    get_priority_color,
)
from tasktree.utils.datetime_utils import format_task_date

logger = get_logger(__name__)

ChildrenGetter = Callable[[UUID], List[Task]]


def build_task_label(
    task: Task,
    level: int = 0,
    progress: Optional[int] = None,
    marked: bool = False,
) -> Text:
    """
    Build the rich label for one tree node.

    Badges follow the title in a fixed order: priority, progress, due date,
    tags, move marker.

    Args:
        task: Task to render
        level: Depth of this occurrence (0 = root)
        progress: Percentage of completed children, None for a leaf
        marked: Whether the task is marked for moving

    Returns:
        Styled label text
    """
    label = Text()
    label.append("[x] " if task.completed else "[ ] ", style=COMMENT)

    if task.completed:
        label.append(task.title, style=f"strike {COMPLETE_COLOR}")
    else:
        label.append(task.title, style=get_level_style(level))

    if task.priority is not None:
        label.append(f" !{task.priority.value}", style=get_priority_color(task.priority))

    if progress is not None:
        label.append(f" {progress}%", style=COMMENT)

    due = format_task_date(task.end_date)
    if due:
        label.append(f" due {due}", style=COMMENT)

    for tag in task.tags:
        label.append(f" #{tag}", style=TAG_COLOR)

    if marked:
        label.append(" (moving)", style=f"bold {ORANGE}")

    return label


class TaskTreeView(Tree[UUID]):
    """Nested view of the visible tasks.

    Rebuilt from scratch on every change; the cursor is restored to the
    previously selected task where it is still shown.
    """

    # Space completes tasks instead of folding nodes
    BINDINGS = [
        Binding("space", "app.toggle_completion", "Toggle Complete", show=False),
    ]

    DEFAULT_CSS = f"""
    TaskTreeView {{
        background: {BACKGROUND};
        border: round {BORDER};
        padding: 0 1;
    }}

    TaskTreeView:focus {{
        border: round {LEVEL_0_COLOR};
    }}

    TaskTreeView > .tree--cursor {{
        background: {SELECTION};
    }}
    """

    def __init__(self, **kwargs) -> None:
        super().__init__("Tasks", **kwargs)
        self.show_root = False
        self.guide_depth = 3
        self.marked_task_id: Optional[UUID] = None

    @property
    def selected_task_id(self) -> Optional[UUID]:
        """Id of the task under the cursor."""
        node = self.cursor_node
        if node is None or node is self.root:
            return None
        return node.data

    def render_tasks(
        self,
        roots: Sequence[Task],
        children_of: ChildrenGetter,
        all_tasks: Sequence[Task],
    ) -> int:
        """
        Rebuild the tree.

        Args:
            roots: Top-level tasks in display order
            children_of: Returns the visible children of a task in display order
            all_tasks: Full collection, used for progress counts

        Returns:
            Number of nodes added
        """
        selected = self.selected_task_id
        self.clear()
        self.root.expand()

        first_nodes: Dict[UUID, TreeNode] = {}
        count = 0
        for task in roots:
            count += self._add_subtree(self.root, task, 0, set(), children_of, all_tasks, first_nodes)

        if selected is not None and selected in first_nodes:
            # Line numbers are assigned on the next render
            self.call_after_refresh(self.move_cursor, first_nodes[selected])

        logger.debug(f"Task tree rendered: {len(roots)} root(s), {count} node(s)")
        return count

    def _add_subtree(
        self,
        parent_node: TreeNode,
        task: Task,
        level: int,
        path: Set[UUID],
        children_of: ChildrenGetter,
        all_tasks: Sequence[Task],
        first_nodes: Dict[UUID, TreeNode],
    ) -> int:
        # Guard against corrupted data that loops back on itself
        if task.id in path:
            logger.warning(f"Cycle detected at task {task.id}, branch not rendered")
            return 0

        label = build_task_label(
            task,
            level=level,
            progress=completion_progress(task.id, all_tasks),
            marked=task.id == self.marked_task_id,
        )
        children = children_of(task.id)
        if children:
            node = parent_node.add(label, data=task.id, expand=True)
        else:
            node = parent_node.add_leaf(label, data=task.id)
        first_nodes.setdefault(task.id, node)

        count = 1
        branch = path | {task.id}
        for child in children:
            count += self._add_subtree(node, child, level + 1, branch, children_of, all_tasks, first_nodes)
        return count
