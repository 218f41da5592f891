"""TaskTree UI components - Reusable widgets and modals."""

from tasktree.ui.components.confirm_modals import CompletionConfirmModal, DeleteConfirmModal
from tasktree.ui.components.task_modal import TaskCreationModal
from tasktree.ui.components.task_tree import TaskTreeView

__all__ = ["CompletionConfirmModal", "DeleteConfirmModal", "TaskCreationModal", "TaskTreeView"]
