"""Confirmation modals for TaskTree.

- CompletionConfirmModal: asks whether an ancestor whose subtasks are all
  complete should be completed too. One modal per step of a completion chain.
- DeleteConfirmModal: confirms a deletion, warning when incomplete subtasks
  would be removed with the task.
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from tasktree.logging_config import get_logger
from tasktree.models import Task
from tasktree.services.deletion import DeletionPreview
from tasktree.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS
from tasktree.ui.theme import BORDER, FOREGROUND, ORANGE, RED

logger = get_logger(__name__)

_CONFIRM_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f"""
CompletionConfirmModal > Container, DeleteConfirmModal > Container {{
    width: 70;
    height: auto;
}}

DeleteConfirmModal > Container {{
    border: thick {RED};
}}

ModalScreen .message-text {{
    width: 100%;
    height: auto;
    color: {FOREGROUND};
    padding: 1 0;
}}

ModalScreen .warning-box {{
    width: 100%;
    height: auto;
    background: {BORDER};
    color: {ORANGE};
    text-align: center;
    padding: 1;
    border: solid {ORANGE};
}}

ModalScreen .button-container {{
    width: 100%;
    height: 3;
    align: center middle;
    margin-top: 1;
    layout: horizontal;
}}
"""


class CompletionConfirmModal(ModalScreen):
    """Asks whether to complete a parent whose subtasks are all done.

    Messages:
        Confirmed: Complete the task and continue with the chain
        Declined: Keep it incomplete and skip the rest of its chain
        Cancelled: Stop asking altogether
    """

    DEFAULT_CSS = _CONFIRM_CSS

    BINDINGS = [
        Binding("y", "confirm", "Yes", priority=True),
        Binding("n", "decline", "No", priority=True),
        Binding("escape", "cancel", "Cancel", priority=True),
    ]

    def __init__(self, task: Task, remaining: int = 0, **kwargs) -> None:
        """Initialize the modal.

        Args:
            task: The parent task proposed for completion
            remaining: How many further steps are queued after this one
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(**kwargs)
        self.parent_task = task
        self.remaining = remaining

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        with Container():
            yield Static("Complete Parent Task?", classes="modal-header")
            yield Static(
                f'All subtasks of "{self.parent_task.title}" are completed. '
                f"Mark this task as complete as well?",
                classes="message-text",
            )
            if self.remaining:
                yield Static(f"{self.remaining} more to review", classes="info-text")
            with Container(classes="button-container"):
                yield Button("Yes, complete it [y]", id="confirm-button", classes="success")
                yield Button("No, keep it [n]", id="decline-button", classes="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        if event.button.id == "confirm-button":
            self.action_confirm()
        elif event.button.id == "decline-button":
            self.action_decline()

    def action_confirm(self) -> None:
        """Accept the step."""
        logger.info(f"CompletionConfirmModal: confirmed task {self.parent_task.id}")
        self.app.post_message(self.Confirmed(self.parent_task))
        self.dismiss()

    def action_decline(self) -> None:
        """Reject the step."""
        logger.info(f"CompletionConfirmModal: declined task {self.parent_task.id}")
        self.app.post_message(self.Declined(self.parent_task))
        self.dismiss()

    def action_cancel(self) -> None:
        """Close without answering."""
        logger.info("CompletionConfirmModal: cancelled")
        self.app.post_message(self.Cancelled())
        self.dismiss()

    class Confirmed(Message):
        """Posted when the user accepts the step."""

        def __init__(self, task: Task) -> None:
            super().__init__()
            self.task = task

    class Declined(Message):
        """Posted when the user rejects the step."""

        def __init__(self, task: Task) -> None:
            super().__init__()
            self.task = task

    class Cancelled(Message):
        """Posted when the dialog is closed without an answer."""
        pass


class DeleteConfirmModal(ModalScreen):
    """Confirms deletion of a task and everything in its deletion closure.

    Messages:
        DeleteConfirmed: Delete the task
        DeleteCancelled: Keep it
    """

    DEFAULT_CSS = _CONFIRM_CSS

    BINDINGS = [
        Binding("y", "confirm", "Delete", priority=True),
        Binding("n,escape", "cancel", "Cancel", priority=True),
    ]

    def __init__(self, task: Task, preview: DeletionPreview, **kwargs) -> None:
        """Initialize the modal.

        Args:
            task: The task to delete
            preview: What the deletion would remove
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(**kwargs)
        self.target_task = task
        self.preview = preview

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        removed = len(self.preview.task_ids) - 1
        with Container():
            yield Static("Delete Task", classes="modal-header")
            yield Static(
                f'Delete "{self.target_task.title}"? This action cannot be undone.',
                classes="message-text",
            )
            if self.preview.has_incomplete_descendants:
                yield Static(
                    f"This task has {len(self.preview.incomplete_descendants)} uncompleted "
                    f"sub-task(s) that will also be deleted.",
                    classes="warning-box",
                )
            if removed:
                yield Static(f"{removed} sub-task(s) will be removed", classes="info-text")
            if self.preview.spared_ids:
                yield Static(
                    f"{len(self.preview.spared_ids)} sub-task(s) are kept by another parent",
                    classes="info-text",
                )
            with Container(classes="button-container"):
                yield Button("Delete [y]", id="confirm-button", classes="error")
                yield Button("Cancel [Esc]", id="cancel-button", classes="success")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        if event.button.id == "confirm-button":
            self.action_confirm()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def action_confirm(self) -> None:
        """Confirm deletion and dismiss the modal."""
        logger.info(
            f"DeleteConfirmModal: confirmed task {self.target_task.id} "
            f"({len(self.preview.task_ids)} task(s))"
        )
        self.app.post_message(self.DeleteConfirmed(self.target_task))
        self.dismiss()

    def action_cancel(self) -> None:
        """Cancel and dismiss the modal."""
        logger.info("DeleteConfirmModal: cancelled")
        self.app.post_message(self.DeleteCancelled())
        self.dismiss()

    class DeleteConfirmed(Message):
        """Message emitted when deletion is confirmed."""

        def __init__(self, task: Task) -> None:
            super().__init__()
            self.task = task

    class DeleteCancelled(Message):
        """Message emitted when deletion is cancelled."""
        pass
