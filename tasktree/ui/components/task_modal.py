"""Task creation/editing modal for TaskTree.

This module provides a modal dialog for creating and editing tasks with:
- Title input (required)
- Description (optional)
- Priority selection
- Due date and comma-separated tags
- Parent selection (edit mode only)
- Keyboard shortcuts (Enter to save, Escape to cancel)
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, SelectionList, Static, TextArea

from tasktree.logging_config import get_logger
from tasktree.models import Priority, Task
from tasktree.ui.base_styles import BUTTON_BASE_CSS, MODAL_BASE_CSS
from tasktree.ui.theme import LEVEL_1_COLOR, ORANGE
from tasktree.utils.datetime_utils import parse_task_date

logger = get_logger(__name__)

MODE_CREATE = "create"
MODE_CREATE_CHILD = "create_child"
MODE_EDIT = "edit"

PRIORITY_OPTIONS = [
    ("High", Priority.HIGH.value),
    ("Medium", Priority.MEDIUM.value),
    ("Low", Priority.LOW.value),
]


def split_tags(text: str) -> List[str]:
    """Split comma-separated tag input, dropping blanks and repeats."""
    tags = [tag.strip() for tag in text.split(",")]
    return list(dict.fromkeys(tag for tag in tags if tag))


class TaskCreationModal(ModalScreen):
    """Modal screen for creating or editing tasks.

    Displays a form with:
    - Title input field (required)
    - Description text area (optional)
    - Priority select
    - Due date (YYYY-MM-DD) and tags inputs
    - Parent checklist when editing
    - Action buttons (Save/Cancel)

    Messages:
        TaskSaved: Emitted when the form is submitted with a valid title
        TaskCancelled: Emitted when the modal is cancelled
    """

    DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f"""
    TaskCreationModal > Container {{
        width: 80;
        height: auto;
        max-height: 90%;
        overflow-y: auto;
    }}

    TaskCreationModal .context-info {{
        width: 100%;
        height: auto;
        color: {LEVEL_1_COLOR};
        text-align: center;
        margin-bottom: 1;
    }}

    TaskCreationModal .error-message {{
        width: 100%;
        height: auto;
        color: {ORANGE};
        text-align: center;
        text-style: bold;
    }}

    TaskCreationModal .field-label {{
        width: 100%;
        height: 1;
        margin-top: 1;
    }}

    TaskCreationModal Input, TaskCreationModal Select {{
        width: 100%;
        margin-bottom: 1;
    }}

    TaskCreationModal TextArea {{
        width: 100%;
        height: 6;
        margin-bottom: 1;
    }}

    TaskCreationModal SelectionList {{
        width: 100%;
        height: auto;
        max-height: 10;
    }}

    TaskCreationModal .button-container {{
        width: 100%;
        height: 3;
        align: center middle;
        margin-top: 1;
        layout: horizontal;
    }}
    """

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", priority=True),
        Binding("ctrl+s", "save", "Save", priority=True),
    ]

    def __init__(
        self,
        mode: str = MODE_CREATE,
        parent_task: Optional[Task] = None,
        edit_task: Optional[Task] = None,
        parent_choices: Optional[List[Task]] = None,
        **kwargs
    ) -> None:
        """Initialize the task creation modal.

        Args:
            mode: "create", "create_child" or "edit"
            parent_task: Task the new task is created under (create_child mode)
            edit_task: Task to edit (edit mode)
            parent_choices: Tasks that may be offered as parents (edit mode).
                            Current parents are always listed.
            **kwargs: Additional keyword arguments for ModalScreen
        """
        super().__init__(**kwargs)
        self.mode = mode
        self.parent_task = parent_task
        self.edit_task = edit_task
        self.parent_choices = list(parent_choices or [])
        self.error: Optional[str] = None

    def compose(self) -> ComposeResult:
        """Compose the modal layout."""
        with Container():
            yield Static(self._get_header_text(), classes="modal-header")

            context_text = self._get_context_text()
            if context_text:
                yield Static(context_text, classes="context-info")

            yield Static("", id="error-message", classes="error-message")

            yield Label("Task Title:", classes="field-label")
            yield Input(
                placeholder="Enter task title...",
                value=self.edit_task.title if self.edit_task else "",
                id="title-input",
            )

            yield Label("Description (optional):", classes="field-label")
            description = self.edit_task.description if self.edit_task else None
            yield TextArea(text=description or "", id="description-input")

            yield Label("Priority:", classes="field-label")
            priority = self.edit_task.priority if self.edit_task else None
            yield Select(
                PRIORITY_OPTIONS,
                prompt="None",
                allow_blank=True,
                value=priority.value if priority else Select.BLANK,
                id="priority-select",
            )

            yield Label("Due Date (YYYY-MM-DD, optional):", classes="field-label")
            end_date = self.edit_task.end_date if self.edit_task else None
            yield Input(
                placeholder="2025-01-31",
                value=end_date.date().isoformat() if end_date else "",
                id="due-date-input",
            )

            yield Label("Tags (comma-separated):", classes="field-label")
            tags = self.edit_task.tags if self.edit_task else []
            yield Input(
                placeholder="work, urgent",
                value=", ".join(tags),
                id="tags-input",
            )

            if self.mode == MODE_EDIT and self.edit_task:
                yield Label("Parents:", classes="field-label")
                yield SelectionList[str](*self._parent_selections(), id="parent-list")

            with Container(classes="button-container"):
                yield Button("Save [Enter]", id="save-button", classes="success")
                yield Button("Cancel [Esc]", id="cancel-button", classes="error")

    def _get_header_text(self) -> str:
        if self.mode == MODE_EDIT:
            return "Edit Task"
        if self.mode == MODE_CREATE_CHILD:
            return "Create Subtask"
        return "Create New Task"

    def _get_context_text(self) -> str:
        if self.mode == MODE_EDIT and self.edit_task:
            return f"Editing: {self.edit_task.title[:40]}"
        if self.mode == MODE_CREATE_CHILD and self.parent_task:
            return f"Creating subtask of: {self.parent_task.title[:40]}"
        return ""

    def _parent_selections(self) -> List[tuple]:
        """Build (label, value, selected) rows for the parent checklist.

        Every current parent is listed and selected, including ids that are
        not loaded, so saving without touching the list keeps them.
        """
        current = list(self.edit_task.parent_ids) if self.edit_task else []
        known = {task.id: task for task in self.parent_choices}
        rows = [
            (known[parent_id].title if parent_id in known else f"{parent_id} (not loaded)", str(parent_id), True)
            for parent_id in current
        ]
        rows.extend(
            (task.title, str(task.id), False)
            for task in self.parent_choices
            if task.id not in current
        )
        return rows

    def on_mount(self) -> None:
        """Focus the title input when the modal opens."""
        context_info = ""
        if self.mode == MODE_EDIT and self.edit_task:
            context_info = f", edit_task_id={self.edit_task.id}"
        elif self.parent_task:
            context_info = f", parent_id={self.parent_task.id}"
        logger.info(f"TaskModal: Opened in {self.mode} mode{context_info}")

        self.query_one("#title-input", Input).focus()

    def show_error(self, message: str) -> None:
        """Display a validation error inside the modal."""
        self.error = message
        self.query_one("#error-message", Static).update(message)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        logger.debug(f"TaskModal: Button pressed - {event.button.id}")
        if event.button.id == "save-button":
            self.action_save()
        elif event.button.id == "cancel-button":
            self.action_cancel()

    def action_save(self) -> None:
        """Validate the form, post TaskSaved and dismiss.

        An empty title keeps the modal open with an error message.
        """
        title = self.query_one("#title-input", Input).value.strip()
        description_text = self.query_one("#description-input", TextArea).text.strip()
        priority_value = self.query_one("#priority-select", Select).value

        if not title:
            logger.warning(f"TaskModal: Save validation failed - empty title (mode={self.mode})")
            self.show_error("Title is required")
            return

        due_text = self.query_one("#due-date-input", Input).value
        try:
            end_date = parse_task_date(due_text)
        except ValueError:
            logger.warning(f"TaskModal: Save validation failed - bad due date '{due_text}'")
            self.show_error("Due date must be YYYY-MM-DD")
            return

        tags = split_tags(self.query_one("#tags-input", Input).value)
        priority = Priority(priority_value) if isinstance(priority_value, str) else None

        parent_ids: Optional[List[UUID]] = None
        if self.mode == MODE_EDIT and self.edit_task:
            parent_list = self.query_one("#parent-list", SelectionList)
            parent_ids = [UUID(value) for value in parent_list.selected]

        logger.info(
            f"TaskModal: Task {self.mode} saved - title='{title[:50]}', "
            f"priority={priority.value if priority else None}, due={end_date}, tags={tags}"
        )

        self.app.post_message(
            self.TaskSaved(
                title=title,
                description=description_text or None,
                priority=priority,
                mode=self.mode,
                parent_task=self.parent_task,
                edit_task=self.edit_task,
                parent_ids=parent_ids,
                end_date=end_date,
                tags=tags,
            )
        )
        self.dismiss()

    def action_cancel(self) -> None:
        """Cancel and dismiss the modal."""
        logger.info(f"TaskModal: Cancelled (mode={self.mode})")
        self.app.post_message(self.TaskCancelled())
        self.dismiss()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter in any single-line field saves."""
        if event.input.id in ("title-input", "due-date-input", "tags-input"):
            self.action_save()

    class TaskSaved(Message):
        """Message emitted when a task is created or edited."""

        def __init__(
            self,
            title: str,
            description: Optional[str],
            priority: Optional[Priority],
            mode: str,
            parent_task: Optional[Task],
            edit_task: Optional[Task] = None,
            parent_ids: Optional[List[UUID]] = None,
            end_date: Optional[datetime] = None,
            tags: Optional[List[str]] = None,
        ) -> None:
            """Initialize the TaskSaved message.

            Args:
                title: Task title
                description: Optional description
                priority: Optional priority
                mode: Modal mode
                parent_task: Parent for a new subtask
                edit_task: Task being edited (if any)
                parent_ids: Selected parents in edit mode, None otherwise
                end_date: Optional due date
                tags: Tags in entry order
            """
            super().__init__()
            self.title = title
            self.description = description
            self.priority = priority
            self.mode = mode
            self.parent_task = parent_task
            self.edit_task = edit_task
            self.parent_ids = parent_ids
            self.end_date = end_date
            self.tags = list(tags or [])

    class TaskCancelled(Message):
        """Message emitted when task creation is cancelled."""
        pass
