"""Shared CSS styles for TaskTree components.

Reusable CSS for modals and buttons. Components extend these with their own
rules instead of repeating the common styling:

    class MyModal(ModalScreen):
        DEFAULT_CSS = MODAL_BASE_CSS + BUTTON_BASE_CSS + f'''
        MyModal .custom-element {{
            color: {LEVEL_1_COLOR};
        }}
        '''
"""

from .theme import (
    BACKGROUND,
    FOREGROUND,
    BORDER,
    SELECTION,
    COMMENT,
    LEVEL_0_COLOR,
    LEVEL_1_COLOR,
    LEVEL_2_COLOR,
    MODAL_OVERLAY_BG,
)


# Base Modal Styles
MODAL_BASE_CSS = f"""
ModalScreen {{
    align: center middle;
    background: {MODAL_OVERLAY_BG};
}}

ModalScreen > Container {{
    background: {BACKGROUND};
    border: thick {LEVEL_0_COLOR};
    padding: 1 2;
}}

ModalScreen .modal-header {{
    color: {LEVEL_0_COLOR};
    border-bottom: solid {BORDER};
    text-style: bold;
    padding: 0 0 1 0;
}}

ModalScreen .field-label {{
    color: {FOREGROUND};
    padding: 1 0 0 0;
}}

ModalScreen Input {{
    background: {BORDER};
    color: {FOREGROUND};
    border: solid {SELECTION};
    padding: 0 1;
}}

ModalScreen Input:focus {{
    border: solid {LEVEL_0_COLOR};
}}

ModalScreen .info-text {{
    color: {COMMENT};
    text-align: center;
    padding: 0 0 1 0;
}}
"""


# Base Button Styles
BUTTON_BASE_CSS = f"""
Button {{
    background: {SELECTION};
    color: {FOREGROUND};
    border: solid {BORDER};
    margin: 0 1;
    min-width: 15;
    height: 3;
}}

Button:hover {{
    background: {BORDER};
    border: solid {LEVEL_0_COLOR};
}}

/* Success variant - confirm actions */
Button.success {{
    border: solid {LEVEL_1_COLOR};
}}

Button.success:hover {{
    background: {LEVEL_1_COLOR};
    color: {BACKGROUND};
}}

/* Error variant - cancel and destructive actions */
Button.error {{
    border: solid {LEVEL_2_COLOR};
}}

Button.error:hover {{
    background: {LEVEL_2_COLOR};
    color: {BACKGROUND};
}}
"""
