"""One Monokai color theme for TaskTree.

All UI components reference these constants via f-string interpolation in
their CSS definitions, so this module is the single source of truth for the
application's colors.

Color Categories
----------------
- **Base colors**: Background, foreground, selection, borders
- **Hierarchy colors**: Depth-specific accent colors with algorithmic fallback
- **Status colors**: Completion and priority
- **Interactive states**: Modal overlays, hover effects

Usage in Components
-------------------
    from tasktree.ui.theme import BACKGROUND, LEVEL_0_COLOR

    class MyWidget(Widget):
        DEFAULT_CSS = f'''
        MyWidget {{
            background: {BACKGROUND};
            border: thick {LEVEL_0_COLOR};
        }}
        '''
"""

import colorsys

from rich.style import Style

from tasktree.models import Priority


# ============================================================================
# BASE COLORS
# ============================================================================

BACKGROUND = "#272822"  # Main application background (dark charcoal)
FOREGROUND = "#F8F8F2"  # Primary text color (off-white)
SELECTION = "#49483E"   # Selected item background (medium gray)
COMMENT = "#75715E"     # Secondary/dimmed text (muted brown-gray)
BORDER = "#3E3D32"      # Borders and dividers (dark gray-green)


# ============================================================================
# HIERARCHY COLORS
# ============================================================================
# Depth-specific accent colors. A task with several parents can be shown at
# several depths; each occurrence takes the color of its own depth.

LEVEL_COLORS = [
    "#66D9EF",  # Depth 0: Cyan - root tasks
    "#A6E22E",  # Depth 1: Green
    "#F92672",  # Depth 2: Pink/Magenta
    "#F3C300",  # Depth 3: Vivid Yellow
    "#875692",  # Depth 4: Strong Purple
    "#F38400",  # Depth 5: Vivid Orange
    "#A1CAF1",  # Depth 6: Very Light Blue
    "#BE0032",  # Depth 7: Vivid Red
]

LEVEL_0_COLOR = LEVEL_COLORS[0]
LEVEL_1_COLOR = LEVEL_COLORS[1]
LEVEL_2_COLOR = LEVEL_COLORS[2]


# ============================================================================
# ADDITIONAL UI COLORS
# ============================================================================

YELLOW = "#E6DB74"   # Highlights
ORANGE = "#FD971F"   # Warnings
RED = "#F92672"      # Errors and destructive actions
GREEN = "#A6E22E"    # Confirmations
PURPLE = "#AE81FF"   # Tags


# ============================================================================
# STATUS COLORS
# ============================================================================

COMPLETE_COLOR = COMMENT  # Dimmed gray for completed tasks
TAG_COLOR = PURPLE

PRIORITY_COLORS = {
    Priority.LOW: GREEN,
    Priority.MEDIUM: YELLOW,
    Priority.HIGH: RED,
}


# ============================================================================
# INTERACTION STATES
# ============================================================================

MODAL_OVERLAY_BG = "#27282280"  # Semi-transparent dark overlay (50% opacity)
HOVER_OPACITY = "20"            # Hover effect transparency (hex: ~12% opacity)


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def generate_hsl_color(level: int) -> str:
    """Generate a color for deep nesting using the golden ratio method.

    Steps through hue space by the golden ratio conjugate so consecutive
    depths stay visually distinct; saturation and lightness are fixed for
    visibility on a dark background.

    Args:
        level: The nesting depth (normally beyond LEVEL_COLORS)

    Returns:
        Hex color string (e.g., '#A1B2C3')
    """
    golden_ratio_conjugate = 0.618033988749895
    hue = (0.5 + level * golden_ratio_conjugate) % 1.0

    # colorsys uses HLS ordering
    r, g, b = colorsys.hls_to_rgb(hue, 0.6, 0.8)
    return f"#{int(r * 255):02x}{int(g * 255):02x}{int(b * 255):02x}"


def get_level_color(level: int) -> str:
    """Get the accent color for a nesting depth.

    Args:
        level: Depth of the task occurrence in the tree (0 = root)

    Returns:
        Hex color; FOREGROUND for negative depths
    """
    if level < 0:
        return FOREGROUND
    if level < len(LEVEL_COLORS):
        return LEVEL_COLORS[level]
    return generate_hsl_color(level)


def get_level_style(level: int) -> Style:
    """Rich Style wrapping get_level_color()."""
    return Style(color=get_level_color(level))


def get_priority_color(priority: Priority) -> str:
    """Color of the priority badge."""
    return PRIORITY_COLORS.get(priority, YELLOW)


def with_alpha(color: str, alpha: str) -> str:
    """Append a two-digit hex alpha channel to a hex color.

    Examples:
        >>> with_alpha(SELECTION, HOVER_OPACITY)
        '#49483E20'
    """
    return f"{color}{alpha}"
