"""
Shared constants for the direct-manipulation editor.

These are the defaults; EditorSettings (src/config.py) can override most of
them from config.json or PAGEBUILDER_* environment variables.
"""

# Distance in pixels within which an edge snaps to a guide
SNAP_THRESHOLD = 5

# Space added around members when a group's bounds are computed
GROUP_PADDING = 10

# History ring size; oldest entries are evicted first
MAX_HISTORY_SIZE = 50

# Trailing debounce for coalescing drag/nudge streams into one history entry
HISTORY_DEBOUNCE_MS = 500

# Pointer travel in pixels before a press becomes a drag or marquee
DRAG_THRESHOLD = 5

# Resize floor
MIN_WIDTH = 20
MIN_HEIGHT = 20

# Grid snapping
GRID_SIZE = 10
MIN_GRID_SIZE = 5
MAX_GRID_SIZE = 50

# Offset applied to duplicated elements so they don't sit exactly on top
DUPLICATE_OFFSET = 10

# Default canvas
CANVAS_WIDTH = 1280
CANVAS_HEIGHT = 800

# Arrow-key nudge step (shift multiplies)
NUDGE_STEP = 1
NUDGE_STEP_LARGE = 10

RESIZE_HANDLES = ('nw', 'n', 'ne', 'e', 'se', 's', 'sw', 'w')
