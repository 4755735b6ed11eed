"""
Direct-manipulation editing engine for the page builder.

This package provides the editor core:
- SelectionModel: Which elements are selected, and how (single/toggle/range/marquee)
- AlignmentEngine: Align, distribute and snap geometry
- SmartGuides: Drag-time alignment guides and snapping
- GroupManager: Composite group elements
- UndoRedoManager: Snapshot history with debounce
- BatchOperations: User commands over the selection
- ResizeManager / EditorController: Pointer gestures

Usage:
    from src.edit.session import create_editor_session
    from src.edit.handlers import setup_editor_handlers
"""

from src.edit.constants import (
    SNAP_THRESHOLD,
    GROUP_PADDING,
    MAX_HISTORY_SIZE,
    HISTORY_DEBOUNCE_MS,
    DRAG_THRESHOLD,
)
from src.edit.events import EventEmitter
from src.edit.selection import SelectionModel
from src.edit.alignment import AlignmentEngine
from src.edit.guides import Guide, SmartGuides
from src.edit.groups import GroupManager
from src.edit.history import ActionMeta, HistoryEntry, UndoRedoManager
from src.edit.resize import ResizeManager
from src.edit.batch import BatchOperations, OperationResult
from src.edit.controller import EditorController, GestureState

__all__ = [
    'EventEmitter',
    'SelectionModel',
    'AlignmentEngine',
    'Guide',
    'SmartGuides',
    'GroupManager',
    'ActionMeta',
    'HistoryEntry',
    'UndoRedoManager',
    'ResizeManager',
    'BatchOperations',
    'OperationResult',
    'EditorController',
    'GestureState',
    'SNAP_THRESHOLD',
    'GROUP_PADDING',
    'MAX_HISTORY_SIZE',
    'HISTORY_DEBOUNCE_MS',
    'DRAG_THRESHOLD',
]
