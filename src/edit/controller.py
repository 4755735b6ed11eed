"""
Editor Controller - gesture state machine for direct manipulation.

Turns raw pointer streams from the UI into calls on the selection, guides,
resize and history managers:

    idle --down--> pressed --move past threshold--> dragging | marquee
    idle --begin_resize--> resizing
    any --up--> idle            (commit / finalize)
    any --cancel--> idle        (restore, no history)

Modifier keys are decoded by the UI layer and passed in as flags.
Geometry written during a drag is transient until pointer_up; cancel puts
the start geometry back without touching history.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Literal, Optional, Tuple

from src.edit.constants import DRAG_THRESHOLD
from src.edit.guides import Guide, SmartGuides
from src.edit.history import ActionMeta, UndoRedoManager
from src.edit.resize import ResizeManager
from src.edit.selection import SelectionModel, outermost_ids
from src.scene.model import Point, Rect
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)

GestureKind = Literal['idle', 'pressed', 'dragging', 'marquee', 'resizing']


@dataclass(frozen=True)
class GestureState:
    """Immutable snapshot of the current gesture."""
    kind: GestureKind = 'idle'
    pointer: Point = (0.0, 0.0)
    origin: Optional[Point] = None
    target_id: Optional[str] = None
    additive: bool = False
    marquee_rect: Optional[Rect] = None
    guides: Tuple[Guide, ...] = ()


class EditorController:
    """Single source of truth for the in-progress pointer gesture."""

    def __init__(self, scene: SceneAccessor, selection: SelectionModel,
                 guides: SmartGuides, resize: ResizeManager,
                 history: UndoRedoManager, drag_threshold: float = DRAG_THRESHOLD):
        self._scene = scene
        self._selection = selection
        self._guides = guides
        self._resize = resize
        self._history = history
        self.drag_threshold = drag_threshold

        self._state = GestureState()
        self._drag_start: Dict[str, Rect] = {}
        self._on_state_change: Optional[Callable[[GestureState], None]] = None

    @property
    def state(self) -> GestureState:
        return self._state

    def set_on_state_change(self, callback: Callable[[GestureState], None]):
        self._on_state_change = callback

    def _set_state(self, **changes) -> GestureState:
        self._state = replace(self._state, **changes)
        if self._on_state_change:
            self._on_state_change(self._state)
        return self._state

    def _reset(self, pointer: Optional[Point] = None) -> GestureState:
        self._drag_start = {}
        self._state = GestureState(pointer=pointer or self._state.pointer)
        if self._on_state_change:
            self._on_state_change(self._state)
        return self._state

    # --- Hit resolution ---

    def hit_target(self, element_id: str) -> str:
        """A click inside a group acts on the outermost enclosing group."""
        target = element_id
        parent_id = self._scene.get_parent(target)
        while parent_id is not None:
            parent = self._scene.get_element(parent_id)
            if parent is None or not parent.is_group:
                break
            target = parent_id
            parent_id = parent.parent_id
        return target

    # --- Pointer stream ---

    def pointer_down(self, point: Point, element_id: Optional[str] = None,
                     additive: bool = False, range_select: bool = False) -> GestureState:
        """
        Press on an element (click-select, arm drag) or on the background (arm marquee).

        Args:
            point: Canvas-local pointer position
            element_id: Element under the pointer, None for background
            additive: Toggle modifier (ctrl/cmd) held
            range_select: Range modifier (shift) held
        """
        if self._state.kind != 'idle':
            logger.debug(f"pointer_down ignored while {self._state.kind}")
            return self._state

        known = element_id is not None and self._scene.get_element(element_id) is not None
        target = self.hit_target(element_id) if known else None
        if target is not None and not self._selection.is_selectable(target):
            target = None

        if target is None:
            return self._set_state(kind='pressed', pointer=point, origin=point,
                                   target_id=None, additive=additive)

        if additive:
            if not self._selection.toggle(target):
                # Toggled off: nothing left to drag
                return self._set_state(pointer=point)
        elif range_select and self._selection.anchor:
            self._selection.select_range(self._selection.anchor, target)
        elif not self._selection.is_selected(target):
            self._selection.select_single(target)

        return self._set_state(kind='pressed', pointer=point, origin=point,
                               target_id=target, additive=additive)

    def pointer_move(self, point: Point, preserve_aspect: Optional[bool] = None) -> GestureState:
        kind = self._state.kind
        if kind == 'idle':
            return self._set_state(pointer=point)
        if kind == 'resizing':
            self._resize.update(point, preserve_aspect)
            return self._set_state(pointer=point)

        origin = self._state.origin
        if kind == 'pressed':
            if math.hypot(point[0] - origin[0], point[1] - origin[1]) <= self.drag_threshold:
                return self._set_state(pointer=point)
            if self._state.target_id is not None:
                self._start_drag()
                kind = 'dragging'
            else:
                self._selection.begin_marquee(origin, additive=self._state.additive)
                kind = 'marquee'

        if kind == 'dragging':
            guides = self._drag_to(point)
            return self._set_state(kind='dragging', pointer=point, guides=tuple(guides))

        rect = Rect.from_points(origin, point)
        self._selection.update_marquee(rect)
        return self._set_state(kind='marquee', pointer=point, marquee_rect=rect)

    def _start_drag(self) -> None:
        self._history.flush_pending()
        ids = outermost_ids(self._scene, self._selection.selected_ids)
        self._drag_start = {i: self._scene.get_geometry(i) for i in ids}
        logger.debug(f"Drag started for {len(ids)} elements")

    def _drag_to(self, point: Point) -> List[Guide]:
        origin = self._state.origin
        dx, dy = point[0] - origin[0], point[1] - origin[1]

        primary = self._state.target_id
        if primary not in self._drag_start:
            primary = next(iter(self._drag_start), None)
        if primary is None:
            return []

        start = self._drag_start[primary]
        # Elements moving together never snap to each other
        dragged = list(self._drag_start)
        snapped = self._guides.snap_to_guides(primary, start.translated(dx, dy), exclude=dragged)
        dx, dy = snapped.x - start.x, snapped.y - start.y

        for element_id, rect in self._drag_start.items():
            self._scene.set_geometry(element_id, rect.translated(dx, dy))
        return self._guides.update(primary, self._scene.absolute_rect(primary), exclude=dragged)

    def pointer_up(self, point: Optional[Point] = None) -> GestureState:
        kind = self._state.kind
        pointer = point or self._state.pointer

        if kind == 'pressed':
            if self._state.target_id is None and not self._state.additive:
                self._selection.clear()
        elif kind == 'dragging':
            self._guides.clear()
            moved = [
                i for i, rect in self._drag_start.items()
                if self._scene.get_geometry(i) != rect
            ]
            if moved:
                self._history.schedule_save(
                    ActionMeta('move', f"Moved {len(moved)} elements", tuple(moved))
                )
        elif kind == 'marquee':
            self._selection.end_marquee()
        elif kind == 'resizing':
            self._finish_resize()

        return self._reset(pointer)

    # --- Resize ---

    def begin_resize(self, element_id: str, handle: str, point: Point,
                     preserve_aspect: bool = False) -> GestureState:
        if self._state.kind != 'idle':
            logger.debug(f"begin_resize ignored while {self._state.kind}")
            return self._state
        self._history.flush_pending()
        if not self._resize.begin(element_id, handle, point, preserve_aspect):
            return self._state
        return self._set_state(kind='resizing', pointer=point, origin=point, target_id=element_id)

    def _finish_resize(self) -> None:
        start = self._resize.start_rect
        element_id = self._resize.element_id
        final = self._resize.end()
        if final is not None and final != start:
            self._history.commit('resize', f"Resized to {final.w:.0f} x {final.h:.0f}", [element_id])

    # --- Cancel ---

    def cancel(self) -> GestureState:
        """Escape: undo the transient effects of the current gesture."""
        kind = self._state.kind
        if kind == 'dragging':
            for element_id, rect in self._drag_start.items():
                if self._scene.get_element(element_id) is not None:
                    self._scene.set_geometry(element_id, rect)
            logger.info("Drag cancelled")
        elif kind == 'marquee':
            self._selection.cancel_marquee()
        elif kind == 'resizing':
            self._resize.cancel()
        self._guides.clear()
        return self._reset()
