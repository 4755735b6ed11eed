"""
Smart Guides - transient alignment lines and snapping while dragging.

For the dragged element, every visible, unlocked sibling and the canvas are
tested on three same-edge pairs per axis:
- vertical guides: left/left, right/right, center-x/center-x
- horizontal guides: top/top, bottom/bottom, center-y/center-y

Snapping is looser: any edge or center of the dragged element may snap to any
snap point from AlignmentEngine.snap_points, so a left edge snaps onto a
neighbour's right edge.

Guides are reported in canvas-local coordinates and are recomputed on every
drag frame. They are never persisted.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional, Tuple

from src.edit.alignment import AlignmentEngine
from src.edit.constants import GRID_SIZE, MAX_GRID_SIZE, MIN_GRID_SIZE
from src.edit.events import EventEmitter
from src.scene.model import Rect
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)

Orientation = Literal['vertical', 'horizontal']


@dataclass(frozen=True)
class Guide:
    """A full-span guide line. source_id is None for canvas guides."""
    orientation: Orientation
    position: float
    source_id: Optional[str] = None


def _x_edges(r: Rect) -> Tuple[float, float, float]:
    return (r.left, r.right, r.center_x)


def _y_edges(r: Rect) -> Tuple[float, float, float]:
    return (r.top, r.bottom, r.center_y)


class SmartGuides:
    """Computes guides and snapped positions for a dragged element."""

    def __init__(self, scene: SceneAccessor, alignment: AlignmentEngine,
                 grid_size: int = GRID_SIZE, grid_enabled: bool = False):
        self._scene = scene
        self._alignment = alignment
        self.enabled = True
        self.snap_enabled = True
        self.grid_enabled = grid_enabled
        self.grid_size = self._clamp_grid(grid_size)
        self._guides: List[Guide] = []
        self.events = EventEmitter(['updated', 'cleared'])

    @property
    def guides(self) -> List[Guide]:
        return list(self._guides)

    # --- Targets ---

    def _targets(self, element_id: str,
                 exclude: Iterable[str] = ()) -> List[Tuple[Optional[str], Rect]]:
        """Siblings (back to front) then the canvas, all canvas-local."""
        skip = set(exclude)
        parent_id = self._scene.get_parent(element_id)
        targets: List[Tuple[Optional[str], Rect]] = []
        for sibling_id in self._scene.get_children(parent_id):
            if sibling_id == element_id or sibling_id in skip:
                continue
            sibling = self._scene.get_element(sibling_id)
            if sibling is None or sibling.locked or not sibling.visible:
                continue
            targets.append((sibling_id, self._scene.absolute_rect(sibling_id)))
        targets.append((None, self._scene.canvas_rect))
        return targets

    # --- Guides ---

    def compute_guides(self, element_id: str, rect: Optional[Rect] = None,
                       exclude: Iterable[str] = ()) -> List[Guide]:
        """
        Guides for an element at a canvas-local rect (defaults to its current one).

        Pure: does not touch the stored guide list.
        """
        if not self.enabled:
            return []
        rect = rect or self._scene.absolute_rect(element_id)
        found: Dict[Tuple[str, float], Guide] = {}
        for source_id, target in self._targets(element_id, exclude):
            for mine, theirs in zip(_x_edges(rect), _x_edges(target)):
                if self._alignment.should_snap(mine, theirs):
                    found.setdefault(('vertical', theirs), Guide('vertical', theirs, source_id))
            for mine, theirs in zip(_y_edges(rect), _y_edges(target)):
                if self._alignment.should_snap(mine, theirs):
                    found.setdefault(('horizontal', theirs), Guide('horizontal', theirs, source_id))
        return list(found.values())

    def update(self, element_id: str, rect: Optional[Rect] = None,
               exclude: Iterable[str] = ()) -> List[Guide]:
        """Recompute guides for one drag frame and publish them."""
        self._guides = self.compute_guides(element_id, rect, exclude)
        self.events.emit('updated', {'element_id': element_id, 'guides': self.guides})
        return self.guides

    def clear(self) -> None:
        had_guides = bool(self._guides)
        self._guides = []
        if had_guides:
            self.events.emit('cleared')

    # --- Snapping ---

    def _first_match(self, edges: Tuple[float, float, float],
                     candidates: List[Tuple[float, Optional[str]]]) -> Optional[float]:
        for value, _ in candidates:
            for mine in edges:
                if self._alignment.should_snap(mine, value):
                    return self._alignment.snap(mine, value) - mine
        return None

    def snap_to_guides(self, element_id: str, proposed: Rect,
                       exclude: Iterable[str] = ()) -> Rect:
        """
        Snap a proposed parent-relative rect for element_id.

        Any edge or center of the element may snap to any snap point of a
        sibling or the canvas, so butting one element against another snaps
        too. The first candidate in scan order wins on each axis (siblings
        before the canvas). Axes with no match fall back to the grid when it
        is enabled.
        """
        if not self.snap_enabled:
            return proposed
        ox, oy = self._scene.parent_origin(self._scene.get_parent(element_id))
        absolute = proposed.translated(ox, oy)
        siblings = {
            source_id: rect for source_id, rect in self._targets(element_id, exclude)
            if source_id is not None
        }
        points = self._alignment.snap_points(element_id, siblings, self._scene.canvas_rect)

        dx = self._first_match(_x_edges(absolute), points['x'])
        dy = self._first_match(_y_edges(absolute), points['y'])

        x, y = proposed.x, proposed.y
        if dx is not None:
            x += dx
        elif self.grid_enabled:
            x = self.snap_to_grid(absolute.x) - ox
        if dy is not None:
            y += dy
        elif self.grid_enabled:
            y = self.snap_to_grid(absolute.y) - oy
        return proposed.moved_to(x, y)

    def snap_to_grid(self, value: float) -> float:
        if not self.grid_enabled:
            return value
        return round(value / self.grid_size) * self.grid_size

    # --- Toggles ---

    def enable(self) -> None:
        self.enabled = True

    def disable(self) -> None:
        self.enabled = False
        self.clear()

    def toggle(self) -> bool:
        if self.enabled:
            self.disable()
        else:
            self.enable()
        return self.enabled

    def toggle_snap(self) -> bool:
        self.snap_enabled = not self.snap_enabled
        return self.snap_enabled

    def toggle_grid(self) -> bool:
        self.grid_enabled = not self.grid_enabled
        return self.grid_enabled

    @staticmethod
    def _clamp_grid(size: float) -> int:
        return int(max(MIN_GRID_SIZE, min(MAX_GRID_SIZE, size)))

    def set_grid_size(self, size: float) -> int:
        self.grid_size = self._clamp_grid(size)
        logger.debug(f"Grid size set to {self.grid_size}")
        return self.grid_size
