"""
Resize Manager - handle-based resizing of a single element.

Eight handles (nw, n, ne, e, se, s, sw, w). West and north handles move the
origin so the opposite edge stays put. Shift locks the aspect ratio captured
when the gesture began. Sizes never drop below the configured minimum.
"""

import logging
from typing import Optional

from src.edit.constants import MIN_HEIGHT, MIN_WIDTH, RESIZE_HANDLES
from src.edit.events import EventEmitter
from src.scene.model import Point, Rect
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)


class ResizeManager:
    """Tracks one resize gesture at a time and writes geometry to the scene."""

    def __init__(self, scene: SceneAccessor,
                 min_width: float = MIN_WIDTH, min_height: float = MIN_HEIGHT):
        self._scene = scene
        self.min_width = min_width
        self.min_height = min_height

        self._element_id: Optional[str] = None
        self._handle: Optional[str] = None
        self._start_point: Optional[Point] = None
        self._start_rect: Optional[Rect] = None
        self._current: Optional[Rect] = None
        self._aspect: Optional[float] = None
        self._preserve_aspect = False

        self.events = EventEmitter(['started', 'updated', 'ended', 'cancelled'])

    @property
    def is_active(self) -> bool:
        return self._element_id is not None

    @property
    def element_id(self) -> Optional[str]:
        return self._element_id

    @property
    def handle(self) -> Optional[str]:
        return self._handle

    @property
    def start_rect(self) -> Optional[Rect]:
        return self._start_rect

    def begin(self, element_id: str, handle: str, point: Point,
              preserve_aspect: bool = False) -> bool:
        if handle not in RESIZE_HANDLES:
            raise ValueError(f"Unknown resize handle: {handle}")
        element = self._scene.get_element(element_id)
        if element is None or element.locked:
            logger.debug(f"Resize ignored for missing or locked element {element_id}")
            return False

        rect = element.geometry
        self._element_id = element_id
        self._handle = handle
        self._start_point = point
        self._start_rect = rect
        self._current = rect
        self._aspect = rect.w / rect.h if rect.h else None
        self._preserve_aspect = preserve_aspect
        self.events.emit('started', {'element_id': element_id, 'handle': handle})
        return True

    def compute(self, point: Point, preserve_aspect: Optional[bool] = None) -> Optional[Rect]:
        """New parent-relative rect for the pointer position, without writing it."""
        if not self.is_active:
            return None
        if preserve_aspect is not None:
            self._preserve_aspect = preserve_aspect

        start = self._start_rect
        handle = self._handle
        dx = point[0] - self._start_point[0]
        dy = point[1] - self._start_point[1]

        w, h = start.w, start.h
        if 'e' in handle:
            w += dx
        if 'w' in handle:
            w -= dx
        if 's' in handle:
            h += dy
        if 'n' in handle:
            h -= dy

        if self._preserve_aspect and self._aspect:
            if 'e' in handle or 'w' in handle:
                h = w / self._aspect
            else:
                w = h * self._aspect

        w = max(self.min_width, w)
        h = max(self.min_height, h)

        x = start.right - w if 'w' in handle else start.x
        y = start.bottom - h if 'n' in handle else start.y
        return Rect(x, y, w, h)

    def update(self, point: Point, preserve_aspect: Optional[bool] = None) -> Optional[Rect]:
        rect = self.compute(point, preserve_aspect)
        if rect is None:
            return None
        self._scene.set_geometry(self._element_id, rect)
        self._current = rect
        self.events.emit('updated', {'element_id': self._element_id, 'rect': rect})
        return rect

    def _reset(self) -> None:
        self._element_id = None
        self._handle = None
        self._start_point = None
        self._start_rect = None
        self._current = None
        self._aspect = None
        self._preserve_aspect = False

    def end(self) -> Optional[Rect]:
        if not self.is_active:
            return None
        element_id, rect = self._element_id, self._current
        self._reset()
        self.events.emit('ended', {'element_id': element_id, 'rect': rect})
        return rect

    def cancel(self) -> Optional[Rect]:
        """Abort the gesture and put the start rect back."""
        if not self.is_active:
            return None
        element_id, rect = self._element_id, self._start_rect
        self._scene.set_geometry(element_id, rect)
        self._reset()
        logger.info(f"Resize of {element_id} cancelled")
        self.events.emit('cancelled', {'element_id': element_id, 'rect': rect})
        return rect

    def set_dimensions(self, element_id: str, width: float, height: float) -> Optional[Rect]:
        """Set an explicit size, keeping the origin. Minimums still apply."""
        element = self._scene.get_element(element_id)
        if element is None:
            logger.debug(f"set_dimensions skipped unknown element {element_id}")
            return None
        rect = Rect(element.geometry.x, element.geometry.y,
                    max(self.min_width, width), max(self.min_height, height))
        self._scene.set_geometry(element_id, rect)
        return rect
