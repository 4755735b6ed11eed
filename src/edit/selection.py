"""
Selection Model - which elements the user is currently operating on.

Holds an ordered, duplicate-free set of ids plus the mode tag of the last
selection gesture and an anchor for shift-range selection. Modifier keys are
interpreted by the caller (EditorController); this class only implements the
selection semantics.

Selectable means: unlocked, visible, and no hidden ancestor.
"""

import logging
from typing import Dict, Iterable, List, Literal, Optional

from src.edit.events import EventEmitter
from src.scene.model import Point, Rect
from src.scene.protocol import SceneAccessor

logger = logging.getLogger(__name__)

SelectionMode = Literal['none', 'single', 'toggle', 'range', 'all', 'marquee', 'multi']


def outermost_ids(scene: SceneAccessor, ids: Iterable[str]) -> List[str]:
    """Drop ids whose ancestor is also in ids, so nothing is moved twice."""
    ids = list(ids)
    chosen = set(ids)
    result = []
    for element_id in ids:
        parent_id = scene.get_parent(element_id)
        while parent_id is not None and parent_id not in chosen:
            parent_id = scene.get_parent(parent_id)
        if parent_id is None:
            result.append(element_id)
    return result


class SelectionModel:
    """Ordered selection set bound to a scene."""

    def __init__(self, scene: SceneAccessor):
        self._scene = scene
        self._selected: Dict[str, None] = {}
        self._mode: SelectionMode = 'none'
        self._anchor: Optional[str] = None

        # Marquee gesture state
        self._marquee_active = False
        self._marquee_origin: Optional[Point] = None
        self._marquee_scope: Optional[str] = None
        self._marquee_base: List[str] = []
        self._marquee_previous: List[str] = []

        self.events = EventEmitter(['changed'])

    # --- Read access ---

    @property
    def selected_ids(self) -> List[str]:
        return list(self._selected)

    @property
    def count(self) -> int:
        return len(self._selected)

    @property
    def mode(self) -> SelectionMode:
        return self._mode

    @property
    def anchor(self) -> Optional[str]:
        return self._anchor

    @property
    def primary(self) -> Optional[str]:
        """Most recently added id, used as the drag reference element."""
        return next(reversed(self._selected), None) if self._selected else None

    @property
    def is_marquee_active(self) -> bool:
        return self._marquee_active

    @property
    def marquee_origin(self) -> Optional[Point]:
        return self._marquee_origin

    def is_selected(self, element_id: str) -> bool:
        return element_id in self._selected

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    # --- Selectability ---

    def is_selectable(self, element_id: str) -> bool:
        element = self._scene.get_element(element_id)
        if element is None or element.locked or not element.visible:
            return False
        parent_id = element.parent_id
        while parent_id is not None:
            parent = self._scene.get_element(parent_id)
            if parent is None or not parent.visible:
                return False
            parent_id = parent.parent_id
        return True

    def selectable_ids(self) -> List[str]:
        """Selectable ids in depth-first pre-order of the scene hierarchy."""
        hidden = set()
        result = []
        for element in self._scene.get_all_elements():
            # Pre-order: parents are seen before their children
            if not element.visible or element.parent_id in hidden:
                hidden.add(element.id)
                continue
            if not element.locked:
                result.append(element.id)
        return result

    # --- Internal ---

    def _replace(self, ids: Iterable[str], mode: SelectionMode) -> None:
        new = dict.fromkeys(ids)
        changed = list(new) != list(self._selected)
        self._selected = new
        self._mode = mode if new else 'none'
        if changed:
            self._notify()

    def _notify(self) -> None:
        self.events.emit('changed', {
            'selected': self.selected_ids,
            'count': self.count,
            'mode': self._mode,
        })

    # --- Selection modes ---

    def select_single(self, element_id: str) -> bool:
        """Replace the selection with exactly this element."""
        if not self.is_selectable(element_id):
            logger.debug(f"select_single ignored non-selectable id {element_id}")
            return False
        self._anchor = element_id
        self._replace([element_id], 'single')
        return True

    def toggle(self, element_id: str) -> bool:
        """
        Add the element if absent, remove it if present.

        Returns:
            True if the element is selected afterwards
        """
        if element_id in self._selected:
            remaining = [i for i in self._selected if i != element_id]
            if self._anchor == element_id:
                self._anchor = remaining[-1] if remaining else None
            self._replace(remaining, 'toggle')
            return False
        if not self.is_selectable(element_id):
            logger.debug(f"toggle ignored non-selectable id {element_id}")
            return False
        self._anchor = element_id
        self._replace([*self._selected, element_id], 'toggle')
        return True

    def select_range(self, anchor_id: str, target_id: str) -> List[str]:
        """
        Select the inclusive run of selectable elements between two ids.

        The run is taken from depth-first traversal order, so argument order
        does not change the result.
        """
        order = self.selectable_ids()
        if anchor_id not in order or target_id not in order:
            logger.debug(f"select_range ignored: {anchor_id}..{target_id} not selectable")
            return self.selected_ids
        i, j = order.index(anchor_id), order.index(target_id)
        lo, hi = min(i, j), max(i, j)
        self._anchor = anchor_id
        self._replace(order[lo:hi + 1], 'range')
        return self.selected_ids

    def select_all(self) -> List[str]:
        self._replace(self.selectable_ids(), 'all')
        if self._selected and self._anchor not in self._selected:
            self._anchor = next(iter(self._selected))
        return self.selected_ids

    def select_many(self, element_ids: Iterable[str]) -> List[str]:
        """Replace the selection with the selectable subset of ids, order kept."""
        ids = [i for i in dict.fromkeys(element_ids) if self.is_selectable(i)]
        self._replace(ids, 'multi')
        if ids:
            self._anchor = ids[0]
        return self.selected_ids

    def clear(self) -> None:
        self._anchor = None
        self._replace([], 'none')

    # --- Marquee ---

    def begin_marquee(self, point: Point, additive: bool = False,
                      scope: Optional[str] = None) -> None:
        """
        Start a rubber-band selection.

        Args:
            point: Canvas-local start point
            additive: Union with the current selection instead of clearing it
            scope: Container whose children are candidates (None = canvas top level)
        """
        self._marquee_previous = self.selected_ids
        self._marquee_base = self.selected_ids if additive else []
        self._marquee_origin = point
        self._marquee_scope = scope
        self._marquee_active = True
        self._replace(self._marquee_base, 'marquee')
        self._mode = 'marquee'

    def marquee_candidates(self) -> List[str]:
        return [
            cid for cid in self._scene.get_children(self._marquee_scope)
            if self.is_selectable(cid)
        ]

    def update_marquee(self, rect: Rect) -> List[str]:
        """
        Recompute the selection from the marquee rect.

        Returns:
            Ids whose canvas-local AABB intersects rect (edges inclusive)
        """
        if not self._marquee_active:
            logger.debug("update_marquee called without begin_marquee")
            return []
        hits = [
            cid for cid in self.marquee_candidates()
            if self._scene.absolute_rect(cid).intersects(rect)
        ]
        self._replace([*self._marquee_base, *hits], 'marquee')
        self._mode = 'marquee'
        return hits

    def update_marquee_to(self, point: Point) -> List[str]:
        """Convenience for pointer streams: marquee spans origin to point."""
        if self._marquee_origin is None:
            return []
        return self.update_marquee(Rect.from_points(self._marquee_origin, point))

    def end_marquee(self) -> List[str]:
        self._marquee_active = False
        self._marquee_origin = None
        self._marquee_base = []
        self._marquee_previous = []
        if self._selected and self._anchor not in self._selected:
            self._anchor = next(iter(self._selected))
        return self.selected_ids

    def cancel_marquee(self) -> List[str]:
        """Abort the marquee and restore the selection from before it began."""
        if not self._marquee_active:
            return self.selected_ids
        previous = self._marquee_previous
        self.end_marquee()
        self._replace(previous, 'multi' if len(previous) > 1 else 'single')
        return self.selected_ids

    # --- Consistency ---

    def sync(self) -> List[str]:
        """
        Drop ids that are no longer selectable (deleted, locked or hidden).

        Returns:
            The ids that were dropped
        """
        dropped = [i for i in self._selected if not self.is_selectable(i)]
        if dropped:
            logger.debug(f"Selection dropped stale ids: {dropped}")
            self._replace([i for i in self._selected if i not in dropped], self._mode)
        if self._anchor is not None and self._scene.get_element(self._anchor) is None:
            self._anchor = None
        return dropped
