"""
Alignment Engine - pure geometry for align, distribute and snap tests.

All functions work on an explicit mapping of element id -> Rect. Callers pass
canvas-local (absolute) rects so that elements living in different frames are
compared correctly; the returned values are (dx, dy) offsets, which are the
same in every frame and can be added straight onto parent-relative geometry.
"""

import logging
from typing import Dict, Iterable, List, Literal, Mapping, Optional, Tuple

from src.edit.constants import SNAP_THRESHOLD
from src.scene.model import Rect

logger = logging.getLogger(__name__)

AlignMode = Literal['left', 'right', 'top', 'bottom', 'center-horizontal', 'center-vertical']
Axis = Literal['horizontal', 'vertical']
Offsets = Dict[str, Tuple[float, float]]

# Alternate names accepted from toolbars and keyboard shortcuts
ALIGN_ALIASES = {
    'center': 'center-horizontal',
    'horizontal-center': 'center-horizontal',
    'middle': 'center-vertical',
    'vertical-center': 'center-vertical',
}
ALIGN_MODES = ('left', 'right', 'top', 'bottom', 'center-horizontal', 'center-vertical')
DISTRIBUTE_AXES = ('horizontal', 'vertical')

MIN_ALIGN = 2
MIN_DISTRIBUTE = 3


def normalize_align_mode(mode: str) -> str:
    """Resolve aliases. Raises ValueError for unknown modes."""
    resolved = ALIGN_ALIASES.get(mode, mode)
    if resolved not in ALIGN_MODES:
        raise ValueError(f"Unknown alignment mode: {mode}")
    return resolved


class AlignmentEngine:
    """Stateless alignment calculations; only the snap threshold is configurable."""

    def __init__(self, snap_threshold: float = SNAP_THRESHOLD):
        self.snap_threshold = snap_threshold

    # --- Bounds ---

    @staticmethod
    def bounds(rects: Iterable[Rect]) -> Optional[Rect]:
        """min(left), min(top), max(right), max(bottom) over all rects."""
        return Rect.union(rects)

    # --- Align ---

    def align(self, rects: Mapping[str, Rect], mode: str) -> Offsets:
        """
        Compute per-element offsets that line the elements up on one edge or center.

        Args:
            rects: id -> canvas-local rect
            mode: One of ALIGN_MODES or an alias

        Returns:
            {id: (dx, dy)}; empty when fewer than 2 elements are given
        """
        mode = normalize_align_mode(mode)
        if len(rects) < MIN_ALIGN:
            logger.warning(f"Need at least {MIN_ALIGN} elements to align, got {len(rects)}")
            return {}

        box = self.bounds(rects.values())
        offsets: Offsets = {}
        for element_id, r in rects.items():
            if mode == 'left':
                offsets[element_id] = (box.left - r.left, 0.0)
            elif mode == 'right':
                offsets[element_id] = (box.right - r.right, 0.0)
            elif mode == 'top':
                offsets[element_id] = (0.0, box.top - r.top)
            elif mode == 'bottom':
                offsets[element_id] = (0.0, box.bottom - r.bottom)
            elif mode == 'center-horizontal':
                offsets[element_id] = (box.center_x - r.center_x, 0.0)
            else:
                offsets[element_id] = (0.0, box.center_y - r.center_y)
        return offsets

    # --- Distribute ---

    def distribute(self, rects: Mapping[str, Rect], axis: str) -> Offsets:
        """
        Space elements evenly between the first and last along an axis.

        Elements are sorted by leading edge. The outermost two stay put; the
        rest are walked so each leading edge sits at previous trailing + gap.
        When the elements are wider than the span the gap is negative and
        they overlap.
        """
        if axis not in DISTRIBUTE_AXES:
            raise ValueError(f"Unknown distribute axis: {axis}")
        if len(rects) < MIN_DISTRIBUTE:
            logger.warning(
                f"Need at least {MIN_DISTRIBUTE} elements to distribute, got {len(rects)}"
            )
            return {}

        horizontal = axis == 'horizontal'

        def leading(r: Rect) -> float:
            return r.left if horizontal else r.top

        def size(r: Rect) -> float:
            return r.w if horizontal else r.h

        ordered = sorted(rects.items(), key=lambda item: leading(item[1]))
        first, last = ordered[0][1], ordered[-1][1]
        span = (leading(last) + size(last)) - leading(first)
        gap = (span - sum(size(r) for _, r in ordered)) / (len(ordered) - 1)

        offsets: Offsets = {}
        cursor = leading(first)
        for element_id, r in ordered:
            delta = cursor - leading(r)
            offsets[element_id] = (delta, 0.0) if horizontal else (0.0, delta)
            cursor += size(r) + gap
        return offsets

    # --- Snapping ---

    def should_snap(self, value: float, target: float) -> bool:
        return abs(value - target) <= self.snap_threshold

    def snap(self, value: float, target: float) -> float:
        return target if self.should_snap(value, target) else value

    def snap_points(self, element_id: Optional[str], rects: Mapping[str, Rect],
                    canvas: Rect) -> Dict[str, List[Tuple[float, Optional[str]]]]:
        """
        Candidate snap coordinates per axis, each tagged with its source id.

        Other elements come first (left, right, center), then the canvas
        edges and center with source None.
        """
        points: Dict[str, List[Tuple[float, Optional[str]]]] = {'x': [], 'y': []}
        for other_id, r in rects.items():
            if other_id == element_id:
                continue
            points['x'].extend([(r.left, other_id), (r.right, other_id), (r.center_x, other_id)])
            points['y'].extend([(r.top, other_id), (r.bottom, other_id), (r.center_y, other_id)])
        points['x'].extend([(canvas.left, None), (canvas.right, None), (canvas.center_x, None)])
        points['y'].extend([(canvas.top, None), (canvas.bottom, None), (canvas.center_y, None)])
        return points
