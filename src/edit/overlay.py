"""
Edit Overlay - lightweight HTML layer for gesture feedback.

Sits on top of the canvas and shows the transient parts of a gesture:
smart guides and the marquee rectangle. These change every pointer frame,
so they are plain absolutely-positioned divs that are moved in place instead
of re-rendering the scene.
"""

from typing import List, Optional

from nicegui import ui

from src.edit.controller import GestureState
from src.edit.guides import Guide
from src.scene.model import Rect

GUIDE_COLOR = '#ec4899'
MARQUEE_STYLE = 'border: 1px dashed #3b82f6; background: rgba(59, 130, 246, 0.08);'


class EditOverlay:
    """Renders guides and the marquee for the current GestureState."""

    def __init__(self, width: float, height: float):
        self._width = width
        self._height = height
        self._layer: Optional[ui.element] = None
        self._marquee: Optional[ui.element] = None
        self._guide_elements: List[ui.element] = []

    def setup(self) -> None:
        """Create the overlay DOM. Call inside the canvas container."""
        self._layer = ui.element('div').style(
            f'position: absolute; left: 0; top: 0; width: {self._width}px; '
            f'height: {self._height}px; pointer-events: none; z-index: 50;'
        )
        with self._layer:
            self._marquee = ui.element('div').style(f'position: absolute; {MARQUEE_STYLE}')
        self._marquee.set_visibility(False)

    def _guide_style(self, guide: Guide) -> str:
        if guide.orientation == 'vertical':
            return (f'position: absolute; left: {guide.position}px; top: 0; '
                    f'width: 1px; height: {self._height}px; background: {GUIDE_COLOR};')
        return (f'position: absolute; top: {guide.position}px; left: 0; '
                f'height: 1px; width: {self._width}px; background: {GUIDE_COLOR};')

    def _show_guides(self, guides) -> None:
        # Grow the pool on demand and hide what is not needed this frame
        while len(self._guide_elements) < len(guides):
            with self._layer:
                self._guide_elements.append(ui.element('div'))
        for i, element in enumerate(self._guide_elements):
            if i < len(guides):
                element.style(replace=self._guide_style(guides[i]))
                element.set_visibility(True)
            else:
                element.set_visibility(False)

    def _show_marquee(self, rect: Optional[Rect]) -> None:
        if rect is None:
            self._marquee.set_visibility(False)
            return
        self._marquee.style(
            replace=f'position: absolute; left: {rect.x}px; top: {rect.y}px; '
                    f'width: {rect.w}px; height: {rect.h}px; {MARQUEE_STYLE}'
        )
        self._marquee.set_visibility(True)

    def update(self, state: GestureState) -> None:
        if self._layer is None:
            return
        self._show_guides(state.guides if state.kind == 'dragging' else ())
        self._show_marquee(state.marquee_rect if state.kind == 'marquee' else None)
