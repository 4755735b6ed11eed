"""
SceneAccessor Protocol Definition.

The editing engine never touches rendered markup directly. Everything it
needs from the page being edited goes through this interface, which the
in-memory scene (and any browser-backed adapter) implements.
"""

from typing import Protocol, Dict, Any, List, Optional, runtime_checkable

from src.scene.model import Element, Point, Rect


@runtime_checkable
class SceneAccessor(Protocol):
    """
    Abstract protocol for the scene collaborator.

    Mutating methods raise KeyError for ids that do not resolve; read methods
    return None instead. Callers in the editing engine treat both as
    "not found" and skip the id.
    """

    # --- Canvas ---

    @property
    def canvas_rect(self) -> Rect:
        """Return the canvas bounds in canvas-local coordinates (origin 0,0)."""
        ...

    # --- Lookup ---

    def get_element(self, element_id: str) -> Optional[Element]:
        """
        Return a copy of the element, or None if the id is unknown.

        Mutating the returned copy has no effect on the scene.
        """
        ...

    def get_all_elements(self) -> List[Element]:
        """Return every element in stable depth-first traversal order."""
        ...

    def get_children(self, parent_id: Optional[str]) -> List[str]:
        """
        Return the ordered child ids of a container (back to front).

        Args:
            parent_id: Container id, or None for the canvas top level
        """
        ...

    # --- Geometry ---

    def get_geometry(self, element_id: str) -> Rect:
        """Return the parent-relative geometry of an element."""
        ...

    def set_geometry(self, element_id: str, rect: Rect) -> None:
        """Replace the parent-relative geometry of an element."""
        ...

    def absolute_rect(self, element_id: str) -> Rect:
        """Return the element's geometry converted to canvas-local coordinates."""
        ...

    def parent_origin(self, parent_id: Optional[str]) -> Point:
        """Return the canvas-local origin of a container's coordinate frame."""
        ...

    # --- Hierarchy ---

    def get_parent(self, element_id: str) -> Optional[str]:
        """Return the parent id (None for top-level elements)."""
        ...

    def set_parent(self, element_id: str, parent_id: Optional[str],
                   index: Optional[int] = None) -> None:
        """
        Reparent an element without touching its geometry.

        Args:
            element_id: Element to move
            parent_id: New container, or None for the canvas top level
            index: Sibling slot in the new container (None appends on top)

        Raises:
            ValueError if the move would make an element its own ancestor.
        """
        ...

    def move_in_parent(self, element_id: str, index: int) -> None:
        """Reorder an element among its siblings (0 is the back)."""
        ...

    # --- Flags and properties ---

    def set_locked(self, element_id: str, locked: bool) -> None:
        ...

    def set_visible(self, element_id: str, visible: bool) -> None:
        ...

    def set_style(self, element_id: str, prop: str, value: Any) -> None:
        ...

    def set_name(self, element_id: str, name: str) -> None:
        ...

    # --- Lifecycle ---

    def generate_id(self, prefix: str = "el") -> str:
        """Return an id not used by any element in the scene."""
        ...

    def add_element(self, element: Element, index: Optional[int] = None) -> str:
        """
        Insert an element under element.parent_id.

        Returns:
            The element id
        """
        ...

    def remove_element(self, element_id: str) -> List[str]:
        """
        Remove an element and its whole subtree.

        Returns:
            Ids of every removed element
        """
        ...

    # --- Serialization ---

    def serialize(self) -> Dict[str, Any]:
        """Return a JSON-compatible snapshot of the full scene."""
        ...

    def restore(self, snapshot: Dict[str, Any]) -> None:
        """
        Replace the scene content with a snapshot from serialize().

        Raises:
            ValueError if the snapshot is malformed. The scene is left
            unchanged in that case.
        """
        ...
