"""
In-memory scene used by the editor and its tests.

Implements the SceneAccessor protocol on top of a NetworkX DiGraph:
- Nodes are element ids plus a synthetic canvas root.
- Edges point from container to child.
- Successor order is sibling z-order (first = back, last = front).

NetworkX keeps successors in insertion order, so reordering a container is
done by dropping its out-edges and re-adding them in the new order.
"""

import logging
from typing import Any, Dict, List, Optional

import networkx as nx

from src.scene.model import ELEMENT_KIND, Element, Point, Rect

logger = logging.getLogger(__name__)

ROOT = "__canvas__"
SNAPSHOT_VERSION = 1


class InMemoryScene:
    """Scene accessor backed by a dict of elements and a NetworkX hierarchy."""

    def __init__(self, width: float = 1280, height: float = 800):
        self._canvas = Rect(0.0, 0.0, float(width), float(height))
        self._elements: Dict[str, Element] = {}
        self._tree = nx.DiGraph()
        self._tree.add_node(ROOT)
        self._id_counter = 0

    # --- Canvas ---

    @property
    def canvas_rect(self) -> Rect:
        return self._canvas

    def resize_canvas(self, width: float, height: float) -> None:
        self._canvas = Rect(0.0, 0.0, float(width), float(height))

    # --- Internal helpers ---

    def _require(self, element_id: str) -> Element:
        element = self._elements.get(element_id)
        if element is None:
            raise KeyError(f"Unknown element id: {element_id}")
        return element

    @staticmethod
    def _node(parent_id: Optional[str]) -> str:
        return ROOT if parent_id is None else parent_id

    def _set_children_order(self, node: str, children: List[str]) -> None:
        self._tree.remove_edges_from(list(self._tree.out_edges(node)))
        self._tree.add_edges_from((node, child) for child in children)

    def _insert_child(self, node: str, child: str, index: Optional[int]) -> None:
        children = [c for c in self._tree.successors(node) if c != child]
        if index is None or index >= len(children):
            children.append(child)
        else:
            children.insert(max(0, index), child)
        self._set_children_order(node, children)

    # --- Lookup ---

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def get_element(self, element_id: str) -> Optional[Element]:
        element = self._elements.get(element_id)
        return element.copy() if element else None

    def get_all_elements(self) -> List[Element]:
        return [
            self._elements[node].copy()
            for node in nx.dfs_preorder_nodes(self._tree, ROOT)
            if node != ROOT
        ]

    def get_children(self, parent_id: Optional[str]) -> List[str]:
        node = self._node(parent_id)
        if node not in self._tree:
            return []
        return list(self._tree.successors(node))

    def get_ancestors(self, element_id: str) -> List[str]:
        """Return ancestor ids, nearest first (canvas root excluded)."""
        self._require(element_id)
        chain = []
        parent = self._elements[element_id].parent_id
        while parent is not None:
            chain.append(parent)
            parent = self._elements[parent].parent_id
        return chain

    # --- Geometry ---

    def get_geometry(self, element_id: str) -> Rect:
        return self._require(element_id).geometry

    def set_geometry(self, element_id: str, rect: Rect) -> None:
        self._require(element_id).geometry = rect

    def parent_origin(self, parent_id: Optional[str]) -> Point:
        ox, oy = 0.0, 0.0
        current = parent_id
        while current is not None:
            element = self._require(current)
            ox += element.geometry.x
            oy += element.geometry.y
            current = element.parent_id
        return (ox, oy)

    def absolute_rect(self, element_id: str) -> Rect:
        element = self._require(element_id)
        ox, oy = self.parent_origin(element.parent_id)
        return element.geometry.translated(ox, oy)

    # --- Hierarchy ---

    def get_parent(self, element_id: str) -> Optional[str]:
        return self._require(element_id).parent_id

    def set_parent(self, element_id: str, parent_id: Optional[str],
                   index: Optional[int] = None) -> None:
        element = self._require(element_id)
        if parent_id is not None:
            self._require(parent_id)
            if parent_id == element_id or parent_id in nx.descendants(self._tree, element_id):
                raise ValueError(
                    f"Cannot move {element_id} into its own subtree ({parent_id})"
                )
        old_node = self._node(element.parent_id)
        if self._tree.has_edge(old_node, element_id):
            self._tree.remove_edge(old_node, element_id)
        self._insert_child(self._node(parent_id), element_id, index)
        element.parent_id = parent_id

    def move_in_parent(self, element_id: str, index: int) -> None:
        element = self._require(element_id)
        self._insert_child(self._node(element.parent_id), element_id, index)

    def index_in_parent(self, element_id: str) -> int:
        element = self._require(element_id)
        return self.get_children(element.parent_id).index(element_id)

    # --- Flags and properties ---

    def set_locked(self, element_id: str, locked: bool) -> None:
        self._require(element_id).locked = bool(locked)

    def set_visible(self, element_id: str, visible: bool) -> None:
        self._require(element_id).visible = bool(visible)

    def set_style(self, element_id: str, prop: str, value: Any) -> None:
        element = self._require(element_id)
        if value is None:
            element.style.pop(prop, None)
        else:
            element.style[prop] = value

    def set_name(self, element_id: str, name: str) -> None:
        self._require(element_id).name = name

    # --- Lifecycle ---

    def generate_id(self, prefix: str = "el") -> str:
        while True:
            self._id_counter += 1
            candidate = f"{prefix}-{self._id_counter}"
            if candidate not in self._elements:
                return candidate

    def add_element(self, element: Element, index: Optional[int] = None) -> str:
        if element.id in self._elements:
            raise ValueError(f"Duplicate element id: {element.id}")
        if element.parent_id is not None:
            self._require(element.parent_id)
        stored = element.copy()
        self._elements[stored.id] = stored
        self._tree.add_node(stored.id)
        self._insert_child(self._node(stored.parent_id), stored.id, index)
        return stored.id

    def create_element(self, x: float, y: float, w: float, h: float,
                       parent_id: Optional[str] = None, name: str = "",
                       element_id: Optional[str] = None,
                       kind: str = ELEMENT_KIND, **style: Any) -> str:
        """Factory used by the UI and tests to drop a new element on the canvas."""
        element = Element(
            id=element_id or self.generate_id(),
            geometry=Rect(float(x), float(y), float(w), float(h)),
            parent_id=parent_id,
            kind=kind,
            name=name,
            style=dict(style),
        )
        return self.add_element(element)

    def remove_element(self, element_id: str) -> List[str]:
        self._require(element_id)
        removed = list(nx.dfs_preorder_nodes(self._tree, element_id))
        self._tree.remove_nodes_from(removed)
        for rid in removed:
            self._elements.pop(rid, None)
        return removed

    # --- Serialization ---

    def serialize(self) -> Dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "canvas": self._canvas.to_dict(),
            "elements": [element.to_dict() for element in self.get_all_elements()],
        }

    def restore(self, snapshot: Dict[str, Any]) -> None:
        if not isinstance(snapshot, dict) or "elements" not in snapshot:
            raise ValueError("Snapshot is missing 'elements'")

        elements: Dict[str, Element] = {}
        tree = nx.DiGraph()
        tree.add_node(ROOT)
        try:
            for raw in snapshot["elements"]:
                element = Element.from_dict(raw)
                if element.id in elements:
                    raise ValueError(f"Duplicate element id in snapshot: {element.id}")
                # Pre-order snapshots always list a parent before its children
                if element.parent_id is not None and element.parent_id not in elements:
                    raise ValueError(
                        f"Element {element.id} references unknown parent {element.parent_id}"
                    )
                elements[element.id] = element
                tree.add_edge(self._node(element.parent_id), element.id)
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed snapshot: {e}") from e

        canvas = snapshot.get("canvas")
        self._canvas = Rect.from_dict(canvas) if canvas else self._canvas
        self._elements = elements
        self._tree = tree
        logger.debug(f"Restored scene with {len(elements)} elements")
