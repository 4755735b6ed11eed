"""
Scene data model for the page builder.

Geometry is an explicit typed record instead of anything parsed out of
presentation-layer style strings. A Rect stored on an Element is relative to
the element's parent; top-level elements live in canvas-local coordinates.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, Optional, Tuple


ELEMENT_KIND = "element"
GROUP_KIND = "group"

Point = Tuple[float, float]


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle {x, y, w, h}."""
    x: float = 0.0
    y: float = 0.0
    w: float = 0.0
    h: float = 0.0

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def top(self) -> float:
        return self.y

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center_x(self) -> float:
        return self.x + self.w / 2

    @property
    def center_y(self) -> float:
        return self.y + self.h / 2

    @property
    def origin(self) -> Point:
        return (self.x, self.y)

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.w, self.h)

    def moved_to(self, x: float, y: float) -> "Rect":
        return Rect(x, y, self.w, self.h)

    def padded(self, padding: float) -> "Rect":
        return Rect(self.x - padding, self.y - padding,
                    self.w + 2 * padding, self.h + 2 * padding)

    def intersects(self, other: "Rect") -> bool:
        """Inclusive AABB test: touching edges count as overlap."""
        return not (
            self.right < other.left
            or self.left > other.right
            or self.bottom < other.top
            or self.top > other.bottom
        )

    def contains_point(self, point: Point) -> bool:
        px, py = point
        return self.left <= px <= self.right and self.top <= py <= self.bottom

    @classmethod
    def from_points(cls, a: Point, b: Point) -> "Rect":
        """Normalized rect spanning two corner points (any drag direction)."""
        x1, y1 = a
        x2, y2 = b
        return cls(min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1))

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rect":
        return cls(left, top, right - left, bottom - top)

    @classmethod
    def union(cls, rects: Iterable["Rect"]) -> Optional["Rect"]:
        rects = list(rects)
        if not rects:
            return None
        return cls.from_edges(
            min(r.left for r in rects),
            min(r.top for r in rects),
            max(r.right for r in rects),
            max(r.bottom for r in rects),
        )

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Rect":
        return cls(
            float(data.get("x", 0.0)),
            float(data.get("y", 0.0)),
            float(data.get("w", 0.0)),
            float(data.get("h", 0.0)),
        )


@dataclass
class Element:
    """
    A canvas element.

    Z-order is not stored here: it is the element's position among its
    siblings in the scene hierarchy.
    """
    id: str
    geometry: Rect = field(default_factory=Rect)
    parent_id: Optional[str] = None
    kind: str = ELEMENT_KIND
    name: str = ""
    locked: bool = False
    visible: bool = True
    style: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_group(self) -> bool:
        return self.kind == GROUP_KIND

    def copy(self) -> "Element":
        return replace(self, style=dict(self.style))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "geometry": self.geometry.to_dict(),
            "parent_id": self.parent_id,
            "kind": self.kind,
            "name": self.name,
            "locked": self.locked,
            "visible": self.visible,
            "style": dict(self.style),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Element":
        if "id" not in data:
            raise ValueError("Element data is missing 'id'")
        return cls(
            id=str(data["id"]),
            geometry=Rect.from_dict(data.get("geometry") or {}),
            parent_id=data.get("parent_id"),
            kind=data.get("kind", ELEMENT_KIND),
            name=data.get("name", ""),
            locked=bool(data.get("locked", False)),
            visible=bool(data.get("visible", True)),
            style=dict(data.get("style") or {}),
        )
