"""Rectangle, point and size value types plus the rectangle algebra used by
detection, segmentation and reassembly."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height


@dataclass(frozen=True)
class Rectangle:
    """Axis aligned rectangle in pixel coordinates (top-left + extent)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2.0, self.y + self.height / 2.0)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def clamp(self, max_width: int, max_height: int) -> "Rectangle":
        """Return the rectangle clipped to ``[0, max_width) x [0, max_height)``."""

        x = min(max(0, self.x), max_width)
        y = min(max(0, self.y), max_height)
        right = min(max(x, self.right), max_width)
        bottom = min(max(y, self.bottom), max_height)
        return Rectangle(x, y, right - x, bottom - y)

    def contains(self, point: Point) -> bool:
        return self.x <= point.x < self.right and self.y <= point.y < self.bottom

    def slices(self):
        """Numpy ``(rows, cols)`` slices selecting this rectangle."""

        return slice(self.y, self.bottom), slice(self.x, self.right)

    def as_tuple(self):
        return (self.x, self.y, self.width, self.height)


def rectangles_overlap(a: Rectangle, b: Rectangle) -> bool:
    """Inclusive overlap test: rectangles that only touch count as overlapping."""

    return not (a.right < b.x or b.right < a.x or a.bottom < b.y or b.bottom < a.y)


def intersection(a: Rectangle, b: Rectangle) -> Optional[Rectangle]:
    x = max(a.x, b.x)
    y = max(a.y, b.y)
    right = min(a.right, b.right)
    bottom = min(a.bottom, b.bottom)
    if right <= x or bottom <= y:
        return None
    return Rectangle(x, y, right - x, bottom - y)


def union(a: Rectangle, b: Rectangle) -> Rectangle:
    x = min(a.x, b.x)
    y = min(a.y, b.y)
    return Rectangle(x, y, max(a.right, b.right) - x, max(a.bottom, b.bottom) - y)


def bounding_rect(rects: Iterable[Rectangle]) -> Optional[Rectangle]:
    result: Optional[Rectangle] = None
    for rect in rects:
        result = rect if result is None else union(result, rect)
    return result


def expand_rect(rect: Rectangle, padding: int, max_width: int, max_height: int) -> Rectangle:
    """Grow ``rect`` by ``padding`` on every side, clipped to the raster."""

    x = max(0, rect.x - padding)
    y = max(0, rect.y - padding)
    width = min(max_width - x, rect.width + padding * 2)
    height = min(max_height - y, rect.height + padding * 2)
    return Rectangle(x, y, width, height)


def merge_rectangles(rects: List[Rectangle]) -> List[Rectangle]:
    """Union overlapping rectangles until none of the results overlap.

    Each seed keeps absorbing any unused rectangle that touches its growing
    union, so the output order follows the first member of every group.
    """

    merged: List[Rectangle] = []
    used = set()
    for i, rect in enumerate(rects):
        if i in used:
            continue
        current = rect
        changed = True
        while changed:
            changed = False
            for j, other in enumerate(rects):
                if i == j or j in used:
                    continue
                if rectangles_overlap(current, other):
                    current = union(current, other)
                    used.add(j)
                    changed = True
        merged.append(current)
        used.add(i)
    return merged


__all__ = [
    "Point",
    "Size",
    "Rectangle",
    "rectangles_overlap",
    "intersection",
    "union",
    "bounding_rect",
    "expand_rect",
    "merge_rectangles",
]
