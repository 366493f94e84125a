"""Pure geometry helpers for the 2D floor plan.

All coordinates are in meters with the y axis pointing down (screen
convention).  Angles are degrees at the public surface; positive rotation is
counter-clockwise in the math sense, matching :func:`rotate_point`.

Anything with ``x``, ``y``, ``width``, ``height`` and (optionally)
``rotation`` attributes can be passed where a rectangle is expected, so the
element models are accepted directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, NamedTuple, Optional, Sequence

import numpy as np


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class Bounds:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Point:
        return Point((self.min_x + self.max_x) / 2, (self.min_y + self.max_y) / 2)

    def expanded(self, amount: float) -> "Bounds":
        return Bounds(self.min_x - amount, self.min_y - amount, self.max_x + amount, self.max_y + amount)

    def contains_point(self, point: Point) -> bool:
        return self.min_x <= point[0] <= self.max_x and self.min_y <= point[1] <= self.max_y

    def contains(self, other: "Bounds") -> bool:
        return (
            other.min_x >= self.min_x
            and other.max_x <= self.max_x
            and other.min_y >= self.min_y
            and other.max_y <= self.max_y
        )

    def overlaps(self, other: "Bounds") -> bool:
        """Touching edges count as overlapping."""
        return not (
            self.max_x < other.min_x
            or self.min_x > other.max_x
            or self.max_y < other.min_y
            or self.min_y > other.max_y
        )

    def union(self, other: "Bounds") -> "Bounds":
        return Bounds(
            min(self.min_x, other.min_x),
            min(self.min_y, other.min_y),
            max(self.max_x, other.max_x),
            max(self.max_y, other.max_y),
        )


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float
    rotation: float = 0.0

    @property
    def center(self) -> Point:
        return rect_center(self)

    @property
    def bounds(self) -> Bounds:
        return rotated_bounding_box(self)

    def area(self) -> float:
        return max(0.0, self.width) * max(0.0, self.height)


def _rotation(rect) -> float:
    return float(getattr(rect, "rotation", 0.0) or 0.0)


def distance(a: Point, b: Point) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def midpoint(a: Point, b: Point) -> Point:
    return Point((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180.0


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


def normalize_angle(degrees: float) -> float:
    """Map any angle into ``[0, 360)``."""
    angle = math.fmod(degrees, 360.0)
    if angle < 0:
        angle += 360.0
    # fmod of tiny negatives can round up to exactly 360
    return 0.0 if angle >= 360.0 else angle


def rotate_point(point: Point, center: Point, degrees: float) -> Point:
    """Rotate ``point`` about ``center`` by ``degrees``."""
    if degrees == 0:
        return Point(float(point[0]), float(point[1]))
    rad = to_radians(degrees)
    cos_a, sin_a = math.cos(rad), math.sin(rad)
    dx, dy = point[0] - center[0], point[1] - center[1]
    return Point(center[0] + dx * cos_a - dy * sin_a, center[1] + dx * sin_a + dy * cos_a)


def rect_center(rect) -> Point:
    return Point(rect.x + rect.width / 2, rect.y + rect.height / 2)


def rect_corners(rect) -> List[Point]:
    """Corners in top-left, top-right, bottom-right, bottom-left order.

    Rotation is applied about the rectangle's own center.
    """
    x, y, w, h = float(rect.x), float(rect.y), float(rect.width), float(rect.height)
    pts = np.array([[x, y], [x + w, y], [x + w, y + h], [x, y + h]], dtype=float)
    rotation = _rotation(rect)
    if rotation != 0:
        center = np.array([x + w / 2, y + h / 2])
        rad = to_radians(rotation)
        rot = np.array([[math.cos(rad), -math.sin(rad)], [math.sin(rad), math.cos(rad)]])
        pts = (pts - center) @ rot.T + center
    return [Point(float(px), float(py)) for px, py in pts]


def bounds_of(points: Iterable[Point]) -> Optional[Bounds]:
    arr = np.asarray(list(points), dtype=float)
    if arr.size == 0:
        return None
    mins = arr.min(axis=0)
    maxs = arr.max(axis=0)
    return Bounds(float(mins[0]), float(mins[1]), float(maxs[0]), float(maxs[1]))


def rotated_bounding_box(rect) -> Bounds:
    """Axis-aligned box enclosing the rectangle after rotation."""
    rotation = _rotation(rect)
    if rotation == 0:
        return Bounds(rect.x, rect.y, rect.x + rect.width, rect.y + rect.height)
    cx, cy = rect_center(rect)
    rad = to_radians(rotation)
    cos_a, sin_a = abs(math.cos(rad)), abs(math.sin(rad))
    half_w = (rect.width * cos_a + rect.height * sin_a) / 2
    half_h = (rect.width * sin_a + rect.height * cos_a) / 2
    return Bounds(cx - half_w, cy - half_h, cx + half_w, cy + half_h)


def point_in_rect(point: Point, rect) -> bool:
    """Exact containment test against the rotated rectangle (edges inclusive)."""
    center = rect_center(rect)
    local = rotate_point(point, center, -_rotation(rect))
    eps = 1e-9
    return (
        rect.x - eps <= local[0] <= rect.x + rect.width + eps
        and rect.y - eps <= local[1] <= rect.y + rect.height + eps
    )


def _project(corners: Sequence[Point], axis: Point):
    values = [c[0] * axis[0] + c[1] * axis[1] for c in corners]
    return min(values), max(values)


def rects_intersect(a, b) -> bool:
    """Separating-axis test for two (possibly rotated) rectangles.

    Rectangles that only touch along an edge are reported as intersecting.
    """
    corners_a = rect_corners(a)
    corners_b = rect_corners(b)
    for corners in (corners_a, corners_b):
        for i in range(2):
            p1, p2 = corners[i], corners[i + 1]
            axis = Point(-(p2[1] - p1[1]), p2[0] - p1[0])
            min_a, max_a = _project(corners_a, axis)
            min_b, max_b = _project(corners_b, axis)
            if max_a < min_b or max_b < min_a:
                return False
    return True


def point_in_circle(point: Point, center: Point, radius: float) -> bool:
    return distance(point, center) <= radius


def point_on_boundary(point: Point, rect, tolerance: float = 0.01) -> bool:
    """True when ``point`` lies within ``tolerance`` of the rectangle outline."""
    corners = rect_corners(rect)
    for i in range(4):
        if _segment_distance(point, corners[i], corners[(i + 1) % 4]) <= tolerance:
            return True
    return False


def _segment_distance(p: Point, a: Point, b: Point) -> float:
    dx, dy = b[0] - a[0], b[1] - a[1]
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return distance(p, a)
    t = clamp(((p[0] - a[0]) * dx + (p[1] - a[1]) * dy) / length_sq, 0.0, 1.0)
    return distance(p, Point(a[0] + t * dx, a[1] + t * dy))


def element_area(rect) -> float:
    return max(0.0, rect.width) * max(0.0, rect.height)


def element_perimeter(rect) -> float:
    return 2 * (max(0.0, rect.width) + max(0.0, rect.height))


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def map_range(value: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    if in_max == in_min:
        return out_min
    return out_min + (value - in_min) * (out_max - out_min) / (in_max - in_min)
