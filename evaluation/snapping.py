"""Snap a dragged element to nearby edges, centers, venue walls and the grid.

Each axis is resolved independently through the cascade
edge > center > wall > grid: the first stage that finds a target within the
threshold fixes that axis and lower stages leave it alone.  Within a stage
the closest target wins.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple

from geometry.kernel import Bounds, Point, rotated_bounding_box
from layout.constants import DEFAULT_GRID_SIZE, DEFAULT_PIXELS_PER_METER, DEFAULT_SNAP_THRESHOLD_M
from layout.models import Element, ElementKind, LayoutSettings, VenueSpace

log = logging.getLogger(__name__)


class SnapType(str, Enum):
    EDGE = "edge"
    CENTER = "center"
    WALL = "wall"
    GRID = "grid"


@dataclass
class SnapGuide:
    orientation: str  # "vertical" for x snaps, "horizontal" for y snaps
    position: float
    snap_type: SnapType
    source_id: str
    target_id: Optional[str] = None


@dataclass
class SnapConfig:
    grid_size: float = DEFAULT_GRID_SIZE
    snap_threshold: float = DEFAULT_SNAP_THRESHOLD_M  # meters
    snap_enabled: bool = True
    venue_boundary_points: List[Point] = field(default_factory=list)

    @classmethod
    def from_settings(
        cls,
        settings: LayoutSettings,
        viewport=None,
        venue_points: Sequence[Point] = (),
    ) -> "SnapConfig":
        """Convert the pixel threshold in ``settings`` to meters at the current zoom."""
        if viewport is not None:
            threshold = viewport.pixels_to_meters(settings.snap_threshold)
        else:
            threshold = settings.snap_threshold / DEFAULT_PIXELS_PER_METER
        return cls(
            grid_size=settings.grid_size,
            snap_threshold=threshold,
            snap_enabled=settings.snap_enabled,
            venue_boundary_points=list(venue_points),
        )


@dataclass
class SnapResult:
    position: Point
    guides: List[SnapGuide] = field(default_factory=list)

    @property
    def snapped(self) -> bool:
        return bool(self.guides)


def venue_boundary_points(space: VenueSpace) -> List[Point]:
    """Wall endpoints, or the venue rectangle's corners when there are no walls."""
    if space.walls:
        points = []
        for wall in space.walls:
            points.append(Point(wall.start_x, wall.start_y))
            points.append(Point(wall.end_x, wall.end_y))
        return points
    w, h = space.dimensions.width, space.dimensions.height
    return [Point(0.0, 0.0), Point(w, 0.0), Point(w, h), Point(0.0, h)]


def _span(box: Bounds, axis: int) -> Tuple[float, float]:
    return (box.min_x, box.max_x) if axis == 0 else (box.min_y, box.max_y)


def _closest(candidates: Iterable[Tuple[float, float, Optional[str]]], threshold: float):
    """Pick ``(delta, target_position, target_id)`` with the smallest |delta| under threshold."""
    best = None
    for delta, position, target_id in candidates:
        if abs(delta) < threshold and (best is None or abs(delta) < abs(best[0])):
            best = (delta, position, target_id)
    return best


def _snap_axis(
    axis: int,
    box: Bounds,
    targets: Sequence[Tuple[str, Bounds]],
    config: SnapConfig,
) -> Optional[Tuple[float, SnapType, float, Optional[str]]]:
    lo, hi = _span(box, axis)
    center = (lo + hi) / 2
    threshold = config.snap_threshold

    edge = _closest(
        (
            (other - mine, other, target_id)
            for target_id, target_box in targets
            for other in _span(target_box, axis)
            for mine in (lo, hi)
        ),
        threshold,
    )
    if edge is not None:
        return edge[0], SnapType.EDGE, edge[1], edge[2]

    centers = _closest(
        ((sum(_span(tb, axis)) / 2 - center, sum(_span(tb, axis)) / 2, tid) for tid, tb in targets),
        threshold,
    )
    if centers is not None:
        return centers[0], SnapType.CENTER, centers[1], centers[2]

    wall = _closest(
        ((point[axis] - mine, point[axis], None) for point in config.venue_boundary_points for mine in (lo, hi)),
        threshold,
    )
    if wall is not None:
        return wall[0], SnapType.WALL, wall[1], None

    if config.grid_size > 0:
        line = round(center / config.grid_size) * config.grid_size
        if abs(line - center) < threshold:
            return line - center, SnapType.GRID, line, None
    return None


def calculate_snap(
    dragging_id: str,
    proposed: Point,
    elements: Mapping[str, Element],
    config: SnapConfig,
    exclude_ids: Iterable[str] = (),
) -> SnapResult:
    """Correct the proposed top-left ``(x, y)`` of ``dragging_id``.

    Zones, hidden elements and ``exclude_ids`` (e.g. chairs travelling with
    a dragged table) are not snap targets.
    """
    element = elements.get(dragging_id)
    if element is None or not config.snap_enabled:
        return SnapResult(Point(proposed[0], proposed[1]))

    excluded = set(exclude_ids) | {dragging_id}
    targets = [
        (other.id, rotated_bounding_box(other))
        for other in elements.values()
        if other.id not in excluded and other.visible and other.kind is not ElementKind.ZONE
    ]
    box = rotated_bounding_box(element.model_copy(update={"x": proposed[0], "y": proposed[1]}))

    position = [float(proposed[0]), float(proposed[1])]
    guides: List[SnapGuide] = []
    for axis, orientation in ((0, "vertical"), (1, "horizontal")):
        hit = _snap_axis(axis, box, targets, config)
        if hit is None:
            continue
        delta, snap_type, line, target_id = hit
        position[axis] += delta
        guides.append(SnapGuide(orientation, line, snap_type, dragging_id, target_id))
    if guides:
        log.debug("Snapped %s: %s", dragging_id, ", ".join(g.snap_type.value for g in guides))
    return SnapResult(Point(position[0], position[1]), guides)
