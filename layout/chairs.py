"""Seat placement around tables.

Positions are local to the table center, unrotated.  A chair's rotation is
the direction it faces, so every generated chair faces its table.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, NamedTuple, Sequence, Tuple

import numpy as np

from geometry.kernel import Point, normalize_angle, rect_center, rotate_point, to_degrees
from layout.constants import CHAIR_OFFSET_DEFAULT, CHAIR_SIZE

log = logging.getLogger(__name__)


class ChairPosition(NamedTuple):
    local_x: float
    local_y: float
    rotation: float
    seat_index: int


@dataclass
class ChairGenerationConfig:
    table_type: str
    table_width: float
    table_height: float
    capacity: int
    chair_offset: float = CHAIR_OFFSET_DEFAULT


@dataclass
class ChairRedistribution:
    to_add: List[ChairPosition] = field(default_factory=list)
    to_remove: List[str] = field(default_factory=list)
    to_update: List[Tuple[str, ChairPosition]] = field(default_factory=list)


def _round(config: ChairGenerationConfig) -> List[ChairPosition]:
    radius = config.table_width / 2 + config.chair_offset
    angles = np.arange(config.capacity) * (2 * math.pi / config.capacity) - math.pi / 2
    return [
        ChairPosition(
            float(radius * math.cos(a)),
            float(radius * math.sin(a)),
            normalize_angle(to_degrees(float(a)) + 180.0),
            i,
        )
        for i, a in enumerate(angles)
    ]


def _oval(config: ChairGenerationConfig) -> List[ChairPosition]:
    rx = config.table_width / 2 + config.chair_offset
    ry = config.table_height / 2 + config.chair_offset
    angles = np.arange(config.capacity) * (2 * math.pi / config.capacity) - math.pi / 2
    positions = []
    for i, a in enumerate(angles):
        cos_a, sin_a = math.cos(a), math.sin(a)
        # inward normal of the ellipse at parameter a
        facing = math.atan2(-rx * sin_a, -ry * cos_a)
        positions.append(ChairPosition(rx * cos_a, ry * sin_a, normalize_angle(to_degrees(facing)), i))
    return positions


def _side(count: int, length: float, start: Point, direction: Point, facing: float) -> List[Tuple[float, float, float]]:
    """``count`` seats spread along one side, none touching a corner."""
    spacing = length / (count + 1)
    return [
        (start[0] + direction[0] * spacing * (i + 1), start[1] + direction[1] * spacing * (i + 1), facing)
        for i in range(count)
    ]


def _rectangular(config: ChairGenerationConfig) -> List[ChairPosition]:
    long_len = max(config.table_width, config.table_height)
    short_len = min(config.table_width, config.table_height)
    off = config.chair_offset
    # long sides only; the short ends never hold a seat
    top = math.ceil(config.capacity / 2)
    bottom = config.capacity - top
    hl, hs = long_len / 2, short_len / 2

    seats = _side(top, long_len, Point(-hl, -hs - off), Point(1, 0), 90.0)
    seats += _side(bottom, long_len, Point(hl, hs + off), Point(-1, 0), 270.0)

    vertical = config.table_height > config.table_width
    positions = []
    for i, (x, y, facing) in enumerate(seats):
        if vertical:
            x, y, facing = -y, x, facing + 90.0
        positions.append(ChairPosition(x, y, normalize_angle(facing), i))
    return positions


def _square(config: ChairGenerationConfig) -> List[ChairPosition]:
    per_side = math.ceil(config.capacity / 4)
    w, h, off = config.table_width, config.table_height, config.chair_offset
    seats = _side(per_side, w, Point(-w / 2, -h / 2 - off), Point(1, 0), 90.0)
    seats += _side(per_side, h, Point(w / 2 + off, -h / 2), Point(0, 1), 180.0)
    seats += _side(per_side, w, Point(w / 2, h / 2 + off), Point(-1, 0), 270.0)
    seats += _side(per_side, h, Point(-w / 2 - off, h / 2), Point(0, -1), 0.0)
    return [ChairPosition(x, y, facing, i) for i, (x, y, facing) in enumerate(seats[: config.capacity])]


_GENERATORS: Dict[str, Callable[[ChairGenerationConfig], List[ChairPosition]]] = {
    "table-round": _round,
    "table-oval": _oval,
    "table-rectangular": _rectangular,
    "table-square": _square,
}


def generate_chair_positions(config: ChairGenerationConfig) -> List[ChairPosition]:
    """Return ``config.capacity`` seat positions around the table center."""
    if config.capacity <= 0:
        return []
    generator = _GENERATORS.get(config.table_type)
    if generator is None:
        log.debug("No seat pattern for %s; using round", config.table_type)
        generator = _round
    return generator(config)


def chair_world_placement(table, position: ChairPosition) -> Tuple[float, float, float]:
    """Top-left ``(x, y)`` and rotation of a chair in world space."""
    center = rect_center(table)
    world = rotate_point(
        Point(center.x + position.local_x, center.y + position.local_y), center, table.rotation
    )
    return (
        world.x - CHAIR_SIZE / 2,
        world.y - CHAIR_SIZE / 2,
        normalize_angle(position.rotation + table.rotation),
    )


def redistribute_chairs(existing: Sequence, new_capacity: int, config: ChairGenerationConfig) -> ChairRedistribution:
    """Plan how a table's chairs change when its capacity becomes ``new_capacity``.

    When shrinking, chairs with a guest are kept before empty ones so nobody
    loses a seat while an empty chair could be removed instead.  Kept chairs
    retain their relative seat order and take the new positions in order.
    """
    positions = generate_chair_positions(replace(config, capacity=max(0, new_capacity)))
    ordered = sorted(existing, key=lambda chair: chair.seat_index)

    if len(positions) >= len(ordered):
        kept = ordered
        removed: List[str] = []
    else:
        assigned = [c for c in ordered if c.assigned_guest_id is not None]
        unassigned = [c for c in ordered if c.assigned_guest_id is None]
        keep_assigned = assigned[: len(positions)]
        keep_unassigned = unassigned[: len(positions) - len(keep_assigned)]
        kept_ids = {c.id for c in keep_assigned} | {c.id for c in keep_unassigned}
        kept = [c for c in ordered if c.id in kept_ids]
        removed = [c.id for c in ordered if c.id not in kept_ids]

    return ChairRedistribution(
        to_add=positions[len(kept):],
        to_remove=removed,
        to_update=[(chair.id, positions[i]) for i, chair in enumerate(kept)],
    )


def calculate_optimal_table_size(table_type: str, capacity: int) -> Tuple[float, float]:
    """Suggested ``(width, height)`` in meters for seating ``capacity`` guests."""
    c = max(0, capacity)
    if table_type == "table-round":
        size = 0.6 + c * 0.15
        return size, size
    if table_type == "table-rectangular":
        return 0.6 + c * 0.3, 0.75
    if table_type == "table-oval":
        return 0.8 + c * 0.18, 0.6 + c * 0.12
    if table_type == "table-square":
        size = 0.6 + c * 0.2
        return size, size
    return 1.5, 1.5
