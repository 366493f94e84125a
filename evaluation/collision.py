"""Advisory overlap detection between layout elements.

Boxes are the rotated bounding boxes of each element grown by a small
buffer.  Zones never collide, nor do a table and its own chairs or two
members of the same group.  Nothing here blocks a placement.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Mapping, Optional, Set, Tuple

from geometry.kernel import Bounds, bounds_of, distance, rect_center, rect_corners, rotated_bounding_box
from layout.constants import COLLISION_BUFFER
from layout.models import Element, ElementKind

log = logging.getLogger(__name__)


def element_bounds(element) -> Bounds:
    return rotated_bounding_box(element)


def _is_zone(element) -> bool:
    return getattr(element, "kind", None) is ElementKind.ZONE


def _exempt(a: Element, b: Element) -> bool:
    if a.id == b.id:
        return True
    if a.parent_id == b.id or b.parent_id == a.id:
        return True
    if a.group_id is not None and a.group_id == b.group_id:
        return True
    return _is_zone(a) or _is_zone(b)


def boxes_overlap(a: Bounds, b: Bounds, buffer: float = COLLISION_BUFFER) -> bool:
    return a.expanded(buffer).overlaps(b.expanded(buffer))


def elements_collide(a: Element, b: Element, buffer: float = COLLISION_BUFFER) -> bool:
    if _exempt(a, b):
        return False
    return boxes_overlap(element_bounds(a), element_bounds(b), buffer)


def find_collisions(
    element_id: str, elements: Mapping[str, Element], buffer: float = COLLISION_BUFFER
) -> List[str]:
    """Ids of elements colliding with ``element_id``; empty when it is unknown."""
    element = elements.get(element_id)
    if element is None:
        return []
    return [other.id for other in elements.values() if elements_collide(element, other, buffer)]


def find_all_collisions(
    elements: Mapping[str, Element], buffer: float = COLLISION_BUFFER
) -> List[Tuple[str, str]]:
    """Every colliding pair once, each pair sorted, the list sorted."""
    items = [e for e in elements.values() if not _is_zone(e)]
    boxes = [element_bounds(e) for e in items]
    pairs: List[Tuple[str, str]] = []
    for i, a in enumerate(items):
        for j in range(i + 1, len(items)):
            b = items[j]
            if _exempt(a, b):
                continue
            if boxes_overlap(boxes[i], boxes[j], buffer):
                pairs.append(tuple(sorted((a.id, b.id))))
    return sorted(pairs)


def colliding_ids(elements: Mapping[str, Element], buffer: float = COLLISION_BUFFER) -> Set[str]:
    return {eid for pair in find_all_collisions(elements, buffer) for eid in pair}


def find_collisions_for_rect(
    rect,
    elements: Mapping[str, Element],
    exclude_ids: Iterable[str] = (),
    buffer: float = COLLISION_BUFFER,
) -> List[str]:
    """Collisions a proposed rectangle would have, before it is committed.

    ``rect`` may be an element with a tentative position; its own id, its
    parent and its group are honoured like for a committed element.
    """
    excluded = set(exclude_ids)
    box = element_bounds(rect)
    hits = []
    for other in elements.values():
        if other.id in excluded or _is_zone(other):
            continue
        if isinstance(rect, Element) and _exempt(rect, other):
            continue
        if boxes_overlap(box, element_bounds(other), buffer):
            hits.append(other.id)
    return hits


def find_elements_in_bounds(elements: Mapping[str, Element], bounds: Bounds) -> List[str]:
    """Elements whose center falls inside ``bounds``."""
    return [e.id for e in elements.values() if bounds.contains_point(rect_center(e))]


def is_element_in_bounds(element, bounds: Bounds) -> bool:
    return bounds.contains(element_bounds(element))


def elements_bounding_box(elements: Iterable) -> Optional[Bounds]:
    return bounds_of(c for e in elements for c in rect_corners(e))


def overlap_area(a, b) -> float:
    """Area shared by the two rotated bounding boxes."""
    box_a, box_b = element_bounds(a), element_bounds(b)
    width = min(box_a.max_x, box_b.max_x) - max(box_a.min_x, box_b.min_x)
    height = min(box_a.max_y, box_b.max_y) - max(box_a.min_y, box_b.min_y)
    if width <= 0 or height <= 0:
        return 0.0
    return width * height


def is_element_inside(inner, outer) -> bool:
    return element_bounds(outer).contains(element_bounds(inner))


def find_nearest_element(
    element_id: str,
    elements: Mapping[str, Element],
    predicate: Optional[Callable[[Element], bool]] = None,
) -> Optional[str]:
    """Closest other element by center distance, optionally filtered."""
    element = elements.get(element_id)
    if element is None:
        return None
    origin = rect_center(element)
    best: Optional[Tuple[float, str]] = None
    for other in elements.values():
        if other.id == element_id or (predicate is not None and not predicate(other)):
            continue
        d = distance(origin, rect_center(other))
        if best is None or d < best[0]:
            best = (d, other.id)
    return best[1] if best else None


def describe_collisions(elements: Mapping[str, Element], buffer: float = COLLISION_BUFFER) -> List[str]:
    """Human readable overlap warnings."""
    issues = []
    for a, b in find_all_collisions(elements, buffer):
        ea, eb = elements[a], elements[b]
        issues.append(f"{ea.label or ea.type} ({a}) overlaps {eb.label or eb.type} ({b})")
    return issues


class CollisionMonitor:
    """Colliding-id set derived from a store, recomputed when its revision changes."""

    def __init__(self, store, buffer: Optional[float] = None) -> None:
        self.store = store
        self.buffer = store.config.collision_buffer if buffer is None else buffer
        self._revision: Optional[int] = None
        self._ids: Set[str] = set()

    @property
    def colliding_ids(self) -> Set[str]:
        if self._revision != self.store.revision:
            self._ids = colliding_ids(self.store.elements, self.buffer)
            self._revision = self.store.revision
            log.debug("Recomputed collisions: %d elements", len(self._ids))
        return set(self._ids)

    def is_colliding(self, element_id: str) -> bool:
        return element_id in self.colliding_ids

    def check(self, element_id: str) -> List[str]:
        return find_collisions(element_id, self.store.elements, self.buffer)

    def check_proposed(self, rect, exclude_ids: Iterable[str] = ()) -> List[str]:
        return find_collisions_for_rect(rect, self.store.elements, exclude_ids, self.buffer)
