"""Pointer gestures: start, any number of moves, then end or cancel.

Moves mutate the live document without touching history; ``end`` records
the whole gesture as one undoable step and ``cancel`` restores the state
captured at the start.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from evaluation.collision import find_collisions
from evaluation.snapping import SnapConfig, SnapGuide, calculate_snap, venue_boundary_points
from geometry.kernel import Point
from geometry.transform import Viewport
from layout.history import ActionType, PartialLayoutState
from layout.models import TableElement
from layout.store import LayoutStore

log = logging.getLogger(__name__)


@dataclass
class DragFeedback:
    position: Point
    guides: List[SnapGuide] = field(default_factory=list)
    collisions: Set[str] = field(default_factory=set)


@dataclass
class _Gesture:
    kind: str
    element_ids: List[str]
    before: PartialLayoutState
    origins: Dict[str, Point] = field(default_factory=dict)
    start_world: Optional[Point] = None


_ACTIONS = {
    "drag": (ActionType.MOVE_ELEMENTS, "Move"),
    "resize": (ActionType.RESIZE_ELEMENT, "Resize"),
    "rotate": (ActionType.ROTATE_ELEMENT, "Rotate"),
}


class GestureController:
    def __init__(self, store: LayoutStore, viewport: Viewport) -> None:
        self.store = store
        self.viewport = viewport
        self._gesture: Optional[_Gesture] = None

    @property
    def is_active(self) -> bool:
        return self._gesture is not None

    def _begin(self, kind: str, element_ids: List[str]) -> bool:
        if self._gesture is not None:
            self.cancel()
        if not element_ids:
            return False
        self._gesture = _Gesture(kind, element_ids, self.store.snapshot(("elements",)))
        return True

    def _movable(self, element_ids: Iterable[str]) -> List[str]:
        ids: List[str] = []
        for eid in element_ids:
            element = self.store.get_element(eid)
            if element is None or element.locked:
                continue
            ids.append(eid)
            if isinstance(element, TableElement):
                ids.extend(chair.id for chair in self.store.get_table_chairs(eid))
        return list(dict.fromkeys(ids))

    # -- drag --------------------------------------------------------------

    def begin_drag(self, element_ids: Iterable[str], screen_point: Point) -> bool:
        """Start dragging; the first id is the element under the pointer.

        A dragged table carries its chairs.  Locked elements stay put.
        """
        ids = self._movable(element_ids)
        if not self._begin("drag", ids):
            return False
        self._gesture.origins = {eid: Point(self.store.elements[eid].x, self.store.elements[eid].y) for eid in ids}
        self._gesture.start_world = self.viewport.screen_to_world(screen_point)
        return True

    def drag_to(self, screen_point: Point) -> Optional[DragFeedback]:
        gesture = self._gesture
        if gesture is None or gesture.kind != "drag":
            return None
        layout = self.store.layout
        primary = gesture.element_ids[0]
        origin = gesture.origins[primary]
        world = self.viewport.screen_to_world(screen_point)
        proposed = Point(origin.x + world.x - gesture.start_world.x, origin.y + world.y - gesture.start_world.y)

        config = SnapConfig.from_settings(layout.settings, self.viewport, venue_boundary_points(layout.space))
        result = calculate_snap(primary, proposed, self.store.elements, config, exclude_ids=gesture.element_ids)
        dx, dy = result.position.x - origin.x, result.position.y - origin.y
        for eid, start in gesture.origins.items():
            self.store.set_position(eid, start.x + dx, start.y + dy, record=False)

        moving = set(gesture.element_ids)
        collisions: Set[str] = set()
        for eid in gesture.element_ids:
            collisions.update(c for c in find_collisions(eid, self.store.elements) if c not in moving)
        return DragFeedback(result.position, result.guides, collisions)

    # -- resize / rotate ---------------------------------------------------

    def begin_resize(self, element_id: str) -> bool:
        return self._begin("resize", self._single(element_id))

    def resize_to(self, width: float, height: float) -> bool:
        gesture = self._gesture
        if gesture is None or gesture.kind != "resize":
            return False
        return self.store.resize_element(gesture.element_ids[0], width, height, record=False)

    def begin_rotate(self, element_id: str) -> bool:
        return self._begin("rotate", self._single(element_id))

    def rotate_to(self, degrees: float) -> bool:
        gesture = self._gesture
        if gesture is None or gesture.kind != "rotate":
            return False
        return self.store.rotate_element(gesture.element_ids[0], degrees, record=False)

    def _single(self, element_id: str) -> List[str]:
        element = self.store.get_element(element_id)
        return [element_id] if element is not None and not element.locked else []

    # -- finish ------------------------------------------------------------

    def end(self) -> bool:
        """Commit the gesture as one history entry; False when nothing changed."""
        gesture, self._gesture = self._gesture, None
        if gesture is None:
            return False
        action, verb = _ACTIONS[gesture.kind]
        label = f"{verb} {len(gesture.element_ids)} element(s)"
        primary = self.store.get_element(gesture.element_ids[0])
        if gesture.kind == "drag" or not isinstance(primary, TableElement):
            return self.store.record_change(action, label, gesture.before) is not None

        # resized or rotated tables re-seat their chairs in the same step
        history = self.store.history
        last = history.past[-1] if history.past else None
        with history.batch(label):
            self.store.record_change(action, label, gesture.before)
            self.store.relayout_table_chairs(primary.id)
        return bool(history.past) and history.past[-1] is not last

    def cancel(self) -> None:
        gesture, self._gesture = self._gesture, None
        if gesture is not None:
            self.store.restore(gesture.before)
            log.debug("Cancelled %s gesture", gesture.kind)
