"""Keyboard actions and what each does to the document.

Key bindings belong to the host UI; this module only fixes the meaning of
each action.  Actions touching several elements record a single history
entry.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional

from layout.constants import NUDGE_STEP, NUDGE_STEP_LARGE, ROTATE_STEP
from layout.models import TableElement
from layout.store import LayoutStore

log = logging.getLogger(__name__)


class EditorAction(str, Enum):
    UNDO = "undo"
    REDO = "redo"
    DELETE = "delete"
    DUPLICATE = "duplicate"
    NUDGE_UP = "nudge_up"
    NUDGE_DOWN = "nudge_down"
    NUDGE_LEFT = "nudge_left"
    NUDGE_RIGHT = "nudge_right"
    NUDGE_UP_LARGE = "nudge_up_large"
    NUDGE_DOWN_LARGE = "nudge_down_large"
    NUDGE_LEFT_LARGE = "nudge_left_large"
    NUDGE_RIGHT_LARGE = "nudge_right_large"
    ROTATE_CW = "rotate_cw"
    ROTATE_CCW = "rotate_ccw"
    BRING_FORWARD = "bring_forward"
    SEND_BACKWARD = "send_backward"
    BRING_TO_FRONT = "bring_to_front"
    SEND_TO_BACK = "send_to_back"
    TOGGLE_LOCK = "toggle_lock"
    TOGGLE_SNAP = "toggle_snap"
    TOGGLE_GRID = "toggle_grid"
    TOGGLE_RULERS = "toggle_rulers"


_NUDGES = {
    EditorAction.NUDGE_UP: (0.0, -NUDGE_STEP),
    EditorAction.NUDGE_DOWN: (0.0, NUDGE_STEP),
    EditorAction.NUDGE_LEFT: (-NUDGE_STEP, 0.0),
    EditorAction.NUDGE_RIGHT: (NUDGE_STEP, 0.0),
    EditorAction.NUDGE_UP_LARGE: (0.0, -NUDGE_STEP_LARGE),
    EditorAction.NUDGE_DOWN_LARGE: (0.0, NUDGE_STEP_LARGE),
    EditorAction.NUDGE_LEFT_LARGE: (-NUDGE_STEP_LARGE, 0.0),
    EditorAction.NUDGE_RIGHT_LARGE: (NUDGE_STEP_LARGE, 0.0),
}

_TOGGLES = {
    EditorAction.TOGGLE_SNAP: "snap_enabled",
    EditorAction.TOGGLE_GRID: "grid_visible",
    EditorAction.TOGGLE_RULERS: "rulers_visible",
}


def _with_chairs(store: LayoutStore, ids: Iterable[str]) -> List[str]:
    expanded: List[str] = []
    for eid in ids:
        expanded.append(eid)
        if isinstance(store.get_element(eid), TableElement):
            expanded.extend(chair.id for chair in store.get_table_chairs(eid))
    return list(dict.fromkeys(expanded))


def _unlocked(store: LayoutStore, ids: Iterable[str]) -> List[str]:
    return [eid for eid in ids if eid in store.elements and not store.elements[eid].locked]


def perform_action(store: LayoutStore, action: EditorAction, selected_ids: Iterable[str] = ()) -> Optional[object]:
    """Run ``action`` against the current selection.

    Returns the underlying store result (``True``/``False``, a count, or
    the new ids for duplicate).  Deleting a table deletes its chairs too;
    nudging and rotating skip locked elements.
    """
    action = EditorAction(action)
    selected = list(dict.fromkeys(selected_ids))

    if action is EditorAction.UNDO:
        return store.undo()
    if action is EditorAction.REDO:
        return store.redo()
    if action in _TOGGLES:
        if store.layout is None:
            return False
        name = _TOGGLES[action]
        return store.update_settings({name: not getattr(store.layout.settings, name)})

    if not selected:
        log.debug("%s ignored: nothing selected", action.value)
        return None

    if action is EditorAction.DELETE:
        return store.delete_elements(_with_chairs(store, _unlocked(store, selected)))
    if action is EditorAction.DUPLICATE:
        with store.history.batch("Duplicate"):
            return [new for new in (store.duplicate_element(eid) for eid in selected) if new is not None]
    if action in _NUDGES:
        dx, dy = _NUDGES[action]
        return store.move_elements(_with_chairs(store, _unlocked(store, selected)), dx, dy)
    if action in (EditorAction.ROTATE_CW, EditorAction.ROTATE_CCW):
        step = ROTATE_STEP if action is EditorAction.ROTATE_CW else -ROTATE_STEP
        targets = _unlocked(store, selected)
        with store.history.batch("Rotate"):
            for eid in targets:
                store.rotate_element(eid, store.elements[eid].rotation + step)
                if isinstance(store.elements[eid], TableElement):
                    store.relayout_table_chairs(eid)
        return len(targets)
    if action is EditorAction.BRING_FORWARD:
        return store.bring_forward(selected)
    if action is EditorAction.SEND_BACKWARD:
        return store.send_backward(selected)
    if action is EditorAction.BRING_TO_FRONT:
        return store.bring_to_front(selected)
    if action is EditorAction.SEND_TO_BACK:
        return store.send_to_back(selected)
    if action is EditorAction.TOGGLE_LOCK:
        return store.toggle_lock(selected)
    raise ValueError(f"Unhandled editor action {action!r}")
