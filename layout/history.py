"""Undo/redo history of partial layout snapshots."""

from __future__ import annotations

import copy
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional

from layout.constants import MAX_HISTORY_ENTRIES
from layout.models import Element, ElementGroup, GuestAssignment, LayoutSettings, Wall

log = logging.getLogger(__name__)


class ActionType(str, Enum):
    ADD_ELEMENT = "ADD_ELEMENT"
    ADD_ELEMENTS = "ADD_ELEMENTS"
    ADD_TABLE = "ADD_TABLE"
    DELETE_ELEMENT = "DELETE_ELEMENT"
    DELETE_ELEMENTS = "DELETE_ELEMENTS"
    MOVE_ELEMENT = "MOVE_ELEMENT"
    MOVE_ELEMENTS = "MOVE_ELEMENTS"
    RESIZE_ELEMENT = "RESIZE_ELEMENT"
    ROTATE_ELEMENT = "ROTATE_ELEMENT"
    UPDATE_ELEMENT = "UPDATE_ELEMENT"
    UPDATE_ELEMENTS = "UPDATE_ELEMENTS"
    DUPLICATE_ELEMENT = "DUPLICATE_ELEMENT"
    GROUP_ELEMENTS = "GROUP_ELEMENTS"
    UNGROUP_ELEMENTS = "UNGROUP_ELEMENTS"
    BRING_TO_FRONT = "BRING_TO_FRONT"
    SEND_TO_BACK = "SEND_TO_BACK"
    BRING_FORWARD = "BRING_FORWARD"
    SEND_BACKWARD = "SEND_BACKWARD"
    REDISTRIBUTE_CHAIRS = "REDISTRIBUTE_CHAIRS"
    ASSIGN_GUEST = "ASSIGN_GUEST"
    UNASSIGN_GUEST = "UNASSIGN_GUEST"
    SWAP_GUESTS = "SWAP_GUESTS"
    ADD_WALL = "ADD_WALL"
    UPDATE_WALL = "UPDATE_WALL"
    DELETE_WALL = "DELETE_WALL"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    BATCH = "BATCH"


@dataclass
class PartialLayoutState:
    """Snapshot of the layout fields an action touched; None means untouched."""

    elements: Optional[Dict[str, Element]] = None
    element_order: Optional[List[str]] = None
    walls: Optional[List[Wall]] = None
    groups: Optional[Dict[str, ElementGroup]] = None
    assignments: Optional[Dict[str, GuestAssignment]] = None
    settings: Optional[LayoutSettings] = None

    def captured(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is not None]

    def is_empty(self) -> bool:
        return not self.captured()


@dataclass
class HistoryEntry:
    action_type: ActionType
    action_label: str
    previous_state: PartialLayoutState
    next_state: PartialLayoutState
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: float = field(default_factory=time.time)


class HistoryManager:
    """Linear undo/redo stacks with batch coalescing.

    ``apply_state`` writes a snapshot back into the live document; the owning
    store binds it.  While a snapshot is being applied, ``record`` calls are
    ignored so undo/redo never records itself.
    """

    def __init__(
        self,
        apply_state: Optional[Callable[[PartialLayoutState], None]] = None,
        max_size: int = MAX_HISTORY_ENTRIES,
    ) -> None:
        self.max_size = max(1, int(max_size))
        self.past: List[HistoryEntry] = []
        self.future: List[HistoryEntry] = []
        self._apply_state = apply_state
        self._applying = False
        self._batch: Optional[HistoryEntry] = None
        self._batch_depth = 0

    def bind(self, apply_state: Callable[[PartialLayoutState], None]) -> None:
        self._apply_state = apply_state

    @property
    def is_batching(self) -> bool:
        return self._batch is not None

    @property
    def is_applying(self) -> bool:
        return self._applying

    def can_undo(self) -> bool:
        return bool(self.past)

    def can_redo(self) -> bool:
        return bool(self.future)

    def undo_label(self) -> Optional[str]:
        return self.past[-1].action_label if self.past else None

    def redo_label(self) -> Optional[str]:
        return self.future[-1].action_label if self.future else None

    def record(
        self,
        action_type: ActionType,
        label: str,
        previous: PartialLayoutState,
        next_state: PartialLayoutState,
    ) -> Optional[HistoryEntry]:
        if self._applying:
            log.debug("Ignoring %s recorded while applying history", action_type.value)
            return None
        previous = copy.deepcopy(previous)
        next_state = copy.deepcopy(next_state)
        if self._batch is not None:
            self._merge_into_batch(previous, next_state)
            return self._batch
        entry = HistoryEntry(action_type, label, previous, next_state)
        self._push(entry)
        return entry

    def _merge_into_batch(self, previous: PartialLayoutState, next_state: PartialLayoutState) -> None:
        # earliest previous value and latest next value win per field
        batch = self._batch
        for name in previous.captured():
            if getattr(batch.previous_state, name) is None:
                setattr(batch.previous_state, name, getattr(previous, name))
        for name in next_state.captured():
            setattr(batch.next_state, name, getattr(next_state, name))

    def _push(self, entry: HistoryEntry) -> None:
        self.past.append(entry)
        self.future.clear()
        if len(self.past) > self.max_size:
            del self.past[: len(self.past) - self.max_size]
        log.debug("Recorded %s (%s)", entry.action_type.value, entry.action_label)

    def start_batch(self, label: str) -> None:
        """Coalesce subsequent records into one entry until ``end_batch``.

        Nested batches fold into the outermost one.
        """
        self._batch_depth += 1
        if self._batch_depth == 1:
            self._batch = HistoryEntry(ActionType.BATCH, label, PartialLayoutState(), PartialLayoutState())

    def end_batch(self) -> Optional[HistoryEntry]:
        if self._batch_depth == 0:
            return None
        self._batch_depth -= 1
        if self._batch_depth > 0:
            return None
        entry, self._batch = self._batch, None
        if entry is None or entry.previous_state.is_empty():
            return None
        self._push(entry)
        log.info("Committed batch '%s'", entry.action_label)
        return entry

    @contextmanager
    def batch(self, label: str) -> Iterator[None]:
        self.start_batch(label)
        try:
            yield
        finally:
            self.end_batch()

    def _close_open_batch(self) -> None:
        if self._batch_depth:
            log.warning("Closing unfinished batch '%s'", self._batch.action_label)
            self._batch_depth = 1
            self.end_batch()

    def _apply(self, state: PartialLayoutState) -> None:
        if self._apply_state is None:
            raise RuntimeError("HistoryManager is not bound to a document")
        self._applying = True
        try:
            self._apply_state(copy.deepcopy(state))
        finally:
            self._applying = False

    def undo(self) -> bool:
        self._close_open_batch()
        if not self.past:
            return False
        entry = self.past[-1]
        self._apply(entry.previous_state)
        self.past.pop()
        self.future.append(entry)
        log.debug("Undid %s", entry.action_label)
        return True

    def redo(self) -> bool:
        self._close_open_batch()
        if not self.future:
            return False
        entry = self.future[-1]
        self._apply(entry.next_state)
        self.future.pop()
        self.past.append(entry)
        log.debug("Redid %s", entry.action_label)
        return True

    def clear(self) -> None:
        self.past.clear()
        self.future.clear()
        self._batch = None
        self._batch_depth = 0
