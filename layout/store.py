"""The authoritative in-memory layout document and its mutations.

A :class:`LayoutStore` is an explicit editing session: the host application
creates one, loads or creates a layout in it, and passes it to whatever
needs to read or change the document.  Every mutation goes through a method
here, stamps ``updated_at`` and bumps :attr:`LayoutStore.revision`.

Operations on ids that no longer exist are silent no-ops.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from geometry.kernel import Bounds, normalize_angle, rotated_bounding_box
from layout.chairs import (
    ChairGenerationConfig,
    ChairPosition,
    ChairRedistribution,
    chair_world_placement,
    generate_chair_positions,
    redistribute_chairs,
)
from layout.config import EditorConfig
from layout.constants import CHAIR_SIZE, DUPLICATE_OFFSET, ELEMENT_DEFAULTS
from layout.history import ActionType, HistoryEntry, HistoryManager, PartialLayoutState
from layout.models import (
    ChairElement,
    DietaryType,
    Element,
    ElementGroup,
    ElementKind,
    GuestAssignment,
    FloorPlanBackground,
    Layout,
    LayoutSettings,
    LayoutStatus,
    LayoutSummary,
    SpaceDimensions,
    TableElement,
    VenueSpace,
    Wall,
    element_kind,
    new_id,
    now_iso,
    parse_element,
)
from layout.sanitize import (
    finite_or,
    positive_size,
    sanitize_element_data,
    sanitize_layout,
    sanitize_patch,
    to_field_names,
)

log = logging.getLogger(__name__)

ELEMENT_FIELDS = ("elements", "element_order")
ASSIGNMENT_FIELDS = ("elements", "assignments")
_ASSIGNED_FIELDS = {"id", "zIndex", "z_index", "createdAt", "created_at", "updatedAt", "updated_at"}


class TableCreation(NamedTuple):
    table_id: str
    chair_ids: List[str]


class LayoutStore:
    def __init__(
        self,
        layout: Optional[Layout] = None,
        *,
        history: Optional[HistoryManager] = None,
        config: Optional[EditorConfig] = None,
    ) -> None:
        self.config = config or EditorConfig()
        self.history = history or HistoryManager(max_size=self.config.history_max)
        self.history.bind(self._apply_state)
        self.layout = layout
        self.revision = 0

    # ------------------------------------------------------------------
    # document lifecycle
    # ------------------------------------------------------------------

    def create_layout(
        self,
        name: str = "New Layout",
        *,
        width: Optional[float] = None,
        height: Optional[float] = None,
        created_by: Optional[str] = None,
        project_id: Optional[str] = None,
        event_id: Optional[str] = None,
    ) -> Layout:
        dimensions = SpaceDimensions()
        if width is not None:
            dimensions.width = positive_size(width, dimensions.width)
        if height is not None:
            dimensions.height = positive_size(height, dimensions.height)
        self.layout = Layout(
            name=name,
            created_by=created_by,
            project_id=project_id,
            event_id=event_id,
            space=VenueSpace(dimensions=dimensions, pixels_per_meter=self.config.pixels_per_meter),
            settings=LayoutSettings(snap_threshold=self.config.snap_threshold_px),
        )
        self.history.clear()
        self.revision += 1
        log.info("Created layout %s (%s)", self.layout.id, name)
        return self.layout

    def load_layout(self, data: Union[Layout, Mapping[str, Any]]) -> Layout:
        """Replace the document; raw mappings are sanitized element by element."""
        if isinstance(data, Layout):
            self.layout = data.model_copy(deep=True)
        else:
            self.layout = sanitize_layout(data)
        self.history.clear()
        self.revision += 1
        return self.layout

    def export_layout(self) -> Optional[Dict[str, Any]]:
        if self.layout is None:
            return None
        return self.layout.model_dump(by_alias=True, mode="json")

    def to_document(self) -> Optional[Dict[str, Any]]:
        """Serializable subset handed to persistence collaborators."""
        if self.layout is None:
            return None
        full = self.export_layout()
        return {
            "elements": full["elements"],
            "elementOrder": full["elementOrder"],
            "walls": full["space"]["walls"],
            "settings": full["settings"],
            "assignments": full["assignments"],
        }

    def summary(self) -> LayoutSummary:
        if self.layout is None:
            return LayoutSummary()
        elements = list(self.layout.elements.values())
        tables = [e for e in elements if isinstance(e, TableElement)]
        chairs = [e for e in elements if isinstance(e, ChairElement)]
        return LayoutSummary(
            element_count=len(elements),
            table_count=len(tables),
            chair_count=len(chairs),
            seat_capacity=sum(t.capacity for t in tables),
            assigned_count=sum(1 for c in chairs if c.is_assigned),
            zone_count=sum(1 for e in elements if e.kind is ElementKind.ZONE),
            wall_count=len(self.layout.space.walls),
        )

    # ------------------------------------------------------------------
    # snapshots and history plumbing
    # ------------------------------------------------------------------

    def snapshot(self, fields: Sequence[str] = ELEMENT_FIELDS) -> PartialLayoutState:
        state = PartialLayoutState()
        if self.layout is None:
            return state
        for name in fields:
            setattr(state, name, copy.deepcopy(self._read_field(name)))
        return state

    def _read_field(self, name: str) -> Any:
        if name == "walls":
            return self.layout.space.walls
        return getattr(self.layout, name)

    def _apply_state(self, state: PartialLayoutState) -> None:
        if self.layout is None:
            return
        for name in state.captured():
            value = getattr(state, name)
            if name == "walls":
                self.layout.space.walls = value
            else:
                setattr(self.layout, name, value)
        self._touch()

    def restore(self, state: PartialLayoutState) -> None:
        """Write a snapshot back without recording history."""
        self._apply_state(copy.deepcopy(state))

    def record_change(
        self, action_type: ActionType, label: str, previous: PartialLayoutState
    ) -> Optional[HistoryEntry]:
        """Record ``previous`` against the current state; unchanged state records nothing."""
        current = self.snapshot(previous.captured())
        if current == previous:
            return None
        return self.history.record(action_type, label, previous, current)

    @contextmanager
    def _mutation(
        self,
        action_type: ActionType,
        label: str,
        fields: Sequence[str] = ELEMENT_FIELDS,
        record: bool = True,
    ) -> Iterator[None]:
        previous = self.snapshot(fields)
        try:
            yield
        except Exception:
            log.warning("%s failed; rolling back", label)
            self.restore(previous)
            raise
        self._touch()
        if record:
            self.record_change(action_type, label, previous)

    def _touch(self) -> None:
        if self.layout is not None:
            self.layout.updated_at = now_iso()
        self.revision += 1

    def undo(self) -> bool:
        return self.history.undo()

    def redo(self) -> bool:
        return self.history.redo()

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------

    @property
    def elements(self) -> Dict[str, Element]:
        return self.layout.elements if self.layout is not None else {}

    def get_element(self, element_id: str) -> Optional[Element]:
        return self.elements.get(element_id)

    def ordered_elements(self) -> List[Element]:
        """Elements back to front."""
        if self.layout is None:
            return []
        return [self.layout.elements[eid] for eid in self.layout.element_order if eid in self.layout.elements]

    def get_elements_by_type(self, element_type: Union[str, ElementKind]) -> List[Element]:
        if isinstance(element_type, ElementKind):
            return [e for e in self.ordered_elements() if e.kind is element_type]
        return [e for e in self.ordered_elements() if e.type == element_type]

    def get_child_elements(self, parent_id: str) -> List[Element]:
        return [e for e in self.ordered_elements() if e.parent_id == parent_id]

    def get_table_chairs(self, table_id: str) -> List[ChairElement]:
        chairs = [
            e for e in self.elements.values() if isinstance(e, ChairElement) and e.parent_table_id == table_id
        ]
        return sorted(chairs, key=lambda c: c.seat_index)

    def get_elements_in_bounds(self, bounds: Bounds, *, partial: bool = False) -> List[Element]:
        """Elements whose rotated box lies inside ``bounds`` (or touches it when ``partial``)."""
        found = []
        for element in self.ordered_elements():
            box = rotated_bounding_box(element)
            if bounds.contains(box) or (partial and bounds.overlaps(box)):
                found.append(element)
        return found

    def max_z_index(self) -> int:
        return max((e.z_index for e in self.elements.values()), default=0)

    # ------------------------------------------------------------------
    # element creation
    # ------------------------------------------------------------------

    def _insert(self, element: Element) -> None:
        self.layout.elements[element.id] = element
        self.layout.element_order.append(element.id)

    def _build_element(self, data: Mapping[str, Any]) -> Optional[Element]:
        raw = {k: v for k, v in data.items() if k not in _ASSIGNED_FIELDS}
        element_type = raw.get("type")
        defaults = {}
        if isinstance(element_type, str):
            defaults = ELEMENT_DEFAULTS.get(element_type) or ELEMENT_DEFAULTS["custom"]
        for key, value in defaults.items():
            raw.setdefault(key, value)
        raw.setdefault("x", 0.0)
        raw.setdefault("y", 0.0)
        raw = sanitize_element_data(raw)
        raw["id"] = new_id()
        raw["z_index"] = self.max_z_index() + 1
        try:
            return parse_element(raw)
        except ValueError as exc:
            log.warning("Rejected element data of type %r: %s", element_type, exc)
            return None

    def add_element(self, data: Union[Element, Mapping[str, Any]]) -> Optional[str]:
        """Add an element with a fresh id on top of the z-order."""
        if self.layout is None:
            return None
        if isinstance(data, Element):
            data = data.model_dump()
        element = self._build_element(data)
        if element is None:
            return None
        with self._mutation(ActionType.ADD_ELEMENT, f"Add {element.label or element.type}"):
            self._insert(element)
        return element.id

    def add_elements(self, items: Iterable[Union[Element, Mapping[str, Any]]]) -> List[str]:
        if self.layout is None:
            return []
        items = list(items)
        ids: List[str] = []
        with self.history.batch(f"Add {len(items)} elements"):
            for item in items:
                element_id = self.add_element(item)
                if element_id is not None:
                    ids.append(element_id)
        return ids

    def _chair_config(self, table: TableElement, capacity: Optional[int] = None) -> ChairGenerationConfig:
        return ChairGenerationConfig(
            table_type=table.type,
            table_width=table.width,
            table_height=table.height,
            capacity=table.capacity if capacity is None else capacity,
            chair_offset=table.chair_config.chair_offset,
        )

    def _new_chair(self, table: TableElement, position: ChairPosition) -> ChairElement:
        x, y, rotation = chair_world_placement(table, position)
        return ChairElement(
            x=x,
            y=y,
            width=CHAIR_SIZE,
            height=CHAIR_SIZE,
            rotation=rotation,
            z_index=self.max_z_index() + 1,
            parent_id=table.id,
            parent_table_id=table.id,
            seat_index=position.seat_index,
        )

    def _place_chair(self, chair: ChairElement, table: TableElement, position: ChairPosition) -> bool:
        x, y, rotation = chair_world_placement(table, position)
        if (chair.x, chair.y, chair.rotation, chair.seat_index) == (x, y, rotation, position.seat_index):
            return False
        chair.x, chair.y, chair.rotation = x, y, rotation
        chair.seat_index = position.seat_index
        chair.updated_at = now_iso()
        return True

    def add_table(
        self,
        table_type: str = "table-round",
        x: float = 0.0,
        y: float = 0.0,
        *,
        width: Optional[float] = None,
        height: Optional[float] = None,
        capacity: Optional[int] = None,
        rotation: float = 0.0,
        table_number: Optional[str] = None,
        label: Optional[str] = None,
        chair_offset: Optional[float] = None,
        auto_generate: bool = True,
        color: Optional[str] = None,
    ) -> Optional[TableCreation]:
        """Create a table centered on ``(x, y)`` together with its chairs."""
        if self.layout is None:
            return None
        if element_kind(table_type) is not ElementKind.TABLE:
            log.warning("add_table called with non-table type %r", table_type)
            return None
        defaults = ELEMENT_DEFAULTS[table_type]
        width = positive_size(width, defaults["width"]) if width is not None else defaults["width"]
        height = positive_size(height, defaults["height"]) if height is not None else defaults["height"]
        capacity = max(1, int(capacity if capacity is not None else defaults["capacity"]))
        if table_number is None:
            table_number = str(len(self.get_elements_by_type(ElementKind.TABLE)) + 1)
        label = label if label is not None else f"Table {table_number}"
        table = TableElement(
            type=table_type,
            x=finite_or(x, 0.0) - width / 2,
            y=finite_or(y, 0.0) - height / 2,
            width=width,
            height=height,
            rotation=finite_or(rotation, 0.0),
            z_index=self.max_z_index() + 1,
            capacity=capacity,
            table_number=table_number,
            label=label,
            color=color,
        )
        table.chair_config.auto_generate = auto_generate
        if chair_offset is not None:
            table.chair_config.chair_offset = max(0.0, finite_or(chair_offset, table.chair_config.chair_offset))

        with self._mutation(ActionType.ADD_TABLE, f"Add {label}"):
            self._insert(table)
            if auto_generate:
                for position in generate_chair_positions(self._chair_config(table)):
                    chair = self._new_chair(table, position)
                    self._insert(chair)
                    table.chair_ids.append(chair.id)
        log.debug("Added %s with %d chairs", table.id, len(table.chair_ids))
        return TableCreation(table.id, list(table.chair_ids))

    def duplicate_element(self, element_id: str) -> Optional[str]:
        """Copy an element offset by half a meter; tables get fresh chairs."""
        source = self.get_element(element_id)
        if source is None:
            return None
        data = source.model_dump(exclude={"id", "created_at", "updated_at", "group_id"})
        data["x"] += DUPLICATE_OFFSET
        data["y"] += DUPLICATE_OFFSET
        if source.label:
            data["label"] = f"{source.label} (copy)"
        if isinstance(source, ChairElement):
            data.update(assigned_guest_id=None, assigned_guest_name=None, dietary_type=None, allergy_flags=[])
        if not isinstance(source, TableElement):
            return self.add_element(data)

        center_x = data["x"] + source.width / 2
        center_y = data["y"] + source.height / 2
        created = self.add_table(
            source.type,
            center_x,
            center_y,
            width=source.width,
            height=source.height,
            capacity=source.capacity,
            rotation=source.rotation,
            label=data.get("label"),
            chair_offset=source.chair_config.chair_offset,
            auto_generate=source.chair_config.auto_generate,
            color=source.color,
        )
        return created.table_id if created else None

    # ------------------------------------------------------------------
    # element mutation
    # ------------------------------------------------------------------

    def _merged(self, element: Element, patch: Mapping[str, Any]) -> Optional[Element]:
        cleaned = sanitize_patch(element, patch)
        if not cleaned:
            return None
        data = element.model_dump()
        data.update(cleaned)
        data["updated_at"] = now_iso()
        try:
            return type(element).model_validate(data)
        except ValueError as exc:
            log.warning("Rejected update to %s: %s", element.id, exc)
            return None

    def update_element(self, element_id: str, patch: Mapping[str, Any]) -> bool:
        return self.update_elements({element_id: patch}, label="Update element")

    def update_elements(self, updates: Mapping[str, Mapping[str, Any]], label: Optional[str] = None) -> bool:
        """Merge patches into several elements as one undoable step."""
        if self.layout is None:
            return False
        merged = {}
        for element_id, patch in updates.items():
            element = self.get_element(element_id)
            if element is None:
                log.debug("update skipped: no element %s", element_id)
                continue
            updated = self._merged(element, patch)
            if updated is not None:
                merged[element_id] = updated
        if not merged:
            return False
        action = ActionType.UPDATE_ELEMENT if len(merged) == 1 else ActionType.UPDATE_ELEMENTS
        with self._mutation(action, label or f"Update {len(merged)} elements"):
            self.layout.elements.update(merged)
        return True

    def delete_element(self, element_id: str) -> bool:
        return self.delete_elements([element_id]) > 0

    def delete_elements(self, element_ids: Iterable[str]) -> int:
        """Remove elements from the map and the z-order; children are left in place."""
        if self.layout is None:
            return 0
        doomed = {eid for eid in element_ids if eid in self.layout.elements}
        if not doomed:
            return 0
        action = ActionType.DELETE_ELEMENT if len(doomed) == 1 else ActionType.DELETE_ELEMENTS
        with self._mutation(action, f"Delete {len(doomed)} element(s)", ELEMENT_FIELDS + ("groups", "assignments")):
            for eid in doomed:
                del self.layout.elements[eid]
            self.layout.element_order = [eid for eid in self.layout.element_order if eid not in doomed]
            for element in self.layout.elements.values():
                if isinstance(element, TableElement) and doomed.intersection(element.chair_ids):
                    element.chair_ids = [cid for cid in element.chair_ids if cid not in doomed]
            for group in self.layout.groups.values():
                group.element_ids = [eid for eid in group.element_ids if eid not in doomed]
            for chair_id in doomed.intersection(self.layout.assignments):
                del self.layout.assignments[chair_id]
        return len(doomed)

    def move_elements(self, element_ids: Iterable[str], dx: float, dy: float, *, record: bool = True) -> int:
        if self.layout is None:
            return 0
        dx, dy = finite_or(dx, 0.0), finite_or(dy, 0.0)
        targets = [self.layout.elements[eid] for eid in dict.fromkeys(element_ids) if eid in self.layout.elements]
        if not targets or (dx == 0 and dy == 0):
            return 0
        action = ActionType.MOVE_ELEMENT if len(targets) == 1 else ActionType.MOVE_ELEMENTS
        with self._mutation(action, f"Move {len(targets)} element(s)", ("elements",), record):
            stamp = now_iso()
            for element in targets:
                element.x += dx
                element.y += dy
                element.updated_at = stamp
        return len(targets)

    def set_position(self, element_id: str, x: float, y: float, *, record: bool = True) -> bool:
        element = self.get_element(element_id)
        if element is None:
            return False
        dx = finite_or(x, element.x) - element.x
        dy = finite_or(y, element.y) - element.y
        return self.move_elements([element_id], dx, dy, record=record) > 0

    def resize_element(self, element_id: str, width: float, height: float, *, record: bool = True) -> bool:
        element = self.get_element(element_id)
        if element is None:
            return False
        width = positive_size(width, element.width)
        height = positive_size(height, element.height)
        if (width, height) == (element.width, element.height):
            return False
        with self._mutation(ActionType.RESIZE_ELEMENT, "Resize element", ("elements",), record):
            element.width, element.height = width, height
            element.updated_at = now_iso()
        return True

    def rotate_element(self, element_id: str, degrees: float, *, record: bool = True) -> bool:
        """Set the absolute rotation, normalized to ``[0, 360)``."""
        element = self.get_element(element_id)
        if element is None:
            return False
        rotation = normalize_angle(finite_or(degrees, element.rotation))
        if rotation == element.rotation:
            return False
        with self._mutation(ActionType.ROTATE_ELEMENT, "Rotate element", ("elements",), record):
            element.rotation = rotation
            element.updated_at = now_iso()
        return True

    def set_locked(self, element_ids: Iterable[str], locked: bool) -> bool:
        return self.update_elements(
            {eid: {"locked": locked} for eid in element_ids}, label="Lock" if locked else "Unlock"
        )

    def lock_element(self, element_id: str) -> bool:
        return self.set_locked([element_id], True)

    def unlock_element(self, element_id: str) -> bool:
        return self.set_locked([element_id], False)

    def toggle_lock(self, element_ids: Iterable[str]) -> bool:
        """Lock all when any is unlocked, otherwise unlock all."""
        targets = [self.elements[eid] for eid in element_ids if eid in self.elements]
        if not targets:
            return False
        return self.set_locked([e.id for e in targets], not all(e.locked for e in targets))

    # ------------------------------------------------------------------
    # z-order
    # ------------------------------------------------------------------

    def _reorder(self, action: ActionType, label: str, order: List[str]) -> bool:
        if order == self.layout.element_order:
            return False
        with self._mutation(action, label, ("element_order",)):
            self.layout.element_order = order
        return True

    def bring_to_front(self, element_ids: Iterable[str]) -> bool:
        if self.layout is None:
            return False
        selected = set(element_ids)
        order = self.layout.element_order
        return self._reorder(
            ActionType.BRING_TO_FRONT,
            "Bring to front",
            [eid for eid in order if eid not in selected] + [eid for eid in order if eid in selected],
        )

    def send_to_back(self, element_ids: Iterable[str]) -> bool:
        if self.layout is None:
            return False
        selected = set(element_ids)
        order = self.layout.element_order
        return self._reorder(
            ActionType.SEND_TO_BACK,
            "Send to back",
            [eid for eid in order if eid in selected] + [eid for eid in order if eid not in selected],
        )

    def bring_forward(self, element_ids: Iterable[str]) -> bool:
        if self.layout is None:
            return False
        selected = set(element_ids)
        order = list(self.layout.element_order)
        for i in range(len(order) - 2, -1, -1):
            if order[i] in selected and order[i + 1] not in selected:
                order[i], order[i + 1] = order[i + 1], order[i]
        return self._reorder(ActionType.BRING_FORWARD, "Bring forward", order)

    def send_backward(self, element_ids: Iterable[str]) -> bool:
        if self.layout is None:
            return False
        selected = set(element_ids)
        order = list(self.layout.element_order)
        for i in range(1, len(order)):
            if order[i] in selected and order[i - 1] not in selected:
                order[i], order[i - 1] = order[i - 1], order[i]
        return self._reorder(ActionType.SEND_BACKWARD, "Send backward", order)

    # ------------------------------------------------------------------
    # chairs
    # ------------------------------------------------------------------

    def redistribute_chairs(self, table_id: str, new_capacity: int) -> Optional[ChairRedistribution]:
        """Resize a table's seating, keeping seated guests where possible."""
        table = self.get_element(table_id)
        if not isinstance(table, TableElement):
            return None
        new_capacity = max(1, int(new_capacity))
        chairs = self.get_table_chairs(table_id)
        plan = redistribute_chairs(chairs, new_capacity, self._chair_config(table))
        by_id = {c.id: c for c in chairs}

        label = f"Seat {new_capacity} at {table.label or 'table'}"
        with self._mutation(ActionType.REDISTRIBUTE_CHAIRS, label, ELEMENT_FIELDS + ("groups", "assignments")):
            doomed = set(plan.to_remove)
            for chair_id in doomed:
                del self.layout.elements[chair_id]
                self.layout.assignments.pop(chair_id, None)
            self.layout.element_order = [eid for eid in self.layout.element_order if eid not in doomed]
            for group in self.layout.groups.values():
                group.element_ids = [eid for eid in group.element_ids if eid not in doomed]
            changed = bool(doomed or plan.to_add) or table.capacity != new_capacity
            for chair_id, position in plan.to_update:
                changed = self._place_chair(by_id[chair_id], table, position) or changed
            for position in plan.to_add:
                self._insert(self._new_chair(table, position))
            chair_ids = [c.id for c in self.get_table_chairs(table_id)]
            if changed or chair_ids != table.chair_ids:
                table.capacity = new_capacity
                table.chair_ids = chair_ids
                table.updated_at = now_iso()
        return plan

    def relayout_table_chairs(self, table_id: str) -> bool:
        """Re-place a table's chairs after it moved, resized or rotated."""
        table = self.get_element(table_id)
        if not isinstance(table, TableElement):
            return False
        return self.redistribute_chairs(table_id, table.capacity) is not None

    # ------------------------------------------------------------------
    # guests
    # ------------------------------------------------------------------

    def _chair(self, chair_id: str) -> Optional[ChairElement]:
        chair = self.get_element(chair_id)
        return chair if isinstance(chair, ChairElement) else None

    @staticmethod
    def _clear_guest(chair: ChairElement) -> None:
        chair.assigned_guest_id = None
        chair.assigned_guest_name = None
        chair.dietary_type = None
        chair.allergy_flags = []
        chair.updated_at = now_iso()

    def assign_guest(
        self,
        chair_id: str,
        guest_id: str,
        guest_name: str = "",
        *,
        dietary_type: Optional[DietaryType] = None,
        allergy_flags: Optional[List[str]] = None,
        assigned_by: Optional[str] = None,
    ) -> bool:
        """Seat a guest; a guest already seated elsewhere is moved."""
        chair = self._chair(chair_id)
        if chair is None:
            return False
        if dietary_type is not None:
            try:
                dietary_type = DietaryType(dietary_type)
            except ValueError:
                log.warning("Ignoring unknown dietary type %r for %s", dietary_type, chair_id)
                dietary_type = None
        with self._mutation(ActionType.ASSIGN_GUEST, f"Seat {guest_name or guest_id}", ASSIGNMENT_FIELDS):
            for other in self.elements.values():
                if isinstance(other, ChairElement) and other.assigned_guest_id == guest_id and other.id != chair_id:
                    self._clear_guest(other)
                    self.layout.assignments.pop(other.id, None)
            chair.assigned_guest_id = guest_id
            chair.assigned_guest_name = guest_name
            chair.dietary_type = dietary_type
            chair.allergy_flags = list(allergy_flags or [])
            chair.updated_at = now_iso()
            self.layout.assignments[chair_id] = GuestAssignment(
                chair_id=chair_id,
                guest_id=guest_id,
                guest_name=guest_name,
                dietary_type=dietary_type,
                allergy_flags=list(allergy_flags or []),
                assigned_by=assigned_by,
            )
        return True

    def unassign_guest(self, chair_id: str) -> bool:
        chair = self._chair(chair_id)
        if chair is None or not chair.is_assigned:
            return False
        with self._mutation(ActionType.UNASSIGN_GUEST, "Unseat guest", ASSIGNMENT_FIELDS):
            self._clear_guest(chair)
            self.layout.assignments.pop(chair_id, None)
        return True

    def swap_guests(self, chair_a: str, chair_b: str) -> bool:
        first, second = self._chair(chair_a), self._chair(chair_b)
        if first is None or second is None or first.id == second.id:
            return False
        guest_fields = ("assigned_guest_id", "assigned_guest_name", "dietary_type", "allergy_flags")
        with self._mutation(ActionType.SWAP_GUESTS, "Swap guests", ASSIGNMENT_FIELDS):
            values_a = [getattr(first, f) for f in guest_fields]
            values_b = [getattr(second, f) for f in guest_fields]
            for name, a, b in zip(guest_fields, values_a, values_b):
                setattr(first, name, b)
                setattr(second, name, a)
            assignments = self.layout.assignments
            moved_a, moved_b = assignments.pop(first.id, None), assignments.pop(second.id, None)
            if moved_a is not None:
                assignments[second.id] = moved_a.model_copy(update={"chair_id": second.id})
            if moved_b is not None:
                assignments[first.id] = moved_b.model_copy(update={"chair_id": first.id})
        return True

    # ------------------------------------------------------------------
    # groups
    # ------------------------------------------------------------------

    def group_elements(self, element_ids: Iterable[str], name: str = "") -> Optional[str]:
        if self.layout is None:
            return None
        members = [eid for eid in dict.fromkeys(element_ids) if eid in self.layout.elements]
        if len(members) < 2:
            return None
        group = ElementGroup(name=name or f"Group {len(self.layout.groups) + 1}", element_ids=members)
        with self._mutation(ActionType.GROUP_ELEMENTS, f"Group {len(members)} elements", ("elements", "groups")):
            for eid in members:
                self.layout.elements[eid].group_id = group.id
            self.layout.groups[group.id] = group
        return group.id

    def ungroup_elements(self, group_id: str) -> bool:
        if self.layout is None or group_id not in self.layout.groups:
            return False
        with self._mutation(ActionType.UNGROUP_ELEMENTS, "Ungroup", ("elements", "groups")):
            group = self.layout.groups.pop(group_id)
            for eid in group.element_ids:
                element = self.layout.elements.get(eid)
                if element is not None and element.group_id == group_id:
                    element.group_id = None
        return True

    # ------------------------------------------------------------------
    # venue, settings and metadata
    # ------------------------------------------------------------------

    def add_wall(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        *,
        thickness: Optional[float] = None,
        color: Optional[str] = None,
    ) -> Optional[str]:
        if self.layout is None:
            return None
        wall = Wall(
            start_x=finite_or(start[0], 0.0),
            start_y=finite_or(start[1], 0.0),
            end_x=finite_or(end[0], 0.0),
            end_y=finite_or(end[1], 0.0),
            color=color,
        )
        if thickness is not None:
            wall.thickness = positive_size(thickness, wall.thickness)
        with self._mutation(ActionType.ADD_WALL, "Add wall", ("walls",)):
            self.layout.space.walls.append(wall)
        return wall.id

    def update_wall(self, wall_id: str, patch: Mapping[str, Any]) -> bool:
        if self.layout is None:
            return False
        walls = self.layout.space.walls
        index = next((i for i, w in enumerate(walls) if w.id == wall_id), None)
        if index is None:
            return False
        data = walls[index].model_dump()
        data.update({k: v for k, v in to_field_names(Wall, patch).items() if k != "id"})
        try:
            updated = Wall.model_validate(data)
        except ValueError as exc:
            log.warning("Rejected update to wall %s: %s", wall_id, exc)
            return False
        with self._mutation(ActionType.UPDATE_WALL, "Update wall", ("walls",)):
            walls[index] = updated
        return True

    def delete_wall(self, wall_id: str) -> bool:
        if self.layout is None or not any(w.id == wall_id for w in self.layout.space.walls):
            return False
        with self._mutation(ActionType.DELETE_WALL, "Delete wall", ("walls",)):
            self.layout.space.walls = [w for w in self.layout.space.walls if w.id != wall_id]
        return True

    def update_settings(self, patch: Mapping[str, Any]) -> bool:
        if self.layout is None:
            return False
        data = self.layout.settings.model_dump()
        data.update(to_field_names(LayoutSettings, patch))
        try:
            settings = LayoutSettings.model_validate(data)
        except ValueError as exc:
            log.warning("Rejected settings update: %s", exc)
            return False
        with self._mutation(ActionType.UPDATE_SETTINGS, "Update settings", ("settings",)):
            self.layout.settings = settings
        return True

    def set_status(self, status: Union[str, LayoutStatus]) -> bool:
        if self.layout is None:
            return False
        try:
            self.layout.status = LayoutStatus(status)
        except ValueError:
            log.warning("Unknown layout status %r", status)
            return False
        self._touch()
        return True

    def set_floor_plan(self, floor_plan: Optional[Union[FloorPlanBackground, Mapping[str, Any]]]) -> bool:
        if self.layout is None:
            return False
        if floor_plan is not None and not isinstance(floor_plan, FloorPlanBackground):
            try:
                floor_plan = FloorPlanBackground.model_validate(floor_plan)
            except ValueError as exc:
                log.warning("Rejected floor plan: %s", exc)
                return False
        self.layout.floor_plan = floor_plan
        self._touch()
        return True

    def update_floor_plan(self, patch: Mapping[str, Any]) -> bool:
        if self.layout is None or self.layout.floor_plan is None:
            return False
        data = self.layout.floor_plan.model_dump()
        data.update(to_field_names(FloorPlanBackground, patch))
        return self.set_floor_plan(data)
