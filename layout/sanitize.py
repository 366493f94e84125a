"""Boundary cleanup for layout documents and element patches.

Loaded documents are repaired piece by piece: anything that fails validation
is dropped with a warning and the rest of the document survives.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, List, Mapping, Optional

from layout.constants import CURRENT_SCHEMA_VERSION, MIN_ELEMENT_SIZE
from layout.models import (
    ChairElement,
    Element,
    ElementGroup,
    FloorPlanBackground,
    GuestAssignment,
    Layout,
    LayoutSettings,
    LayoutStatus,
    SpaceDimensions,
    TableElement,
    VenueSpace,
    Wall,
    parse_element,
)

log = logging.getLogger(__name__)

_PROTECTED_FIELDS = {"id", "type"}
_NUMERIC_FIELDS = {"x", "y", "rotation"}
_SIZE_FIELDS = {"width", "height"}


class InvalidLayoutError(ValueError):
    """Raised when a payload cannot be interpreted as a layout at all."""


def _get(data: Mapping[str, Any], camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def finite_or(value: Any, fallback: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    return number if math.isfinite(number) else fallback


def positive_size(value: Any, fallback: float) -> float:
    """Finite sizes are clamped up to ``MIN_ELEMENT_SIZE``; others use ``fallback``."""
    number = finite_or(value, fallback)
    if number < MIN_ELEMENT_SIZE:
        log.warning("Clamping size %r to %s", value, MIN_ELEMENT_SIZE)
        return MIN_ELEMENT_SIZE
    return number


def _field_names(model) -> Dict[str, str]:
    names = {}
    for name, info in model.model_fields.items():
        names[name] = name
        if info.alias:
            names[info.alias] = name
    return names


def to_field_names(model, patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Rewrite camelCase keys of ``patch`` to ``model`` field names; unknown keys are dropped."""
    names = _field_names(model)
    return {names[key]: value for key, value in patch.items() if key in names}


def sanitize_element_data(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Clean numeric fields of raw element data before validation."""
    cleaned = dict(data)
    for key in _NUMERIC_FIELDS:
        if key in cleaned:
            cleaned[key] = finite_or(cleaned[key], 0.0)
    for key in _SIZE_FIELDS:
        if key in cleaned:
            cleaned[key] = positive_size(cleaned[key], MIN_ELEMENT_SIZE)
    return cleaned


def sanitize_patch(element: Element, patch: Mapping[str, Any]) -> Dict[str, Any]:
    """Translate a patch to field names valid for ``element``, repairing numbers.

    Unknown and identity fields are dropped.  Non-finite coordinates keep
    the element's current value.
    """
    names = _field_names(type(element))
    cleaned: Dict[str, Any] = {}
    for key, value in patch.items():
        name = names.get(key)
        if name is None or name in _PROTECTED_FIELDS:
            log.debug("Dropping patch field %r for %s", key, element.id)
            continue
        current = getattr(element, name)
        if name in _NUMERIC_FIELDS:
            value = finite_or(value, current)
        elif name in _SIZE_FIELDS:
            value = positive_size(value, current)
        cleaned[name] = value
    return cleaned


def _mapping_or_empty(value: Any, what: str) -> Dict[str, Any]:
    if isinstance(value, Mapping):
        return dict(value)
    if value is not None:
        log.warning("Ignoring %s section of type %s", what, type(value).__name__)
    return {}


def migrate_layout(data: Dict[str, Any]) -> Dict[str, Any]:
    """Bring a legacy (version 0) document up to the current shape."""
    version = _get(data, "schemaVersion", "schema_version", 0)
    if isinstance(version, int) and version >= CURRENT_SCHEMA_VERSION:
        return data
    migrated = dict(data)
    space = _mapping_or_empty(migrated.get("space"), "space")
    if "width" in migrated or "height" in migrated:
        space.setdefault(
            "dimensions", {"width": migrated.pop("width", None), "height": migrated.pop("height", None)}
        )
        space["dimensions"] = {k: v for k, v in space["dimensions"].items() if v is not None}
    if "pixelsPerMeter" in migrated:
        space.setdefault("pixelsPerMeter", migrated.pop("pixelsPerMeter"))
    migrated["space"] = space

    settings = _mapping_or_empty(migrated.get("settings"), "settings")
    if "snapToGrid" in settings:
        settings.setdefault("snapEnabled", settings.pop("snapToGrid"))
    if "showGrid" in settings:
        settings.setdefault("gridVisible", settings.pop("showGrid"))
    migrated["settings"] = settings

    elements = migrated.get("elements")
    if isinstance(elements, list):
        migrated["elements"] = {
            item["id"]: item for item in elements if isinstance(item, Mapping) and isinstance(item.get("id"), str)
        }
    if "elementOrder" not in migrated and isinstance(migrated.get("elements"), Mapping):
        migrated["elementOrder"] = list(migrated["elements"].keys())
    migrated["schemaVersion"] = CURRENT_SCHEMA_VERSION
    log.info("Migrated layout from schema version %s to %s", version, CURRENT_SCHEMA_VERSION)
    return migrated


def _validate_each(items: Any, model, what: str) -> List:
    valid = []
    for item in items if isinstance(items, list) else []:
        try:
            valid.append(model.model_validate(item))
        except ValueError as exc:
            log.warning("Dropping invalid %s: %s", what, exc)
    return valid


def _validate_or_default(value: Any, model, what: str):
    if value is None:
        return model()
    try:
        return model.model_validate(value)
    except ValueError as exc:
        log.warning("Replacing invalid %s with defaults: %s", what, exc)
        return model()


def _sanitize_elements(raw: Any) -> Dict[str, Element]:
    elements: Dict[str, Element] = {}
    if not isinstance(raw, Mapping):
        if raw is not None:
            log.warning("Ignoring elements payload of type %s", type(raw).__name__)
        return elements
    for key, item in raw.items():
        if not isinstance(item, Mapping):
            log.warning("Dropping element %r: not an object", key)
            continue
        data = dict(item)
        data.setdefault("id", key)
        try:
            element = parse_element(data)
        except ValueError as exc:
            log.warning("Dropping invalid element %r: %s", key, exc)
            continue
        if element.id in elements:
            log.warning("Dropping duplicate element id %r", element.id)
            continue
        elements[element.id] = element
    return elements


def _reindex_duplicate_seats(elements: Dict[str, Element]) -> None:
    by_table: Dict[str, List[ChairElement]] = {}
    for element in elements.values():
        if isinstance(element, ChairElement) and element.parent_table_id is not None:
            by_table.setdefault(element.parent_table_id, []).append(element)
    for table_id, chairs in by_table.items():
        if len({c.seat_index for c in chairs}) == len(chairs):
            continue
        log.warning("Renumbering duplicate seat indices at table %s", table_id)
        for index, chair in enumerate(sorted(chairs, key=lambda c: c.seat_index)):
            chair.seat_index = index


def _sanitize_order(raw: Any, elements: Dict[str, Element]) -> List[str]:
    order: List[str] = []
    seen = set()
    for element_id in raw if isinstance(raw, list) else []:
        if isinstance(element_id, str) and element_id in elements and element_id not in seen:
            order.append(element_id)
            seen.add(element_id)
        else:
            log.warning("Removing dangling or duplicate order id %r", element_id)
    missing = sorted((e for e in elements.values() if e.id not in seen), key=lambda e: e.z_index)
    order.extend(e.id for e in missing)
    return order


def _optional_str(data: Mapping[str, Any], camel: str, snake: str) -> Optional[str]:
    value = _get(data, camel, snake)
    return value if isinstance(value, str) else None


def sanitize_layout(data: Any) -> Layout:
    """Build a valid :class:`Layout` from an untrusted document."""
    if not isinstance(data, Mapping):
        raise InvalidLayoutError(f"Layout must be an object, got {type(data).__name__}")
    data = migrate_layout(dict(data))

    elements = _sanitize_elements(data.get("elements"))
    for element in elements.values():
        if isinstance(element, TableElement):
            element.chair_ids = [cid for cid in element.chair_ids if cid in elements]
    _reindex_duplicate_seats(elements)

    raw_space = data.get("space") if isinstance(data.get("space"), Mapping) else {}
    space = VenueSpace(
        walls=_validate_each(raw_space.get("walls"), Wall, "wall"),
        dimensions=_validate_or_default(raw_space.get("dimensions"), SpaceDimensions, "venue dimensions"),
    )
    ppm = finite_or(_get(raw_space, "pixelsPerMeter", "pixels_per_meter", space.pixels_per_meter), 0.0)
    if ppm > 0:
        space.pixels_per_meter = ppm

    assignments: Dict[str, GuestAssignment] = {}
    raw_assignments = data.get("assignments")
    for chair_id, item in (raw_assignments.items() if isinstance(raw_assignments, Mapping) else []):
        valid = _validate_each([item], GuestAssignment, "guest assignment")
        if valid and valid[0].chair_id in elements:
            assignments[valid[0].chair_id] = valid[0]

    groups: Dict[str, ElementGroup] = {}
    raw_groups = data.get("groups")
    for item in (raw_groups.values() if isinstance(raw_groups, Mapping) else []):
        for group in _validate_each([item], ElementGroup, "group"):
            group.element_ids = [eid for eid in group.element_ids if eid in elements]
            groups[group.id] = group

    floor_plan = None
    raw_floor_plan = _get(data, "floorPlan", "floor_plan")
    if raw_floor_plan is not None:
        found = _validate_each([raw_floor_plan], FloorPlanBackground, "floor plan")
        floor_plan = found[0] if found else None

    status = data.get("status", LayoutStatus.DRAFT.value)
    if not isinstance(status, str) or status not in {s.value for s in LayoutStatus}:
        log.warning("Unknown layout status %r; using draft", status)
        status = LayoutStatus.DRAFT.value

    layout = Layout(
        elements=elements,
        element_order=_sanitize_order(_get(data, "elementOrder", "element_order"), elements),
        space=space,
        floor_plan=floor_plan,
        groups=groups,
        assignments=assignments,
        settings=_validate_or_default(data.get("settings"), LayoutSettings, "settings"),
        status=status,
    )
    for camel, snake in (
        ("id", "id"),
        ("name", "name"),
        ("description", "description"),
        ("createdAt", "created_at"),
        ("updatedAt", "updated_at"),
    ):
        value = _optional_str(data, camel, snake)
        if value is not None:
            setattr(layout, snake, value)
    for camel, snake in (("projectId", "project_id"), ("eventId", "event_id"), ("createdBy", "created_by")):
        setattr(layout, snake, _optional_str(data, camel, snake))
    log.info("Loaded layout %s with %d elements", layout.id, len(layout.elements))
    return layout
