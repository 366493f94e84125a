import math

import pytest

from layout.constants import CURRENT_SCHEMA_VERSION, MIN_ELEMENT_SIZE
from layout.models import ChairElement, LayoutSettings, LayoutStatus, ServiceElement, TableElement
from layout.sanitize import (
    InvalidLayoutError,
    migrate_layout,
    sanitize_element_data,
    sanitize_layout,
    sanitize_patch,
    to_field_names,
)


def element(element_id, element_type="bar", **extra):
    data = {"id": element_id, "type": element_type, "x": 1, "y": 1, "width": 1, "height": 1}
    data.update(extra)
    return data


@pytest.mark.parametrize("payload", [None, [], "layout", 3])
def test_non_mapping_rejected(payload):
    with pytest.raises(InvalidLayoutError):
        sanitize_layout(payload)


def test_invalid_elements_are_dropped():
    layout = sanitize_layout(
        {
            "schemaVersion": 1,
            "elements": {
                "ok": element("ok"),
                "unknown": element("unknown", "spaceship"),
                "negative": element("negative", width=-1),
                "nan": element("nan", x=math.nan),
                "junk": "not an element",
            },
        }
    )
    assert list(layout.elements) == ["ok"]
    assert isinstance(layout.elements["ok"], ServiceElement)


def test_missing_id_taken_from_key():
    data = element("ignored")
    del data["id"]
    layout = sanitize_layout({"schemaVersion": 1, "elements": {"from-key": data}})
    assert layout.elements["from-key"].id == "from-key"


def test_element_order_repaired():
    layout = sanitize_layout(
        {
            "schemaVersion": 1,
            "elements": {
                "a": element("a", zIndex=2),
                "b": element("b", zIndex=1),
                "c": element("c", zIndex=0),
            },
            "elementOrder": ["a", "ghost", "a"],
        }
    )
    assert layout.element_order == ["a", "c", "b"]


def test_dangling_references_filtered():
    layout = sanitize_layout(
        {
            "schemaVersion": 1,
            "elements": {
                "t": element("t", "table-round", capacity=4, chairIds=["c", "gone"]),
                "c": element("c", "chair", parentTableId="t", parentId="t"),
            },
            "assignments": {
                "c": {"chairId": "c", "guestId": "g1"},
                "gone": {"chairId": "gone", "guestId": "g2"},
                "bad": {"guestId": "g3"},
            },
            "groups": {"grp": {"id": "grp", "elementIds": ["t", "gone"]}},
        }
    )
    table = layout.elements["t"]
    assert isinstance(table, TableElement)
    assert table.chair_ids == ["c"]
    assert isinstance(layout.elements["c"], ChairElement)
    assert list(layout.assignments) == ["c"]
    assert layout.groups["grp"].element_ids == ["t"]


def test_bad_sections_fall_back_to_defaults():
    layout = sanitize_layout(
        {
            "schemaVersion": 1,
            "status": "shipped",
            "settings": {"gridSize": -3},
            "space": {"walls": [{"startX": 0}], "dimensions": {"width": 0}, "pixelsPerMeter": "fast"},
            "floorPlan": {"opacity": 7},
            "name": "Gala",
            "projectId": 12,
        }
    )
    assert layout.status is LayoutStatus.DRAFT
    assert layout.settings == LayoutSettings()
    assert layout.space.walls == []
    assert layout.space.dimensions.width == 20
    assert layout.space.pixels_per_meter == 100
    assert layout.floor_plan is None
    assert layout.name == "Gala"
    assert layout.project_id is None


def test_legacy_document_is_migrated():
    legacy = {
        "name": "Old",
        "width": 30,
        "height": 12,
        "pixelsPerMeter": 50,
        "settings": {"snapToGrid": False, "showGrid": False},
        "elements": [element("a"), element("b"), {"type": "bar"}],
    }
    migrated = migrate_layout(dict(legacy))
    assert migrated["schemaVersion"] == CURRENT_SCHEMA_VERSION
    assert migrated["elementOrder"] == ["a", "b"]
    layout = sanitize_layout(legacy)
    assert layout.space.dimensions.width == 30
    assert layout.space.dimensions.height == 12
    assert layout.space.pixels_per_meter == 50
    assert layout.settings.snap_enabled is False
    assert layout.settings.grid_visible is False
    assert layout.element_order == ["a", "b"]


def test_current_document_is_not_migrated():
    data = {"schemaVersion": CURRENT_SCHEMA_VERSION, "width": 99}
    assert migrate_layout(data) is data


def test_sanitize_patch():
    bar = ServiceElement(id="a", type="bar", x=1, y=2, width=1, height=1)
    patch = sanitize_patch(
        bar, {"id": "x", "type": "stage", "x": math.inf, "y": 4, "width": 0, "zIndex": 3, "bogus": 1}
    )
    assert patch == {"x": 1, "y": 4, "width": MIN_ELEMENT_SIZE, "z_index": 3}


def test_element_data_cleanup():
    cleaned = sanitize_element_data({"x": "nope", "width": math.nan, "height": 0.01, "label": "kept"})
    assert cleaned == {"x": 0.0, "width": MIN_ELEMENT_SIZE, "height": MIN_ELEMENT_SIZE, "label": "kept"}


def test_to_field_names():
    assert to_field_names(LayoutSettings, {"gridSize": 1, "snap_enabled": False, "nope": 2}) == {
        "grid_size": 1,
        "snap_enabled": False,
    }


@pytest.mark.parametrize(
    "payload",
    [
        {"status": []},
        {"status": {"x": 1}},
        {"elementOrder": [["x"], {"y": 1}]},
        {"settings": [1, 2]},
        {"space": "abc"},
        {"space": [1], "settings": "fast", "elements": [element("a")]},
    ],
)
def test_malformed_sections_fall_back_to_defaults(payload):
    layout = sanitize_layout(payload)
    assert layout.status is LayoutStatus.DRAFT
    assert layout.settings == LayoutSettings()
    assert layout.space.dimensions.width == 20
    assert set(layout.element_order) == set(layout.elements)


def test_malformed_order_entries_are_dropped():
    layout = sanitize_layout(
        {"schemaVersion": 1, "elements": {"a": element("a")}, "elementOrder": [["a"], "a", None]}
    )
    assert layout.element_order == ["a"]


def test_duplicate_seat_indices_are_renumbered():
    layout = sanitize_layout(
        {
            "schemaVersion": 1,
            "elements": {
                "t": element("t", "table-round", capacity=3, chairIds=["c1", "c2", "c3"]),
                "c1": element("c1", "chair", parentTableId="t", seatIndex=0),
                "c2": element("c2", "chair", parentTableId="t", seatIndex=0),
                "c3": element("c3", "chair", parentTableId="t", seatIndex=2),
                "other": element("other", "chair", parentTableId="u", seatIndex=5),
            },
        }
    )
    seats = {cid: layout.elements[cid].seat_index for cid in ("c1", "c2", "c3")}
    assert seats == {"c1": 0, "c2": 1, "c3": 2}
    assert layout.elements["other"].seat_index == 5
