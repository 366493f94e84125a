import json

from layout.models import Layout, emit_layout_schema


def test_layout_schema_contains_core_fields(tmp_path):
    schema = Layout.model_json_schema(by_alias=True)
    props = schema.get("properties") or {}
    for name in ("elements", "elementOrder", "space", "settings", "assignments", "schemaVersion"):
        assert name in props


def test_emitted_schema_is_versioned(tmp_path):
    out = tmp_path / "schema" / "layout.v1.json"
    emit_layout_schema(str(out))
    loaded = json.loads(out.read_text())
    assert loaded["$id"] == "urn:seating-chart-editor:layout:v1"
    assert "properties" in loaded
