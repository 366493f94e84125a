import json

import pytest

from interface.cli import main


def write_layout(path, elements):
    path.write_text(
        json.dumps(
            {
                "schemaVersion": 1,
                "name": "Gala",
                "elements": {e["id"]: e for e in elements},
                "elementOrder": [e["id"] for e in elements],
            }
        )
    )
    return str(path)


def bar(element_id, x):
    return {"id": element_id, "type": "bar", "x": x, "y": 0, "width": 1, "height": 1}


def test_inspect_reports_overlaps(tmp_path, capsys):
    path = write_layout(tmp_path / "layout.json", [bar("a", 0), bar("b", 0.5), bar("c", 5)])
    assert main(["inspect", path]) == 0
    out = capsys.readouterr().out
    assert "Layout: Gala [draft]" in out
    assert "Elements: 3" in out
    assert "WARNING: bar (a) overlaps bar (b)" in out
    assert main(["inspect", path, "--strict"]) == 2


def test_inspect_clean_layout_strict(tmp_path, capsys):
    path = write_layout(tmp_path / "layout.json", [bar("a", 0), bar("c", 5)])
    assert main(["inspect", "--strict", path]) == 0
    assert "WARNING" not in capsys.readouterr().out


def test_sanitize_writes_repaired_document(tmp_path):
    source = write_layout(tmp_path / "in.json", [bar("a", 0), {"id": "bad", "type": "bar"}])
    target = tmp_path / "out.json"
    assert main(["sanitize", source, str(target)]) == 0
    repaired = json.loads(target.read_text())
    assert list(repaired["elements"]) == ["a"]
    assert repaired["elementOrder"] == ["a"]


def test_schema_command(tmp_path):
    target = tmp_path / "layout.v1.json"
    assert main(["schema", str(target)]) == 0
    assert json.loads(target.read_text())["$id"].endswith(":v1")


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_unreadable_layout_exits(tmp_path, content):
    path = tmp_path / "broken.json"
    path.write_text(content)
    with pytest.raises(SystemExit) as exc:
        main(["inspect", str(path)])
    assert exc.value.code == 1


def test_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit):
        main(["inspect", str(tmp_path / "missing.json")])
