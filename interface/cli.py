import argparse
import json
import logging
import sys

from evaluation.collision import describe_collisions
from layout.config import EditorConfig
from layout.models import emit_layout_schema
from layout.sanitize import InvalidLayoutError
from layout.store import LayoutStore


def _load(path: str, log: logging.Logger) -> LayoutStore:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        log.error("Failed to read layout file %s: %s", path, e)
        sys.exit(1)
    store = LayoutStore(config=EditorConfig.from_env())
    try:
        store.load_layout(data)
    except InvalidLayoutError as e:
        log.error("%s: %s", path, e)
        sys.exit(1)
    return store


def _inspect(args, log: logging.Logger) -> int:
    store = _load(args.layout, log)
    summary = store.summary()
    print(f"Layout: {store.layout.name} [{store.layout.status.value}]")
    print(f"Elements: {summary.element_count}")
    print(f"Tables: {summary.table_count} (capacity {summary.seat_capacity})")
    print(f"Chairs: {summary.chair_count} ({summary.assigned_count} assigned)")
    print(f"Zones: {summary.zone_count}")
    print(f"Walls: {summary.wall_count}")
    issues = describe_collisions(store.elements, store.config.collision_buffer)
    for issue in issues:
        print(f"WARNING: {issue}")
    if args.strict and issues:
        return 2
    return 0


def _sanitize(args, log: logging.Logger) -> int:
    store = _load(args.layout, log)
    try:
        with open(args.output, "w", encoding="utf-8") as f:
            json.dump(store.export_layout(), f, indent=2)
    except OSError as e:
        log.error("Failed to write layout JSON to %s: %s", args.output, e)
        return 1
    print(f"Saved layout JSON to {args.output}")
    return 0


def _schema(args, log: logging.Logger) -> int:
    try:
        emit_layout_schema(args.output)
    except OSError as e:
        log.error("Failed to write schema to %s: %s", args.output, e)
        return 1
    print(f"Wrote {args.output}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Inspect and repair seating-chart layout documents")
    parser.add_argument("--verbose", action="store_true", help="Log per-element details")
    sub = parser.add_subparsers(dest="command", required=True)

    inspect = sub.add_parser("inspect", help="Summarize a layout and report overlapping elements")
    inspect.add_argument("layout", help="Path to a layout JSON document")
    inspect.add_argument("--strict", action="store_true", help="Exit with status 2 when elements overlap")
    inspect.set_defaults(func=_inspect)

    sanitize = sub.add_parser("sanitize", help="Load, repair and rewrite a layout document")
    sanitize.add_argument("layout", help="Path to a layout JSON document")
    sanitize.add_argument("output", help="Where to write the repaired document")
    sanitize.set_defaults(func=_sanitize)

    schema = sub.add_parser("schema", help="Write the layout JSON Schema")
    schema.add_argument("output", nargs="?", default="schema/layout.v1.json", help="Output path")
    schema.set_defaults(func=_schema)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s: %(message)s"
    )
    log = logging.getLogger(__name__)
    return args.func(args, log)


if __name__ == "__main__":
    sys.exit(main())
