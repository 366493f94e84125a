import pytest

from conftest import add_box
from evaluation.collision import (
    CollisionMonitor,
    colliding_ids,
    describe_collisions,
    elements_bounding_box,
    elements_collide,
    find_all_collisions,
    find_collisions,
    find_collisions_for_rect,
    find_elements_in_bounds,
    find_nearest_element,
    is_element_in_bounds,
    is_element_inside,
    overlap_area,
)
from geometry.kernel import Bounds, Rect
from layout.models import ChairElement, ServiceElement, TableElement, ZoneElement

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, strategies as st


def bar(element_id, x, y, width=1.0, height=1.0, **extra):
    return ServiceElement(id=element_id, type="bar", x=x, y=y, width=width, height=height, **extra)


def elements(*items):
    return {item.id: item for item in items}


def test_overlapping_elements_collide():
    a, b = bar("a", 0, 0, 2, 2), bar("b", 1, 1, 2, 2)
    assert elements_collide(a, b)
    assert elements_collide(b, a)


@pytest.mark.parametrize("gap,expected", [(0.08, True), (0.2, False)])
def test_buffer(gap, expected):
    a, b = bar("a", 0, 0), bar("b", 1 + gap, 0)
    assert elements_collide(a, b) is expected


def test_rotation_grows_the_box():
    a = bar("a", 0, 0, 3, 0.5)
    b = bar("b", 1, 1.5, 1, 1)
    assert not elements_collide(a, b)
    assert elements_collide(a.model_copy(update={"rotation": 90}), b)


def test_exemptions():
    table = TableElement(id="t", type="table-round", x=0, y=0, width=1.5, height=1.5, capacity=4)
    chair = ChairElement(id="c", x=0.5, y=0.5, width=0.45, height=0.45, parent_id="t", parent_table_id="t")
    zone = ZoneElement(id="z", type="stage", x=0, y=0, width=3, height=3)
    g1 = bar("g1", 0, 0, group_id="grp")
    g2 = bar("g2", 0.5, 0, group_id="grp")
    assert not elements_collide(table, chair)
    assert not elements_collide(table, zone)
    assert not elements_collide(g1, g2)
    assert not elements_collide(table, table)
    assert elements_collide(table, g1)


def test_all_pairs_sorted():
    els = elements(bar("c", 0, 0), bar("a", 0.5, 0), bar("b", 5, 5), bar("d", 5.5, 5))
    assert find_all_collisions(els) == [("a", "c"), ("b", "d")]
    assert colliding_ids(els) == {"a", "b", "c", "d"}
    assert len(describe_collisions(els)) == 2


def test_find_collisions_single():
    els = elements(bar("a", 0, 0), bar("b", 0.5, 0), bar("c", 9, 9))
    assert find_collisions("a", els) == ["b"]
    assert find_collisions("c", els) == []
    assert find_collisions("ghost", els) == []


def test_proposed_rect():
    els = elements(bar("a", 0, 0), bar("b", 3, 0))
    assert find_collisions_for_rect(Rect(0.5, 0, 1, 1), els) == ["a"]
    assert find_collisions_for_rect(Rect(0.5, 0, 1, 1), els, exclude_ids=["a"]) == []
    moved = els["b"].model_copy(update={"x": 0.5})
    assert find_collisions_for_rect(moved, els) == ["a"]


@given(
    st.tuples(st.floats(0, 10), st.floats(0, 10), st.floats(0.1, 3), st.floats(0.1, 3), st.floats(0, 359)),
    st.tuples(st.floats(0, 10), st.floats(0, 10), st.floats(0.1, 3), st.floats(0.1, 3), st.floats(0, 359)),
)
def test_collision_is_symmetric(first, second):
    a = bar("a", first[0], first[1], first[2], first[3], rotation=first[4])
    b = bar("b", second[0], second[1], second[2], second[3], rotation=second[4])
    assert elements_collide(a, b) == elements_collide(b, a)
    els = elements(a, b)
    assert ("b" in find_collisions("a", els)) == ("a" in find_collisions("b", els))


def test_bounds_queries():
    a, b = bar("a", 0, 0, 2, 2), bar("b", 1, 1, 2, 2)
    assert overlap_area(a, b) == pytest.approx(1.0)
    assert overlap_area(a, bar("c", 5, 5)) == 0
    assert is_element_inside(bar("i", 0.5, 0.5), a)
    assert not is_element_inside(b, a)
    assert is_element_in_bounds(a, Bounds(0, 0, 2, 2))
    assert elements_bounding_box([a, b]) == Bounds(0, 0, 3, 3)
    assert elements_bounding_box([]) is None
    assert find_elements_in_bounds(elements(a, b), Bounds(0, 0, 1.5, 1.5)) == ["a"]


def test_nearest_element():
    els = elements(bar("a", 0, 0), bar("b", 2, 0), bar("c", 10, 0))
    assert find_nearest_element("a", els) == "b"
    assert find_nearest_element("a", els, predicate=lambda e: e.id == "c") == "c"
    assert find_nearest_element("ghost", els) is None


def test_monitor_follows_store(store):
    monitor = CollisionMonitor(store)
    a = add_box(store, 0, 0)
    b = add_box(store, 5, 0)
    assert monitor.colliding_ids == set()
    store.move_elements([b], -4.5, 0)
    assert monitor.colliding_ids == {a, b}
    assert monitor.is_colliding(a)
    assert monitor.check(a) == [b]
    assert monitor.check_proposed(Rect(5, 5, 1, 1)) == []
    store.undo()
    assert monitor.colliding_ids == set()
