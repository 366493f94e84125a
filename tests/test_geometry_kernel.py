import pytest

from geometry.kernel import (
    Bounds,
    Point,
    Rect,
    bounds_of,
    clamp,
    distance,
    element_area,
    element_perimeter,
    lerp,
    map_range,
    midpoint,
    normalize_angle,
    point_in_circle,
    point_in_rect,
    point_on_boundary,
    rect_corners,
    rects_intersect,
    rotate_point,
    rotated_bounding_box,
)


def test_distance_and_midpoint():
    assert distance(Point(0, 0), Point(3, 4)) == 5
    assert midpoint(Point(0, 0), Point(2, 4)) == (1, 2)


def test_rotate_point_counter_clockwise():
    p = rotate_point(Point(1, 0), Point(0, 0), 90)
    assert p.x == pytest.approx(0, abs=1e-12)
    assert p.y == pytest.approx(1)


@pytest.mark.parametrize(
    "angle,expected",
    [(0, 0), (90, 90), (360, 0), (450, 90), (-90, 270), (-720, 0), (359.5, 359.5)],
)
def test_normalize_angle(angle, expected):
    assert normalize_angle(angle) == pytest.approx(expected)


def test_corners_unrotated_order():
    assert rect_corners(Rect(0, 0, 2, 1)) == [(0, 0), (2, 0), (2, 1), (0, 1)]


def test_rotated_bounding_box_quarter_turn():
    box = rotated_bounding_box(Rect(0, 0, 2, 1, 90))
    assert box.min_x == pytest.approx(0.5)
    assert box.max_x == pytest.approx(1.5)
    assert box.min_y == pytest.approx(-0.5)
    assert box.max_y == pytest.approx(1.5)


def test_bounding_box_matches_corners():
    rect = Rect(1, 2, 3, 1.5, 30)
    box = rotated_bounding_box(rect)
    corner_box = bounds_of(rect_corners(rect))
    assert box.min_x == pytest.approx(corner_box.min_x)
    assert box.max_y == pytest.approx(corner_box.max_y)


def test_point_in_rotated_rect():
    rect = Rect(0, 0, 2, 1, 90)
    assert point_in_rect(Point(1, 1.4), rect)
    assert not point_in_rect(Point(0.1, 0.5), rect)
    assert point_in_rect(Point(0, 0), Rect(0, 0, 1, 1))


def test_rects_intersect_touching_and_separate():
    assert rects_intersect(Rect(0, 0, 1, 1), Rect(1, 0, 1, 1))
    assert rects_intersect(Rect(0, 0, 2, 2), Rect(1, 1, 2, 2))
    assert not rects_intersect(Rect(0, 0, 1, 1), Rect(2, 0, 1, 1))


def test_rects_intersect_uses_rotated_shape():
    diamond = Rect(0, 0, 1, 1, 45)
    square = Rect(1.1, 1.1, 1, 1)
    # the bounding boxes overlap but the shapes do not
    assert rotated_bounding_box(diamond).overlaps(rotated_bounding_box(square))
    assert not rects_intersect(diamond, square)


def test_point_in_circle():
    assert point_in_circle(Point(1, 0), Point(0, 0), 1)
    assert not point_in_circle(Point(1.01, 0), Point(0, 0), 1)


def test_point_on_boundary():
    rect = Rect(0, 0, 2, 2)
    assert point_on_boundary(Point(1, 0.005), rect)
    assert not point_on_boundary(Point(1, 1), rect)


def test_area_perimeter_and_scalars():
    rect = Rect(0, 0, 2, 3)
    assert element_area(rect) == 6
    assert element_perimeter(rect) == 10
    assert clamp(5, 0, 1) == 1
    assert lerp(0, 10, 0.25) == 2.5
    assert map_range(5, 0, 10, 0, 100) == 50
    assert map_range(5, 1, 1, 7, 9) == 7


def test_bounds_helpers():
    assert bounds_of([]) is None
    box = Bounds(0, 0, 4, 2)
    assert box.center == (2, 1)
    assert box.width == 4 and box.height == 2
    assert box.contains(Bounds(1, 0, 2, 2))
    assert box.union(Bounds(-1, 1, 1, 5)) == Bounds(-1, 0, 4, 5)
    assert box.expanded(0.5).width == 5
