import pytest

from geometry.kernel import Bounds, Point, Rect
from geometry.transform import Viewport, ViewportState, screen_to_world, world_to_screen

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, strategies as st


def test_world_to_screen_default(viewport):
    assert viewport.world_to_screen(Point(1, 2)) == (100, 200)
    assert viewport.screen_to_world(Point(100, 200)) == (1, 2)


@given(
    pan_x=st.floats(min_value=-1e4, max_value=1e4),
    pan_y=st.floats(min_value=-1e4, max_value=1e4),
    zoom=st.floats(min_value=0.1, max_value=5.0),
    ppm=st.floats(min_value=10, max_value=500),
    x=st.floats(min_value=-1e3, max_value=1e3),
    y=st.floats(min_value=-1e3, max_value=1e3),
)
def test_round_trip(pan_x, pan_y, zoom, ppm, x, y):
    state = ViewportState(pan_x=pan_x, pan_y=pan_y, zoom=zoom)
    back = screen_to_world(world_to_screen(Point(x, y), state, ppm), state, ppm)
    assert back.x == pytest.approx(x, abs=1e-6)
    assert back.y == pytest.approx(y, abs=1e-6)


@given(
    level=st.floats(min_value=0.01, max_value=20),
    px=st.floats(min_value=0, max_value=800),
    py=st.floats(min_value=0, max_value=600),
)
def test_zoom_keeps_pivot_fixed(level, px, py):
    vp = Viewport()
    vp.pan_by(37, -12)
    pivot = Point(px, py)
    before = vp.screen_to_world(pivot)
    vp.zoom_to(level, pivot)
    after = vp.screen_to_world(pivot)
    assert after.x == pytest.approx(before.x, abs=1e-6)
    assert after.y == pytest.approx(before.y, abs=1e-6)


def test_zoom_is_clamped(viewport):
    viewport.zoom_to(100)
    assert viewport.zoom == 5.0
    viewport.zoom_to(0.001)
    assert viewport.zoom == 0.1


def test_zoom_steps(viewport):
    viewport.zoom_in()
    assert viewport.zoom == pytest.approx(1.2)
    viewport.zoom_out()
    assert viewport.zoom == pytest.approx(1.0)
    viewport.zoom_by(0.5)
    assert viewport.zoom == pytest.approx(1.5)


def test_pan_by_moves_screen_by_pixels(viewport):
    viewport.zoom_to(2, Point(0, 0))
    before = viewport.world_to_screen(Point(1, 1))
    viewport.pan_by(10, -4)
    after = viewport.world_to_screen(Point(1, 1))
    assert after.x - before.x == pytest.approx(10)
    assert after.y - before.y == pytest.approx(-4)


def test_pan_to_centers_point(viewport):
    viewport.zoom_to(1.7)
    viewport.pan_to(Point(3, 4))
    center = viewport.world_to_screen(Point(3, 4))
    assert center.x == pytest.approx(400)
    assert center.y == pytest.approx(300)


def test_fit_to_bounds(viewport):
    viewport.fit_to_bounds(Bounds(0, 0, 10, 5))
    assert viewport.zoom == pytest.approx(0.7)
    center = viewport.world_to_screen(Point(5, 2.5))
    assert center == (pytest.approx(400), pytest.approx(300))


def test_fit_to_elements(viewport):
    assert not viewport.fit_to_elements([])
    assert viewport.fit_to_elements([Rect(0, 0, 1, 1), Rect(9, 4, 1, 1)])
    visible = viewport.visible_bounds()
    assert visible.contains(Bounds(0, 0, 10, 5))


def test_fit_to_degenerate_bounds_uses_max_zoom(viewport):
    viewport.fit_to_bounds(Bounds(2, 2, 2, 2))
    assert viewport.zoom == 5.0


def test_set_pixels_per_meter(viewport):
    viewport.set_pixels_per_meter(200)
    assert viewport.world_to_screen(Point(1, 1)) == (200, 200)
    viewport.set_pixels_per_meter(-3)
    assert viewport.pixels_per_meter == 200


def test_visibility(viewport):
    assert viewport.visible_bounds() == Bounds(0, 0, 8, 6)
    assert viewport.is_point_visible(Point(4, 3))
    assert not viewport.is_point_visible(Point(9, 3))
    assert viewport.is_rect_visible(Bounds(7.5, 5.5, 9, 9))


def test_deltas_and_lengths(viewport):
    viewport.zoom_to(2, Point(0, 0))
    assert viewport.meters_to_pixels(1) == 200
    assert viewport.pixels_to_meters(200) == 1
    assert viewport.screen_delta_to_world(100, 50) == (0.5, 0.25)
    rect = viewport.world_rect_to_screen(Bounds(0, 0, 1, 1))
    assert viewport.screen_rect_to_world(rect) == Bounds(0, 0, 1, 1)


def test_reset_view(viewport):
    viewport.zoom_to(3, Point(10, 10))
    viewport.reset_view()
    assert viewport.zoom == 1.0
    assert viewport.world_to_screen(Point(0, 0)) == (0, 0)


def test_invalid_density_rejected():
    with pytest.raises(ValueError):
        Viewport(pixels_per_meter=0)
