"""World (meters) <-> screen (pixels) conversion and viewport navigation.

``screen = (world * pixels_per_meter + pan) * zoom`` for each axis, so the
pan offset is expressed in unzoomed pixels.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional

from geometry.kernel import Bounds, Point, bounds_of, rect_corners
from layout.constants import (
    DEFAULT_PIXELS_PER_METER,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    VIEWPORT_PADDING,
    ZOOM_DEFAULT,
    ZOOM_MAX,
    ZOOM_MIN,
    ZOOM_STEP_FACTOR,
)

log = logging.getLogger(__name__)


@dataclass
class ViewportState:
    pan_x: float = 0.0
    pan_y: float = 0.0
    zoom: float = ZOOM_DEFAULT
    width: float = DEFAULT_VIEWPORT_WIDTH
    height: float = DEFAULT_VIEWPORT_HEIGHT


def world_to_screen(point: Point, state: ViewportState, pixels_per_meter: float) -> Point:
    return Point(
        (point[0] * pixels_per_meter + state.pan_x) * state.zoom,
        (point[1] * pixels_per_meter + state.pan_y) * state.zoom,
    )


def screen_to_world(point: Point, state: ViewportState, pixels_per_meter: float) -> Point:
    return Point(
        (point[0] / state.zoom - state.pan_x) / pixels_per_meter,
        (point[1] / state.zoom - state.pan_y) / pixels_per_meter,
    )


def clamp_zoom(level: float, zoom_min: float = ZOOM_MIN, zoom_max: float = ZOOM_MAX) -> float:
    if not math.isfinite(level):
        return zoom_max if level > 0 else zoom_min
    return max(zoom_min, min(zoom_max, level))


class Viewport:
    """Mutable camera over the floor plan."""

    def __init__(
        self,
        pixels_per_meter: float = DEFAULT_PIXELS_PER_METER,
        width: float = DEFAULT_VIEWPORT_WIDTH,
        height: float = DEFAULT_VIEWPORT_HEIGHT,
        *,
        zoom_min: float = ZOOM_MIN,
        zoom_max: float = ZOOM_MAX,
    ) -> None:
        if pixels_per_meter <= 0:
            raise ValueError("pixels_per_meter must be positive")
        self.pixels_per_meter = float(pixels_per_meter)
        self.zoom_min = zoom_min
        self.zoom_max = zoom_max
        self.state = ViewportState(width=float(width), height=float(height))

    @classmethod
    def from_config(
        cls, config, width: float = DEFAULT_VIEWPORT_WIDTH, height: float = DEFAULT_VIEWPORT_HEIGHT
    ) -> "Viewport":
        """Viewport using the density and zoom limits of an ``EditorConfig``."""
        return cls(config.pixels_per_meter, width, height, zoom_min=config.zoom_min, zoom_max=config.zoom_max)

    @property
    def zoom(self) -> float:
        return self.state.zoom

    # -- conversions -------------------------------------------------------

    def world_to_screen(self, point: Point) -> Point:
        return world_to_screen(point, self.state, self.pixels_per_meter)

    def screen_to_world(self, point: Point) -> Point:
        return screen_to_world(point, self.state, self.pixels_per_meter)

    def meters_to_pixels(self, meters: float) -> float:
        """Length in screen pixels at the current zoom."""
        return meters * self.pixels_per_meter * self.state.zoom

    def pixels_to_meters(self, pixels: float) -> float:
        return pixels / (self.pixels_per_meter * self.state.zoom)

    def world_delta_to_screen(self, dx: float, dy: float) -> Point:
        return Point(self.meters_to_pixels(dx), self.meters_to_pixels(dy))

    def screen_delta_to_world(self, dx: float, dy: float) -> Point:
        return Point(self.pixels_to_meters(dx), self.pixels_to_meters(dy))

    def world_rect_to_screen(self, bounds: Bounds) -> Bounds:
        top_left = self.world_to_screen(Point(bounds.min_x, bounds.min_y))
        bottom_right = self.world_to_screen(Point(bounds.max_x, bounds.max_y))
        return Bounds(top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    def screen_rect_to_world(self, bounds: Bounds) -> Bounds:
        top_left = self.screen_to_world(Point(bounds.min_x, bounds.min_y))
        bottom_right = self.screen_to_world(Point(bounds.max_x, bounds.max_y))
        return Bounds(top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    # -- zoom --------------------------------------------------------------

    def zoom_to(self, level: float, pivot: Optional[Point] = None) -> None:
        """Set the zoom level keeping the world point under ``pivot`` fixed.

        ``pivot`` is a screen point and defaults to the viewport center.
        """
        if pivot is None:
            pivot = Point(self.state.width / 2, self.state.height / 2)
        before = self.screen_to_world(pivot)
        self.state.zoom = clamp_zoom(level, self.zoom_min, self.zoom_max)
        after = self.screen_to_world(pivot)
        self.state.pan_x += (after.x - before.x) * self.pixels_per_meter
        self.state.pan_y += (after.y - before.y) * self.pixels_per_meter

    def zoom_in(self, pivot: Optional[Point] = None) -> None:
        self.zoom_to(self.state.zoom * ZOOM_STEP_FACTOR, pivot)

    def zoom_out(self, pivot: Optional[Point] = None) -> None:
        self.zoom_to(self.state.zoom / ZOOM_STEP_FACTOR, pivot)

    def zoom_by(self, delta: float, pivot: Optional[Point] = None) -> None:
        self.zoom_to(self.state.zoom + delta, pivot)

    # -- pan ---------------------------------------------------------------

    def pan_by(self, dx: float, dy: float) -> None:
        """Pan by a screen-pixel delta."""
        self.state.pan_x += dx / self.state.zoom
        self.state.pan_y += dy / self.state.zoom

    def pan_to(self, world_point: Point) -> None:
        """Center the viewport on ``world_point``."""
        self.state.pan_x = self.state.width / 2 / self.state.zoom - world_point[0] * self.pixels_per_meter
        self.state.pan_y = self.state.height / 2 / self.state.zoom - world_point[1] * self.pixels_per_meter

    def pan_to_screen(self, screen_point: Point) -> None:
        self.pan_to(self.screen_to_world(screen_point))

    def reset_view(self) -> None:
        self.state.pan_x = 0.0
        self.state.pan_y = 0.0
        self.state.zoom = ZOOM_DEFAULT

    # -- fitting -----------------------------------------------------------

    def fit_to_bounds(self, bounds: Bounds, padding: float = VIEWPORT_PADDING) -> None:
        avail_w = max(1.0, self.state.width - 2 * padding)
        avail_h = max(1.0, self.state.height - 2 * padding)
        width_px = bounds.width * self.pixels_per_meter
        height_px = bounds.height * self.pixels_per_meter
        ratios = [avail / size for avail, size in ((avail_w, width_px), (avail_h, height_px)) if size > 0]
        level = min(ratios) if ratios else self.zoom_max
        self.state.zoom = clamp_zoom(level, self.zoom_min, self.zoom_max)
        self.pan_to(bounds.center)
        log.debug("Fitted viewport to %s at zoom %.3f", bounds, self.state.zoom)

    def fit_to_elements(self, elements: Iterable, padding: float = VIEWPORT_PADDING) -> bool:
        """Fit to the rotated corners of ``elements``; False when there are none."""
        corners = [c for element in elements for c in rect_corners(element)]
        bounds = bounds_of(corners)
        if bounds is None:
            return False
        self.fit_to_bounds(bounds, padding)
        return True

    # -- configuration -----------------------------------------------------

    def set_size(self, width: float, height: float) -> None:
        self.state.width = max(1.0, float(width))
        self.state.height = max(1.0, float(height))

    def set_pixels_per_meter(self, pixels_per_meter: float) -> None:
        """Change the base density; the pan offset scales with it."""
        if pixels_per_meter <= 0 or not math.isfinite(pixels_per_meter):
            log.warning("Ignoring invalid pixels_per_meter %r", pixels_per_meter)
            return
        ratio = pixels_per_meter / self.pixels_per_meter
        self.state.pan_x *= ratio
        self.state.pan_y *= ratio
        self.pixels_per_meter = float(pixels_per_meter)

    # -- visibility --------------------------------------------------------

    def visible_bounds(self) -> Bounds:
        top_left = self.screen_to_world(Point(0.0, 0.0))
        bottom_right = self.screen_to_world(Point(self.state.width, self.state.height))
        return Bounds(top_left.x, top_left.y, bottom_right.x, bottom_right.y)

    def is_point_visible(self, world_point: Point) -> bool:
        return self.visible_bounds().contains_point(world_point)

    def is_rect_visible(self, bounds: Bounds) -> bool:
        return self.visible_bounds().overlaps(bounds)
