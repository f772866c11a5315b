"""
Viewport transform between screen pixels and world units.

``screen = world * scale + offset`` and its inverse. Zooming pivots on the
pointer: the world point under the cursor stays under the cursor.
"""

from __future__ import annotations

from typing import Optional

from noteboard_mcp.models import MAX_SCALE, MIN_SCALE, Point, Rect, ViewState

DEFAULT_ZOOM_SENSITIVITY = 0.001


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ViewportTransform:
    """Owns a :class:`ViewState` and applies pan/zoom to it."""

    def __init__(
        self,
        view: Optional[ViewState] = None,
        sensitivity: float = DEFAULT_ZOOM_SENSITIVITY,
        min_scale: float = MIN_SCALE,
        max_scale: float = MAX_SCALE,
    ) -> None:
        self.view = view or ViewState()
        self.sensitivity = sensitivity
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.view.scale = clamp(self.view.scale, min_scale, max_scale)

    @property
    def scale(self) -> float:
        return self.view.scale

    @property
    def offset(self) -> Point:
        return self.view.offset

    def to_world(self, screen: Point) -> Point:
        s = self.view.scale
        return Point(
            (screen.x - self.view.offset.x) / s,
            (screen.y - self.view.offset.y) / s,
        )

    def to_screen(self, world: Point) -> Point:
        return world.scaled(self.view.scale) + self.view.offset

    def zoom_at(self, screen_point: Point, delta_scale: float) -> None:
        """Scale by ``1 + delta_scale * sensitivity`` around *screen_point*."""
        anchor = self.to_world(screen_point)
        new_scale = clamp(
            self.view.scale * (1 + delta_scale * self.sensitivity),
            self.min_scale,
            self.max_scale,
        )
        self.view.scale = new_scale
        self.view.offset = screen_point - anchor.scaled(new_scale)

    def pan_by(self, screen_delta: Point) -> None:
        self.view.offset = self.view.offset + screen_delta

    def center_on(self, world: Point, screen_center: Point) -> None:
        """Move the view so *world* lands on *screen_center*."""
        self.view.offset = screen_center - world.scaled(self.view.scale)

    def visible_world_rect(self, viewport_width: float, viewport_height: float) -> Rect:
        """World-space rectangle covered by a viewport of the given pixel size."""
        top_left = self.to_world(Point(0, 0))
        return Rect(
            top_left.x,
            top_left.y,
            viewport_width / self.view.scale,
            viewport_height / self.view.scale,
        )

    def reset(self, view: Optional[ViewState] = None) -> None:
        self.view = view or ViewState()
