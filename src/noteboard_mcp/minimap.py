"""
Minimap projection.

Fits the union of the visible viewport and every note into a fixed-size box,
uniformly scaled and centred. The projection is derived from scratch on every
frame and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from noteboard_mcp.models import Note, Point, Rect, bounding_rect
from noteboard_mcp.viewport import ViewportTransform


@dataclass
class MinimapConfig:
    """Size of the minimap box (pixels) and padding around content (world units)."""
    width: float = 240
    height: float = 160
    padding: float = 20


@dataclass
class MinimapProjection:
    """World <-> minimap mapping for one frame."""
    bounds: Rect           # padded world bounds being displayed
    scale: float           # minimap pixels per world unit
    content_offset: Point  # centring offset inside the minimap box
    viewport: Rect         # visible world rectangle
    note_rects: dict[str, Rect]

    def to_minimap(self, world: Point) -> Point:
        return Point(
            (world.x - self.bounds.x) * self.scale + self.content_offset.x,
            (world.y - self.bounds.y) * self.scale + self.content_offset.y,
        )

    def to_world(self, minimap: Point) -> Point:
        return Point(
            (minimap.x - self.content_offset.x) / self.scale + self.bounds.x,
            (minimap.y - self.content_offset.y) / self.scale + self.bounds.y,
        )

    def project_rect(self, rect: Rect) -> Rect:
        top_left = self.to_minimap(rect.origin)
        return Rect(top_left.x, top_left.y, rect.width * self.scale, rect.height * self.scale)

    @property
    def viewport_rect(self) -> Rect:
        """The viewport indicator in minimap pixels."""
        return self.project_rect(self.viewport)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scale": self.scale,
            "bounds": self.bounds.to_dict(),
            "content_offset": self.content_offset.to_dict(),
            "viewport": self.viewport_rect.to_dict(),
            "notes": {nid: r.to_dict() for nid, r in self.note_rects.items()},
        }


class MinimapProjector:
    """Computes a :class:`MinimapProjection` from notes and the current view."""

    def __init__(self, config: Optional[MinimapConfig] = None) -> None:
        self.config = config or MinimapConfig()

    def project(
        self,
        notes: list[Note],
        transform: ViewportTransform,
        viewport_width: float,
        viewport_height: float,
    ) -> MinimapProjection:
        cfg = self.config
        visible = transform.visible_world_rect(viewport_width, viewport_height)
        content = bounding_rect([visible] + [n.rect for n in notes])
        bounds = content.inflate(cfg.padding)

        # padding keeps both extents positive even for an empty, zero-size view
        scale = min(cfg.width / bounds.width, cfg.height / bounds.height)
        offset = Point(
            (cfg.width - bounds.width * scale) / 2,
            (cfg.height - bounds.height * scale) / 2,
        )
        projection = MinimapProjection(
            bounds=bounds,
            scale=scale,
            content_offset=offset,
            viewport=visible,
            note_rects={},
        )
        projection.note_rects = {n.id: projection.project_rect(n.rect) for n in notes}
        return projection
