"""
Core data model for note boards.

Provides the geometry primitives (points and axis-aligned rectangles) and the
records the canvas engine works on: notes, the per-board view state and the
note colour palette.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_NOTE_WIDTH = 150
MIN_NOTE_HEIGHT = 120
DEFAULT_NOTE_WIDTH = 240
DEFAULT_NOTE_HEIGHT = 180

MIN_SCALE = 0.1
MAX_SCALE = 5.0


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NoteColor(Enum):
    """Colour tag of a note. The engine never interprets it."""
    YELLOW = "yellow"
    BLUE = "blue"
    GREEN = "green"
    RED = "red"
    PURPLE = "purple"
    GRAY = "gray"


DEFAULT_NOTE_COLOR = NoteColor.YELLOW


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Point:
    """A 2-D coordinate (screen, world or minimap space)."""
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle anchored at its top-left corner."""
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_points(cls, a: Point, b: Point) -> Rect:
        """Normalized rectangle spanning two corners in any order."""
        left = min(a.x, b.x)
        top = min(a.y, b.y)
        return cls(left, top, abs(b.x - a.x), abs(b.y - a.y))

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def cx(self) -> float:
        return self.x + self.width / 2

    @property
    def cy(self) -> float:
        return self.y + self.height / 2

    @property
    def origin(self) -> Point:
        return Point(self.x, self.y)

    def intersects(self, other: Rect, margin: float = 0) -> bool:
        """Check if two rectangles overlap, keeping *margin* clear between them.

        Rectangles that merely touch (or sit exactly *margin* apart) do not
        intersect.
        """
        return not (
            self.right + margin <= other.x
            or other.right + margin <= self.x
            or self.bottom + margin <= other.y
            or other.bottom + margin <= self.y
        )

    def touches(self, other: Rect) -> bool:
        """Closed-interval overlap test: shared edges and corners count."""
        return not (
            self.x > other.right
            or self.right < other.x
            or self.y > other.bottom
            or self.bottom < other.y
        )

    def contains_point(self, px: float, py: float, margin: float = 0) -> bool:
        """Check if a point is inside this rectangle (with margin)."""
        return (
            self.x - margin <= px <= self.right + margin
            and self.y - margin <= py <= self.bottom + margin
        )

    def inflate(self, amount: float) -> Rect:
        """Grow the rectangle by *amount* on every side."""
        return Rect(
            self.x - amount,
            self.y - amount,
            self.width + 2 * amount,
            self.height + 2 * amount,
        )

    def union(self, other: Rect) -> Rect:
        """Smallest rectangle containing both."""
        left = min(self.x, other.x)
        top = min(self.y, other.y)
        return Rect(
            left,
            top,
            max(self.right, other.right) - left,
            max(self.bottom, other.bottom) - top,
        )

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


def bounding_rect(rects: list[Rect]) -> Rect | None:
    """Union of all *rects*, or ``None`` for an empty list."""
    if not rects:
        return None
    result = rects[0]
    for r in rects[1:]:
        result = result.union(r)
    return result


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Note:
    """A rectangular note placed on a board, positioned in world units."""
    id: str
    board_id: str
    content: str = ""
    x: float = 0
    y: float = 0
    width: float = DEFAULT_NOTE_WIDTH
    height: float = DEFAULT_NOTE_HEIGHT
    color: NoteColor = DEFAULT_NOTE_COLOR
    z_index: int = 0
    created_at: int = field(default_factory=now_ms)
    updated_at: int = field(default_factory=now_ms)

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    @property
    def position(self) -> Point:
        return Point(self.x, self.y)

    def copy(self, **changes: Any) -> Note:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board_id": self.board_id,
            "content": self.content,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
            "color": self.color.value,
            "z_index": self.z_index,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class ViewState:
    """Pan/zoom state of one open board.

    ``offset`` is the screen position of the world origin.
    """
    scale: float = 1.0
    offset: Point = field(default_factory=lambda: Point(300, 10))

    def to_dict(self) -> dict[str, Any]:
        return {"scale": self.scale, "offset": self.offset.to_dict()}


def max_z_index(notes: list[Note]) -> int:
    """Highest draw order among *notes* (0 for an empty board)."""
    return max((n.z_index for n in notes), default=0)
