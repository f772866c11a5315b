"""
Automatic layout helpers for arranging notes on a board.

The arrange algorithm is a greedy shelf packer:
- Notes are visited in reading order (top-to-bottom, then left-to-right)
- Each note is placed at the first free anchor point in reading order
- A fixed gap is kept between every pair of placed notes
- The row width targets a landscape (roughly 3:2) overall shape
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Optional

from noteboard_mcp.models import Note, Point, Rect


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass
class ArrangeConfig:
    """Configuration for the auto-arrange packer."""
    gap: float = 20                 # Clear space kept between notes
    row_tolerance: float = 10       # |dy| within which notes count as one row
    min_row_width: float = 1000     # Lower bound for the target row width
    aspect_ratio: float = 3 / 2     # Target width:height of the whole layout
    width_slack: float = 1.2        # Extra room so rows are not packed too tight


# ---------------------------------------------------------------------------
# Auto arrange
# ---------------------------------------------------------------------------

def _reading_order(tolerance: float):
    def compare(a: Note, b: Note) -> float:
        if abs(a.y - b.y) > tolerance:
            return a.y - b.y
        return a.x - b.x
    return functools.cmp_to_key(compare)


def target_row_width(notes: list[Note], config: Optional[ArrangeConfig] = None) -> float:
    """Maximum row width used by :func:`auto_arrange` for *notes*."""
    cfg = config or ArrangeConfig()
    total_area = sum(n.width * n.height for n in notes)
    return max(cfg.min_row_width, math.sqrt(total_area * cfg.aspect_ratio * cfg.width_slack))


def _candidate_points(placed: list[Rect], gap: float) -> list[Point]:
    candidates = [Point(0, 0)]
    for p in placed:
        candidates.append(Point(p.right + gap, p.y))    # right of P
        candidates.append(Point(p.x, p.bottom + gap))   # below P
        candidates.append(Point(0, p.bottom + gap))     # new row
    return candidates


def auto_arrange(notes: list[Note], config: Optional[ArrangeConfig] = None) -> list[Note]:
    """Pack *notes* into non-overlapping rows and return repositioned copies.

    Only width and height drive the result; the incoming x/y are used solely
    to decide the visiting order. Every other field is preserved. The
    returned list is in placement order.

    Steps:
    1. Sort by y, comparing by x instead when two notes are within
       ``row_tolerance`` vertically.
    2. Compute the target row width from the total note area.
    3. For each note, collect anchor points next to / below the placed notes,
       drop those that overflow the row width, and take the first one (by y,
       then x) that keeps ``gap`` clear of every placed note.
    4. If nothing fits, drop the note below everything at x = 0.

    Args:
        notes: Notes to arrange.
        config: Packer configuration.

    Returns:
        New Note objects with updated positions.
    """
    if not notes:
        return []
    cfg = config or ArrangeConfig()
    gap = cfg.gap

    ordered = sorted(notes, key=_reading_order(cfg.row_tolerance))
    max_width = target_row_width(ordered, cfg)

    placed: list[Rect] = []
    result: list[Note] = []

    for note in ordered:
        candidates = [
            c for c in _candidate_points(placed, gap)
            if c.x + note.width <= max_width
        ]
        candidates.sort(key=lambda c: (c.y, c.x))

        spot: Optional[Point] = None
        for c in candidates:
            target = Rect(c.x, c.y, note.width, note.height)
            if not any(target.intersects(p, gap) for p in placed):
                spot = c
                break

        if spot is None:
            max_bottom = max((p.bottom + gap for p in placed), default=0)
            spot = Point(0, max_bottom)

        placed.append(Rect(spot.x, spot.y, note.width, note.height))
        result.append(note.copy(x=spot.x, y=spot.y))

    return result


# ---------------------------------------------------------------------------
# Overlap detection
# ---------------------------------------------------------------------------

def find_overlapping_notes(notes: list[Note], margin: float = 0) -> list[tuple[str, str]]:
    """Find all pairs of notes closer than *margin* to each other.

    Args:
        notes: The notes to check.
        margin: Minimum required gap between notes.

    Returns:
        List of (note_id_1, note_id_2) pairs that overlap.
    """
    overlaps: list[tuple[str, str]] = []
    for i in range(len(notes)):
        for j in range(i + 1, len(notes)):
            a = notes[i]
            b = notes[j]
            if a.rect.intersects(b.rect, margin):
                overlaps.append((a.id, b.id))
    return overlaps


def notes_in_box(notes: list[Note], box: Rect) -> set[str]:
    """IDs of every note whose rectangle overlaps *box* (edges included)."""
    return {n.id for n in notes if n.rect.touches(box)}
