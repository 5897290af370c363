"""Placement of cropped pattern pages in a multi-page grid."""

from __future__ import annotations

import math
from dataclasses import dataclass

# Page counts with a fixed (rows, cols) arrangement
_KNOWN_LAYOUTS: dict[int, tuple[int, int]] = {
    2: (1, 2),
    4: (2, 2),
    6: (2, 3),
    9: (3, 3),
}


@dataclass(frozen=True)
class GridPosition:
    row: int
    col: int


def grid_dimensions(total_pages: int) -> tuple[int, int]:
    """(rows, cols) for a pattern split across ``total_pages`` pages."""
    if total_pages < 1:
        raise ValueError(f"total_pages must be >= 1, got {total_pages}")
    if total_pages in _KNOWN_LAYOUTS:
        return _KNOWN_LAYOUTS[total_pages]
    cols = math.ceil(math.sqrt(total_pages))
    rows = math.ceil(total_pages / cols)
    return rows, cols


def grid_position(page_index: int, total_pages: int) -> GridPosition:
    """
    Row/column of page ``page_index`` (0-based), filled row by row.

    Four-page patterns read top-left, top-right, bottom-left, bottom-right.
    """
    if not 0 <= page_index < total_pages:
        raise ValueError(f"page_index {page_index} out of range for {total_pages} pages")
    _, cols = grid_dimensions(total_pages)
    return GridPosition(row=page_index // cols, col=page_index % cols)
