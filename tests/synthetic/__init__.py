"""Synthetic pattern pages with known grid bounds.

Usage:
    from tests.synthetic import SyntheticPage, render_page
    img = render_page(SyntheticPage(grid_spacing=32, labels=True))
"""

from .helpers import make_context, write_png
from .renderer import (
    Box,
    SyntheticPage,
    blank_page,
    draw_axis_labels,
    draw_border,
    draw_grid_lines,
    draw_rule,
    erase_side,
    punch_gaps,
    render_page,
)

__all__ = [
    "Box",
    "SyntheticPage",
    "blank_page",
    "draw_axis_labels",
    "draw_border",
    "draw_grid_lines",
    "draw_rule",
    "erase_side",
    "make_context",
    "punch_gaps",
    "render_page",
    "write_png",
]
