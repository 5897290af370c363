"""Corner verification and rectangle alignment checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from .borders import DetectedBorders
from .pixel_context import PixelContext

CornerType = Literal["top_left", "top_right", "bottom_left", "bottom_right"]

CORNER_TYPES: tuple[CornerType, ...] = ("top_left", "top_right", "bottom_left", "bottom_right")


@dataclass(frozen=True)
class CornerReport:
    corners: dict[CornerType, bool]

    @property
    def valid_count(self) -> int:
        return sum(1 for ok in self.corners.values() if ok)


@dataclass(frozen=True)
class AlignmentResult:
    score: float
    aligned: bool
    distances: tuple[int, ...]


def _arm_coverage(ctx: PixelContext, x: int, y: int, dx: int, dy: int) -> float:
    """Fraction of arm steps with a dark pixel inside the perpendicular band."""
    cfg = ctx.config.corner_detection
    size = cfg.corner_size
    band = cfg.arm_check_tolerance

    hits = 0
    for i in range(size):
        cx = x + i * dx
        cy = y + i * dy
        if dx:
            hit = ctx.any_dark(cx, cy - band, cx, cy + band)
        else:
            hit = ctx.any_dark(cx - band, cy, cx + band, cy)
        if hit:
            hits += 1
    return hits / size


def verify_corner(ctx: PixelContext, x: int, y: int, corner: CornerType) -> bool:
    """
    Check for an L-shaped junction at (x, y).

    Some dark pixel must lie in the tolerance window around the point, and both
    arms (horizontal towards the grid interior, vertical likewise) need dark
    coverage of at least ``min_arm_ratio``.
    """
    cfg = ctx.config.corner_detection
    tol = cfg.position_tolerance
    if not ctx.any_dark(x - tol, y - tol, x + tol, y + tol):
        return False

    h_dir = 1 if corner.endswith("left") else -1
    v_dir = 1 if corner.startswith("top") else -1

    h_ratio = _arm_coverage(ctx, x, y, h_dir, 0)
    v_ratio = _arm_coverage(ctx, x, y, 0, v_dir)
    return h_ratio >= cfg.min_arm_ratio and v_ratio >= cfg.min_arm_ratio


def validate_corners(ctx: PixelContext, borders: DetectedBorders) -> CornerReport:
    points: dict[CornerType, tuple[int, int]] = {
        "top_left": (borders.left.position, borders.top.position),
        "top_right": (borders.right.position, borders.top.position),
        "bottom_left": (borders.left.position, borders.bottom.position),
        "bottom_right": (borders.right.position, borders.bottom.position),
    }
    return CornerReport(
        corners={name: verify_corner(ctx, x, y, name) for name, (x, y) in points.items()}
    )


def check_border_alignment(
    borders: DetectedBorders,
    tolerance_px: int,
    min_aligned_fraction: float,
) -> AlignmentResult:
    """
    Score how well the four sides close into a rectangle.

    Each horizontal run's endpoints are compared with the vertical borders'
    positions and vice versa; the pass rate within ``tolerance_px`` is the score.
    """
    top, bottom, left, right = borders.top, borders.bottom, borders.left, borders.right
    distances = (
        abs(top.run_start - left.position),
        abs(top.run_last - right.position),
        abs(bottom.run_start - left.position),
        abs(bottom.run_last - right.position),
        abs(left.run_start - top.position),
        abs(left.run_last - bottom.position),
        abs(right.run_start - top.position),
        abs(right.run_last - bottom.position),
    )
    good = sum(1 for d in distances if d <= tolerance_px)
    score = good / len(distances)
    return AlignmentResult(score=score, aligned=score >= min_aligned_fraction, distances=distances)
