"""Border candidate search and resolution of the four rectangle sides."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal

from .line_scan import find_longest_dark_run, measure_line_thickness
from .pixel_context import PixelContext, ScanDirection
from .scoring import line_confidence, near_line_confidence

Side = Literal["left", "right"]


@dataclass(frozen=True)
class LineCandidate:
    """A candidate border line at a fixed row (horizontal) or column (vertical)."""

    position: int
    run_start: int
    run_length: int
    thickness: int
    confidence: float
    synthetic: bool = False

    @property
    def run_last(self) -> int:
        """Inclusive index of the last pixel of the run."""
        return self.run_start + self.run_length - 1


@dataclass(frozen=True)
class HorizontalBorders:
    top: LineCandidate | None
    bottom: LineCandidate | None


@dataclass(frozen=True)
class VerticalBorders:
    left: LineCandidate | None
    right: LineCandidate | None


@dataclass(frozen=True)
class DetectedBorders:
    top: LineCandidate
    bottom: LineCandidate
    left: LineCandidate
    right: LineCandidate

    def confidences(self) -> tuple[float, float, float, float]:
        return (
            self.top.confidence,
            self.bottom.confidence,
            self.left.confidence,
            self.right.confidence,
        )


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def find_border_candidates(
    ctx: PixelContext,
    start: int,
    stop: int,
    direction: ScanDirection,
) -> list[LineCandidate]:
    """
    Scan lines from ``start`` towards ``stop`` (exclusive) and keep strong candidates.

    ``stop`` may be below ``start`` to scan inward from the far edge. Only runs
    of at least ``min_border_fraction`` of the scan-line length are measured.
    """
    cfg = ctx.config
    dimension = ctx.span(direction)
    min_length = dimension * cfg.min_border_fraction
    step = 1 if stop >= start else -1

    candidates: list[LineCandidate] = []
    for pos in range(start, stop, step):
        run = find_longest_dark_run(ctx, pos, direction)
        if run.length == 0 or run.length < min_length:
            continue

        thickness = measure_line_thickness(ctx, pos, run, direction)
        confidence = line_confidence(
            run.length,
            dimension,
            thickness,
            cfg.expected_border_thickness,
            cfg.confidence,
        )
        if confidence >= cfg.confidence.min_candidate:
            candidates.append(
                LineCandidate(
                    position=pos,
                    run_start=run.start,
                    run_length=run.length,
                    thickness=thickness,
                    confidence=confidence,
                )
            )

    return candidates


def select_best_candidate(
    ctx: PixelContext,
    candidates: list[LineCandidate],
    prefer_low_position: bool,
) -> LineCandidate | None:
    """
    Pick the outermost strong candidate.

    A weak outermost line loses to the highest-confidence candidate when that
    one is clearly stronger and sits close by (a faint duplicate of the edge).
    """
    if not candidates:
        return None

    weights = ctx.config.confidence
    ordered = sorted(candidates, key=lambda c: c.position, reverse=not prefer_low_position)
    outermost = ordered[0]
    if outermost.confidence >= weights.min_outermost:
        return outermost

    strongest = max(ordered, key=lambda c: c.confidence)
    if (
        strongest.confidence - outermost.confidence > weights.confidence_diff_threshold
        and abs(strongest.position - outermost.position) < weights.prefer_distance_px
    ):
        return strongest
    return outermost


def _bottom_alignment(top: LineCandidate, bottom: LineCandidate, px: int, pct: float) -> bool:
    start_diff = abs(bottom.run_start - top.run_start)
    length_diff = abs(bottom.run_length - top.run_length)
    return start_diff <= px and length_diff <= top.run_length * pct


def select_aligned_bottom(
    ctx: PixelContext,
    top: LineCandidate,
    bottom_candidates: list[LineCandidate],
) -> LineCandidate | None:
    """
    Choose the bottom border whose span matches the top border's span.

    Candidates are visited outermost first: the first well-aligned one wins,
    else the first acceptably aligned one, else the outermost candidate.
    """
    if not bottom_candidates:
        return None

    tol = ctx.config.alignment
    ordered = sorted(bottom_candidates, key=lambda c: c.position, reverse=True)

    acceptable: LineCandidate | None = None
    for bottom in ordered:
        if _bottom_alignment(top, bottom, tol.well_aligned_px, tol.well_aligned_pct):
            return bottom
        if acceptable is None and _bottom_alignment(
            top, bottom, tol.acceptable_px, tol.acceptable_pct
        ):
            acceptable = bottom

    return acceptable or ordered[0]


def find_horizontal_borders(ctx: PixelContext) -> HorizontalBorders:
    regions = ctx.config.search_regions
    top_end = int(ctx.height * regions.top_max_y)
    bottom_start = int(ctx.height * regions.bottom_min_y)

    top_candidates = find_border_candidates(ctx, 0, top_end, "horizontal")
    top = select_best_candidate(ctx, top_candidates, prefer_low_position=True)
    if top is None:
        return HorizontalBorders(top=None, bottom=None)

    bottom_candidates = find_border_candidates(
        ctx, ctx.height - 1, bottom_start - 1, "horizontal"
    )
    bottom = select_aligned_bottom(ctx, top, bottom_candidates)
    return HorizontalBorders(top=top, bottom=bottom)


def expected_vertical_positions(top: LineCandidate, bottom: LineCandidate) -> tuple[int, int]:
    """Predicted left/right x from the midpoints of the horizontal runs' endpoints."""
    left = _round_half_up((top.run_start + bottom.run_start) / 2)
    right = _round_half_up((top.run_last + bottom.run_last) / 2)
    return left, right


def find_vertical_border_near(
    ctx: PixelContext,
    expected_x: int,
    side: Side,
) -> LineCandidate | None:
    """Search a narrow band around ``expected_x`` for the outermost vertical line."""
    cfg = ctx.config
    tolerance = cfg.alignment.vertical_search_tolerance
    start_x = max(0, expected_x - tolerance)
    end_x = min(ctx.width - 1, expected_x + tolerance)
    min_length = ctx.height * cfg.min_border_fraction

    candidates: list[LineCandidate] = []
    for x in range(start_x, end_x + 1):
        run = find_longest_dark_run(ctx, x, "vertical")
        if run.length == 0 or run.length < min_length:
            continue

        thickness = measure_line_thickness(ctx, x, run, "vertical")
        confidence = near_line_confidence(
            run.length,
            ctx.height,
            thickness,
            cfg.expected_border_thickness,
            distance=x - expected_x,
            search_tolerance=tolerance,
            position_bonus_factor=cfg.alignment.position_bonus_factor,
            weights=cfg.confidence,
        )
        if confidence >= cfg.confidence.min_candidate_near:
            candidates.append(
                LineCandidate(
                    position=x,
                    run_start=run.start,
                    run_length=run.length,
                    thickness=thickness,
                    confidence=confidence,
                )
            )

    if not candidates:
        return None
    if side == "left":
        return min(candidates, key=lambda c: c.position)
    return max(candidates, key=lambda c: c.position)


def find_vertical_borders(ctx: PixelContext, horizontal: HorizontalBorders) -> VerticalBorders:
    """
    Locate left/right borders.

    With both horizontal borders known the search is limited to bands around
    their endpoints; otherwise the configured left/right regions are scanned.
    """
    if horizontal.top is not None and horizontal.bottom is not None:
        expected_left, expected_right = expected_vertical_positions(
            horizontal.top, horizontal.bottom
        )
        return VerticalBorders(
            left=find_vertical_border_near(ctx, expected_left, "left"),
            right=find_vertical_border_near(ctx, expected_right, "right"),
        )

    regions = ctx.config.search_regions
    left_end = int(ctx.width * regions.left_max_x)
    right_start = int(ctx.width * regions.right_min_x)

    left_candidates = find_border_candidates(ctx, 0, left_end, "vertical")
    right_candidates = find_border_candidates(ctx, ctx.width - 1, right_start - 1, "vertical")
    return VerticalBorders(
        left=select_best_candidate(ctx, left_candidates, prefer_low_position=True),
        right=select_best_candidate(ctx, right_candidates, prefer_low_position=False),
    )


def synthesize_vertical_border(
    ctx: PixelContext,
    top: LineCandidate,
    bottom: LineCandidate,
    x: int,
) -> LineCandidate:
    """A vertical border implied by the horizontal borders' endpoints."""
    return LineCandidate(
        position=x,
        run_start=top.position,
        run_length=bottom.position - top.position + 1,
        thickness=1,
        confidence=ctx.config.confidence.synthetic_border,
        synthetic=True,
    )


def resolve_vertical_borders(
    ctx: PixelContext,
    top: LineCandidate,
    bottom: LineCandidate,
    vertical: VerticalBorders,
) -> tuple[LineCandidate, LineCandidate] | None:
    """
    Accept found vertical borders close to their predicted position, else synthesize them.

    Returns None when the result would not form a left-to-right rectangle.
    """
    expected_left, expected_right = expected_vertical_positions(top, bottom)
    threshold = ctx.config.alignment.vertical_misalignment_threshold

    left = vertical.left
    if left is None or abs(left.position - expected_left) > threshold:
        left = synthesize_vertical_border(ctx, top, bottom, expected_left)

    right = vertical.right
    if right is None or abs(right.position - expected_right) > threshold:
        right = synthesize_vertical_border(ctx, top, bottom, expected_right)

    if left.position >= right.position:
        return None
    return left, right
