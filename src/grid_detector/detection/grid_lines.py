"""Internal grid-line detection and spacing regularity."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from grid_detector import config
from grid_detector.models import GridBounds

from .line_scan import find_longest_dark_run
from .pixel_context import PixelContext, ScanDirection


@dataclass(frozen=True)
class SpacingAnalysis:
    is_regular: bool
    consistency: float


@dataclass(frozen=True)
class GridLineReport:
    horizontal: tuple[int, ...]
    vertical: tuple[int, ...]
    horizontal_spacing: SpacingAnalysis | None
    vertical_spacing: SpacingAnalysis | None
    confidence: float


def find_internal_grid_lines(
    ctx: PixelContext,
    bounds: GridBounds,
    direction: ScanDirection,
) -> list[int]:
    """
    Positions of lines crossing nearly the full interior of ``bounds``.

    A horizontal line must run at least 80% of the bounds' width, start in the
    first 10% and end beyond 90% of it. Detections within LINE_GAP_THRESHOLD
    pixels of the previous line are merged into it.
    """
    if direction == "horizontal":
        first, last = bounds.y, bounds.bottom
        span_start, span_size = bounds.x, bounds.width
    else:
        first, last = bounds.x, bounds.right
        span_start, span_size = bounds.y, bounds.height

    min_run = span_size * config.MIN_LENGTH_FRACTION
    latest_start = span_start + span_size * config.INTERNAL_LINE_SPAN_START
    earliest_end = span_start + span_size * config.INTERNAL_LINE_SPAN_END
    margin = config.INTERNAL_LINE_MARGIN

    lines: list[int] = []
    for pos in range(first + margin, last - margin):
        run = find_longest_dark_run(ctx, pos, direction)
        spans_grid = (
            run.length > 0
            and run.length >= min_run
            and run.start <= latest_start
            and run.end >= earliest_end
        )
        if spans_grid and (not lines or pos - lines[-1] > config.LINE_GAP_THRESHOLD):
            lines.append(pos)

    return lines


def analyze_grid_line_spacing(
    lines: Sequence[int],
    spacing_tolerance: float,
    min_lines: int = config.MIN_LINES_FOR_SPACING_ANALYSIS,
    min_consistency: float = config.MIN_SPACING_CONSISTENCY,
) -> SpacingAnalysis:
    """Fraction of consecutive spacings within ``spacing_tolerance`` of the median spacing."""
    if len(lines) < min_lines:
        return SpacingAnalysis(is_regular=False, consistency=0.0)

    spacings = [b - a for a, b in zip(lines, lines[1:])]
    median = sorted(spacings)[len(spacings) // 2]
    tolerance = median * spacing_tolerance

    consistent = sum(1 for s in spacings if abs(s - median) <= tolerance)
    consistency = consistent / len(spacings)
    return SpacingAnalysis(is_regular=consistency >= min_consistency, consistency=consistency)


def grid_line_confidence(ctx: PixelContext, bounds: GridBounds) -> GridLineReport:
    """
    Regularity sub-score for the preliminary bounds.

    Neutral (1.0) when verification is off or too few internal lines exist;
    otherwise the mean axis consistency, boosted when either axis is regular.
    """
    verification = ctx.config.grid_line_verification
    if not verification.enabled:
        return GridLineReport((), (), None, None, 1.0)

    h_lines = find_internal_grid_lines(ctx, bounds, "horizontal")
    v_lines = find_internal_grid_lines(ctx, bounds, "vertical")
    if len(h_lines) + len(v_lines) < verification.min_internal_lines:
        return GridLineReport(tuple(h_lines), tuple(v_lines), None, None, 1.0)

    h_analysis = analyze_grid_line_spacing(
        h_lines,
        verification.spacing_tolerance,
        verification.min_lines_for_analysis,
        verification.min_consistency,
    )
    v_analysis = analyze_grid_line_spacing(
        v_lines,
        verification.spacing_tolerance,
        verification.min_lines_for_analysis,
        verification.min_consistency,
    )

    confidence = (h_analysis.consistency + v_analysis.consistency) / 2
    if h_analysis.is_regular or v_analysis.is_regular:
        confidence = min(1.0, confidence + ctx.config.confidence.regularity_boost)

    return GridLineReport(
        horizontal=tuple(h_lines),
        vertical=tuple(v_lines),
        horizontal_spacing=h_analysis,
        vertical_spacing=v_analysis,
        confidence=confidence,
    )
