"""Grid boundary detection: orchestration, confidence gate and fallback."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

from numpy.typing import NDArray

from grid_detector.models import (
    DetectionConfig,
    FallbackMargins,
    GridBounds,
    TraceStage,
)
from grid_detector.pixel_source import PixelSource, as_pixel_source

from .borders import (
    DetectedBorders,
    LineCandidate,
    find_horizontal_borders,
    find_vertical_borders,
    resolve_vertical_borders,
)
from .grid_lines import grid_line_confidence
from .pixel_context import PixelContext
from .scoring import ConfidenceBreakdown, overall_confidence
from .trace import TraceSink, Tracer
from .validation import check_border_alignment, validate_corners

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridDetection:
    """Detection outcome: final bounds plus the evidence behind them."""

    bounds: GridBounds
    used_fallback: bool
    fallback_reason: str | None = None
    borders: DetectedBorders | None = None
    valid_corners: int = 0
    alignment_score: float = 0.0
    confidence: ConfidenceBreakdown | None = None

    def summary(self) -> dict[str, Any]:
        return {
            "bounds": self.bounds.model_dump(),
            "used_fallback": self.used_fallback,
            "fallback_reason": self.fallback_reason,
            "valid_corners": self.valid_corners,
            "alignment_score": self.alignment_score,
            "confidence": self.confidence.as_dict() if self.confidence else None,
        }


def fallback_bounds(width: int, height: int, margins: FallbackMargins | None = None) -> GridBounds:
    """Fixed-percentage margin crop; always succeeds for a non-degenerate image."""
    m = margins or FallbackMargins()
    x = min(int(width * m.left), width - 1)
    y = min(int(height * m.top), height - 1)
    # at least one pixel on each axis, never past the far edge
    return GridBounds(
        x=x,
        y=y,
        width=min(max(1, int(width - width * m.left - width * m.right)), width - x),
        height=min(max(1, int(height - height * m.top - height * m.bottom)), height - y),
    )


def _candidate_details(candidate: LineCandidate | None) -> dict[str, Any] | None:
    return asdict(candidate) if candidate is not None else None


def detect_grid(
    image: PixelSource | NDArray[Any],
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridDetection:
    """
    Find the rectangle bounded by the grid's border lines.

    Steps: horizontal borders, guided vertical borders (synthesized from the
    horizontal endpoints when missing), alignment and corner checks, internal
    grid-line regularity, then the overall confidence gate. Any inconclusive
    step returns the fixed-margin fallback instead of raising.

    Raises:
        InvalidImageError: the image has zero width/height or fewer than 3 channels
    """
    cfg = config or DetectionConfig()
    source = as_pixel_source(image)
    ctx = PixelContext.from_source(source, cfg)
    emit = Tracer(trace)

    def _fallback(reason: str, **kwargs: Any) -> GridDetection:
        bounds = fallback_bounds(ctx.width, ctx.height, cfg.fallback_margins)
        logger.debug("Grid detection fell back (%s) on %dx%d image", reason, ctx.width, ctx.height)
        emit(TraceStage.FALLBACK, f"Using fixed margins: {reason}", reason=reason)
        emit(TraceStage.RESULT, "Fallback bounds", bounds=bounds.model_dump(), used_fallback=True)
        return GridDetection(bounds=bounds, used_fallback=True, fallback_reason=reason, **kwargs)

    # Step 1: horizontal borders
    horizontal = find_horizontal_borders(ctx)
    emit(
        TraceStage.HORIZONTAL,
        "Horizontal borders",
        top=_candidate_details(horizontal.top),
        bottom=_candidate_details(horizontal.bottom),
    )
    if horizontal.top is None or horizontal.bottom is None:
        return _fallback("missing_horizontal_border")
    top, bottom = horizontal.top, horizontal.bottom
    if top.position >= bottom.position:
        return _fallback("inverted_horizontal_borders")

    # Step 2: vertical borders guided by the horizontal endpoints
    vertical = find_vertical_borders(ctx, horizontal)
    resolved = resolve_vertical_borders(ctx, top, bottom, vertical)
    emit(
        TraceStage.VERTICAL,
        "Vertical borders",
        found_left=_candidate_details(vertical.left),
        found_right=_candidate_details(vertical.right),
        left=_candidate_details(resolved[0]) if resolved else None,
        right=_candidate_details(resolved[1]) if resolved else None,
    )
    if resolved is None:
        return _fallback("unresolved_vertical_borders")
    borders = DetectedBorders(top=top, bottom=bottom, left=resolved[0], right=resolved[1])

    # Step 3: rectangle closure and corners
    alignment = check_border_alignment(
        borders,
        cfg.alignment.border_tolerance_px,
        cfg.alignment.min_aligned_fraction,
    )
    emit(
        TraceStage.ALIGNMENT,
        "Border alignment",
        score=alignment.score,
        aligned=alignment.aligned,
        distances=list(alignment.distances),
    )
    corners = validate_corners(ctx, borders)
    emit(TraceStage.CORNERS, "Corner verification", valid=corners.valid_count, **corners.corners)

    evidence: dict[str, Any] = {
        "borders": borders,
        "valid_corners": corners.valid_count,
        "alignment_score": alignment.score,
    }
    if corners.valid_count < 2 and not alignment.aligned:
        return _fallback("corners_and_alignment_failed", **evidence)

    # Step 4: preliminary bounds must be a plausible share of the page
    preliminary = GridBounds(
        x=borders.left.position,
        y=borders.top.position,
        width=borders.right.position - borders.left.position,
        height=borders.bottom.position - borders.top.position,
    )
    if (
        preliminary.width < ctx.width * cfg.min_border_fraction
        or preliminary.height < ctx.height * cfg.min_border_fraction
    ):
        return _fallback("bounds_too_small", **evidence)

    # Step 5: internal grid-line regularity and overall confidence
    grid_lines = grid_line_confidence(ctx, preliminary)
    emit(
        TraceStage.GRID_LINES,
        "Internal grid lines",
        horizontal=list(grid_lines.horizontal),
        vertical=list(grid_lines.vertical),
        confidence=grid_lines.confidence,
    )
    breakdown = overall_confidence(
        borders.confidences(),
        corners.valid_count,
        alignment.score,
        grid_lines.confidence,
        cfg.confidence,
    )
    emit(TraceStage.CONFIDENCE, "Confidence breakdown", **breakdown.as_dict())
    evidence["confidence"] = breakdown

    if breakdown.overall < cfg.confidence.min_overall:
        return _fallback("low_confidence", **evidence)

    bounds = preliminary.expanded(cfg.border_expansion, ctx.width, ctx.height)
    logger.debug("Grid detected at %s (confidence %.3f)", bounds.region, breakdown.overall)
    emit(TraceStage.RESULT, "Detected bounds", bounds=bounds.model_dump(), used_fallback=False)
    return GridDetection(bounds=bounds, used_fallback=False, **evidence)


def detect_grid_bounds(
    image: PixelSource | NDArray[Any],
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridBounds:
    """Bounds of the grid, or the fixed-margin fallback when detection is inconclusive."""
    return detect_grid(image, config, trace).bounds
