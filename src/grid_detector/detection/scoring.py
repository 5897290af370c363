"""Confidence scoring for single line candidates and for the whole detection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass

from grid_detector import config
from grid_detector.models import ConfidenceWeights


@dataclass(frozen=True)
class ConfidenceBreakdown:
    border: float
    corner: float
    alignment: float
    grid_lines: float
    overall: float

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


def _length_score(run_length: int, dimension: int) -> float:
    if dimension <= 0:
        return 0.0
    return min(1.0, run_length / (dimension * config.MIN_LENGTH_FRACTION))


def _thickness_score(thickness: int, expected_thickness: int) -> float:
    return min(1.0, thickness / max(1, expected_thickness))


def line_confidence(
    run_length: int,
    dimension: int,
    thickness: int,
    expected_thickness: int,
    weights: ConfidenceWeights,
) -> float:
    """Length score x 0.6 + thickness score x 0.4 (weights configurable)."""
    return (
        _length_score(run_length, dimension) * weights.length_weight
        + _thickness_score(thickness, expected_thickness) * weights.thickness_weight
    )


def near_line_confidence(
    run_length: int,
    dimension: int,
    thickness: int,
    expected_thickness: int,
    distance: int,
    search_tolerance: int,
    position_bonus_factor: float,
    weights: ConfidenceWeights,
) -> float:
    """
    Confidence of a candidate found in a band around an expected position.

    The length/thickness terms are scaled down and the sum is multiplied by a
    proximity factor falling linearly from 1 at the expected position to
    ``1 - position_bonus_factor`` at the edge of the band.
    """
    base = (
        _length_score(run_length, dimension) * weights.length_weight * weights.near_length_scale
        + _thickness_score(thickness, expected_thickness)
        * weights.thickness_weight
        * weights.near_thickness_scale
    )
    proximity = 1.0 - (abs(distance) / max(1, search_tolerance)) * position_bonus_factor
    return base * proximity


def overall_confidence(
    border_confidences: Sequence[float],
    valid_corners: int,
    alignment_score: float,
    grid_line_confidence: float,
    weights: ConfidenceWeights,
) -> ConfidenceBreakdown:
    border = sum(border_confidences) / len(border_confidences) if border_confidences else 0.0
    corner = valid_corners / 4
    overall = (
        border * weights.border_weight
        + corner * weights.corner_weight
        + alignment_score * weights.alignment_weight
        + grid_line_confidence * weights.grid_line_weight
    )
    return ConfidenceBreakdown(
        border=border,
        corner=corner,
        alignment=alignment_score,
        grid_lines=grid_line_confidence,
        overall=overall,
    )
