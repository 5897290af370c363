import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from grid_detector import config


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SearchRegions(_FrozenModel):
    top_max_y: float = Field(default=config.SEARCH_TOP_MAX_Y, ge=0.0, le=1.0)
    bottom_min_y: float = Field(default=config.SEARCH_BOTTOM_MIN_Y, ge=0.0, le=1.0)
    left_max_x: float = Field(default=config.SEARCH_LEFT_MAX_X, ge=0.0, le=1.0)
    right_min_x: float = Field(default=config.SEARCH_RIGHT_MIN_X, ge=0.0, le=1.0)


class CornerDetection(_FrozenModel):
    corner_size: int = Field(default=config.CORNER_SIZE, ge=1)
    position_tolerance: int = Field(default=config.CORNER_POSITION_TOLERANCE, ge=0)
    arm_check_tolerance: int = Field(default=config.CORNER_ARM_CHECK_TOLERANCE, ge=0)
    min_arm_ratio: float = Field(default=config.CORNER_MIN_ARM_RATIO, ge=0.0, le=1.0)


class GridLineVerification(_FrozenModel):
    enabled: bool = config.GRID_LINE_VERIFICATION_ENABLED
    min_internal_lines: int = Field(default=config.MIN_INTERNAL_LINES, ge=0)
    spacing_tolerance: float = Field(default=config.SPACING_TOLERANCE, ge=0.0)
    min_lines_for_analysis: int = Field(default=config.MIN_LINES_FOR_SPACING_ANALYSIS, ge=2)
    min_consistency: float = Field(default=config.MIN_SPACING_CONSISTENCY, ge=0.0, le=1.0)


class AlignmentTolerances(_FrozenModel):
    # Bottom-border selection against the top border's run
    well_aligned_px: int = Field(default=config.WELL_ALIGNED_PX, ge=0)
    well_aligned_pct: float = Field(default=config.WELL_ALIGNED_PCT, ge=0.0)
    acceptable_px: int = Field(default=config.ACCEPTABLE_PX, ge=0)
    acceptable_pct: float = Field(default=config.ACCEPTABLE_PCT, ge=0.0)

    # Rectangle closure
    border_tolerance_px: int = Field(default=config.BORDER_TOLERANCE_PX, ge=0)
    min_aligned_fraction: float = Field(default=config.MIN_ALIGNED_FRACTION, ge=0.0, le=1.0)

    # Guided vertical search
    vertical_search_tolerance: int = Field(default=config.VERTICAL_SEARCH_TOLERANCE, ge=1)
    vertical_misalignment_threshold: int = Field(
        default=config.VERTICAL_MISALIGNMENT_THRESHOLD, ge=0
    )
    position_bonus_factor: float = Field(default=config.POSITION_BONUS_FACTOR, ge=0.0, le=1.0)


class ConfidenceWeights(_FrozenModel):
    length_weight: float = config.LENGTH_WEIGHT
    thickness_weight: float = config.THICKNESS_WEIGHT
    min_candidate: float = config.MIN_CANDIDATE_CONFIDENCE
    min_candidate_near: float = config.MIN_CANDIDATE_CONFIDENCE_NEAR
    min_outermost: float = config.MIN_OUTERMOST_CONFIDENCE
    confidence_diff_threshold: float = config.CONFIDENCE_DIFF_THRESHOLD
    prefer_distance_px: int = config.CONFIDENCE_PREFER_DISTANCE_PX
    min_overall: float = config.MIN_OVERALL_CONFIDENCE
    border_weight: float = config.BORDER_WEIGHT
    corner_weight: float = config.CORNER_WEIGHT
    alignment_weight: float = config.ALIGNMENT_WEIGHT
    grid_line_weight: float = config.GRID_LINE_WEIGHT
    regularity_boost: float = config.REGULARITY_BOOST
    near_length_scale: float = config.NEAR_LENGTH_SCALE
    near_thickness_scale: float = config.NEAR_THICKNESS_SCALE
    synthetic_border: float = config.SYNTHETIC_BORDER_CONFIDENCE


class FallbackMargins(_FrozenModel):
    top: float = Field(default=config.FALLBACK_MARGIN_TOP, ge=0.0, le=1.0)
    bottom: float = Field(default=config.FALLBACK_MARGIN_BOTTOM, ge=0.0, le=1.0)
    left: float = Field(default=config.FALLBACK_MARGIN_LEFT, ge=0.0, le=1.0)
    right: float = Field(default=config.FALLBACK_MARGIN_RIGHT, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_total(self) -> "FallbackMargins":
        if self.top + self.bottom >= 1.0 or self.left + self.right >= 1.0:
            raise ValueError("opposite fallback margins must leave a non-empty region")
        return self


class DetectionConfig(_FrozenModel):
    dark_pixel_threshold: int = Field(default=config.DARK_PIXEL_THRESHOLD, ge=0, le=255)
    max_gap_pixels: int = Field(default=config.MAX_GAP_PIXELS, ge=0)
    min_border_fraction: float = Field(default=config.MIN_BORDER_FRACTION, ge=0.0, le=1.0)
    border_expansion: int = Field(default=config.BORDER_EXPANSION, ge=0)
    expected_border_thickness: int = Field(default=config.EXPECTED_BORDER_THICKNESS, ge=1)
    thickness_tolerance: int = Field(default=config.THICKNESS_TOLERANCE, ge=0)

    search_regions: SearchRegions = SearchRegions()
    corner_detection: CornerDetection = CornerDetection()
    grid_line_verification: GridLineVerification = GridLineVerification()
    alignment: AlignmentTolerances = AlignmentTolerances()
    confidence: ConfidenceWeights = ConfidenceWeights()
    fallback_margins: FallbackMargins = FallbackMargins()


_NESTED_FIELDS = (
    "search_regions",
    "corner_detection",
    "grid_line_verification",
    "alignment",
    "confidence",
    "fallback_margins",
)


def merge_config(
    overrides: Mapping[str, Any] | DetectionConfig | None = None,
    base: DetectionConfig | None = None,
) -> DetectionConfig:
    """
    Merge a partial override mapping over a base config.

    Top-level fields replace the base value; nested sub-objects are merged
    field-by-field so ``{"search_regions": {"top_max_y": 0.5}}`` keeps the
    other three search-region limits.
    """
    base = base or DetectionConfig()
    if overrides is None:
        return base
    if isinstance(overrides, DetectionConfig):
        return overrides

    merged = base.model_dump()
    for key, value in overrides.items():
        if key in _NESTED_FIELDS and isinstance(value, Mapping):
            merged[key] = {**merged[key], **value}
        elif key in _NESTED_FIELDS and isinstance(value, BaseModel):
            merged[key] = value.model_dump()
        else:
            merged[key] = value
    return DetectionConfig.model_validate(merged)


def load_config_file(path: str | Path, base: DetectionConfig | None = None) -> DetectionConfig:
    """Read a JSON override file and merge it over the defaults."""
    data = json.loads(Path(path).read_text())
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return merge_config(data, base=base)
