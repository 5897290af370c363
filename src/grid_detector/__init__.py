"""Locate and crop the bordered grid on rendered pattern pages."""

from grid_detector.detection import (
    GridDetection,
    TraceRecorder,
    crop_pixel_source,
    crop_to_grid,
    detect_grid,
    detect_grid_bounds,
    fallback_bounds,
)
from grid_detector.layout import GridPosition, grid_dimensions, grid_position
from grid_detector.models import DetectionConfig, GridBounds, ProcessingError, merge_config
from grid_detector.pipeline import (
    GridExtraction,
    extract_grid,
    extract_grid_async,
    extract_grid_from_bytes,
    extract_grid_from_path,
)
from grid_detector.pixel_source import (
    ArrayPixelSource,
    InvalidImageError,
    PixelSource,
    RawBufferPixelSource,
    decode_pixel_source,
    load_pixel_source,
)

__all__ = [
    "ArrayPixelSource",
    "DetectionConfig",
    "GridBounds",
    "GridDetection",
    "GridExtraction",
    "GridPosition",
    "InvalidImageError",
    "PixelSource",
    "ProcessingError",
    "RawBufferPixelSource",
    "TraceRecorder",
    "crop_pixel_source",
    "crop_to_grid",
    "decode_pixel_source",
    "detect_grid",
    "detect_grid_bounds",
    "extract_grid",
    "extract_grid_async",
    "extract_grid_from_bytes",
    "extract_grid_from_path",
    "fallback_bounds",
    "grid_dimensions",
    "grid_position",
    "load_pixel_source",
    "merge_config",
]
