"""Grid boundary detection on decoded page images."""

from .borders import DetectedBorders, LineCandidate
from .crop import crop_pixel_source, crop_to_grid
from .debug import draw_debug_bounds, draw_detection, write_debug_overlay
from .detector import GridDetection, detect_grid, detect_grid_bounds, fallback_bounds
from .grid_lines import SpacingAnalysis, analyze_grid_line_spacing
from .line_scan import DarkRun, longest_dark_run
from .pixel_context import PixelContext
from .scoring import ConfidenceBreakdown
from .trace import TraceRecorder, TraceSink

__all__ = [
    "ConfidenceBreakdown",
    "DarkRun",
    "DetectedBorders",
    "GridDetection",
    "LineCandidate",
    "PixelContext",
    "SpacingAnalysis",
    "TraceRecorder",
    "TraceSink",
    "analyze_grid_line_spacing",
    "crop_pixel_source",
    "crop_to_grid",
    "detect_grid",
    "detect_grid_bounds",
    "draw_debug_bounds",
    "draw_detection",
    "fallback_bounds",
    "longest_dark_run",
    "write_debug_overlay",
]
