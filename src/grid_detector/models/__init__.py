from .bounds import GridBounds
from .detection_config import (
    AlignmentTolerances,
    ConfidenceWeights,
    CornerDetection,
    DetectionConfig,
    FallbackMargins,
    GridLineVerification,
    SearchRegions,
    load_config_file,
    merge_config,
)
from .processing import ProcessingError, ProcessingStage, TraceEvent, TraceStage

__all__ = [
    "AlignmentTolerances",
    "ConfidenceWeights",
    "CornerDetection",
    "DetectionConfig",
    "FallbackMargins",
    "GridBounds",
    "GridLineVerification",
    "ProcessingError",
    "ProcessingStage",
    "SearchRegions",
    "TraceEvent",
    "TraceStage",
    "load_config_file",
    "merge_config",
]
