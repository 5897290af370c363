from enum import Enum
from typing import Any

from pydantic import BaseModel


class ProcessingStage(str, Enum):
    INPUT = "input"
    DETECT = "detect"
    CROP = "crop"
    OUTPUT = "output"


class ProcessingError(BaseModel):
    stage: ProcessingStage
    error_type: str
    recoverable: bool
    message: str
    details: dict[str, Any] = {}


class TraceStage(str, Enum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    ALIGNMENT = "alignment"
    CORNERS = "corners"
    GRID_LINES = "grid_lines"
    CONFIDENCE = "confidence"
    FALLBACK = "fallback"
    RESULT = "result"


class TraceEvent(BaseModel):
    stage: TraceStage
    message: str
    details: dict[str, Any] = {}
