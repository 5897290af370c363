"""Glue between rendered pages and the detector internals."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray

from grid_detector.detection import PixelContext
from grid_detector.models import DetectionConfig
from grid_detector.pixel_source import ArrayPixelSource


def make_context(img: NDArray[np.uint8], config: DetectionConfig | None = None) -> PixelContext:
    return PixelContext.from_source(ArrayPixelSource(img), config or DetectionConfig())


def write_png(img: NDArray[np.uint8], path: Path) -> Path:
    """Write an RGB page as PNG."""
    if not cv2.imwrite(str(path), np.ascontiguousarray(img[:, :, ::-1])):
        raise OSError(f"could not write {path}")
    return path
