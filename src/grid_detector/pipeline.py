"""Detect-then-crop pipeline for page images."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from numpy.typing import NDArray

from grid_detector.detection import GridDetection, crop_to_grid, detect_grid
from grid_detector.detection.trace import TraceSink
from grid_detector.models import DetectionConfig, GridBounds, ProcessingError, ProcessingStage
from grid_detector.pixel_source import (
    InvalidImageError,
    PixelSource,
    as_pixel_source,
    decode_pixel_source,
    load_pixel_source,
)
from grid_detector.utils import cv_utils

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridExtraction:
    """Detected grid bounds and the source pixels cropped to them."""

    detection: GridDetection
    image: NDArray[Any]
    source_size: tuple[int, int]  # (width, height)

    @property
    def bounds(self) -> GridBounds:
        return self.detection.bounds

    def to_png(self) -> bytes | ProcessingError:
        """PNG encoding of the cropped grid, for callers that hand bytes onward."""
        return cv_utils.encode_png(self.image, stage=ProcessingStage.CROP)


def extract_grid(
    image: PixelSource | NDArray[Any],
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridExtraction:
    """Detect the grid in ``image`` and crop to it."""
    source = as_pixel_source(image)
    detection = detect_grid(source, config, trace)
    cropped = crop_to_grid(source.pixels(), detection.bounds)
    return GridExtraction(
        detection=detection,
        image=cropped,
        source_size=(source.width, source.height),
    )


def _extract_or_error(
    source: PixelSource | ProcessingError,
    config: DetectionConfig | None,
    trace: TraceSink | None,
    details: dict[str, Any],
) -> GridExtraction | ProcessingError:
    if isinstance(source, ProcessingError):
        logger.warning("Could not load image %s: %s", details, source.message)
        return source
    try:
        return extract_grid(source, config, trace)
    except InvalidImageError as e:
        return ProcessingError(
            stage=ProcessingStage.DETECT,
            error_type="invalid_image",
            recoverable=False,
            message=str(e),
            details=details,
        )


def extract_grid_from_path(
    path: str | Path,
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridExtraction | ProcessingError:
    return _extract_or_error(load_pixel_source(path), config, trace, {"path": str(path)})


def extract_grid_from_bytes(
    data: bytes,
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridExtraction | ProcessingError:
    return _extract_or_error(decode_pixel_source(data), config, trace, {"size": len(data)})


async def extract_grid_async(
    path: str | Path,
    config: DetectionConfig | None = None,
    trace: TraceSink | None = None,
) -> GridExtraction | ProcessingError:
    """Run one page's detection in a worker thread so pages can be awaited together."""
    return await asyncio.to_thread(extract_grid_from_path, path, config, trace)
