"""Sub-image extraction for detected bounds."""

from __future__ import annotations

from typing import Any

import numpy as np
from numpy.typing import NDArray

from grid_detector.models import GridBounds
from grid_detector.pixel_source import ArrayPixelSource, PixelSource


def crop_to_grid(image: NDArray[Any], bounds: GridBounds) -> NDArray[Any]:
    """
    Copy of ``image`` restricted to ``bounds`` (no resizing).

    Raises:
        ValueError: bounds are empty or extend past the image
    """
    height, width = image.shape[:2]
    if bounds.width <= 0 or bounds.height <= 0:
        raise ValueError(f"Cannot crop to empty bounds {bounds.region}")
    if not bounds.fits_within(width, height):
        raise ValueError(f"Bounds {bounds.region} exceed image size {width}x{height}")

    x0, y0, x1, y1 = bounds.region
    return np.ascontiguousarray(image[y0:y1, x0:x1]).copy()


def crop_pixel_source(source: PixelSource, bounds: GridBounds) -> ArrayPixelSource:
    return ArrayPixelSource(crop_to_grid(source.pixels(), bounds))
