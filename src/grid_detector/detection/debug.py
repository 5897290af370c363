"""Debug overlay writers for grid detection."""

from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from numpy.typing import NDArray

from grid_detector.models import GridBounds, ProcessingError
from grid_detector.utils import cv_utils

from .detector import GridDetection

BOUNDS_COLOR = (255, 0, 0)  # RGB red
FALLBACK_COLOR = (255, 165, 0)
MARKER_SIZE = 20
MARKER_THICKNESS = 3


def _as_rgb(image: NDArray[np.uint8]) -> NDArray[np.uint8]:
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2RGB)
    return image.copy()


def _draw_corner_markers(
    out: NDArray[np.uint8],
    bounds: GridBounds,
    color: tuple[int, int, int],
) -> None:
    x0, y0, x1, y1 = bounds.region
    x1 -= 1
    y1 -= 1
    t = MARKER_THICKNESS - 1
    for cx, dx in ((x0, 1), (x1, -1)):
        for cy, dy in ((y0, 1), (y1, -1)):
            arm_x = cx + dx * MARKER_SIZE
            arm_y = cy + dy * MARKER_SIZE
            cv2.rectangle(out, (cx, cy), (arm_x, cy + dy * t), color, -1)
            cv2.rectangle(out, (cx, cy), (cx + dx * t, arm_y), color, -1)


def draw_debug_bounds(
    image: NDArray[np.uint8],
    bounds: GridBounds,
    label: str | None = None,
    color: tuple[int, int, int] = BOUNDS_COLOR,
) -> NDArray[np.uint8]:
    """Copy of ``image`` with the bounds rectangle, corner markers and a caption."""
    out = _as_rgb(image)
    x0, y0, x1, y1 = bounds.region
    cv2.rectangle(out, (x0, y0), (max(x0, x1 - 1), max(y0, y1 - 1)), color, 2, cv2.LINE_AA)
    _draw_corner_markers(out, bounds, color)

    caption = label or f"Bounds: ({bounds.x}, {bounds.y}) {bounds.width}x{bounds.height}"
    cv2.putText(
        out,
        caption,
        (x0 + 10, max(14, y0 - 10)),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.45,
        color,
        1,
        cv2.LINE_AA,
    )
    return out


def draw_detection(image: NDArray[np.uint8], detection: GridDetection) -> NDArray[np.uint8]:
    """Overlay for a full detection result; fallback bounds are drawn in orange."""
    if detection.used_fallback:
        label = f"fallback ({detection.fallback_reason})"
        return draw_debug_bounds(image, detection.bounds, label, FALLBACK_COLOR)

    overall = detection.confidence.overall if detection.confidence else 0.0
    b = detection.bounds
    label = f"({b.x}, {b.y}) {b.width}x{b.height} conf={overall:.2f}"
    return draw_debug_bounds(image, b, label)


def write_debug_overlay(
    image: NDArray[np.uint8],
    detection: GridDetection,
    path: str | Path,
) -> Path | ProcessingError:
    return cv_utils.save_image(draw_detection(image, detection), path)
