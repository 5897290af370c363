"""
OpenCV utility functions for the grid detection pipeline.

This module provides reusable image handling for:
- Image I/O with validation (file paths and encoded byte buffers)
- Channel normalization to RGB(A)
- PNG encoding of crops and debug overlays

All I/O functions follow the Result | ProcessingError pattern for error handling.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, TypeAlias

import cv2
import numpy as np
from numpy.typing import NDArray

from grid_detector.models import ProcessingError, ProcessingStage

logger = logging.getLogger(__name__)

# =============================================================================
# TYPE ALIASES
# =============================================================================

# Use Any for dtype to avoid MatLike compatibility issues with OpenCV
Image: TypeAlias = NDArray[Any]  # RGB or RGBA image, H x W x C


# =============================================================================
# SECTION 1: CHANNEL NORMALIZATION
# =============================================================================


def to_rgb(decoded: Image) -> Image:
    """
    Convert an OpenCV-decoded array (gray, BGR or BGRA) to RGB or RGBA.

    Alpha is preserved so callers that hand pixels back out keep it; the
    dark-pixel predicate only ever reads the first three channels.
    """
    if decoded.ndim == 2:
        return cv2.cvtColor(decoded, cv2.COLOR_GRAY2RGB)

    channels = decoded.shape[2]
    if channels == 1:
        return cv2.cvtColor(decoded[:, :, 0], cv2.COLOR_GRAY2RGB)
    if channels == 4:
        return cv2.cvtColor(decoded, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(decoded, cv2.COLOR_BGR2RGB)


def to_bgr(image: Image) -> Image:
    """Convert an RGB(A) array back to OpenCV's BGR(A) order for encoding."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
    return cv2.cvtColor(image, cv2.COLOR_RGB2BGR)


def _to_uint8(decoded: Image) -> Image:
    if decoded.dtype == np.uint8:
        return decoded
    if decoded.dtype == np.uint16:
        return (decoded >> 8).astype(np.uint8)
    return np.clip(decoded, 0, 255).astype(np.uint8)


# =============================================================================
# SECTION 2: IMAGE I/O
# =============================================================================


def _io_error(
    stage: ProcessingStage,
    error_type: str,
    message: str,
    **details: Any,
) -> ProcessingError:
    return ProcessingError(
        stage=stage,
        error_type=error_type,
        recoverable=False,
        message=message,
        details=details,
    )


def load_image(
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> Image | ProcessingError:
    """
    Read an image file into an RGB(A) uint8 array.

    Grayscale files come back as three identical channels, 16-bit files are
    reduced to 8 bits. Missing, unreadable and corrupted files are reported
    as ProcessingError rather than raised.
    """
    path = Path(path)
    if not path.is_file():
        return _io_error(stage, "file_not_found", f"Image file not found: {path}", path=str(path))

    try:
        decoded = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    except PermissionError:
        return _io_error(
            stage, "permission_denied", f"Permission denied reading: {path}", path=str(path)
        )
    except (OSError, cv2.error) as e:
        return _io_error(
            stage, "io_error", f"Error reading image: {e}", path=str(path), error=str(e)
        )

    # imread signals unreadable content with None, not an exception
    if decoded is None:
        return _io_error(
            stage,
            "imread_failed",
            f"Failed to read image (may be corrupted): {path}",
            path=str(path),
        )
    return to_rgb(_to_uint8(decoded))


def decode_image(
    data: bytes,
    stage: ProcessingStage = ProcessingStage.INPUT,
) -> Image | ProcessingError:
    """Decode encoded image bytes (PNG, JPEG, ...) into an RGB(A) uint8 array."""
    if not data:
        return _io_error(stage, "empty_buffer", "Image buffer is empty")

    try:
        decoded = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    except cv2.error as e:
        return _io_error(
            stage,
            "imdecode_failed",
            f"Failed to decode image buffer: {e}",
            size=len(data),
            error=str(e),
        )

    if decoded is None:
        return _io_error(
            stage,
            "imdecode_failed",
            "Failed to decode image buffer (unsupported or corrupted)",
            size=len(data),
        )
    return to_rgb(_to_uint8(decoded))


def save_image(
    image: Image,
    path: str | Path,
    stage: ProcessingStage = ProcessingStage.OUTPUT,
) -> Path | ProcessingError:
    """Write an RGB(A) array to ``path``, creating parent directories."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        written = cv2.imwrite(str(path), to_bgr(image))
    except PermissionError:
        return _io_error(
            stage, "permission_denied", f"Permission denied writing: {path}", path=str(path)
        )
    except (OSError, cv2.error) as e:
        logger.warning("Failed to write %s: %s", path, e)
        return _io_error(
            stage, "io_error", f"Error writing image: {e}", path=str(path), error=str(e)
        )

    if not written:
        return _io_error(stage, "imwrite_failed", f"Failed to write image: {path}", path=str(path))
    return path


def encode_png(
    image: Image,
    stage: ProcessingStage = ProcessingStage.OUTPUT,
) -> bytes | ProcessingError:
    """Encode an RGB(A) image as PNG bytes."""
    ok, buf = cv2.imencode(".png", to_bgr(image))
    if not ok:
        return _io_error(
            stage, "imencode_failed", "Failed to encode image as PNG", shape=list(image.shape)
        )
    return buf.tobytes()
