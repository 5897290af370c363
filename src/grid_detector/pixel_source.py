"""Pixel sources: one read-only view of decoded pixels shared by every caller.

Interactive callers hand over an in-memory array, batch callers a raw decoded
buffer or an encoded file; the detector only ever sees ``PixelSource``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray

from grid_detector.models import ProcessingError, ProcessingStage
from grid_detector.utils import cv_utils

MIN_CHANNELS = 3


class InvalidImageError(ValueError):
    """Raised for images that cannot be analysed at all (empty or too few channels)."""


@runtime_checkable
class PixelSource(Protocol):
    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def pixels(self) -> NDArray[np.uint8]:
        """Row-major H x W x C uint8 array, C >= 3, channels ordered R, G, B[, A]."""
        ...


def _validate_pixels(pixels: NDArray[Any]) -> NDArray[np.uint8]:
    if pixels.ndim == 3 and pixels.shape[2] == 1:
        pixels = pixels[:, :, 0]
    if pixels.ndim == 2:
        pixels = np.repeat(pixels[:, :, np.newaxis], MIN_CHANNELS, axis=2)
    if pixels.ndim != 3:
        raise InvalidImageError(f"Expected an H x W x C array, got shape {pixels.shape}")
    h, w, c = pixels.shape
    if h == 0 or w == 0:
        raise InvalidImageError(f"Image has zero size ({w}x{h})")
    if c < MIN_CHANNELS:
        raise InvalidImageError(f"Image needs at least {MIN_CHANNELS} channels, got {c}")
    if pixels.dtype != np.uint8:
        pixels = np.clip(pixels, 0, 255).astype(np.uint8)
    view = pixels.view()
    view.flags.writeable = False
    return view


class ArrayPixelSource:
    """Pixel source over an in-memory RGB(A) or grayscale array."""

    def __init__(self, pixels: NDArray[Any]):
        self._pixels = _validate_pixels(np.asarray(pixels))

    @property
    def width(self) -> int:
        return int(self._pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self._pixels.shape[0])

    def pixels(self) -> NDArray[np.uint8]:
        return self._pixels


class RawBufferPixelSource:
    """Pixel source over a decoded row-major byte buffer with explicit geometry."""

    def __init__(self, data: bytes | bytearray | memoryview, width: int, height: int, channels: int = 4):
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Image has zero size ({width}x{height})")
        if channels < MIN_CHANNELS:
            raise InvalidImageError(f"Image needs at least {MIN_CHANNELS} channels, got {channels}")
        expected = width * height * channels
        buf = np.frombuffer(data, dtype=np.uint8)
        if buf.size < expected:
            raise InvalidImageError(
                f"Buffer holds {buf.size} bytes, {width}x{height}x{channels} needs {expected}"
            )
        self._width = int(width)
        self._height = int(height)
        self._pixels = _validate_pixels(buf[:expected].reshape(height, width, channels))

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    def pixels(self) -> NDArray[np.uint8]:
        return self._pixels


def load_pixel_source(path: str | Path) -> PixelSource | ProcessingError:
    image = cv_utils.load_image(path, stage=ProcessingStage.INPUT)
    if isinstance(image, ProcessingError):
        return image
    return _wrap_decoded(image, {"path": str(path)})


def decode_pixel_source(data: bytes) -> PixelSource | ProcessingError:
    image = cv_utils.decode_image(data, stage=ProcessingStage.INPUT)
    if isinstance(image, ProcessingError):
        return image
    return _wrap_decoded(image, {"size": len(data)})


def _wrap_decoded(image: NDArray[Any], details: dict[str, Any]) -> PixelSource | ProcessingError:
    try:
        return ArrayPixelSource(image)
    except InvalidImageError as e:
        return ProcessingError(
            stage=ProcessingStage.INPUT,
            error_type="invalid_image",
            recoverable=False,
            message=str(e),
            details=details,
        )


def as_pixel_source(image: PixelSource | NDArray[Any]) -> PixelSource:
    """Accept either a ready pixel source or a bare array."""
    if isinstance(image, np.ndarray):
        return ArrayPixelSource(image)
    return image
