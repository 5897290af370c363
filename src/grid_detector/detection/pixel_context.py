"""Per-call pixel context and the dark-pixel predicate."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from grid_detector.models import DetectionConfig
from grid_detector.pixel_source import InvalidImageError, PixelSource

ScanDirection = Literal["horizontal", "vertical"]


def build_dark_mask(pixels: NDArray[np.uint8], threshold: int) -> NDArray[np.bool_]:
    """True where R, G and B are all strictly below ``threshold`` (alpha ignored)."""
    rgb = pixels[:, :, :3]
    return np.all(rgb < threshold, axis=2)


@dataclass(frozen=True)
class PixelContext:
    """Decoded pixels of one image plus the config active for this detection call."""

    width: int
    height: int
    config: DetectionConfig
    dark: NDArray[np.bool_]  # H x W

    @classmethod
    def from_source(cls, source: PixelSource, config: DetectionConfig) -> PixelContext:
        width, height = int(source.width), int(source.height)
        if width <= 0 or height <= 0:
            raise InvalidImageError(f"Image has zero size ({width}x{height})")
        pixels = source.pixels()
        if pixels.shape[0] != height or pixels.shape[1] != width:
            raise InvalidImageError(
                f"Pixel array shape {pixels.shape[:2]} does not match {height}x{width}"
            )
        mask = build_dark_mask(pixels, config.dark_pixel_threshold)
        mask.flags.writeable = False
        return cls(width=width, height=height, config=config, dark=mask)

    def is_dark(self, x: int, y: int) -> bool:
        if x < 0 or x >= self.width or y < 0 or y >= self.height:
            return False
        return bool(self.dark[y, x])

    def any_dark(self, x0: int, y0: int, x1: int, y1: int) -> bool:
        """Whether any pixel in the inclusive window [x0, x1] x [y0, y1] is dark."""
        x0, y0 = max(0, x0), max(0, y0)
        x1, y1 = min(self.width - 1, x1), min(self.height - 1, y1)
        if x0 > x1 or y0 > y1:
            return False
        return bool(self.dark[y0 : y1 + 1, x0 : x1 + 1].any())

    def scan_line(self, position: int, direction: ScanDirection) -> NDArray[np.bool_]:
        """Row ``position`` for horizontal scans, column ``position`` for vertical ones."""
        if direction == "horizontal":
            return self.dark[position, :]
        return self.dark[:, position]

    def span(self, direction: ScanDirection) -> int:
        """Length of a scan line in ``direction``."""
        return self.width if direction == "horizontal" else self.height

    def extent(self, direction: ScanDirection) -> int:
        """Number of scan lines in ``direction`` (rows for horizontal, columns for vertical)."""
        return self.height if direction == "horizontal" else self.width
