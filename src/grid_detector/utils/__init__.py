"""Utility modules for grid-detector."""

from grid_detector.utils.cv_utils import (
    # Type aliases
    Image,
    # Image I/O
    decode_image,
    encode_png,
    load_image,
    save_image,
    # Channel helpers
    to_bgr,
    to_rgb,
)

__all__ = [
    # Type aliases
    "Image",
    # Image I/O
    "load_image",
    "decode_image",
    "save_image",
    "encode_png",
    # Channel helpers
    "to_rgb",
    "to_bgr",
]
