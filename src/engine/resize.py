"""Bounded resize — longest/shortest edge policy plus bilinear resampling.

The two bounds are applied one after the other: first the longest edge is
capped, then the shortest edge is raised. When both cannot hold, the
shortest-edge minimum wins and the longest edge may exceed its cap
(2000x100 with bounds 1000/300 becomes 6000x300).
"""

import logging
import math

import numpy as np
from PIL import Image

from engine.frame import frame_size, validate_frame
from errors import InvalidImage, InvalidParameter

logger = logging.getLogger(__name__)

DEFAULT_MAX_LONGEST_EDGE = 1000
DEFAULT_MIN_SHORTEST_EDGE = 300

# Upscaling very thin images can explode; refuse instead of allocating.
# A render holds four uint8 RGBA frames plus float64 stage planes, about
# 64 bytes per output pixel, and must stay within a quarter of the
# sidecar's address-space cap (main.MAX_MEMORY_BYTES).
WORKING_BYTES_PER_PIXEL = 64
PIXEL_MEMORY_BUDGET = 512 * 1024 * 1024
MAX_OUTPUT_PIXELS = PIXEL_MEMORY_BUDGET // WORKING_BYTES_PER_PIXEL  # ~8.4 MP


def _check_bound(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise InvalidParameter(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise InvalidParameter(f"{name} must be > 0, got {value}")
    return int(value)


def _scale(width: int, height: int, factor: float) -> tuple[int, int]:
    # Floor, but never collapse an edge to zero.
    return max(1, math.floor(width * factor)), max(1, math.floor(height * factor))


def compute_target_size(
    width: int, height: int, max_longest: int, min_shortest: int
) -> tuple[int, int]:
    """Return (width, height) after applying both edge bounds in sequence.

    Raises:
        InvalidImage:     If width or height is not positive.
        InvalidParameter: If a bound is not a positive integer.
    """
    max_longest = _check_bound("max_longest", max_longest)
    min_shortest = _check_bound("min_shortest", min_shortest)
    if width <= 0 or height <= 0:
        raise InvalidImage(f"Dimensions must be positive, got {width}x{height}")

    longest = max(width, height)
    if longest > max_longest:
        width, height = _scale(width, height, max_longest / longest)

    shortest = min(width, height)
    if shortest < min_shortest:
        width, height = _scale(width, height, min_shortest / shortest)

    return width, height


def resize_to_bounds(
    frame: np.ndarray,
    max_longest: int = DEFAULT_MAX_LONGEST_EDGE,
    min_shortest: int = DEFAULT_MIN_SHORTEST_EDGE,
) -> np.ndarray:
    """Resample frame to the bounded size. Always returns a new array.

    Raises:
        InvalidImage: If the frame is invalid or the target exceeds
                      MAX_OUTPUT_PIXELS.
    """
    validate_frame(frame)
    src_w, src_h = frame_size(frame)
    width, height = compute_target_size(src_w, src_h, max_longest, min_shortest)

    if width * height > MAX_OUTPUT_PIXELS:
        raise InvalidImage(
            f"Resized image {width}x{height} exceeds {MAX_OUTPUT_PIXELS} pixels"
        )

    if (width, height) == (src_w, src_h):
        return frame.copy()

    logger.debug("Resizing %dx%d -> %dx%d", src_w, src_h, width, height)
    img = Image.fromarray(np.ascontiguousarray(frame))
    resized = img.resize((width, height), resample=Image.Resampling.BILINEAR)
    return np.array(resized, dtype=np.uint8)
