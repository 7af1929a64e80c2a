"""Auto Contrast effect — stretch the occupied grey range to 0..255.

Expects a greyscale frame (R == G == B); only the R histogram is read.
"""

import logging

import numpy as np

from effects.util.histogram import compute_histogram, occupied_range
from engine.frame import store_u8

logger = logging.getLogger(__name__)

EFFECT_ID = "util.auto_contrast"
EFFECT_NAME = "Auto Contrast"
EFFECT_CATEGORY = "util"

PARAMS: dict = {}


def auto_contrast(frame: np.ndarray) -> np.ndarray:
    """Histogram-stretch a greyscale frame in place.

    A flat (or empty) frame has nothing to stretch and is returned
    unchanged.
    """
    lo, hi = occupied_range(compute_histogram(frame, channel=0))
    if lo >= hi:
        logger.debug("Auto contrast skipped: flat histogram (min=%d, max=%d)", lo, hi)
        return frame

    scale = 255.0 / (hi - lo)
    stretched = frame[:, :, 0].astype(np.float64)
    stretched -= lo
    stretched *= scale
    frame[:, :, :3] = store_u8(stretched)[:, :, np.newaxis]
    return frame


def apply(
    frame: np.ndarray,
    params: dict,
    state_in: dict | None = None,
    *,
    frame_index: int,
    seed: int,
    resolution: tuple[int, int],
) -> tuple[np.ndarray, dict | None]:
    """Apply auto contrast. Stateless."""
    return auto_contrast(frame.copy()), None
