"""Greyscale effect — BT.709 luminosity, written to R, G and B."""

import numpy as np

from engine.frame import store_u8

EFFECT_ID = "util.greyscale"
EFFECT_NAME = "Greyscale"
EFFECT_CATEGORY = "util"

PARAMS: dict = {}

# ITU-R BT.709 luminosity weights
LUMA_R = 0.2126
LUMA_G = 0.7152
LUMA_B = 0.0722


def greyscale(frame: np.ndarray) -> np.ndarray:
    """Replace R, G, B with their luminosity in place. Alpha untouched."""
    if frame.size == 0:
        return frame
    # Accumulate one float plane at a time to bound peak memory.
    luma = LUMA_R * frame[:, :, 0]
    luma += LUMA_G * frame[:, :, 1]
    luma += LUMA_B * frame[:, :, 2]
    frame[:, :, :3] = store_u8(luma)[:, :, np.newaxis]
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
    """Convert to greyscale. Stateless."""
    return greyscale(frame.copy()), None
