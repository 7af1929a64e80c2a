"""Midtone Contrast effect — linear stretch pivoting on 50% grey."""

import math

import numpy as np

from engine.frame import store_u8
from errors import InvalidParameter

EFFECT_ID = "util.midtone_contrast"
EFFECT_NAME = "Midtone Contrast"
EFFECT_CATEGORY = "util"

DEFAULT_FACTOR = 1.5

PARAMS: dict = {
    "factor": {
        "type": "float",
        "min": 0.1,
        "max": 5.0,
        "default": DEFAULT_FACTOR,
        "label": "Factor",
        "unit": "x",
        "curve": "logarithmic",
        "description": "Contrast around the midpoint (>1 increases, <1 flattens)",
    },
}


def check_factor(factor) -> float:
    try:
        factor = float(factor)
    except (TypeError, ValueError):
        raise InvalidParameter(f"Contrast factor must be a number, got {factor!r}")
    if not math.isfinite(factor) or factor <= 0:
        raise InvalidParameter(f"Contrast factor must be > 0, got {factor}")
    return factor


def midtone_contrast(frame: np.ndarray, factor: float = DEFAULT_FACTOR) -> np.ndarray:
    """Stretch a greyscale frame around 128 in place.

    Values further than 0.5/factor (normalized) from the pivot saturate.

    Raises:
        InvalidParameter: If factor is not a finite number > 0.
    """
    factor = check_factor(factor)
    if frame.size == 0:
        return frame
    out = frame[:, :, 0].astype(np.float64)
    out /= 255.0
    out -= 0.5
    out *= factor
    out += 0.5
    out *= 255.0
    frame[:, :, :3] = store_u8(out)[:, :, np.newaxis]
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
    """Apply midtone contrast. Stateless."""
    factor = params.get("factor", DEFAULT_FACTOR)
    return midtone_contrast(frame.copy(), factor), None
