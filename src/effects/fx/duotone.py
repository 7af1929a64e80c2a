"""Duotone — map grey levels onto a two-color gradient."""

import numpy as np

from effects.color import to_rgb

EFFECT_ID = "fx.duotone"
EFFECT_NAME = "Duotone"
EFFECT_CATEGORY = "fx"

DEFAULT_DARK = "#1b602f"
DEFAULT_LIGHT = "#f784c5"

PARAMS: dict = {
    "dark": {
        "type": "color",
        "default": DEFAULT_DARK,
        "label": "Dark",
        "description": "Color that black maps to",
    },
    "light": {
        "type": "color",
        "default": DEFAULT_LIGHT,
        "label": "Light",
        "description": "Color that white maps to",
    },
}


def duotone(frame: np.ndarray, dark, light) -> np.ndarray:
    """Interpolate each pixel between dark and light by its R value, in place.

    Computes ``floor(dark * (1 - a) + light * a)`` with ``a = v / 255`` in
    exact integers, so v=0 and v=255 hit the endpoints exactly and swapping
    dark and light mirrors the ramp. This departs from the floating-point
    form where the exact result is an integer that floats land just below:
    with the default pair, blue at v=170 is 147 here and 146 in floats.
    Alpha is untouched.
    """
    dark = np.array(to_rgb(dark), dtype=np.int32)
    light = np.array(to_rgb(light), dtype=np.int32)
    if frame.size == 0:
        return frame

    v = frame[:, :, 0].astype(np.int32)[:, :, np.newaxis]
    mixed = (dark * (255 - v) + light * v) // 255
    frame[:, :, :3] = np.clip(mixed, 0, 255).astype(np.uint8)
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
    """Map grey to the dark/light gradient — classic risograph look."""
    dark = params.get("dark", DEFAULT_DARK)
    light = params.get("light", DEFAULT_LIGHT)
    return duotone(frame.copy(), dark, light), None
