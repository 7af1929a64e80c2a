"""Duotone pipeline — resize, greyscale, auto contrast, midtone contrast,
then the normal and inverted duotone maps.

Each tone stage mutates the buffer it is handed. The pipeline copies
exactly twice: the resized frame before greyscale (it is returned for
display), and the toned frame at the normal/inverted branch.

Includes rolling per-stage timing stats and a slow-stage warning.
"""

import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass

import numpy as np
import sentry_sdk

from config import PipelineSettings
from effects import registry
from effects.color import to_rgb
from effects.fx.duotone import duotone
from effects.util.auto_contrast import auto_contrast
from effects.util.greyscale import greyscale
from effects.util.midtone_contrast import check_factor, midtone_contrast
from engine.frame import frame_size, validate_frame
from engine.resize import resize_to_bounds

logger = logging.getLogger(__name__)

# Per-stage timing threshold (milliseconds)
STAGE_WARN_MS = 250

_timing_lock = threading.Lock()
_stage_timing: dict[str, deque] = defaultdict(lambda: deque(maxlen=100))


@dataclass
class DuotoneResult:
    """The three frames handed to display/export."""

    resized: np.ndarray
    normal: np.ndarray
    inverted: np.ndarray

    @property
    def size(self) -> tuple[int, int]:
        return frame_size(self.resized)


def record_timing(stage: str, elapsed_ms: float):
    """Record a timing sample for a stage."""
    with _timing_lock:
        _stage_timing[stage].append(elapsed_ms)


def get_stage_stats() -> dict[str, dict]:
    """Return p50/p95/max per stage."""
    with _timing_lock:
        snapshot = {k: sorted(v) for k, v in _stage_timing.items()}
    result = {}
    for stage, s in snapshot.items():
        result[stage] = {
            "p50": s[len(s) // 2] if s else 0,
            "p95": s[int(len(s) * 0.95)] if len(s) >= 20 else None,
            "max": max(s) if s else 0,
            "samples": len(s),
        }
    return result


def flush_timing():
    """Clear all timing stats."""
    with _timing_lock:
        _stage_timing.clear()


def _timed(stage: str, fn, *args, **kwargs):
    sentry_sdk.add_breadcrumb(category="pipeline", message=f"stage {stage}")
    t0 = time.monotonic()
    out = fn(*args, **kwargs)
    elapsed_ms = (time.monotonic() - t0) * 1000
    record_timing(stage, elapsed_ms)
    if elapsed_ms > STAGE_WARN_MS:
        logger.warning(
            "Stage %s took %.0fms (>%dms warn threshold)",
            stage,
            elapsed_ms,
            STAGE_WARN_MS,
        )
    return out


def render_duotone(
    frame: np.ndarray,
    max_longest: int,
    min_shortest: int,
    contrast_factor: float,
    dark,
    light,
) -> DuotoneResult:
    """Run the full pipeline on a decoded RGBA frame.

    Args:
        frame:           Input RGBA frame (H, W, 4) uint8. Not modified.
        max_longest:     Longest-edge cap in pixels.
        min_shortest:    Shortest-edge minimum in pixels.
        contrast_factor: Midtone contrast factor, > 0.
        dark, light:     Endpoint colors (RGB triples or hex strings).

    Returns:
        DuotoneResult with the resized original and both duotone maps.

    Raises:
        InvalidImage, InvalidParameter, InvalidColorFormat: On bad input,
        before any stage runs.
    """
    validate_frame(frame)
    contrast_factor = check_factor(contrast_factor)
    dark_rgb = to_rgb(dark)
    light_rgb = to_rgb(light)

    t0 = time.monotonic()
    resized = _timed("resize", resize_to_bounds, frame, max_longest, min_shortest)

    toned = _timed("greyscale", greyscale, resized.copy())
    toned = _timed("auto_contrast", auto_contrast, toned)
    toned = _timed("midtone_contrast", midtone_contrast, toned, contrast_factor)

    normal = _timed("duotone", duotone, toned.copy(), dark_rgb, light_rgb)
    inverted = _timed("duotone", duotone, toned, light_rgb, dark_rgb)

    width, height = frame_size(resized)
    logger.info(
        "Rendered duotone %dx%d -> %dx%d in %.0fms",
        frame.shape[1],
        frame.shape[0],
        width,
        height,
        (time.monotonic() - t0) * 1000,
    )
    return DuotoneResult(resized=resized, normal=normal, inverted=inverted)


def render_with_settings(
    frame: np.ndarray, settings: PipelineSettings | None = None
) -> DuotoneResult:
    """render_duotone driven by a PipelineSettings (defaults if None)."""
    s = settings or PipelineSettings()
    return render_duotone(
        frame,
        s.max_longest_edge,
        s.min_shortest_edge,
        s.contrast_factor,
        s.dark_color,
        s.light_color,
    )


def apply_stage(
    frame: np.ndarray, effect_id: str, params: dict | None = None
) -> np.ndarray:
    """Run a single registered stage on a copy of frame.

    Raises:
        ValueError: If effect_id is not registered.
    """
    validate_frame(frame)
    effect_info = registry.get(effect_id)
    if effect_info is None:
        raise ValueError(f"unknown effect: {effect_id}")
    output, _ = _timed(
        effect_id,
        effect_info["fn"],
        frame,
        dict(params or {}),
        None,
        frame_index=0,
        seed=0,
        resolution=frame_size(frame),
    )
    return output
