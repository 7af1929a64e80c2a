"""Histogram utility — 256-bin channel histograms and occupied range."""

import numpy as np


def compute_histogram(frame: np.ndarray, channel: int = 0) -> np.ndarray:
    """
    Count pixel values of one channel.

    Args:
        frame:   (H, W, 4) uint8 RGBA image
        channel: channel index, 0 (R) by default

    Returns:
        int64 array of 256 bin counts
    """
    if frame.size == 0:
        return np.zeros(256, dtype=np.int64)
    values = frame[:, :, channel].ravel()
    return np.bincount(values, minlength=256)[:256].astype(np.int64)


def occupied_range(hist: np.ndarray) -> tuple[int, int]:
    """Smallest and largest occupied bins.

    An empty histogram yields (255, 0) so callers see ``lo >= hi`` and
    treat it like a flat image.
    """
    occupied = np.flatnonzero(hist)
    if occupied.size == 0:
        return 255, 0
    return int(occupied[0]), int(occupied[-1])
