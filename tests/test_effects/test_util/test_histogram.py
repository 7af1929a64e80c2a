"""Tests for histogram utility."""

import numpy as np
import pytest

from effects.util.histogram import compute_histogram, occupied_range
from frames import make_grey

pytestmark = pytest.mark.smoke


def test_256_bins():
    hist = compute_histogram(make_grey([0, 10, 255]))
    assert hist.shape == (256,)


def test_sum_equals_pixel_count():
    frame = np.zeros((30, 40, 4), dtype=np.uint8)
    assert compute_histogram(frame).sum() == 30 * 40


def test_counts_channel_zero_by_default():
    frame = np.zeros((20, 20, 4), dtype=np.uint8)
    frame[:, :, 0] = 100
    frame[:, :, 1] = 7
    hist = compute_histogram(frame)
    assert hist[100] == 400
    assert hist[7] == 0


def test_other_channel():
    frame = np.zeros((20, 20, 4), dtype=np.uint8)
    frame[:, :, 1] = 7
    assert compute_histogram(frame, channel=1)[7] == 400


def test_empty_frame_all_zero():
    frame = np.zeros((0, 0, 4), dtype=np.uint8)
    hist = compute_histogram(frame)
    assert hist.shape == (256,)
    assert hist.sum() == 0


def test_occupied_range():
    hist = compute_histogram(make_grey([40, 41, 200, 90]))
    assert occupied_range(hist) == (40, 200)


def test_occupied_range_single_value():
    hist = compute_histogram(make_grey([128, 128]))
    assert occupied_range(hist) == (128, 128)


def test_occupied_range_empty_is_degenerate():
    lo, hi = occupied_range(np.zeros(256, dtype=np.int64))
    assert lo >= hi
