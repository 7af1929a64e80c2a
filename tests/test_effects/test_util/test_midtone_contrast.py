"""Tests for util.midtone_contrast."""

import math

import numpy as np
import pytest

from effects.util.midtone_contrast import DEFAULT_FACTOR, apply, midtone_contrast
from errors import InvalidParameter
from frames import all_levels, make_grey

pytestmark = pytest.mark.smoke

KW = {"frame_index": 0, "seed": 0, "resolution": (256, 1)}


def test_default_factor():
    assert DEFAULT_FACTOR == 1.5


def test_known_values_at_default_factor():
    out = midtone_contrast(make_grey([64, 128, 192]), 1.5)
    # 32.25, 128.25, 224.25
    assert out[0, :, 0].tolist() == [32, 128, 224]


def test_extremes_saturate():
    out = midtone_contrast(make_grey([0, 20, 42, 235, 255]), 1.5)
    assert out[0, :, 0].tolist() == [0, 0, 0, 255, 255]


def test_factor_one_is_identity_within_one_lsb():
    frame = all_levels()
    out = midtone_contrast(frame.copy(), 1.0)
    diff = np.abs(out[:, :, :3].astype(int) - frame[:, :, :3].astype(int))
    assert diff.max() <= 1


def test_factor_below_one_flattens():
    out = midtone_contrast(make_grey([0, 255]), 0.5)
    # 63.75, 191.25
    assert out[0, :, 0].tolist() == [64, 191]


def test_monotonic():
    out = midtone_contrast(all_levels(), 2.0)[0, :, 0].astype(int)
    assert np.all(np.diff(out) >= 0)


def test_rgb_written_alpha_untouched():
    out = midtone_contrast(make_grey([30, 220], alpha=12), 1.5)
    np.testing.assert_array_equal(out[:, :, 0], out[:, :, 2])
    assert out[0, :, 3].tolist() == [12, 12]


@pytest.mark.parametrize("factor", [0, -1.5, math.nan, math.inf, "abc", None])
def test_invalid_factor_rejected(factor):
    with pytest.raises(InvalidParameter):
        midtone_contrast(make_grey([1, 2]), factor)


def test_invalid_factor_leaves_frame_untouched():
    frame = make_grey([1, 2])
    before = frame.copy()
    with pytest.raises(InvalidParameter):
        midtone_contrast(frame, 0)
    np.testing.assert_array_equal(frame, before)


def test_apply_reads_factor_param():
    frame = make_grey([64, 192])
    out, _ = apply(frame, {"factor": 1.5}, None, **KW)
    assert out[0, :, 0].tolist() == [32, 224]
    assert frame[0, :, 0].tolist() == [64, 192]


def test_apply_default_factor():
    out, _ = apply(make_grey([64]), {}, None, **KW)
    assert out[0, 0, 0] == 32
