#!/usr/bin/env python3
"""
Tests for the log-density tone mapper.

Verifies:
1. Empty accumulator renders black
2. Per-cell formula and supersample averaging
3. Brightness grows with hit count
4. Gamma conventions, validation and cancellation
"""

import math

import numpy as np
import pytest

from chaos_flame.accumulator import Accumulator
from chaos_flame.engine import CancelToken
from chaos_flame.tone import gamma_exponent, tone_map


def _expected(n, color, exponent):
    """Channel value of a cell visited n times with the same color."""
    alpha = math.log(n) / n
    return min((alpha * color * n) ** exponent, 1.0)


def _fill(acc, x, y, n, color):
    for _ in range(n):
        acc.deposit(x, y, color)


def test_empty_is_black():
    print("Testing empty accumulator...")
    pixels, painted = tone_map(Accumulator(12, 9), 4.0, 3)
    assert pixels.shape == (3, 4, 3) and pixels.dtype == np.uint8
    assert painted == 0 and not pixels.any()
    print("  ✓ Black image, nothing painted")


def test_single_cell_formula():
    print("Testing per-cell formula...")
    acc = Accumulator(4, 4)
    _fill(acc, 1, 2, 5, (0.2, 0.4, 0.6))
    exponent = gamma_exponent(2.2, "inverse")
    pixels, painted = tone_map(acc, 2.2, 1, convention="inverse")
    assert painted == 1
    for ch, color in enumerate((0.2, 0.4, 0.6)):
        want = int(_expected(5, color, exponent) * 255 + 0.5)
        assert abs(int(pixels[2, 1, ch]) - want) <= 1, f"channel {ch}: {pixels[2, 1, ch]} != {want}"
    print("  ✓ min((ln(n)/n * sum) ** exponent, 1) per channel")


def test_supersample_averages_touched_cells():
    print("Testing box filter...")
    acc = Accumulator(4, 4)
    # Block (0, 0): two touched cells; block (1, 1): one touched cell
    _fill(acc, 0, 0, 3, (0.5, 0.5, 0.5))
    _fill(acc, 1, 1, 8, (0.5, 0.5, 0.5))
    _fill(acc, 3, 3, 3, (0.5, 0.5, 0.5))
    exponent = gamma_exponent(2.0, "inverse")
    pixels, painted = tone_map(acc, 2.0, 2, convention="inverse")

    assert pixels.shape == (2, 2, 3)
    assert painted == 2
    mean = (_expected(3, 0.5, exponent) + _expected(8, 0.5, exponent)) / 2
    assert abs(int(pixels[0, 0, 0]) - int(mean * 255 + 0.5)) <= 1
    assert abs(int(pixels[1, 1, 0]) - int(_expected(3, 0.5, exponent) * 255 + 0.5)) <= 1
    assert not pixels[0, 1].any() and not pixels[1, 0].any()
    print("  ✓ Mean over touched cells of each S x S block")


def test_brightness_monotonic_in_hits():
    print("Testing monotonicity...")
    acc = Accumulator(20, 1)
    for n in range(2, 21):
        _fill(acc, n - 1, 0, n, (0.1, 0.1, 0.1))
    pixels, painted = tone_map(acc, 2.2, 1, convention="inverse")
    row = pixels[0, 1:, 0].astype(int)
    assert painted == 19
    assert all(b >= a for a, b in zip(row, row[1:])), f"Not monotonic: {row}"
    assert row[-1] > row[0]
    print("  ✓ More hits never render darker")


def test_gamma_conventions():
    print("Testing gamma conventions...")
    assert gamma_exponent(4.0) == 4.0
    assert gamma_exponent(4.0, "power") == 4.0
    assert gamma_exponent(4.0, "inverse") == 0.25
    for bad in (0.0, -1.0, math.inf, math.nan):
        with pytest.raises(ValueError):
            gamma_exponent(bad)
    with pytest.raises(ValueError):
        gamma_exponent(2.0, "sideways")

    acc = Accumulator(2, 1)
    _fill(acc, 0, 0, 4, (0.3, 0.3, 0.3))
    power, _ = tone_map(acc, 2.0, 1, convention="power")
    inverse, _ = tone_map(acc, 2.0, 1, convention="inverse")
    # ln(4) * 0.3 < 1, so squaring darkens and square-rooting brightens
    assert power[0, 0, 0] < inverse[0, 0, 0]
    print("  ✓ power and inverse behave as documented")


def test_bands_and_validation():
    print("Testing bands, cancellation and size checks...")
    rng = np.random.default_rng(1)
    acc = Accumulator(30, 60)
    acc.deposit_many(rng.integers(0, 30, 4000).tolist(), rng.integers(0, 60, 4000).tolist(),
                     rng.random((4000, 3)).tolist())
    one, painted_one = tone_map(acc, 4.0, 3, band_rows=1)
    many, painted_many = tone_map(acc, 4.0, 3, band_rows=32)
    assert np.array_equal(one, many) and painted_one == painted_many

    token = CancelToken()
    token.cancel()
    assert tone_map(acc, 4.0, 3, cancel_token=token) is None

    with pytest.raises(ValueError):
        tone_map(Accumulator(10, 9), 4.0, 3)
    with pytest.raises(ValueError):
        tone_map(acc, 4.0, 0)
    print("  ✓ Band size does not change the image")


if __name__ == "__main__":
    print("\n=== Testing Tone Mapper ===\n")

    test_empty_is_black()
    test_single_cell_formula()
    test_supersample_averages_touched_cells()
    test_brightness_monotonic_in_hits()
    test_gamma_conventions()
    test_bands_and_validation()

    print("\n✓ All tests passed!\n")
