"""
Log-Density Tone Mapper

Turns a supersampled Accumulator into the final RGB image:

    alpha   = ln(count) / count                  per touched cell
    channel = min((alpha * color_sum) ** exponent, 1)
    pixel   = mean of channel over the touched cells of its S x S block

A display pixel with no touched cell stays black and is not counted as
painted. The number of painted pixels is returned with the image; the
orchestrator uses it to reject empty attractors.

Two gamma conventions are supported:
    "power"    exponent = gamma      (reference GUI, default gamma 4.0)
    "inverse"  exponent = 1 / gamma  (classic flam3 style)

Work is done in bands of display rows so a cancellation request is seen
between bands.
"""

import math

import numpy as np


GAMMA_CONVENTIONS = ("power", "inverse")
BAND_ROWS = 32


def gamma_exponent(gamma, convention="power"):
    if not math.isfinite(gamma) or gamma <= 0:
        raise ValueError(f"gamma must be finite and > 0, got {gamma}")
    if convention == "power":
        return float(gamma)
    if convention == "inverse":
        return 1.0 / gamma
    raise ValueError(f"unknown gamma convention {convention!r}, "
                     f"expected one of {GAMMA_CONVENTIONS}")


def cell_intensity(counts, color_sum, exponent):
    """Per-cell channel values before box filtering.

    Args:
        counts: (...) sample counts (alpha_count)
        color_sum: (..., 3) summed colors
        exponent: Gamma exponent from gamma_exponent()

    Returns:
        (..., 3) float64 in [0, 1]; untouched cells are 0
    """
    touched = counts > 0
    counts = counts.astype(np.float64)
    alpha = np.zeros_like(counts)
    np.divide(np.log(counts, where=touched, out=np.zeros_like(counts)),
              counts, where=touched, out=alpha)
    value = np.power(alpha[..., None] * color_sum, exponent)
    np.minimum(value, 1.0, out=value)
    value[~touched] = 0.0
    return value


def tone_map(accumulator, gamma, supersample, convention="power",
             cancel_token=None, band_rows=BAND_ROWS):
    """Render an accumulator to an 8-bit RGB image.

    Args:
        accumulator: Accumulator whose size is a multiple of supersample
        gamma: Gamma value (> 0)
        supersample: Supersampling factor S
        convention: "power" or "inverse"
        cancel_token: Optional CancelToken polled between row bands
        band_rows: Display rows per band

    Returns:
        (pixels, painted): (H, W, 3) uint8 array and number of painted
        pixels, or None if cancelled.
    """
    exponent = gamma_exponent(gamma, convention)
    s = int(supersample)
    if s < 1:
        raise ValueError(f"supersample must be >= 1, got {supersample}")
    if accumulator.width % s or accumulator.height % s:
        raise ValueError(
            f"accumulator {accumulator.width}x{accumulator.height} "
            f"is not a multiple of supersample {s}")

    out_h = accumulator.height // s
    out_w = accumulator.width // s
    pixels = np.zeros((out_h, out_w, 3), dtype=np.uint8)
    painted = 0

    for row0 in range(0, out_h, band_rows):
        if cancel_token is not None and cancel_token.cancelled:
            return None
        row1 = min(row0 + band_rows, out_h)
        rows = slice(row0 * s, row1 * s)
        band_h = row1 - row0

        value = cell_intensity(accumulator.alpha_count[rows],
                               accumulator.color_sum[rows], exponent)

        # Box filter: sum each S x S block, divide by its touched cells
        sums = value.reshape(band_h, s, out_w, s, 3).sum(axis=(1, 3))
        touched = (accumulator.hits[rows] > 0).reshape(band_h, s, out_w, s).sum(axis=(1, 3))
        lit = touched > 0
        mean = np.zeros_like(sums)
        np.divide(sums, touched[..., None], where=lit[..., None], out=mean)

        band = pixels[row0:row1]
        band[lit] = (np.clip(mean[lit], 0.0, 1.0) * 255.0 + 0.5).astype(np.uint8)
        painted += int(lit.sum())

    return pixels, painted
