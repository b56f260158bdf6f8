"""
Supersampled Histogram Accumulator

Fixed-shape numpy buffers holding, per cell, the visit count, the summed
RGB color of every visit and the sample count used for log-density
scaling. Buffers are (height, width) row-major like every other image array
in the package; the public API takes explicit (x, y) cell coordinates.

Buffers are only reallocated when the requested size changes. Otherwise
they are zeroed in place and reused between renders.
"""

import numpy as np


class Accumulator:
    """Histogram of chaos-game visits.

    Args:
        width: Grid width in cells (display width * supersample)
        height: Grid height in cells
    """

    def __init__(self, width=0, height=0):
        self.width = 0
        self.height = 0
        self.hits = None
        self.color_sum = None
        self.alpha_count = None
        self._allocate(width, height)

    def _allocate(self, width, height):
        if width < 0 or height < 0:
            raise ValueError(f"accumulator size must be non-negative: {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.hits = np.zeros((self.height, self.width), dtype=np.int64)
        self.color_sum = np.zeros((self.height, self.width, 3), dtype=np.float64)
        self.alpha_count = np.zeros((self.height, self.width), dtype=np.int64)

    @property
    def shape(self):
        """(height, width) of the grid."""
        return self.height, self.width

    def ensure_size(self, width, height):
        """Reallocate (zeroed) only if the size differs. Returns True if it did."""
        if (width, height) == (self.width, self.height):
            return False
        self._allocate(width, height)
        return True

    def clear(self):
        """Zero every cell without reallocating."""
        self.hits[:] = 0
        self.color_sum[:] = 0.0
        self.alpha_count[:] = 0

    def in_bounds(self, x, y):
        return 0 <= x < self.width and 0 <= y < self.height

    def deposit(self, x, y, color):
        """Record one visit at cell (x, y). Out-of-bounds visits are dropped.

        Returns:
            True if the cell was updated
        """
        if not self.in_bounds(x, y):
            return False
        self.hits[y, x] += 1
        self.color_sum[y, x] += color
        self.alpha_count[y, x] += 1
        return True

    def deposit_many(self, xs, ys, colors):
        """Record a batch of visits, in order.

        np.add.at is unbuffered, so repeated cells accumulate and the
        floating-point summation order matches one-by-one deposits.

        Args:
            xs, ys: Integer cell coordinates (sequences of equal length)
            colors: (N, 3) colors

        Returns:
            Number of visits recorded
        """
        if len(xs) == 0:
            return 0
        xs = np.asarray(xs, dtype=np.intp)
        ys = np.asarray(ys, dtype=np.intp)
        colors = np.asarray(colors, dtype=np.float64).reshape(-1, 3)
        keep = (xs >= 0) & (xs < self.width) & (ys >= 0) & (ys < self.height)
        if not keep.all():
            xs, ys, colors = xs[keep], ys[keep], colors[keep]
        np.add.at(self.hits, (ys, xs), 1)
        np.add.at(self.color_sum, (ys, xs), colors)
        np.add.at(self.alpha_count, (ys, xs), 1)
        return int(xs.size)

    def snapshot(self):
        """Copies of (hits, color_sum, alpha_count)."""
        return self.hits.copy(), self.color_sum.copy(), self.alpha_count.copy()

    @property
    def stats(self):
        """Return current histogram statistics."""
        touched = int((self.hits > 0).sum())
        total = self.width * self.height
        return {
            "size": f"{self.width}x{self.height}",
            "visits": int(self.hits.sum()),
            "touched": touched,
            "touched_pct": touched / total * 100 if total else 0.0,
            "max_hits": int(self.hits.max()) if total else 0,
        }
