"""
Chaos Game Engine

Runs the iterate-and-accumulate loop that approximates a flame's
attractor:

    pick a function uniformly
    p = post_affine(blend(pre_affine(p)))      blend = weighted variations
    col = (col + function color) / 2
    deposit p into the accumulator if it lies inside [-zoom, zoom]^2

The random stream is seeded from the flame seed plus a fixed offset, so an
uninterrupted run with the same flame, iteration count and zoom always
produces a bit-identical accumulator. The first draws of the stream give
the starting point and color; a short warm-up then burns the walk into the
attractor before anything is recorded.

Cancellation is cooperative: the loop runs in chunks of `check_interval`
iterations and polls the CancelToken between chunks. Visits are buffered
per chunk and deposited in order with a single numpy call.
"""

import math
import random
import threading

from .variations import derived_params


CHAOS_STREAM_OFFSET = 1013904223   # flame seed offset for the chaos-game stream
WARMUP_ITERATIONS = 20
CHECK_INTERVAL = 1024
ZOOM_RANGE = (1, 10)


class CancelToken:
    """One-way cancellation flag shared between a job and its owner."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self):
        self._event.set()

    @property
    def cancelled(self):
        return self._event.is_set()


def real_zoom(zoom, zoom_range=ZOOM_RANGE):
    """Convert a zoom setting to the half-width of the visible window.

    The range is inverted so that the lowest setting shows the widest
    window: with the default range, zoom=1 views [-10, 10]^2 and zoom=10
    views [-1, 1]^2.
    """
    lo, hi = zoom_range
    if not lo <= zoom <= hi:
        raise ValueError(f"zoom {zoom} outside configured range {zoom_range}")
    return lo + hi - zoom


class ChaosGame:
    """Chaos-game iterator for one flame at a time.

    Args:
        zoom_range: (min, max) zoom settings; see real_zoom
        warmup_iterations: Iterations run before recording anything
        check_interval: Iterations between cancellation checks and
            progress reports
    """

    def __init__(self, zoom_range=ZOOM_RANGE, warmup_iterations=WARMUP_ITERATIONS,
                 check_interval=CHECK_INTERVAL):
        lo, hi = zoom_range
        if lo < 1 or hi < lo:
            raise ValueError(f"invalid zoom range: {zoom_range}")
        if warmup_iterations < 0:
            raise ValueError("warmup_iterations must be >= 0")
        if check_interval < 1:
            raise ValueError("check_interval must be >= 1")
        self.zoom_range = (lo, hi)
        self.warmup_iterations = warmup_iterations
        self.check_interval = check_interval

    def real_zoom(self, zoom):
        return real_zoom(zoom, self.zoom_range)

    def run(self, flame, accumulator, iterations, zoom, cancel_token=None,
            progress=None):
        """Accumulate `iterations` chaos-game steps of `flame`.

        The accumulator is not cleared here; the caller decides.

        Args:
            flame: Flame to iterate (read only)
            accumulator: Accumulator receiving the visits
            iterations: Number of recorded iterations (after warm-up)
            zoom: Zoom setting, converted with real_zoom
            cancel_token: Optional CancelToken polled every check_interval
            progress: Optional callback(done, total) after every chunk

        Returns:
            Number of iterations completed (< iterations if cancelled)
        """
        if iterations < 0:
            raise ValueError(f"iterations must be >= 0, got {iterations}")
        extent = float(self.real_zoom(zoom))

        rng = random.Random(flame.seed + CHAOS_STREAM_OFFSET)
        rand = rng.random
        isfinite = math.isfinite

        functions = [(fn.coefficients, fn.post_coefficients, fn.color)
                     for fn in flame.functions]
        n_functions = len(functions)
        final = flame.final_function
        if final is not None:
            final = (final.coefficients, final.post_coefficients, final.color)
        active = [(v.function, v.params, w) for v, w in flame.active_variations()]

        width, height = accumulator.width, accumulator.height
        scale_x = width / (2.0 * extent)
        scale_y = height / (2.0 * extent)
        half_w = width / 2.0
        half_h = height / 2.0

        def transform(fn, x, y):
            c, post, _ = fn
            px = c[0] * x + c[1] * y + c[2]
            py = c[3] * x + c[4] * y + c[5]
            if active:
                r, theta, phi = derived_params(px, py)
                tx = ty = 0.0
                for func, params, weight in active:
                    try:
                        vx, vy = func(px, py, c, r, theta, phi, rng, params)
                    except (ArithmeticError, ValueError):
                        continue
                    if isfinite(vx) and isfinite(vy):
                        tx += weight * vx
                        ty += weight * vy
                px, py = tx, ty
            return (post[0] * px + post[1] * py + post[2],
                    post[3] * px + post[4] * py + post[5])

        state = [rand(), rand(), rand(), rand(), rand()]   # x, y, r, g, b

        def iterate(count, sink):
            x, y, cr, cg, cb = state
            for _ in range(count):
                fn = functions[int(rand() * n_functions)]
                x, y = transform(fn, x, y)
                color = fn[2]
                cr = (cr + color[0]) / 2.0
                cg = (cg + color[1]) / 2.0
                cb = (cb + color[2]) / 2.0
                if final is not None:
                    x, y = transform(final, x, y)
                    color = final[2]
                    cr = (cr + color[0]) / 2.0
                    cg = (cg + color[1]) / 2.0
                    cb = (cb + color[2]) / 2.0

                if not (isfinite(x) and isfinite(y)):
                    # Escaped to inf/NaN: restart the walk, record nothing
                    x, y = rand(), rand()
                    continue
                if sink is None:
                    continue
                if -extent <= x <= extent and -extent <= y <= extent:
                    ix = int(x * scale_x + half_w)
                    iy = int(y * scale_y + half_h)
                    if ix < width and iy < height:
                        sink[0].append(ix)
                        sink[1].append(iy)
                        sink[2].append((cr, cg, cb))
            state[:] = [x, y, cr, cg, cb]

        iterate(self.warmup_iterations, None)

        done = 0
        while done < iterations:
            if cancel_token is not None and cancel_token.cancelled:
                break
            chunk = min(self.check_interval, iterations - done)
            sink = ([], [], [])
            iterate(chunk, sink)
            accumulator.deposit_many(*sink)
            done += chunk
            if progress is not None:
                progress(done, iterations)
        return done
