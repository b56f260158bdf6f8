"""
Render Orchestrator

Owns the current flame, the accumulator and one background worker thread.
Render requests are non-blocking: each one gets a fresh epoch, cancels
whatever is in flight and lands in a one-slot mailbox. The worker always
picks up the newest request, so a burst of slider drags collapses into a
single render. A result is only published if its epoch is still the
latest one when it finishes.

    orchestrator = RenderOrchestrator(on_complete=show)
    orchestrator.bootstrap(seed=42)          # blocking, rejects empty flames
    epoch = orchestrator.submit_render(RenderRequest(False, 100_000, 1, 2.2))
    result = orchestrator.wait(epoch)

A request with recalculate=False only re-runs the tone mapper over the
existing accumulator. If the accumulator does not hold a completed pass of
the current flame (never rendered, cancelled, resized, reseeded or
reweighted) the request is promoted to a full recalculation.
"""

import enum
import math
import random
import threading
import time
from dataclasses import dataclass, replace

import numpy as np

from .accumulator import Accumulator
from .engine import CancelToken, ChaosGame
from .flame import Flame, derive_seed, generate_flame
from .presets import RENDER_DEFAULTS
from .tone import gamma_exponent, tone_map
from .variations import VARIATION_LABELS


class InvalidRequestError(ValueError):
    """Raised when a render request or orchestrator setting is out of range."""


class DegenerateFlameError(RuntimeError):
    """Raised when bootstrap cannot find a flame that paints enough pixels."""


class RenderState(enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderRequest:
    """Parameters of one render job.

    `epoch` is assigned by the orchestrator on submission.
    """

    recalculate: bool = True
    iterations: int = RENDER_DEFAULTS["iterations"]
    zoom: int = RENDER_DEFAULTS["zoom"]
    gamma: float = RENDER_DEFAULTS["gamma"]
    epoch: int = 0

    def __post_init__(self):
        if isinstance(self.iterations, bool) or not isinstance(self.iterations, int):
            raise InvalidRequestError(f"iterations must be an int, got {self.iterations!r}")
        if self.iterations < 0:
            raise InvalidRequestError(f"iterations must be >= 0, got {self.iterations}")
        if isinstance(self.zoom, bool) or not isinstance(self.zoom, int) or self.zoom < 1:
            raise InvalidRequestError(f"zoom must be an int >= 1, got {self.zoom!r}")
        try:
            gamma = float(self.gamma)
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(f"gamma must be a number, got {self.gamma!r}") from e
        if not math.isfinite(gamma) or gamma <= 0:
            raise InvalidRequestError(f"gamma must be finite and > 0, got {self.gamma}")


@dataclass(frozen=True)
class RenderResult:
    """Published image of one completed epoch."""

    pixel_buffer: np.ndarray      # (H, W, 3) uint8
    pixels_painted: int
    epoch: int
    zoom: int = 1
    gamma: float = RENDER_DEFAULTS["gamma"]
    elapsed: float = 0.0


class _RenderWorker(threading.Thread):
    """Background thread that executes render jobs from the mailbox."""

    def __init__(self, orchestrator):
        super().__init__(daemon=True, name="chaos-flame-render")
        self.orchestrator = orchestrator
        self._running = True

    def run(self):
        orch = self.orchestrator
        while True:
            with orch._cond:
                orch._cond.wait_for(lambda: orch._pending is not None or not self._running)
                if not self._running:
                    return
                job = orch._pending
                orch._pending = None
                orch._active = job
                orch._state = RenderState.RUNNING
                flame = orch._flame.copy()
                version = orch._flame_version

            request, token = job
            result = None
            failed = False
            try:
                result = orch._execute(request, token, flame, version)
            except Exception as e:
                print(f"[RENDER] Render failed (epoch {request.epoch}): {e}")
                failed = True

            published = orch._settle(request, token, result, failed)
            if published and orch.on_complete is not None:
                try:
                    orch.on_complete(result)
                except Exception as e:
                    print(f"[RENDER] on_complete callback error: {e}")

    def stop(self):
        self._running = False


class RenderOrchestrator:
    """Coordinates flame, engine, accumulator and tone mapper.

    Keyword arguments default to RENDER_DEFAULTS. `iterations`, `zoom` and
    `gamma` are the settings used by bootstrap() and by make_request() for
    anything a caller leaves out.

    Callbacks run on the worker thread:
        on_progress(fraction, message)
        on_complete(RenderResult)
        on_bootstrap_done() runs on the bootstrapping thread
    """

    def __init__(self, flame=None, on_progress=None, on_complete=None,
                 on_bootstrap_done=None, **settings):
        unknown = set(settings) - set(RENDER_DEFAULTS)
        if unknown:
            raise TypeError(f"unknown settings: {sorted(unknown)}")
        cfg = {**RENDER_DEFAULTS, **settings}

        self.display_width = int(cfg["display_width"])
        self.display_height = int(cfg["display_height"])
        self.supersample = int(cfg["supersample"])
        if self.display_width < 1 or self.display_height < 1:
            raise InvalidRequestError(
                f"display size must be positive: {self.display_width}x{self.display_height}")
        if self.supersample < 1:
            raise InvalidRequestError(f"supersample must be >= 1, got {self.supersample}")
        try:
            gamma_exponent(1.0, cfg["gamma_convention"])
            self.engine = ChaosGame(cfg["zoom_range"], cfg["warmup_iterations"],
                                    cfg["check_interval"])
        except ValueError as e:
            raise InvalidRequestError(str(e)) from e
        self.gamma_convention = cfg["gamma_convention"]
        self.zoom_range = self.engine.zoom_range
        self.min_painted_pixels = int(cfg["min_painted_pixels"])
        self.max_bootstrap_attempts = int(cfg["max_bootstrap_attempts"])
        self.defaults = {
            "iterations": cfg["iterations"],
            "zoom": cfg["zoom"],
            "gamma": cfg["gamma"],
        }

        self.on_progress = on_progress
        self.on_complete = on_complete
        self.on_bootstrap_done = on_bootstrap_done

        self.accumulator = Accumulator()
        self._accumulated = None   # (flame version, zoom, iterations) of the last completed pass

        self._cond = threading.Condition()
        self._flame = flame
        self._flame_version = 0
        self._epoch = 0
        self._settled_epoch = 0
        self._pending = None                # (RenderRequest, CancelToken)
        self._active = None
        self._latest_result = None
        self._state = RenderState.IDLE

        self._worker = _RenderWorker(self)
        self._worker.start()

    # ── Flame management ─────────────────────────────────────────────

    @property
    def flame(self):
        return self._flame

    def set_flame(self, flame):
        """Install a flame, cancelling any render of the previous one."""
        if not isinstance(flame, Flame):
            raise TypeError(f"expected a Flame, got {type(flame).__name__}")
        with self._cond:
            self._supersede_locked()
            self._flame = flame
            self._flame_version += 1
        print(f"[INIT] Flame installed: {flame!r}")

    def reinitialize(self, seed=None, final_transform=False):
        """Replace the flame with a freshly generated one.

        Returns:
            The seed the new flame was generated from
        """
        if seed is None:
            seed = random.getrandbits(63)
        print(f"[INIT] Generating flame from seed {seed}")
        self.set_flame(generate_flame(seed, final_transform=final_transform))
        return seed

    def set_variation_weight(self, index, value):
        """Edit one shared variation weight. Follow up with a recalculating render."""
        with self._cond:
            if self._flame is None:
                raise RuntimeError("no flame installed")
            self._flame.set_weight(index, value)
            self._flame_version += 1

    def get_variation_labels(self):
        return list(VARIATION_LABELS)

    # ── Rendering ────────────────────────────────────────────────────

    def make_request(self, recalculate=True, **overrides):
        """Build a RenderRequest from the current settings plus overrides."""
        return RenderRequest(recalculate=recalculate, **{**self.defaults, **overrides})

    def submit_render(self, request=None, **overrides):
        """Queue a render and return its epoch. Never blocks on rendering.

        Cancels whatever job is running and replaces any queued one.
        """
        if request is None:
            request = self.make_request(**overrides)
        lo, hi = self.zoom_range
        if not lo <= request.zoom <= hi:
            raise InvalidRequestError(
                f"zoom {request.zoom} outside configured range {self.zoom_range}")
        with self._cond:
            if self._flame is None:
                raise RuntimeError("no flame installed; call bootstrap() or reinitialize() first")
            self._epoch += 1
            request = replace(request, epoch=self._epoch)
            self._supersede_locked(replacing=True)
            self._pending = (request, CancelToken())
            self._cond.notify_all()
            return self._epoch

    def cancel(self):
        """Cancel the running job and drop the queued one."""
        with self._cond:
            self._supersede_locked()

    def wait(self, epoch, timeout=None):
        """Block until `epoch` has settled.

        Returns:
            Its RenderResult, or None if it was cancelled, failed, superseded
            before being read, or the timeout expired.
        """
        with self._cond:
            settled = self._cond.wait_for(lambda: self._settled_epoch >= epoch, timeout)
            result = self._latest_result
        if settled and result is not None and result.epoch == epoch:
            return result
        return None

    def bootstrap(self, seed=None, flame=None, final_transform=False, timeout=None):
        """Find a flame that paints at least `min_painted_pixels` pixels.

        Renders `flame` (or a flame generated from `seed`) with the current
        settings and blocks until done. A degenerate flame is replaced by one
        generated from derive_seed(seed) and the render repeats.

        Returns:
            The accepted RenderResult

        Raises:
            DegenerateFlameError: after max_bootstrap_attempts rejections
        """
        if flame is not None:
            seed = flame.seed
            self.set_flame(flame)
        else:
            if seed is None:
                seed = random.getrandbits(63)
            self.reinitialize(seed, final_transform)

        for attempt in range(1, self.max_bootstrap_attempts + 1):
            epoch = self.submit_render(self.make_request(recalculate=True))
            result = self.wait(epoch, timeout)
            if result is not None and result.pixels_painted >= self.min_painted_pixels:
                print(f"[INIT] Flame accepted after {attempt} attempt(s), "
                      f"{result.pixels_painted} pixels painted")
                if self.on_bootstrap_done is not None:
                    self.on_bootstrap_done()
                return result
            painted = result.pixels_painted if result is not None else 0
            seed = derive_seed(seed)
            print(f"[INIT] Degenerate flame ({painted} pixels painted), retrying")
            if attempt < self.max_bootstrap_attempts:
                self.reinitialize(seed, final_transform)

        raise DegenerateFlameError(
            f"no flame painted {self.min_painted_pixels} pixels "
            f"in {self.max_bootstrap_attempts} attempts")

    # ── State ────────────────────────────────────────────────────────

    @property
    def state(self):
        with self._cond:
            return self._state

    @property
    def latest_result(self):
        with self._cond:
            return self._latest_result

    @property
    def epoch(self):
        with self._cond:
            return self._epoch

    def close(self, timeout=5.0):
        """Stop the worker thread."""
        with self._cond:
            self._supersede_locked()
            self._worker.stop()
            self._cond.notify_all()
        self._worker.join(timeout)

    stop = close

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    # ── Worker side ──────────────────────────────────────────────────

    def _supersede_locked(self, replacing=False):
        if self._active is not None:
            self._active[1].cancel()
        if self._pending is not None:
            self._pending[1].cancel()
            self._settled_epoch = max(self._settled_epoch, self._pending[0].epoch)
            self._pending = None
            # A replacement job is about to be queued; leave the state to it
            if self._active is None and not replacing:
                self._state = RenderState.CANCELLED
            self._cond.notify_all()

    def _report(self, fraction, message):
        if self.on_progress is not None:
            self.on_progress(fraction, message)

    def _execute(self, request, token, flame, version):
        """Run one job on the worker thread. Returns a RenderResult or None."""
        started = time.perf_counter()
        print(f"[RENDER] Beginning render (epoch {request.epoch})...")

        if self.accumulator.ensure_size(self.display_width * self.supersample,
                                        self.display_height * self.supersample):
            self._accumulated = None

        # A tone-only pass is only valid over a histogram of the same flame and geometry
        wanted = (version, request.zoom, request.iterations)
        recalculate = request.recalculate or self._accumulated != wanted
        if recalculate:
            if not request.recalculate:
                print("[RENDER] No matching completed pass to tone map, recalculating")
            self._accumulated = None
            self.accumulator.clear()

            def progress(done, total):
                elapsed = time.perf_counter() - started
                remaining = elapsed / done * (total - done)
                self._report(done / total,
                             f"{done}/{total} iterations, ~{remaining:.1f}s remaining")

            self.engine.run(flame, self.accumulator, request.iterations, request.zoom,
                            cancel_token=token, progress=progress)
            if token.cancelled:
                print(f"[RENDER] Interrupted (epoch {request.epoch})")
                return None
            self._accumulated = wanted

        rendered = tone_map(self.accumulator, request.gamma, self.supersample,
                            convention=self.gamma_convention, cancel_token=token)
        if rendered is None:
            print(f"[RENDER] Interrupted (epoch {request.epoch})")
            return None
        pixels, painted = rendered

        elapsed = time.perf_counter() - started
        message = f"Painted {painted} pixels at zoom level {request.zoom}"
        print(f"[RENDER] {message}")
        print(f"[RENDER] Done in {elapsed:.2f}s (epoch {request.epoch})")
        self._report(1.0, message)
        return RenderResult(pixels, painted, request.epoch,
                            zoom=request.zoom, gamma=request.gamma, elapsed=elapsed)

    def _settle(self, request, token, result, failed):
        """Publish or discard a finished job. Returns True if published."""
        with self._cond:
            self._active = None
            published = (result is not None and not token.cancelled
                         and request.epoch == self._epoch)
            if published:
                self._latest_result = result
                self._state = RenderState.COMPLETED
            elif failed:
                self._state = RenderState.FAILED
            else:
                self._state = RenderState.CANCELLED
            self._settled_epoch = max(self._settled_epoch, request.epoch)
            self._cond.notify_all()
        return published
