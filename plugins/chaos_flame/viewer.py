"""
Interactive Pygame Viewer for Fractal Flames

Shows the latest published render of a RenderOrchestrator and drives it
from a side panel. Rendering happens on the orchestrator's worker thread;
this loop only submits requests and blits results, so the window stays
responsive during long renders.

Controls:
  D / ENTER   Redraw (full recalculation)
  R           Reseed (new random flame)
  1-5         Select preset
  UP / DOWN   Zoom in / out
  LEFT/RIGHT  Select variation
  TAB         Toggle control panel
  H           Toggle HUD overlay
  Q / ESC     Quit
"""

import random
import threading

import numpy as np
import pygame

from .controls import ControlPanel, THEME
from .orchestrator import DegenerateFlameError, RenderOrchestrator
from .presets import FLAME_PRESETS, PRESET_ORDER, RENDER_DEFAULTS, build_preset_flame, get_preset


PANEL_WIDTH = 280
PANEL_MIN_HEIGHT = 560
ITERATION_RANGE = (1e4, 1e10)
GAMMA_RANGE = (0.1, 10.0)


def _format_iterations(value):
    value = int(value)
    for unit, scale in (("G", 10 ** 9), ("M", 10 ** 6), ("k", 10 ** 3)):
        if value >= scale:
            return f"{value / scale:.1f}{unit}"
    return str(value)


class Viewer:
    def __init__(self, width=RENDER_DEFAULTS["display_width"],
                 height=RENDER_DEFAULTS["display_height"],
                 supersample=RENDER_DEFAULTS["supersample"],
                 start_preset="random", seed=None):
        self.canvas_w = width
        self.canvas_h = height
        self.panel_visible = True
        self.show_hud = True
        self.running = True

        self.preset_key = start_preset
        self.seed = seed if seed is not None else random.getrandbits(63)
        preset = get_preset(start_preset)
        self.settings = {
            "iterations": RENDER_DEFAULTS["iterations"],
            "zoom": preset["zoom"],
            "gamma": RENDER_DEFAULTS["gamma"],
        }
        self.selected_variation = 0

        self.orchestrator = RenderOrchestrator(
            display_width=width, display_height=height, supersample=supersample,
            on_progress=self._on_progress, on_complete=self._on_complete,
            **self.settings)

        # Written by the worker thread, read by the UI loop
        self._lock = threading.Lock()
        self._progress = (0.0, "Idle")
        self._new_result = None
        self._bootstrapping = False

        self._request = None        # "recalculate" | "tone" | None, flushed once per frame
        self._frame = None          # pygame.Surface of the latest result
        self._result = None

        self.panel = None
        self.sliders = {}
        self.preset_buttons = None
        self.variation_picker = None
        self.progress_bar = None

    @property
    def total_w(self):
        return self.canvas_w + (PANEL_WIDTH if self.panel_visible else 0)

    @property
    def total_h(self):
        return max(self.canvas_h, PANEL_MIN_HEIGHT) if self.panel_visible else self.canvas_h

    # ── Orchestrator callbacks (worker thread) ───────────────────────

    def _on_progress(self, fraction, message):
        with self._lock:
            self._progress = (fraction, message)

    def _on_complete(self, result):
        with self._lock:
            self._new_result = result

    # ── Flame selection ──────────────────────────────────────────────

    def _start_bootstrap(self, flame):
        """Bootstrap `flame` on a helper thread so the window keeps drawing."""
        if self._bootstrapping:
            return
        self._bootstrapping = True
        self._request = None
        with self._lock:
            self._progress = (0.0, f"Searching for a flame (seed {flame.seed})")
        self.orchestrator.defaults.update(self.settings)

        def work():
            try:
                result = self.orchestrator.bootstrap(flame=flame)
                self.seed = self.orchestrator.flame.seed
                print(f"[INIT] Viewer ready: {result.pixels_painted} pixels painted")
            except DegenerateFlameError as e:
                print(f"[INIT] {e}")
                with self._lock:
                    self._progress = (0.0, "No usable flame found, press R")
            finally:
                self._bootstrapping = False

        threading.Thread(target=work, daemon=True, name="chaos-flame-bootstrap").start()

    def _apply_preset(self, key):
        self.preset_key = key
        preset = get_preset(key)
        self.settings["zoom"] = preset["zoom"]
        if "zoom" in self.sliders:
            self.sliders["zoom"].set_value(preset["zoom"])
        self._start_bootstrap(build_preset_flame(key, self.seed))

    def _on_reseed(self):
        self.seed = random.getrandbits(63)
        if get_preset(self.preset_key).get("generator") != "random":
            self.preset_key = "random"
            if self.preset_buttons:
                self.preset_buttons.select(PRESET_ORDER.index("random"))
        self._start_bootstrap(build_preset_flame(self.preset_key, self.seed))

    def _on_preset_select(self, idx, name):
        if idx < len(PRESET_ORDER):
            self._apply_preset(PRESET_ORDER[idx])

    # ── Panel ────────────────────────────────────────────────────────

    def _build_panel(self):
        panel = ControlPanel(self.canvas_w, 0, PANEL_WIDTH, self.total_h)
        self.sliders = {}

        panel.add_section("PRESETS")
        names = [FLAME_PRESETS[k]["name"] for k in PRESET_ORDER]
        self.preset_buttons = panel.add_button_row(
            names, selected=PRESET_ORDER.index(self.preset_key),
            on_select=self._on_preset_select)

        panel.add_section("RENDER")
        self.sliders["iterations"] = panel.add_slider(
            "Iterations", ITERATION_RANGE[0], ITERATION_RANGE[1], self.settings["iterations"],
            log_scale=True, formatter=_format_iterations,
            on_change=lambda v: self._set_setting("iterations", int(v), "recalculate"))
        lo, hi = self.orchestrator.zoom_range
        self.sliders["zoom"] = panel.add_slider(
            "Zoom", lo, hi, self.settings["zoom"], fmt=".0f", step=1,
            on_change=lambda v: self._set_setting("zoom", int(v), "recalculate"))
        self.sliders["gamma"] = panel.add_slider(
            "Gamma", GAMMA_RANGE[0], GAMMA_RANGE[1], self.settings["gamma"], fmt=".2f",
            on_change=lambda v: self._set_setting("gamma", float(v), "tone"))

        panel.add_section("VARIATIONS")
        self.variation_picker = panel.add_stepper(
            self.orchestrator.get_variation_labels(), self.selected_variation,
            on_change=self._on_variation_select)
        self.sliders["weight"] = panel.add_slider(
            "Weight", 0.0, 1.0, 0.0, fmt=".3f", on_change=self._on_weight_change)

        panel.add_spacer(4)
        panel.add_button("Redraw  [D]", on_click=lambda: self._queue("recalculate"))
        panel.add_button("Reseed  [R]", on_click=self._on_reseed)
        panel.add_spacer(4)
        self.progress_bar = panel.add_progress()

        self.panel = panel
        self._sync_weight_slider()

    def _queue(self, kind):
        # A pending recalculation already covers a tone-only pass
        if kind == "tone" and self._request == "recalculate":
            return
        self._request = kind

    def _set_setting(self, key, value, kind):
        if self.settings[key] != value:
            self.settings[key] = value
            self._queue(kind)

    def _on_variation_select(self, index):
        self.selected_variation = index
        self._sync_weight_slider()

    def _sync_weight_slider(self):
        flame = self.orchestrator.flame
        if flame is not None and "weight" in self.sliders:
            self.sliders["weight"].set_value(flame.weights[self.selected_variation])

    def _on_weight_change(self, value):
        if self._bootstrapping or self.orchestrator.flame is None:
            return
        self.orchestrator.set_variation_weight(self.selected_variation, value)
        self._queue("recalculate")

    # ── Frame loop ───────────────────────────────────────────────────

    def _flush_request(self):
        if self._request is None or self._bootstrapping or self.orchestrator.flame is None:
            return
        self.orchestrator.defaults.update(self.settings)
        self.orchestrator.submit_render(
            self.orchestrator.make_request(recalculate=self._request == "recalculate"))
        self._request = None

    def _take_result(self):
        with self._lock:
            result, self._new_result = self._new_result, None
        if result is not None:
            self._result = result
            self._frame = pygame.surfarray.make_surface(
                np.ascontiguousarray(result.pixel_buffer.swapaxes(0, 1)))
            self._sync_weight_slider()

    def _draw_hud(self, screen):
        if not self.show_hud:
            return
        preset = get_preset(self.preset_key)
        painted = self._result.pixels_painted if self._result is not None else 0
        state = self.orchestrator.state.value
        line = (f"{preset['name']}  |  Seed: {self.seed}  |  Painted: {painted:,}  |  "
                f"Zoom: {self.settings['zoom']}  |  {state}")
        bg = pygame.Surface((self.canvas_w, 24), pygame.SRCALPHA)
        bg.fill((0, 0, 0, 140))
        screen.blit(bg, (0, 0))
        screen.blit(self.hud_font.render(line, True, (210, 215, 225)), (10, 6))

    def setup(self):
        """Open the window and build the panel. Called by run()."""
        pygame.init()
        self.screen = pygame.display.set_mode((self.total_w, self.total_h))
        pygame.display.set_caption("Chaos Flame")
        self.clock = pygame.time.Clock()
        self.hud_font = pygame.font.SysFont("menlo", 13)
        self.panel_font = pygame.font.SysFont("menlo", 12)
        self._build_panel()
        self._start_bootstrap(build_preset_flame(self.preset_key, self.seed))

    def tick(self):
        """Process events and draw one frame."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
                continue
            if event.type == pygame.KEYDOWN:
                self._handle_keydown(event)
                continue
            if self.panel_visible and self.panel:
                self.panel.handle_event(event)

        self._flush_request()
        self._take_result()

        screen = self.screen
        screen.fill(THEME["bg"])
        if self._frame is not None:
            screen.blit(self._frame, (0, 0))
        self._draw_hud(screen)

        if self.panel_visible and self.panel:
            with self._lock:
                fraction, message = self._progress
            self.progress_bar.fraction = fraction
            self.progress_bar.message = message
            self.panel.draw(screen, self.panel_font)

        pygame.display.flip()
        self.clock.tick(60)

    def run(self):
        """Main viewer loop."""
        self.setup()
        try:
            while self.running:
                self.tick()
        finally:
            self.orchestrator.close()
            pygame.quit()

    def _handle_keydown(self, event):
        key = event.key

        if key in (pygame.K_q, pygame.K_ESCAPE):
            self.running = False

        elif key in (pygame.K_d, pygame.K_RETURN):
            self._queue("recalculate")

        elif key == pygame.K_r:
            self._on_reseed()

        elif key == pygame.K_h:
            self.show_hud = not self.show_hud

        elif key == pygame.K_TAB:
            self.panel_visible = not self.panel_visible
            self.screen = pygame.display.set_mode((self.total_w, self.total_h))

        elif key in (pygame.K_UP, pygame.K_DOWN):
            lo, hi = self.orchestrator.zoom_range
            delta = 1 if key == pygame.K_UP else -1
            zoom = max(lo, min(hi, self.settings["zoom"] + delta))
            self.sliders["zoom"].set_value(zoom)
            self._set_setting("zoom", zoom, "recalculate")

        elif key in (pygame.K_LEFT, pygame.K_RIGHT):
            self.variation_picker.step(1 if key == pygame.K_RIGHT else -1)

        elif pygame.K_1 <= key <= pygame.K_9:
            idx = key - pygame.K_1
            if idx < len(PRESET_ORDER):
                self.preset_buttons.select(idx)
                self._apply_preset(PRESET_ORDER[idx])
