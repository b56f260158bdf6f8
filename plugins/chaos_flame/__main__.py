"""
Chaos Flame Viewer - Entry Point

Usage:
    python -m chaos_flame [preset] [--seed N] [--size WxH] [--iterations N]
                          [--zoom Z] [--gamma G] [--headless] [--list]

Examples:
    python -m chaos_flame
    python -m chaos_flame sierpinski
    python -m chaos_flame classic --seed 1234 --size 800x600
    python -m chaos_flame fern --headless --iterations 1000000

--headless renders once without a window and prints the render
statistics. Nothing is written to disk.

Use --list to see all available presets.
"""

import random
import sys
import time

from .presets import PRESET_ORDER, RENDER_DEFAULTS, build_preset_flame, get_preset, list_presets


def headless(preset, seed, width, height, iterations, zoom, gamma):
    """Bootstrap a flame, render it once and print what came out."""
    from .orchestrator import DegenerateFlameError, InvalidRequestError, RenderOrchestrator

    print(f"Headless render: {preset} (seed {seed}) @ {width}x{height}")
    settings = {"iterations": iterations, "zoom": zoom, "gamma": gamma}
    with RenderOrchestrator(display_width=width, display_height=height, **settings) as orch:
        start = time.perf_counter()
        try:
            result = orch.bootstrap(flame=build_preset_flame(preset, seed))
        except (DegenerateFlameError, InvalidRequestError) as e:
            print(f"Failed: {e}")
            return 1
        elapsed = time.perf_counter() - start

        stats = orch.accumulator.stats
        pixels = result.pixel_buffer
        print(f"  Flame:     {orch.flame!r}")
        print(f"  Painted:   {result.pixels_painted:,} / {width * height:,} pixels")
        print(f"  Visits:    {stats['visits']:,} in {stats['size']} cells "
              f"({stats['touched_pct']:.1f}% touched, max {stats['max_hits']})")
        print(f"  Mean RGB:  {tuple(round(float(c), 1) for c in pixels.reshape(-1, 3).mean(axis=0))}")
        print(f"  Time:      {elapsed:.2f}s")
    return 0


def main():
    preset = "random"
    seed = None
    width = RENDER_DEFAULTS["display_width"]
    height = RENDER_DEFAULTS["display_height"]
    iterations = RENDER_DEFAULTS["iterations"]
    gamma = RENDER_DEFAULTS["gamma"]
    zoom = None
    run_headless = False

    args = sys.argv[1:]
    i = 0
    try:
        while i < len(args):
            arg = args[i]
            if arg == "--seed" and i + 1 < len(args):
                seed = int(args[i + 1])
                i += 2
            elif arg == "--size" and i + 1 < len(args):
                parts = args[i + 1].lower().split("x")
                width, height = int(parts[0]), int(parts[1])
                i += 2
            elif arg == "--iterations" and i + 1 < len(args):
                iterations = int(float(args[i + 1]))
                i += 2
            elif arg == "--zoom" and i + 1 < len(args):
                zoom = int(args[i + 1])
                i += 2
            elif arg == "--gamma" and i + 1 < len(args):
                gamma = float(args[i + 1])
                i += 2
            elif arg == "--headless":
                run_headless = True
                i += 1
            elif arg == "--list":
                print("\nAvailable presets:\n")
                for key, name, desc in list_presets():
                    print(f"  {key:14s} {name:20s} {desc}")
                print()
                return 0
            elif arg in ("--help", "-h"):
                print(__doc__)
                return 0
            elif arg in PRESET_ORDER:
                preset = arg
                i += 1
            else:
                print(f"Unknown argument: {arg}")
                print("Use --list to see available presets")
                return 2
    except (ValueError, IndexError):
        print(f"Bad value for {args[i]}: {args[i + 1] if i + 1 < len(args) else ''}")
        return 2

    if seed is None:
        seed = random.getrandbits(63)
    if zoom is None:
        zoom = get_preset(preset)["zoom"]

    if run_headless:
        return headless(preset, seed, width, height, iterations, zoom, gamma)

    from .viewer import Viewer

    print("Starting Chaos Flame Viewer")
    print(f"  Preset: {preset}")
    print(f"  Seed: {seed}")
    print(f"  Size: {width}x{height}")
    print()

    viewer = Viewer(width=width, height=height, start_preset=preset, seed=seed)
    viewer.settings.update(iterations=iterations, zoom=zoom, gamma=gamma)
    viewer.run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
