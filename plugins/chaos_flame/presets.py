"""
Render Defaults and Flame Presets

RENDER_DEFAULTS holds every tunable of the render pipeline. FLAME_PRESETS
names flames worth starting from: random generation modes and a few
hand-built IFS flames with known shapes. Each preset carries a suggested
zoom setting (see engine.real_zoom: higher zoom = narrower window).
"""

from .flame import Flame, FlameFunction, generate_flame
from .variations import VariationKind


RENDER_DEFAULTS = {
    "display_width": 640,
    "display_height": 480,
    "supersample": 3,
    "iterations": 100_000,
    "zoom": 1,
    "zoom_range": (1, 10),
    "gamma": 4.0,
    "gamma_convention": "power",      # "power": v**gamma, "inverse": v**(1/gamma)
    "warmup_iterations": 20,
    "check_interval": 1024,           # iterations between cancellation checks
    "min_painted_pixels": 10,         # fewer painted pixels = degenerate flame
    "max_bootstrap_attempts": 1000,
}

_RED = (1.0, 0.0, 0.0)
_GREEN = (0.0, 1.0, 0.0)
_BLUE = (0.0, 0.0, 1.0)

SIERPINSKI_FUNCTIONS = (
    FlameFunction((0.5, 0.0, 0.0, 0.0, 0.5, 0.0), color=_RED),
    FlameFunction((0.5, 0.0, 0.5, 0.0, 0.5, 0.0), color=_GREEN),
    FlameFunction((0.5, 0.0, 0.0, 0.0, 0.5, 0.5), color=_BLUE),
)

FERN_FUNCTIONS = (
    FlameFunction((0.0, 0.0, 0.0, 0.0, 0.16, 0.0), color=(0.3, 0.5, 0.1)),
    FlameFunction((0.85, 0.04, 0.0, -0.04, 0.85, 1.6), color=(0.2, 0.9, 0.3)),
    FlameFunction((0.2, -0.26, 0.0, 0.23, 0.22, 1.6), color=(0.6, 1.0, 0.4)),
    FlameFunction((-0.15, 0.28, 0.0, 0.26, 0.24, 0.44), color=(0.1, 0.7, 0.6)),
)

FLAME_PRESETS = {
    "random": {
        "name": "Random Flame",
        "description": "Random functions and variations from the seed",
        "generator": "random",
        "zoom": 1,
    },
    "classic": {
        "name": "Classic Chaos",
        "description": "Random flame plus a final transform after every step",
        "generator": "random",
        "final_transform": True,
        "zoom": 1,
    },
    "sierpinski": {
        "name": "Sierpinski Gasket",
        "description": "Three half-scale contractions, linear only",
        "functions": SIERPINSKI_FUNCTIONS,
        "weights": {"linear": 1.0},
        "zoom": 10,
    },
    "fern": {
        "name": "Barnsley Fern",
        "description": "The four fern affines, linear only",
        "functions": FERN_FUNCTIONS,
        "weights": {"linear": 1.0},
        "zoom": 1,
    },
    "swirl_gasket": {
        "name": "Swirl Gasket",
        "description": "Sierpinski affines bent by swirl and spherical",
        "functions": SIERPINSKI_FUNCTIONS,
        "weights": {"linear": 0.6, "swirl": 0.3, "spherical": 0.1},
        "zoom": 9,
    },
}

PRESET_ORDER = ["random", "classic", "sierpinski", "fern", "swirl_gasket"]


def get_preset(key):
    """Return the preset dict for key, or None."""
    return FLAME_PRESETS.get(key)


def list_presets():
    """Return [(key, name, description)] in display order."""
    return [(k, FLAME_PRESETS[k]["name"], FLAME_PRESETS[k]["description"])
            for k in PRESET_ORDER]


def build_preset_flame(key, seed=0):
    """Build the flame a preset describes.

    Args:
        key: Preset key from FLAME_PRESETS
        seed: Seed for random presets; stored on hand-built ones too, where
            it only seeds the chaos-game stream

    Returns:
        Flame
    """
    preset = get_preset(key)
    if preset is None:
        raise KeyError(f"unknown preset {key!r}, expected one of {PRESET_ORDER}")
    if preset.get("generator") == "random":
        return generate_flame(seed, final_transform=preset.get("final_transform", False))
    weights = {VariationKind[name.upper()]: w for name, w in preset["weights"].items()}
    return Flame.from_weights(preset["functions"], weights, seed=seed)
