#!/usr/bin/env python3
"""
Tests for the flame data model.

Verifies:
1. Validation of functions and weights
2. Random generation is deterministic and normalized
3. Weight edits, weight coupling and snapshots
4. Preset flames
"""

import math

import pytest

from chaos_flame.flame import (
    Flame, FlameFunction, InvalidFlameError, derive_seed, generate_flame,
    normalize_weights,
)
from chaos_flame.presets import (
    FLAME_PRESETS, PRESET_ORDER, RENDER_DEFAULTS, build_preset_flame,
    get_preset, list_presets,
)
from chaos_flame.variations import NUM_VARIATIONS, VariationKind

HALF = (0.5, 0.0, 0.0, 0.0, 0.5, 0.0)


def _pair():
    return [FlameFunction(HALF), FlameFunction((0.5, 0.0, 0.5, 0.0, 0.5, 0.0))]


def test_function_validation():
    print("Testing FlameFunction validation...")
    fn = FlameFunction([1, 0, 0, 0, 1, 0], color=[0.2, 0.4, 0.6])
    assert fn.coefficients == (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
    assert fn.post_coefficients == (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)
    assert fn.color == (0.2, 0.4, 0.6)

    with pytest.raises(InvalidFlameError):
        FlameFunction((1.0, 0.0, 0.0))
    with pytest.raises(InvalidFlameError):
        FlameFunction(HALF, color=(1.5, 0.0, 0.0))
    with pytest.raises(InvalidFlameError):
        FlameFunction((math.nan, 0, 0, 0, 1, 0))
    with pytest.raises(InvalidFlameError):
        FlameFunction(HALF, post_coefficients=("a", 0, 0, 0, 1, 0))
    print("  ✓ Bad coefficients and colors rejected")


def test_flame_validation():
    print("Testing Flame validation...")
    with pytest.raises(InvalidFlameError):
        Flame([FlameFunction(HALF)])
    with pytest.raises(InvalidFlameError):
        Flame(_pair(), weights=[1.0] * 3)
    weights = [0.0] * NUM_VARIATIONS
    weights[5] = -1.0
    with pytest.raises(InvalidFlameError):
        Flame(_pair(), weights=weights)
    weights[5] = math.inf
    with pytest.raises(InvalidFlameError):
        Flame(_pair(), weights=weights)
    assert issubclass(InvalidFlameError, ValueError)
    print("  ✓ Short function lists and bad weights rejected")


def test_normalization():
    print("Testing weight normalization...")
    assert normalize_weights([0.0, 0.0]) == [0.0, 0.0]
    assert normalize_weights([1.0, 3.0]) == [0.25, 0.75]

    flame = Flame.from_weights(_pair(), {VariationKind.LINEAR: 2.0, VariationKind.SWIRL: 6.0})
    weights = flame.normalized_weights()
    assert math.isclose(weights[VariationKind.LINEAR], 0.25)
    assert math.isclose(weights[VariationKind.SWIRL], 0.75)
    active = [(v.kind, w) for v, w in flame.active_variations()]
    assert [k for k, _ in active] == [VariationKind.LINEAR, VariationKind.SWIRL]

    empty = Flame(_pair())
    assert empty.active_variations() == []
    print("  ✓ Nonzero weights sum to 1, all-zero stays empty")


def test_generation_deterministic():
    print("Testing random generation...")
    a = generate_flame(1234)
    b = generate_flame(1234)
    c = generate_flame(1235)
    assert a.functions == b.functions
    assert a.weights == b.weights
    assert a.variations == b.variations
    assert a.functions != c.functions
    assert a.final_function is None
    assert generate_flame(1234, final_transform=True).final_function is not None
    print("  ✓ Same seed, same flame")


def test_generation_ranges():
    print("Testing generated flame ranges...")
    for seed in range(60):
        flame = generate_flame(seed)
        assert 2 <= len(flame.functions) <= 11
        for fn in flame.functions:
            assert all(0.0 <= ch <= 1.0 for ch in fn.color)
        total = sum(flame.normalized_weights())
        assert total == 0 or abs(total - 1.0) < 1e-9, f"seed {seed}: {total}"
        assert all(w >= 0 for w in flame.weights)
    print("  ✓ 2..11 functions, colors in [0,1], weights sum to 1")


def test_set_weight():
    print("Testing set_weight...")
    flame = generate_flame(42)
    functions = flame.functions
    flame.set_weight(VariationKind.ARCH, 0.8)
    normalized = flame.normalized_weights()
    assert flame.weights[VariationKind.ARCH] == 0.8
    assert flame.variations[VariationKind.ARCH].params == (normalized[VariationKind.ARCH],)
    assert flame.functions is functions, "Weight edits must not touch functions"
    assert abs(sum(normalized) - 1.0) < 1e-9

    # Editing another weight rescales the coupled parameter too
    flame.set_weight(VariationKind.LINEAR, flame.weights[VariationKind.LINEAR] + 1.0)
    normalized = flame.normalized_weights()
    assert flame.variations[VariationKind.ARCH].params == (normalized[VariationKind.ARCH],)
    assert flame.variations[VariationKind.RADIAL_BLUR].params[1] == \
        normalized[VariationKind.RADIAL_BLUR]

    with pytest.raises(InvalidFlameError):
        flame.set_weight(NUM_VARIATIONS, 1.0)
    with pytest.raises(InvalidFlameError):
        flame.set_weight(0, -0.5)
    print("  ✓ Raw value stored, coupled parameters follow the normalized weights")


def test_copy_is_independent():
    print("Testing Flame.copy...")
    flame = Flame.from_weights(_pair(), {VariationKind.LINEAR: 1.0}, seed=9)
    clone = flame.copy()
    flame.set_weight(VariationKind.SWIRL, 1.0)
    assert clone.weights[VariationKind.SWIRL] == 0.0
    assert clone.seed == 9 and clone.functions == flame.functions
    print("  ✓ Snapshot unaffected by later edits")


def test_derive_seed():
    print("Testing derive_seed...")
    assert derive_seed(5) == derive_seed(5)
    assert derive_seed(5) != 5
    assert derive_seed(5) != derive_seed(6)
    assert 0 <= derive_seed(5) < 2 ** 63
    print("  ✓ Deterministic seed chain")


def test_presets():
    print("Testing presets...")
    assert [k for k, _, _ in list_presets()] == PRESET_ORDER
    assert set(PRESET_ORDER) == set(FLAME_PRESETS)
    assert get_preset("nope") is None
    with pytest.raises(KeyError):
        build_preset_flame("nope")

    lo, hi = RENDER_DEFAULTS["zoom_range"]
    for key in PRESET_ORDER:
        flame = build_preset_flame(key, seed=3)
        assert isinstance(flame, Flame)
        assert lo <= get_preset(key)["zoom"] <= hi

    sierpinski = build_preset_flame("sierpinski")
    assert len(sierpinski.functions) == 3
    assert sierpinski.normalized_weights()[VariationKind.LINEAR] == 1.0
    assert build_preset_flame("classic", seed=3).final_function is not None
    assert build_preset_flame("random", seed=3).final_function is None
    print("  ✓ Every preset builds a valid flame")


def test_render_defaults():
    print("Testing render defaults...")
    assert RENDER_DEFAULTS["display_width"] == 640
    assert RENDER_DEFAULTS["display_height"] == 480
    assert RENDER_DEFAULTS["zoom_range"] == (1, 10)
    assert RENDER_DEFAULTS["gamma"] == 4.0
    assert RENDER_DEFAULTS["gamma_convention"] == "power"
    assert RENDER_DEFAULTS["min_painted_pixels"] == 10
    print("  ✓ Defaults as documented")


if __name__ == "__main__":
    print("\n=== Testing Flame Data Model ===\n")

    test_function_validation()
    test_flame_validation()
    test_normalization()
    test_generation_deterministic()
    test_generation_ranges()
    test_set_weight()
    test_copy_is_independent()
    test_derive_seed()
    test_presets()
    test_render_defaults()

    print("\n✓ All tests passed!\n")
