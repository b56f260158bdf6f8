"""
Flame Data Model

A flame is a small set of affine "functions" (pre-affine, post-affine and a
base color each), one globally shared vector of variation weights, the
variation catalogue with its construction-time parameters, and the seed it
was generated from.

Affine coefficients (a, b, c, d, e, f) map a point as:
    x' = a*x + b*y + c
    y' = d*x + e*y + f

Functions are immutable. Weights are edited in place (set_weight); a
"reinitialize" replaces the whole flame.
"""

import math
import random
from dataclasses import dataclass

from .variations import (
    NUM_VARIATIONS, VARIATION_LABELS, VariationKind,
    build_variations, default_variations,
)


IDENTITY_AFFINE = (1.0, 0.0, 0.0, 0.0, 1.0, 0.0)

# Random generation (matches the reference GUI)
MIN_FUNCTIONS = 2
EXTRA_FUNCTIONS = 10          # functions = 2 + randrange(10)
ENABLE_PROBABILITY = 0.3      # chance a variation gets a nonzero weight
WEIGHT_FLOOR = 0.1            # enabled weight = U + 0.1 before normalizing


class InvalidFlameError(ValueError):
    """Raised when a flame or one of its functions is malformed."""


def _finite_tuple(values, length, what):
    try:
        values = tuple(float(v) for v in values)
    except (TypeError, ValueError) as e:
        raise InvalidFlameError(f"{what} must be {length} numbers") from e
    if len(values) != length:
        raise InvalidFlameError(f"{what} must have {length} values, got {len(values)}")
    if not all(math.isfinite(v) for v in values):
        raise InvalidFlameError(f"{what} must be finite: {values}")
    return values


@dataclass(frozen=True)
class FlameFunction:
    """Pre-affine, post-affine and base color of one IFS function."""

    coefficients: tuple
    post_coefficients: tuple = IDENTITY_AFFINE
    color: tuple = (1.0, 1.0, 1.0)

    def __post_init__(self):
        object.__setattr__(self, "coefficients",
                           _finite_tuple(self.coefficients, 6, "coefficients"))
        object.__setattr__(self, "post_coefficients",
                           _finite_tuple(self.post_coefficients, 6, "post_coefficients"))
        color = _finite_tuple(self.color, 3, "color")
        if not all(0.0 <= ch <= 1.0 for ch in color):
            raise InvalidFlameError(f"color channels must be in [0, 1]: {color}")
        object.__setattr__(self, "color", color)


def normalize_weights(weights):
    """Scale weights so the nonzero ones sum to 1.

    An all-zero vector stays all zero, which the engine treats as the
    identity blend.
    """
    total = sum(weights)
    if total == 0:
        return [0.0] * len(weights)
    return [w / total for w in weights]


def _check_weight(index, value):
    if not 0 <= index < NUM_VARIATIONS:
        raise InvalidFlameError(f"variation index out of range: {index}")
    value = float(value)
    if not math.isfinite(value) or value < 0:
        raise InvalidFlameError(
            f"weight for {VARIATION_LABELS[index]} must be finite and >= 0, got {value}")
    return value


class Flame:
    """A complete flame: functions, shared variation weights and seed.

    Args:
        functions: Sequence of FlameFunction (at least two), chosen uniformly
        weights: NUM_VARIATIONS non-negative weights (normalized on the way
            in). None means all zero, i.e. the identity blend.
        variations: Catalogue with construction parameters. Defaults to
            neutral parameters (default_variations()).
        seed: Integer the flame was generated from; also seeds the
            chaos-game stream.
        final_function: Optional function applied after every step.
    """

    def __init__(self, functions, weights=None, variations=None, seed=0,
                 final_function=None):
        functions = tuple(functions)
        if len(functions) < MIN_FUNCTIONS:
            raise InvalidFlameError(
                f"a flame needs at least {MIN_FUNCTIONS} functions, got {len(functions)}")
        for fn in functions:
            if not isinstance(fn, FlameFunction):
                raise InvalidFlameError(f"not a FlameFunction: {fn!r}")
        if final_function is not None and not isinstance(final_function, FlameFunction):
            raise InvalidFlameError(f"not a FlameFunction: {final_function!r}")

        if weights is None:
            weights = [0.0] * NUM_VARIATIONS
        weights = list(weights)
        if len(weights) != NUM_VARIATIONS:
            raise InvalidFlameError(
                f"expected {NUM_VARIATIONS} weights, got {len(weights)}")
        weights = normalize_weights([_check_weight(i, w) for i, w in enumerate(weights)])

        if variations is None:
            variations = default_variations()
        variations = tuple(variations)
        if [v.kind for v in variations] != list(VariationKind):
            raise InvalidFlameError("variations must cover the catalogue in order")

        self.functions = functions
        self.final_function = final_function
        self.weights = weights
        self.variations = tuple(v.with_weight(w) for v, w in zip(variations, weights))
        self.seed = int(seed)

    @classmethod
    def from_weights(cls, functions, weights_by_kind, seed=0, final_function=None):
        """Build a flame from a sparse {VariationKind: weight} mapping."""
        weights = [0.0] * NUM_VARIATIONS
        for kind, w in weights_by_kind.items():
            weights[int(kind)] = w
        return cls(functions, weights, seed=seed, final_function=final_function)

    def set_weight(self, index, value):
        """Edit one weight in place. Functions are left untouched.

        The stored vector keeps the raw value; normalized_weights() rescales
        for rendering. Every weight-coupled variation is refreshed with its
        normalized weight, as at construction, since one edit rescales all
        of them.
        """
        value = _check_weight(index, value)
        self.weights[index] = value
        self.variations = tuple(
            v.with_weight(w) for v, w in zip(self.variations, self.normalized_weights()))

    def normalized_weights(self):
        return normalize_weights(self.weights)

    def active_variations(self):
        """Return [(Variation, weight)] for every nonzero normalized weight."""
        return [(v, w) for v, w in zip(self.variations, self.normalized_weights())
                if w != 0]

    def copy(self):
        """Snapshot that shares the immutable parts and copies the weights."""
        clone = Flame.__new__(Flame)
        clone.functions = self.functions
        clone.final_function = self.final_function
        clone.weights = list(self.weights)
        clone.variations = self.variations
        clone.seed = self.seed
        return clone

    def __repr__(self):
        active = [v.label for v, _ in self.active_variations()]
        return (f"Flame(seed={self.seed}, functions={len(self.functions)}, "
                f"final={self.final_function is not None}, variations={active})")


def derive_seed(seed):
    """Next seed in a deterministic chain, used when a flame is rejected."""
    return random.Random(seed).getrandbits(63)


def _random_function(rng):
    coeffs, post, color = [], [], []
    for j in range(6):
        coeffs.append(rng.gauss(0.0, 1.0))
        post.append(rng.gauss(0.0, 1.0))
        if j < 3:
            color.append(rng.random())
    return FlameFunction(coeffs, post, color)


def generate_flame(seed, final_transform=False):
    """Generate a random flame from a seed.

    Draw order: function count, then per function the interleaved
    pre/post coefficients and colors, then one enable draw (plus a weight
    draw when enabled) per variation, then construction parameters.

    Args:
        seed: Integer seed; the same seed always yields the same flame
        final_transform: Also generate a final function applied after
            every step

    Returns:
        Flame
    """
    rng = random.Random(seed)
    count = rng.randrange(EXTRA_FUNCTIONS) + MIN_FUNCTIONS
    functions = [_random_function(rng) for _ in range(count)]
    final = _random_function(rng) if final_transform else None

    weights = []
    for _ in range(NUM_VARIATIONS):
        if rng.random() < ENABLE_PROBABILITY:
            weights.append(rng.random() + WEIGHT_FLOOR)
        else:
            weights.append(0.0)
    weights = normalize_weights(weights)
    variations = build_variations(rng, weights)

    return Flame(functions, weights, variations, seed=seed, final_function=final)
