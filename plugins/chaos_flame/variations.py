"""
Flame Variation Library

The 49 nonlinear point transforms that turn a plain affine IFS into a
fractal flame. Each variation maps the pre-affine point (x, y) to a new
point, given the derived polar values of that point:

    r     = sqrt(x^2 + y^2)
    theta = atan(x / y)
    phi   = atan(y / x)

Formulas follow the published flame catalogue (Draves & Reckase,
"The Fractal Flame Algorithm"). Some variations read the pre-affine
coefficients (a, b, c, d, e, f) of the function being applied, some carry
parameters sampled once when the flame is built, and some draw from the
shared random stream on every call. A stochastic variation always takes all
of its draws first, so its draw count per call is fixed (see DRAWS_PER_CALL)
and a seeded stream replays exactly.

Undefined points are not special-cased. Python's math module raises where
IEEE arithmetic would give NaN/inf (r == 0, log of zero, cosh overflow...),
and the caller treats both outcomes as "no contribution".

Dispatch is a closed enumeration plus one table: VariationKind lists every
variation, VARIATION_FUNCTIONS maps each kind to its formula, and the table
is checked for full coverage at import time.
"""

import enum
import math
from dataclasses import dataclass, replace


TWO_PI = 2.0 * math.pi


class VariationKind(enum.IntEnum):
    """Every variation in catalogue order. The value is the weight index."""
    LINEAR = 0
    SINUSOIDAL = 1
    SPHERICAL = 2
    SWIRL = 3
    HORSESHOE = 4
    POLAR = 5
    HANDKERCHIEF = 6
    HEART = 7
    DISC = 8
    SPIRAL = 9
    HYPERBOLIC = 10
    DIAMOND = 11
    EX = 12
    JULIA = 13
    BENT = 14
    WAVES = 15
    FISHEYE = 16
    POPCORN = 17
    EXPONENTIAL = 18
    POWER = 19
    COSINE = 20
    RINGS = 21
    FAN = 22
    BLOB = 23
    PDJ = 24
    FAN2 = 25
    RINGS2 = 26
    EYEFISH = 27
    BUBBLE = 28
    CYLINDER = 29
    PERSPECTIVE = 30
    NOISE = 31
    JULIAN = 32
    JULIASCOPE = 33
    BLUR = 34
    GAUSSIAN = 35
    RADIAL_BLUR = 36
    PIE = 37
    NGON = 38
    CURL = 39
    RECTANGLES = 40
    ARCH = 41
    TANGENT = 42
    SQUARE = 43
    RAYS = 44
    BLADE = 45
    SECANT = 46
    TWINTRIAN = 47
    CROSS = 48


NUM_VARIATIONS = len(VariationKind)

# Display names, in weight-index order
VARIATION_LABELS = [
    "Linear", "Sinusoidal", "Spherical", "Swirl", "Horseshoe", "Polar",
    "Handkerchief", "Heart", "Disc", "Spiral", "Hyperbolic", "Diamond",
    "Ex", "Julia", "Bent", "Waves", "Fisheye", "Popcorn", "Exponential",
    "Power", "Cosine", "Rings", "Fan", "Blob", "PDJ", "Fan2", "Rings2",
    "Eyefish", "Bubble", "Cylinder", "Perspective", "Noise", "JuliaN",
    "JuliaScope", "Blur", "Gaussian", "RadialBlur", "Pie", "Ngon", "Curl",
    "Rectangles", "Arch", "Tangent", "Square", "Rays", "Blade", "Secant",
    "Twintrian", "Cross",
]

# Uniform draws taken from the random stream per call (all others take none)
DRAWS_PER_CALL = {
    VariationKind.JULIA: 1,
    VariationKind.NOISE: 2,
    VariationKind.JULIAN: 1,
    VariationKind.JULIASCOPE: 2,
    VariationKind.BLUR: 2,
    VariationKind.GAUSSIAN: 5,
    VariationKind.RADIAL_BLUR: 4,
    VariationKind.PIE: 3,
    VariationKind.ARCH: 1,
    VariationKind.SQUARE: 2,
    VariationKind.RAYS: 1,
    VariationKind.BLADE: 1,
    VariationKind.TWINTRIAN: 1,
}

# Variations that take their own weight as a construction parameter:
# kind -> index of that parameter
WEIGHT_COUPLED = {
    VariationKind.RADIAL_BLUR: 1,
    VariationKind.ARCH: 0,
    VariationKind.RAYS: 0,
    VariationKind.BLADE: 0,
    VariationKind.SECANT: 0,
    VariationKind.TWINTRIAN: 0,
}


def _atan_ratio(num, den):
    """atan(num / den), following IEEE semantics when den is zero."""
    if den == 0.0:
        if num == 0.0 or num != num:
            return math.nan
        return math.copysign(math.pi / 2, num) * math.copysign(1.0, den)
    return math.atan(num / den)


def derived_params(x, y):
    """Return (r, theta, phi) for a pre-affine point."""
    r = math.sqrt(x * x + y * y)
    return r, _atan_ratio(x, y), _atan_ratio(y, x)


# ---------------------------------------------------------------------------
# Variation formulas
#
# Signature: f(x, y, c, r, theta, phi, rng, p) -> (x', y')
#   c:   pre-affine coefficients (a, b, c, d, e, f) of the current function
#   rng: shared random.Random stream
#   p:   construction-time parameters (empty tuple for most)
# ---------------------------------------------------------------------------

def _linear(x, y, c, r, theta, phi, rng, p):
    return x, y


def _sinusoidal(x, y, c, r, theta, phi, rng, p):
    return math.sin(x), math.sin(y)


def _spherical(x, y, c, r, theta, phi, rng, p):
    k = 1.0 / (r * r)
    return k * x, k * y


def _swirl(x, y, c, r, theta, phi, rng, p):
    r2 = r * r
    s, co = math.sin(r2), math.cos(r2)
    return x * s - y * co, x * co + y * s


def _horseshoe(x, y, c, r, theta, phi, rng, p):
    return (x - y) * (x + y) / r, 2.0 * x * y


def _polar(x, y, c, r, theta, phi, rng, p):
    return theta / math.pi, r - 1.0


def _handkerchief(x, y, c, r, theta, phi, rng, p):
    return r * math.sin(theta + r), r * math.cos(theta - r)


def _heart(x, y, c, r, theta, phi, rng, p):
    return r * math.sin(theta * r), -r * math.cos(theta * r)


def _disc(x, y, c, r, theta, phi, rng, p):
    t = theta / math.pi
    return t * math.sin(math.pi * r), t * math.cos(math.pi * r)


def _spiral(x, y, c, r, theta, phi, rng, p):
    k = 1.0 / r
    return k * (math.cos(theta) + math.sin(r)), k * (math.sin(theta) - math.cos(r))


def _hyperbolic(x, y, c, r, theta, phi, rng, p):
    return math.sin(theta) / r, r * math.cos(theta)


def _diamond(x, y, c, r, theta, phi, rng, p):
    return math.sin(theta) * math.cos(r), math.cos(theta) * math.sin(r)


def _ex(x, y, c, r, theta, phi, rng, p):
    p0 = math.sin(theta + r) ** 3
    p1 = math.cos(theta - r) ** 3
    return r * (p0 + p1), r * (p0 - p1)


def _julia(x, y, c, r, theta, phi, rng, p):
    """sqrt(r) * (cos(theta/2 + omega), sin(theta/2 + omega)), omega in {0, pi}."""
    omega = 0.0 if rng.random() < 0.5 else math.pi
    sr = math.sqrt(r)
    return sr * math.cos(theta / 2 + omega), sr * math.sin(theta / 2 + omega)


def _bent(x, y, c, r, theta, phi, rng, p):
    if x >= 0 and y >= 0:
        return x, y
    if x < 0 and y >= 0:
        return 2.0 * x, y
    if x >= 0 and y < 0:
        return x, y / 2.0
    return 2.0 * x, y / 2.0


def _waves(x, y, c, r, theta, phi, rng, p):
    """Uses coefficients b, c, e, f of the pre-affine."""
    return (x + c[1] * math.sin(y / (c[2] * c[2])),
            y + c[4] * math.sin(x / (c[5] * c[5])))


def _fisheye(x, y, c, r, theta, phi, rng, p):
    # Output axes are swapped in the catalogue definition
    k = 2.0 / (r + 1.0)
    return k * y, k * x


def _popcorn(x, y, c, r, theta, phi, rng, p):
    return (x + c[2] * math.sin(math.tan(3.0 * y)),
            y + c[5] * math.sin(math.tan(3.0 * x)))


def _exponential(x, y, c, r, theta, phi, rng, p):
    k = math.exp(x - 1.0)
    return k * math.cos(math.pi * y), k * math.sin(math.pi * y)


def _power(x, y, c, r, theta, phi, rng, p):
    k = math.pow(r, math.sin(theta))
    return k * math.cos(theta), k * math.sin(theta)


def _cosine(x, y, c, r, theta, phi, rng, p):
    return (math.cos(math.pi * x) * math.cosh(y),
            -math.sin(math.pi * x) * math.sinh(y))


def _rings(x, y, c, r, theta, phi, rng, p):
    c2 = c[2] * c[2]
    k = math.fmod(r + c2, 2.0 * c2) - c2 + r * (1.0 - c2)
    return k * math.cos(theta), k * math.sin(theta)


def _fan(x, y, c, r, theta, phi, rng, p):
    t = math.pi * c[2] * c[2]
    if math.fmod(theta + c[5], t) > t / 2:
        return r * math.cos(theta - t / 2), r * math.sin(theta - t / 2)
    return r * math.cos(theta + t / 2), r * math.sin(theta + t / 2)


def _blob(x, y, c, r, theta, phi, rng, p):
    high, low, waves = p
    k = r * (low + (high - low) / 2.0 * (math.sin(waves * theta) + 1.0))
    return k * math.cos(theta), k * math.sin(theta)


def _pdj(x, y, c, r, theta, phi, rng, p):
    p1, p2, p3, p4 = p
    return (math.sin(p1 * y) - math.cos(p2 * x),
            math.sin(p3 * x) - math.cos(p4 * y))


def _fan2(x, y, c, r, theta, phi, rng, p):
    fx, fy = p
    p1 = math.pi * fx * fx
    t = theta + fy - p1 * math.trunc(2.0 * theta * fy / p1)
    if t > p1 / 2:
        return r * math.sin(theta - p1 / 2), r * math.cos(theta - p1 / 2)
    return r * math.sin(theta + p1 / 2), r * math.cos(theta + p1 / 2)


def _rings2(x, y, c, r, theta, phi, rng, p):
    k = p[0] * p[0]
    t = r - 2.0 * k * math.trunc((r + k) / (2.0 * k)) + r * (1.0 - k)
    return t * math.sin(theta), t * math.cos(theta)


def _eyefish(x, y, c, r, theta, phi, rng, p):
    k = 2.0 / (r + 1.0)
    return k * x, k * y


def _bubble(x, y, c, r, theta, phi, rng, p):
    k = 4.0 / (r * r + 4.0)
    return k * x, k * y


def _cylinder(x, y, c, r, theta, phi, rng, p):
    return math.sin(x), y


def _perspective(x, y, c, r, theta, phi, rng, p):
    angle, dist = p
    k = dist / (dist - y * math.sin(angle))
    return k * x, k * y * math.cos(angle)


def _noise(x, y, c, r, theta, phi, rng, p):
    psi1 = rng.random()
    psi2 = rng.random()
    return (psi1 * x * math.cos(TWO_PI * psi2),
            psi1 * y * math.sin(TWO_PI * psi2))


def _julian(x, y, c, r, theta, phi, rng, p):
    power, dist = p
    psi = rng.random()
    p3 = math.trunc(abs(power) * psi)
    t = (phi + TWO_PI * p3) / power
    k = math.pow(r, dist / power)
    return k * math.cos(t), k * math.sin(t)


def _juliascope(x, y, c, r, theta, phi, rng, p):
    power, dist = p
    psi = rng.random()
    sign = 1.0 if rng.random() < 0.5 else -1.0
    p3 = math.trunc(abs(power) * psi)
    t = (sign * phi + TWO_PI * p3) / power
    k = math.pow(r, dist / power)
    return k * math.cos(t), k * math.sin(t)


def _blur(x, y, c, r, theta, phi, rng, p):
    psi1 = rng.random()
    psi2 = rng.random()
    return psi1 * math.cos(TWO_PI * psi2), psi1 * math.sin(TWO_PI * psi2)


def _gaussian(x, y, c, r, theta, phi, rng, p):
    """Approximate Gaussian blur: sum of four uniforms, centred."""
    total = rng.random() + rng.random() + rng.random() + rng.random()
    psi5 = rng.random()
    k = total - 2.0
    return k * math.cos(TWO_PI * psi5), k * math.sin(TWO_PI * psi5)


def _radial_blur(x, y, c, r, theta, phi, rng, p):
    angle, v = p
    total = rng.random() + rng.random() + rng.random() + rng.random()
    p1 = angle * math.pi / 2.0
    t1 = v * (total - 2.0)
    t2 = phi + t1 * math.sin(p1)
    t3 = t1 * math.cos(p1) - 1.0
    k = 1.0 / v
    return k * (r * math.cos(t2) + t3 * x), k * (r * math.sin(t2) + t3 * y)


def _pie(x, y, c, r, theta, phi, rng, p):
    slices, rotation, thickness = p
    psi1 = rng.random()
    psi2 = rng.random()
    psi3 = rng.random()
    t1 = math.trunc(psi1 * slices + 0.5)
    t2 = rotation + TWO_PI / slices * (t1 + psi2 * thickness)
    return psi3 * math.cos(t2), psi3 * math.sin(t2)


def _ngon(x, y, c, r, theta, phi, rng, p):
    power, sides, corners, circle = p
    p2 = TWO_PI / sides
    t3 = phi - p2 * math.floor(phi / p2)
    t4 = t3 if t3 > p2 / 2 else t3 - p2
    k = (corners * (1.0 / math.cos(t4) - 1.0) + circle) / math.pow(r, power)
    return k * x, k * y


def _curl(x, y, c, r, theta, phi, rng, p):
    c1, c2 = p
    t1 = 1.0 + c1 * x + c2 * (x * x - y * y)
    t2 = c1 * y + 2.0 * c2 * x * y
    k = 1.0 / (t1 * t1 + t2 * t2)
    return k * (x * t1 + y * t2), k * (y * t1 - x * t2)


def _rectangles(x, y, c, r, theta, phi, rng, p):
    px, py = p
    return ((2.0 * math.floor(x / px) + 1.0) * px - x,
            (2.0 * math.floor(y / py) + 1.0) * py - y)


def _arch(x, y, c, r, theta, phi, rng, p):
    a = rng.random() * math.pi * p[0]
    s = math.sin(a)
    return s, s * s / math.cos(a)


def _tangent(x, y, c, r, theta, phi, rng, p):
    return math.sin(x) / math.cos(y), math.tan(y)


def _square(x, y, c, r, theta, phi, rng, p):
    psi1 = rng.random()
    psi2 = rng.random()
    return psi1 - 0.5, psi2 - 0.5


def _rays(x, y, c, r, theta, phi, rng, p):
    v = p[0]
    psi = rng.random()
    k = v * math.tan(psi * math.pi * v) / (r * r)
    return k * math.cos(x), k * math.sin(y)


def _blade(x, y, c, r, theta, phi, rng, p):
    a = rng.random() * r * p[0]
    s, co = math.sin(a), math.cos(a)
    return x * (co + s), x * (co - s)


def _secant(x, y, c, r, theta, phi, rng, p):
    v = p[0]
    return x, 1.0 / (v * math.cos(v * r))


def _twintrian(x, y, c, r, theta, phi, rng, p):
    a = rng.random() * r * p[0]
    s = math.sin(a)
    t = math.log10(s * s) + math.cos(a)
    return x * t, x * (t - math.pi * s)


def _cross(x, y, c, r, theta, phi, rng, p):
    s = x * x - y * y
    k = math.sqrt(1.0 / (s * s))
    return k * x, k * y


VARIATION_FUNCTIONS = {
    VariationKind.LINEAR: _linear,
    VariationKind.SINUSOIDAL: _sinusoidal,
    VariationKind.SPHERICAL: _spherical,
    VariationKind.SWIRL: _swirl,
    VariationKind.HORSESHOE: _horseshoe,
    VariationKind.POLAR: _polar,
    VariationKind.HANDKERCHIEF: _handkerchief,
    VariationKind.HEART: _heart,
    VariationKind.DISC: _disc,
    VariationKind.SPIRAL: _spiral,
    VariationKind.HYPERBOLIC: _hyperbolic,
    VariationKind.DIAMOND: _diamond,
    VariationKind.EX: _ex,
    VariationKind.JULIA: _julia,
    VariationKind.BENT: _bent,
    VariationKind.WAVES: _waves,
    VariationKind.FISHEYE: _fisheye,
    VariationKind.POPCORN: _popcorn,
    VariationKind.EXPONENTIAL: _exponential,
    VariationKind.POWER: _power,
    VariationKind.COSINE: _cosine,
    VariationKind.RINGS: _rings,
    VariationKind.FAN: _fan,
    VariationKind.BLOB: _blob,
    VariationKind.PDJ: _pdj,
    VariationKind.FAN2: _fan2,
    VariationKind.RINGS2: _rings2,
    VariationKind.EYEFISH: _eyefish,
    VariationKind.BUBBLE: _bubble,
    VariationKind.CYLINDER: _cylinder,
    VariationKind.PERSPECTIVE: _perspective,
    VariationKind.NOISE: _noise,
    VariationKind.JULIAN: _julian,
    VariationKind.JULIASCOPE: _juliascope,
    VariationKind.BLUR: _blur,
    VariationKind.GAUSSIAN: _gaussian,
    VariationKind.RADIAL_BLUR: _radial_blur,
    VariationKind.PIE: _pie,
    VariationKind.NGON: _ngon,
    VariationKind.CURL: _curl,
    VariationKind.RECTANGLES: _rectangles,
    VariationKind.ARCH: _arch,
    VariationKind.TANGENT: _tangent,
    VariationKind.SQUARE: _square,
    VariationKind.RAYS: _rays,
    VariationKind.BLADE: _blade,
    VariationKind.SECANT: _secant,
    VariationKind.TWINTRIAN: _twintrian,
    VariationKind.CROSS: _cross,
}

_missing = [k.name for k in VariationKind if k not in VARIATION_FUNCTIONS]
if _missing or len(VARIATION_LABELS) != NUM_VARIATIONS:
    raise RuntimeError(f"Variation catalogue incomplete: {_missing}")


@dataclass(frozen=True)
class Variation:
    """One catalogue entry plus its construction-time parameters."""

    kind: VariationKind
    params: tuple = ()

    @property
    def label(self):
        return VARIATION_LABELS[self.kind]

    @property
    def function(self):
        return VARIATION_FUNCTIONS[self.kind]

    def apply(self, point, coeffs, r, theta, phi, rng):
        """Apply to a (x, y) point. See apply_variation."""
        return apply_variation(self, point[0], point[1], coeffs, r, theta, phi, rng)

    def with_weight(self, weight):
        """Return a copy whose weight-coupled parameter is set to weight."""
        index = WEIGHT_COUPLED.get(self.kind)
        if index is None:
            return self
        params = list(self.params)
        params[index] = weight
        return replace(self, params=tuple(params))

    def __str__(self):
        return self.label


def apply_variation(variation, x, y, coeffs, r, theta, phi, rng):
    """Evaluate one variation at (x, y).

    Args:
        variation: Variation to evaluate
        x, y: Point after the pre-affine transform
        coeffs: Pre-affine coefficients (a, b, c, d, e, f)
        r, theta, phi: Derived polar values from derived_params(x, y)
        rng: random.Random stream; stochastic variations draw from it

    Returns:
        (x', y') tuple. May contain NaN/inf, or raise ArithmeticError /
        ValueError where the formula is undefined at this point.
    """
    return VARIATION_FUNCTIONS[variation.kind](
        x, y, coeffs, r, theta, phi, rng, variation.params)


def build_variations(rng, weights):
    """Sample construction-time parameters for the whole catalogue.

    Draw order is fixed (catalogue order), so the same rng state always
    produces the same variations. Weight-coupled variations take their
    weight from `weights` instead of drawing.

    Args:
        rng: random.Random positioned just after weight generation
        weights: Normalized weights, indexed by VariationKind

    Returns:
        Tuple of NUM_VARIATIONS Variation objects in catalogue order.
    """
    K = VariationKind
    u = rng.random

    def g():
        return rng.gauss(0.0, 1.0)

    params = {}
    params[K.BLOB] = (u(), u(), u())
    params[K.PDJ] = (u(), u(), u(), u())
    params[K.FAN2] = (u(), u())
    params[K.RINGS2] = (u(),)
    params[K.PERSPECTIVE] = (u() * TWO_PI, g())
    params[K.JULIAN] = (g(), g())
    params[K.JULIASCOPE] = (g(), g())
    params[K.RADIAL_BLUR] = (u() * TWO_PI, weights[K.RADIAL_BLUR])
    params[K.PIE] = (rng.randrange(10), u() * TWO_PI, u())
    params[K.NGON] = (u() * 5.0, rng.randrange(10), rng.randrange(12), g())
    params[K.CURL] = (g(), g())
    params[K.RECTANGLES] = (g(), g())
    for kind in (K.ARCH, K.RAYS, K.BLADE, K.SECANT, K.TWINTRIAN):
        params[kind] = (weights[kind],)

    return tuple(Variation(kind, params.get(kind, ())) for kind in VariationKind)


def default_variations():
    """Catalogue with neutral parameters, for hand-built flames."""
    K = VariationKind
    params = {
        K.BLOB: (1.0, 0.5, 3.0),
        K.PDJ: (1.0, 1.0, 1.0, 1.0),
        K.FAN2: (0.5, 0.5),
        K.RINGS2: (0.5,),
        K.PERSPECTIVE: (math.pi / 4, 2.0),
        K.JULIAN: (3.0, 1.0),
        K.JULIASCOPE: (3.0, 1.0),
        K.RADIAL_BLUR: (math.pi / 4, 0.0),
        K.PIE: (6, 0.0, 0.5),
        K.NGON: (2.0, 5, 1, 1.0),
        K.CURL: (0.5, 0.5),
        K.RECTANGLES: (0.5, 0.5),
        K.ARCH: (0.0,),
        K.RAYS: (0.0,),
        K.BLADE: (0.0,),
        K.SECANT: (0.0,),
        K.TWINTRIAN: (0.0,),
    }
    return tuple(Variation(kind, params.get(kind, ())) for kind in VariationKind)
