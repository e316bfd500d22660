"""
Discrete Noise Primitives.

Exact samplers for the discrete Laplace (two-sided geometric) and discrete
Gaussian distributions over the integers, plus the tail probabilities the
calibrator inverts. Sampling uses exact rational arithmetic to avoid
floating-point leakage, following Canonne, Kamath & Steinke (2020).

Both distributions are parameterised by a single ``scale``:
    Discrete Laplace:   Pr[X = x] ∝ exp(-|x| / scale)
    Discrete Gaussian:  Pr[X = x] ∝ exp(-x^2 / (2 * scale^2))

Reference:
    "The Discrete Gaussian for Differential Privacy"
    https://arxiv.org/abs/2004.00010
"""

import math
import secrets
import logging
from fractions import Fraction
from typing import Tuple, Union, Optional

import numpy as np


logger = logging.getLogger(__name__)

# Largest denominator used when a float scale is turned into a rational
MAX_DENOMINATOR = 1000000

# Above this scale the discrete Gaussian tail is taken from the continuous one
CONTINUOUS_TAIL_SCALE = 1.0e4


# ============================================================================
# Random Number Generation
# ============================================================================

class SecureRNG:
    """
    Cryptographically secure random number generator.
    Uses the secrets module so noise cannot be predicted from a seed.
    """

    def integers(self, low: int, high: int) -> int:
        """
        Generate a random integer in [low, high).

        Args:
            low: Lower bound (inclusive)
            high: Upper bound (exclusive)

        Returns:
            Random integer in [low, high)
        """
        if high <= low:
            raise ValueError(f"high ({high}) must be greater than low ({low})")
        return low + secrets.randbelow(high - low)


_rng_factory = SecureRNG


def get_rng() -> SecureRNG:
    """Get a new RNG instance."""
    return _rng_factory()


def limit_denominator(
    fraction: Tuple[int, int],
    max_denominator: int = MAX_DENOMINATOR,
    mode: str = "best"
) -> Tuple[int, int]:
    """
    Find a rational approximation with bounded denominator.

    Args:
        fraction: (numerator, denominator) tuple, both > 0
        max_denominator: Maximum allowed denominator
        mode: "best" (closest), "upper" (>= fraction), "lower" (<= fraction)

    Returns:
        (numerator, denominator) of approximation
    """
    n, d = fraction
    gcd = math.gcd(n, d)
    n //= gcd
    d //= gcd

    if d <= max_denominator:
        return (n, d)

    p0, q0, p1, q1 = 0, 1, 1, 0
    n_work, d_work = n, d

    while True:
        a = n_work // d_work
        q2 = q0 + a * q1
        if q2 > max_denominator:
            break
        p0, q0, p1, q1 = p1, q1, p0 + a * p1, q2
        n_work, d_work = d_work, n_work - a * d_work

    # the two candidates bracket n/d
    k = (max_denominator - q0) // q1
    b1n, b1d = (p0 + k * p1, q0 + k * q1)
    b2n, b2d = (p1, q1)

    if mode == "best":
        if abs((b2n * d - b2d * n) * b1d) <= abs((b1n * d - n * b1d) * b2d):
            return (b2n, b2d)
        return (b1n, b1d)
    elif mode == "upper":
        return (b1n, b1d) if b1n * b2d > b2n * b1d else (b2n, b2d)
    elif mode == "lower":
        return (b2n, b2d) if b1n * b2d > b2n * b1d else (b1n, b1d)
    else:
        raise ValueError(f"Unknown mode: {mode}")


def to_fraction(value: Union[Fraction, float, int]) -> Fraction:
    """
    Convert a positive scale to a bounded-denominator Fraction.

    The result never exceeds ``value``, so a calibrated scale keeps its
    tail bound after conversion.
    """
    if isinstance(value, Fraction):
        return value
    exact = Fraction(value)
    if exact <= 0:
        return exact
    n, d = limit_denominator((exact.numerator, exact.denominator), MAX_DENOMINATOR, mode="lower")
    return Fraction(n, d)


# ============================================================================
# Exact Rational Helpers
# ============================================================================

def floorsqrt(num: int, denom: int) -> int:
    """
    Compute floor(sqrt(num/denom)) exactly using only integer comparisons.

    Args:
        num: Numerator (>= 0)
        denom: Denominator (> 0)

    Returns:
        floor(sqrt(num/denom))
    """
    assert num >= 0 and denom > 0

    a: int = 0  # a^2 <= x
    b: int = 1  # b^2 > x

    while b * b * denom <= num:
        b = 2 * b

    while a + 1 < b:
        c = (a + b) // 2
        if c * c * denom <= num:
            a = c
        else:
            b = c

    return a


def bernoulli_exp_scalar(gamma: Tuple[int, int], rng: SecureRNG) -> int:
    """
    Sample from Bernoulli(exp(-gamma)) exactly.

    Args:
        gamma: (numerator, denominator) representing gamma >= 0
        rng: Random number generator

    Returns:
        1 with probability exp(-gamma), 0 otherwise
    """
    gn, gd = gamma

    if 0 <= gn <= gd:
        k: int = 1
        a: bool = True
        while a:
            a = rng.integers(0, gd * k) < gn
            k = k + 1 if a else k
        return k % 2

    for _ in range(gn // gd):
        if not bernoulli_exp_scalar((1, 1), rng):
            return 0
    return bernoulli_exp_scalar((gn % gd, gd), rng)


# ============================================================================
# Exact Scalar Samplers
# ============================================================================

def discrete_laplace_scalar(s: int, t: int, rng: SecureRNG) -> int:
    """
    Sample from Discrete Laplace with scale t/s exactly.

    The Discrete Laplace has PMF:
        Pr[X = x] = (exp(s/t) - 1) / (exp(s/t) + 1) * exp(-|x| * s/t)

    Args:
        s: Scale denominator (>= 1)
        t: Scale numerator (>= 1)
        rng: Random number generator

    Returns:
        Integer sample
    """
    assert s >= 1 and t >= 1

    while True:
        d: bool = False
        while not d:
            u: int = rng.integers(0, t)
            d = bool(bernoulli_exp_scalar((u, t), rng))

        v: int = 0
        a: bool = True
        while a:
            a = bool(bernoulli_exp_scalar((1, 1), rng))
            v = v + 1 if a else v

        x: int = u + t * v
        y: int = x // s
        b: int = rng.integers(0, 2)

        # reject the duplicated negative zero
        if not (b == 1 and y == 0):
            return (1 - 2 * b) * y


def discrete_gaussian_scalar(sigma_sq: Tuple[int, int], rng: SecureRNG) -> int:
    """
    Sample from Discrete Gaussian exactly using rational arithmetic.

    Args:
        sigma_sq: (numerator, denominator) representing sigma^2
        rng: Random number generator

    Returns:
        Integer sample
    """
    ssq_n, ssq_d = sigma_sq
    t: int = floorsqrt(ssq_n, ssq_d) + 1

    while True:
        y: int = discrete_laplace_scalar(1, t, rng)
        aux1n: int = abs(y) * t * ssq_d - ssq_n
        gamma = (aux1n * aux1n, t * ssq_d * t * ssq_n * 2)

        if bernoulli_exp_scalar(gamma, rng):
            return y


# ============================================================================
# Vector Samplers
# ============================================================================

def discrete_laplace_vector(
    scale: Union[Fraction, float],
    size: int,
    rng: Optional[SecureRNG] = None,
    use_fast_approximation: bool = False,
    fast_threshold: int = 1000
) -> np.ndarray:
    """
    Sample ``size`` independent Discrete Laplace values.

    The fast path draws the difference of two geometric variables with
    success probability 1 - exp(-1/scale), which has exactly the Discrete
    Laplace law but relies on NumPy's floating-point generator.

    Args:
        scale: Scale parameter (> 0)
        size: Number of samples
        rng: Random number generator for the exact path (optional)
        use_fast_approximation: Allow NumPy sampling for large vectors
        fast_threshold: Vector size above which the fast path is used

    Returns:
        int64 array of samples
    """
    if float(scale) <= 0:
        raise ValueError(f"scale must be > 0, got {float(scale)}")

    if use_fast_approximation and size > fast_threshold:
        logger.debug(f"Discrete Laplace: fast sampling of {size:,} values (scale={float(scale):.4f})")
        p = -math.expm1(-1.0 / float(scale))
        return (np.random.geometric(p, size) - np.random.geometric(p, size)).astype(np.int64)

    if rng is None:
        rng = get_rng()

    frac = to_fraction(scale)
    if frac.numerator < 1:
        raise ValueError(f"scale {float(scale)} is too small to represent exactly")

    logger.debug(f"Discrete Laplace: exact sampling of {size:,} values (scale={frac})")
    samples = [discrete_laplace_scalar(frac.denominator, frac.numerator, rng) for _ in range(size)]
    return np.array(samples, dtype=np.int64)


def discrete_gaussian_vector(
    scale: Union[Fraction, float],
    size: int,
    rng: Optional[SecureRNG] = None,
    use_fast_approximation: bool = False,
    fast_threshold: int = 1000
) -> np.ndarray:
    """
    Sample ``size`` independent Discrete Gaussian values.

    The fast path rounds continuous normal draws, which converges to the
    Discrete Gaussian for sigma > 1.

    Args:
        scale: Standard deviation parameter sigma (> 0)
        size: Number of samples
        rng: Random number generator for the exact path (optional)
        use_fast_approximation: Allow NumPy sampling for large vectors
        fast_threshold: Vector size above which the fast path is used

    Returns:
        int64 array of samples
    """
    sigma = float(scale)
    if sigma <= 0:
        raise ValueError(f"scale must be > 0, got {sigma}")

    if use_fast_approximation and size > fast_threshold:
        logger.debug(f"Discrete Gaussian: fast sampling of {size:,} values (sigma={sigma:.4f})")
        return np.round(np.random.normal(0, sigma, size)).astype(np.int64)

    if rng is None:
        rng = get_rng()

    sigma_sq = to_fraction(scale) ** 2
    if sigma_sq.numerator < 1:
        raise ValueError(f"scale {sigma} is too small to represent exactly")

    logger.debug(f"Discrete Gaussian: exact sampling of {size:,} values (sigma^2={float(sigma_sq):.4f})")
    n, d = sigma_sq.numerator, sigma_sq.denominator
    samples = [discrete_gaussian_scalar((n, d), rng) for _ in range(size)]
    return np.array(samples, dtype=np.int64)


# ============================================================================
# Tail Probabilities
# ============================================================================

def discrete_laplace_tail(scale: float, accuracy: float) -> float:
    """
    Compute Pr[|X| > accuracy] for a Discrete Laplace with the given scale.

    With p = exp(-1/scale) and k = floor(accuracy) + 1:
        Pr[|X| >= k] = 2 * p^k / (1 + p)
    """
    if accuracy < 0:
        return 1.0
    k = math.floor(accuracy) + 1
    log_p = -1.0 / scale
    return math.exp(math.log(2.0) + k * log_p - math.log1p(math.exp(log_p)))


def discrete_gaussian_tail(scale: float, accuracy: float) -> float:
    """
    Compute Pr[|X| > accuracy] for a Discrete Gaussian with the given sigma.

    The normalising constant is summed up to 50 sigma. For very large sigma
    the tail of the continuous Gaussian (with continuity correction) is used.
    """
    if accuracy < 0:
        return 1.0
    k = math.floor(accuracy) + 1

    if scale > CONTINUOUS_TAIL_SCALE:
        return math.erfc((k - 0.5) / (scale * math.sqrt(2.0)))

    bound = max(int(math.ceil(50.0 * scale)), k) + 1
    x = np.arange(1, bound + 1, dtype=np.float64)
    weights = np.exp(-(x * x) / (2.0 * scale * scale))

    normaliser = 1.0 + 2.0 * np.sum(weights)
    outside = 2.0 * np.sum(weights[k - 1:])
    return float(outside / normaliser)


# ============================================================================
# Variances
# ============================================================================

def discrete_laplace_variance(scale: float) -> float:
    """
    Variance of the Discrete Laplace: 2p / (1 - p)^2 with p = exp(-1/scale).
    """
    p = math.exp(-1.0 / scale)
    return 2.0 * p / (1.0 - p) ** 2


def compute_discrete_gaussian_variance(scale: float) -> float:
    """
    Compute the exact variance of the Discrete Gaussian distribution.

    For large sigma, variance approaches sigma^2 (like continuous Gaussian).
    """
    sigma_sq = float(scale) ** 2

    if sigma_sq > 100:
        return sigma_sq

    bound = int(math.floor(50.0 * math.sqrt(sigma_sq))) + 1

    n = np.arange(-bound, 0)
    n2 = n * n
    p = np.exp(-n2 / (2.0 * sigma_sq))

    # the +1 is the n=0 term of the normaliser
    variance = 2 * np.sum(n2 * p) / (2 * np.sum(p) + 1)

    return float(variance)
