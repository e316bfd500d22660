"""
Noise Mechanisms.

Defines the two supported noise families and the applier that perturbs a
count vector with independent draws from one of them.
"""

import math
import logging
from enum import Enum
from typing import Optional

import numpy as np

from core.errors import SamplingError
from core.primitives import (
    SecureRNG,
    discrete_laplace_vector,
    discrete_gaussian_vector,
    discrete_laplace_variance,
    compute_discrete_gaussian_variance,
)


logger = logging.getLogger(__name__)


class Mechanism(Enum):
    """Noise family added to released counts."""
    LAPLACE = "laplace"
    GAUSSIAN = "gaussian"

    @property
    def label(self) -> str:
        """Display name, e.g. 'Laplace'."""
        return self.value.capitalize()

    def toggled(self) -> "Mechanism":
        """Return the other mechanism."""
        if self is Mechanism.LAPLACE:
            return Mechanism.GAUSSIAN
        return Mechanism.LAPLACE

    @classmethod
    def from_name(cls, name: str) -> "Mechanism":
        """Parse a mechanism from its (case-insensitive) name."""
        try:
            return cls(name.strip().lower())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Unknown mechanism '{name}', expected one of: {valid}") from None

    def __str__(self) -> str:
        return self.label


def noise_variance(mechanism: Mechanism, scale: float) -> float:
    """Variance of a single noise draw for the given mechanism and scale."""
    if mechanism is Mechanism.LAPLACE:
        return discrete_laplace_variance(scale)
    return compute_discrete_gaussian_variance(scale)


class NoiseApplier:
    """
    Adds independent discrete noise to every entry of a count vector.

    Each call draws a fresh sample per entry; no draw is shared between
    entries or between calls.
    """

    def __init__(
        self,
        use_fast_sampling: bool = False,
        fast_sampling_threshold: int = 1000,
        rng: Optional[SecureRNG] = None
    ):
        """
        Initialize the applier.

        Args:
            use_fast_sampling: Allow NumPy sampling for long vectors
            fast_sampling_threshold: Vector length above which fast sampling applies
            rng: Random number generator for exact sampling (a fresh
                SecureRNG per call when None)
        """
        self.use_fast_sampling = use_fast_sampling
        self.fast_sampling_threshold = fast_sampling_threshold
        self.rng = rng

    def apply_noise(self, counts: np.ndarray, mechanism: Mechanism, scale: float) -> np.ndarray:
        """
        Return ``counts`` plus one independent noise draw per entry.

        Args:
            counts: True count vector
            mechanism: Noise family to sample from
            scale: Scale parameter of the noise distribution

        Returns:
            int64 array of the same length; values may be negative

        Raises:
            SamplingError: If no sampler can be built for ``scale``
        """
        if not isinstance(mechanism, Mechanism):
            raise SamplingError(f"Unsupported mechanism: {mechanism!r}")
        if scale is None or not math.isfinite(scale) or scale <= 0:
            raise SamplingError(f"Noise scale must be positive and finite, got {scale}")

        true_counts = np.asarray(counts, dtype=np.int64)
        size = true_counts.shape[0]

        sampler = discrete_laplace_vector if mechanism is Mechanism.LAPLACE else discrete_gaussian_vector
        try:
            perturbations = sampler(
                scale,
                size,
                rng=self.rng,
                use_fast_approximation=self.use_fast_sampling,
                fast_threshold=self.fast_sampling_threshold
            )
        except ValueError as e:
            raise SamplingError(f"Cannot sample {mechanism.label} noise at scale {scale}: {e}") from e

        logger.debug(f"Applied {mechanism.label} noise to {size} counts (scale={scale:.4f})")
        return true_counts + perturbations


def apply_noise(
    counts: np.ndarray,
    mechanism: Mechanism,
    scale: float,
    use_fast_sampling: bool = False
) -> np.ndarray:
    """
    Add independent discrete noise to a count vector.

    Convenience function that creates an applier and returns the noised vector.
    """
    return NoiseApplier(use_fast_sampling=use_fast_sampling).apply_noise(counts, mechanism, scale)
