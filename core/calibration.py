"""
Noise Scale Calibration.

Converts a target accuracy and error tolerance into the scale parameter of
a discrete noise distribution, and back.

Contract:
    For the returned scale, a single noise draw X satisfies
        Pr[|X| > accuracy] <= alpha
    and the scale is the largest one that does.

alpha is an error tolerance, not a confidence level: a tighter tolerance
(smaller alpha) forces a smaller scale for the same accuracy target.
"""

import math
import logging
from typing import Callable

from scipy.optimize import brentq

from core.errors import CalibrationError
from core.mechanisms import Mechanism
from core.primitives import discrete_laplace_tail, discrete_gaussian_tail


logger = logging.getLogger(__name__)

# Upper limit of the Gaussian bracket search
MAX_SCALE = 1.0e9

# Initial relative step used to pull a root back inside the tail bound
_SHRINK_STEP = 1.0e-12
_MAX_SHRINK_STEPS = 64


def _tail_function(mechanism: Mechanism) -> Callable[[float, float], float]:
    if mechanism is Mechanism.LAPLACE:
        return discrete_laplace_tail
    return discrete_gaussian_tail


def _validate(mechanism: Mechanism, accuracy: float, alpha: float) -> None:
    if not isinstance(mechanism, Mechanism):
        raise CalibrationError(f"Unsupported mechanism: {mechanism!r}")
    if accuracy is None or not math.isfinite(accuracy) or accuracy <= 0:
        raise CalibrationError(f"accuracy must be a finite value > 0, got {accuracy}")
    if alpha is None or not 0 < alpha < 1:
        raise CalibrationError(f"alpha must be in (0, 1), got {alpha}")


class NoiseCalibrator:
    """
    Maps (mechanism, accuracy, alpha) to a noise scale.

    Discrete Laplace, scale t, p = exp(-1/t), k = floor(accuracy) + 1:
        Pr[|X| > accuracy] = 2 * p^k / (1 + p)
    solved for the rate 1/t with Brent's method.

    Discrete Gaussian, scale sigma:
        Pr[|X| > accuracy] from the normalised PMF exp(-x^2 / (2 sigma^2))
    solved for sigma with Brent's method after bracketing by doubling.
    """

    def calibrate_scale(self, mechanism: Mechanism, accuracy: float, alpha: float) -> float:
        """
        Compute the noise scale for a target accuracy.

        Args:
            mechanism: Noise family
            accuracy: Largest acceptable absolute noise (> 0)
            alpha: Tolerated probability of exceeding ``accuracy``, in (0, 1)

        Returns:
            Strictly positive, finite scale

        Raises:
            CalibrationError: If the inputs admit no finite scale
        """
        _validate(mechanism, accuracy, alpha)

        if mechanism is Mechanism.LAPLACE:
            scale = self._laplace_scale(accuracy, alpha)
        else:
            scale = self._gaussian_scale(accuracy, alpha)

        scale = self._shrink_to_bound(mechanism, scale, accuracy, alpha)
        logger.debug(f"Calibrated {mechanism.label} scale={scale:.6f} for accuracy={accuracy}, alpha={alpha}")
        return scale

    def scale_to_accuracy(self, mechanism: Mechanism, scale: float, alpha: float) -> int:
        """
        Smallest integer accuracy guaranteed by ``scale`` at tolerance ``alpha``.

        Args:
            mechanism: Noise family
            scale: Noise scale (> 0)
            alpha: Tolerated probability, in (0, 1)

        Returns:
            Smallest integer a >= 0 with Pr[|X| > a] <= alpha
        """
        if not isinstance(mechanism, Mechanism):
            raise CalibrationError(f"Unsupported mechanism: {mechanism!r}")
        if scale is None or not math.isfinite(scale) or scale <= 0:
            raise CalibrationError(f"scale must be a finite value > 0, got {scale}")
        if alpha is None or not 0 < alpha < 1:
            raise CalibrationError(f"alpha must be in (0, 1), got {alpha}")

        tail = _tail_function(mechanism)

        if tail(scale, 0) <= alpha:
            return 0

        # Exponential search for an upper bound, then bisect on integers
        high = 1
        while tail(scale, high) > alpha:
            high *= 2
        low = high // 2
        while low + 1 < high:
            mid = (low + high) // 2
            if tail(scale, mid) <= alpha:
                high = mid
            else:
                low = mid
        return high

    def _laplace_scale(self, accuracy: float, alpha: float) -> float:
        k = math.floor(accuracy) + 1
        log_alpha = math.log(alpha)

        # log of the tail in terms of the rate u = 1/scale; decreasing in u
        def excess(rate: float) -> float:
            return math.log(2.0) - k * rate - math.log1p(math.exp(-rate)) - log_alpha

        upper = (math.log(2.0) - log_alpha) / k + 1.0
        rate = brentq(excess, 0.0, upper)
        if rate <= 0:
            raise CalibrationError(f"No finite Laplace scale for accuracy={accuracy}, alpha={alpha}")
        return 1.0 / rate

    def _gaussian_scale(self, accuracy: float, alpha: float) -> float:
        def excess(sigma: float) -> float:
            return discrete_gaussian_tail(sigma, accuracy) - alpha

        lower = 1.0e-3
        if excess(lower) >= 0:
            raise CalibrationError(f"No Gaussian scale satisfies accuracy={accuracy}, alpha={alpha}")

        upper = max(1.0, float(accuracy))
        while excess(upper) <= 0:
            lower = upper
            upper *= 2.0
            if upper > MAX_SCALE:
                raise CalibrationError(
                    f"Gaussian scale for accuracy={accuracy}, alpha={alpha} exceeds {MAX_SCALE:g}"
                )

        return brentq(excess, lower, upper)

    def _shrink_to_bound(self, mechanism: Mechanism, scale: float, accuracy: float, alpha: float) -> float:
        """Nudge a numerical root down until the tail bound holds exactly."""
        tail = _tail_function(mechanism)
        step = _SHRINK_STEP
        for _ in range(_MAX_SHRINK_STEPS):
            if tail(scale, accuracy) <= alpha:
                return scale
            scale *= 1.0 - step
            step = min(2.0 * step, 0.5)
        raise CalibrationError(
            f"{mechanism.label} scale {scale} does not meet accuracy={accuracy} at alpha={alpha}"
        )


def calibrate_scale(mechanism: Mechanism, accuracy: float, alpha: float) -> float:
    """Compute the noise scale for a target accuracy (see NoiseCalibrator)."""
    return NoiseCalibrator().calibrate_scale(mechanism, accuracy, alpha)


def scale_to_accuracy(mechanism: Mechanism, scale: float, alpha: float) -> int:
    """Smallest integer accuracy guaranteed by a scale (see NoiseCalibrator)."""
    return NoiseCalibrator().scale_to_accuracy(mechanism, scale, alpha)
