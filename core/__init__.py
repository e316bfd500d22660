"""
Private Count Noiser
====================
Aggregates sensitive census records into per-bucket counts and releases a
privacy-protected version by adding calibrated discrete noise.

Supports:
- Mechanisms: Discrete Laplace, Discrete Gaussian
- Calibration from a target accuracy and error tolerance alpha
- Exact rational-arithmetic sampling with a secure RNG
"""

__version__ = "1.0.0"
__author__ = "Private Count Noiser Team"

from .config import Config, NoiseConfig, DataConfig
from .errors import NoiserError, DataError, CalibrationError, SamplingError
from .mechanisms import Mechanism, NoiseApplier, apply_noise
from .calibration import NoiseCalibrator, calibrate_scale, scale_to_accuracy

__all__ = [
    # Config
    "Config", "NoiseConfig", "DataConfig",
    # Errors
    "NoiserError", "DataError", "CalibrationError", "SamplingError",
    # Noise
    "Mechanism", "NoiseApplier", "apply_noise",
    "NoiseCalibrator", "calibrate_scale", "scale_to_accuracy",
]
