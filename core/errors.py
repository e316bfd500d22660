"""
Error types raised by the aggregation and noising stages.

All of them subclass ValueError so callers that already guard against bad
input with ``except ValueError`` keep working.
"""


class NoiserError(Exception):
    """Base class for aggregation and noising failures."""
    pass


class DataError(NoiserError, ValueError):
    """Raised when input text is malformed or does not match the schema."""
    pass


class CalibrationError(NoiserError, ValueError):
    """Raised when no finite noise scale satisfies the requested accuracy."""
    pass


class SamplingError(NoiserError, ValueError):
    """Raised when a noise sampler cannot be built for a given scale."""
    pass
