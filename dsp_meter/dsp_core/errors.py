"""
Exceptions raised by the DSP core.

Every class derives from DSPError and from the builtin that matches the
failure, so callers may catch either.
"""


class DSPError(Exception):
    """Base class for all DSP core errors."""


class InvalidSizeError(DSPError, ValueError):
    """Transform size is not a positive power of two."""


class InvalidSampleRateError(DSPError, ValueError):
    """Sample rate is not a positive finite number."""


class SizeMismatchError(DSPError, ValueError):
    """Input length disagrees with the configured transform size."""


class LengthMismatchError(DSPError, ValueError):
    """Paired buffers have unequal lengths, or an interleaved buffer is odd."""


class DivideByZeroError(DSPError, ZeroDivisionError):
    """Zero divisor in a buffer operation."""


class EmptyBufferError(DivideByZeroError):
    """Statistic requested over a zero-length buffer."""


class InvalidOffsetError(DSPError, ValueError):
    """Bin offset is outside the spectrum."""


class MeterFullError(DSPError, RuntimeError):
    """The bounded results sequence has reached its capacity."""
