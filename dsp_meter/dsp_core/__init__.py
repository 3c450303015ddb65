"""
DSP Core Module - Hand-written FFT and Sample Buffer Utilities

This module provides the numerical core of the level meter: a radix-2
Cooley-Tukey FFT with precomputed bit-reversal and twiddle tables, the
transform context that derives the magnitude spectrum, and stateless
helpers over sample buffers.

Modules:
    - fft: FFT engine (forward / inverse transform)
    - transform: Per-size transform context and spectrum derivation
    - buffer: Invert, interleave/deinterleave, mix, RMS, peak
    - window: Window functions applied before the forward transform
    - errors: Exception hierarchy
"""

from .errors import (
    DSPError,
    InvalidSizeError,
    InvalidSampleRateError,
    SizeMismatchError,
    LengthMismatchError,
    DivideByZeroError,
    EmptyBufferError,
    InvalidOffsetError,
    MeterFullError,
)
from .transform import FourierTransform, is_power_of_two
from .fft import FFT, bit_reverse_table, twiddle_tables, magnitude_spectrum
from .buffer import (
    Channel,
    Deinterleaver,
    invert,
    interleave,
    deinterleave,
    get_channel,
    mix,
    rms,
    peak,
)
from .window import get_window, WINDOWS

__all__ = [
    # Errors
    'DSPError',
    'InvalidSizeError',
    'InvalidSampleRateError',
    'SizeMismatchError',
    'LengthMismatchError',
    'DivideByZeroError',
    'EmptyBufferError',
    'InvalidOffsetError',
    'MeterFullError',
    # Transform
    'FourierTransform',
    'is_power_of_two',
    'FFT',
    'bit_reverse_table',
    'twiddle_tables',
    'magnitude_spectrum',
    # Buffer utilities
    'Channel',
    'Deinterleaver',
    'invert',
    'interleave',
    'deinterleave',
    'get_channel',
    'mix',
    'rms',
    'peak',
    # Windows
    'get_window',
    'WINDOWS',
]
