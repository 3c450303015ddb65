"""
Sample buffer utilities.

Stateless helpers over 1-D sample buffers: phase inversion, stereo
interleave/deinterleave, buffer mixing, RMS and peak. Used standalone or as
preprocessing before a transform.
"""

from enum import Enum
from typing import Sequence, Union

import numpy as np

from .errors import DivideByZeroError, EmptyBufferError, LengthMismatchError


ArrayLike = Union[np.ndarray, Sequence[float]]


class Channel(Enum):
    """Channel selector for stereo-interleaved buffers."""
    LEFT = 0
    RIGHT = 1
    MIX = 2

    @classmethod
    def from_name(cls, name: Union[str, 'Channel']) -> 'Channel':
        if isinstance(name, cls):
            return name
        try:
            return cls[str(name).upper()]
        except KeyError:
            raise ValueError(f"Unknown channel: {name}. Choose from 'left', 'right', 'mix'") from None


def invert(buffer):
    """Negate every sample in place and return the same buffer."""
    if isinstance(buffer, np.ndarray):
        np.negative(buffer, out=buffer)
    else:
        for i in range(len(buffer)):
            buffer[i] = -buffer[i]
    return buffer


def interleave(left: ArrayLike, right: ArrayLike) -> np.ndarray:
    """
    Convert split-stereo (dual mono) buffers into one interleaved buffer.

    Parameters
    ----------
    left, right : array_like
        Channel buffers of equal length N

    Returns
    -------
    np.ndarray
        Buffer of length 2N ordered [l0, r0, l1, r1, ...]
    """
    left = np.asarray(left, dtype=np.float64)
    right = np.asarray(right, dtype=np.float64)

    if len(left) != len(right):
        raise LengthMismatchError(
            f"Can not interleave. Channel lengths differ: {len(left)} != {len(right)}"
        )

    stereo = np.empty(2 * len(left), dtype=np.float64)
    stereo[0::2] = left
    stereo[1::2] = right
    return stereo


def _check_interleaved(buffer: np.ndarray) -> None:
    if len(buffer) % 2 != 0:
        raise LengthMismatchError(
            f"Interleaved buffer must have even length, got {len(buffer)}"
        )


def _extract(channel: Channel, buffer: np.ndarray, out: np.ndarray) -> np.ndarray:
    if channel is Channel.LEFT:
        out[:] = buffer[0::2]
    elif channel is Channel.RIGHT:
        out[:] = buffer[1::2]
    elif channel is Channel.MIX:
        np.add(buffer[0::2], buffer[1::2], out=out)
        out /= 2
    else:
        raise ValueError(f"Unknown channel: {channel}")
    return out


def deinterleave(channel: Union[Channel, str], buffer: ArrayLike) -> np.ndarray:
    """
    Separate one channel from a stereo-interleaved buffer.

    LEFT takes even-indexed samples, RIGHT odd-indexed samples, MIX the mean
    of each (left, right) pair. Always returns a new array of length N/2.
    """
    channel = Channel.from_name(channel)
    buffer = np.asarray(buffer, dtype=np.float64)
    _check_interleaved(buffer)
    return _extract(channel, buffer, np.empty(len(buffer) // 2, dtype=np.float64))


get_channel = deinterleave


class Deinterleaver:
    """
    Deinterleave into per-channel scratch buffers reused across calls.

    The scratch buffers are reallocated whenever the input length changes.
    The returned array is overwritten by the next call for the same channel;
    copy it to keep it.
    """

    def __init__(self):
        self._scratch = {}
        self._length = None

    def __call__(self, channel: Union[Channel, str], buffer: ArrayLike) -> np.ndarray:
        channel = Channel.from_name(channel)
        buffer = np.asarray(buffer, dtype=np.float64)
        _check_interleaved(buffer)

        half = len(buffer) // 2
        if half != self._length:
            self._scratch = {}
            self._length = half

        out = self._scratch.get(channel)
        if out is None:
            out = np.empty(half, dtype=np.float64)
            self._scratch[channel] = out

        return _extract(channel, buffer, out)


def mix(
    buffer_a: ArrayLike,
    buffer_b: ArrayLike,
    negate: bool = False,
    volume_correction: float = 1.0
) -> np.ndarray:
    """
    Mix two sample buffers.

    out[i] = a[i] + (-b[i] if negate else b[i]) / volume_correction

    Parameters
    ----------
    buffer_a, buffer_b : array_like
        Buffers of equal length
    negate : bool
        Flip the phase of buffer_b before mixing
    volume_correction : float
        Divisor applied to buffer_b, must be non-zero

    Returns
    -------
    np.ndarray
        New mixed buffer
    """
    a = np.asarray(buffer_a, dtype=np.float64)
    b = np.asarray(buffer_b, dtype=np.float64)

    if len(a) != len(b):
        raise LengthMismatchError(f"Can not mix. Buffer lengths differ: {len(a)} != {len(b)}")
    if volume_correction == 0:
        raise DivideByZeroError("volume_correction must be non-zero")

    if negate:
        b = -b
    return a + b / volume_correction


def rms(buffer: ArrayLike) -> float:
    """Root mean square of a buffer."""
    x = np.asarray(buffer, dtype=np.float64)
    if x.size == 0:
        raise EmptyBufferError("Can not compute RMS of an empty buffer")
    return float(np.sqrt(np.mean(x * x)))


def peak(buffer: ArrayLike) -> float:
    """Largest absolute sample value, 0.0 for an empty buffer."""
    x = np.asarray(buffer, dtype=np.float64)
    if x.size == 0:
        return 0.0
    return float(np.abs(x).max())
