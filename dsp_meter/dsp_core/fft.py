"""
Radix-2 FFT Engine using Numba JIT

This module implements the iterative Cooley-Tukey FFT over a fixed,
power-of-two block length with Numba-compiled inner loops.
Optimizations:
1. Bit-reversal permutation table built once per block size
2. Twiddle (sin/cos) tables built once per block size
3. Incremental phase rotation inside each butterfly stage (no trig calls)
4. Real/imag scratch buffers reused across calls

One FFT instance owns its scratch buffers. Use one instance per concurrent
stream (e.g. per channel); instances must not be shared between threads.
"""

import numpy as np
from numba import jit

from .errors import SizeMismatchError
from .transform import FourierTransform


@jit(nopython=True, cache=True)
def _permute(src: np.ndarray, reverse_table: np.ndarray, dst: np.ndarray) -> None:
    """dst[i] = src[reverse_table[i]]"""
    for i in range(reverse_table.shape[0]):
        dst[i] = src[reverse_table[i]]


@jit(nopython=True, cache=True)
def _butterfly_stages(
    real: np.ndarray,
    imag: np.ndarray,
    cos_table: np.ndarray,
    sin_table: np.ndarray
) -> None:
    """
    In-place decimation-in-time butterflies over bit-reversed input.

    Stages run with half sizes 1, 2, 4, ..., N/2. The phase factor starts at
    1 + 0j and is rotated by (cos_table[half], sin_table[half]) after each
    butterfly column.
    """
    N = real.shape[0]
    half_size = 1

    while half_size < N:
        step_real = cos_table[half_size]
        step_imag = sin_table[half_size]

        phase_real = 1.0
        phase_imag = 0.0

        for fft_step in range(half_size):
            i = fft_step

            while i < N:
                off = i + half_size
                tr = phase_real * real[off] - phase_imag * imag[off]
                ti = phase_real * imag[off] + phase_imag * real[off]

                real[off] = real[i] - tr
                imag[off] = imag[i] - ti
                real[i] += tr
                imag[i] += ti

                i += half_size << 1

            tmp_real = phase_real
            phase_real = tmp_real * step_real - phase_imag * step_imag
            phase_imag = tmp_real * step_imag + phase_imag * step_real

        half_size <<= 1


def bit_reverse_table(N: int) -> np.ndarray:
    """
    Radix-2 bit-reversal permutation of [0, N).

    Built by doubling: at each stage `limit` (1, 2, 4, ... < N),
    table[i + limit] = table[i] + bit, with bit halving from N/2.
    """
    table = np.zeros(N, dtype=np.int64)
    limit = 1
    bit = N >> 1

    while limit < N:
        table[limit:2 * limit] = table[:limit] + bit
        limit <<= 1
        bit >>= 1

    return table


def twiddle_tables(N: int):
    """
    Twiddle tables sin(-pi / k), cos(-pi / k) for k in [0, N).

    Index 0 is never read by the butterflies; it holds the identity
    rotation (cos=1, sin=0) so no non-finite value is stored.
    """
    sin_table = np.zeros(N, dtype=np.float64)
    cos_table = np.ones(N, dtype=np.float64)

    k = np.arange(1, N, dtype=np.float64)
    sin_table[1:] = np.sin(-np.pi / k)
    cos_table[1:] = np.cos(-np.pi / k)

    return sin_table, cos_table


class FFT(FourierTransform):
    """
    Fast Fourier Transform over blocks of a fixed power-of-two length.

    Parameters
    ----------
    buffer_size : int
        Block length N. Must be a power of 2
    sample_rate : float
        Sample rate of the blocks (e.g. 44100)

    Examples
    --------
    >>> fft = FFT(8, 44100)
    >>> spectrum = fft.forward([1, 0, 0, 0, 0, 0, 0, 0])
    >>> # flat spectrum, every bin equal to 2/8
    """

    def __init__(self, buffer_size: int, sample_rate: float):
        super().__init__(buffer_size, sample_rate)

        N = self.buffer_size
        self.reverse_table = bit_reverse_table(N)
        self.sin_table, self.cos_table = twiddle_tables(N)

        # Tables are shared read-only state after construction
        for table in (self.reverse_table, self.sin_table, self.cos_table):
            table.flags.writeable = False

    def _check_length(self, buffer: np.ndarray, name: str) -> None:
        if buffer.ndim != 1 or buffer.shape[0] != self.buffer_size:
            raise SizeMismatchError(
                f"Supplied {name} is not the same size as defined FFT. "
                f"FFT Size: {self.buffer_size} {name} size: {buffer.shape}"
            )

    def forward(self, buffer) -> np.ndarray:
        """
        Forward transform of one block (time domain -> frequency domain).

        Parameters
        ----------
        buffer : array_like
            Sample block of length N

        Returns
        -------
        np.ndarray
            Copy of the magnitude spectrum, length N/2
        """
        x = np.ascontiguousarray(buffer, dtype=np.float64)
        self._check_length(x, 'buffer')

        _permute(x, self.reverse_table, self._real)
        self._imag[:] = 0.0

        _butterfly_stages(self._real, self._imag, self.cos_table, self.sin_table)

        return self.calculate_spectrum().copy()

    def inverse(self, real=None, imag=None) -> np.ndarray:
        """
        Inverse transform (frequency domain -> time domain).

        Conjugates the input, runs the forward butterflies and scales the real
        part by 1/N. The imaginary part of the result is discarded, so the
        original signal is assumed to be real.

        Parameters
        ----------
        real, imag : array_like, optional
            Frequency-domain parts of length N. Default to the state left by
            the last `forward` call. Inputs are not modified.

        Returns
        -------
        np.ndarray
            New time-domain buffer of length N
        """
        real = self._real if real is None else np.ascontiguousarray(real, dtype=np.float64)
        imag = self._imag if imag is None else np.ascontiguousarray(imag, dtype=np.float64)
        self._check_length(real, 'real')
        self._check_length(imag, 'imag')

        N = self.buffer_size
        rev_real = np.empty(N, dtype=np.float64)
        rev_imag = np.empty(N, dtype=np.float64)
        _permute(real, self.reverse_table, rev_real)
        _permute(imag, self.reverse_table, rev_imag)
        np.negative(rev_imag, out=rev_imag)

        _butterfly_stages(rev_real, rev_imag, self.cos_table, self.sin_table)

        rev_real /= N
        return rev_real


def magnitude_spectrum(buffer, sample_rate: float = 1.0) -> np.ndarray:
    """One-shot forward transform of a single block with a throwaway engine."""
    x = np.asarray(buffer, dtype=np.float64)
    return FFT(len(x), sample_rate).forward(x)
