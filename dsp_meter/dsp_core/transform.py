"""
Fourier transform context shared by all transform variants.

Holds the per-size derived state (bandwidth, real/imag/spectrum storage and
the running spectral peak) and the magnitude spectrum derivation.
"""

import math

import numpy as np

from .errors import InvalidSampleRateError, InvalidSizeError


def is_power_of_two(n) -> bool:
    """True for positive integral powers of two (1, 2, 4, ...)."""
    if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
        return False
    n = int(n)
    return n > 0 and n & (n - 1) == 0


def _readonly(array: np.ndarray) -> np.ndarray:
    view = array.view()
    view.flags.writeable = False
    return view


class FourierTransform:
    """
    Per-size transform state.

    Parameters
    ----------
    buffer_size : int
        Block length N, a positive power of two
    sample_rate : float
        Sample rate in Hz, positive

    Notes
    -----
    `peak` and `peak_band` track the largest magnitude seen by
    `calculate_spectrum` since construction or the last `reset_peak()`.
    They are not reset per block.
    """

    def __init__(self, buffer_size: int, sample_rate: float):
        if not is_power_of_two(buffer_size):
            raise InvalidSizeError(
                f"Invalid buffer size, must be a positive power of 2. Got {buffer_size!r}"
            )
        try:
            rate_ok = sample_rate > 0 and math.isfinite(sample_rate)
        except TypeError:
            rate_ok = False
        if isinstance(sample_rate, bool) or not rate_ok:
            raise InvalidSampleRateError(
                f"Sample rate must be a positive number. Got {sample_rate!r}"
            )

        self.buffer_size = int(buffer_size)
        self.sample_rate = float(sample_rate)
        self.bandwidth = 2 / self.buffer_size * self.sample_rate / 2

        self._real = np.zeros(self.buffer_size, dtype=np.float64)
        self._imag = np.zeros(self.buffer_size, dtype=np.float64)
        self._spectrum = np.zeros(self.buffer_size // 2, dtype=np.float64)

        self.peak = 0.0
        self.peak_band = 0

    # Borrowed views. They alias engine memory that the next transform call
    # overwrites; copy them to keep them.

    @property
    def real(self) -> np.ndarray:
        return _readonly(self._real)

    @property
    def imag(self) -> np.ndarray:
        return _readonly(self._imag)

    @property
    def spectrum(self) -> np.ndarray:
        return _readonly(self._spectrum)

    def band_frequency(self, index: int) -> float:
        """
        Centre frequency of an FFT band in Hz.

        Parameters
        ----------
        index : int
            Bin index in [0, N/2)
        """
        if not 0 <= index < self.buffer_size // 2:
            raise IndexError(
                f"Band index {index} out of range [0, {self.buffer_size // 2})"
            )
        return self.bandwidth * index + self.bandwidth / 2

    def band_frequencies(self) -> np.ndarray:
        """Centre frequency of every bin."""
        return self.bandwidth * np.arange(self.buffer_size // 2) + self.bandwidth / 2

    def reset_peak(self) -> None:
        self.peak = 0.0
        self.peak_band = 0

    def calculate_spectrum(self) -> np.ndarray:
        """
        Derive the magnitude spectrum from the current real/imag state.

        mag[i] = (2 / N) * sqrt(real[i]^2 + imag[i]^2) for i in [0, N/2).
        Updates `peak`/`peak_band` when a magnitude exceeds the recorded peak.

        Returns
        -------
        np.ndarray
            Read-only view of the spectrum
        """
        half = self.buffer_size // 2
        spectrum = self._spectrum

        np.hypot(self._real[:half], self._imag[:half], out=spectrum)
        spectrum *= 2 / self.buffer_size

        if half > 0:
            band = int(np.argmax(spectrum))
            if spectrum[band] > self.peak:
                self.peak = float(spectrum[band])
                self.peak_band = band

        return self.spectrum
