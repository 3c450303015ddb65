"""
Spectrum-derived sound level.

The level of a block is the summed squared magnitude of its spectrum above a
bin offset, scaled by a calibration constant and expressed in decibels:

    level = 10 * log10(K * sum(spectrum[offset:] ** 2))

`LevelMeter` drives one FFT over consecutive blocks and appends each level to
a bounded results sequence.
"""

from typing import Dict, List, Optional

import numpy as np

from ..dsp_core.buffer import Channel, Deinterleaver
from ..dsp_core.errors import InvalidOffsetError, MeterFullError, SizeMismatchError
from ..dsp_core.fft import FFT
from ..dsp_core.window import get_window
from ..utils.config import MeterConfig
from ..utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_BIN_OFFSET = 10
DEFAULT_CALIBRATION = 2.5e9


def _check_offset(offset: int, n_bins: int) -> None:
    if offset < 0 or offset >= n_bins:
        raise InvalidOffsetError(
            f"Bin offset {offset} out of range for spectrum of {n_bins} bins"
        )


def band_power(spectrum: np.ndarray, offset: int = 0) -> float:
    """Sum of squared magnitudes over bins [offset, len(spectrum))."""
    spectrum = np.asarray(spectrum, dtype=np.float64)
    _check_offset(offset, len(spectrum))
    tail = spectrum[offset:]
    return float(np.dot(tail, tail))


def spectrum_level(
    spectrum: np.ndarray,
    offset: int = DEFAULT_BIN_OFFSET,
    calibration: float = DEFAULT_CALIBRATION
) -> float:
    """
    Decibel level of a magnitude spectrum.

    Args:
        spectrum: Magnitude spectrum, shape (N/2,)
        offset: Number of low bins to skip (DC / rumble)
        calibration: Calibration constant K

    Returns:
        10 * log10(K * band_power), -inf for a silent spectrum
    """
    if calibration <= 0:
        raise ValueError(f"calibration must be > 0, got {calibration}")

    power = band_power(spectrum, offset)
    if power == 0.0:
        return float('-inf')
    return float(10 * np.log10(power * calibration))


def _finite_or_none(value) -> Optional[float]:
    value = float(value)
    return value if np.isfinite(value) else None


class LevelMeter:
    """
    Block-driven sound level meter.

    Owns one FFT engine and a bounded sequence of levels. Once `capacity`
    levels are recorded, `process` raises MeterFullError; the caller decides
    whether to stop or `reset()`.

    Args:
        config: Meter configuration (defaults to MeterConfig())
    """

    def __init__(self, config: Optional[MeterConfig] = None):
        self.config = config or MeterConfig()
        cfg = self.config

        if isinstance(cfg.capacity, bool) or not isinstance(cfg.capacity, int) or cfg.capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {cfg.capacity!r}")
        if cfg.calibration <= 0:
            raise ValueError(f"calibration must be > 0, got {cfg.calibration}")

        self.fft = FFT(cfg.buffer_size, cfg.sample_rate)
        _check_offset(cfg.bin_offset, self.fft.buffer_size // 2)

        self.channel = Channel.from_name(cfg.channel)
        self._window = get_window(cfg.window, self.fft.buffer_size)
        self._apply_window = cfg.window != 'rectangular'
        self._deinterleaver = Deinterleaver()
        self._levels: List[float] = []

        logger.debug(
            f"LevelMeter: N={self.fft.buffer_size} sr={self.fft.sample_rate} "
            f"bandwidth={self.fft.bandwidth:.2f} Hz capacity={cfg.capacity}"
        )

    @property
    def levels(self) -> List[float]:
        return list(self._levels)

    @property
    def capacity(self) -> int:
        return self.config.capacity

    @property
    def is_full(self) -> bool:
        return len(self._levels) >= self.config.capacity

    @property
    def peak_frequency(self) -> float:
        """Centre frequency of the strongest bin seen since the last peak reset."""
        return self.fft.band_frequency(self.fft.peak_band)

    def __len__(self) -> int:
        return len(self._levels)

    def process(self, block) -> float:
        """
        Meter one mono block of `buffer_size` samples.

        Returns:
            The block level in dB (also appended to `levels`)
        """
        if self.is_full:
            raise MeterFullError(f"Meter is full ({self.config.capacity} levels recorded)")

        x = np.asarray(block, dtype=np.float64)
        if x.ndim != 1 or x.shape[0] != self.fft.buffer_size:
            raise SizeMismatchError(
                f"Block size {x.shape} does not match meter buffer size {self.fft.buffer_size}"
            )

        if self._apply_window:
            x = x * self._window

        # Peak is reset only once the block is known to be valid
        if self.config.reset_peak_per_block:
            self.fft.reset_peak()

        spectrum = self.fft.forward(x)
        level = spectrum_level(spectrum, self.config.bin_offset, self.config.calibration)
        self._levels.append(level)

        if self.is_full:
            logger.debug(f"LevelMeter reached capacity ({self.config.capacity})")

        return level

    def process_interleaved(self, buffer) -> float:
        """Meter one stereo-interleaved block of 2 * `buffer_size` samples."""
        return self.process(self._deinterleaver(self.channel, buffer))

    def process_signal(self, samples, interleaved: bool = False) -> List[float]:
        """
        Meter consecutive non-overlapping blocks of a longer signal.

        A trailing partial block is dropped. Stops early when the meter fills.

        Returns:
            Levels recorded by this call
        """
        samples = np.asarray(samples, dtype=np.float64)
        block_size = self.fft.buffer_size * (2 if interleaved else 1)
        n_blocks = len(samples) // block_size

        new_levels = []
        for i in range(n_blocks):
            if self.is_full:
                break
            block = samples[i * block_size:(i + 1) * block_size]
            if interleaved:
                new_levels.append(self.process_interleaved(block))
            else:
                new_levels.append(self.process(block))

        return new_levels

    def reset(self) -> None:
        """Clear recorded levels and the spectral peak."""
        self._levels = []
        self.fft.reset_peak()

    def summary(self) -> Dict[str, Optional[float]]:
        """
        Statistics over the recorded levels.

        `leq` is the energy average, 10 * log10(mean(10 ** (L / 10))).
        Statistics that are -inf (silence) are reported as None.
        """
        if not self._levels:
            return {'count': 0, 'min': None, 'max': None, 'mean': None, 'leq': None}

        levels = np.array(self._levels)
        with np.errstate(divide='ignore'):
            leq = 10 * np.log10(np.mean(10 ** (levels / 10)))

        return {
            'count': len(levels),
            'min': _finite_or_none(levels.min()),
            'max': _finite_or_none(levels.max()),
            'mean': _finite_or_none(levels.mean()),
            'leq': _finite_or_none(leq),
        }

    def to_dict(self) -> Dict[str, List[Optional[float]]]:
        """
        JSON-ready payload {"dBA": [...]}.

        Silent blocks (-inf dB) are written as None, since JSON has no infinity.
        """
        return {'dBA': [_finite_or_none(level) for level in self._levels]}
