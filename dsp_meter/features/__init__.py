"""
Feature extraction module.

Acoustic metrics derived from the magnitude spectrum of the FFT engine.
"""

from .level import (
    DEFAULT_BIN_OFFSET,
    DEFAULT_CALIBRATION,
    band_power,
    spectrum_level,
    LevelMeter,
)

__all__ = [
    'DEFAULT_BIN_OFFSET',
    'DEFAULT_CALIBRATION',
    'band_power',
    'spectrum_level',
    'LevelMeter',
]
