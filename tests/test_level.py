"""
Unit tests for spectrum-derived sound level and the block level meter.

Run:
    pytest tests/test_level.py -v
"""

import sys
import os
import json

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import pytest

from dsp_meter.dsp_core import (
    FFT,
    InvalidOffsetError,
    InvalidSizeError,
    MeterFullError,
    SizeMismatchError,
    interleave,
)
from dsp_meter.features import (
    DEFAULT_CALIBRATION,
    LevelMeter,
    band_power,
    spectrum_level,
)
from dsp_meter.utils import MeterConfig


N = 4096
SR = 40960.0


def tone(freq, amplitude=0.1, n_samples=N, sr=SR):
    t = np.arange(n_samples) / sr
    return amplitude * np.sin(2 * np.pi * freq * t)


@pytest.fixture
def meter():
    return LevelMeter(MeterConfig(buffer_size=N, sample_rate=SR, capacity=5))


class TestSpectrumLevel:
    """Level derivation from a magnitude spectrum."""

    def test_band_power(self):
        spectrum = np.array([10.0, 1.0, 2.0, 3.0])
        assert band_power(spectrum) == pytest.approx(114.0)
        assert band_power(spectrum, offset=1) == pytest.approx(14.0)

    def test_level_formula(self):
        spectrum = np.array([5.0, 0.1, 0.2])
        expected = 10 * np.log10((0.1 ** 2 + 0.2 ** 2) * DEFAULT_CALIBRATION)
        assert spectrum_level(spectrum, offset=1) == pytest.approx(expected)

    def test_silence_is_minus_infinity(self):
        assert spectrum_level(np.zeros(2048)) == float('-inf')

    def test_invalid_offset(self):
        spectrum = np.ones(16)
        with pytest.raises(InvalidOffsetError):
            spectrum_level(spectrum, offset=16)
        with pytest.raises(InvalidOffsetError):
            band_power(spectrum, offset=-1)
        with pytest.raises(ValueError):
            spectrum_level(spectrum, offset=20)

    def test_invalid_calibration(self):
        with pytest.raises(ValueError):
            spectrum_level(np.ones(16), offset=0, calibration=0)

    def test_tone_level(self):
        """A 1 kHz tone of amplitude 0.1 lands fully in bin 100."""
        spectrum = FFT(N, SR).forward(tone(1000.0))
        expected = 10 * np.log10(0.1 ** 2 * DEFAULT_CALIBRATION)
        assert spectrum_level(spectrum) == pytest.approx(expected, abs=1e-6)


class TestLevelMeter:
    """Block-driven level meter."""

    def test_process_appends_level(self, meter):
        level = meter.process(tone(1000.0))

        assert meter.levels == [level]
        assert len(meter) == 1
        assert level == pytest.approx(10 * np.log10(0.01 * DEFAULT_CALIBRATION), abs=1e-6)
        assert meter.peak_frequency == pytest.approx(1005.0)

    def test_capacity(self, meter):
        for _ in range(5):
            meter.process(tone(500.0))

        assert meter.is_full
        with pytest.raises(MeterFullError):
            meter.process(tone(500.0))
        assert len(meter.levels) == 5

    def test_process_signal_drops_partial_block(self, meter):
        levels = meter.process_signal(tone(1000.0, n_samples=int(3.5 * N)))
        assert len(levels) == 3
        assert meter.levels == levels

    def test_process_signal_stops_when_full(self, meter):
        levels = meter.process_signal(tone(1000.0, n_samples=10 * N))
        assert len(levels) == 5
        assert meter.is_full

    def test_interleaved_mix_matches_mono(self, meter):
        x = tone(2000.0)
        mono = meter.process(x)
        stereo = meter.process_interleaved(interleave(x, x))
        assert stereo == pytest.approx(mono)

        levels = meter.process_signal(interleave(x, x), interleaved=True)
        assert levels[0] == pytest.approx(mono)

    def test_right_channel(self):
        meter = LevelMeter(MeterConfig(channel='right'))
        level = meter.process_interleaved(interleave(np.zeros(N), tone(1000.0)))
        assert np.isfinite(level)
        assert meter.process_interleaved(interleave(tone(1000.0), np.zeros(N))) == float('-inf')

    def test_hann_window(self):
        rect = LevelMeter(MeterConfig()).process(tone(1000.0))
        hann = LevelMeter(MeterConfig(window='hann')).process(tone(1000.0))
        # Hann spreads a centred tone over bins k-1, k, k+1 with gains 1/4, 1/2, 1/4
        assert hann - rect == pytest.approx(10 * np.log10(3 / 8), abs=1e-6)

    def test_peak_persists_across_blocks(self):
        meter = LevelMeter(MeterConfig())
        meter.process(tone(1000.0, amplitude=0.5))
        meter.process(tone(2000.0, amplitude=0.1))
        assert meter.peak_frequency == pytest.approx(1005.0)

    def test_reset_peak_per_block(self):
        meter = LevelMeter(MeterConfig(reset_peak_per_block=True))
        meter.process(tone(1000.0, amplitude=0.5))
        meter.process(tone(2000.0, amplitude=0.1))
        assert meter.peak_frequency == pytest.approx(2005.0)

    def test_reset(self, meter):
        meter.process_signal(tone(1000.0, n_samples=5 * N))
        meter.reset()

        assert meter.levels == []
        assert not meter.is_full
        assert meter.fft.peak == 0.0

    def test_summary(self, meter):
        assert meter.summary()['count'] == 0

        meter.process(tone(1000.0, amplitude=0.1))
        meter.process(tone(1000.0, amplitude=0.01))
        summary = meter.summary()

        assert summary['count'] == 2
        assert summary['max'] - summary['min'] == pytest.approx(20.0, abs=1e-6)
        assert summary['mean'] == pytest.approx((summary['max'] + summary['min']) / 2)
        assert summary['min'] < summary['leq'] < summary['max']

    def test_to_dict_is_json_serialisable(self, meter):
        meter.process(tone(1000.0))
        payload = json.loads(json.dumps(meter.to_dict()))
        assert list(payload) == ['dBA']
        assert payload['dBA'] == pytest.approx(meter.levels)

    def test_invalid_configs(self):
        with pytest.raises(InvalidSizeError):
            LevelMeter(MeterConfig(buffer_size=100))
        with pytest.raises(InvalidOffsetError):
            LevelMeter(MeterConfig(buffer_size=16, bin_offset=8))
        with pytest.raises(ValueError):
            LevelMeter(MeterConfig(capacity=0))
        with pytest.raises(ValueError):
            LevelMeter(MeterConfig(window='kaiser'))
        with pytest.raises(ValueError):
            LevelMeter(MeterConfig(channel='center'))

    def test_bad_block_keeps_peak(self):
        """A rejected block leaves the peak state and levels untouched."""
        meter = LevelMeter(MeterConfig(buffer_size=64, sample_rate=64.0, bin_offset=1,
                                       reset_peak_per_block=True))
        meter.process(np.sin(2 * np.pi * 5 * np.arange(64) / 64))
        assert meter.fft.peak == pytest.approx(1.0)

        with pytest.raises(SizeMismatchError):
            meter.process(np.zeros(10))
        with pytest.raises(SizeMismatchError):
            meter.process(np.zeros((2, 32)))

        assert meter.fft.peak == pytest.approx(1.0)
        assert meter.fft.peak_band == 5
        assert len(meter) == 1

    def test_bad_block_with_window(self):
        meter = LevelMeter(MeterConfig(window='hann'))
        with pytest.raises(SizeMismatchError):
            meter.process(np.zeros(N // 2))
        assert meter.levels == []

    def test_silent_block_payload_is_strict_json(self, meter):
        meter.process(tone(1000.0))
        meter.process(np.zeros(N))

        assert meter.levels[1] == float('-inf')
        payload = meter.to_dict()
        assert payload['dBA'][0] == pytest.approx(meter.levels[0])
        assert payload['dBA'][1] is None

        summary = meter.summary()
        assert summary['min'] is None
        assert summary['mean'] is None
        assert summary['max'] == pytest.approx(meter.levels[0])
        assert summary['leq'] == pytest.approx(meter.levels[0] - 10 * np.log10(2), abs=1e-6)

        json.dumps({**payload, 'summary': summary}, allow_nan=False)

    def test_all_silent_summary(self, meter):
        meter.process(np.zeros(N))
        summary = meter.summary()
        assert summary['count'] == 1
        assert summary['leq'] is None
        assert meter.to_dict() == {'dBA': [None]}
