"""
dsp_meter - FFT-based sound level metering.

Subpackages:
    - dsp_core: FFT engine, transform context, buffer utilities
    - features: Spectrum-derived acoustic metrics
    - utils: Logging and configuration
"""

__version__ = '1.0.0'
