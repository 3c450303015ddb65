"""
Utility modules.
"""

from .logging import setup_logging, get_logger, SessionLogger
from .config import MeterConfig, load_config

__all__ = ['setup_logging', 'get_logger', 'SessionLogger', 'MeterConfig', 'load_config']
