"""
Meter configuration.

Defaults reproduce the capture setup the meter was calibrated against:
4096-sample blocks at 40960 Hz, first 10 bins skipped, 100 readings per run.
"""

from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional

import yaml


@dataclass
class MeterConfig:
    """Parameters of a level metering run."""
    buffer_size: int = 4096
    sample_rate: float = 40960.0
    bin_offset: int = 10
    calibration: float = 2.5e9
    capacity: int = 100
    window: str = 'rectangular'
    channel: str = 'mix'
    reset_peak_per_block: bool = False

    def __post_init__(self):
        # YAML 1.1 reads exponents without a sign ("2.5e9") as strings
        for name in ('sample_rate', 'calibration'):
            value = getattr(self, name)
            if isinstance(value, str):
                setattr(self, name, float(value))

    @classmethod
    def from_dict(cls, config: Optional[Dict]) -> 'MeterConfig':
        """Build from a mapping, ignoring unknown keys."""
        if not config:
            return cls()
        if not isinstance(config, dict):
            raise ValueError(f"Meter config must be a mapping, got {type(config).__name__}")
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})

    def to_dict(self) -> Dict:
        return asdict(self)


def load_config(config_path: str) -> MeterConfig:
    """
    Load a meter configuration from YAML.

    The file may hold the keys at top level or under a `meter:` section.
    """
    with open(config_path, 'r') as f:
        yaml_config = yaml.safe_load(f) or {}

    if isinstance(yaml_config, dict) and 'meter' in yaml_config:
        yaml_config = yaml_config['meter']

    return MeterConfig.from_dict(yaml_config)
