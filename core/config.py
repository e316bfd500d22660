"""
Configuration management for the Private Count Noiser.
Handles loading, validation, and access to configuration parameters.
"""

import configparser
import os
import logging
from dataclasses import dataclass, field
from typing import List


logger = logging.getLogger(__name__)


@dataclass
class NoiseConfig:
    """Noise calibration and sampling configuration."""

    mechanism: str = "laplace"  # 'laplace' or 'gaussian'
    alpha: float = 0.05  # Tolerated probability that noise exceeds the accuracy target

    # Accuracy levels: accuracy = min_accuracy + index, index in [0, max_accuracy_index]
    min_accuracy: int = 1
    max_accuracy_index: int = 100

    # Sampling
    use_fast_sampling: bool = False  # NumPy sampling for long vectors instead of exact sampling
    fast_sampling_threshold: int = 1000

    def validate(self) -> None:
        """Validate noise configuration."""
        if self.mechanism.strip().lower() not in ('laplace', 'gaussian'):
            raise ValueError(f"mechanism must be 'laplace' or 'gaussian', got {self.mechanism}")

        if not 0 < self.alpha < 1:
            raise ValueError(f"alpha must be in (0, 1), got {self.alpha}")

        if self.min_accuracy < 1:
            raise ValueError(f"min_accuracy must be >= 1, got {self.min_accuracy}")

        if self.max_accuracy_index < 0:
            raise ValueError(f"max_accuracy_index must be >= 0, got {self.max_accuracy_index}")

        if self.fast_sampling_threshold < 0:
            raise ValueError(f"fast_sampling_threshold must be >= 0, got {self.fast_sampling_threshold}")


@dataclass
class DataConfig:
    """Data-related configuration."""
    input_path: str = ""
    delimiter: str = ","
    has_header: bool = True
    encoding: str = "utf-8"

    default_field: str = "educ"
    switch_fields: List[str] = field(default_factory=lambda: ["educ", "income"])  # Field cycle order

    def validate(self) -> None:
        """Validate data configuration."""
        if not self.input_path:
            raise ValueError("input_path must be specified")
        if len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {self.delimiter!r}")
        if not self.default_field:
            raise ValueError("default_field must be specified")
        if not self.switch_fields:
            raise ValueError("switch_fields must list at least one field")


@dataclass
class Config:
    """Main configuration container."""
    noise: NoiseConfig = field(default_factory=NoiseConfig)
    data: DataConfig = field(default_factory=DataConfig)

    def validate(self) -> None:
        """Validate entire configuration."""
        self.noise.validate()
        self.data.validate()
        logger.info("Configuration validated successfully")

    @classmethod
    def from_ini(cls, config_path: str) -> "Config":
        """Load configuration from INI file."""
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Config file not found: {config_path}")

        parser = configparser.ConfigParser()
        parser.read(config_path, encoding='utf-8')

        config = cls()

        if 'noise' in parser:
            sec = parser['noise']
            config.noise.mechanism = sec.get('mechanism', config.noise.mechanism).strip()
            if 'alpha' in sec:
                config.noise.alpha = float(sec['alpha'])
            if 'min_accuracy' in sec:
                config.noise.min_accuracy = int(sec['min_accuracy'])
            if 'max_accuracy_index' in sec:
                config.noise.max_accuracy_index = int(sec['max_accuracy_index'])
            if 'use_fast_sampling' in sec:
                config.noise.use_fast_sampling = sec.getboolean('use_fast_sampling')
            if 'fast_sampling_threshold' in sec:
                config.noise.fast_sampling_threshold = int(sec['fast_sampling_threshold'])

        if 'data' in parser:
            sec = parser['data']
            config.data.input_path = sec.get('input_path', '')
            config.data.delimiter = sec.get('delimiter', ',')
            if 'has_header' in sec:
                config.data.has_header = sec.getboolean('has_header')
            config.data.encoding = sec.get('encoding', 'utf-8')
            config.data.default_field = sec.get('default_field', 'educ').strip()

            # Format: "field1,field2"
            if 'switch_fields' in sec:
                config.data.switch_fields = [
                    name.strip() for name in sec['switch_fields'].split(',') if name.strip()
                ]

        logger.info(f"Configuration loaded from {config_path}")
        return config

    def to_ini(self, config_path: str) -> None:
        """Save configuration to INI file."""
        parser = configparser.ConfigParser()

        parser['noise'] = {
            'mechanism': self.noise.mechanism,
            'alpha': str(self.noise.alpha),
            'min_accuracy': str(self.noise.min_accuracy),
            'max_accuracy_index': str(self.noise.max_accuracy_index),
            'use_fast_sampling': str(self.noise.use_fast_sampling).lower(),
            'fast_sampling_threshold': str(self.noise.fast_sampling_threshold),
        }

        parser['data'] = {
            'input_path': self.data.input_path,
            'delimiter': self.data.delimiter,
            'has_header': str(self.data.has_header).lower(),
            'encoding': self.data.encoding,
            'default_field': self.data.default_field,
            'switch_fields': ','.join(self.data.switch_fields),
        }

        with open(config_path, 'w', encoding='utf-8') as f:
            parser.write(f)

        logger.info(f"Configuration saved to {config_path}")
