"""
Configuration module for alphacrop
==================================

Centralized configuration with defaults, optional YAML overrides and
factories for the typed settings used by Cropper, CroppableFinder and
BatchCropper.
"""

import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .cropper import CropperConfig
from .finder import FinderConfig


class CropConfig:
    """Configuration for a cropping run."""

    # Default configuration
    DEFAULT_CONFIG = {
        'crop': {
            'threshold': 0,  # alpha must be > threshold (0-255)
            'padding': 0,
        },

        'output': {
            'out_dir': None,  # None: write next to the source
            'prefix': '',
            'suffix': '',
            'skip_unchanged': False,
            'enumerate': False,
        },

        'finder': {
            'recursive': False,
            'regex': None,
        },

        'batch': {
            'max_workers': None,  # ThreadPoolExecutor default
            'show_progress': False,
        },

        'logging': {
            'level': 'INFO',  # DEBUG, INFO, WARNING, ERROR
            'file': None,
        }
    }

    def __init__(self, config_dict: Dict[str, Any] = None):
        """
        Initialize configuration.

        Args:
            config_dict: Sections to merge over DEFAULT_CONFIG
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_dict:
            self._update_nested(self.config, config_dict)

    def _update_nested(self, base: Dict, overrides: Dict):
        """Merge overrides into base, section by section; scalars replace."""
        for key, value in overrides.items():
            section = base.get(key)
            if isinstance(section, dict) and isinstance(value, dict):
                self._update_nested(section, value)
            else:
                base[key] = value

    def get(self, *keys):
        """Read a setting by its path, e.g. get('crop', 'padding')."""
        node = self.config
        for key in keys:
            node = node[key]
        return node

    def set(self, *keys, value):
        """Write a setting by its path, e.g. set('output', 'prefix', value='c_')."""
        *parents, leaf = keys
        node = self.config
        for key in parents:
            node = node[key]
        node[leaf] = value

    def update(self, section: str, **values):
        """Set several keys of one section, ignoring None values."""
        for key, value in values.items():
            if value is not None:
                self.set(section, key, value=value)

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> 'CropConfig':
        """Load configuration from YAML file."""
        with open(yaml_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration file must contain a mapping: {yaml_path}")
        return cls(config_dict)

    def to_yaml(self, yaml_path: Path):
        """Save configuration to YAML file."""
        with open(yaml_path, 'w') as f:
            yaml.dump(self.config, f, default_flow_style=False, indent=2)

    def to_dict(self) -> Dict[str, Any]:
        """Get configuration as dictionary."""
        return copy.deepcopy(self.config)

    def cropper_config(self) -> CropperConfig:
        out_dir = self.get('output', 'out_dir')
        return CropperConfig(
            threshold=int(self.get('crop', 'threshold')),
            padding=int(self.get('crop', 'padding')),
            out_dir=Path(out_dir) if out_dir else None,
            prefix=self.get('output', 'prefix') or '',
            suffix=self.get('output', 'suffix') or '',
            skip_unchanged=bool(self.get('output', 'skip_unchanged')),
            enumerate=bool(self.get('output', 'enumerate')),
        )

    def finder_config(self) -> FinderConfig:
        return FinderConfig(
            recursive=bool(self.get('finder', 'recursive')),
            pattern=self.get('finder', 'regex'),
        )

    def batch_options(self) -> Dict[str, Any]:
        """Keyword arguments for BatchCropper."""
        return {
            'max_workers': self.get('batch', 'max_workers'),
            'show_progress': bool(self.get('batch', 'show_progress')),
        }


def load_config(yaml_path: Optional[Path] = None) -> CropConfig:
    """
    Build the settings for a run.

    Args:
        yaml_path: YAML file whose sections override the defaults. Ignored
            when None or when the file does not exist.

    Returns:
        CropConfig holding defaults merged with the file
    """
    if yaml_path is None or not Path(yaml_path).exists():
        return CropConfig()
    return CropConfig.from_yaml(yaml_path)
