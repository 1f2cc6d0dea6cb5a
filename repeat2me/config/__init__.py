"""Simple YAML configuration loader for Repeat2Me."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

logger = logging.getLogger(__name__)


DEFAULT_CONFIG: Dict[str, Any] = {
    'audio': {
        'sample_rate': 44100,
        'chunk_size': 1024,
        'channels': 1,
        'device_index': None,
    },
    'waveform': {
        'width': 800,
        'height': 150,
        'handle_width': 16,
        'min_gap_percent': 5.0,
    },
    'playback': {
        'frame_rate': 60,
        'global_volume': 1.0,
    },
    'storage': {
        'data_directory': 'data',
    },
    'logging': {
        'level': 'INFO',
        'file_path': 'data/logs/repeat2me.log',
        'console_output': True,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Repeat2MeConfig:
    """Repeat2Me configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used.
        """
        if config_path is None:
            self.config_file = None
            self.config = copy.deepcopy(DEFAULT_CONFIG)
            logger.info("No configuration file given, using defaults")
            return

        self.config_file = Path(config_path)

        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load and parse YAML configuration file."""
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                loaded = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")
        except OSError as e:
            raise ValueError(f"Failed to load configuration: {e}")

        if not loaded:
            raise ValueError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping")

        config = _merge(DEFAULT_CONFIG, loaded)

        # Resolve relative paths
        self._resolve_paths(config)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any]) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        config_dir = self.config_file.parent

        # Resolve data directory
        data_dir = config['storage']['data_directory']
        if not os.path.isabs(data_dir):
            config['storage']['data_directory'] = str(config_dir / data_dir)

        # Resolve log file path
        log_path = config['logging']['file_path']
        if not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'audio.sample_rate').

        Args:
            key_path: Dot-separated key path (e.g., 'waveform.min_gap_percent')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split('.')
        value = self.config

        for key in keys:
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default

        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set configuration value using dot notation.

        Args:
            key_path: Dot-separated path to config value (e.g., 'audio.channels')
            value: Value to set
        """
        keys = key_path.split('.')
        config_dict = self.config

        # Navigate to the parent dictionary
        for key in keys[:-1]:
            if key not in config_dict:
                config_dict[key] = {}
            config_dict = config_dict[key]

        # Set the final value
        config_dict[keys[-1]] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_data_directory(self) -> str:
        """Get data directory path."""
        data_dir = self.get('storage.data_directory', 'data')
        return str(Path(data_dir).absolute())


_config: Optional[Repeat2MeConfig] = None


def get_config() -> Repeat2MeConfig:
    """Get the process-wide configuration, creating defaults on first use."""
    global _config
    if _config is None:
        _config = Repeat2MeConfig()
    return _config


def reload_config(config_path: Optional[str] = None) -> Repeat2MeConfig:
    """Replace the process-wide configuration with one loaded from ``config_path``."""
    global _config
    _config = Repeat2MeConfig(config_path)
    return _config
