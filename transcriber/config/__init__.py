"""YAML configuration for Transcriber.

Values missing from the file fall back to ``DEFAULTS``. Relative paths are
resolved against the directory holding the config file, so the same file
works regardless of the current working directory.
"""

import os
import copy
import yaml
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)

CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"

DEFAULTS: Dict[str, Any] = {
    'audio': {'sample_rate': 16000, 'chunk_size': 1024, 'channels': 1},
    'google_cloud': {
        'credentials_path': None,
        'language': 'en-US',
        'enable_automatic_punctuation': True,
        'model': 'latest_long',
    },
    'recognition': {'queue_size': 200, 'watchdog_seconds': 0},
    'storage': {'data_directory': 'data'},
    'ui': {'refresh_interval_seconds': 1.0},
    'logging': {'level': 'INFO', 'file_path': 'data/logs/transcriber.log', 'console_output': False},
}

PATH_KEYS = (
    ('google_cloud', 'credentials_path'),
    ('storage', 'data_directory'),
    ('logging', 'file_path'),
)


@dataclass(frozen=True)
class AudioSettings:
    sample_rate: int
    chunk_size: int
    channels: int


def _merge(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class TranscriberConfig:
    """Transcriber configuration loaded from one YAML file."""

    def __init__(self, config_path: Optional[str] = None):
        """Load the configuration.

        Args:
            config_path: Path to the YAML file; defaults to ``transcriber.yaml``
                in the current directory.

        Raises:
            FileNotFoundError: the file does not exist
            ValueError: the file is empty, not a mapping, or not valid YAML
        """
        self.config_file = Path(config_path or "transcriber.yaml")
        if not self.config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_file}")

        logger.info(f"Loading configuration from: {self.config_file}")
        self.config = _merge(DEFAULTS, self._read_file())
        self._resolve_paths()
        logger.info("Configuration loaded successfully")

    def _read_file(self) -> Dict[str, Any]:
        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}") from e

        if not data:
            raise ValueError("Configuration file is empty")
        if not isinstance(data, dict):
            raise ValueError("Configuration file must contain a mapping")
        return data

    def _resolve_paths(self) -> None:
        config_dir = self.config_file.parent
        for section, key in PATH_KEYS:
            path = self.get(f"{section}.{key}")
            if path and not os.path.isabs(path):
                self.config[section][key] = str(config_dir / path)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get a value by dot path, e.g. ``get('google_cloud.language')``."""
        value = self.config
        for key in key_path.split('.'):
            if not isinstance(value, dict) or key not in value:
                return default
            value = value[key]
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set a value by dot path, creating intermediate sections."""
        *parents, leaf = key_path.split('.')
        section = self.config
        for key in parents:
            section = section.setdefault(key, {})
        section[leaf] = value
        logger.debug(f"Configuration key '{key_path}' set to: {value}")

    def get_audio_settings(self) -> AudioSettings:
        """Capture parameters; every value must be a positive integer."""
        values = {}
        for name in ('sample_rate', 'chunk_size', 'channels'):
            value = self.get(f'audio.{name}')
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"audio.{name} must be a positive integer, got {value!r}")
            values[name] = value
        return AudioSettings(**values)

    def get_google_credentials_path(self) -> str:
        """Service account file from the config, else from GOOGLE_APPLICATION_CREDENTIALS.

        Raises:
            ValueError: neither is set
            FileNotFoundError: the file does not exist
        """
        creds_path = self.get('google_cloud.credentials_path') or os.environ.get(CREDENTIALS_ENV_VAR)
        if not creds_path:
            raise ValueError(f"Google credentials not configured: set google_cloud.credentials_path "
                             f"in {self.config_file.name} or {CREDENTIALS_ENV_VAR}")

        creds_file = Path(creds_path)
        if not creds_file.exists():
            raise FileNotFoundError(f"Google credentials file not found: {creds_path}")
        return str(creds_file.absolute())

    def get_data_directory(self) -> str:
        return str(Path(self.get('storage.data_directory')).absolute())

    def get_watchdog_seconds(self) -> Optional[float]:
        """Recognition watchdog timeout; 0 disables it."""
        seconds = self.get('recognition.watchdog_seconds')
        return float(seconds) if seconds else None
