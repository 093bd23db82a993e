"""
Configuration Service - YAML config with environment overrides
Only the host application reads this; core components get plain values.
"""
import os
import yaml
from typing import Any, Dict, Optional
from pathlib import Path


def _as_bool(value: str) -> bool:
    return value.lower() in ('true', '1', 'yes')


class ConfigService:
    """
    Centralized configuration management with environment overrides.

    Priority order:
    1. Environment variables (highest)
    2. YAML config file
    3. Default values (lowest)
    """

    _instance: Optional['ConfigService'] = None
    _config: Dict[str, Any] = {}

    CONFIG_PATHS = [
        Path("/data/config.yaml"),
        Path("config/default.yaml"),
        Path(__file__).resolve().parent.parent / "config" / "default.yaml",
    ]

    def __new__(cls):
        """Singleton for global config access"""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if not self._config:
            self.reload()

    def reload(self, path: Optional[Path] = None) -> None:
        """
        Load config from file and environment.

        Args:
            path: Explicit YAML file, tried before the default locations
        """
        paths = ([Path(path)] if path else []) + self.CONFIG_PATHS
        self._config = self._load_yaml_config(paths)
        self._apply_env_overrides()

    def _load_yaml_config(self, paths) -> Dict[str, Any]:
        """Load configuration from the first readable YAML file"""
        for config_path in paths:
            if config_path.exists():
                try:
                    with open(config_path, 'r') as f:
                        loaded = yaml.safe_load(f) or {}
                    return self._merge(self._get_defaults(), loaded)
                except (OSError, yaml.YAMLError) as e:
                    print(f"Warning: Failed to load {config_path}: {e}")

        return self._get_defaults()

    @classmethod
    def _merge(cls, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        merged = dict(base)
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key] = cls._merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _apply_env_overrides(self) -> None:
        """Apply environment variable overrides"""
        if env_tz := os.environ.get('TIMEZONE'):
            self._config['timezone'] = env_tz

        if env_level := os.environ.get('LOG_LEVEL'):
            self.set('logging.level', env_level)

        # Companion weather source
        if env_key := os.environ.get('WEATHER_API_KEY'):
            self.set('companion.api_key', env_key)

        if env_location := os.environ.get('WEATHER_LOCATION'):
            self.set('companion.location', env_location)

        if env_units := os.environ.get('WEATHER_UNITS'):
            self.set('companion.units', env_units)

        # Display
        if env_width := os.environ.get('DISPLAY_WIDTH'):
            self.set('display.width', int(env_width))

        if env_height := os.environ.get('DISPLAY_HEIGHT'):
            self.set('display.height', int(env_height))

        if env_round := os.environ.get('DISPLAY_ROUND'):
            self.set('display.round', _as_bool(env_round))

        if env_low_bit := os.environ.get('LOW_BIT_AMBIENT'):
            self.set('display.low_bit_ambient', _as_bool(env_low_bit))

    def _get_defaults(self) -> Dict[str, Any]:
        """Return default configuration"""
        return {
            'app': {'version': '1.0.0'},
            'timezone': None,
            'display': {
                'width': 320,
                'height': 320,
                'round': True,
                'low_bit_ambient': False,
                'use_24h': True,
            },
            'companion': {
                'enabled': True,
                'api_key': '',
                'location': 'Mountain View, US',
                'units': 'imperial',
                'timeout': 10,
            },
            'logging': {
                'level': 'INFO',
            }
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get config value using dot notation
        Example: config.get('display.round')
        """
        value = self._config

        for k in key.split('.'):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def get_all(self) -> Dict[str, Any]:
        return self._config.copy()

    def set(self, key: str, value: Any) -> None:
        """
        Set config value using dot notation
        Example: config.set('companion.units', 'metric')
        """
        keys = key.split('.')
        target = self._config

        for k in keys[:-1]:
            target = target.setdefault(k, {})

        target[keys[-1]] = value


# Global instance
config = ConfigService()
