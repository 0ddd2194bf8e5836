"""Centralized logging configuration management."""

import os
import yaml
from pathlib import Path
from typing import Dict, Optional

CONFIG_FILENAME = "logging-config.yaml"

_TRUTHY = ("true", "1", "yes")


class LoggingConfig:
    """Per-component log levels and formats.

    Looks for ``logging-config.yaml`` next to the package (or at an explicit
    path); environment variables override anything in the file.
    """

    _instance: Optional['LoggingConfig'] = None

    def __init__(self, config_path: Optional[str] = None):
        self._config: Dict = {}

        if config_path is None:
            config_path = os.getenv("LOGGING_CONFIG_PATH") or self._discover()

        if config_path and Path(config_path).exists():
            with open(config_path) as f:
                self._config = yaml.safe_load(f) or {}
        else:
            self._config = {
                'default_level': 'INFO',
                'components': {},
                'frameworks': {},
            }

    @staticmethod
    def _discover() -> Optional[str]:
        current = Path(__file__).parent
        for _ in range(4):
            candidate = current / CONFIG_FILENAME
            if candidate.exists():
                return str(candidate)
            current = current.parent
        return None

    @classmethod
    def get_instance(cls) -> 'LoggingConfig':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None

    def get_level(self, component: str = 'default') -> str:
        """Get log level for a component (api, media, ...).

        Priority: LOG_LEVEL_<COMPONENT> env, LOG_LEVEL env, the component
        entry in the YAML file, then default_level.
        """
        env_var = f"LOG_LEVEL_{component.upper().replace('-', '_')}"
        if env_level := os.getenv(env_var):
            return env_level.upper()

        if env_level := os.getenv('LOG_LEVEL'):
            return env_level.upper()

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict) and 'level' in comp_cfg:
            return comp_cfg['level'].upper()
        if isinstance(comp_cfg, str):
            return comp_cfg.upper()

        return self._config.get('default_level', 'INFO').upper()

    def get_json_format(self, component: str = 'default') -> bool:
        """Get JSON format flag for a component (defaults to plain text)."""
        env_var = f"LOG_JSON_FORMAT_{component.upper().replace('-', '_')}"
        if env_json := os.getenv(env_var):
            return env_json.lower() in _TRUTHY

        if env_json := os.getenv('LOG_JSON'):
            return env_json.lower() in _TRUTHY

        comp_cfg = self._config.get('components', {}).get(component)
        if isinstance(comp_cfg, dict):
            return bool(comp_cfg.get('json_format', False))

        return False

    def get_framework_level(self, framework: str) -> Optional[str]:
        """Get log level for a third-party framework logger (uvicorn, pymongo, ...)."""
        frameworks_cfg = self._config.get('frameworks', {})
        if framework in frameworks_cfg:
            return str(frameworks_cfg[framework]).upper()
        return None

    def framework_levels(self) -> Dict[str, str]:
        return {
            name: str(level).upper()
            for name, level in self._config.get('frameworks', {}).items()
        }


def get_logging_config() -> LoggingConfig:
    """Get singleton logging configuration instance."""
    return LoggingConfig.get_instance()
