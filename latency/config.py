"""
load the config from config.yaml and the environment
"""

import os
from pathlib import Path
from typing import Any, Dict

import yaml

from .errors import ConfigError


class Config:
    """Harness settings: server, endpoints, element ids, rendering and the post-load run."""

    # Environment variable -> nested config key
    ENV_MAPPINGS = {
        'LATENCY_BASE_URL': ('server', 'base_url'),
        'LATENCY_USER_AGENT': ('server', 'user_agent'),
        'LATENCY_SELECTOR_ENDPOINT': ('endpoints', 'selector'),
        'LATENCY_RUN_ENDPOINT': ('endpoints', 'run'),
        'LATENCY_DELAY_ENDPOINT': ('endpoints', 'delay'),
        'LATENCY_ESCAPE_HTML': ('render', 'escape_html'),
        'LATENCY_TEST': ('run', 'test'),
        'LATENCY_DELAY': ('run', 'delay'),
        'LOG_LEVEL': ('logging', 'level'),
        'LOG_FORMAT': ('logging', 'format'),
    }

    def __init__(self, config_path: str = None):
        """Read config_path, or the config.yaml shipped beside this module, then apply LATENCY_* and LOG_* overrides."""
        if config_path is None:
            config_path = Path(__file__).parent / "config.yaml"

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Parse the YAML mapping; anything else is a ConfigError."""
        try:
            with open(self.config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            raise ConfigError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(config, dict):
            raise ConfigError(f"Configuration file must contain a mapping: {self.config_path}")

        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Write each set ENV_MAPPINGS variable into its nested key, creating sections as needed."""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is None:
                continue

            current = config
            for key in config_path[:-1]:
                if not isinstance(current.get(key), dict):
                    current[key] = {}
                current = current[key]

            current[config_path[-1]] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        # "true"/"false" -> bool, then int, then float, else the raw string
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value

    def get(self, *keys, default=None):
        """Walk nested sections, e.g. get("server", "base_url"); default when any step is missing."""
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def server(self) -> Dict[str, Any]:
        """Get harness server configuration."""
        return self.get('server', default={})

    @property
    def endpoints(self) -> Dict[str, str]:
        """Get server script names for each binding."""
        return self.get('endpoints', default={})

    @property
    def elements(self) -> Dict[str, str]:
        """Get page element ids."""
        return self.get('elements', default={})

    @property
    def render(self) -> Dict[str, Any]:
        """Get rendering configuration."""
        return self.get('render', default={})

    @property
    def run(self) -> Dict[str, Any]:
        """Get the actions main.py performs after the page loads."""
        return self.get('run', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        """Get logging configuration."""
        return self.get('logging', default={})
