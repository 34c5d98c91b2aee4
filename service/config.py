"""
load the config from config.yaml and environment variables
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional


DEFAULT_CONFIG_FILE = "config.yaml"

DEFAULTS: Dict[str, Any] = {
    'server': {
        'host': '0.0.0.0',
        'port': 3001,
    },
    'fetcher': {
        'user_agent': 'Faleproxy/1.0',
        'timeout': 30.0,
        'max_redirects': 5,
        'max_response_size': 10 * 1024 * 1024,
        'default_scheme': 'http',
    },
    'rewrite': {
        'source_token': 'Yale',
        'target_token': 'Fale',
        'exempt_phrase': 'no Yale references',
    },
    'logging': {
        'level': 'INFO',
        'json': True,
    },
}


class Config:
    """Configuration loader that reads from config.yaml and environment variables."""

    # Environment variable mapping
    ENV_MAPPINGS = {
        'HOST': ('server', 'host'),
        'PORT': ('server', 'port'),
        'FETCHER_USER_AGENT': ('fetcher', 'user_agent'),
        'FETCHER_TIMEOUT': ('fetcher', 'timeout'),
        'FETCHER_MAX_REDIRECTS': ('fetcher', 'max_redirects'),
        'FETCHER_MAX_RESPONSE_SIZE': ('fetcher', 'max_response_size'),
        'DEFAULT_SCHEME': ('fetcher', 'default_scheme'),
        'REWRITE_SOURCE_TOKEN': ('rewrite', 'source_token'),
        'REWRITE_TARGET_TOKEN': ('rewrite', 'target_token'),
        'REWRITE_EXEMPT_PHRASE': ('rewrite', 'exempt_phrase'),
        'LOG_LEVEL': ('logging', 'level'),
        'LOG_JSON': ('logging', 'json'),
    }

    # Values that must stay strings even when they look numeric
    STRING_KEYS = {'REWRITE_SOURCE_TOKEN', 'REWRITE_TARGET_TOKEN', 'REWRITE_EXEMPT_PHRASE',
                   'FETCHER_USER_AGENT', 'HOST'}

    def __init__(self, config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to a YAML file. If None, uses $FALEPROXY_CONFIG,
                        then config.yaml in the working directory; a missing
                        default file means built-in defaults only.
            environ: Mapping used for overrides, os.environ by default.
        """
        self.environ = os.environ if environ is None else environ
        self.explicit = config_path is not None or bool(self.environ.get('FALEPROXY_CONFIG'))
        if config_path is None:
            config_path = self.environ.get('FALEPROXY_CONFIG') or DEFAULT_CONFIG_FILE

        self.config_path = Path(config_path)
        self._config = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file and override with environment variables."""
        config = copy.deepcopy(DEFAULTS)

        # Load base configuration from YAML
        try:
            with open(self.config_path, 'r') as f:
                loaded = yaml.safe_load(f) or {}
        except FileNotFoundError:
            if self.explicit:
                raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
            loaded = {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file: {e}")

        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

        self._merge(config, loaded)

        # Override with environment variables
        config = self._apply_env_overrides(config)

        return config

    def _merge(self, base: Dict[str, Any], override: Dict[str, Any]):
        for key, value in override.items():
            if isinstance(value, dict) and isinstance(base.get(key), dict):
                self._merge(base[key], value)
            else:
                base[key] = value

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration."""
        for env_var, config_path in self.ENV_MAPPINGS.items():
            env_value = self.environ.get(env_var)
            if env_value is not None:
                # Navigate to the nested config location
                current = config
                for key in config_path[:-1]:
                    if key not in current:
                        current[key] = {}
                    current = current[key]

                # Convert value to appropriate type
                final_key = config_path[-1]
                if env_var in self.STRING_KEYS:
                    current[final_key] = env_value
                else:
                    current[final_key] = self._convert_env_value(env_value)

        return config

    def _convert_env_value(self, value: str):
        """Convert environment variable string to appropriate Python type."""
        # Boolean conversion
        if value.lower() in ('true', 'false'):
            return value.lower() == 'true'

        # Integer conversion
        try:
            return int(value)
        except ValueError:
            pass

        # Float conversion
        try:
            return float(value)
        except ValueError:
            pass

        # Return as string
        return value

    def get(self, *keys, default=None):
        """Get a nested configuration value, e.g. get('fetcher', 'timeout')."""
        current = self._config
        for key in keys:
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    @property
    def server(self) -> Dict[str, Any]:
        return self.get('server', default={})

    @property
    def fetcher(self) -> Dict[str, Any]:
        return self.get('fetcher', default={})

    @property
    def rewrite(self) -> Dict[str, Any]:
        return self.get('rewrite', default={})

    @property
    def logging(self) -> Dict[str, Any]:
        return self.get('logging', default={})
