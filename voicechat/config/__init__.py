"""Simple YAML configuration loader for VoiceChat."""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging

from ..errors import ConfigError

logger = logging.getLogger(__name__)


DEFAULTS: Dict[str, Any] = {
    "logging": {
        "level": "INFO",
        "file_path": "data/logs/voicechat.log",
        "console_output": True,
    },
    "server": {
        "host": "127.0.0.1",
        "port": 8080,
        "path": "/chat",
    },
    "upstream": {
        "api_key_env": "OPENAI_API_KEY",
        "env_file": ".env",
        "url": "https://api.openai.com/v1/responses",
        "model": "gpt-4o-mini",
        "system_prompt": "You are a helpful web chat assistant.",
        "max_output_tokens": 500,
        "timeout_seconds": 30,
    },
    "client": {
        "endpoint_url": "http://127.0.0.1:8080/chat",
        "timeout_seconds": 60,
    },
    "dictation": {
        "language": "en-US",
        "restart_delay_ms": 150,
        "auto_send": False,
        "indicator": "Recording…",
        "default_placeholder": "Type your message…",
    },
    "status": {
        "display_seconds": 3.0,
    },
    "speech_output": {
        "language": None,
        "rate": None,
        "pitch": None,
    },
}


def _merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if value is None and isinstance(merged.get(key), dict):
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class VoiceChatConfig:
    """VoiceChat configuration loader."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration loader.

        Args:
            config_path: Path to YAML config file. If None, built-in defaults
                        are used and relative paths resolve against the
                        current directory.
        """
        if config_path is None:
            self.config_file = None
            self.config = copy.deepcopy(DEFAULTS)
            self._resolve_paths(self.config, Path.cwd())
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
            raise ConfigError(f"Invalid YAML in configuration file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load configuration: {e}") from e

        if not loaded:
            raise ConfigError("Configuration file is empty")
        if not isinstance(loaded, dict):
            raise ConfigError("Configuration file must contain a mapping")

        config = _merge(DEFAULTS, loaded)

        # Resolve relative paths
        self._resolve_paths(config, self.config_file.parent)

        logger.info("Configuration loaded successfully")
        return config

    def _resolve_paths(self, config: Dict[str, Any], config_dir: Path) -> None:
        """Resolve relative paths in configuration relative to config file location."""
        # Resolve log file path
        log_path = config['logging'].get('file_path')
        if log_path and not os.path.isabs(log_path):
            config['logging']['file_path'] = str(config_dir / log_path)

        # Resolve .env file holding the API key
        env_file = config['upstream'].get('env_file')
        if env_file and not os.path.isabs(env_file):
            config['upstream']['env_file'] = str(config_dir / env_file)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation (e.g., 'server.port').

        Args:
            key_path: Dot-separated key path (e.g., 'dictation.language')
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
            key_path: Dot-separated path to config value (e.g., 'server.port')
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

    def get_restart_delay(self) -> float:
        """Get the dictation auto-restart delay in seconds."""
        return float(self.get('dictation.restart_delay_ms', 150)) / 1000.0

    def get_env_file(self) -> Optional[Path]:
        """Get the .env file consulted when the API key is not in the environment."""
        env_file = self.get('upstream.env_file')
        return Path(env_file) if env_file else None
