"""API key lookup: process environment first, then a local .env file."""

import logging
import os
from pathlib import Path
from typing import Optional

from ..errors import CredentialMissing

logger = logging.getLogger(__name__)


def read_env_file_value(env_file: Path, key: str) -> Optional[str]:
    """Return KEY's value from a KEY=value file, or None."""
    if not env_file.exists():
        return None
    with env_file.open("r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue
            name, _, value = line.partition("=")
            if name.strip() == key:
                return value.strip().strip('"').strip("'") or None
    return None


def load_api_key(env_var: str = "OPENAI_API_KEY", env_file: Optional[Path] = None) -> str:
    """Find the completion provider's API key.

    Args:
        env_var: Environment variable (and .env key) holding the key
        env_file: Optional .env file consulted when the variable is unset

    Returns:
        The API key

    Raises:
        CredentialMissing: Neither source provides a key
    """
    value = os.getenv(env_var)
    if value:
        return value

    if env_file is not None:
        try:
            value = read_env_file_value(env_file, env_var)
        except OSError as e:
            logger.warning(f"Could not read {env_file}: {e}")
            value = None
        if value:
            logger.debug(f"{env_var} loaded from {env_file}")
            return value

    raise CredentialMissing("API key not configured")
