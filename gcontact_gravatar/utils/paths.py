"""
Path utilities for configuration directory resolution.

Provides consistent path resolution for the gcontact-gravatar configuration
directory across all modules.
"""

from __future__ import annotations

import os
from pathlib import Path

# Default configuration directory
DEFAULT_CONFIG_DIR = Path.home() / ".gcontact-gravatar"

# Environment variable for overriding config directory
CONFIG_DIR_ENV_VAR = "GCONTACT_GRAVATAR_CONFIG_DIR"

# Default avatar cache database name inside the config directory
DEFAULT_CACHE_FILE = "avatar_cache.db"


def resolve_config_dir(config_dir: Path | str | None = None) -> Path:
    """
    Resolve the configuration directory path.

    Priority:
        1. Explicit config_dir parameter (if provided)
        2. GCONTACT_GRAVATAR_CONFIG_DIR environment variable
        3. Default directory (~/.gcontact-gravatar)

    Args:
        config_dir: Optional explicit configuration directory path.
                   Can be a Path object or string.

    Returns:
        Resolved Path to the configuration directory (expanduser and resolve applied)
    """
    if config_dir is not None:
        return Path(config_dir).expanduser().resolve()

    env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
    if env_dir:
        return Path(env_dir).expanduser().resolve()

    return DEFAULT_CONFIG_DIR.expanduser().resolve()


def default_cache_path(config_dir: Path | str | None = None) -> Path:
    """Return the avatar cache database path inside the config directory."""
    return resolve_config_dir(config_dir) / DEFAULT_CACHE_FILE
