"""
gcontact_gravatar.config - Configuration management module

Contains configuration loading, validation, and default settings.
"""

from gcontact_gravatar.config.loader import ConfigError, ConfigLoader
from gcontact_gravatar.config.settings import GravatarSyncConfig

__all__ = [
    "ConfigError",
    "ConfigLoader",
    "GravatarSyncConfig",
]
