"""
gcontact_gravatar.utils - Utility module

Common utilities including logging configuration.
"""

from gcontact_gravatar.utils.normalization import normalize_email
from gcontact_gravatar.utils.paths import DEFAULT_CONFIG_DIR, resolve_config_dir

__all__ = ["normalize_email", "resolve_config_dir", "DEFAULT_CONFIG_DIR"]
