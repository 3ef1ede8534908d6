"""CLI package for gcontact_gravatar."""

from gcontact_gravatar.cli.formatters import (
    show_cache_stats,
    show_captcha_instructions,
    show_sync_summary,
)
from gcontact_gravatar.cli.main import (
    DEFAULT_CONFIG_FILE,
    build_config,
    cli,
    get_config_dir,
)
from gcontact_gravatar.utils import DEFAULT_CONFIG_DIR

__all__ = [
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "build_config",
    "cli",
    "get_config_dir",
    "show_cache_stats",
    "show_captcha_instructions",
    "show_sync_summary",
]
