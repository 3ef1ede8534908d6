"""
Run settings for a Gravatar photo sync.

GravatarSyncConfig is built once at startup from built-in defaults, the
YAML configuration file and command-line options (in increasing order of
precedence), then handed to the components that need it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from gcontact_gravatar.config.loader import ConfigError
from gcontact_gravatar.utils.paths import default_cache_path

# Maximum number of contacts requested from the feed
DEFAULT_MAX_RESULTS = 1000

# Gravatar "d" parameter; 404 makes Gravatar answer missing avatars with 404
DEFAULT_ICON = "404"

DEFAULT_GRAVATAR_BASE_URL = "https://www.gravatar.com/avatar/"
DEFAULT_FEED_BASE_URL = "https://www.google.com/m8/feeds/"

# HTTP timeout for every outbound request (seconds)
DEFAULT_REQUEST_TIMEOUT = 30.0

DEFAULT_LOG_RETENTION_COUNT = 10

logger = logging.getLogger(__name__)


@dataclass
class GravatarSyncConfig:
    """
    Settings for a single sync run.

    Attributes:
        email: Google account used to log in
        password: Google account password (never read from the config file)
        max_results: Upper bound on contacts fetched from the feed
        overwrite: Replace photos on contacts that already have one
        refresh: Bypass the avatar cache and look every address up again
        debug: Log per-email lookups and skip reasons
        verbose: Use the detailed log format
        captcha_token: Token from a previous CaptchaRequired response
        captcha: Operator's answer to that captcha
        default_icon: Gravatar "d" parameter selecting placeholder behavior
        avatar_size: Gravatar "s" parameter (pixels), None for Gravatar's default
        gravatar_base_url: Base URL avatar hashes are appended to
        feed_base_url: Base URL of the contacts feeds
        request_timeout: Timeout for every HTTP request, in seconds
        cache_path: SQLite avatar cache location (":memory:" for no persistence)
        cache_fetch_failures: Cache "no avatar" after transport/server errors
        placeholder_digests: MD5 digests of image bodies treated as "no avatar"
        log_dir: Directory for log files
        log_retention_count: Number of daily log files kept
    """

    email: str | None = None
    password: str | None = field(default=None, repr=False)
    max_results: int = DEFAULT_MAX_RESULTS
    overwrite: bool = False
    refresh: bool = False
    debug: bool = False
    verbose: bool = False
    captcha_token: str | None = None
    captcha: str | None = None
    default_icon: str = DEFAULT_ICON
    avatar_size: int | None = None
    gravatar_base_url: str = DEFAULT_GRAVATAR_BASE_URL
    feed_base_url: str = DEFAULT_FEED_BASE_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    cache_path: str = field(default_factory=lambda: str(default_cache_path()))
    cache_fetch_failures: bool = True
    placeholder_digests: list[str] = field(default_factory=list)
    log_dir: Path | None = None
    log_retention_count: int = DEFAULT_LOG_RETENTION_COUNT

    @classmethod
    def from_dict(
        cls, data: dict[str, Any] | None = None, **overrides: Any
    ) -> GravatarSyncConfig:
        """
        Build settings from a config-file dictionary plus overrides.

        Args:
            data: Values loaded from the YAML configuration file. Unknown keys
                  are ignored; "password" is refused.
            **overrides: Values from the command line. None means "not given"
                         and leaves the file or default value in place.

        Returns:
            GravatarSyncConfig instance

        Raises:
            ConfigError: If the file tries to supply the password
        """
        data = dict(data or {})
        if "password" in data:
            raise ConfigError(
                "Refusing to read 'password' from the configuration file; "
                "use --password or GCONTACT_GRAVATAR_PASSWORD"
            )

        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        values.update({k: v for k, v in overrides.items() if v is not None})

        if values.get("log_dir") is not None:
            values["log_dir"] = Path(values["log_dir"]).expanduser()
        if values.get("cache_path") is not None:
            values["cache_path"] = str(Path(values["cache_path"]).expanduser())
        if "placeholder_digests" in values:
            values["placeholder_digests"] = [
                d.lower() for d in values["placeholder_digests"]
            ]

        return cls(**values)

    @property
    def has_captcha_response(self) -> bool:
        """True when both halves of a captcha answer were supplied."""
        return bool(self.captcha_token and self.captcha)

    def validate(self) -> None:
        """
        Check the settings before any network call is made.

        Raises:
            ConfigError: If the settings cannot produce a valid run
        """
        if not self.email:
            raise ConfigError("An account email address is required")
        if not self.password:
            raise ConfigError("An account password is required")
        if bool(self.captcha_token) != bool(self.captcha):
            raise ConfigError(
                "You must give both the --captcha and --captcha-token options "
                "together."
            )
        if self.max_results < 1:
            raise ConfigError(f"max_results must be >= 1, got {self.max_results}")
        if self.avatar_size is not None and self.avatar_size < 1:
            raise ConfigError(f"avatar_size must be >= 1, got {self.avatar_size}")
        if self.request_timeout <= 0:
            raise ConfigError(
                f"request_timeout must be > 0, got {self.request_timeout}"
            )
