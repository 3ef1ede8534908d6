"""
Command-line interface for gcontact_gravatar.

Provides CLI commands for pushing Gravatar images into Google Contacts
photos and for inspecting the avatar lookup cache.

Usage:
    # Show help
    gcontact-gravatar --help

    # Fill in missing contact photos
    gcontact-gravatar sync --email me@example.com

    # Replace every photo, ignoring cached lookups
    gcontact-gravatar sync --email me@example.com --overwrite --refresh

    # Answer a CAPTCHA challenge from a previous run
    gcontact-gravatar sync --email me@example.com \\
        --captcha-token TOKEN --captcha ANSWER

    # Inspect or wipe the avatar cache
    gcontact-gravatar cache info
    gcontact-gravatar cache clear
"""

import logging
import sqlite3
import sys
from pathlib import Path
from typing import Any

import click

from gcontact_gravatar import __version__
from gcontact_gravatar.auth.client_login import ClientLoginAuth
from gcontact_gravatar.cli.formatters import (
    show_cache_stats,
    show_captcha_instructions,
    show_sync_summary,
)
from gcontact_gravatar.config.loader import ConfigError, ConfigLoader
from gcontact_gravatar.config.settings import GravatarSyncConfig
from gcontact_gravatar.storage.cache import AvatarCacheStore
from gcontact_gravatar.sync.avatar import AvatarResolver
from gcontact_gravatar.sync.engine import SyncOrchestrator
from gcontact_gravatar.utils import DEFAULT_CONFIG_DIR, resolve_config_dir
from gcontact_gravatar.utils.logging import (
    cleanup_old_logs,
    get_logger,
    set_log_level,
    setup_logging,
)
from gcontact_gravatar.utils.paths import DEFAULT_CACHE_FILE

# Default configuration file
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"


def get_config_dir(config_dir: str | None) -> Path:
    """Get the configuration directory path."""
    return resolve_config_dir(config_dir)


def get_config_file(config_file: str | None, config_dir: Path) -> Path:
    """Get the configuration file path."""
    if config_file:
        return Path(config_file)
    return config_dir / "config.yaml"


def build_config(
    file_config: dict[str, Any], config_dir: Path, **cli_values: Any
) -> GravatarSyncConfig:
    """
    Merge config file values and command-line values into run settings.

    Command-line values of None mean "not given" and leave the file value
    in place. The cache defaults to avatar_cache.db in the config directory.

    Raises:
        ConfigError: If the merged settings are invalid
    """
    if "cache_path" not in file_config and cli_values.get("cache_path") is None:
        cli_values["cache_path"] = str(config_dir / DEFAULT_CACHE_FILE)
    return GravatarSyncConfig.from_dict(file_config, **cli_values)


@click.group()
@click.version_option(version=__version__, prog_name="gcontact-gravatar")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose output with detailed logging."
)
@click.option(
    "--config-dir",
    "-c",
    type=click.Path(exists=False, file_okay=False, dir_okay=True),
    envvar="GCONTACT_GRAVATAR_CONFIG_DIR",
    help="Configuration directory path (default: ~/.gcontact-gravatar).",
)
@click.option(
    "--config-file",
    "-f",
    type=click.Path(exists=False, file_okay=True, dir_okay=False),
    envvar="GCONTACT_GRAVATAR_CONFIG_FILE",
    help="Configuration file path (default: <config-dir>/config.yaml).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    config_dir: str | None,
    config_file: str | None,
) -> None:
    """
    Gravatar photos for Google Contacts.

    Looks up the Gravatar of every email address in your Google Contacts
    and uses the first one found as the contact's photo.
    """
    ctx.ensure_object(dict)

    resolved_config_dir = get_config_dir(config_dir)
    resolved_config_file = get_config_file(config_file, resolved_config_dir)

    ctx.obj["config_dir"] = resolved_config_dir
    ctx.obj["config_file"] = resolved_config_file

    config: dict[str, Any] = {}
    try:
        loader = ConfigLoader(
            config_dir=resolved_config_file.parent,
            config_file=resolved_config_file.name,
        )
        config = loader.load_and_validate()
    except ConfigError as e:
        click.echo(click.style(f"Error: Configuration error: {e}", fg="red"), err=True)
        sys.exit(1)

    ctx.obj["config"] = config

    # CLI flag takes precedence over config file
    effective_verbose = verbose or config.get("verbose", False)
    ctx.obj["verbose"] = effective_verbose

    log_dir = Path(config["log_dir"]).expanduser() if config.get("log_dir") else None
    if log_dir is None:
        log_dir = resolved_config_dir / "logs"

    setup_logging(
        verbose=effective_verbose,
        debug=config.get("debug", False),
        log_dir=log_dir,
        enable_file_logging=True,
    )

    log_retention = config.get("log_retention_count", 10)
    if log_retention > 0:
        cleanup_old_logs(log_dir=log_dir, keep_count=log_retention)


# =============================================================================
# Sync Command
# =============================================================================


@cli.command("sync")
@click.option(
    "--email",
    "-e",
    envvar="GCONTACT_GRAVATAR_EMAIL",
    help="Google account email address.",
)
@click.option(
    "--password",
    "-p",
    envvar="GCONTACT_GRAVATAR_PASSWORD",
    prompt=True,
    hide_input=True,
    help="Google account password (prompted for when not given).",
)
@click.option(
    "--max-results",
    "-m",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of contacts to fetch (default: 1000).",
)
@click.option(
    "--overwrite", is_flag=True, help="Replace photos contacts already have."
)
@click.option(
    "--refresh", is_flag=True, help="Ignore cached lookups and query Gravatar again."
)
@click.option(
    "--debug",
    "-d",
    is_flag=True,
    help="Show debug output for every contact and email lookup.",
)
@click.option(
    "--captcha-token",
    help="Token printed by a previous run that required a CAPTCHA.",
)
@click.option("--captcha", help="Your answer to that CAPTCHA.")
@click.option(
    "--default-icon",
    help="Gravatar default image selector (default: 404).",
)
@click.pass_context
def sync_command(
    ctx: click.Context,
    email: str | None,
    password: str,
    max_results: int | None,
    overwrite: bool,
    refresh: bool,
    debug: bool,
    captcha_token: str | None,
    captcha: str | None,
    default_icon: str | None,
) -> None:
    """
    Set contact photos from Gravatar.

    Contacts that already have a photo are left alone unless --overwrite
    is given. For each remaining contact, its email addresses are tried in
    order and the first Gravatar found becomes the contact's photo.
    Lookups are cached, including misses; use --refresh to query again.

    Examples:

        # Fill in missing photos
        gcontact-gravatar sync --email me@example.com

        # Replace all photos with fresh lookups
        gcontact-gravatar sync --email me@example.com --overwrite --refresh
    """
    logger = get_logger(__name__)
    config_dir = ctx.obj["config_dir"]

    try:
        config = build_config(
            ctx.obj.get("config", {}),
            config_dir,
            email=email,
            password=password,
            max_results=max_results,
            overwrite=overwrite or None,
            refresh=refresh or None,
            debug=debug or None,
            verbose=ctx.obj.get("verbose") or None,
            captcha_token=captcha_token,
            captcha=captcha,
            default_icon=default_icon,
        )
        config.validate()
    except ConfigError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    if config.debug:
        set_log_level(logging.DEBUG)

    cache = AvatarCacheStore(config.cache_path)
    try:
        cache.initialize()
    except (OSError, sqlite3.Error) as e:
        logger.error(f"Cannot open avatar cache {config.cache_path}: {e}")
        click.echo(click.style(f"Error: cannot open avatar cache: {e}", fg="red"), err=True)
        sys.exit(1)

    try:
        resolver = AvatarResolver(
            cache,
            default_icon=config.default_icon,
            size=config.avatar_size,
            base_url=config.gravatar_base_url,
            timeout=config.request_timeout,
            placeholder_digests=config.placeholder_digests,
            cache_fetch_failures=config.cache_fetch_failures,
        )
        orchestrator = SyncOrchestrator(
            config,
            ClientLoginAuth(timeout=config.request_timeout),
            resolver,
        )

        click.echo(f"Syncing Gravatar photos for {config.email}...")
        report = orchestrator.run()
    finally:
        cache.close()

    if report.challenge is not None:
        show_captcha_instructions(report.challenge)
        sys.exit(1)

    if report.aborted:
        click.echo(click.style(f"Sync failed: {report.error}", fg="red"), err=True)
        sys.exit(1)

    show_sync_summary(report)
    click.echo(click.style("\nSync completed.", fg="green"))


# =============================================================================
# Cache Commands
# =============================================================================


def _open_cache(ctx: click.Context) -> AvatarCacheStore:
    config = ctx.obj.get("config", {})
    cache_path = config.get("cache_path") or str(ctx.obj["config_dir"] / DEFAULT_CACHE_FILE)
    cache = AvatarCacheStore(str(Path(cache_path).expanduser()))
    try:
        cache.initialize()
    except (OSError, sqlite3.Error) as e:
        click.echo(click.style(f"Error: cannot open avatar cache: {e}", fg="red"), err=True)
        sys.exit(1)
    return cache


@cli.group("cache")
def cache_group() -> None:
    """Inspect or reset the avatar lookup cache."""


@cache_group.command("info")
@click.pass_context
def cache_info_command(ctx: click.Context) -> None:
    """
    Show how many addresses are cached.

    Example:

        gcontact-gravatar cache info
    """
    cache = _open_cache(ctx)
    try:
        show_cache_stats(cache.db_path, cache.get_stats())
    finally:
        cache.close()


@cache_group.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def cache_clear_command(ctx: click.Context, yes: bool) -> None:
    """
    Forget every cached lookup.

    The next sync queries Gravatar for every address again.

    Example:

        gcontact-gravatar cache clear --yes
    """
    if not yes and not click.confirm("Remove all cached avatar lookups?"):
        click.echo("Aborted.")
        return

    cache = _open_cache(ctx)
    try:
        removed = cache.clear()
    finally:
        cache.close()

    get_logger(__name__).info(f"Cleared {removed} cached avatar lookups")
    click.echo(click.style(f"Removed {removed} cached lookups.", fg="green"))
