"""CLI output formatting functions.

This module contains functions for displaying sync reports, CAPTCHA
instructions and cache statistics on the command line.
"""

from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from gcontact_gravatar.auth.client_login import CaptchaChallenge
    from gcontact_gravatar.sync.engine import SyncReport

# Maximum number of failed contacts listed individually
MAX_LISTED_FAILURES = 10


def show_sync_summary(report: "SyncReport") -> None:
    """
    Display the outcome counts of a completed run.

    Args:
        report: Report returned by SyncOrchestrator.run()
    """
    stats = report.stats
    click.echo("\n=== Sync Summary ===")
    click.echo(f"Contacts processed:     {stats.contacts_total}")
    click.echo(click.style(f"Photos updated:         {stats.updated}", fg="green"))
    click.echo(f"Skipped (has photo):    {stats.skipped_has_photo}")
    click.echo(f"Skipped (no Gravatar):  {stats.skipped_no_avatar}")
    click.echo(f"Skipped (no email):     {stats.skipped_no_email}")
    if stats.failed:
        click.echo(click.style(f"Failed:                 {stats.failed}", fg="yellow"))
        show_failures(report)
    else:
        click.echo("Failed:                 0")


def show_failures(report: "SyncReport") -> None:
    """
    List contacts whose photo could not be updated.

    Args:
        report: Report returned by SyncOrchestrator.run()
    """
    failures = report.failures
    click.echo("\nContacts not updated:")
    for outcome in failures[:MAX_LISTED_FAILURES]:
        detail = f" ({outcome.detail})" if outcome.detail else ""
        click.echo(f"  ! {outcome.email or outcome.contact_id}: {outcome.reason}{detail}")
    if len(failures) > MAX_LISTED_FAILURES:
        click.echo(f"  ... and {len(failures) - MAX_LISTED_FAILURES} more")


def show_captcha_instructions(challenge: "CaptchaChallenge") -> None:
    """
    Tell the operator how to answer a CAPTCHA challenge.

    Args:
        challenge: Challenge from the failed login
    """
    click.echo(click.style("CAPTCHA is required.", fg="yellow"), err=True)
    click.echo(f"Visit {challenge.captcha_url}", err=True)
    click.echo(
        f"Run again with --captcha-token {challenge.captcha_token} "
        f"--captcha <captcha-answer>",
        err=True,
    )


def show_cache_stats(cache_path: str, stats: dict[str, int]) -> None:
    """
    Display avatar cache entry counts.

    Args:
        cache_path: Location of the cache database
        stats: Counts from AvatarCacheStore.get_stats()
    """
    click.echo("=== Avatar Cache ===\n")
    click.echo(f"Location:         {cache_path}")
    click.echo(f"Cached addresses: {stats['total']}")
    click.echo(f"  with Gravatar:  {stats['present']}")
    click.echo(f"  without:        {stats['absent']}")
