"""
Entry point for running gcontact_gravatar as a module.

Usage:
    python -m gcontact_gravatar --help
    python -m gcontact_gravatar sync --email me@example.com
    python -m gcontact_gravatar cache info
"""

from gcontact_gravatar.cli import cli

if __name__ == "__main__":
    cli()
