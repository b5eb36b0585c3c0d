"""Output utilities for CLI commands with clear intent.

user_output() is for everything the operator reads: progress, hints, errors.
It always writes to stderr so stdout stays free for machine consumption.
"""

from typing import Any

import click


def user_output(message: Any = "", nl: bool = True) -> None:
    """Write an operator-facing message to stderr."""
    click.echo(message, nl=nl, err=True)


def format_revision_line(abbrev: str, text: str) -> str:
    """Format a plan entry the way progress messages refer to it."""
    if not text:
        return abbrev
    return f"{abbrev} {text}"
