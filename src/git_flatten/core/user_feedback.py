"""User-facing diagnostic output."""

from abc import ABC, abstractmethod

import click

from git_flatten.cli.output import user_output


class UserFeedback(ABC):
    """Provides user-facing progress output for a flatten run.

    The engine reports through ctx.feedback so tests can capture messages
    without parsing stderr.

    Usage:
        ctx.feedback.info("Squashing 1a2b3c4 Fix typo")
        ctx.feedback.success("Flatten complete")
        ctx.feedback.error("Could not apply 5d6e7f8")
    """

    @abstractmethod
    def info(self, message: str) -> None:
        """Show informational message."""

    @abstractmethod
    def success(self, message: str) -> None:
        """Show success message."""

    @abstractmethod
    def error(self, message: str) -> None:
        """Show error message."""


class InteractiveFeedback(UserFeedback):
    """Feedback written to stderr with styling."""

    def info(self, message: str) -> None:
        """Show informational message."""
        user_output(message)

    def success(self, message: str) -> None:
        """Show success message in green."""
        user_output(click.style(message, fg="green"))

    def error(self, message: str) -> None:
        """Show error message in red."""
        user_output(click.style(message, fg="red"))
