"""Printing Git wrapper for verbose output.

This module provides a Git wrapper that prints styled output for mutating
operations before delegating to the wrapped implementation.
"""

from pathlib import Path

import click

from git_flatten.cli.output import user_output
from git_flatten.core.git.abc import Git, Revision

# ============================================================================
# Printing Wrapper Implementation
# ============================================================================


class PrintingGit(Git):
    """Wrapper that prints operations before delegating to inner implementation.

    Usage:
        # For --verbose
        printing_ops = PrintingGit(RealGit())
    """

    def __init__(self, wrapped: Git) -> None:
        """Create a printing wrapper around a Git implementation.

        Args:
            wrapped: The Git implementation to wrap (usually RealGit or FakeGit)
        """
        self._wrapped = wrapped

    def _emit(self, command: str) -> None:
        user_output(click.style(f"  $ {command}", dim=True))

    # Read-only operations: delegate without printing

    def get_git_dir(self, cwd: Path) -> Path | None:
        """Get git directory (read-only, no printing)."""
        return self._wrapped.get_git_dir(cwd)

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get repository root (read-only, no printing)."""
        return self._wrapped.get_repository_root(cwd)

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get current branch (read-only, no printing)."""
        return self._wrapped.get_current_branch(cwd)

    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        """Resolve ref (read-only, no printing)."""
        return self._wrapped.resolve_ref(repo_root, ref)

    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        """Get merge base (read-only, no printing)."""
        return self._wrapped.get_merge_base(repo_root, ref_a, ref_b)

    def list_revisions(self, repo_root: Path, target: str, exclude: list[str]) -> list[str]:
        """List revisions (read-only, no printing)."""
        return self._wrapped.list_revisions(repo_root, target, exclude)

    def get_revision(self, repo_root: Path, sha: str) -> Revision:
        """Read commit (read-only, no printing)."""
        return self._wrapped.get_revision(repo_root, sha)

    def has_patch_id(self, repo_root: Path, sha: str) -> bool:
        """Probe patch id (read-only, no printing)."""
        return self._wrapped.has_patch_id(repo_root, sha)

    def list_branches_containing(self, repo_root: Path, sha: str) -> list[str]:
        """List containing branches (read-only, no printing)."""
        return self._wrapped.list_branches_containing(repo_root, sha)

    def has_staged_changes(self, repo_root: Path) -> bool:
        """Check for staged changes (read-only, no printing)."""
        return self._wrapped.has_staged_changes(repo_root)

    def get_config_value(self, repo_root: Path, key: str) -> str | None:
        """Read config value (read-only, no printing)."""
        return self._wrapped.get_config_value(repo_root, key)

    # Operations that need printing

    def merge_squash(self, repo_root: Path, sha: str) -> bool:
        """Squash-merge with printed output."""
        self._emit(f"git merge -q --squash {sha}")
        return self._wrapped.merge_squash(repo_root, sha)

    def commit_reusing_message(self, repo_root: Path, sha: str) -> bool:
        """Commit with printed output."""
        self._emit(f"git commit -q -C {sha}")
        return self._wrapped.commit_reusing_message(repo_root, sha)

    def discard_changes(self, repo_root: Path) -> None:
        """Reset with printed output."""
        self._emit("git reset -q --hard HEAD")
        self._wrapped.discard_changes(repo_root)
