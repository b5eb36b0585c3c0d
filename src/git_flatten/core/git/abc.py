"""High-level git operations interface.

This module provides a clean abstraction over the git subprocess calls the
flatten engine needs, making the engine testable against an in-memory fake.

Architecture:
- Git: Abstract base class defining the interface
- RealGit: Production implementation using subprocess
- PrintingGit: Wrapper echoing mutating commands before delegating
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Revision:
    """A commit read from history.

    Revisions are never mutated; the engine only reads them and replays their
    changes onto the current branch.
    """

    sha: str
    abbrev: str
    subject: str
    parents: tuple[str, ...]

    @property
    def is_merge(self) -> bool:
        """True when the commit has more than one parent."""
        return len(self.parents) > 1


# ============================================================================
# Abstract Interface
# ============================================================================


class Git(ABC):
    """Abstract interface for git operations.

    All implementations (real and fake) must implement this interface.
    This interface contains ONLY runtime operations - no test setup methods.
    """

    @abstractmethod
    def get_git_dir(self, cwd: Path) -> Path | None:
        """Get the git metadata directory for the worktree at cwd.

        Returns:
            Absolute path to the git directory, or None outside a repository
        """
        ...

    @abstractmethod
    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the working tree, or None."""
        ...

    @abstractmethod
    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch, or None on a detached HEAD."""
        ...

    @abstractmethod
    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref or abbreviated id to a full commit SHA.

        Args:
            repo_root: Path to the repository root
            ref: Any commit-ish (branch, tag, abbreviated id, HEAD~2, ...)

        Returns:
            Full commit SHA, or None if the ref does not name a commit
        """
        ...

    @abstractmethod
    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        """Get the best common ancestor of two refs, or None if unrelated."""
        ...

    @abstractmethod
    def list_revisions(self, repo_root: Path, target: str, exclude: list[str]) -> list[str]:
        """List commits reachable from target but not from any excluded ref.

        Args:
            repo_root: Path to the repository root
            target: Ref whose history is listed
            exclude: Refs whose history is subtracted from the listing

        Returns:
            Full commit SHAs, oldest first (topological order)
        """
        ...

    @abstractmethod
    def get_revision(self, repo_root: Path, sha: str) -> Revision:
        """Read abbreviated id, one-line subject and parents of a commit."""
        ...

    @abstractmethod
    def has_patch_id(self, repo_root: Path, sha: str) -> bool:
        """Check whether git can compute a patch identity for the commit.

        Merge commits (and anything else git cannot express as a single-parent
        patch) produce no patch id.
        """
        ...

    @abstractmethod
    def list_branches_containing(self, repo_root: Path, sha: str) -> list[str]:
        """List local and remote-tracking branches containing the commit.

        Returns:
            Short branch names, e.g. 'main' and 'origin/main'
        """
        ...

    @abstractmethod
    def merge_squash(self, repo_root: Path, sha: str) -> bool:
        """Apply the changes of a commit as a squashed merge into the working tree.

        Returns:
            True on success, False on conflict or any other non-zero exit
        """
        ...

    @abstractmethod
    def commit_reusing_message(self, repo_root: Path, sha: str) -> bool:
        """Commit the index re-using the message and authorship of another commit.

        Returns:
            True on success, False on a non-zero exit
        """
        ...

    @abstractmethod
    def has_staged_changes(self, repo_root: Path) -> bool:
        """Check if the repository has staged changes."""
        ...

    @abstractmethod
    def discard_changes(self, repo_root: Path) -> None:
        """Reset index and working tree to HEAD, dropping any pending merge."""
        ...

    @abstractmethod
    def get_config_value(self, repo_root: Path, key: str) -> str | None:
        """Read a git config value, or None if it is not set."""
        ...
