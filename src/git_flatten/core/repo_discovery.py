"""Repository discovery functionality.

Discovers the repository root, git directory and checked-out branch once per
run so the engine never has to look them up again.
"""

from dataclasses import dataclass
from pathlib import Path

from git_flatten.core.git.abc import Git


@dataclass(frozen=True)
class RepoContext:
    """Represents a git working copy the flatten engine operates on."""

    root: Path
    git_dir: Path  # .git, or .git/worktrees/<name> for linked worktrees
    branch: str | None  # None on a detached HEAD


@dataclass(frozen=True)
class NoRepoSentinel:
    """Sentinel value indicating execution outside a git repository."""

    message: str = "Not inside a git repository"


def discover_repo_or_sentinel(cwd: Path, git: Git) -> RepoContext | NoRepoSentinel:
    """Locate the working copy containing cwd.

    Returns:
        RepoContext if inside a git working tree, NoRepoSentinel otherwise
    """
    git_dir = git.get_git_dir(cwd)
    if git_dir is None:
        return NoRepoSentinel()

    root = git.get_repository_root(cwd)
    if root is None:
        return NoRepoSentinel(message="Not inside a git working tree (bare repository?)")

    return RepoContext(root=root, git_dir=git_dir, branch=git.get_current_branch(cwd))
