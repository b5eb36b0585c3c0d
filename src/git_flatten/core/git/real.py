"""Production Git implementation using subprocess.

This module provides the real Git implementation that executes actual git
commands via subprocess.
"""

import logging
import subprocess
from pathlib import Path

from git_flatten.cli.output import user_output
from git_flatten.core.git.abc import Git, Revision
from git_flatten.core.subprocess import run_subprocess_with_context

logger = logging.getLogger(__name__)

# ============================================================================
# Production Implementation
# ============================================================================


class RealGit(Git):
    """Production implementation using subprocess.

    All git operations execute actual git commands via subprocess.
    """

    def get_git_dir(self, cwd: Path) -> Path | None:
        """Get the git metadata directory for the worktree at cwd."""
        result = subprocess.run(
            ["git", "rev-parse", "--git-dir"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        git_dir = Path(result.stdout.strip())
        if not git_dir.is_absolute():
            git_dir = cwd / git_dir

        return git_dir.resolve()

    def get_repository_root(self, cwd: Path) -> Path | None:
        """Get the top-level directory of the working tree."""
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return Path(result.stdout.strip()).resolve()

    def get_current_branch(self, cwd: Path) -> str | None:
        """Get the currently checked-out branch."""
        result = subprocess.run(
            ["git", "rev-parse", "--abbrev-ref", "HEAD"],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        branch = result.stdout.strip()
        if branch == "HEAD":
            return None

        return branch

    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        """Resolve a ref or abbreviated id to a full commit SHA."""
        result = subprocess.run(
            ["git", "rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return result.stdout.strip()

    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        """Get the best common ancestor of two refs."""
        result = subprocess.run(
            ["git", "merge-base", ref_a, ref_b],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            return None

        return result.stdout.strip() or None

    def list_revisions(self, repo_root: Path, target: str, exclude: list[str]) -> list[str]:
        """List commits reachable from target but not from excluded refs, oldest first."""
        cmd = ["git", "rev-list", "--reverse", "--topo-order", target]
        cmd.extend(f"^{ref}" for ref in exclude)
        logger.debug("Listing revisions: %s", " ".join(cmd))
        result = run_subprocess_with_context(
            cmd,
            operation_context=f"list revisions of '{target}'",
            cwd=repo_root,
        )
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    def get_revision(self, repo_root: Path, sha: str) -> Revision:
        """Read abbreviated id, one-line subject and parents of a commit."""
        result = run_subprocess_with_context(
            ["git", "log", "-1", "--format=%H%x00%h%x00%s%x00%P", sha],
            operation_context=f"read commit '{sha}'",
            cwd=repo_root,
            errors="replace",
        )
        full, abbrev, subject, parents = result.stdout.rstrip("\n").split("\x00")
        return Revision(
            sha=full,
            abbrev=abbrev,
            subject=subject,
            parents=tuple(parents.split()),
        )

    def has_patch_id(self, repo_root: Path, sha: str) -> bool:
        """Check whether git can compute a patch identity for the commit."""
        # Diffs may hold bytes that are not UTF-8; surrogateescape hands them
        # to patch-id unchanged
        shown = run_subprocess_with_context(
            ["git", "show", sha],
            operation_context=f"show commit '{sha}'",
            cwd=repo_root,
            errors="surrogateescape",
        )
        result = run_subprocess_with_context(
            ["git", "patch-id"],
            operation_context=f"compute patch id of '{sha}'",
            cwd=repo_root,
            input=shown.stdout,
            errors="surrogateescape",
        )
        return bool(result.stdout.strip())

    def list_branches_containing(self, repo_root: Path, sha: str) -> list[str]:
        """List local and remote-tracking branches containing the commit."""
        result = run_subprocess_with_context(
            ["git", "branch", "-a", "--contains", sha, "--format=%(refname:short)"],
            operation_context=f"list branches containing '{sha}'",
            cwd=repo_root,
        )
        branches = []
        for line in result.stdout.splitlines():
            name = line.strip()
            # Detached HEAD shows up as "(HEAD detached at ...)"
            if not name or name.startswith("("):
                continue
            branches.append(name)
        return branches

    def merge_squash(self, repo_root: Path, sha: str) -> bool:
        """Apply the changes of a commit as a squashed merge into the working tree."""
        return self._run_reporting_failure(
            ["git", "merge", "-q", "--squash", sha], repo_root=repo_root
        )

    def commit_reusing_message(self, repo_root: Path, sha: str) -> bool:
        """Commit the index re-using the message and authorship of another commit."""
        return self._run_reporting_failure(["git", "commit", "-q", "-C", sha], repo_root=repo_root)

    def has_staged_changes(self, repo_root: Path) -> bool:
        """Check if the repository has staged changes."""
        result = subprocess.run(
            ["git", "diff", "--cached", "--quiet"],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode in (0, 1):
            return result.returncode == 1
        result.check_returncode()
        return False

    def discard_changes(self, repo_root: Path) -> None:
        """Reset index and working tree to HEAD."""
        run_subprocess_with_context(
            ["git", "reset", "-q", "--hard", "HEAD"],
            operation_context="discard working tree changes",
            cwd=repo_root,
        )

    def get_config_value(self, repo_root: Path, key: str) -> str | None:
        """Read a git config value."""
        result = subprocess.run(
            ["git", "config", "--get", key],
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,  # LBYL: check return code after
        )
        if result.returncode != 0:
            return None

        value = result.stdout.strip()
        return value or None

    def _run_reporting_failure(self, cmd: list[str], *, repo_root: Path) -> bool:
        """Run a mutating command, echoing git's own output when it fails.

        Conflicts are an expected outcome of merge/commit, so a non-zero exit is
        reported as False rather than raised.
        """
        result = subprocess.run(
            cmd,
            cwd=repo_root,
            capture_output=True,
            text=True,
            check=False,
        )
        logger.debug("%s exited with %d", " ".join(cmd), result.returncode)
        if result.returncode == 0:
            return True

        for stream in (result.stdout, result.stderr):
            if stream.strip():
                user_output(stream.rstrip())
        return False
