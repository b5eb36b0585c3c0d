"""Durable progress state for a flatten run.

Two kinds of single-line files live in the git directory:

- the Boundary, one per branch under refs/flattenorig/<branch>, recording the
  original-history commit past which rewriting begins;
- the progress markers FLATTEN_LAST (last applied plan entry) and FLATTEN_TMP
  (entry whose merge/commit was started but not finished).

Absence of a marker is meaningful ("no run in progress"), never an error.
"""

import logging
from pathlib import Path

from git_flatten.core.atomic_write import atomic_write_text
from git_flatten.core.errors import ReferenceNotFound
from git_flatten.core.git.abc import Git

logger = logging.getLogger(__name__)

BOUNDARY_REFS_DIR = Path("refs") / "flattenorig"
LAST_APPLIED_FILE = "FLATTEN_LAST"
IN_FLIGHT_FILE = "FLATTEN_TMP"


def _read_first_line(path: Path) -> str | None:
    if not path.exists():
        return None
    lines = path.read_text(encoding="utf-8").splitlines()
    if not lines or not lines[0].strip():
        return None
    return lines[0].strip()


class MarkerFile:
    """A single revision id persisted in one file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> str | None:
        return _read_first_line(self.path)

    def write(self, sha: str) -> None:
        atomic_write_text(self.path, f"{sha}\n")

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


class BoundaryStore:
    """Per-branch Boundary pointers stored as loose refs.

    Because the files live under <git-dir>/refs/, git itself resolves them as
    refs/flattenorig/<branch>.
    """

    def __init__(self, refs_dir: Path) -> None:
        self.refs_dir = refs_dir

    def path_for(self, branch: str) -> Path:
        # Branch names with slashes map onto nested directories, like git refs
        return self.refs_dir.joinpath(*branch.split("/"))

    def read(self, branch: str) -> str | None:
        return _read_first_line(self.path_for(branch))

    def write(self, branch: str, sha: str) -> None:
        logger.debug("Boundary for %s -> %s", branch, sha)
        atomic_write_text(self.path_for(branch), f"{sha}\n")

    def delete(self, branch: str) -> None:
        self.path_for(branch).unlink(missing_ok=True)

    def read_or_initialize(self, branch: str, git: Git, repo_root: Path, target: str) -> str:
        """Return the Boundary, recording merge-base(HEAD, target) the first time.

        Raises:
            ReferenceNotFound: If HEAD and target share no history
        """
        existing = self.read(branch)
        if existing is not None:
            return existing

        base = git.get_merge_base(repo_root, "HEAD", target)
        if base is None:
            raise ReferenceNotFound(target, "no common ancestor with HEAD")

        self.write(branch, base)
        return base


def last_applied_marker(git_dir: Path) -> MarkerFile:
    return MarkerFile(git_dir / LAST_APPLIED_FILE)


def in_flight_marker(git_dir: Path) -> MarkerFile:
    return MarkerFile(git_dir / IN_FLIGHT_FILE)


def boundary_store(git_dir: Path) -> BoundaryStore:
    return BoundaryStore(git_dir / BOUNDARY_REFS_DIR)
