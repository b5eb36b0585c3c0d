"""Computes the commits a flatten run has to replay."""

import logging
from collections.abc import Sequence, Set
from dataclasses import dataclass

from git_flatten.core.errors import ReferenceNotFound
from git_flatten.core.git.abc import Git, Revision
from git_flatten.core.progress_store import BoundaryStore
from git_flatten.core.repo_discovery import RepoContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedRange:
    """Revisions to flatten, oldest first, and the Boundary they start from."""

    boundary: str
    revisions: list[Revision]


def verify_refs(git: Git, repo: RepoContext, refs: Sequence[str]) -> None:
    """Fail before any state is touched if one of the refs is unknown.

    Raises:
        ReferenceNotFound: For the first ref that does not name a commit
    """
    for ref in refs:
        if git.resolve_ref(repo.root, ref) is None:
            raise ReferenceNotFound(ref)


def resolve_revisions(
    git: Git,
    repo: RepoContext,
    branch: str,
    boundaries: BoundaryStore,
    *,
    target: str,
    exclude_refs: Sequence[str],
    squash: Set[str],
) -> ResolvedRange:
    """List revisions reachable from target that still need flattening.

    Excludes everything reachable from the current branch, from the recorded
    Boundary, from the extra refs and from the squash branches. The Boundary
    is initialized to merge-base(HEAD, target) the first time a branch is
    flattened; that is the only state this function writes.

    Raises:
        ReferenceNotFound: If target, an excluded ref or a squash branch is unknown
    """
    squash_refs = sorted(squash)
    verify_refs(git, repo, [target, *exclude_refs, *squash_refs])

    boundary = boundaries.read_or_initialize(branch, git, repo.root, target)
    exclude = [branch, boundary, *exclude_refs, *squash_refs]
    logger.debug("Resolving %s excluding %s", target, exclude)

    shas = git.list_revisions(repo.root, target, exclude)
    return ResolvedRange(
        boundary=boundary,
        revisions=[git.get_revision(repo.root, sha) for sha in shas],
    )
