"""Default plan action for each revision, decided from topology only."""

from collections.abc import Set
from pathlib import Path

from git_flatten.core.git.abc import Git, Revision
from git_flatten.core.plan_store import PlanAction


def is_merge(git: Git, repo_root: Path, revision: Revision) -> bool:
    """Treat a revision as a merge if it has several parents or no patch identity."""
    if revision.is_merge:
        return True
    return not git.has_patch_id(repo_root, revision.sha)


def parents_covered_by(
    git: Git, repo_root: Path, revision: Revision, squash: Set[str]
) -> bool:
    """Check that every parent lives on at least one branch of the squash set."""
    if not squash or not revision.parents:
        return False
    for parent in revision.parents:
        containing = set(git.list_branches_containing(repo_root, parent))
        if not containing & squash:
            return False
    return True


def classify(git: Git, repo_root: Path, revision: Revision, squash: Set[str]) -> PlanAction:
    """Return the default action for a revision.

    Ordinary commits are folded into the next picked commit. A merge stays
    visible as its own pick unless all of its parents come from squash
    branches, in which case it is absorbed too. Commit messages are never
    consulted.
    """
    if not is_merge(git, repo_root, revision):
        return PlanAction.SQUASH
    if parents_covered_by(git, repo_root, revision, squash):
        return PlanAction.SQUASH
    return PlanAction.PICK
