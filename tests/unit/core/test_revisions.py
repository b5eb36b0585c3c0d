"""Tests for computing the revisions a flatten has to replay."""

from pathlib import Path

import pytest

from git_flatten.core.errors import ReferenceNotFound
from git_flatten.core.progress_store import boundary_store
from git_flatten.core.revisions import resolve_revisions, verify_refs
from tests.fakes.git import FakeGit
from tests.test_utils.history import repo_in, rev, sha_of


def _history() -> FakeGit:
    # base -- m                       (main)
    #     \
    #      a -- b -- c                (feature)
    #            \
    #             v                   (vendor)
    return FakeGit(
        revisions=[
            rev("base"),
            rev("f0", "base", subject="main work"),
            rev("a", "base"),
            rev("b", "a"),
            rev("c", "b"),
            rev("d0", "b", subject="vendor work"),
        ],
        refs={
            "main": sha_of("f0"),
            "feature": sha_of("c"),
            "vendor": sha_of("d0"),
            "v1.0": sha_of("a"),
        },
    )


def test_first_run_initializes_boundary_to_merge_base(tmp_path: Path) -> None:
    git = _history()
    repo = repo_in(tmp_path)
    boundaries = boundary_store(repo.git_dir)

    resolved = resolve_revisions(
        git, repo, "main", boundaries, target="feature", exclude_refs=(), squash=set()
    )

    assert resolved.boundary == sha_of("base")
    assert boundaries.read("main") == sha_of("base")
    assert [r.sha for r in resolved.revisions] == [sha_of("a"), sha_of("b"), sha_of("c")]
    assert resolved.revisions[0].subject == "Commit a"


def test_recorded_boundary_hides_already_flattened_history(tmp_path: Path) -> None:
    git = _history()
    repo = repo_in(tmp_path)
    boundaries = boundary_store(repo.git_dir)
    boundaries.write("main", sha_of("b"))

    resolved = resolve_revisions(
        git, repo, "main", boundaries, target="feature", exclude_refs=(), squash=set()
    )

    assert [r.sha for r in resolved.revisions] == [sha_of("c")]
    assert git.range_queries == [("feature", ["main", sha_of("b")])]


def test_extra_refs_and_squash_branches_are_excluded(tmp_path: Path) -> None:
    git = _history()
    repo = repo_in(tmp_path)

    resolved = resolve_revisions(
        git,
        repo,
        "main",
        boundary_store(repo.git_dir),
        target="feature",
        exclude_refs=("v1.0",),
        squash={"vendor"},
    )

    assert [r.sha for r in resolved.revisions] == [sha_of("c")]
    assert git.range_queries == [("feature", ["main", sha_of("base"), "v1.0", "vendor"])]


def test_unknown_target_fails_before_boundary_is_written(tmp_path: Path) -> None:
    git = _history()
    repo = repo_in(tmp_path)
    boundaries = boundary_store(repo.git_dir)

    with pytest.raises(ReferenceNotFound) as exc_info:
        resolve_revisions(
            git, repo, "main", boundaries, target="nope", exclude_refs=(), squash=set()
        )

    assert exc_info.value.ref == "nope"
    assert boundaries.read("main") is None
    assert git.range_queries == []


def test_unknown_squash_branch_is_reported(tmp_path: Path) -> None:
    git = _history()
    repo = repo_in(tmp_path)

    with pytest.raises(ReferenceNotFound, match="'gone' does not resolve"):
        resolve_revisions(
            git,
            repo,
            "main",
            boundary_store(repo.git_dir),
            target="feature",
            exclude_refs=(),
            squash={"gone"},
        )


def test_verify_refs_accepts_abbreviated_ids(tmp_path: Path) -> None:
    git = _history()

    verify_refs(git, repo_in(tmp_path), ["feature", sha_of("a")[:7], "HEAD"])
