"""Tests for progress markers and per-branch Boundary pointers."""

from pathlib import Path

import pytest

from git_flatten.core.errors import ReferenceNotFound
from git_flatten.core.progress_store import (
    BoundaryStore,
    MarkerFile,
    boundary_store,
    in_flight_marker,
    last_applied_marker,
)
from tests.fakes.git import FakeGit
from tests.test_utils.history import rev, sha_of


def test_marker_absent_reads_as_none(tmp_path: Path) -> None:
    assert MarkerFile(tmp_path / "FLATTEN_LAST").read() is None


def test_marker_write_read_delete(tmp_path: Path) -> None:
    marker = last_applied_marker(tmp_path)

    marker.write(sha_of("a"))
    assert marker.path == tmp_path / "FLATTEN_LAST"
    assert marker.path.read_text(encoding="utf-8") == f"{sha_of('a')}\n"
    assert marker.read() == sha_of("a")

    marker.delete()
    marker.delete()
    assert marker.read() is None


def test_blank_marker_reads_as_none(tmp_path: Path) -> None:
    marker = in_flight_marker(tmp_path)
    marker.path.write_text("\n", encoding="utf-8")

    assert marker.read() is None


def test_boundary_path_nests_branch_with_slashes(tmp_path: Path) -> None:
    store = boundary_store(tmp_path)

    store.write("team/feature", sha_of("a"))

    path = tmp_path / "refs" / "flattenorig" / "team" / "feature"
    assert store.path_for("team/feature") == path
    assert path.read_text(encoding="utf-8") == f"{sha_of('a')}\n"
    assert store.read("team/feature") == sha_of("a")
    assert store.read("team") is None


def test_boundary_is_per_branch(tmp_path: Path) -> None:
    store = BoundaryStore(tmp_path / "refs" / "flattenorig")
    store.write("main", sha_of("a"))
    store.write("release", sha_of("b"))

    assert store.read("main") == sha_of("a")
    assert store.read("release") == sha_of("b")

    store.delete("main")
    assert store.read("main") is None
    assert store.read("release") == sha_of("b")


def test_read_or_initialize_records_merge_base_once(tmp_path: Path) -> None:
    git = FakeGit(
        revisions=[rev("base"), rev("m", "base"), rev("a", "base")],
        refs={"main": sha_of("m"), "feature": sha_of("a")},
    )
    store = boundary_store(tmp_path)

    first = store.read_or_initialize("main", git, tmp_path, "feature")
    assert first == sha_of("base")
    assert store.read("main") == sha_of("base")

    store.write("main", sha_of("a"))
    assert store.read_or_initialize("main", git, tmp_path, "feature") == sha_of("a")


def test_read_or_initialize_fails_without_common_history(tmp_path: Path) -> None:
    git = FakeGit(
        revisions=[rev("m"), rev("x")],
        refs={"main": sha_of("m"), "orphan": sha_of("x")},
    )
    store = boundary_store(tmp_path)

    with pytest.raises(ReferenceNotFound, match="no common ancestor") as exc_info:
        store.read_or_initialize("main", git, tmp_path, "orphan")

    assert exc_info.value.ref == "orphan"
    assert store.read("main") is None
