"""Fake implementation of Git for testing.

History is modelled as a small in-memory commit graph so that range listing,
merge bases and branch containment behave like the real thing.
"""

from pathlib import Path

from git_flatten.core.git.abc import Git, Revision


class FakeGit(Git):
    """In-memory fake implementation of git operations.

    Constructor Injection:
    - All state is provided via constructor parameters
    - Mutating operations only touch the staged flag and the call records

    Examples:
        >>> base = Revision(sha="b" * 40, abbrev="bbbbbbb", subject="base", parents=())
        >>> tip = Revision(sha="c" * 40, abbrev="ccccccc", subject="tip", parents=(base.sha,))
        >>> git = FakeGit(revisions=[base, tip], refs={"main": base.sha, "feature": tip.sha})
        >>> git.list_revisions(Path("/repo"), "feature", ["main"])
        ['cccccccccccccccccccccccccccccccccccccccc']
    """

    def __init__(
        self,
        *,
        git_dir: Path | None = None,
        repository_root: Path | None = None,
        current_branch: str | None = "main",
        revisions: list[Revision] | None = None,
        refs: dict[str, str] | None = None,
        without_patch_id: set[str] | None = None,
        merge_conflicts: set[str] | None = None,
        commit_failures: set[str] | None = None,
        staged_changes: bool = False,
        conflicts_leave_changes_staged: bool = True,
        discard_error: str | None = None,
        config_values: dict[str, str] | None = None,
    ) -> None:
        """Create FakeGit with pre-configured history.

        Args:
            git_dir: Returned from get_git_dir (None simulates "not a repository")
            repository_root: Returned from get_repository_root
            current_branch: Checked-out branch, None for a detached HEAD
            revisions: Every known commit, oldest first
            refs: Branch and tag names mapped to commit SHAs
            without_patch_id: Non-merge commits git cannot compute a patch id for
            merge_conflicts: Commits whose squash merge fails
            commit_failures: Commits whose commit step fails
            staged_changes: Initial state of the index
            conflicts_leave_changes_staged: False simulates an operator who resolves
                a conflict and commits it by hand before resuming
            discard_error: Message of the RuntimeError raised by discard_changes
            config_values: git config key/value pairs
        """
        self._git_dir = git_dir
        self._repository_root = repository_root
        self._current_branch = current_branch
        self._revisions = {rev.sha: rev for rev in revisions or []}
        self._order = [rev.sha for rev in revisions or []]
        self._refs = refs or {}
        self._without_patch_id = without_patch_id or set()
        self._merge_conflicts = merge_conflicts or set()
        self._commit_failures = commit_failures or set()
        self._staged = staged_changes
        self._conflicts_leave_changes_staged = conflicts_leave_changes_staged
        self._discard_error = discard_error
        self._config_values = config_values or {}

        self._merged: list[str] = []
        self._committed: list[str] = []
        self._discarded: list[Path] = []
        self._range_queries: list[tuple[str, list[str]]] = []
        self._containment_queries: list[str] = []

    def get_git_dir(self, cwd: Path) -> Path | None:
        return self._git_dir

    def get_repository_root(self, cwd: Path) -> Path | None:
        return self._repository_root

    def get_current_branch(self, cwd: Path) -> str | None:
        return self._current_branch

    def resolve_ref(self, repo_root: Path, ref: str) -> str | None:
        if ref == "HEAD" and self._current_branch is not None:
            ref = self._current_branch
        if ref in self._refs:
            return self._refs[ref]
        if ref in self._revisions:
            return ref
        if len(ref) < 4:
            return None
        matches = [sha for sha in self._order if sha.startswith(ref)]
        if len(matches) != 1:
            return None
        return matches[0]

    def get_merge_base(self, repo_root: Path, ref_a: str, ref_b: str) -> str | None:
        sha_a = self.resolve_ref(repo_root, ref_a)
        sha_b = self.resolve_ref(repo_root, ref_b)
        if sha_a is None or sha_b is None:
            return None
        common = self._reachable(sha_a) & self._reachable(sha_b)
        # Latest common ancestor in topological order
        for sha in reversed(self._order):
            if sha in common:
                return sha
        return None

    def list_revisions(self, repo_root: Path, target: str, exclude: list[str]) -> list[str]:
        self._range_queries.append((target, list(exclude)))
        target_sha = self.resolve_ref(repo_root, target)
        if target_sha is None:
            raise RuntimeError(f"Failed to list revisions of '{target}'")

        excluded: set[str] = set()
        for ref in exclude:
            sha = self.resolve_ref(repo_root, ref)
            if sha is None:
                raise RuntimeError(f"Failed to list revisions of '{target}': bad ref '{ref}'")
            excluded |= self._reachable(sha)

        wanted = self._reachable(target_sha) - excluded
        return [sha for sha in self._order if sha in wanted]

    def get_revision(self, repo_root: Path, sha: str) -> Revision:
        if sha not in self._revisions:
            raise RuntimeError(f"Failed to read commit '{sha}'")
        return self._revisions[sha]

    def has_patch_id(self, repo_root: Path, sha: str) -> bool:
        if self.get_revision(repo_root, sha).is_merge:
            return False
        return sha not in self._without_patch_id

    def list_branches_containing(self, repo_root: Path, sha: str) -> list[str]:
        self._containment_queries.append(sha)
        return sorted(
            name for name, tip in self._refs.items() if sha in self._reachable(tip)
        )

    def merge_squash(self, repo_root: Path, sha: str) -> bool:
        self._merged.append(sha)
        if sha in self._merge_conflicts:
            # A conflicted merge still leaves the clean part of the change staged
            self._staged = self._conflicts_leave_changes_staged
            return False
        self._staged = True
        return True

    def commit_reusing_message(self, repo_root: Path, sha: str) -> bool:
        if sha in self._commit_failures:
            return False
        self._committed.append(sha)
        self._staged = False
        return True

    def has_staged_changes(self, repo_root: Path) -> bool:
        return self._staged

    def discard_changes(self, repo_root: Path) -> None:
        if self._discard_error is not None:
            raise RuntimeError(self._discard_error)
        self._discarded.append(repo_root)
        self._staged = False

    def get_config_value(self, repo_root: Path, key: str) -> str | None:
        return self._config_values.get(key)

    def _reachable(self, sha: str) -> set[str]:
        seen: set[str] = set()
        stack = [sha]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            revision = self._revisions.get(current)
            if revision is not None:
                stack.extend(revision.parents)
        return seen

    @property
    def merged(self) -> list[str]:
        """Get the list of commits squash-merged.

        This property is for test assertions only.
        """
        return self._merged.copy()

    @property
    def committed(self) -> list[str]:
        """Get the list of commits whose message was reused for a new commit.

        This property is for test assertions only.
        """
        return self._committed.copy()

    @property
    def discarded(self) -> list[Path]:
        """Get the repository roots that were reset to HEAD.

        This property is for test assertions only.
        """
        return self._discarded.copy()

    @property
    def range_queries(self) -> list[tuple[str, list[str]]]:
        """Get (target, exclude) for every list_revisions call.

        This property is for test assertions only.
        """
        return self._range_queries.copy()

    @property
    def containment_queries(self) -> list[str]:
        """Get the commits list_branches_containing was asked about.

        This property is for test assertions only.
        """
        return self._containment_queries.copy()
