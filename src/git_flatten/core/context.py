"""Application context with dependency injection."""

import os
from dataclasses import dataclass
from pathlib import Path

import click

from git_flatten.cli.output import user_output
from git_flatten.core.config import FlattenConfig, default_config_path, load_config
from git_flatten.core.editor import Editor, RealEditor, resolve_editor_command
from git_flatten.core.git.abc import Git
from git_flatten.core.git.printing import PrintingGit
from git_flatten.core.git.real import RealGit
from git_flatten.core.repo_discovery import (
    NoRepoSentinel,
    RepoContext,
    discover_repo_or_sentinel,
)
from git_flatten.core.user_feedback import InteractiveFeedback, UserFeedback


@dataclass(frozen=True)
class FlattenContext:
    """Immutable context holding all dependencies for a flatten run.

    Created at CLI entry point and threaded through the engine. Values the
    engine needs repeatedly (git dir, branch, editor) are looked up once here.
    """

    git: Git
    editor: Editor
    feedback: UserFeedback
    config: FlattenConfig
    cwd: Path  # Current working directory at CLI invocation
    repo: RepoContext | NoRepoSentinel

    @staticmethod
    def for_test(
        git: Git | None = None,
        editor: Editor | None = None,
        feedback: UserFeedback | None = None,
        config: FlattenConfig | None = None,
        cwd: Path | None = None,
        repo: RepoContext | NoRepoSentinel | None = None,
    ) -> "FlattenContext":
        """Create test context with optional pre-configured collaborators.

        Args:
            git: Optional Git implementation. If None, creates empty FakeGit.
            editor: Optional Editor. If None, creates a FakeEditor that leaves files as-is.
            feedback: Optional UserFeedback. If None, creates FakeUserFeedback.
            config: Optional FlattenConfig. If None, uses defaults.
            cwd: Optional current working directory. If None, uses a sentinel path.
            repo: Optional RepoContext or NoRepoSentinel. If None, uses NoRepoSentinel().

        Example:
            >>> git = FakeGit(revisions=[...], refs={"feature": "c3"})
            >>> repo = RepoContext(root=tmp_path, git_dir=tmp_path / ".git", branch="main")
            >>> ctx = FlattenContext.for_test(git=git, repo=repo)
        """
        from tests.fakes.editor import FakeEditor
        from tests.fakes.git import FakeGit
        from tests.fakes.user_feedback import FakeUserFeedback

        if git is None:
            git = FakeGit()

        if editor is None:
            editor = FakeEditor()

        if feedback is None:
            feedback = FakeUserFeedback()

        if config is None:
            config = FlattenConfig()

        if repo is None:
            repo = NoRepoSentinel()

        return FlattenContext(
            git=git,
            editor=editor,
            feedback=feedback,
            config=config,
            cwd=cwd or Path("/test/sentinel"),
            repo=repo,
        )


def safe_cwd() -> tuple[Path | None, str | None]:
    """Get current working directory, detecting if it no longer exists.

    Returns:
        tuple[Path | None, str | None]: (path, error_message)
    """
    try:
        return (Path.cwd(), None)
    except (FileNotFoundError, OSError):
        return (None, "Current working directory no longer exists")


def create_context(*, verbose: bool = False) -> FlattenContext:
    """Create production context with real implementations.

    Args:
        verbose: If True, wrap git in PrintingGit so mutating commands are echoed

    Returns:
        FlattenContext with real implementations
    """
    # 1. Capture cwd (no deps)
    cwd, error_msg = safe_cwd()
    if cwd is None:
        assert error_msg is not None
        user_output(click.style("Error: ", fg="red") + error_msg)
        raise SystemExit(1)

    # 2. Load config (no deps)
    config = load_config(default_config_path())

    # 3. Create git gateway and discover the working copy
    git: Git = RealGit()
    repo = discover_repo_or_sentinel(cwd, git)

    # 4. Resolve the editor once for the whole run
    git_editor = None
    if isinstance(repo, RepoContext):
        git_editor = git.get_config_value(repo.root, "core.editor")
    editor_command = resolve_editor_command(
        configured=config.editor,
        git_editor=git_editor,
        environ=os.environ,
    )

    if verbose:
        git = PrintingGit(git)

    return FlattenContext(
        git=git,
        editor=RealEditor(editor_command),
        feedback=InteractiveFeedback(),
        config=config,
        cwd=cwd,
        repo=repo,
    )
