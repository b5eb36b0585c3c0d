"""Editor integration for interactive plan editing."""

import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

from git_flatten.core.errors import EditorError

DEFAULT_EDITOR = "vi"


def resolve_editor_command(
    *,
    configured: str | None,
    git_editor: str | None,
    environ: Mapping[str, str],
) -> str:
    """Pick the editor command.

    Order: git-flatten config, git's core.editor, $VISUAL, $EDITOR, vi.
    """
    for candidate in (configured, git_editor, environ.get("VISUAL"), environ.get("EDITOR")):
        if candidate:
            return candidate
    return DEFAULT_EDITOR


class Editor(ABC):
    """Opens a file for the operator and blocks until they are done."""

    @abstractmethod
    def edit(self, path: Path) -> None:
        """Edit path in place.

        Raises:
            EditorError: If the editor cannot be started or exits non-zero
        """
        ...


class RealEditor(Editor):
    """Runs an external editor command, e.g. "vim" or "code --wait"."""

    def __init__(self, command: str) -> None:
        self.command = command

    def edit(self, path: Path) -> None:
        cmd = [*shlex.split(self.command), str(path)]
        try:
            result = subprocess.run(cmd, check=False, env=os.environ.copy())
        except FileNotFoundError as e:
            raise EditorError(f"Editor not found: {cmd[0]}") from e

        if result.returncode != 0:
            raise EditorError(f"Editor '{self.command}' exited with status {result.returncode}")
