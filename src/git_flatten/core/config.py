"""Configuration data structures and loading.

Provides immutable configuration loaded once from ~/.git-flatten/config.toml
at the CLI entry point and stored in FlattenContext.
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

from git_flatten.core.errors import ConfigError
from git_flatten.core.plan_store import DEFAULT_SUBJECT_LIMIT, ELLIPSIS

CONFIG_PATH_ENV = "GIT_FLATTEN_CONFIG"


@dataclass(frozen=True)
class FlattenConfig:
    """Immutable configuration data.

    Example config:
      subject_limit = 70
      editor = "vim"
      squash = ["vendor", "origin/vendor"]
    """

    subject_limit: int = DEFAULT_SUBJECT_LIMIT
    editor: str | None = None
    squash_branches: tuple[str, ...] = ()


def default_config_path() -> Path:
    """Return the config path, honoring GIT_FLATTEN_CONFIG."""
    override = os.environ.get(CONFIG_PATH_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".git-flatten" / "config.toml"


def load_config(config_path: Path) -> FlattenConfig:
    """Load config.toml if present; otherwise return defaults.

    Raises:
        ConfigError: If the file is not valid TOML or a value has the wrong type
    """
    if not config_path.exists():
        return FlattenConfig()

    try:
        data = tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    limit = data.get("subject_limit", DEFAULT_SUBJECT_LIMIT)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= len(ELLIPSIS):
        raise ConfigError(
            f"'subject_limit' in {config_path} must be an integer greater than {len(ELLIPSIS)}"
        )

    editor = data.get("editor")
    if editor is not None and not isinstance(editor, str):
        raise ConfigError(f"'editor' in {config_path} must be a string")

    squash = data.get("squash", [])
    if not isinstance(squash, list) or not all(isinstance(s, str) for s in squash):
        raise ConfigError(f"'squash' in {config_path} must be a list of branch names")

    return FlattenConfig(
        subject_limit=limit,
        editor=editor or None,
        squash_branches=tuple(squash),
    )
