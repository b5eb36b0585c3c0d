"""Crash-safe file writes for the flatten state files."""

import os
import tempfile
from pathlib import Path


def atomic_write_text(path: Path, content: str) -> None:
    """Replace path with content without ever leaving a partial file behind.

    The content is written to a temporary file in the same directory and then
    renamed over the target, so readers see either the old or the new file.
    If anything fails the previous file is left untouched and the temporary
    file is removed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    f = tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    tmp_path = Path(f.name)

    try:
        with f:
            f.write(content)
        os.replace(tmp_path, path)
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise
