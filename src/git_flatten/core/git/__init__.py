"""Git operations subpackage.

This subpackage provides abstractions over git operations with support for
testing via fakes and verbose output via a printing wrapper.
"""

from git_flatten.core.git.abc import Git, Revision
from git_flatten.core.git.printing import PrintingGit
from git_flatten.core.git.real import RealGit

__all__ = [
    "Git",
    "Revision",
    "RealGit",
    "PrintingGit",
]
