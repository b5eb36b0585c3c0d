"""Error types raised by the flatten engine and its collaborators.

Every failure the operator can act on derives from FlattenError so the CLI can
report it with a single styled "Error:" line and a non-zero exit. Pauses for
conflicts or edits are not errors; they are reported through FlattenOutcome.
"""


class FlattenError(Exception):
    """Base class for all git-flatten errors."""


class UsageError(FlattenError):
    """Raised for a bad invocation or a malformed plan."""


class ReferenceNotFound(FlattenError):
    """Raised when a ref or plan id does not resolve to a commit."""

    def __init__(self, ref: str, detail: str | None = None) -> None:
        self.ref = ref
        message = f"'{ref}' does not resolve to a commit"
        if detail is not None:
            message = f"{message}: {detail}"
        super().__init__(message)


class ReentrancyError(FlattenError):
    """Raised when a new flatten is requested while another one is in progress."""

    def __init__(self) -> None:
        super().__init__(
            "A flatten is in progress, try --continue, --skip or --abort."
        )


class EditorError(FlattenError):
    """Raised when the plan editor cannot be started or exits non-zero."""


class ConfigError(FlattenError):
    """Raised when the configuration file is malformed."""
