"""Human-editable flatten plan.

The plan file lists one revision per line, oldest first:

    pick   1a2b3c4 Merge branch 'feature'
    squash 5d6e7f8 Fix typo

followed by a comment block documenting the commands. Once written, the file
is the single source of truth for the rest of the run: an interrupted run
reuses it as-is so the operator's edits survive conflicts.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from git_flatten.core.atomic_write import atomic_write_text
from git_flatten.core.errors import UsageError

PLAN_FILE = "FLATTEN_MSG"
DEFAULT_SUBJECT_LIMIT = 70
ELLIPSIS = "..."
COMMENT_MARKER = "#"

PLAN_HELP = """\
#
# Commands:
#  p, pick = use commit
#  e, edit = use commit, but stop for amending
#  s, squash = use commit, but meld into the next picked commit
#
# If you remove a line here THAT COMMIT WILL BE LOST.
# However, if you remove everything, the flatten will be aborted.
#
"""


class PlanAction(Enum):
    PICK = "pick"
    EDIT = "edit"
    SQUASH = "squash"


def parse_action(keyword: str) -> PlanAction:
    """Parse a plan keyword or its one-letter abbreviation, ignoring case.

    Raises:
        UsageError: If the keyword is not one of p/pick, e/edit, s/squash
    """
    lowered = keyword.lower()
    for action in PlanAction:
        if lowered in (action.value, action.value[0]):
            return action
    raise UsageError(f"unknown action '{keyword}'")


@dataclass(frozen=True)
class PlanEntry:
    """One plan line: action keyword as written, revision id, free text."""

    action: str
    revision: str
    text: str


def truncate_subject(subject: str, limit: int = DEFAULT_SUBJECT_LIMIT) -> str:
    """Shorten a subject to at most limit characters, marking the cut with '...'."""
    if len(subject) <= limit:
        return subject
    return subject[: limit - len(ELLIPSIS)] + ELLIPSIS


def format_plan_line(action: PlanAction, abbrev: str, subject: str, limit: int) -> str:
    return "%-6s %s %s" % (action.value, abbrev, truncate_subject(subject, limit))


def render_plan(lines: list[str], *, onto: str, last: str) -> str:
    header = f"{COMMENT_MARKER} Flatten {onto}..{last} onto {onto}\n"
    return "".join(f"{line}\n" for line in lines) + header + PLAN_HELP


def parse_plan(content: str) -> list[PlanEntry]:
    """Split plan text into entries, skipping comments and blank lines.

    Raises:
        UsageError: If a non-comment line has no revision id
    """
    entries: list[PlanEntry] = []
    for lineno, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith(COMMENT_MARKER):
            continue
        fields = stripped.split()
        if len(fields) < 2:
            raise UsageError(f"malformed plan line {lineno}: '{stripped}'")
        entries.append(PlanEntry(action=fields[0], revision=fields[1], text=" ".join(fields[2:])))
    return entries


class PlanStore:
    """The plan file inside the git directory."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def exists(self) -> bool:
        return self.path.exists()

    def write(self, lines: list[str], *, onto: str, last: str) -> None:
        atomic_write_text(self.path, render_plan(lines, onto=onto, last=last))

    def read(self) -> list[PlanEntry]:
        if not self.path.exists():
            return []
        return parse_plan(self.path.read_text(encoding="utf-8"))

    def delete(self) -> None:
        self.path.unlink(missing_ok=True)


def plan_store(git_dir: Path) -> PlanStore:
    return PlanStore(git_dir / PLAN_FILE)
