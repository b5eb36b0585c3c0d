"""Flatten engine: builds the plan, replays it and resumes after interruptions.

States of a run:

    Idle -> Planning -> Applying -> (Paused-on-conflict <-> Applying)
                                 -> Paused-for-edit -> Applying
                                 -> Completed | Aborted

A pause ends the process. Everything needed to resume lives in the plan file
and the progress markers, so the next invocation (--continue, --skip or
--abort) picks up exactly where the previous one stopped.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from git_flatten.cli.output import format_revision_line
from git_flatten.core.classifier import classify
from git_flatten.core.context import FlattenContext
from git_flatten.core.errors import ReentrancyError, ReferenceNotFound, UsageError
from git_flatten.core.git.abc import Git
from git_flatten.core.plan_store import (
    PlanAction,
    PlanEntry,
    PlanStore,
    format_plan_line,
    parse_action,
    plan_store,
)
from git_flatten.core.progress_store import (
    BoundaryStore,
    MarkerFile,
    boundary_store,
    in_flight_marker,
    last_applied_marker,
)
from git_flatten.core.repo_discovery import RepoContext
from git_flatten.core.revisions import resolve_revisions, verify_refs

logger = logging.getLogger(__name__)

RESOLVE_HINT = """\
When you have resolved this problem run "git flatten --continue".
If you would prefer to skip this patch, instead run "git flatten --skip".
To restore the original branch and stop flatten run "git flatten --abort"."""

EDIT_HINT = """\
You can amend the commit now, with

  git commit --amend

Once you are satisfied with your changes, run

  git flatten --continue"""


class FlattenMode(Enum):
    START = "start"
    CONTINUE = "continue"
    SKIP = "skip"
    ABORT = "abort"


class FlattenStatus(Enum):
    COMPLETED = "completed"
    NOTHING_TO_DO = "nothing_to_do"
    PAUSED_ON_CONFLICT = "paused_on_conflict"
    PAUSED_FOR_EDIT = "paused_for_edit"
    ABORTED = "aborted"


@dataclass(frozen=True)
class FlattenRequest:
    """What the operator asked for on this invocation."""

    mode: FlattenMode
    target: str | None = None
    exclude_refs: tuple[str, ...] = ()
    squash: frozenset[str] = frozenset()
    interactive: bool = False


@dataclass(frozen=True)
class FlattenOutcome:
    """How an invocation ended.

    applied lists the plan revisions committed during this invocation;
    paused_at names the revision the run stopped on, if it paused.
    """

    status: FlattenStatus
    applied: tuple[str, ...] = ()
    paused_at: str | None = None


@dataclass(frozen=True)
class FlattenState:
    """All files a flatten run persists in the git directory."""

    plan: PlanStore
    boundaries: BoundaryStore
    last_applied: MarkerFile
    in_flight: MarkerFile

    @staticmethod
    def for_git_dir(git_dir: Path) -> "FlattenState":
        return FlattenState(
            plan=plan_store(git_dir),
            boundaries=boundary_store(git_dir),
            last_applied=last_applied_marker(git_dir),
            in_flight=in_flight_marker(git_dir),
        )

    def in_progress(self) -> bool:
        return self.last_applied.read() is not None or self.in_flight.read() is not None

    def clear(self) -> None:
        """Forget the current run. The Boundary is kept."""
        self.in_flight.delete()
        self.last_applied.delete()
        self.plan.delete()


@dataclass(frozen=True)
class PlanStep:
    """A plan entry with its action parsed and its id resolved."""

    action: PlanAction
    sha: str
    abbrev: str
    text: str

    @property
    def label(self) -> str:
        return format_revision_line(self.abbrev, self.text)


def run_flatten(ctx: FlattenContext, request: FlattenRequest) -> FlattenOutcome:
    """Run one invocation of the flatten state machine.

    Raises:
        UsageError: Outside a repository, on a detached HEAD, without a target,
            or when the plan contains an unknown action or malformed line
        ReferenceNotFound: If the target or a plan id cannot be resolved
        ReentrancyError: If a fresh flatten is requested while one is in progress
    """
    repo = ctx.repo
    if not isinstance(repo, RepoContext):
        raise UsageError(repo.message)

    state = FlattenState.for_git_dir(repo.git_dir)
    if request.mode is FlattenMode.ABORT:
        return abort_flatten(ctx, state)

    if repo.branch is None:
        raise UsageError("HEAD is detached; check out the branch to flatten onto")
    branch = repo.branch

    if request.mode is FlattenMode.START:
        if state.in_progress():
            raise ReentrancyError()
        if request.target is None:
            raise UsageError("no target ref given")
        if not prepare_plan(ctx, repo, branch, state, request):
            ctx.feedback.info("Nothing to do.")
            return FlattenOutcome(status=FlattenStatus.NOTHING_TO_DO)
    elif not state.in_progress() and not state.plan.read():
        ctx.feedback.info("Nothing to do.")
        return FlattenOutcome(status=FlattenStatus.NOTHING_TO_DO)

    # Resuming always reopens the plan so the remaining lines can be revised
    if request.interactive or request.mode is not FlattenMode.START:
        ctx.editor.edit(state.plan.path)

    entries = state.plan.read()
    if not entries:
        # Removing every line abandons the whole operation
        was_running = state.in_progress()
        state.clear()
        if was_running:
            ctx.feedback.info("Plan is empty, flatten aborted.")
            return FlattenOutcome(status=FlattenStatus.ABORTED)
        ctx.feedback.info("Nothing to do.")
        return FlattenOutcome(status=FlattenStatus.NOTHING_TO_DO)

    steps = build_steps(ctx.git, repo, entries)
    return PlanReplay(ctx, repo, branch, state, request.mode).run(steps)


def abort_flatten(ctx: FlattenContext, state: FlattenState) -> FlattenOutcome:
    """Drop the in-flight state; commits already made and the Boundary are kept."""
    if not state.in_progress() and not state.plan.exists():
        ctx.feedback.info("No flatten in progress.")
        return FlattenOutcome(status=FlattenStatus.NOTHING_TO_DO)

    state.clear()
    ctx.feedback.info("Flatten aborted.")
    return FlattenOutcome(status=FlattenStatus.ABORTED)


def prepare_plan(
    ctx: FlattenContext,
    repo: RepoContext,
    branch: str,
    state: FlattenState,
    request: FlattenRequest,
) -> bool:
    """Make sure a plan file exists for a fresh run.

    An existing plan (left by an interrupted run) is reused untouched.

    Returns:
        False if there is nothing to flatten
    """
    assert request.target is not None
    if state.plan.exists():
        verify_refs(ctx.git, repo, [request.target])
        logger.debug("Reusing plan at %s", state.plan.path)
        return True

    squash = set(request.squash) | set(ctx.config.squash_branches)
    resolved = resolve_revisions(
        ctx.git,
        repo,
        branch,
        state.boundaries,
        target=request.target,
        exclude_refs=request.exclude_refs,
        squash=squash,
    )
    if not resolved.revisions:
        return False

    lines = [
        format_plan_line(
            classify(ctx.git, repo.root, revision, squash),
            revision.abbrev,
            revision.subject,
            ctx.config.subject_limit,
        )
        for revision in resolved.revisions
    ]
    onto = ctx.git.get_revision(repo.root, resolved.boundary).abbrev
    state.plan.write(lines, onto=onto, last=resolved.revisions[-1].abbrev)
    logger.debug("Wrote %d plan entries to %s", len(lines), state.plan.path)
    return True


def build_steps(git: Git, repo: RepoContext, entries: list[PlanEntry]) -> list[PlanStep]:
    """Validate the whole plan before anything is applied.

    Raises:
        UsageError: On an unknown action keyword
        ReferenceNotFound: On an id that does not resolve
    """
    actions = [parse_action(entry.action) for entry in entries]
    steps: list[PlanStep] = []
    for action, entry in zip(actions, entries, strict=True):
        sha = git.resolve_ref(repo.root, entry.revision)
        if sha is None:
            raise ReferenceNotFound(entry.revision, "listed in the flatten plan")
        steps.append(PlanStep(action=action, sha=sha, abbrev=entry.revision, text=entry.text))
    return steps


@dataclass
class PlanReplay:
    """Applies plan steps oldest first, honoring the progress markers."""

    ctx: FlattenContext
    repo: RepoContext
    branch: str
    state: FlattenState
    mode: FlattenMode
    applied: list[str] = field(default_factory=list)

    def run(self, steps: list[PlanStep]) -> FlattenOutcome:
        shas = [step.sha for step in steps]
        resume_at = self.state.in_flight.read()
        skip_through = None if resume_at is not None else self.state.last_applied.read()
        for marker in (resume_at, skip_through):
            if marker is not None and marker not in shas:
                raise UsageError(
                    f"revision {marker} recorded as in progress is no longer in the plan; "
                    "restore the line or run --abort"
                )

        if self.mode is FlattenMode.SKIP and resume_at is None:
            self.ctx.feedback.info("Nothing in flight to skip, continuing.")

        pending: list[PlanStep] = []
        for step in steps:
            if resume_at is not None:
                if step.sha != resume_at:
                    self.ctx.feedback.info(f"Skipping {step.label}")
                    continue
                resume_at = None
                outcome = self._finish_in_flight(step)
                if outcome is not None:
                    return outcome
                pending.clear()
                continue

            if skip_through is not None:
                self.ctx.feedback.info(f"Skipping {step.label}")
                if step.sha == skip_through:
                    skip_through = None
                    self.state.last_applied.delete()
                continue

            if step.action is PlanAction.SQUASH:
                self.ctx.feedback.info(f"Squashing {step.label}")
                pending.append(step)
                continue

            outcome = self._apply(step)
            if outcome is not None:
                return outcome
            pending.clear()

        if pending:
            # Trailing squash entries have no later pick to fold into
            self.ctx.feedback.info(f"Folding squashed commits into {pending[-1].label}")
            outcome = self._apply(pending[-1])
            if outcome is not None:
                return outcome

        return self._complete()

    def _apply(self, step: PlanStep) -> FlattenOutcome | None:
        self.ctx.feedback.info(f"Applying {step.label}")
        self.state.in_flight.write(step.sha)
        if not self.ctx.git.merge_squash(self.repo.root, step.sha):
            return self._pause_on_conflict(step)
        return self._commit(step)

    def _commit(self, step: PlanStep) -> FlattenOutcome | None:
        if not self.ctx.git.commit_reusing_message(self.repo.root, step.sha):
            return self._pause_on_conflict(step)
        self._record_applied(step)
        if step.action is PlanAction.EDIT:
            return self._pause_for_edit(step)
        return None

    def _finish_in_flight(self, step: PlanStep) -> FlattenOutcome | None:
        if self.mode is FlattenMode.SKIP:
            self.ctx.feedback.info(f"Skipping {step.label}")
            self.ctx.git.discard_changes(self.repo.root)
            self.state.in_flight.delete()
            return None

        if self.ctx.git.has_staged_changes(self.repo.root):
            return self._commit(step)

        self.ctx.feedback.info(f"Nothing staged for {step.label}, assuming it is committed")
        self._record_applied(step)
        if step.action is PlanAction.EDIT:
            return self._pause_for_edit(step)
        return None

    def _record_applied(self, step: PlanStep) -> None:
        self.state.last_applied.write(step.sha)
        self.state.in_flight.delete()
        self.state.boundaries.write(self.branch, step.sha)
        self.applied.append(step.sha)
        logger.debug("Applied %s", step.sha)

    def _pause_on_conflict(self, step: PlanStep) -> FlattenOutcome:
        self.ctx.feedback.error(f"Could not apply {step.label}")
        self.ctx.feedback.info(RESOLVE_HINT)
        return FlattenOutcome(
            status=FlattenStatus.PAUSED_ON_CONFLICT,
            applied=tuple(self.applied),
            paused_at=step.sha,
        )

    def _pause_for_edit(self, step: PlanStep) -> FlattenOutcome:
        self.ctx.feedback.info(f"Stopped at {step.label}")
        self.ctx.feedback.info(EDIT_HINT)
        return FlattenOutcome(
            status=FlattenStatus.PAUSED_FOR_EDIT,
            applied=tuple(self.applied),
            paused_at=step.sha,
        )

    def _complete(self) -> FlattenOutcome:
        if self.applied:
            self.state.boundaries.write(self.branch, self.applied[-1])
        self.state.clear()
        self.ctx.feedback.success(f"Successfully flattened onto {self.branch}.")
        return FlattenOutcome(status=FlattenStatus.COMPLETED, applied=tuple(self.applied))
