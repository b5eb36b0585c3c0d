import logging
import os

import click

from git_flatten.cli.ensure import Ensure
from git_flatten.core.context import FlattenContext, create_context
from git_flatten.core.engine import FlattenMode, FlattenRequest, run_flatten
from git_flatten.core.errors import FlattenError

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags
DEBUG_ENV = "GIT_FLATTEN_DEBUG"


def _select_mode(continue_: bool, skip: bool, abort: bool) -> FlattenMode:
    selected = [
        mode
        for mode, flag in (
            (FlattenMode.CONTINUE, continue_),
            (FlattenMode.SKIP, skip),
            (FlattenMode.ABORT, abort),
        )
        if flag
    ]
    Ensure.invariant(
        len(selected) <= 1, "--continue, --skip and --abort are mutually exclusive"
    )
    return selected[0] if selected else FlattenMode.START


@click.command("flatten", context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="git-flatten")
@click.argument("target", required=False)
@click.argument("exclude_refs", nargs=-1)
@click.option(
    "-s",
    "--squash",
    "squash",
    multiple=True,
    metavar="BRANCH",
    help="Branch whose commits are squashed rather than picked (repeatable).",
)
@click.option("-i", "--interactive", is_flag=True, help="Edit the plan before applying it.")
@click.option("--continue", "continue_", is_flag=True, help="Resume after resolving a conflict.")
@click.option("--skip", is_flag=True, help="Drop the commit that failed and resume.")
@click.option("--abort", is_flag=True, help="Forget the flatten in progress.")
@click.option("-v", "--verbose", is_flag=True, help="Print the git commands that rewrite history.")
@click.pass_context
def flatten_cmd(
    click_ctx: click.Context,
    target: str | None,
    exclude_refs: tuple[str, ...],
    squash: tuple[str, ...],
    interactive: bool,
    continue_: bool,
    skip: bool,
    abort: bool,
    verbose: bool,
) -> None:
    """Flatten the commits of TARGET onto the current branch.

    Commits reachable from TARGET but not from the current branch, from the
    previous flatten boundary or from any EXCLUDE_REFS are replayed oldest
    first as squashed commits, following an editable plan of pick, edit and
    squash lines. Conflicts pause the run; resume it with --continue or
    --skip, or give up with --abort.
    """
    mode = _select_mode(continue_, skip, abort)
    if mode is FlattenMode.START:
        target = Ensure.not_none(target, "no target ref given, usage: git flatten [OPTIONS] <ref>")
    else:
        Ensure.invariant(
            target is None, f"--{mode.value} does not take a target ref"
        )

    try:
        # Only create context if not already provided (e.g., by tests)
        if click_ctx.obj is None:
            click_ctx.obj = create_context(verbose=verbose)
        ctx: FlattenContext = click_ctx.obj

        run_flatten(
            ctx,
            FlattenRequest(
                mode=mode,
                target=target,
                exclude_refs=exclude_refs,
                squash=frozenset(squash),
                interactive=interactive,
            ),
        )
    except (FlattenError, RuntimeError) as e:
        Ensure.fail(str(e))


def main() -> None:
    """CLI entry point used by the `git-flatten` console script."""
    if os.environ.get(DEBUG_ENV):
        logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")
    flatten_cmd()
