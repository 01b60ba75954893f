"""CLI entry point for ordered-wheels."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import click

from .checkpoint import Checkpointer, GitCheckpointStore
from .config import load_options
from .errors import PublishError
from .logs import configure_logging, get_logger
from .pipeline import plan_publish, run_publish

log = get_logger(__name__)


def selection_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Options shared by `publish` and `plan`."""
    options = [
        click.option(
            "--root",
            type=click.Path(exists=True, file_okay=False, path_type=Path),
            default=".",
            show_default=True,
            help="Workspace root (holds the pyproject.toml with [tool.uv.workspace]).",
        ),
        click.option(
            "-p", "--package", "packages", multiple=True,
            help="Publish only this package (repeatable). Default: all.",
        ),
        click.option("-s", "--start-from", help="Skip packages before this one in publish order."),
        click.option(
            "--include-dependents", is_flag=True, default=None,
            help="Also publish packages depending on the --package ones.",
        ),
        click.option(
            "-e", "--exclude", multiple=True,
            help="Never publish this package or anything depending on it (repeatable).",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def fail(exc: PublishError) -> None:
    log.error(str(exc), error=type(exc).__name__)
    raise SystemExit(1)


@click.group()
@click.version_option(package_name="ordered-wheels")
@click.option("-v", "--verbose", is_flag=True, help="Show commands and diffs.")
@click.option("-q", "--quiet", is_flag=True, help="Only show warnings and errors.")
@click.option("--json-log", is_flag=True, help="Log JSON lines instead of text.")
def cli(verbose: bool, quiet: bool, json_log: bool) -> None:
    """Publish uv workspace packages to PyPI in dependency order."""
    configure_logging(verbose=verbose, quiet=quiet, json_log=json_log)


@cli.command()
@selection_options
@click.option("--verify-from", help="Smoke-test wheels only from this package on in publish order.")
@click.option(
    "--post-publish-delay",
    type=click.FloatRange(min=0),
    help="Seconds to wait after each upload.",
)
@click.option(
    "-k", "--post-check", is_flag=True, default=None,
    help="Refresh uv.lock and import every processed package afterwards.",
)
@click.option("--index-url", help="Index queried for published versions.")
def publish(root: Path, **cli_values: Any) -> None:
    """Publish the selected packages and their changed dependencies."""
    try:
        run_publish(load_options(root, **cli_values))
    except PublishError as exc:
        fail(exc)


@cli.command()
@selection_options
def plan(root: Path, **cli_values: Any) -> None:
    """Show the publish order and selection without changing anything."""
    try:
        workspace, order, selection = plan_publish(load_options(root, **cli_values))
    except PublishError as exc:
        fail(exc)
        return

    click.echo("Publish order:")
    for name in order:
        info = workspace[name]
        marks = []
        if name in selection.excluded:
            marks.append("excluded")
        if not info.publishable:
            marks.append("private")
        suffix = f" ({', '.join(marks)})" if marks else ""
        click.echo(f"  {name} {info.version}{suffix}")
    click.echo("Selected:")
    for name in selection.packages:
        click.echo(f"  {name}")


@cli.command()
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Repository holding the checkpoints.",
)
def revert(root: Path) -> None:
    """Discard trailing revert-later checkpoints."""
    try:
        count = Checkpointer(GitCheckpointStore(root)).revert()
    except PublishError as exc:
        fail(exc)
        return
    click.echo(f"Reverted {count} checkpoint(s)")
