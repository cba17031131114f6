"""Catalyst CLI entry point."""

from __future__ import annotations

import logging
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

import click

from catalyst import __version__
from catalyst.graph.model import DecodeError
from catalyst.graph.resolver import TargetNotFoundError
from catalyst.infrastructure.tools import ExternalToolError, SubprocessRunner

if TYPE_CHECKING:
    from rich.console import Console

    from catalyst.infrastructure.tools import ToolRunner
    from catalyst.pipeline import BuildResult

# Errors that stop the pipeline; anything else is a bug and keeps its traceback.
_FATAL_ERRORS = (DecodeError, ExternalToolError, TargetNotFoundError, OSError)

_PATH_OPTION = click.option(
    "--path",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: current directory).",
)


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _runner(ctx: click.Context) -> ToolRunner:
    """Return the tool runner; tests inject one via ``obj["runner"]``."""
    runner: ToolRunner | None = ctx.obj.get("runner")
    return runner if runner is not None else SubprocessRunner()


def _render_build_summary(result: BuildResult, project_dir: Path, console: Console) -> None:
    from rich.table import Table

    table = Table(title="Generated files")
    table.add_column("Project")
    table.add_column("File")
    for path in result.workspace_files:
        table.add_row("(workspace)", _display_path(path, project_dir))
    for project_name, paths in result.project_files.items():
        for path in paths:
            table.add_row(project_name, _display_path(path, project_dir))
    console.print(table)
    console.print(f"Saved graph metadata to: {result.snapshot_path}")


def _display_path(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


def _do_build(ctx: click.Context, path: Path | None) -> None:
    from rich.console import Console

    from catalyst.config import load_config, resolve_paths
    from catalyst.pipeline import build_project

    paths = resolve_paths(path or Path.cwd())
    config = load_config(paths.project_dir)
    click.echo(f"Running catalyst on project: {paths.project_dir}")
    try:
        result = build_project(paths, config, _runner(ctx))
    except _FATAL_ERRORS as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not ctx.obj["quiet"]:
        _render_build_summary(result, paths.project_dir, Console())
    click.echo("Build completed successfully!")


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="catalyst")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Catalyst - convert Tuist projects to Bazel builds.

    Without a subcommand, builds the project in the current directory.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    _configure_logging(verbose=verbose, quiet=quiet)

    if ctx.invoked_subcommand is None:
        _do_build(ctx, None)


@main.command()
@_PATH_OPTION
@click.pass_context
def build(ctx: click.Context, *, path: Path | None) -> None:
    """Generate Bazel files from the Tuist graph and build with Bazel."""
    _do_build(ctx, path)


@main.command()
@_PATH_OPTION
@click.option(
    "--simulator",
    "-s",
    default=None,
    help="Simulator device to use (default: from config.yml or 'iPhone 16').",
)
@click.option("--target", "-t", default=None, help="Target to run (default: first app target).")
@click.pass_context
def run(
    ctx: click.Context, *, path: Path | None, simulator: str | None, target: str | None
) -> None:
    """Build and run the app in the iOS Simulator."""
    from rich.console import Console

    from catalyst.config import load_config, resolve_paths
    from catalyst.pipeline import run_project

    paths = resolve_paths(path or Path.cwd())
    config = load_config(paths.project_dir)
    click.echo(f"Running catalyst on project: {paths.project_dir}")
    try:
        result = run_project(
            paths,
            config,
            _runner(ctx),
            device=simulator,
            target_hint=target,
            sleep=ctx.obj.get("sleep") or time.sleep,
        )
    except _FATAL_ERRORS as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)

    if not ctx.obj["quiet"]:
        _render_build_summary(result.build, paths.project_dir, Console())
    device = simulator or config.simulator
    click.echo(f"Launched {result.target.name} ({result.target.bundle_id}) on {device}")
    click.echo("✓ App launched successfully!")
    click.echo(f"Process ID: {result.deploy.launch_output}")
    click.echo("Tip: Open Simulator.app to see the running app")
