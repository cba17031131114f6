"""Build/deploy orchestration.

``build_project`` runs, strictly in order: fetch graph, write workspace
files, write every project's BUILD, save the graph snapshot, ``bazel
build``.  The first failure stops the run; files already written stay in
place and are fully regenerated next time.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from catalyst.bazel.writer import write_project_files, write_workspace_files
from catalyst.graph.resolver import ResolvedTarget, find_application_target
from catalyst.graph.snapshot import save_graph_snapshot
from catalyst.infrastructure.simulator import DeployResult, deploy
from catalyst.infrastructure.tools import ExternalToolError, run_build
from catalyst.infrastructure.tuist import fetch_graph

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalyst.config import CatalystConfig, RunPaths
    from catalyst.graph.model import Graph
    from catalyst.infrastructure.tools import ToolRunner

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Summary of a completed build."""

    graph: Graph
    snapshot_path: Path
    workspace_files: list[Path] = field(default_factory=list)
    project_files: dict[str, list[Path]] = field(default_factory=dict)

    @property
    def generated_files(self) -> list[Path]:
        files = list(self.workspace_files)
        for paths in self.project_files.values():
            files.extend(paths)
        return files


@dataclass
class RunResult:
    """Summary of a build followed by a simulator launch."""

    build: BuildResult
    target: ResolvedTarget
    deploy: DeployResult


def bazel_package(project_path: str, workspace: Path) -> str | None:
    """Return *project_path* as a Bazel package relative to *workspace*.

    The workspace root itself is the empty package ``""``.  Returns None when
    the project lies outside the workspace, where ``//...`` cannot see it.
    """
    try:
        relative = Path(project_path).resolve().relative_to(workspace.resolve())
    except ValueError:
        return None
    return relative.as_posix() if relative.parts else ""


def generate_bazel_files(
    graph: Graph, paths: RunPaths, config: CatalystConfig
) -> tuple[list[Path], dict[str, list[Path]]]:
    """Write workspace bootstrap files and one BUILD per project record."""
    options = config.rule_options
    workspace_files = write_workspace_files(paths.project_dir, options)

    project_files: dict[str, list[Path]] = {}
    for project in graph.project_records():
        logger.info("Generating BUILD file for project: %s", project.name)
        if bazel_package(project.path, paths.project_dir) is None:
            logger.warning(
                "Project '%s' at %s is outside the workspace %s; bazel build //... will skip it",
                project.name,
                project.path,
                paths.project_dir,
            )
        project_files[project.name] = write_project_files(project, options)
    if not project_files:
        logger.warning("Graph '%s' contains no project records; no BUILD files written", graph.name)
    return workspace_files, project_files


def build_project(paths: RunPaths, config: CatalystConfig, runner: ToolRunner) -> BuildResult:
    """Generate Bazel files from the Tuist graph and run ``bazel build //...``."""
    logger.info("Running catalyst on project: %s", paths.project_dir)

    graph = fetch_graph(runner, paths.project_dir, temp_dir=paths.temp_dir)
    workspace_files, project_files = generate_bazel_files(graph, paths, config)
    snapshot_path = save_graph_snapshot(graph, paths.cache_dir)
    run_build(runner, paths.project_dir)

    logger.info("Build completed successfully")
    return BuildResult(
        graph=graph,
        snapshot_path=snapshot_path,
        workspace_files=workspace_files,
        project_files=project_files,
    )


def run_project(
    paths: RunPaths,
    config: CatalystConfig,
    runner: ToolRunner,
    *,
    device: str | None = None,
    target_hint: str | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> RunResult:
    """Build, then install and launch an application target in the simulator.

    The target is resolved from the graph the build already fetched.
    """
    build = build_project(paths, config, runner)
    target = find_application_target(build.graph, target_hint)
    logger.info("Launching target %s (%s)", target.name, target.bundle_id)
    package = bazel_package(target.project_path, paths.project_dir)
    if package is None:
        raise ExternalToolError(
            f"App target '{target.name}' lives outside the workspace {paths.project_dir}; "
            "bazel did not build it"
        )
    result = deploy(
        runner,
        paths.project_dir,
        target.name,
        target.bundle_id,
        device or config.simulator,
        package=package,
        boot_wait=config.boot_wait_seconds,
        sleep=sleep,
    )
    return RunResult(build=build, target=target, deploy=result)
