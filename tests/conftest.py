"""Shared test fixtures for Catalyst."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from catalyst.infrastructure.tools import ExitResult

if TYPE_CHECKING:
    from collections.abc import Sequence


def make_target(
    name: str,
    product: str,
    bundle_id: str,
    files: list[str] | None = None,
    deps: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """Build a target object in the layout ``tuist graph`` writes."""
    return {
        "name": name,
        "product": product,
        "bundleId": bundle_id,
        "buildableFolders": [
            {"path": "Sources", "resolvedFiles": [{"path": p} for p in files or []]},
        ],
        "dependencies": deps or [],
    }


def sample_graph(project_path: str) -> dict[str, Any]:
    """A graph with an app, its tests, and a library, as Tuist emits it."""
    return {
        "name": "Fixture",
        "path": project_path,
        "projects": [
            project_path,
            {
                "name": "Fixture",
                "path": project_path,
                "targets": {
                    "Fixture": make_target(
                        "Fixture",
                        "app",
                        "dev.tuist.Fixture",
                        files=[
                            f"{project_path}/Fixture/Sources/ContentView.swift",
                            f"{project_path}/Fixture/Sources/FixtureApp.swift",
                            f"{project_path}/Fixture/Resources/Assets.xcassets",
                        ],
                        deps=[{"target": {"name": "Core", "status": "required"}}],
                    ),
                    "FixtureTests": make_target(
                        "FixtureTests",
                        "unit_tests",
                        "dev.tuist.FixtureTests",
                        files=[f"{project_path}/Fixture/Tests/FixtureTests.swift"],
                        deps=[{"target": {"name": "Fixture", "status": "required"}}],
                    ),
                    "Core": make_target(
                        "Core",
                        "static_framework",
                        "dev.tuist.Core",
                        files=[f"{project_path}/Core/Sources/Core.swift"],
                        deps=[{"package": {"product": "Alamofire"}}],
                    ),
                },
            },
        ],
    }


class FakeRunner:
    """Records tool calls instead of spawning processes.

    ``tuist graph`` writes :attr:`graph` as ``graph.json`` to the requested
    output path.  Exit codes can be set per step via :attr:`returncodes`,
    keyed like ``"tuist graph"``, ``"bazel build"``, ``"xcrun boot"``.
    """

    def __init__(self, graph: dict[str, Any] | str | None = None) -> None:
        self.graph = graph
        self.calls: list[tuple[str, tuple[str, ...], Path | None]] = []
        self.returncodes: dict[str, int] = {}
        self.launch_output = "dev.tuist.Fixture: 4242\n"

    @staticmethod
    def step(command: str, args: Sequence[str]) -> str:
        sub = args[1] if command == "xcrun" else args[0]
        return f"{command} {sub}"

    def steps(self) -> list[str]:
        return [self.step(command, args) for command, args, _ in self.calls]

    def run(
        self,
        command: str,
        args: Sequence[str],
        workdir: Path | None = None,
        *,
        capture: bool = False,
    ) -> ExitResult:
        self.calls.append((command, tuple(args), workdir))
        step = self.step(command, args)
        returncode = self.returncodes.get(step, 0)

        if step == "tuist graph" and returncode == 0 and self.graph is not None:
            output_dir = Path(args[args.index("--output-path") + 1])
            payload = self.graph if isinstance(self.graph, str) else json.dumps(self.graph)
            (output_dir / "graph.json").write_text(payload, encoding="utf-8")

        stdout = ""
        if step == "xcrun launch" and capture:
            stdout = self.launch_output
        stderr = "simulated failure" if returncode else ""
        return ExitResult(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture()
def project_dir(tmp_path: Path) -> Path:
    """An empty project directory."""
    d = tmp_path / "Fixture"
    d.mkdir()
    return d


@pytest.fixture()
def cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the catalyst cache at a temp directory."""
    d = tmp_path / "cache"
    monkeypatch.setenv("CATALYST_CACHE_DIR", str(d))
    return d


@pytest.fixture()
def fake_runner(project_dir: Path) -> FakeRunner:
    """A runner whose ``tuist graph`` reports :func:`sample_graph`."""
    return FakeRunner(sample_graph(str(project_dir.resolve())))
