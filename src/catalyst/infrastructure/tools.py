"""External tool invocation behind a narrow, swappable interface.

All tuist/bazel/xcrun calls go through a :class:`ToolRunner`; tests pass a
fake runner instead of spawning processes.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


class ExternalToolError(Exception):
    """Raised when an external tool cannot run or exits unsuccessfully."""

    def __init__(self, message: str, *, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


@dataclass(frozen=True)
class ExitResult:
    """Exit status and (when captured) output of a finished process."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ToolRunner(Protocol):
    """Capability to run an external command to completion."""

    def run(
        self,
        command: str,
        args: Sequence[str],
        workdir: Path | None = None,
        *,
        capture: bool = False,
    ) -> ExitResult: ...


class SubprocessRunner:
    """:class:`ToolRunner` backed by :func:`subprocess.run`.

    There is no timeout: the external tools are trusted to terminate.
    Output is inherited from the parent unless *capture* is set.
    """

    def run(
        self,
        command: str,
        args: Sequence[str],
        workdir: Path | None = None,
        *,
        capture: bool = False,
    ) -> ExitResult:
        logger.info("Running: %s %s", command, " ".join(args))
        try:
            proc = subprocess.run(  # noqa: S603
                [command, *args],
                cwd=str(workdir) if workdir is not None else None,
                capture_output=capture,
                text=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise ExternalToolError(f"{command} binary not found") from exc
        return ExitResult(
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )


def require_success(result: ExitResult, description: str) -> ExitResult:
    """Return *result*, or raise :class:`ExternalToolError` on nonzero exit."""
    if result.ok:
        return result
    message = f"{description} failed (exit code {result.returncode})"
    detail = result.stderr.strip()
    if detail:
        message = f"{message}: {detail}"
    raise ExternalToolError(message, returncode=result.returncode)


def run_build(runner: ToolRunner, project_dir: Path, target: str = "//...") -> None:
    """Run ``bazel build <target>`` in *project_dir*."""
    result = runner.run("bazel", ["build", target], project_dir)
    require_success(result, f"bazel build {target}")
