"""Install and launch a built app in the iOS Simulator via ``xcrun simctl``."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalyst.infrastructure.tools import ExternalToolError, require_success

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from catalyst.infrastructure.tools import ToolRunner

logger = logging.getLogger(__name__)

DEFAULT_SIMULATOR = "iPhone 16"
DEFAULT_BOOT_WAIT = 2.0


@dataclass(frozen=True)
class DeployResult:
    """Outcome of a simulator launch."""

    ipa_path: Path
    bundle_id: str
    launch_output: str  # "<bundle id>: <pid>" as printed by simctl


def ipa_path_for(project_dir: Path, target_name: str, package: str = "") -> Path:
    """Return where Bazel places the ``.ipa`` for *target_name*.

    *package* is the Bazel package (workspace-relative directory) whose BUILD
    file declares the target; outputs mirror it under ``bazel-bin``.
    """
    return project_dir / "bazel-bin" / package / f"{target_name}.ipa"


def deploy(
    runner: ToolRunner,
    project_dir: Path,
    target_name: str,
    bundle_id: str,
    device: str = DEFAULT_SIMULATOR,
    *,
    package: str = "",
    boot_wait: float = DEFAULT_BOOT_WAIT,
    sleep: Callable[[float], None] = time.sleep,
) -> DeployResult:
    """Boot *device*, install the built app, and launch it.

    The pause after booting only gives the simulator a head start; it does
    not wait for the device to be ready, so installs can still race a slow
    boot.

    Raises
    ------
    ExternalToolError
        When the ``.ipa`` is missing or install/launch fails.
    """
    boot = runner.run("xcrun", ["simctl", "boot", device])
    if not boot.ok:
        # simctl exits nonzero when the device is already booted.
        logger.info(
            "simctl boot '%s' exited with %d; assuming already booted", device, boot.returncode
        )
    sleep(boot_wait)

    ipa_path = ipa_path_for(project_dir, target_name, package)
    if not ipa_path.exists():
        raise ExternalToolError(f"IPA not found at: {ipa_path}")

    install = runner.run("xcrun", ["simctl", "install", "booted", str(ipa_path)])
    require_success(install, "simctl install")

    launch = runner.run("xcrun", ["simctl", "launch", "booted", bundle_id], capture=True)
    require_success(launch, f"simctl launch {bundle_id}")

    return DeployResult(ipa_path=ipa_path, bundle_id=bundle_id, launch_output=launch.stdout.strip())
