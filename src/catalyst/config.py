"""Configuration: ``.catalyst/config.yml`` and resolved run directories."""

from __future__ import annotations

import logging
import os
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from catalyst.bazel.synthesizer import RuleOptions
from catalyst.infrastructure.simulator import DEFAULT_BOOT_WAIT, DEFAULT_SIMULATOR

logger = logging.getLogger(__name__)

CONFIG_RELPATH = Path(".catalyst") / "config.yml"
CACHE_DIR_ENV = "CATALYST_CACHE_DIR"


@dataclass(frozen=True)
class CatalystConfig:
    """Per-project settings; every key is optional."""

    minimum_os_version: str = "15.0"
    families: tuple[str, ...] = ("iphone", "ipad")
    simulator: str = DEFAULT_SIMULATOR
    boot_wait_seconds: float = DEFAULT_BOOT_WAIT

    @property
    def rule_options(self) -> RuleOptions:
        return RuleOptions(minimum_os_version=self.minimum_os_version, families=self.families)


@dataclass(frozen=True)
class RunPaths:
    """Directories a build run works in, resolved once up front."""

    project_dir: Path
    cache_dir: Path
    temp_dir: Path


# ---------------------------------------------------------------------------
# Config loading
# ---------------------------------------------------------------------------


def load_config(project_dir: Path) -> CatalystConfig:
    """Load ``<project_dir>/.catalyst/config.yml``.

    Falls back to defaults for a missing file, an unreadable file, or any
    key with the wrong type.
    """
    config_path = project_dir / CONFIG_RELPATH
    if not config_path.is_file():
        return CatalystConfig()

    try:
        with config_path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError):
        logger.warning("Failed to read %s, using defaults", config_path)
        return CatalystConfig()

    if data is None:
        return CatalystConfig()
    if not isinstance(data, dict):
        logger.warning("%s is not a mapping, using defaults", config_path)
        return CatalystConfig()

    kwargs: dict[str, Any] = {}

    min_os = data.get("minimum_os_version")
    if isinstance(min_os, (str, int, float)) and not isinstance(min_os, bool):
        kwargs["minimum_os_version"] = str(min_os)
    elif min_os is not None:
        logger.warning("Ignoring invalid minimum_os_version in %s", config_path)

    families = data.get("families")
    if isinstance(families, list) and families and all(isinstance(f, str) for f in families):
        kwargs["families"] = tuple(families)
    elif families is not None:
        logger.warning("Ignoring invalid families in %s", config_path)

    simulator = data.get("simulator")
    if isinstance(simulator, str) and simulator:
        kwargs["simulator"] = simulator
    elif simulator is not None:
        logger.warning("Ignoring invalid simulator in %s", config_path)

    boot_wait = data.get("boot_wait_seconds")
    if isinstance(boot_wait, (int, float)) and not isinstance(boot_wait, bool) and boot_wait >= 0:
        kwargs["boot_wait_seconds"] = float(boot_wait)
    elif boot_wait is not None:
        logger.warning("Ignoring invalid boot_wait_seconds in %s", config_path)

    return CatalystConfig(**kwargs)


# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


def resolve_cache_dir() -> Path:
    """Return the catalyst cache directory (not created).

    ``$CATALYST_CACHE_DIR`` wins; otherwise the platform cache base is used:
    ``~/Library/Caches`` on macOS, ``$XDG_CACHE_HOME`` or ``~/.cache``
    elsewhere.
    """
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override)
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Caches"
    else:
        xdg = os.environ.get("XDG_CACHE_HOME")
        base = Path(xdg) if xdg else Path.home() / ".cache"
    return base / "catalyst"


def resolve_paths(project_dir: Path) -> RunPaths:
    """Resolve the working, cache, and temp directories for a run."""
    return RunPaths(
        project_dir=project_dir.resolve(),
        cache_dir=resolve_cache_dir(),
        temp_dir=Path(tempfile.gettempdir()),
    )
