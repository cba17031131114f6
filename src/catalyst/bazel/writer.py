"""Write generated Bazel files: workspace bootstrap, BUILD, and Info.plist."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from catalyst.bazel.synthesizer import RuleOptions, render_project
from catalyst.bazel.templates import (
    BAZELRC_FILENAME,
    BAZELRC_TEMPLATE,
    BUILD_FILENAME,
    WORKSPACE_FILENAME,
    WORKSPACE_TEMPLATE,
)

if TYPE_CHECKING:
    from catalyst.graph.model import ProjectRecord

logger = logging.getLogger(__name__)


def write_text_atomic(path: Path, content: str) -> None:
    """Replace *path* with *content* via a temp file in the same directory."""
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(content)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def write_workspace_files(root: Path, options: RuleOptions | None = None) -> list[Path]:
    """Write ``WORKSPACE`` and ``.bazelrc`` into *root*, overwriting both."""
    opts = options or RuleOptions()
    written: list[Path] = []
    for filename, content in (
        (WORKSPACE_FILENAME, WORKSPACE_TEMPLATE),
        (BAZELRC_FILENAME, BAZELRC_TEMPLATE.format(minimum_os_version=opts.minimum_os_version)),
    ):
        path = root / filename
        write_text_atomic(path, content)
        logger.info("Generated: %s", path)
        written.append(path)
    return written


def write_project_files(
    project: ProjectRecord,
    options: RuleOptions | None = None,
    *,
    directory: Path | None = None,
) -> list[Path]:
    """Write the project's ``BUILD`` file and its application manifests.

    Both come from the same :func:`render_project` call so the Info.plist
    bundle identifiers always match the rules that reference them.

    Parameters
    ----------
    project:
        Project record from the graph.
    options:
        Shared rule values (minimum OS, device families).
    directory:
        Output directory; defaults to the project's own path.

    Returns
    -------
    list[Path]
        Written files, BUILD first.
    """
    out_dir = directory or Path(project.path)
    rules = render_project(project, options)

    written: list[Path] = []
    build_path = out_dir / BUILD_FILENAME
    write_text_atomic(build_path, rules.build_file)
    written.append(build_path)
    for filename, content in sorted(rules.manifests.items()):
        manifest_path = out_dir / filename
        write_text_atomic(manifest_path, content)
        written.append(manifest_path)

    for path in written:
        logger.info("Generated: %s", path)
    return written
