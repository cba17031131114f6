"""Locate the application target to launch in the simulator."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from catalyst.bazel.synthesizer import normalize_name
from catalyst.graph.model import ProductKind

if TYPE_CHECKING:
    from catalyst.graph.model import Graph

logger = logging.getLogger(__name__)


class TargetNotFoundError(LookupError):
    """Raised when no application target matches the request."""


@dataclass(frozen=True)
class ResolvedTarget:
    """Bazel label name, bundle identifier and owning project of an app target."""

    name: str
    bundle_id: str
    project_path: str = ""


def find_application_target(graph: Graph, name_hint: str | None = None) -> ResolvedTarget:
    """Return the application target to deploy.

    Projects are scanned in graph order and targets in the order Tuist wrote
    them.  With *name_hint*, the target key must match case-insensitively;
    without it the first application target wins.  When several application
    targets exist and no hint was given, a warning names the ones skipped.

    Raises
    ------
    TargetNotFoundError
        When no application target matches.
    """
    wanted = normalize_name(name_hint) if name_hint is not None else None
    candidates: list[ResolvedTarget] = []

    for project in graph.project_records():
        for key, target in project.targets.items():
            if target.product_kind is not ProductKind.APPLICATION:
                continue
            if wanted is not None and normalize_name(key) != wanted:
                continue
            resolved = ResolvedTarget(
                name=normalize_name(key), bundle_id=target.bundle_id, project_path=project.path
            )
            if wanted is not None:
                return resolved
            candidates.append(resolved)

    if not candidates:
        if name_hint is not None:
            raise TargetNotFoundError(f"No app target named '{name_hint}' found in project")
        raise TargetNotFoundError("No app target found in project")

    chosen = candidates[0]
    if len(candidates) > 1:
        others = ", ".join(c.name for c in candidates[1:])
        logger.warning(
            "Multiple app targets found; using '%s' (also: %s). Pass --target to choose.",
            chosen.name,
            others,
        )
    return chosen
