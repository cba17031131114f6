"""Tuist graph model: typed records decoded from ``tuist graph --format json``.

The ``projects`` array produced by Tuist interleaves plain path strings with
project objects.  Both are kept as explicit variants (:class:`PathMarker` and
:class:`ProjectRecord`) so callers never have to sniff shapes themselves.
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DecodeError(ValueError):
    """Raised when graph JSON does not have the expected shape."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


class ProductKind(enum.Enum):
    """Rule shape selected for a target."""

    APPLICATION = "application"
    UNIT_TEST = "unit_test"
    OTHER = "other"


# Tuist product strings with a dedicated rule shape; anything else is a library.
_PRODUCT_KINDS: dict[str, ProductKind] = {
    "app": ProductKind.APPLICATION,
    "unit_tests": ProductKind.UNIT_TEST,
}


@dataclass(frozen=True)
class ResolvedFile:
    """A file Tuist resolved inside a buildable folder."""

    path: str


@dataclass(frozen=True)
class BuildableFolder:
    """A synchronized folder and the files Tuist found in it."""

    path: str
    resolved_files: tuple[ResolvedFile, ...] = ()


@dataclass(frozen=True)
class TargetReference:
    """Reference from a dependency edge to another target."""

    name: str
    status: str = ""


@dataclass(frozen=True)
class Dependency:
    """A dependency edge; ``target`` is None for package/sdk dependencies."""

    target: TargetReference | None = None


@dataclass(frozen=True)
class Target:
    """A buildable unit within a project."""

    name: str
    product: str
    bundle_id: str
    buildable_folders: tuple[BuildableFolder, ...] = ()
    dependencies: tuple[Dependency, ...] = ()

    @property
    def product_kind(self) -> ProductKind:
        """Map the free-text Tuist product onto a rule shape."""
        return _PRODUCT_KINDS.get(self.product, ProductKind.OTHER)


@dataclass(frozen=True)
class ProjectRecord:
    """A Tuist project with its targets keyed by target name."""

    name: str
    path: str
    targets: dict[str, Target] = field(default_factory=dict)


@dataclass(frozen=True)
class PathMarker:
    """A bare path string found in the ``projects`` array."""

    path: str


ProjectEntry = PathMarker | ProjectRecord


@dataclass(frozen=True)
class Graph:
    """Decoded Tuist graph."""

    name: str
    path: str
    projects: tuple[ProjectEntry, ...] = ()

    def project_records(self) -> Iterator[ProjectRecord]:
        """Yield project records in graph order, skipping path markers."""
        for entry in self.projects:
            if isinstance(entry, ProjectRecord):
                yield entry


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _require_str(data: dict[str, Any], key: str, where: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise DecodeError(f"{where}.{key}: expected string, got {type(value).__name__}")
    return value


def _optional_list(data: dict[str, Any], key: str, where: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{where}.{key}: expected array, got {type(value).__name__}")
    return value


def _require_object(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{where}: expected object, got {type(value).__name__}")
    return value


def _decode_dependency(data: Any, where: str) -> Dependency:
    obj = _require_object(data, where)
    target = obj.get("target")
    # Package, sdk and xcframework dependencies carry no target reference.
    if not isinstance(target, dict):
        return Dependency()
    status = target.get("status", "")
    return Dependency(
        target=TargetReference(
            name=_require_str(target, "name", f"{where}.target"),
            status=status if isinstance(status, str) else "",
        )
    )


def _decode_folder(data: Any, where: str) -> BuildableFolder:
    obj = _require_object(data, where)
    files: list[ResolvedFile] = []
    for i, item in enumerate(_optional_list(obj, "resolvedFiles", where)):
        file_where = f"{where}.resolvedFiles[{i}]"
        file_obj = _require_object(item, file_where)
        files.append(ResolvedFile(path=_require_str(file_obj, "path", file_where)))
    return BuildableFolder(path=_require_str(obj, "path", where), resolved_files=tuple(files))


def _decode_target(data: Any, where: str) -> Target:
    obj = _require_object(data, where)
    folders = [
        _decode_folder(item, f"{where}.buildableFolders[{i}]")
        for i, item in enumerate(_optional_list(obj, "buildableFolders", where))
    ]
    deps = [
        _decode_dependency(item, f"{where}.dependencies[{i}]")
        for i, item in enumerate(_optional_list(obj, "dependencies", where))
    ]
    return Target(
        name=_require_str(obj, "name", where),
        product=_require_str(obj, "product", where),
        bundle_id=_require_str(obj, "bundleId", where),
        buildable_folders=tuple(folders),
        dependencies=tuple(deps),
    )


def _decode_project(data: dict[str, Any], where: str) -> ProjectRecord:
    targets_raw = _require_object(data.get("targets"), f"{where}.targets")
    targets = {
        key: _decode_target(value, f"{where}.targets.{key}") for key, value in targets_raw.items()
    }
    return ProjectRecord(
        name=_require_str(data, "name", where),
        path=_require_str(data, "path", where),
        targets=targets,
    )


def decode_graph(raw: bytes | str) -> Graph:
    """Decode ``tuist graph`` JSON output into a :class:`Graph`.

    Raises
    ------
    DecodeError
        When the JSON is invalid or a required field is missing or has the
        wrong primitive type.
    """
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"invalid graph JSON: {exc}") from exc

    root = _require_object(data, "graph")
    projects_raw = root.get("projects")
    if not isinstance(projects_raw, list):
        raise DecodeError(
            f"graph.projects: expected array, got {type(projects_raw).__name__}"
        )

    entries: list[ProjectEntry] = []
    for i, item in enumerate(projects_raw):
        if isinstance(item, str):
            entries.append(PathMarker(path=item))
        elif isinstance(item, dict):
            entries.append(_decode_project(item, f"projects[{i}]"))
        else:
            logger.debug("Skipping projects[%d]: unexpected %s entry", i, type(item).__name__)

    return Graph(
        name=_require_str(root, "name", "graph"),
        path=_require_str(root, "path", "graph"),
        projects=tuple(entries),
    )


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def _target_to_dict(target: Target) -> dict[str, Any]:
    return {
        "name": target.name,
        "product": target.product,
        "bundleId": target.bundle_id,
        "buildableFolders": [
            {
                "path": folder.path,
                "resolvedFiles": [{"path": f.path} for f in folder.resolved_files],
            }
            for folder in target.buildable_folders
        ],
        "dependencies": [
            {"target": {"name": dep.target.name, "status": dep.target.status}}
            if dep.target is not None
            else {}
            for dep in target.dependencies
        ],
    }


def graph_to_dict(graph: Graph) -> dict[str, Any]:
    """Serialize *graph* back to the Tuist JSON field layout."""
    projects: list[Any] = []
    for entry in graph.projects:
        if isinstance(entry, PathMarker):
            projects.append(entry.path)
        else:
            projects.append(
                {
                    "name": entry.name,
                    "path": entry.path,
                    "targets": {key: _target_to_dict(t) for key, t in entry.targets.items()},
                }
            )
    return {"name": graph.name, "path": graph.path, "projects": projects}
