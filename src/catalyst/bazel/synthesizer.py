"""BUILD synthesis: turn one Tuist project into Bazel rule text.

Each target becomes a self-contained block.  The rule shape depends on the
target's product kind:

- application: ``swift_library`` ``<name>_lib`` + ``ios_application`` ``<name>``
- unit test:   ``swift_library`` ``<name>_lib`` (testonly) + ``ios_unit_test``
- other:       a single public ``swift_library`` ``<name>``

Everything here is pure; :mod:`catalyst.bazel.writer` puts the text on disk.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from catalyst.bazel.templates import BUILD_PREAMBLE, infoplist_filename, render_infoplist
from catalyst.graph.model import ProductKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from catalyst.graph.model import ProjectRecord, Target

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".swift"})
RESOURCE_EXTENSIONS: frozenset[str] = frozenset({".xcassets", ".storyboard", ".xib"})
# Asset catalogs are directories; Bazel needs their contents globbed.
_DIRECTORY_RESOURCE_EXTENSIONS: frozenset[str] = frozenset({".xcassets"})
TEST_SUFFIX = "Tests"
_INDENT = "    "

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PathError(ValueError):
    """Raised when a file path cannot be expressed relative to its project."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleOptions:
    """Values shared by every generated bundle rule."""

    minimum_os_version: str = "15.0"
    families: tuple[str, ...] = ("iphone", "ipad")


@dataclass
class ClassifiedFiles:
    """Project-relative source and resource paths of one target."""

    sources: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectRules:
    """BUILD text plus the Info.plist manifests its rules reference."""

    build_file: str
    manifests: dict[str, str] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


def normalize_name(name: str) -> str:
    """Derive a Bazel rule name from a target name."""
    return name.lower()


def derive_test_host(target_name: str) -> str:
    """Strip the ``Tests`` suffix: ``FixtureTests`` -> ``Fixture``.

    The host application is found by naming convention only; the graph has
    no explicit edge from a test bundle to its host.
    """
    if target_name.endswith(TEST_SUFFIX) and len(target_name) > len(TEST_SUFFIX):
        return target_name[: -len(TEST_SUFFIX)]
    return target_name


# ---------------------------------------------------------------------------
# File classification and dependencies
# ---------------------------------------------------------------------------


def relative_to_project(path: str, project_path: str) -> str:
    """Return *path* relative to *project_path*.

    Relative inputs are taken as already project-relative.

    Raises
    ------
    PathError
        When the file lies outside the project directory.
    """
    file_path = PurePosixPath(path)
    if not file_path.is_absolute():
        if ".." in file_path.parts:
            raise PathError(f"{path} escapes project directory")
        return str(file_path)
    try:
        relative = file_path.relative_to(PurePosixPath(project_path))
    except ValueError as exc:
        raise PathError(f"{path} is not under {project_path}") from exc
    if ".." in relative.parts:
        raise PathError(f"{path} escapes project directory")
    return str(relative)


def classify_files(target: Target, project_path: str) -> ClassifiedFiles:
    """Split the target's resolved files into sources and resources.

    Files with other extensions, and files outside the project (generated
    or derived files Tuist may list), are dropped.
    """
    classified = ClassifiedFiles()
    seen: set[str] = set()
    for folder in target.buildable_folders:
        for resolved in folder.resolved_files:
            suffix = PurePosixPath(resolved.path).suffix
            if suffix in SOURCE_EXTENSIONS:
                bucket = classified.sources
            elif suffix in RESOURCE_EXTENSIONS:
                bucket = classified.resources
            else:
                continue
            try:
                rel_path = relative_to_project(resolved.path, project_path)
            except PathError as exc:
                logger.debug("Dropping file from %s: %s", target.name, exc)
                continue
            if rel_path not in seen:
                seen.add(rel_path)
                bucket.append(rel_path)
    return classified


def resolve_dependencies(target: Target) -> list[str]:
    """Return Bazel labels for the target's target-to-target dependencies."""
    labels: list[str] = []
    for dep in target.dependencies:
        if dep.target is None:
            continue
        label = f":{normalize_name(dep.target.name)}"
        if label not in labels:
            labels.append(label)
    return labels


# ---------------------------------------------------------------------------
# Starlark rendering
# ---------------------------------------------------------------------------


def _quote(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _inline_list(values: Iterable[str]) -> str:
    return "[" + ", ".join(_quote(v) for v in values) + "]"


def _block_list(values: list[str]) -> str:
    items = "".join(f"{_INDENT * 2}{_quote(v)},\n" for v in values)
    return f"[\n{items}{_INDENT}]"


def _attr(name: str, value: str) -> str:
    return f"{_INDENT}{name} = {value},\n"


def _swift_library(
    name: str,
    module_name: str,
    sources: list[str],
    fallback_glob: str,
    deps: list[str],
    *,
    testonly: bool = False,
) -> str:
    srcs = _block_list(sources) if sources else f"glob({_inline_list([fallback_glob])})"
    block = "swift_library(\n" + _attr("name", _quote(name)) + _attr("srcs", srcs)
    block += _attr("module_name", _quote(module_name))
    if testonly:
        block += _attr("testonly", "True")
    if deps:
        block += _attr("deps", _inline_list(deps))
    block += _attr("visibility", _inline_list(["//visibility:public"]))
    return block + ")\n\n"


def _resources_expr(resources: list[str]) -> str | None:
    files = [r for r in resources if PurePosixPath(r).suffix not in _DIRECTORY_RESOURCE_EXTENSIONS]
    dirs = [r for r in resources if PurePosixPath(r).suffix in _DIRECTORY_RESOURCE_EXTENSIONS]
    parts: list[str] = []
    if files:
        parts.append(_block_list(files))
    if dirs:
        parts.append(f"glob({_inline_list(f'{d}/**' for d in dirs)})")
    return " + ".join(parts) if parts else None


def _ios_application(
    target: Target, rule_name: str, resources: list[str], options: RuleOptions
) -> str:
    block = "ios_application(\n" + _attr("name", _quote(rule_name))
    block += _attr("bundle_id", _quote(target.bundle_id))
    block += _attr("families", _inline_list(options.families))
    block += _attr("infoplists", _inline_list([infoplist_filename(target.name)]))
    block += _attr("minimum_os_version", _quote(options.minimum_os_version))
    resources_expr = _resources_expr(resources)
    if resources_expr is not None:
        block += _attr("resources", resources_expr)
    block += _attr("deps", _inline_list([f":{rule_name}_lib"]))
    return block + ")\n\n"


def _ios_unit_test(target: Target, rule_name: str, options: RuleOptions) -> str:
    block = "ios_unit_test(\n" + _attr("name", _quote(rule_name))
    block += _attr("bundle_id", _quote(target.bundle_id))
    block += _attr("minimum_os_version", _quote(options.minimum_os_version))
    block += _attr("test_host", _quote(f":{normalize_name(derive_test_host(target.name))}"))
    block += _attr("deps", _inline_list([f":{rule_name}_lib"]))
    return block + ")\n\n"


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def render_target(
    target: Target, project_path: str, options: RuleOptions
) -> tuple[str, dict[str, str]]:
    """Render one target's rule block(s) and any manifest it needs."""
    files = classify_files(target, project_path)
    deps = resolve_dependencies(target)
    rule_name = normalize_name(target.name)
    kind = target.product_kind

    if kind is ProductKind.APPLICATION:
        text = _swift_library(
            f"{rule_name}_lib",
            target.name,
            files.sources,
            f"{target.name}/Sources/**/*.swift",
            deps,
        )
        text += _ios_application(target, rule_name, files.resources, options)
        plist = render_infoplist(target.name, target.bundle_id)
        return text, {infoplist_filename(target.name): plist}

    if kind is ProductKind.UNIT_TEST:
        text = _swift_library(
            f"{rule_name}_lib",
            target.name,
            files.sources,
            f"{derive_test_host(target.name)}/Tests/**/*.swift",
            deps,
            testonly=True,
        )
        return text + _ios_unit_test(target, rule_name, options), {}

    text = _swift_library(rule_name, target.name, files.sources, "Sources/**/*.swift", deps)
    return text, {}


def _check_test_hosts(project: ProjectRecord) -> None:
    app_names = {
        normalize_name(t.name)
        for t in project.targets.values()
        if t.product_kind is ProductKind.APPLICATION
    }
    for target in project.targets.values():
        if target.product_kind is not ProductKind.UNIT_TEST:
            continue
        host = normalize_name(derive_test_host(target.name))
        if host not in app_names:
            logger.warning(
                "Test target '%s' expects host app ':%s', which is not an app target in '%s'",
                target.name,
                host,
                project.name,
            )


def render_project(project: ProjectRecord, options: RuleOptions | None = None) -> ProjectRules:
    """Render the BUILD file and Info.plist manifests for *project*.

    Targets are emitted sorted by key so output is stable across runs.
    """
    opts = options or RuleOptions()
    _check_test_hosts(project)

    chunks = [BUILD_PREAMBLE]
    manifests: dict[str, str] = {}
    for key in sorted(project.targets):
        text, target_manifests = render_target(project.targets[key], project.path, opts)
        chunks.append(text)
        manifests.update(target_manifests)
    return ProjectRules(build_file="".join(chunks), manifests=manifests)


def synthesize(project: ProjectRecord, options: RuleOptions | None = None) -> str:
    """Return the complete BUILD file text for *project*."""
    return render_project(project, options).build_file
