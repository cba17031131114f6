"""Tests for catalyst.bazel.synthesizer — BUILD text generation."""

from __future__ import annotations

import json
import logging
import re

import pytest
from conftest import make_target, sample_graph

from catalyst.bazel.synthesizer import (
    PathError,
    RuleOptions,
    classify_files,
    derive_test_host,
    normalize_name,
    relative_to_project,
    render_project,
    resolve_dependencies,
    synthesize,
)
from catalyst.graph.model import ProjectRecord, decode_graph


def _project(targets: dict[str, dict[str, object]], path: str = "/proj") -> ProjectRecord:
    data = {
        "name": "G",
        "path": path,
        "projects": [{"name": "P", "path": path, "targets": targets}],
    }
    return next(decode_graph(json.dumps(data)).project_records())


def _block(text: str, rule: str, name: str) -> str:
    """Return the text of the ``rule(name = "<name>", ...)`` block."""
    match = re.search(rf'{rule}\(\n    name = "{re.escape(name)}",\n.*?\n\)\n', text, re.DOTALL)
    assert match is not None, f"{rule} {name} not found in:\n{text}"
    return match.group(0)


# --- naming ---


class TestNormalizeName:
    @pytest.mark.parametrize("name", ["App", "FixtureTests", "already_lower", "MiXeD-Name"])
    def test_idempotent(self, name: str) -> None:
        assert normalize_name(normalize_name(name)) == normalize_name(name)

    def test_lowercases(self) -> None:
        assert normalize_name("FixtureApp") == "fixtureapp"


class TestDeriveTestHost:
    def test_strips_suffix(self) -> None:
        assert derive_test_host("FooTests") == "Foo"

    def test_only_trailing_suffix(self) -> None:
        assert derive_test_host("TestsHelperTests") == "TestsHelper"

    def test_without_suffix_unchanged(self) -> None:
        assert derive_test_host("Integration") == "Integration"


# --- classification ---


class TestRelativeToProject:
    def test_strips_project_prefix(self) -> None:
        assert relative_to_project("/proj/Sources/A.swift", "/proj") == "Sources/A.swift"

    def test_outside_project_raises(self) -> None:
        with pytest.raises(PathError):
            relative_to_project("/other/B.swift", "/proj")

    def test_sibling_with_common_prefix_raises(self) -> None:
        with pytest.raises(PathError):
            relative_to_project("/project2/B.swift", "/proj")

    def test_relative_input_kept(self) -> None:
        assert relative_to_project("Sources/A.swift", "/proj") == "Sources/A.swift"

    def test_relative_escape_raises(self) -> None:
        with pytest.raises(PathError):
            relative_to_project("../A.swift", "/proj")

    def test_absolute_escape_through_parent_raises(self) -> None:
        with pytest.raises(PathError):
            relative_to_project("/proj/../other/B.swift", "/proj")


class TestClassifyFiles:
    def test_sources_resources_and_drops(self) -> None:
        project = _project(
            {
                "App": make_target(
                    "App",
                    "app",
                    "com.x.app",
                    files=[
                        "/proj/Sources/A.swift",
                        "/other/B.swift",
                        "/proj/Assets.xcassets",
                        "/proj/Base.lproj/Main.storyboard",
                        "/proj/Views/Cell.xib",
                        "/proj/README.md",
                        "/proj/Info.plist",
                        "/proj/../other/C.swift",
                    ],
                )
            }
        )
        files = classify_files(project.targets["App"], project.path)
        assert files.sources == ["Sources/A.swift"]
        assert files.resources == [
            "Assets.xcassets",
            "Base.lproj/Main.storyboard",
            "Views/Cell.xib",
        ]

    def test_duplicates_removed_in_order(self) -> None:
        project = _project(
            {
                "Lib": make_target(
                    "Lib",
                    "framework",
                    "x",
                    files=["/proj/B.swift", "/proj/A.swift", "/proj/B.swift"],
                )
            }
        )
        files = classify_files(project.targets["Lib"], project.path)
        assert files.sources == ["B.swift", "A.swift"]


class TestResolveDependencies:
    def test_target_refs_normalized_and_packages_dropped(self) -> None:
        project = _project(
            {
                "App": make_target(
                    "App",
                    "app",
                    "x",
                    deps=[
                        {"target": {"name": "CoreKit", "status": "required"}},
                        {"package": {"product": "Alamofire"}},
                        {"target": {"name": "UI"}},
                    ],
                )
            }
        )
        assert resolve_dependencies(project.targets["App"]) == [":corekit", ":ui"]


# --- synthesize ---


class TestSynthesizeApplication:
    def test_end_to_end_single_app(self) -> None:
        project = _project(
            {
                "App": make_target(
                    "App", "app", "com.x.app", files=["/proj/Sources/Main.swift"]
                )
            }
        )
        text = synthesize(project)

        lib = _block(text, "swift_library", "app_lib")
        assert '    srcs = [\n        "Sources/Main.swift",\n    ],\n' in lib
        assert 'module_name = "App"' in lib
        assert "deps" not in lib

        app = _block(text, "ios_application", "app")
        assert 'bundle_id = "com.x.app"' in app
        assert 'deps = [":app_lib"]' in app
        assert 'infoplists = ["App-Info.plist"]' in app
        assert 'families = ["iphone", "ipad"]' in app
        assert 'minimum_os_version = "15.0"' in app

    def test_exactly_one_library_and_one_bundle(self) -> None:
        project = _project({"App": make_target("App", "app", "com.x.app")})
        text = synthesize(project)
        assert text.count("swift_library(\n") == 1
        assert text.count("ios_application(\n") == 1

    def test_starts_with_load_preamble(self) -> None:
        text = synthesize(_project({}))
        assert text == (
            'load("@build_bazel_rules_apple//apple:ios.bzl", "ios_application", "ios_unit_test")\n'
            'load("@build_bazel_rules_swift//swift:swift.bzl", "swift_library")\n'
            "\n"
        )

    def test_glob_fallback_when_no_sources(self) -> None:
        project = _project(
            {"Fixture": make_target("Fixture", "app", "x", files=["/elsewhere/A.swift"])}
        )
        lib = _block(synthesize(project), "swift_library", "fixture_lib")
        assert 'srcs = glob(["Fixture/Sources/**/*.swift"])' in lib

    def test_resources_on_application(self) -> None:
        project = _project(
            {
                "App": make_target(
                    "App",
                    "app",
                    "x",
                    files=["/proj/Main.storyboard", "/proj/Assets.xcassets"],
                )
            }
        )
        app = _block(synthesize(project), "ios_application", "app")
        assert (
            '    resources = [\n        "Main.storyboard",\n    ] + glob(["Assets.xcassets/**"]),\n'
            in app
        )

    def test_dependencies_on_library(self) -> None:
        graph = decode_graph(json.dumps(sample_graph("/proj")))
        text = synthesize(next(graph.project_records()))
        lib = _block(text, "swift_library", "fixture_lib")
        assert 'deps = [":core"]' in lib

    def test_options_override_fixed_values(self) -> None:
        project = _project({"App": make_target("App", "app", "x")})
        text = synthesize(project, RuleOptions(minimum_os_version="17.0", families=("iphone",)))
        app = _block(text, "ios_application", "app")
        assert 'minimum_os_version = "17.0"' in app
        assert 'families = ["iphone"]' in app


class TestSynthesizeUnitTest:
    def test_test_bundle_with_host(self) -> None:
        project = _project(
            {
                "Foo": make_target("Foo", "app", "com.x.foo"),
                "FooTests": make_target(
                    "FooTests", "unit_tests", "com.x.footests", files=["/proj/Tests/T.swift"]
                ),
            }
        )
        text = synthesize(project)
        lib = _block(text, "swift_library", "footests_lib")
        assert "testonly = True" in lib
        test = _block(text, "ios_unit_test", "footests")
        assert 'test_host = ":foo"' in test
        assert 'deps = [":footests_lib"]' in test
        assert 'bundle_id = "com.x.footests"' in test

    def test_glob_fallback_uses_host_folder(self) -> None:
        project = _project({"FixtureTests": make_target("FixtureTests", "unit_tests", "x")})
        lib = _block(synthesize(project), "swift_library", "fixturetests_lib")
        assert 'srcs = glob(["Fixture/Tests/**/*.swift"])' in lib

    def test_missing_host_logs_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        project = _project({"FooTests": make_target("FooTests", "unit_tests", "x")})
        with caplog.at_level(logging.WARNING, logger="catalyst.bazel.synthesizer"):
            text = synthesize(project)
        assert 'test_host = ":foo"' in text
        assert "expects host app ':foo'" in caplog.text

    def test_present_host_no_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        project = _project(
            {
                "Foo": make_target("Foo", "app", "x"),
                "FooTests": make_target("FooTests", "unit_tests", "y"),
            }
        )
        with caplog.at_level(logging.WARNING, logger="catalyst.bazel.synthesizer"):
            synthesize(project)
        assert caplog.text == ""


class TestSynthesizeLibrary:
    def test_unknown_product_is_public_library(self) -> None:
        project = _project(
            {"Core": make_target("Core", "mystery_product", "x", files=["/proj/Core/C.swift"])}
        )
        text = synthesize(project)
        lib = _block(text, "swift_library", "core")
        assert 'visibility = ["//visibility:public"]' in lib
        assert "ios_" not in text.split("\n\n", 1)[1]

    def test_glob_fallback(self) -> None:
        project = _project({"Core": make_target("Core", "framework", "x")})
        lib = _block(synthesize(project), "swift_library", "core")
        assert 'srcs = glob(["Sources/**/*.swift"])' in lib


class TestDeterminism:
    def test_targets_sorted_by_key(self) -> None:
        project = _project(
            {
                "Zeta": make_target("Zeta", "framework", "z"),
                "Alpha": make_target("Alpha", "framework", "a"),
            }
        )
        text = synthesize(project)
        assert text.index('name = "alpha"') < text.index('name = "zeta"')

    def test_repeated_runs_identical(self) -> None:
        project = next(decode_graph(json.dumps(sample_graph("/proj"))).project_records())
        assert synthesize(project) == synthesize(project)

    def test_dependency_labels_resolve_within_project(self) -> None:
        project = next(decode_graph(json.dumps(sample_graph("/proj"))).project_records())
        text = synthesize(project)
        rule_names = set(re.findall(r'name = "([^"]+)"', text))
        for deps in re.findall(r"deps = \[([^\]]*)\]", text):
            for label in re.findall(r'":([^"]+)"', deps):
                assert label in rule_names


class TestRenderProject:
    def test_manifest_for_each_app(self) -> None:
        project = _project(
            {
                "App": make_target("App", "app", "com.x.app"),
                "AppTests": make_target("AppTests", "unit_tests", "com.x.apptests"),
                "Lib": make_target("Lib", "framework", "com.x.lib"),
            }
        )
        rules = render_project(project)
        assert list(rules.manifests) == ["App-Info.plist"]
        plist = rules.manifests["App-Info.plist"]
        assert "<string>com.x.app</string>" in plist
        assert "<key>CFBundleExecutable</key>\n    <string>App</string>" in plist
        assert rules.build_file == synthesize(project)
