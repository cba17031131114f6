"""Fixed file templates: WORKSPACE, .bazelrc, BUILD preamble, Info.plist."""

from __future__ import annotations

from xml.sax.saxutils import escape

WORKSPACE_FILENAME = "WORKSPACE"
BAZELRC_FILENAME = ".bazelrc"
BUILD_FILENAME = "BUILD"
INFOPLIST_SUFFIX = "-Info.plist"

BUILD_PREAMBLE = (
    'load("@build_bazel_rules_apple//apple:ios.bzl", "ios_application", "ios_unit_test")\n'
    'load("@build_bazel_rules_swift//swift:swift.bzl", "swift_library")\n'
    "\n"
)

WORKSPACE_TEMPLATE = """\
workspace(name = "catalyst_workspace")

# Apple rules for building iOS apps
load("@bazel_tools//tools/build_defs/repo:http.bzl", "http_archive")

http_archive(
    name = "build_bazel_rules_apple",
    sha256 = "b4df908ec14868369021182ab191dbd1f40830c9b300650d5dc389e0b9266c8d",
    url = "https://github.com/bazelbuild/rules_apple/releases/download/3.5.1/rules_apple.3.5.1.tar.gz",
)

load(
    "@build_bazel_rules_apple//apple:repositories.bzl",
    "apple_rules_dependencies",
)

apple_rules_dependencies()

load(
    "@build_bazel_rules_swift//swift:repositories.bzl",
    "swift_rules_dependencies",
)

swift_rules_dependencies()

load(
    "@build_bazel_rules_swift//swift:extras.bzl",
    "swift_rules_extra_dependencies",
)

swift_rules_extra_dependencies()

load(
    "@build_bazel_apple_support//lib:repositories.bzl",
    "apple_support_dependencies",
)

apple_support_dependencies()
"""

BAZELRC_TEMPLATE = """\
# Build settings
build --apple_platform_type=ios
build --ios_minimum_os={minimum_os_version}

# Xcode toolchain
build --apple_crosstool_top=@local_config_apple_cc//:toolchain
build --crosstool_top=@local_config_apple_cc//:toolchain
build --host_crosstool_top=@local_config_apple_cc//:toolchain

# Output settings
build --verbose_failures
build --announce_rc
"""

INFOPLIST_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<!DOCTYPE plist PUBLIC "-//Apple//DTD PLIST 1.0//EN" "http://www.apple.com/DTDs/PropertyList-1.0.dtd">
<plist version="1.0">
<dict>
    <key>CFBundleDevelopmentRegion</key>
    <string>en</string>
    <key>CFBundleExecutable</key>
    <string>{executable}</string>
    <key>CFBundleIdentifier</key>
    <string>{bundle_id}</string>
    <key>CFBundleInfoDictionaryVersion</key>
    <string>6.0</string>
    <key>CFBundleName</key>
    <string>{display_name}</string>
    <key>CFBundlePackageType</key>
    <string>APPL</string>
    <key>CFBundleShortVersionString</key>
    <string>1.0</string>
    <key>CFBundleVersion</key>
    <string>1</string>
    <key>LSRequiresIPhoneOS</key>
    <true/>
    <key>UILaunchScreen</key>
    <dict/>
</dict>
</plist>
"""


def infoplist_filename(target_name: str) -> str:
    """Return the manifest file name for an application target."""
    return f"{target_name}{INFOPLIST_SUFFIX}"


def render_infoplist(target_name: str, bundle_id: str) -> str:
    """Render the minimal Info.plist for an application bundle."""
    return INFOPLIST_TEMPLATE.format(
        executable=escape(target_name),
        bundle_id=escape(bundle_id),
        display_name=escape(target_name),
    )
