"""Infrastructure: external tool invocation (tuist, bazel, simctl)."""
