"""Catalyst - Tuist graph to Bazel build converter."""

__version__ = "0.1.0"
