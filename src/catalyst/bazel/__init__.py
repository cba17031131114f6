"""Bazel domain: BUILD synthesis, bootstrap templates, and file writing."""
