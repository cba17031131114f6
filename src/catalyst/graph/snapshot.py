"""Graph snapshot: persist the decoded graph to the cache for inspection."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from catalyst.bazel.writer import write_text_atomic
from catalyst.graph.model import Graph, decode_graph, graph_to_dict

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

SNAPSHOT_FILENAME = "graph.json"


def save_graph_snapshot(graph: Graph, cache_dir: Path) -> Path:
    """Write *graph* as pretty JSON to ``<cache_dir>/graph.json``.

    The snapshot is never read back by the build itself; it exists so users
    can inspect what Tuist reported (``jq < graph.json``).

    Returns:
        Path of the written snapshot.
    """
    cache_dir.mkdir(parents=True, exist_ok=True)
    snapshot_path = cache_dir / SNAPSHOT_FILENAME
    content = json.dumps(graph_to_dict(graph), ensure_ascii=False, indent=2) + "\n"
    write_text_atomic(snapshot_path, content)
    logger.info("Saved graph metadata to %s", snapshot_path)
    return snapshot_path


def load_graph_snapshot(path: Path) -> Graph:
    """Decode a snapshot previously written by :func:`save_graph_snapshot`."""
    return decode_graph(path.read_bytes())
