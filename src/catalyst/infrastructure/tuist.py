"""Fetch the project graph from ``tuist graph``."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from catalyst.graph.model import Graph, decode_graph
from catalyst.infrastructure.tools import ExternalToolError, require_success

if TYPE_CHECKING:
    from catalyst.infrastructure.tools import ToolRunner

logger = logging.getLogger(__name__)

GRAPH_FILENAME = "graph.json"


def fetch_graph(runner: ToolRunner, project_dir: Path, *, temp_dir: Path | None = None) -> Graph:
    """Run ``tuist graph`` for *project_dir* and decode its JSON output.

    The output lands in a temporary directory (under *temp_dir* when given)
    that is removed afterwards, whether or not decoding succeeds.

    Raises
    ------
    ExternalToolError
        When tuist fails or writes no ``graph.json``.
    DecodeError
        When the output is not a valid graph.
    """
    with tempfile.TemporaryDirectory(prefix="tuist-graph-", dir=temp_dir) as tmp:
        output_dir = Path(tmp)
        args = ["graph", "--format", "json", "--no-open", "--output-path", str(output_dir)]
        require_success(runner.run("tuist", args, project_dir), "tuist graph")

        graph_file = output_dir / GRAPH_FILENAME
        try:
            raw = graph_file.read_bytes()
        except FileNotFoundError as exc:
            raise ExternalToolError(f"tuist graph did not write {graph_file}") from exc

    graph = decode_graph(raw)
    logger.info("Parsed Tuist graph for project: %s", graph.name)
    return graph
