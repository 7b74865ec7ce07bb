"""Reading dialogue graphs authored as YAML files."""

from __future__ import annotations

from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from pydantic import ValidationError
from ruamel.yaml import YAML

from stationgraph.models import DialogueGraph
from stationgraph.observability.logging import get_logger

log = get_logger(__name__)


class GraphFileError(Exception):
    """Raised when a graph file can't be read or doesn't describe a valid graph."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load graph file {path}: {reason}")


def _normalize(data: dict[str, Any]) -> dict[str, Any]:
    """Accept the short authoring keys used in YAML files."""
    data = dict(data)
    if "start" in data and "start_node_id" not in data:
        data["start_node_id"] = data.pop("start")
    return data


def load_graph_file(path: Path) -> DialogueGraph:
    """Read one YAML graph.

    Cross-graph targets are written as ``{graph: maya, entry: INTRODUCTION}``
    mappings and become EntryRef values; they are resolved when the graph
    is added to a registry.

    Raises:
        GraphFileError: If the file is missing, empty, or fails validation.
    """
    if not path.exists():
        raise GraphFileError(path, "File not found")

    yaml = YAML()
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)
    except Exception as e:
        raise GraphFileError(path, str(e)) from e

    if data is None:
        raise GraphFileError(path, "Empty file")
    if not isinstance(data, dict):
        raise GraphFileError(path, "Top level must be a mapping")

    try:
        graph = DialogueGraph.model_validate(_normalize(data))
    except ValidationError as e:
        raise GraphFileError(path, str(e)) from e

    log.debug("graph_file_loaded", path=str(path), graph=graph.graph_key, nodes=len(graph.nodes))
    return graph


def load_graph_dir(directory: Path) -> list[DialogueGraph]:
    """Read every ``*.yaml`` / ``*.yml`` graph in a directory, sorted by file name."""
    if not directory.is_dir():
        raise GraphFileError(directory, "Not a directory")
    files = sorted([*directory.glob("*.yaml"), *directory.glob("*.yml")])
    return [load_graph_file(path) for path in files]
