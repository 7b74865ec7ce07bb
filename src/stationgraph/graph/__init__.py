"""Graph package - the authored corpus as an indexed, linked registry.

Building a registry checks the corpus the way a compiler checks a program:
duplicate ids, dangling targets and unresolved entry points are reported
together as one ContentBuildFailed. The reachability audit, quarantine
verifier and lint checks all run over a built registry.
"""

from stationgraph.graph.errors import (
    ContentBuildError,
    ContentBuildFailed,
    DanglingTargetError,
    DuplicateGraphError,
    DuplicateNodeError,
    MissingStartNodeError,
    UnresolvedEntryPointError,
)
from stationgraph.graph.loader import GraphFileError, load_graph_dir, load_graph_file
from stationgraph.graph.registry import NodeRegistry, load_corpus

__all__ = [
    "ContentBuildError",
    "ContentBuildFailed",
    "DanglingTargetError",
    "DuplicateGraphError",
    "DuplicateNodeError",
    "GraphFileError",
    "MissingStartNodeError",
    "NodeRegistry",
    "UnresolvedEntryPointError",
    "load_corpus",
    "load_graph_dir",
    "load_graph_file",
]
