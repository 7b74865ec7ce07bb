"""Node registry: the indexed, link-resolved content corpus.

The registry is built once from a list of DialogueGraph values. Building
indexes every node by NodeKey and resolves every transition target (choice
``next_node_id`` and interrupt ``target_node_id``) to either a concrete
NodeKey or a Sentinel. Every defect found is collected and raised as one
ContentBuildFailed, so a registry that exists is known to be closed: any
resolved target points at a node that is in it.

Nodes are stored in a flat ``NodeKey -> DialogueNode`` map rather than linked
to each other, so hub/loop cycles in authored content are inert.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from stationgraph.graph.errors import (
    ContentBuildError,
    ContentBuildFailed,
    DanglingTargetError,
    DuplicateGraphError,
    DuplicateNodeError,
    MissingStartNodeError,
    UnresolvedEntryPointError,
)
from stationgraph.models import (
    SENTINELS,
    Choice,
    DialogueGraph,
    DialogueNode,
    EntryRef,
    NodeKey,
    Sentinel,
    Target,
)
from stationgraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

log = get_logger(__name__)

Resolution = NodeKey | Sentinel


class NodeRegistry:
    """Read-only index of every authored node, keyed by NodeKey."""

    def __init__(self) -> None:
        self._graphs: dict[str, DialogueGraph] = {}
        self._nodes: dict[NodeKey, DialogueNode] = {}
        self._choice_targets: dict[tuple[NodeKey, str], Resolution] = {}
        self._interrupt_targets: dict[tuple[NodeKey, str], Resolution] = {}

    @classmethod
    def build(cls, graphs: Iterable[DialogueGraph]) -> NodeRegistry:
        """Index and link a corpus.

        Raises:
            ContentBuildFailed: With every duplicate, missing root, dangling
                target and unresolved entry point found.
        """
        registry = cls()
        errors: list[ContentBuildError] = []

        for graph in graphs:
            if graph.graph_key in registry._graphs:
                errors.append(DuplicateGraphError(graph.graph_key))
                continue
            registry._graphs[graph.graph_key] = graph
            for node in graph.nodes:
                key = NodeKey(graph_key=graph.graph_key, node_id=node.node_id)
                if key in registry._nodes:
                    errors.append(DuplicateNodeError(graph.graph_key, node.node_id))
                    continue
                registry._nodes[key] = node

        for graph in registry._graphs.values():
            errors.extend(registry._check_roots(graph))

        for key, node in registry._nodes.items():
            errors.extend(registry._link(key, node))

        if errors:
            log.error("content_build_failed", errors=len(errors))
            raise ContentBuildFailed(errors)

        log.debug("registry_built", graphs=len(registry._graphs), nodes=len(registry._nodes))
        return registry

    def _check_roots(self, graph: DialogueGraph) -> list[ContentBuildError]:
        errors: list[ContentBuildError] = []
        if NodeKey(graph_key=graph.graph_key, node_id=graph.start_node_id) not in self._nodes:
            errors.append(MissingStartNodeError(graph.graph_key, graph.start_node_id))
        for name, node_id in graph.entry_points.items():
            if NodeKey(graph_key=graph.graph_key, node_id=node_id) not in self._nodes:
                errors.append(
                    MissingStartNodeError(graph.graph_key, node_id, role=f"entry point {name}")
                )
        return errors

    def _link(self, key: NodeKey, node: DialogueNode) -> list[ContentBuildError]:
        errors: list[ContentBuildError] = []
        for choice in node.choices:
            try:
                self._choice_targets[(key, choice.choice_id)] = self._resolve(
                    key, choice.next_node_id, context=f"choice '{choice.choice_id}'"
                )
            except ContentBuildError as e:
                errors.append(e)
            if choice.interrupt is None:
                continue
            try:
                self._interrupt_targets[(key, choice.choice_id)] = self._resolve(
                    key,
                    choice.interrupt.target_node_id,
                    context=f"interrupt on choice '{choice.choice_id}'",
                )
            except ContentBuildError as e:
                errors.append(e)
        return errors

    def _resolve(self, source: NodeKey, target: Target, *, context: str = "") -> Resolution:
        if isinstance(target, EntryRef):
            graph = self._graphs.get(target.graph)
            if graph is None:
                raise UnresolvedEntryPointError(target.graph, target.entry, graph_known=False)
            if target.entry not in graph.entry_points:
                raise UnresolvedEntryPointError(
                    target.graph, target.entry, exported=sorted(graph.entry_points)
                )
            return NodeKey(graph_key=graph.graph_key, node_id=graph.entry_points[target.entry])

        if target in SENTINELS:
            return Sentinel(target)

        resolved = NodeKey(graph_key=source.graph_key, node_id=target)
        if resolved not in self._nodes:
            raise DanglingTargetError(
                source.graph_key,
                source.node_id,
                target,
                available=self.node_ids(source.graph_key),
                context=context,
            )
        return resolved

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def choice_target(self, key: NodeKey, choice: Choice | str) -> Resolution | None:
        """Load-time resolution of a choice's ``next_node_id``."""
        choice_id = choice if isinstance(choice, str) else choice.choice_id
        return self._choice_targets.get((key, choice_id))

    def interrupt_target(self, key: NodeKey, choice: Choice | str) -> Resolution | None:
        """Load-time resolution of a choice's interrupt target, if it has one."""
        choice_id = choice if isinstance(choice, str) else choice.choice_id
        return self._interrupt_targets.get((key, choice_id))

    def get(self, key: NodeKey) -> DialogueNode | None:
        return self._nodes.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[NodeKey]:
        return iter(self._nodes)

    def graph(self, graph_key: str) -> DialogueGraph | None:
        return self._graphs.get(graph_key)

    @property
    def graph_keys(self) -> list[str]:
        return list(self._graphs)

    def node_ids(self, graph_key: str) -> list[str]:
        """Node ids of one graph in authored order."""
        graph = self._graphs.get(graph_key)
        return [n.node_id for n in graph.nodes] if graph else []

    def entry(self, graph_key: str, name: str) -> NodeKey:
        """Key of an exported entry point.

        Raises:
            UnresolvedEntryPointError: If the graph or entry name is unknown.
        """
        resolved = self._resolve(
            NodeKey(graph_key=graph_key, node_id="?"), EntryRef(graph=graph_key, entry=name)
        )
        assert isinstance(resolved, NodeKey)
        return resolved

    def start(self, graph_key: str) -> NodeKey:
        """Key of a graph's start node.

        Raises:
            KeyError: If no graph is registered under ``graph_key``.
        """
        graph = self._graphs[graph_key]
        return NodeKey(graph_key=graph_key, node_id=graph.start_node_id)

    def character_for(self, graph_key: str) -> str | None:
        """Default character for conditions and consequences in a graph."""
        graph = self._graphs.get(graph_key)
        return graph.character_id if graph else None

    @property
    def characters(self) -> list[str]:
        """Every character that owns a graph, sorted."""
        return sorted({g.character_id for g in self._graphs.values() if g.character_id})


def load_corpus(paths: Iterable[Path] = (), *, include_builtin: bool = True) -> NodeRegistry:
    """Build a registry from the bundled graphs plus YAML graph directories.

    Raises:
        ContentBuildFailed: If the combined corpus has any authoring defect.
        GraphFileError: If a YAML file can't be read.
    """
    from stationgraph.content import builtin_graphs
    from stationgraph.graph.loader import load_graph_dir

    graphs: list[DialogueGraph] = list(builtin_graphs()) if include_builtin else []
    for directory in paths:
        graphs.extend(load_graph_dir(directory))
    return NodeRegistry.build(graphs)
