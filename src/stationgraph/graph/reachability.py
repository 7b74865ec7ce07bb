"""Offline reachability audit of the authored corpus.

For each graph, a breadth-first walk starts from the graph's start node and
its exported entry points and follows every resolved choice and interrupt
target inside the graph. Conditions are ignored: an edge counts as
reachable in principle even if its gate could never be satisfied. Sentinel
targets are hand-offs, not edges, and cross-graph targets land on the other
graph's entry points, which that graph's walk already starts from.

Graphs are independent, so each one is walked on its own. This never runs
on the interactive path.
"""

from __future__ import annotations

import json
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from stationgraph.models import NodeKey
from stationgraph.observability.logging import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from stationgraph.graph.registry import NodeRegistry

log = get_logger(__name__)


@dataclass
class GraphReachability:
    """Walk result for one graph."""

    graph_key: str
    roots: list[str]
    reachable: set[str] = field(default_factory=set)
    unreachable: list[str] = field(default_factory=list)

    @property
    def node_count(self) -> int:
        return len(self.reachable) + len(self.unreachable)


@dataclass
class ReachabilityReport:
    """Audit result over the whole corpus."""

    graphs: dict[str, GraphReachability] = field(default_factory=dict)
    generated_at: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def unreachable(self) -> list[NodeKey]:
        """Every unreachable node, sorted by graph then node id."""
        keys = [
            NodeKey(graph_key=g.graph_key, node_id=node_id)
            for g in self.graphs.values()
            for node_id in g.unreachable
        ]
        return sorted(keys, key=NodeKey.sort_key)

    def to_dict(self) -> dict[str, Any]:
        """JSON shape consumed by the quarantine verifier."""
        return {
            "generated_at": self.generated_at,
            "totals": {
                "graphs": len(self.graphs),
                "nodes": sum(g.node_count for g in self.graphs.values()),
                "unreachable": sum(len(g.unreachable) for g in self.graphs.values()),
            },
            "by_graph": {
                key: {
                    "nodes": g.node_count,
                    "roots": g.roots,
                    "reachable": len(g.reachable),
                    "unreachable": len(g.unreachable),
                }
                for key, g in sorted(self.graphs.items())
            },
            "unreachable": [{"graphKey": k.graph_key, "nodeId": k.node_id} for k in self.unreachable],
        }

    def write(self, path: Path) -> Path:
        """Write the report as pretty JSON, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        log.info("reachability_report_written", path=str(path), unreachable=len(self.unreachable))
        return path


def walk_graph(registry: NodeRegistry, graph_key: str) -> GraphReachability:
    """Breadth-first walk of one graph from its declared roots."""
    graph = registry.graph(graph_key)
    if graph is None:
        raise KeyError(graph_key)

    result = GraphReachability(graph_key=graph_key, roots=graph.root_node_ids)
    queue: deque[str] = deque(graph.root_node_ids)
    while queue:
        node_id = queue.popleft()
        if node_id in result.reachable:
            continue
        key = NodeKey(graph_key=graph_key, node_id=node_id)
        node = registry.get(key)
        if node is None:
            continue
        result.reachable.add(node_id)
        for choice in node.choices:
            for target in (registry.choice_target(key, choice), registry.interrupt_target(key, choice)):
                if isinstance(target, NodeKey) and target.graph_key == graph_key:
                    queue.append(target.node_id)

    result.unreachable = [n for n in registry.node_ids(graph_key) if n not in result.reachable]
    log.debug(
        "graph_walked",
        graph=graph_key,
        reachable=len(result.reachable),
        unreachable=len(result.unreachable),
    )
    return result


def analyze(registry: NodeRegistry) -> ReachabilityReport:
    """Walk every graph in the registry."""
    report = ReachabilityReport()
    for graph_key in registry.graph_keys:
        report.graphs[graph_key] = walk_graph(registry, graph_key)
    return report
