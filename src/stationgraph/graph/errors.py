"""Content build error types with author-actionable feedback.

These errors are raised while the node registry indexes the authored corpus,
the way foreign key violations surface when a database loads a dump. They
are authoring defects: a corpus that raises any of them never ships, so the
runtime never has to recover from one.

Each error can format itself as feedback telling an author what is wrong
and how to fix it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from difflib import get_close_matches

_PREVIEW_LIMIT = 20


class ContentBuildError(Exception):
    """Base class for authoring defects found at content load time.

    Subclasses implement to_feedback() to provide an actionable message.
    """

    def to_feedback(self) -> str:
        """Format error as actionable feedback for a content author."""
        raise NotImplementedError


@dataclass
class DuplicateNodeError(ContentBuildError):
    """Raised when a graph declares the same node id twice.

    Attributes:
        graph_key: Graph containing the duplicate.
        node_id: The repeated id.
    """

    graph_key: str
    node_id: str

    def __post_init__(self) -> None:
        super().__init__(f"Duplicate node '{self.node_id}' in graph '{self.graph_key}'")

    def to_feedback(self) -> str:
        return f"""## Duplicate Node

**Graph**: `{self.graph_key}`
**Node**: `{self.node_id}`

**Problem**: Node ids must be unique within a graph.

**Solutions**:
1. Rename one of the nodes and update the choices that point at it
2. Delete the stale copy if one of them is an old draft
"""


@dataclass
class DuplicateGraphError(ContentBuildError):
    """Raised when two graphs are registered under the same key."""

    graph_key: str

    def __post_init__(self) -> None:
        super().__init__(f"Graph '{self.graph_key}' registered twice")

    def to_feedback(self) -> str:
        return (
            f"## Duplicate Graph\n\n**Graph**: `{self.graph_key}`\n\n"
            "**Problem**: Every graph needs its own key. Check content modules and YAML files."
        )


@dataclass
class DanglingTargetError(ContentBuildError):
    """Raised when a choice or interrupt points at a node that does not exist.

    Attributes:
        graph_key: Graph of the node holding the reference.
        node_id: Node holding the reference.
        target: The unresolved node id.
        available: Node ids that exist in the graph.
        context: Which reference failed (e.g. "choice 'ask_more'").
    """

    graph_key: str
    node_id: str
    target: str
    available: list[str] = field(default_factory=list)
    context: str = ""

    def __post_init__(self) -> None:
        msg = f"'{self.graph_key}/{self.node_id}' points at missing node '{self.target}'"
        if self.context:
            msg += f" ({self.context})"
        super().__init__(msg)

    def suggestions(self) -> list[str]:
        """Find existing ids that look like typos of the target."""
        return get_close_matches(self.target, self.available, n=3, cutoff=0.6)

    def to_feedback(self) -> str:
        lines = [
            "## Dangling Transition",
            "",
            f"**Source**: `{self.graph_key}/{self.node_id}`",
            f"**Target**: `{self.target}`",
        ]
        if self.context:
            lines.append(f"**Reference**: {self.context}")
        lines.extend(
            [
                "",
                "**Problem**: The target is not a node in this graph, a sentinel, or an entry point.",
                "",
            ]
        )
        suggestions = self.suggestions()
        if suggestions:
            lines.append("**Did you mean one of these?**")
            lines.extend(f"  - `{s}`" for s in suggestions)
            lines.append("")
        lines.append(
            "**Solution**: Use an id from this graph, or link to another graph with "
            "its exported entry point (`ENTRY_POINTS.ref(...)`)."
        )
        return "\n".join(lines)


@dataclass
class UnresolvedEntryPointError(ContentBuildError):
    """Raised when a cross-graph reference names an entry point that is not exported.

    Attributes:
        graph_key: The graph the reference points into.
        entry: The entry point name requested.
        exported: Entry point names the graph actually exports (empty if
            the graph itself is unknown).
        graph_known: False when no graph is registered under ``graph_key``.
    """

    graph_key: str
    entry: str
    exported: list[str] = field(default_factory=list)
    graph_known: bool = True

    def __post_init__(self) -> None:
        if self.graph_known:
            msg = f"Graph '{self.graph_key}' does not export entry point '{self.entry}'"
        else:
            msg = f"Cross-graph reference to unknown graph '{self.graph_key}' ({self.entry})"
        super().__init__(msg)

    def to_feedback(self) -> str:
        lines = ["## Unresolved Entry Point", "", f"**Reference**: `{self.graph_key}.{self.entry}`", ""]
        if not self.graph_known:
            lines.append("**Problem**: No graph with this key is part of the corpus.")
            return "\n".join(lines)
        lines.append("**Problem**: Only exported entry points may be linked from other graphs.")
        if self.exported:
            lines.append("")
            lines.append("**Exported entry points**:")
            lines.extend(f"  - `{name}`" for name in self.exported[:_PREVIEW_LIMIT])
        return "\n".join(lines)


@dataclass
class MissingStartNodeError(ContentBuildError):
    """Raised when a graph's start node or an exported entry node does not exist."""

    graph_key: str
    node_id: str
    role: str = "start node"

    def __post_init__(self) -> None:
        super().__init__(f"Graph '{self.graph_key}' {self.role} '{self.node_id}' does not exist")

    def to_feedback(self) -> str:
        return (
            f"## Missing {self.role.title()}\n\n"
            f"**Graph**: `{self.graph_key}`\n**Node**: `{self.node_id}`\n\n"
            "**Problem**: Declared roots must be nodes of the graph."
        )


@dataclass
class ContentBuildFailed(Exception):
    """Raised once per build with every defect found.

    Attributes:
        errors: All content build errors collected while loading.
    """

    errors: list[ContentBuildError]

    def __post_init__(self) -> None:
        super().__init__(f"Content build failed: {len(self.errors)} error(s)")

    def __str__(self) -> str:
        lines = [f"Content build failed with {len(self.errors)} error(s):"]
        for error in self.errors[:_PREVIEW_LIMIT]:
            lines.append(f"  - {error}")
        if len(self.errors) > _PREVIEW_LIMIT:
            lines.append(f"  - ... and {len(self.errors) - _PREVIEW_LIMIT} more")
        return "\n".join(lines)
