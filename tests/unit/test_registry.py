"""Tests for the node registry and content build errors."""

from __future__ import annotations

import pytest

from stationgraph.graph import (
    ContentBuildFailed,
    DanglingTargetError,
    DuplicateGraphError,
    DuplicateNodeError,
    MissingStartNodeError,
    NodeRegistry,
    UnresolvedEntryPointError,
)
from stationgraph.models import EntryRef, InterruptType, InterruptWindow, NodeKey, Sentinel
from tests.fixtures.graph_fixtures import make_choice, make_graph, make_node


def _key(graph: str, node: str) -> NodeKey:
    return NodeKey(graph_key=graph, node_id=node)


class TestRegistryBuild:
    """Tests for indexing and link resolution."""

    def test_indexes_nodes_by_key(self) -> None:
        """Every node is reachable by (graph, node id)."""
        registry = NodeRegistry.build([make_graph("alpha", [make_node("a"), make_node("b")])])

        assert len(registry) == 2
        assert registry.get(_key("alpha", "b")) is not None
        assert _key("alpha", "c") not in registry

    def test_same_graph_targets_resolve(self) -> None:
        """A plain string target means a node in the same graph."""
        graph = make_graph("alpha", [make_node("a", make_choice("go", "b")), make_node("b")])
        registry = NodeRegistry.build([graph])

        assert registry.choice_target(_key("alpha", "a"), "go") == _key("alpha", "b")

    def test_sentinel_targets_resolve(self) -> None:
        """Sentinels resolve to themselves, not to nodes."""
        graph = make_graph("alpha", [make_node("a", make_choice("leave", Sentinel.TRAVEL_PENDING))])
        registry = NodeRegistry.build([graph])

        assert registry.choice_target(_key("alpha", "a"), "leave") is Sentinel.TRAVEL_PENDING

    def test_cross_graph_entry_ref_resolves(self) -> None:
        """EntryRef targets resolve through the other graph's exports."""
        alpha = make_graph("alpha", [make_node("a", make_choice("visit", EntryRef(graph="beta", entry="HELLO")))])
        beta = make_graph("beta", [make_node("b0"), make_node("greet")], entry_points={"HELLO": "greet"})
        registry = NodeRegistry.build([alpha, beta])

        assert registry.choice_target(_key("alpha", "a"), "visit") == _key("beta", "greet")
        assert registry.entry("beta", "HELLO") == _key("beta", "greet")

    def test_interrupt_targets_resolve(self) -> None:
        """Interrupt targets are linked alongside choice targets."""
        window = InterruptWindow(duration=1000, type=InterruptType.CONNECTION, action="Reach out", target_node_id="c")
        graph = make_graph(
            "alpha",
            [make_node("a", make_choice("go", "b", interrupt=window)), make_node("b"), make_node("c")],
        )
        registry = NodeRegistry.build([graph])

        assert registry.interrupt_target(_key("alpha", "a"), "go") == _key("alpha", "c")

    def test_character_for_graph(self) -> None:
        """Graphs report their owning character."""
        registry = NodeRegistry.build([make_graph("alpha", [make_node("a")], character_id="ava")])

        assert registry.character_for("alpha") == "ava"
        assert registry.characters == ["ava"]


class TestBuildErrors:
    """Tests that authoring defects fail the build, all at once."""

    def test_duplicate_node_id(self) -> None:
        """Repeating a node id within a graph is rejected."""
        graph = make_graph("alpha", [make_node("a"), make_node("a")])

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([graph])

        assert any(isinstance(e, DuplicateNodeError) for e in exc_info.value.errors)

    def test_same_node_id_in_different_graphs_is_fine(self) -> None:
        """Node ids only need to be unique within their graph."""
        registry = NodeRegistry.build(
            [make_graph("alpha", [make_node("hub")]), make_graph("beta", [make_node("hub")])]
        )

        assert len(registry) == 2

    def test_duplicate_graph_key(self) -> None:
        """Two graphs with one key are rejected."""
        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([make_graph("alpha", [make_node("a")]), make_graph("alpha", [make_node("b")])])

        assert isinstance(exc_info.value.errors[0], DuplicateGraphError)

    def test_dangling_target_with_suggestion(self) -> None:
        """Typos in targets are reported with close matches."""
        graph = make_graph("alpha", [make_node("a", make_choice("go", "samuel_hbu")), make_node("samuel_hub")])

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([graph])

        error = exc_info.value.errors[0]
        assert isinstance(error, DanglingTargetError)
        assert error.suggestions() == ["samuel_hub"]
        assert "samuel_hub" in error.to_feedback()

    def test_unexported_entry_point(self) -> None:
        """An EntryRef to a name the graph doesn't export is a build failure."""
        alpha = make_graph("alpha", [make_node("a", make_choice("visit", EntryRef(graph="beta", entry="NOPE")))])
        beta = make_graph("beta", [make_node("b")], entry_points={"HELLO": "b"})

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([alpha, beta])

        error = exc_info.value.errors[0]
        assert isinstance(error, UnresolvedEntryPointError)
        assert error.exported == ["HELLO"]

    def test_entry_ref_to_unknown_graph(self) -> None:
        """An EntryRef to a graph that isn't loaded is a build failure."""
        alpha = make_graph("alpha", [make_node("a", make_choice("visit", EntryRef(graph="ghost", entry="X")))])

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([alpha])

        error = exc_info.value.errors[0]
        assert isinstance(error, UnresolvedEntryPointError)
        assert error.graph_known is False

    def test_missing_start_and_entry_nodes(self) -> None:
        """Declared roots must exist."""
        graph = make_graph("alpha", [make_node("a")], start="nowhere", entry_points={"HUB": "gone"})

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([graph])

        errors = exc_info.value.errors
        assert len(errors) == 2
        assert all(isinstance(e, MissingStartNodeError) for e in errors)

    def test_all_errors_collected(self) -> None:
        """One build reports every defect, not just the first."""
        graph = make_graph(
            "alpha",
            [
                make_node("a", make_choice("x", "missing_one"), make_choice("y", "missing_two")),
                make_node("a"),
            ],
        )

        with pytest.raises(ContentBuildFailed) as exc_info:
            NodeRegistry.build([graph])

        assert len(exc_info.value.errors) == 3
        assert "3 error(s)" in str(exc_info.value)


class TestBuiltinCorpus:
    """Tests for the bundled sample corpus."""

    def test_builds_cleanly(self, corpus: NodeRegistry) -> None:
        """The bundled graphs have no authoring defects."""
        assert set(corpus.graph_keys) == {"samuel", "maya", "station_waiting"}
        assert corpus.characters == ["maya", "samuel"]

    def test_cross_graph_links_resolve(self, corpus: NodeRegistry) -> None:
        """Samuel's hub links into Maya's graph through her exported entry point."""
        target = corpus.choice_target(_key("samuel", "samuel_hub_initial"), "visit_maya")

        assert target == _key("maya", "maya_introduction")
