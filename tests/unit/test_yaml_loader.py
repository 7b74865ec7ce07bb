"""Tests for loading graphs from YAML files."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from stationgraph.graph import ContentBuildFailed, GraphFileError, load_corpus, load_graph_dir, load_graph_file
from stationgraph.models import EntryRef, NodeKey

if TYPE_CHECKING:
    from pathlib import Path

PLATFORM_GRAPH = """\
graph_key: platform
start: platform_arrival
character_id: samuel
entry_points:
  ARRIVAL: platform_arrival
nodes:
  - node_id: platform_arrival
    speaker: Conductor
    content:
      - text: Tickets, please.
        emotion: stern
    choices:
      - choice_id: show_ticket
        text: Here you go.
        next_node_id: platform_departure
        pattern: patience
      - choice_id: back_to_samuel
        text: I should talk to Samuel first.
        next_node_id: {graph: samuel, entry: HUB_INITIAL}
  - node_id: platform_departure
    speaker: Conductor
    content:
      - text: All aboard.
    tags: [terminal]
"""


@pytest.fixture
def graph_dir(tmp_path: Path) -> Path:
    (tmp_path / "platform.yaml").write_text(PLATFORM_GRAPH, encoding="utf-8")
    return tmp_path


class TestLoadGraphFile:
    """Tests for single-file loading."""

    def test_loads_graph(self, graph_dir: Path) -> None:
        """Short keys and cross-graph mappings are accepted."""
        graph = load_graph_file(graph_dir / "platform.yaml")

        assert graph.graph_key == "platform"
        assert graph.start_node_id == "platform_arrival"
        assert graph.nodes[0].choices[1].next_node_id == EntryRef(graph="samuel", entry="HUB_INITIAL")

    def test_missing_file(self, tmp_path: Path) -> None:
        """A missing file raises GraphFileError."""
        with pytest.raises(GraphFileError, match="File not found"):
            load_graph_file(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file raises GraphFileError."""
        path = tmp_path / "empty.yaml"
        path.write_text("", encoding="utf-8")

        with pytest.raises(GraphFileError, match="Empty file"):
            load_graph_file(path)

    def test_invalid_graph(self, tmp_path: Path) -> None:
        """Schema violations are reported against the file."""
        path = tmp_path / "bad.yaml"
        path.write_text("graph_key: bad\nstart: a\nnodes:\n  - node_id: a\n", encoding="utf-8")

        with pytest.raises(GraphFileError) as exc_info:
            load_graph_file(path)

        assert exc_info.value.path == path


class TestLoadCorpus:
    """Tests for combining YAML graphs with the bundled ones."""

    def test_yaml_graph_links_into_builtin(self, graph_dir: Path) -> None:
        """YAML graphs resolve links to the bundled graphs' entry points."""
        registry = load_corpus([graph_dir])
        arrival = NodeKey(graph_key="platform", node_id="platform_arrival")

        assert registry.choice_target(arrival, "back_to_samuel") == NodeKey(
            graph_key="samuel", node_id="samuel_hub_initial"
        )

    def test_yaml_graph_alone_fails_to_link(self, graph_dir: Path) -> None:
        """Without the bundled graphs the samuel link is unresolved."""
        with pytest.raises(ContentBuildFailed):
            load_corpus([graph_dir], include_builtin=False)

    def test_dir_sorted_by_name(self, graph_dir: Path) -> None:
        """Directory loading is ordered by file name."""
        (graph_dir / "another.yml").write_text(
            PLATFORM_GRAPH.replace("graph_key: platform", "graph_key: another"), encoding="utf-8"
        )

        assert [g.graph_key for g in load_graph_dir(graph_dir)] == ["another", "platform"]
