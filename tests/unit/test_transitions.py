"""Tests for next-node computation."""

from __future__ import annotations

import pytest

from stationgraph.engine import RegistryDefectError, SentinelHandoff
from stationgraph.engine.transitions import resolve_interrupt_transition, resolve_transition
from stationgraph.graph import NodeRegistry
from stationgraph.models import (
    InterruptType,
    InterruptWindow,
    NodeKey,
    Sentinel,
    SimulationDescriptor,
)
from tests.fixtures.graph_fixtures import make_choice, make_graph, make_node

SIMULATION = SimulationDescriptor(type="systemic_calibration", title="Calibrate the board")


@pytest.fixture
def registry() -> NodeRegistry:
    window = InterruptWindow(duration=2000, type=InterruptType.SILENCE, action="Stay", target_node_id="quiet")
    graph = make_graph(
        "alpha",
        [
            make_node(
                "start",
                make_choice("go", "quiet"),
                make_choice("listen", "quiet", interrupt=window),
                make_choice("calibrate", Sentinel.SIMULATION_PENDING),
                simulation=SIMULATION,
            ),
            make_node("quiet"),
        ],
    )
    return NodeRegistry.build([graph])


START = NodeKey(graph_key="alpha", node_id="start")


class TestResolveTransition:
    """Tests for choice and interrupt transitions."""

    def test_node_target(self, registry: NodeRegistry) -> None:
        """Ordinary choices lead to a node key."""
        assert resolve_transition(registry, START, "go") == NodeKey(graph_key="alpha", node_id="quiet")

    def test_sentinel_carries_simulation(self, registry: NodeRegistry) -> None:
        """Sentinel transitions hand off with the source node's descriptor."""
        transition = resolve_transition(registry, START, "calibrate")

        assert transition == SentinelHandoff(
            sentinel=Sentinel.SIMULATION_PENDING,
            source=START,
            choice_id="calibrate",
            simulation=SIMULATION,
        )

    def test_interrupt_target(self, registry: NodeRegistry) -> None:
        """Interrupts resolve through their own target."""
        assert resolve_interrupt_transition(registry, START, "listen") == NodeKey(
            graph_key="alpha", node_id="quiet"
        )

    def test_unknown_choice_is_registry_defect(self, registry: NodeRegistry) -> None:
        """A choice with no load-time resolution is a registry defect."""
        with pytest.raises(RegistryDefectError):
            resolve_transition(registry, START, "missing")

    def test_choice_without_interrupt(self, registry: NodeRegistry) -> None:
        """Asking for an interrupt target that doesn't exist is a defect too."""
        with pytest.raises(RegistryDefectError):
            resolve_interrupt_transition(registry, START, "go")
