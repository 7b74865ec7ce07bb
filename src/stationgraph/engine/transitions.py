"""Next-node computation for choices and interrupts."""

from __future__ import annotations

from dataclasses import dataclass

from stationgraph.engine.errors import RegistryDefectError
from stationgraph.graph.registry import NodeRegistry  # noqa: TC001 - used at runtime
from stationgraph.models import NodeKey, Sentinel, SimulationDescriptor


@dataclass(frozen=True)
class SentinelHandoff:
    """Control handed to an external collaborator (travel, simulation, loyalty).

    The session stays suspended until the collaborator calls back with the
    node to resume at.

    Attributes:
        sentinel: Which collaborator is being asked to act.
        source: Node the hand-off was made from.
        choice_id: Choice (or interrupt) that triggered it.
        simulation: The source node's simulation descriptor, passed through
            untouched for the simulation renderer.
    """

    sentinel: Sentinel
    source: NodeKey
    choice_id: str
    simulation: SimulationDescriptor | None = None


Transition = NodeKey | SentinelHandoff


def _finish(
    registry: NodeRegistry, source: NodeKey, choice_id: str, target: NodeKey | Sentinel | None
) -> Transition:
    if target is None:
        raise RegistryDefectError(source, f"no resolved target for '{choice_id}'")
    if isinstance(target, Sentinel):
        node = registry.get(source)
        return SentinelHandoff(
            sentinel=target,
            source=source,
            choice_id=choice_id,
            simulation=node.simulation if node else None,
        )
    if target not in registry:
        raise RegistryDefectError(source, f"target {target} is not registered")
    return target


def resolve_transition(registry: NodeRegistry, source: NodeKey, choice_id: str) -> Transition:
    """Where selecting ``choice_id`` at ``source`` leads.

    Raises:
        RegistryDefectError: If the choice has no load-time resolution.
    """
    return _finish(registry, source, choice_id, registry.choice_target(source, choice_id))


def resolve_interrupt_transition(registry: NodeRegistry, source: NodeKey, choice_id: str) -> Transition:
    """Where taking the interrupt attached to ``choice_id`` leads."""
    return _finish(registry, source, choice_id, registry.interrupt_target(source, choice_id))
