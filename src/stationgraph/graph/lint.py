"""Authoring lint over a built registry.

Build errors (duplicates, dangling targets) stop the registry from existing
at all. Lint checks run on a registry that built and flag content that is
legal but probably not what the author meant.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from stationgraph.engine.conditions import evaluate_choices
from stationgraph.models import NodeKey, PlayerState, Sentinel

if TYPE_CHECKING:
    from stationgraph.graph.registry import NodeRegistry

TERMINAL_TAG = "terminal"
_EXAMPLES = 5


@dataclass
class ValidationCheck:
    """Result of a single lint check.

    Attributes:
        name: Identifier for the check.
        severity: "pass", "warn", or "fail".
        message: Human-readable description of the result.
        nodes: Offending nodes, when there are any.
    """

    name: str
    severity: Literal["pass", "warn", "fail"]
    message: str = ""
    nodes: list[NodeKey] = field(default_factory=list)


@dataclass
class ValidationReport:
    """Aggregated lint results."""

    checks: list[ValidationCheck] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return any(c.severity == "fail" for c in self.checks)

    @property
    def has_warnings(self) -> bool:
        return any(c.severity == "warn" for c in self.checks)

    @property
    def summary(self) -> str:
        counts = {"fail": 0, "warn": 0, "pass": 0}
        for check in self.checks:
            counts[check.severity] += 1
        parts: list[str] = []
        if counts["fail"]:
            parts.append(f"{counts['fail']} failed")
        if counts["warn"]:
            parts.append(f"{counts['warn']} warnings")
        if counts["pass"]:
            parts.append(f"{counts['pass']} passed")
        return ", ".join(parts)


def _result(
    name: str,
    offenders: list[NodeKey],
    problem: str,
    ok: str,
    severity: Literal["warn", "fail"],
) -> ValidationCheck:
    if not offenders:
        return ValidationCheck(name=name, severity="pass", message=ok)
    shown = ", ".join(str(k) for k in offenders[:_EXAMPLES])
    if len(offenders) > _EXAMPLES:
        shown += f" (+{len(offenders) - _EXAMPLES} more)"
    return ValidationCheck(
        name=name,
        severity=severity,
        message=f"{len(offenders)} {problem}: {shown}",
        nodes=offenders,
    )


def check_dead_ends(registry: NodeRegistry) -> ValidationCheck:
    """Nodes with no choices that are not simulations, boundaries or tagged terminal."""
    offenders = [
        key
        for key in registry
        if (node := registry.get(key)) is not None
        and not node.choices
        and node.simulation is None
        and not node.metadata.session_boundary
        and TERMINAL_TAG not in node.tags
    ]
    return _result("dead_ends", offenders, "node(s) without choices", "No dead ends", "warn")


def check_fresh_state_gating(registry: NodeRegistry) -> ValidationCheck:
    """Start nodes a brand-new player could not leave."""
    fresh = PlayerState.new(characters=registry.characters)
    offenders: list[NodeKey] = []
    for graph_key in registry.graph_keys:
        key = registry.start(graph_key)
        node = registry.get(key)
        if node is None or not node.choices:
            continue
        offered = evaluate_choices(node, fresh, character_id=registry.character_for(graph_key))
        if not any(item.selectable for item in offered):
            offenders.append(key)
    return _result(
        "fresh_state_gating",
        offenders,
        "start node(s) with every choice gated for a new player",
        "Every start node is playable from a fresh state",
        "fail",
    )


def check_simulation_handoffs(registry: NodeRegistry) -> ValidationCheck:
    """SIMULATION_PENDING choices must sit on nodes that carry a simulation."""
    offenders = [
        key
        for key in registry
        if (node := registry.get(key)) is not None
        and node.simulation is None
        and any(registry.choice_target(key, c) is Sentinel.SIMULATION_PENDING for c in node.choices)
    ]
    return _result(
        "simulation_handoffs",
        offenders,
        "node(s) hand off to a simulation without a descriptor",
        "Every simulation hand-off has a descriptor",
        "fail",
    )


def lint(registry: NodeRegistry) -> ValidationReport:
    """Run every lint check."""
    return ValidationReport(
        checks=[
            check_dead_ends(registry),
            check_fresh_state_gating(registry),
            check_simulation_handoffs(registry),
        ]
    )
