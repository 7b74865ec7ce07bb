"""Condition evaluation over PlayerState.

A StateCondition is an AND of independent predicates; an absent predicate
places no constraint and an absent condition is always true. Everything in
this module is a pure read of the state: no function here mutates it, so
the UI may call them as often as it re-renders.

Character-scoped predicates (trust, relationship, knowledge flags) apply to
the condition's own ``character_id`` or, when it has none, to the character
passed in by the caller (the owning graph's character).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from stationgraph.models import (
    MYSTERY_CATALOG,
    ORB_TIER_ORDER,
    Choice,
    DialogueNode,
    PlayerState,
    StateCondition,
    stage_index,
)
from stationgraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

log = get_logger(__name__)

Catalog = dict[str, tuple[str, ...]]


def _unmet(
    condition: StateCondition,
    state: PlayerState,
    character_id: str | None,
    catalog: Catalog,
) -> Iterator[str]:
    """Yield one human-readable reason per failing predicate."""
    character = condition.character_id or character_id

    if condition.trust is not None:
        if character is None:
            yield "No character for trust check"
        else:
            have = state.trust_of(character)
            if condition.trust.min is not None and have < condition.trust.min:
                yield f"Need {condition.trust.min} trust (have {have})"
            if condition.trust.max is not None and have > condition.trust.max:
                yield f"Trust must be at most {condition.trust.max} (have {have})"

    if condition.relationship is not None:
        status = state.relationship_status.get(character) if character else None
        if status not in condition.relationship:
            wanted = " or ".join(condition.relationship)
            yield f"Requires {wanted} relationship (currently {status or 'none'})"

    for pattern, bounds in (condition.patterns or {}).items():
        have = state.pattern(pattern)
        if not bounds.contains(have):
            if bounds.min is not None and have < bounds.min:
                yield f"Need {bounds.min} {pattern} (have {have})"
            else:
                yield f"{pattern.title()} must be at most {bounds.max} (have {have})"

    for flag in condition.has_global_flags or []:
        if flag not in state.global_flags:
            yield f"Requires {flag}"
    for flag in condition.lacks_global_flags or []:
        if flag in state.global_flags:
            yield f"Blocked by {flag}"

    if condition.has_knowledge_flags or condition.lacks_knowledge_flags:
        if character is None:
            yield "No character for knowledge check"
        else:
            for flag in condition.has_knowledge_flags or []:
                if not state.knows(character, flag):
                    yield f"Requires knowing {flag}"
            for flag in condition.lacks_knowledge_flags or []:
                if state.knows(character, flag):
                    yield f"Blocked by knowing {flag}"

    for mystery_id, requirement in (condition.mysteries or {}).items():
        current = state.mystery_stage(mystery_id, catalog)
        if current is None:
            yield f"Unknown mystery {mystery_id}"
            continue
        if requirement.match == "exact":
            if current != requirement.stage:
                yield f"Requires {mystery_id} at {requirement.stage}"
            continue
        try:
            satisfied = stage_index(mystery_id, current, catalog) >= stage_index(
                mystery_id, requirement.stage, catalog
            )
        except KeyError:
            log.debug("unknown_mystery_stage", mystery=mystery_id, stage=requirement.stage)
            satisfied = False
        if not satisfied:
            yield f"Requires {mystery_id} at {requirement.stage} or later"

    if condition.has_orb_tier is not None:
        have_tier = state.orb_tier
        if ORB_TIER_ORDER.index(have_tier) < ORB_TIER_ORDER.index(condition.has_orb_tier):
            yield f"Requires {condition.has_orb_tier} orbs (currently {have_tier})"


def unmet_requirements(
    condition: StateCondition | None,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> list[str]:
    """All failing predicates of a condition, empty when it holds."""
    if condition is None:
        return []
    return list(_unmet(condition, state, character_id, catalog or MYSTERY_CATALOG))


def evaluate(
    condition: StateCondition | None,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> bool:
    """True when every predicate of ``condition`` holds (or there is none)."""
    if condition is None:
        return True
    reasons = _unmet(condition, state, character_id, catalog or MYSTERY_CATALOG)
    return next(reasons, None) is None


def can_enter(
    node: DialogueNode,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> bool:
    """Evaluate a node's ``required_state``."""
    return evaluate(node.required_state, state, character_id=character_id, catalog=catalog)


def is_visible(
    choice: Choice,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> bool:
    """Evaluate a choice's ``visible_condition``."""
    return evaluate(choice.visible_condition, state, character_id=character_id, catalog=catalog)


def disabled_reason(
    choice: Choice,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> str | None:
    """First failing ``enabled_condition`` predicate, or None when enabled."""
    reasons = unmet_requirements(
        choice.enabled_condition, state, character_id=character_id, catalog=catalog
    )
    return reasons[0] if reasons else None


def is_enabled(
    choice: Choice,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> bool:
    return disabled_reason(choice, state, character_id=character_id, catalog=catalog) is None


def orb_locked(choice: Choice, state: PlayerState) -> bool:
    """True when the choice's pattern orb is not filled to its threshold."""
    requirement = choice.required_orb_fill
    if requirement is None:
        return False
    return state.orb_fill(requirement.pattern) < requirement.threshold


@dataclass(frozen=True)
class ChoiceAvailability:
    """How a visible choice should be offered.

    Attributes:
        choice: The authored choice.
        enabled: False when ``enabled_condition`` fails.
        reason: Why the choice is disabled, for display.
        orb_locked: True when the choice's orb fill is below its threshold.
        mercy_unlocked: True when the lock was lifted because every other
            option was locked too.
    """

    choice: Choice
    enabled: bool = True
    reason: str | None = None
    orb_locked: bool = False
    mercy_unlocked: bool = False

    @property
    def selectable(self) -> bool:
        return self.enabled and not self.orb_locked


def evaluate_choices(
    node: DialogueNode,
    state: PlayerState,
    *,
    character_id: str | None = None,
    catalog: Catalog | None = None,
) -> list[ChoiceAvailability]:
    """Visible choices of a node, in authored order, with their availability.

    When every visible and enabled choice is orb-locked, the one with the
    lowest threshold (first authored on a tie) is unlocked so the player is
    never stuck.
    """
    offered: list[ChoiceAvailability] = []
    for choice in node.choices:
        if not is_visible(choice, state, character_id=character_id, catalog=catalog):
            continue
        reason = disabled_reason(choice, state, character_id=character_id, catalog=catalog)
        offered.append(
            ChoiceAvailability(
                choice=choice,
                enabled=reason is None,
                reason=reason,
                orb_locked=orb_locked(choice, state),
            )
        )

    enabled = [c for c in offered if c.enabled]
    if enabled and all(c.orb_locked for c in enabled):
        mercy = min(enabled, key=lambda c: c.choice.required_orb_fill.threshold)  # type: ignore[union-attr]
        log.debug("orb_mercy_unlock", node=node.node_id, choice=mercy.choice.choice_id)
        offered = [
            ChoiceAvailability(
                choice=c.choice,
                enabled=c.enabled,
                reason=c.reason,
                orb_locked=False,
                mercy_unlocked=True,
            )
            if c is mercy
            else c
            for c in offered
        ]
    return offered
