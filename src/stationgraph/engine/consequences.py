"""Consequence application: the only code that writes to PlayerState.

A consequence bundle (a choice's consequence, a node's ``on_enter`` list, an
interrupt's consequence, or the pattern award for a tagged choice) is first
validated as a whole. If any effect references a character, mystery or stage
the state doesn't know, ConsequenceError is raised and nothing is touched.
Only then are the effects applied, in bundle order.

Application rules:
- trust is added and clamped to [MIN_TRUST, MAX_TRUST]
- pattern deltas are added and floored at 0
- flags are unioned (re-adding is a no-op)
- relationship status and mystery stages only move forward
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from stationgraph.engine.errors import ConsequenceError
from stationgraph.models import (
    MAX_TRUST,
    MIN_TRUST,
    MYSTERY_CATALOG,
    RELATIONSHIP_ORDER,
    PlayerState,
    RelationshipStatus,
    StateChange,
)
from stationgraph.observability.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

log = get_logger(__name__)


@dataclass(frozen=True)
class AppliedEffect:
    """One state change that actually happened.

    No-ops (re-adding a flag, a regressing mystery stage) are not recorded.
    """

    kind: str
    key: str
    before: Any
    after: Any

    def __str__(self) -> str:
        return f"{self.kind}[{self.key}]: {self.before} -> {self.after}"


class ConsequenceApplier:
    """Validate-then-apply executor for StateChange bundles.

    Args:
        catalog: Mystery id to ordered stage sequence.
    """

    def __init__(self, catalog: dict[str, tuple[str, ...]] | None = None) -> None:
        self.catalog = catalog or MYSTERY_CATALOG

    def validate(
        self,
        state: PlayerState,
        changes: Iterable[StateChange],
        *,
        character_id: str | None = None,
    ) -> list[str]:
        """Return every problem with the bundle; empty means it can be applied."""
        problems: list[str] = []
        known_characters = state.characters
        for change in changes:
            if change.is_character_scoped:
                character = change.character_id or character_id
                if character is None:
                    problems.append("character-scoped effect without a character")
                elif character not in known_characters:
                    problems.append(f"unknown character '{character}'")
            for mystery_id, stage in (change.mystery_changes or {}).items():
                stages = self.catalog.get(mystery_id)
                if stages is None:
                    problems.append(f"unknown mystery '{mystery_id}'")
                elif stage not in stages:
                    problems.append(f"unknown stage '{stage}' for mystery '{mystery_id}'")
            if change.internalize_thought and not change.thought_id:
                problems.append("internalize_thought without thought_id")
        return problems

    def apply(
        self,
        state: PlayerState,
        changes: Iterable[StateChange],
        *,
        character_id: str | None = None,
    ) -> list[AppliedEffect]:
        """Apply a bundle to ``state`` in place.

        Raises:
            ConsequenceError: If validation fails; ``state`` is unchanged.
        """
        bundle = list(changes)
        problems = self.validate(state, bundle, character_id=character_id)
        if problems:
            log.warning("consequence_rejected", problems=problems)
            raise ConsequenceError(problems)

        applied: list[AppliedEffect] = []
        for change in bundle:
            applied.extend(self._apply_one(state, change, change.character_id or character_id))

        if applied:
            log.debug("consequence_applied", effects=[str(e) for e in applied])
        return applied

    def _apply_one(
        self, state: PlayerState, change: StateChange, character: str | None
    ) -> list[AppliedEffect]:
        applied: list[AppliedEffect] = []

        if change.trust_change is not None and character is not None:
            before = state.trust_of(character)
            after = max(MIN_TRUST, min(MAX_TRUST, before + change.trust_change))
            state.trust[character] = after
            if after != before:
                applied.append(AppliedEffect("trust", character, before, after))

        for pattern, delta in (change.pattern_changes or {}).items():
            before = state.pattern(pattern)
            after = max(0, before + delta)
            state.patterns[pattern] = after
            if after != before:
                applied.append(AppliedEffect("pattern", str(pattern), before, after))

        for flag in change.add_global_flags:
            if flag not in state.global_flags:
                state.global_flags.add(flag)
                applied.append(AppliedEffect("global_flag", flag, False, True))

        if change.add_knowledge_flags and character is not None:
            known = state.knowledge_flags.setdefault(character, set())
            for flag in change.add_knowledge_flags:
                if flag not in known:
                    known.add(flag)
                    applied.append(AppliedEffect("knowledge_flag", f"{character}.{flag}", False, True))

        if change.set_relationship_status is not None and character is not None:
            before_status = state.relationship_status.get(character, RelationshipStatus.STRANGER)
            wanted = change.set_relationship_status
            if RELATIONSHIP_ORDER.index(wanted) > RELATIONSHIP_ORDER.index(before_status):
                state.relationship_status[character] = wanted
                applied.append(AppliedEffect("relationship", character, before_status, wanted))

        for mystery_id, stage in (change.mystery_changes or {}).items():
            stages = self.catalog[mystery_id]
            current = state.mystery_stage(mystery_id, self.catalog)
            current_index = stages.index(current) if current in stages else -1
            if stages.index(stage) > current_index:
                state.mysteries[mystery_id] = stage
                applied.append(AppliedEffect("mystery", mystery_id, current, stage))

        if change.thought_id:
            if change.thought_id not in state.discovered_thoughts:
                state.discovered_thoughts.add(change.thought_id)
                applied.append(AppliedEffect("thought", change.thought_id, None, "discovered"))
            if change.internalize_thought and change.thought_id not in state.internalized_thoughts:
                state.internalized_thoughts.add(change.thought_id)
                applied.append(AppliedEffect("thought", change.thought_id, "discovered", "internalized"))

        if change.orb_award:
            before = state.orb_count
            state.orb_count = before + change.orb_award
            applied.append(AppliedEffect("orbs", "count", before, state.orb_count))

        return applied
