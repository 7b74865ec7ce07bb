"""Player state: the single mutable aggregate the engine reads and writes.

PlayerState is created once per player (or loaded from a checkpoint) and is
only mutated by the consequence applier. The condition evaluator and the
content resolver receive it as an argument and never write to it.

Vocabulary:
- pattern: one of five behavioural accumulators (monotonic, never negative)
- trust: per-character relationship score, clamped to [MIN_TRUST, MAX_TRUST]
- relationship status: advances along stranger < acquaintance < confidant
- mystery: a narrative thread with a fixed, forward-only stage sequence
- orb tier: coarse bucket derived from the cumulative orb count
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field, field_serializer, field_validator, model_validator

SAVE_VERSION = "1.0.0"

MIN_TRUST = 0
MAX_TRUST = 10
DEFAULT_TRUST = 0


class Pattern(StrEnum):
    """Behavioural pattern. Declaration order is the dominant-pattern tie-break."""

    ANALYTICAL = "analytical"
    HELPING = "helping"
    BUILDING = "building"
    EXPLORING = "exploring"
    PATIENCE = "patience"


PATTERN_PRECEDENCE: tuple[Pattern, ...] = tuple(Pattern)


class RelationshipStatus(StrEnum):
    """Relationship status. Declaration order is the only legal direction of travel."""

    STRANGER = "stranger"
    ACQUAINTANCE = "acquaintance"
    CONFIDANT = "confidant"


RELATIONSHIP_ORDER: tuple[RelationshipStatus, ...] = tuple(RelationshipStatus)


class OrbTier(StrEnum):
    NASCENT = "nascent"
    EMERGING = "emerging"
    DEVELOPING = "developing"
    FLOURISHING = "flourishing"
    MASTERED = "mastered"


ORB_TIER_THRESHOLDS: dict[OrbTier, int] = {
    OrbTier.NASCENT: 0,
    OrbTier.EMERGING: 10,
    OrbTier.DEVELOPING: 30,
    OrbTier.FLOURISHING: 60,
    OrbTier.MASTERED: 100,
}

ORB_TIER_ORDER: tuple[OrbTier, ...] = tuple(OrbTier)

# Pattern score at which an orb reads as 100% full.
ORB_FILL_MAX = 100

MYSTERY_CATALOG: dict[str, tuple[str, ...]] = {
    "samuels_past": ("hidden", "hinted", "investigating", "known"),
    "letter_sender": ("unknown", "investigating", "samuel_knows", "self_revealed"),
    "platform_seven": ("stable", "flickering", "error", "revealed"),
    "station_nature": ("unknown", "sensing", "understanding", "mastered"),
}


def orb_tier_for(orb_count: int) -> OrbTier:
    """Map a cumulative orb count to its tier."""
    tier = OrbTier.NASCENT
    for candidate in ORB_TIER_ORDER:
        if orb_count >= ORB_TIER_THRESHOLDS[candidate]:
            tier = candidate
    return tier


def stage_index(mystery_id: str, stage: str, catalog: dict[str, tuple[str, ...]] | None = None) -> int:
    """Position of ``stage`` in the mystery's sequence.

    Raises:
        KeyError: If the mystery or the stage is not in the catalog.
    """
    stages = (catalog or MYSTERY_CATALOG)[mystery_id]
    try:
        return stages.index(stage)
    except ValueError:
        raise KeyError(f"{mystery_id}:{stage}") from None


class NodeKey(BaseModel, frozen=True):
    """Identity of a node across the whole corpus."""

    graph_key: str = Field(min_length=1)
    node_id: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.graph_key}/{self.node_id}"

    def sort_key(self) -> tuple[str, str]:
        return (self.graph_key, self.node_id)


class PlayerState(BaseModel):
    """Everything persistent about one player.

    Flag collections are sets (re-adding is a no-op). Serialization sorts
    them so checkpoints are byte-stable for identical states. Mysteries
    missing from the data start at their first stage. Visits are counted
    per node under the node's ``graph/node`` key.
    """

    player_id: str = "player"
    save_version: str = SAVE_VERSION
    trust: dict[str, int] = Field(default_factory=dict)
    patterns: dict[Pattern, int] = Field(default_factory=dict, validate_default=True)
    global_flags: set[str] = Field(default_factory=set)
    knowledge_flags: dict[str, set[str]] = Field(default_factory=dict)
    relationship_status: dict[str, RelationshipStatus] = Field(default_factory=dict)
    mysteries: dict[str, str] = Field(default_factory=dict)
    orb_count: int = Field(default=0, ge=0)
    discovered_thoughts: set[str] = Field(default_factory=set)
    internalized_thoughts: set[str] = Field(default_factory=set)
    current: NodeKey | None = None
    visit_counts: dict[str, int] = Field(default_factory=dict)

    @field_validator("patterns")
    @classmethod
    def _fill_patterns(cls, value: dict[Pattern, int]) -> dict[Pattern, int]:
        filled = {pattern: 0 for pattern in Pattern}
        for pattern, score in value.items():
            if score < 0:
                raise ValueError(f"pattern score for {pattern} cannot be negative")
            filled[Pattern(pattern)] = score
        return filled

    @field_validator("trust")
    @classmethod
    def _clamp_trust(cls, value: dict[str, int]) -> dict[str, int]:
        return {char: max(MIN_TRUST, min(MAX_TRUST, score)) for char, score in value.items()}

    @model_validator(mode="after")
    def _seed_mysteries(self) -> PlayerState:
        for mystery_id, stages in MYSTERY_CATALOG.items():
            self.mysteries.setdefault(mystery_id, stages[0])
        return self

    @field_serializer("global_flags", "discovered_thoughts", "internalized_thoughts")
    def _sorted_set(self, value: set[str]) -> list[str]:
        return sorted(value)

    @field_serializer("knowledge_flags")
    def _sorted_knowledge(self, value: dict[str, set[str]]) -> dict[str, list[str]]:
        return {char: sorted(flags) for char, flags in sorted(value.items())}

    @classmethod
    def new(
        cls,
        player_id: str = "player",
        characters: list[str] | tuple[str, ...] = (),
        catalog: dict[str, tuple[str, ...]] | None = None,
        **overrides: Any,
    ) -> PlayerState:
        """Create a fresh state with every character and mystery initialised.

        ``overrides`` are applied on top (useful for tests and god-mode tools).
        """
        mysteries = {mid: stages[0] for mid, stages in (catalog or MYSTERY_CATALOG).items()}
        data: dict[str, Any] = {
            "player_id": player_id,
            "trust": {char: DEFAULT_TRUST for char in characters},
            "knowledge_flags": {char: set() for char in characters},
            "relationship_status": {char: RelationshipStatus.STRANGER for char in characters},
            "mysteries": mysteries,
        }
        for key, value in overrides.items():
            if isinstance(value, dict) and isinstance(data.get(key), dict):
                data[key] = {**data[key], **value}
            else:
                data[key] = value
        return cls.model_validate(data)

    @property
    def characters(self) -> set[str]:
        """Characters this state knows about (any per-character namespace)."""
        return set(self.trust) | set(self.knowledge_flags) | set(self.relationship_status)

    @property
    def orb_tier(self) -> OrbTier:
        return orb_tier_for(self.orb_count)

    def trust_of(self, character_id: str) -> int:
        return self.trust.get(character_id, DEFAULT_TRUST)

    def pattern(self, pattern: Pattern | str) -> int:
        return self.patterns.get(Pattern(pattern), 0)

    def orb_fill(self, pattern: Pattern | str) -> int:
        """Fill level of a pattern's orb as a percentage (0-100)."""
        return min(100, round(self.pattern(pattern) * 100 / ORB_FILL_MAX))

    def knows(self, character_id: str, flag: str) -> bool:
        return flag in self.knowledge_flags.get(character_id, set())

    def visit_count(self, key: NodeKey) -> int:
        return self.visit_counts.get(str(key), 0)

    def record_visit(self, key: NodeKey) -> None:
        self.visit_counts[str(key)] = self.visit_count(key) + 1

    def mystery_stage(self, mystery_id: str, catalog: dict[str, tuple[str, ...]] | None = None) -> str | None:
        """Current stage, or the first stage of a catalog mystery the state never saw."""
        if mystery_id in self.mysteries:
            return self.mysteries[mystery_id]
        stages = (catalog or MYSTERY_CATALOG).get(mystery_id)
        return stages[0] if stages else None
