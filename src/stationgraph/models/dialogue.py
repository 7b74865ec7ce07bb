"""Authored dialogue content models.

A graph is an ordered list of DialogueNode records plus the entry points it
exports for other graphs. Cross-graph links are written as EntryRef values
obtained from the target graph's EntryPoints object (or as
``{graph: ..., entry: ...}`` mappings in YAML), never as concatenated id
strings. The registry resolves every reference when the corpus is built.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from stationgraph.models.state import (  # noqa: TC001 - pydantic needs these at runtime
    OrbTier,
    Pattern,
    RelationshipStatus,
)


class Sentinel(StrEnum):
    """Reserved transition targets that hand control to an external collaborator."""

    TRAVEL_PENDING = "TRAVEL_PENDING"
    SIMULATION_PENDING = "SIMULATION_PENDING"
    LOYALTY_PENDING = "LOYALTY_PENDING"


SENTINELS: frozenset[str] = frozenset(s.value for s in Sentinel)


class _Authored(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------


class Range(_Authored):
    """Inclusive numeric bounds; a missing side is unconstrained."""

    min: int | None = None
    max: int | None = None

    def contains(self, value: int) -> bool:
        if self.min is not None and value < self.min:
            return False
        return not (self.max is not None and value > self.max)


class MysteryRequirement(_Authored):
    """Required mystery stage. ``at_least`` follows the mystery's stage order."""

    stage: str = Field(min_length=1)
    match: Literal["at_least", "exact"] = "at_least"

    @model_validator(mode="before")
    @classmethod
    def _from_stage_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"stage": data}
        return data


class StateCondition(_Authored):
    """AND of independent predicates over PlayerState.

    Every key is optional; an absent key places no constraint. Character
    scoped predicates (trust, relationship, knowledge flags) apply to
    ``character_id`` or, when omitted, to the owning graph's character.
    """

    character_id: str | None = None
    trust: Range | None = None
    relationship: list[RelationshipStatus] | None = None
    patterns: dict[Pattern, Range] | None = None
    has_global_flags: list[str] | None = None
    lacks_global_flags: list[str] | None = None
    has_knowledge_flags: list[str] | None = None
    lacks_knowledge_flags: list[str] | None = None
    mysteries: dict[str, MysteryRequirement] | None = None
    has_orb_tier: OrbTier | None = None


# ---------------------------------------------------------------------------
# Consequences
# ---------------------------------------------------------------------------


class StateChange(_Authored):
    """A bundle of state mutations applied together or not at all."""

    character_id: str | None = None
    trust_change: int | None = None
    pattern_changes: dict[Pattern, int] | None = None
    add_global_flags: list[str] = Field(default_factory=list)
    add_knowledge_flags: list[str] = Field(default_factory=list)
    set_relationship_status: RelationshipStatus | None = None
    mystery_changes: dict[str, str] | None = None
    thought_id: str | None = None
    internalize_thought: bool = False
    orb_award: int = Field(default=0, ge=0)

    @property
    def is_character_scoped(self) -> bool:
        return (
            self.trust_change is not None
            or bool(self.add_knowledge_flags)
            or self.set_relationship_status is not None
        )


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class EntryRef(BaseModel, frozen=True):
    """Reference to a named entry point exported by another graph."""

    graph: str = Field(min_length=1)
    entry: str = Field(min_length=1)

    def __str__(self) -> str:
        return f"{self.graph}.{self.entry}"


Target = str | EntryRef


class PatternReflection(_Authored):
    pattern: Pattern
    min_level: int = Field(ge=0)
    alt_text: str = Field(min_length=1)
    alt_emotion: str | None = None


class ContentVariant(_Authored):
    text: str = Field(min_length=1)
    emotion: str | None = None
    variation_id: str | None = None
    pattern_reflection: list[PatternReflection] | None = None
    voice_variations: dict[Pattern, str] | None = None


class InterruptType(StrEnum):
    CONNECTION = "connection"
    CHALLENGE = "challenge"
    SILENCE = "silence"
    COMFORT = "comfort"
    GROUNDING = "grounding"
    ENCOURAGEMENT = "encouragement"


class InterruptWindow(_Authored):
    """A timed alternate branch offered while a node is presented.

    Attributes:
        duration: Window length in milliseconds.
        type: Interrupt flavour, used by the UI for presentation.
        action: Label of the action the UI offers (e.g. "Reach out").
        target_node_id: Where the interrupt leads if taken in time.
        consequence: Applied instead of the node's normal choice outcome.
    """

    duration: int = Field(gt=0)
    type: InterruptType
    action: str = Field(min_length=1)
    target_node_id: Target
    consequence: StateChange | None = None


class OrbRequirement(_Authored):
    pattern: Pattern
    threshold: int = Field(ge=0, le=100)


class Choice(_Authored):
    choice_id: str = Field(min_length=1)
    text: str = Field(min_length=1)
    next_node_id: Target
    pattern: Pattern | None = None
    skills: list[str] = Field(default_factory=list)
    visible_condition: StateCondition | None = None
    enabled_condition: StateCondition | None = None
    consequence: StateChange | None = None
    interrupt: InterruptWindow | None = None
    required_orb_fill: OrbRequirement | None = None
    voice_variations: dict[Pattern, str] | None = None
    preview: str | None = None


class SimulationDescriptor(_Authored):
    """Opaque payload for the simulation renderer. The engine never interprets it."""

    type: str = Field(min_length=1)
    title: str = Field(min_length=1)
    task_description: str = ""
    initial_context: dict[str, Any] = Field(default_factory=dict)
    success_feedback: str = ""


class NodeMetadata(_Authored):
    session_boundary: bool = False


class DialogueNode(_Authored):
    node_id: str = Field(min_length=1)
    speaker: str = Field(min_length=1)
    content: list[ContentVariant] = Field(min_length=1)
    choices: list[Choice] = Field(default_factory=list)
    required_state: StateCondition | None = None
    on_enter: list[StateChange] = Field(default_factory=list)
    metadata: NodeMetadata = Field(default_factory=NodeMetadata)
    tags: list[str] = Field(default_factory=list)
    simulation: SimulationDescriptor | None = None

    @model_validator(mode="after")
    def _unique_choice_ids(self) -> DialogueNode:
        seen: set[str] = set()
        for choice in self.choices:
            if choice.choice_id in seen:
                msg = f"duplicate choice_id '{choice.choice_id}' in node '{self.node_id}'"
                raise ValueError(msg)
            seen.add(choice.choice_id)
        return self

    def choice(self, choice_id: str) -> Choice | None:
        return next((c for c in self.choices if c.choice_id == choice_id), None)


class EntryPoints:
    """Named entry points a graph exports for cross-graph navigation.

    Content modules build one of these next to their node list; other
    modules link to the graph only through :meth:`ref`, which fails at import
    time when the name is not exported.
    """

    def __init__(self, graph_key: str, **entries: str) -> None:
        self.graph_key = graph_key
        self._entries = dict(entries)

    def ref(self, name: str) -> EntryRef:
        if name not in self._entries:
            from stationgraph.graph.errors import UnresolvedEntryPointError

            raise UnresolvedEntryPointError(
                graph_key=self.graph_key, entry=name, exported=sorted(self._entries)
            )
        return EntryRef(graph=self.graph_key, entry=name)

    def __getitem__(self, name: str) -> str:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def as_dict(self) -> dict[str, str]:
        return dict(self._entries)

    def __repr__(self) -> str:
        return f"EntryPoints({self.graph_key!r}, {self._entries!r})"


class DialogueGraph(_Authored):
    """A named collection of nodes with its declared entry points."""

    graph_key: str = Field(min_length=1)
    start_node_id: str = Field(min_length=1)
    character_id: str | None = None
    title: str = ""
    version: str = "1.0.0"
    entry_points: dict[str, str] = Field(default_factory=dict)
    nodes: list[DialogueNode] = Field(default_factory=list)

    @classmethod
    def build(
        cls,
        nodes: list[DialogueNode],
        entry_points: EntryPoints,
        *,
        start: str,
        character_id: str | None = None,
        title: str = "",
    ) -> DialogueGraph:
        """Assemble a graph from a content module's node list and exports."""
        return cls(
            graph_key=entry_points.graph_key,
            start_node_id=start,
            character_id=character_id,
            title=title,
            entry_points=entry_points.as_dict(),
            nodes=nodes,
        )

    @property
    def root_node_ids(self) -> list[str]:
        """Start node followed by exported entry nodes, deduplicated in order."""
        roots = [self.start_node_id, *self.entry_points.values()]
        return list(dict.fromkeys(roots))
