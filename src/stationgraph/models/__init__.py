"""Pydantic models for authored content and player state.

Authored content (graphs, nodes, choices, conditions, consequences) is
validated once when the corpus is built. PlayerState is the only mutable
model and is owned by a dialogue session.
"""

from stationgraph.models.dialogue import (
    SENTINELS,
    Choice,
    ContentVariant,
    DialogueGraph,
    DialogueNode,
    EntryPoints,
    EntryRef,
    InterruptType,
    InterruptWindow,
    MysteryRequirement,
    NodeMetadata,
    OrbRequirement,
    PatternReflection,
    Range,
    Sentinel,
    SimulationDescriptor,
    StateChange,
    StateCondition,
    Target,
)
from stationgraph.models.state import (
    MAX_TRUST,
    MIN_TRUST,
    MYSTERY_CATALOG,
    ORB_TIER_ORDER,
    ORB_TIER_THRESHOLDS,
    PATTERN_PRECEDENCE,
    RELATIONSHIP_ORDER,
    SAVE_VERSION,
    NodeKey,
    OrbTier,
    Pattern,
    PlayerState,
    RelationshipStatus,
    orb_tier_for,
    stage_index,
)

__all__ = [
    "MAX_TRUST",
    "MIN_TRUST",
    "MYSTERY_CATALOG",
    "ORB_TIER_ORDER",
    "ORB_TIER_THRESHOLDS",
    "PATTERN_PRECEDENCE",
    "RELATIONSHIP_ORDER",
    "SAVE_VERSION",
    "SENTINELS",
    "Choice",
    "ContentVariant",
    "DialogueGraph",
    "DialogueNode",
    "EntryPoints",
    "EntryRef",
    "InterruptType",
    "InterruptWindow",
    "MysteryRequirement",
    "NodeKey",
    "NodeMetadata",
    "OrbRequirement",
    "OrbTier",
    "Pattern",
    "PatternReflection",
    "PlayerState",
    "Range",
    "RelationshipStatus",
    "Sentinel",
    "SimulationDescriptor",
    "StateChange",
    "StateCondition",
    "Target",
    "orb_tier_for",
    "stage_index",
]
