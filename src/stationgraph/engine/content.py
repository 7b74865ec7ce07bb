"""Content resolution: which authored text the player actually sees.

Personalisation is an ordered list of (predicate, payload) rules evaluated
first-match-wins:

1. ``pattern_reflection`` alternates, in authored order; the first whose
   pattern score reaches ``min_level`` wins, regardless of which qualifying
   pattern scores higher.
2. ``voice_variations`` keyed by the player's dominant pattern.
3. The base text.

Resolution is a pure function of ``(node, state)``.
"""

from __future__ import annotations

from dataclasses import dataclass

from stationgraph.models import (
    PATTERN_PRECEDENCE,
    Choice,
    ContentVariant,
    DialogueNode,
    NodeKey,
    Pattern,
    PlayerState,
)

# Minimum score before a pattern counts as the player's voice.
DOMINANT_PATTERN_THRESHOLD = 3


@dataclass(frozen=True)
class ResolvedContent:
    """Text chosen for display and where it came from.

    Attributes:
        text: The text to show.
        emotion: Emotion tag for the speaker portrait, if any.
        source: "reflection", "voice" or "base".
        pattern: The pattern that selected the text, for reflection and voice.
        variation_id: Authored id of the content variant used.
    """

    text: str
    emotion: str | None = None
    source: str = "base"
    pattern: Pattern | None = None
    variation_id: str | None = None


def dominant_pattern(
    state: PlayerState, threshold: int = DOMINANT_PATTERN_THRESHOLD
) -> Pattern | None:
    """The pattern with the highest score.

    Ties go to the earliest pattern in PATTERN_PRECEDENCE. Returns None until
    some pattern reaches ``threshold``.
    """
    best: Pattern | None = None
    best_score = threshold - 1
    for pattern in PATTERN_PRECEDENCE:
        score = state.pattern(pattern)
        if score > best_score:
            best, best_score = pattern, score
    return best


def select_variant(node: DialogueNode, state: PlayerState, key: NodeKey | None = None) -> ContentVariant:
    """Pick the content variant for this visit.

    Variants rotate with the number of recorded visits to the node, so a
    first visit (or a state that never visited) shows the first variant.
    """
    if len(node.content) == 1 or key is None:
        return node.content[0]
    visits = state.visit_count(key)
    return node.content[max(visits - 1, 0) % len(node.content)]


def resolve_variant(variant: ContentVariant, state: PlayerState) -> ResolvedContent:
    """Apply reflection and voice rules to one content variant."""
    for reflection in variant.pattern_reflection or []:
        if state.pattern(reflection.pattern) >= reflection.min_level:
            return ResolvedContent(
                text=reflection.alt_text,
                emotion=reflection.alt_emotion or variant.emotion,
                source="reflection",
                pattern=reflection.pattern,
                variation_id=variant.variation_id,
            )

    if variant.voice_variations:
        voice = dominant_pattern(state)
        if voice is not None and voice in variant.voice_variations:
            return ResolvedContent(
                text=variant.voice_variations[voice],
                emotion=variant.emotion,
                source="voice",
                pattern=voice,
                variation_id=variant.variation_id,
            )

    return ResolvedContent(text=variant.text, emotion=variant.emotion, variation_id=variant.variation_id)


def resolve(node: DialogueNode, state: PlayerState, key: NodeKey | None = None) -> ResolvedContent:
    """Resolve the text shown for ``node`` under ``state``."""
    return resolve_variant(select_variant(node, state, key), state)


def choice_text(choice: Choice, state: PlayerState) -> str:
    """Choice label in the player's dominant voice, falling back to the authored text."""
    if choice.voice_variations:
        voice = dominant_pattern(state)
        if voice is not None and voice in choice.voice_variations:
            return choice.voice_variations[voice]
    return choice.text
