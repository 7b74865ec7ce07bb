"""Waiting on the concourse bench: a quiet interlude that rewards patience."""

from __future__ import annotations

from stationgraph.content.entry_points import SAMUEL, STATION_WAITING
from stationgraph.models import (
    Choice,
    ContentVariant,
    DialogueGraph,
    DialogueNode,
    OrbRequirement,
    Pattern,
    StateChange,
)

ENTRY_POINTS = STATION_WAITING

NODES: list[DialogueNode] = [
    DialogueNode(
        node_id="waiting_bench",
        speaker="Narrator",
        content=[
            ContentVariant(
                text="The bench is worn smooth. Trains come and go without announcing where.",
                voice_variations={
                    Pattern.PATIENCE: "The bench is worn smooth. You settle in; nothing here is in a hurry, least of all you.",
                    Pattern.EXPLORING: "The bench is worn smooth. Every departure board shows a destination you've never heard of.",
                },
            )
        ],
        choices=[
            Choice(
                choice_id="watch_trains",
                text="Watch the trains.",
                next_node_id="waiting_trains",
                pattern=Pattern.PATIENCE,
            ),
            Choice(
                choice_id="listen_to_announcement",
                text="Listen to the announcement.",
                next_node_id="waiting_announcement",
                pattern=Pattern.EXPLORING,
            ),
            Choice(
                choice_id="get_up",
                text="Get up.",
                next_node_id=SAMUEL.ref("HUB_INITIAL"),
            ),
        ],
    ),
    DialogueNode(
        node_id="waiting_trains",
        speaker="Narrator",
        content=[ContentVariant(text="Trains pass. After a while you start to feel the rhythm of them.")],
        choices=[
            Choice(
                choice_id="notice_the_pattern",
                text="The departures follow a pattern.",
                next_node_id="waiting_insight",
                pattern=Pattern.ANALYTICAL,
                required_orb_fill=OrbRequirement(pattern=Pattern.ANALYTICAL, threshold=20),
            ),
            Choice(
                choice_id="feel_the_rhythm",
                text="Let the rhythm carry you.",
                next_node_id="waiting_insight",
                pattern=Pattern.PATIENCE,
                required_orb_fill=OrbRequirement(pattern=Pattern.PATIENCE, threshold=10),
            ),
        ],
    ),
    DialogueNode(
        node_id="waiting_announcement",
        speaker="Station PA",
        content=[ContentVariant(text="Now arriving at Platform Sev... Platform... [static]", emotion="glitch")],
        on_enter=[StateChange(mystery_changes={"platform_seven": "flickering"})],
        choices=[
            Choice(choice_id="back_to_bench", text="Sit back down.", next_node_id="waiting_bench"),
        ],
    ),
    DialogueNode(
        node_id="waiting_insight",
        speaker="Narrator",
        content=[ContentVariant(text="For a moment the whole station breathes with you.")],
        on_enter=[
            StateChange(
                thought_id="patience_of_platforms",
                internalize_thought=True,
                mystery_changes={"station_nature": "sensing"},
            )
        ],
        tags=["terminal"],
        choices=[
            Choice(choice_id="return_to_samuel", text="Find Samuel.", next_node_id=SAMUEL.ref("HUB_INITIAL")),
        ],
    ),
]

GRAPH = DialogueGraph.build(
    NODES,
    ENTRY_POINTS,
    start="waiting_bench",
    character_id="samuel",
    title="Station Waiting",
)
