"""Maya Chen, pre-med student torn between family expectations and robotics."""

from __future__ import annotations

from stationgraph.content.entry_points import MAYA, SAMUEL
from stationgraph.models import (
    Choice,
    ContentVariant,
    DialogueGraph,
    DialogueNode,
    InterruptType,
    InterruptWindow,
    Pattern,
    PatternReflection,
    Range,
    StateChange,
    StateCondition,
)

SPEAKER = "Maya Chen"
ENTRY_POINTS = MAYA

NODES: list[DialogueNode] = [
    DialogueNode(
        node_id="maya_introduction",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Oh! Sorry, I didn't see you there. I'm supposed to be studying for the MCAT.",
                emotion="anxious",
                variation_id="maya_intro_v1",
            ),
            ContentVariant(
                text="You're back. I've read the same page six times.",
                emotion="tired",
                variation_id="maya_intro_v2",
            ),
        ],
        choices=[
            Choice(
                choice_id="ask_about_studies",
                text="What are you studying?",
                next_node_id="maya_studies",
                pattern=Pattern.ANALYTICAL,
                consequence=StateChange(trust_change=1),
                voice_variations={Pattern.HELPING: "That looks like a lot. Want to talk it through?"},
            ),
            Choice(
                choice_id="notice_stress",
                text="You seem stressed.",
                next_node_id="maya_family_pressure",
                pattern=Pattern.HELPING,
                consequence=StateChange(trust_change=1),
                interrupt=InterruptWindow(
                    duration=3000,
                    type=InterruptType.COMFORT,
                    action="Sit down beside her",
                    target_node_id="maya_comforted",
                    consequence=StateChange(trust_change=2, add_knowledge_flags=["maya_opened_up"]),
                ),
            ),
        ],
    ),
    DialogueNode(
        node_id="maya_studies",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Organic chemistry. My parents are both doctors, so...",
                emotion="resigned",
                pattern_reflection=[
                    PatternReflection(
                        pattern=Pattern.ANALYTICAL,
                        min_level=3,
                        alt_text="Organic chemistry. You look like you'd actually enjoy reaction mechanisms. I don't.",
                        alt_emotion="wry",
                    )
                ],
            )
        ],
        choices=[
            Choice(
                choice_id="ask_about_robot",
                text="Is that a robot sticking out of your bag?",
                next_node_id="maya_robotics",
                pattern=Pattern.BUILDING,
                enabled_condition=StateCondition(trust=Range(min=2)),
            ),
            Choice(
                choice_id="leave_her_to_it",
                text="I'll let you study.",
                next_node_id=SAMUEL.ref("HUB_INITIAL"),
            ),
        ],
    ),
    DialogueNode(
        node_id="maya_family_pressure",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Everyone has a plan for me. Medicine. Residency. It's a good plan. It's just not mine.",
                emotion="frustrated",
            )
        ],
        choices=[
            Choice(
                choice_id="ask_what_she_wants",
                text="What would your plan be?",
                next_node_id="maya_robotics",
                pattern=Pattern.EXPLORING,
                consequence=StateChange(trust_change=1, add_knowledge_flags=["knows_family_pressure"]),
            ),
            Choice(
                choice_id="back_to_samuel",
                text="I hope you figure it out.",
                next_node_id=SAMUEL.ref("HUB_INITIAL"),
            ),
        ],
    ),
    DialogueNode(
        node_id="maya_comforted",
        speaker=SPEAKER,
        content=[ContentVariant(text="...Thanks. I don't usually say any of this out loud.", emotion="grateful")],
        on_enter=[StateChange(set_relationship_status="acquaintance")],
        choices=[
            Choice(
                choice_id="ask_what_she_loves",
                text="What do you actually love doing?",
                next_node_id="maya_robotics",
                pattern=Pattern.HELPING,
            ),
        ],
    ),
    DialogueNode(
        node_id="maya_robotics",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="I build robots. Small ones. This one can hand you a cup of water if you ask nicely.",
                emotion="excited",
                voice_variations={
                    Pattern.BUILDING: "I build robots. You're looking at the servo linkage, aren't you? Nobody looks at the linkage.",
                },
            )
        ],
        on_enter=[StateChange(thought_id="two_paths")],
        choices=[
            Choice(
                choice_id="encourage_robotics",
                text="That sounds like your plan.",
                next_node_id=SAMUEL.ref("HUB_RETURN"),
                pattern=Pattern.BUILDING,
                consequence=StateChange(trust_change=2, set_relationship_status="acquaintance"),
            ),
        ],
    ),
    DialogueNode(
        node_id="maya_revisit",
        speaker=SPEAKER,
        content=[ContentVariant(text="I told my parents. It went... better than I thought.", emotion="hopeful")],
        required_state=StateCondition(relationship=["acquaintance", "confidant"]),
        choices=[
            Choice(
                choice_id="proud_of_her",
                text="I'm proud of you.",
                next_node_id=SAMUEL.ref("HUB_RETURN"),
                consequence=StateChange(set_relationship_status="confidant"),
            ),
        ],
    ),
]

GRAPH = DialogueGraph.build(
    NODES,
    ENTRY_POINTS,
    start="maya_introduction",
    character_id="maya",
    title="Maya's Crossroads",
)
