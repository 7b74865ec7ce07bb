"""Samuel Washington, the station keeper: introduction, hubs and backstory."""

from __future__ import annotations

from stationgraph.content.entry_points import MAYA, SAMUEL, STATION_WAITING
from stationgraph.models import (
    Choice,
    ContentVariant,
    DialogueGraph,
    DialogueNode,
    InterruptType,
    InterruptWindow,
    MysteryRequirement,
    NodeMetadata,
    OrbRequirement,
    Pattern,
    PatternReflection,
    Range,
    Sentinel,
    SimulationDescriptor,
    StateChange,
    StateCondition,
)

SPEAKER = "Samuel Washington"
ENTRY_POINTS = SAMUEL

NODES: list[DialogueNode] = [
    DialogueNode(
        node_id="samuel_introduction",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text=(
                    "Welcome to Grand Central Terminus. I'm Samuel Washington, and I keep this "
                    "station.\n\nYou have the look of someone standing at a crossroads."
                ),
                emotion="warm",
                variation_id="intro_v1",
            )
        ],
        choices=[
            Choice(
                choice_id="ask_what_is_this",
                text="What is this place?",
                next_node_id="systemic_calibration_start",
                pattern=Pattern.EXPLORING,
                consequence=StateChange(character_id="samuel", trust_change=1),
            ),
            Choice(
                choice_id="ask_about_platforms",
                text="I see platforms. Where do they lead?",
                next_node_id="samuel_explains_platforms",
                pattern=Pattern.ANALYTICAL,
                consequence=StateChange(character_id="samuel", trust_change=1),
            ),
            Choice(
                choice_id="ask_who_are_you",
                text="Who are you, really?",
                next_node_id="samuel_backstory_intro",
                pattern=Pattern.PATIENCE,
                consequence=StateChange(character_id="samuel", trust_change=2),
            ),
        ],
    ),
    DialogueNode(
        node_id="systemic_calibration_start",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text=(
                    "This station exists for people at a turning point. Before you go further, "
                    "let the station take your measure. It only takes a moment."
                ),
                emotion="knowing",
                variation_id="calibration_v1",
                pattern_reflection=[
                    PatternReflection(
                        pattern=Pattern.ANALYTICAL,
                        min_level=4,
                        alt_text="You're already mapping the signal boards. Good. The calibration will feel familiar.",
                        alt_emotion="amused",
                    ),
                    PatternReflection(
                        pattern=Pattern.HELPING,
                        min_level=4,
                        alt_text="You keep glancing at the other travelers. The calibration is about you this time.",
                    ),
                ],
            )
        ],
        on_enter=[StateChange(add_global_flags=["calibration_seen"])],
        simulation=SimulationDescriptor(
            type="system_calibration",
            title="Station Calibration",
            task_description="Align the platform signals until the departure board steadies.",
            initial_context={"signals": 5, "tolerance": 0.1},
            success_feedback="The board settles. Every platform reads true.",
        ),
        choices=[
            Choice(
                choice_id="begin_calibration",
                text="Begin the calibration.",
                next_node_id=Sentinel.SIMULATION_PENDING,
                pattern=Pattern.BUILDING,
            ),
            Choice(
                choice_id="skip_calibration",
                text="Maybe later. Show me around first.",
                next_node_id="samuel_hub_initial",
            ),
        ],
    ),
    DialogueNode(
        node_id="samuel_calibration_complete",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Hear that? The station hums differently when it knows who's listening.",
                emotion="pleased",
            )
        ],
        on_enter=[StateChange(mystery_changes={"station_nature": "sensing"})],
        choices=[
            Choice(choice_id="continue_to_hub", text="What now?", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_explains_platforms",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text=(
                    "Each platform leads somewhere different. Platform 1 is the Care Line. "
                    "Platform 3 is the Builder's Track. You don't pick one by logic alone."
                ),
                emotion="reflective",
                voice_variations={
                    Pattern.ANALYTICAL: "You'll want the schedule. There isn't one. The platforms answer to people, not timetables.",
                    Pattern.BUILDING: "Every track here was laid by someone who needed it. Maybe you'll lay one too.",
                },
            )
        ],
        choices=[
            Choice(
                choice_id="ask_about_platform_seven",
                text="Why is Platform 7 flickering?",
                next_node_id="samuel_platform_seven",
                pattern=Pattern.EXPLORING,
                consequence=StateChange(mystery_changes={"platform_seven": "flickering"}),
            ),
            Choice(
                choice_id="head_to_hub",
                text="Let me look around.",
                next_node_id="samuel_hub_initial",
                pattern=Pattern.BUILDING,
            ),
        ],
    ),
    DialogueNode(
        node_id="samuel_platform_seven",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Platform 7 has its moods. I've stopped asking what it wants.",
                emotion="guarded",
            )
        ],
        choices=[
            Choice(choice_id="let_it_go", text="Fair enough.", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_backstory_intro",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="I was a traveler once. Stood right where you're standing, holding a letter I never sent.",
                emotion="wistful",
            )
        ],
        on_enter=[StateChange(mystery_changes={"samuels_past": "hinted"})],
        choices=[
            Choice(
                choice_id="listen_quietly",
                text="Tell me about it.",
                next_node_id="samuel_backstory_deeper",
                pattern=Pattern.PATIENCE,
                interrupt=InterruptWindow(
                    duration=4000,
                    type=InterruptType.SILENCE,
                    action="Stay silent and let him continue",
                    target_node_id="samuel_backstory_silence",
                    consequence=StateChange(trust_change=1, add_knowledge_flags=["shared_silence"]),
                ),
            ),
            Choice(
                choice_id="change_subject",
                text="Maybe another time.",
                next_node_id="samuel_hub_initial",
            ),
        ],
    ),
    DialogueNode(
        node_id="samuel_backstory_deeper",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Engineering, once. Bridges. Then one day I didn't get on the train home.",
                emotion="distant",
            )
        ],
        on_enter=[StateChange(mystery_changes={"samuels_past": "investigating"})],
        choices=[
            Choice(
                choice_id="ask_about_letter",
                text="The letter. Who was it for?",
                next_node_id="samuel_letter",
                pattern=Pattern.EXPLORING,
                visible_condition=StateCondition(
                    mysteries={"samuels_past": MysteryRequirement(stage="investigating")}
                ),
                enabled_condition=StateCondition(trust=Range(min=5)),
            ),
            Choice(choice_id="back_to_hub", text="Thank you for telling me.", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_backstory_silence",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="...Most people rush to fill a quiet like that. You didn't. Thank you.",
                emotion="moved",
            )
        ],
        on_enter=[StateChange(set_relationship_status="acquaintance")],
        choices=[
            Choice(choice_id="nod", text="(Nod.)", next_node_id="samuel_backstory_deeper"),
        ],
    ),
    DialogueNode(
        node_id="samuel_letter",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="My daughter. I wrote it forty years ago. It's still in my coat.",
                emotion="vulnerable",
            )
        ],
        on_enter=[
            StateChange(
                mystery_changes={"letter_sender": "samuel_knows"},
                thought_id="the_unsent_letter",
            )
        ],
        choices=[
            Choice(choice_id="leave_it_there", text="Maybe it's time to send it.", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_hub_initial",
        speaker=SPEAKER,
        content=[
            ContentVariant(text="The station is yours to explore. Where to?", emotion="warm", variation_id="hub_v1"),
            ContentVariant(text="Back again. The platforms have been busy.", emotion="warm", variation_id="hub_v2"),
        ],
        metadata=NodeMetadata(session_boundary=True),
        tags=["hub"],
        choices=[
            Choice(
                choice_id="visit_maya",
                text="Who's the student by Platform 1?",
                next_node_id=MAYA.ref("INTRODUCTION"),
                pattern=Pattern.HELPING,
            ),
            Choice(
                choice_id="wait_on_bench",
                text="I'll sit for a while.",
                next_node_id=STATION_WAITING.ref("BENCH"),
                pattern=Pattern.PATIENCE,
            ),
            Choice(
                choice_id="resonance",
                text="Something about the lights feels familiar.",
                next_node_id="samuel_orb_resonance",
                required_orb_fill=OrbRequirement(pattern=Pattern.EXPLORING, threshold=30),
            ),
            Choice(
                choice_id="board_a_train",
                text="Board the next train.",
                next_node_id=Sentinel.TRAVEL_PENDING,
            ),
            Choice(
                choice_id="check_in_later",
                text="I'll check in with you later.",
                next_node_id="samuel_hub_return",
            ),
        ],
    ),
    DialogueNode(
        node_id="samuel_orb_resonance",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="The lights brighten when you pass. The station is learning you.",
                emotion="curious",
                pattern_reflection=[
                    PatternReflection(
                        pattern=Pattern.EXPLORING,
                        min_level=60,
                        alt_text="Every light on the concourse turns toward you now. Few travelers get this far.",
                        alt_emotion="awed",
                    )
                ],
            )
        ],
        on_enter=[StateChange(mystery_changes={"station_nature": "sensing"})],
        choices=[
            Choice(choice_id="back_from_resonance", text="Strange.", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_hub_return",
        speaker=SPEAKER,
        content=[ContentVariant(text="You came back. The station noticed.", emotion="warm")],
        metadata=NodeMetadata(session_boundary=True),
        tags=["hub"],
        choices=[
            Choice(
                choice_id="offer_loyalty",
                text="Samuel, I'd like to help keep the station.",
                next_node_id=Sentinel.LOYALTY_PENDING,
                pattern=Pattern.PATIENCE,
                visible_condition=StateCondition(
                    trust=Range(min=8),
                    patterns={Pattern.PATIENCE: Range(min=5)},
                    has_global_flags=["samuel_farewell_complete"],
                ),
            ),
            Choice(
                choice_id="say_farewell",
                text="I think I know which platform is mine.",
                next_node_id="samuel_farewell",
                visible_condition=StateCondition(
                    trust=Range(min=6),
                    lacks_global_flags=["samuel_farewell_complete"],
                ),
            ),
            Choice(
                choice_id="revisit_maya",
                text="How is Maya doing?",
                next_node_id=MAYA.ref("REVISIT"),
                visible_condition=StateCondition(character_id="maya", relationship=["acquaintance", "confidant"]),
            ),
            Choice(choice_id="back_to_concourse", text="Just passing through.", next_node_id="samuel_hub_initial"),
        ],
    ),
    DialogueNode(
        node_id="samuel_farewell",
        speaker=SPEAKER,
        content=[
            ContentVariant(
                text="Then go. And if you ever come back, there's a bench with your name on it.",
                emotion="proud",
            )
        ],
        on_enter=[
            StateChange(
                add_global_flags=["samuel_farewell_complete"],
                set_relationship_status="confidant",
                orb_award=5,
            )
        ],
        choices=[
            Choice(choice_id="one_more_thing", text="One more thing...", next_node_id="samuel_hub_return"),
        ],
    ),
    # Draft: the lost conductor thread was cut; kept for a later arc.
    DialogueNode(
        node_id="samuel_draft_lost_conductor",
        speaker=SPEAKER,
        content=[ContentVariant(text="There was a conductor here before me. Nobody remembers his name.")],
        tags=["draft"],
        choices=[
            Choice(choice_id="draft_back", text="Go on.", next_node_id="samuel_hub_initial"),
        ],
    ),
]

GRAPH = DialogueGraph.build(
    NODES,
    ENTRY_POINTS,
    start="samuel_introduction",
    character_id="samuel",
    title="Samuel's Guidance",
)
