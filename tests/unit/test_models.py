"""Tests for content and player state models."""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from stationgraph.graph import UnresolvedEntryPointError
from stationgraph.models import (
    MAX_TRUST,
    Choice,
    DialogueGraph,
    EntryPoints,
    EntryRef,
    MysteryRequirement,
    NodeKey,
    OrbTier,
    Pattern,
    PlayerState,
    RelationshipStatus,
    StateCondition,
    orb_tier_for,
    stage_index,
)
from tests.fixtures.graph_fixtures import make_choice, make_node, make_state


class TestPlayerState:
    """Tests for PlayerState construction and serialization."""

    def test_new_initialises_characters_and_mysteries(self) -> None:
        """Every character and catalog mystery starts at its baseline."""
        state = PlayerState.new(characters=["samuel", "maya"])

        assert state.trust == {"samuel": 0, "maya": 0}
        assert state.relationship_status["maya"] == RelationshipStatus.STRANGER
        assert state.mysteries["samuels_past"] == "hidden"
        assert state.mysteries["letter_sender"] == "unknown"
        assert state.characters == {"samuel", "maya"}

    def test_direct_construction_seeds_mysteries(self) -> None:
        """Mysteries left out of the data start at their first stage."""
        state = PlayerState(mysteries={"platform_seven": "error"})

        assert state.mysteries["platform_seven"] == "error"
        assert state.mysteries["samuels_past"] == "hidden"
        assert state.mysteries["station_nature"] == "unknown"

    def test_patterns_always_have_five_keys(self) -> None:
        """Missing pattern keys are filled with zero."""
        state = PlayerState(patterns={"helping": 3})

        assert set(state.patterns) == set(Pattern)
        assert state.pattern("helping") == 3
        assert state.pattern(Pattern.ANALYTICAL) == 0

    def test_negative_pattern_rejected(self) -> None:
        """Pattern scores can't be constructed negative."""
        with pytest.raises(ValidationError):
            PlayerState(patterns={"helping": -1})

    def test_trust_clamped_on_load(self) -> None:
        """Out-of-range trust values are clamped."""
        state = PlayerState(trust={"samuel": 42, "maya": -3})

        assert state.trust == {"samuel": MAX_TRUST, "maya": 0}

    def test_new_merges_dict_overrides(self) -> None:
        """Dict overrides merge with the initial per-character maps."""
        state = make_state(trust={"ava": 4})

        assert state.trust == {"ava": 4, "ben": 0}

    def test_json_is_deterministic(self) -> None:
        """Sets serialize sorted, so identical states dump identically."""
        a = make_state(global_flags={"zeta", "alpha", "mid"})
        b = make_state(global_flags={"mid", "zeta", "alpha"})

        assert a.model_dump_json() == b.model_dump_json()
        assert json.loads(a.model_dump_json())["global_flags"] == ["alpha", "mid", "zeta"]

    def test_json_round_trip_keeps_location(self) -> None:
        """Current location and visit history survive a dump/load."""
        key = NodeKey(graph_key="alpha", node_id="start")
        state = make_state(current=key, visit_counts={str(key): 2})

        loaded = PlayerState.model_validate_json(state.model_dump_json())

        assert loaded.current == key
        assert loaded.visit_count(key) == 2

    def test_orb_fill_is_capped_percentage(self) -> None:
        """Orb fill reads the pattern score as a percentage, capped at 100."""
        state = make_state(patterns={"building": 130, "patience": 25})

        assert state.orb_fill("building") == 100
        assert state.orb_fill("patience") == 25


class TestOrbTiers:
    """Tests for orb tier thresholds."""

    @pytest.mark.parametrize(
        ("count", "tier"),
        [
            (0, OrbTier.NASCENT),
            (9, OrbTier.NASCENT),
            (10, OrbTier.EMERGING),
            (30, OrbTier.DEVELOPING),
            (59, OrbTier.DEVELOPING),
            (60, OrbTier.FLOURISHING),
            (250, OrbTier.MASTERED),
        ],
    )
    def test_tier_thresholds(self, count: int, tier: OrbTier) -> None:
        """Tiers switch exactly at their thresholds."""
        assert orb_tier_for(count) == tier


class TestStageIndex:
    """Tests for mystery stage ordering."""

    def test_known_stage(self) -> None:
        """Stages are indexed in catalog order."""
        assert stage_index("samuels_past", "investigating") == 2

    def test_unknown_stage_raises_key_error(self) -> None:
        """Stages outside the catalog raise KeyError."""
        with pytest.raises(KeyError):
            stage_index("samuels_past", "forgotten")


class TestAuthoredModels:
    """Tests for authored content validation."""

    def test_duplicate_choice_ids_rejected(self) -> None:
        """A node may not repeat a choice id."""
        with pytest.raises(ValidationError, match="duplicate choice_id"):
            make_node("n", make_choice("same", "a"), make_choice("same", "b"))

    def test_unknown_condition_key_rejected(self) -> None:
        """Typos in condition keys fail validation instead of being ignored."""
        with pytest.raises(ValidationError):
            StateCondition.model_validate({"has_flags": ["x"]})

    def test_mystery_requirement_accepts_stage_name(self) -> None:
        """A bare stage name means an at-least requirement."""
        condition = StateCondition.model_validate({"mysteries": {"samuels_past": "hinted"}})

        assert condition.mysteries == {"samuels_past": MysteryRequirement(stage="hinted", match="at_least")}

    def test_choice_accepts_entry_ref_mapping(self) -> None:
        """Cross-graph targets may be written as mappings."""
        choice = Choice.model_validate(
            {"choice_id": "c", "text": "go", "next_node_id": {"graph": "maya", "entry": "INTRODUCTION"}}
        )

        assert choice.next_node_id == EntryRef(graph="maya", entry="INTRODUCTION")


class TestEntryPoints:
    """Tests for exported entry point constants."""

    def test_ref_returns_entry_ref(self) -> None:
        """Exported names produce an EntryRef for the graph."""
        entries = EntryPoints("maya", INTRODUCTION="maya_introduction")

        assert entries.ref("INTRODUCTION") == EntryRef(graph="maya", entry="INTRODUCTION")
        assert entries["INTRODUCTION"] == "maya_introduction"

    def test_ref_to_unexported_name_fails_immediately(self) -> None:
        """Linking to a name the graph doesn't export fails at authoring time."""
        entries = EntryPoints("maya", INTRODUCTION="maya_introduction")

        with pytest.raises(UnresolvedEntryPointError) as exc_info:
            entries.ref("FINALE")

        assert exc_info.value.exported == ["INTRODUCTION"]

    def test_graph_build_copies_entry_points(self) -> None:
        """DialogueGraph.build takes the key and entries from EntryPoints."""
        entries = EntryPoints("alpha", HUB="hub")
        graph = DialogueGraph.build([make_node("start"), make_node("hub")], entries, start="start")

        assert graph.graph_key == "alpha"
        assert graph.root_node_ids == ["start", "hub"]
