"""Tests for condition evaluation."""

from __future__ import annotations

import pytest

from stationgraph.engine.conditions import (
    can_enter,
    disabled_reason,
    evaluate,
    evaluate_choices,
    is_enabled,
    is_visible,
    unmet_requirements,
)
from stationgraph.models import (
    MysteryRequirement,
    OrbRequirement,
    OrbTier,
    Pattern,
    Range,
    StateCondition,
)
from tests.fixtures.graph_fixtures import make_choice, make_node, make_state


class TestEvaluate:
    """Tests for individual predicates."""

    def test_absent_condition_is_true(self) -> None:
        """No condition means no constraint."""
        assert evaluate(None, make_state()) is True
        assert evaluate(StateCondition(), make_state()) is True

    @pytest.mark.parametrize("trust", range(0, 11))
    def test_trust_minimum_is_exact(self, trust: int) -> None:
        """A trust gate holds exactly when trust reaches the minimum."""
        condition = StateCondition(trust=Range(min=6))
        state = make_state(trust={"ava": trust})

        assert evaluate(condition, state, character_id="ava") is (trust >= 6)

    def test_trust_gate_ignores_other_fields(self) -> None:
        """Unrelated state does not rescue a failing trust gate."""
        condition = StateCondition(trust=Range(min=6))
        state = make_state(
            trust={"ava": 5, "ben": 10},
            patterns={"helping": 99},
            global_flags={"everything"},
            orb_count=500,
        )

        assert evaluate(condition, state, character_id="ava") is False

    def test_trust_maximum(self) -> None:
        """Upper bounds are inclusive."""
        condition = StateCondition(trust=Range(max=3))

        assert evaluate(condition, make_state(trust={"ava": 3}), character_id="ava") is True
        assert evaluate(condition, make_state(trust={"ava": 4}), character_id="ava") is False

    def test_condition_character_overrides_default(self) -> None:
        """An explicit character_id wins over the graph's character."""
        condition = StateCondition(character_id="ben", trust=Range(min=2))
        state = make_state(trust={"ava": 0, "ben": 2})

        assert evaluate(condition, state, character_id="ava") is True

    def test_character_scoped_without_character_fails(self) -> None:
        """Trust checks with no character to apply to don't pass silently."""
        condition = StateCondition(trust=Range(min=0))

        assert evaluate(condition, make_state()) is False

    def test_patterns(self) -> None:
        """Pattern ranges are checked per pattern."""
        condition = StateCondition(patterns={Pattern.PATIENCE: Range(min=5), Pattern.HELPING: Range(max=2)})

        assert evaluate(condition, make_state(patterns={"patience": 5, "helping": 2})) is True
        assert evaluate(condition, make_state(patterns={"patience": 4})) is False
        assert evaluate(condition, make_state(patterns={"patience": 5, "helping": 3})) is False

    def test_global_flags_and_nor(self) -> None:
        """has_ is an AND over flags, lacks_ a NOR."""
        condition = StateCondition(has_global_flags=["a", "b"], lacks_global_flags=["x", "y"])

        assert evaluate(condition, make_state(global_flags={"a", "b"})) is True
        assert evaluate(condition, make_state(global_flags={"a"})) is False
        assert evaluate(condition, make_state(global_flags={"a", "b", "y"})) is False

    def test_knowledge_flags_scoped_to_character(self) -> None:
        """Knowledge flags are looked up for the condition's character only."""
        condition = StateCondition(has_knowledge_flags=["secret"])
        state = make_state(knowledge_flags={"ben": {"secret"}})

        assert evaluate(condition, state, character_id="ben") is True
        assert evaluate(condition, state, character_id="ava") is False

    def test_relationship(self) -> None:
        """Relationship predicates accept any listed status."""
        condition = StateCondition(relationship=["acquaintance", "confidant"])

        assert evaluate(condition, make_state(relationship_status={"ava": "confidant"}), character_id="ava")
        assert not evaluate(condition, make_state(), character_id="ava")

    def test_mystery_at_least(self) -> None:
        """At-least matches follow the mystery's stage order."""
        condition = StateCondition(mysteries={"samuels_past": MysteryRequirement(stage="hinted")})

        assert evaluate(condition, make_state(mysteries={"samuels_past": "known"})) is True
        assert evaluate(condition, make_state(mysteries={"samuels_past": "hinted"})) is True
        assert evaluate(condition, make_state()) is False

    def test_unrecorded_catalog_mystery_is_at_first_stage(self) -> None:
        """A mystery missing from the state reads as its first catalog stage."""
        catalog = {"lighthouse": ("dark", "lit")}
        condition = StateCondition(mysteries={"lighthouse": MysteryRequirement(stage="dark")})

        assert unmet_requirements(condition, make_state(), catalog=catalog) == []
        assert unmet_requirements(condition, make_state()) == ["Unknown mystery lighthouse"]

    def test_mystery_exact(self) -> None:
        """Exact matches require that very stage."""
        condition = StateCondition(mysteries={"samuels_past": MysteryRequirement(stage="hinted", match="exact")})

        assert evaluate(condition, make_state(mysteries={"samuels_past": "hinted"})) is True
        assert evaluate(condition, make_state(mysteries={"samuels_past": "known"})) is False

    def test_orb_tier_is_at_least(self) -> None:
        """has_orb_tier passes at or above the tier."""
        condition = StateCondition(has_orb_tier=OrbTier.DEVELOPING)

        assert evaluate(condition, make_state(orb_count=30)) is True
        assert evaluate(condition, make_state(orb_count=100)) is True
        assert evaluate(condition, make_state(orb_count=29)) is False

    def test_evaluation_does_not_mutate_state(self) -> None:
        """Evaluating conditions is a pure read."""
        state = make_state(trust={"ava": 3}, global_flags={"a"})
        before = state.model_dump_json()
        condition = StateCondition(
            trust=Range(min=5),
            has_global_flags=["b"],
            has_knowledge_flags=["k"],
            mysteries={"letter_sender": MysteryRequirement(stage="investigating")},
        )

        unmet_requirements(condition, state, character_id="ava")
        evaluate(condition, state, character_id="ava")

        assert state.model_dump_json() == before


class TestNodeAndChoiceGates:
    """Tests for can_enter, is_visible and enabled conditions."""

    def test_can_enter_without_requirement(self) -> None:
        """Nodes without required_state are always enterable."""
        assert can_enter(make_node("n"), make_state()) is True

    def test_can_enter_with_requirement(self) -> None:
        """required_state gates entering the node."""
        node = make_node("n", required_state=StateCondition(has_global_flags=["ticket"]))

        assert can_enter(node, make_state()) is False
        assert can_enter(node, make_state(global_flags={"ticket"})) is True

    def test_visible_without_condition(self) -> None:
        """Choices without visible_condition are always visible."""
        assert is_visible(make_choice("c", "x"), make_state()) is True

    def test_disabled_reason_reports_need_and_have(self) -> None:
        """A failing enabled_condition explains itself."""
        choice = make_choice("c", "x", enabled_condition=StateCondition(trust=Range(min=5)))
        state = make_state(trust={"ava": 3})

        assert is_enabled(choice, state, character_id="ava") is False
        assert disabled_reason(choice, state, character_id="ava") == "Need 5 trust (have 3)"


class TestEvaluateChoices:
    """Tests for choice availability, orb locks and mercy unlock."""

    def test_hidden_choices_are_dropped(self) -> None:
        """Only visible choices are offered, in authored order."""
        node = make_node(
            "n",
            make_choice("first", "x"),
            make_choice("secret", "x", visible_condition=StateCondition(has_global_flags=["f"])),
            make_choice("last", "x"),
        )

        offered = evaluate_choices(node, make_state())

        assert [c.choice.choice_id for c in offered] == ["first", "last"]

    def test_orb_lock_with_alternative(self) -> None:
        """An orb-locked choice stays locked while another choice is available."""
        node = make_node(
            "n",
            make_choice("open", "x"),
            make_choice("gated", "x", required_orb_fill=OrbRequirement(pattern=Pattern.BUILDING, threshold=50)),
        )

        offered = {c.choice.choice_id: c for c in evaluate_choices(node, make_state(patterns={"building": 10}))}

        assert offered["gated"].orb_locked is True
        assert offered["gated"].selectable is False
        assert offered["open"].selectable is True

    def test_mercy_unlocks_lowest_threshold(self) -> None:
        """When every option is orb-locked, the lowest threshold is unlocked."""
        node = make_node(
            "n",
            make_choice("hard", "x", required_orb_fill=OrbRequirement(pattern=Pattern.ANALYTICAL, threshold=40)),
            make_choice("easy", "x", required_orb_fill=OrbRequirement(pattern=Pattern.PATIENCE, threshold=10)),
        )

        offered = {c.choice.choice_id: c for c in evaluate_choices(node, make_state())}

        assert offered["easy"].selectable is True
        assert offered["easy"].mercy_unlocked is True
        assert offered["hard"].orb_locked is True

    def test_disabled_choices_do_not_count_for_mercy(self) -> None:
        """Mercy only looks at choices that are otherwise enabled."""
        node = make_node(
            "n",
            make_choice(
                "disabled",
                "x",
                enabled_condition=StateCondition(has_global_flags=["never"]),
            ),
            make_choice("locked", "x", required_orb_fill=OrbRequirement(pattern=Pattern.HELPING, threshold=80)),
        )

        offered = {c.choice.choice_id: c for c in evaluate_choices(node, make_state())}

        assert offered["disabled"].enabled is False
        assert offered["locked"].mercy_unlocked is True
