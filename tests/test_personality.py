import pytest

from duelsim.domain.defs import RelationshipDef
from duelsim.domain.mental_state import apply_stress, mental_level_for_stress
from duelsim.domain.momentum import apply_momentum_change, momentum_swing
from duelsim.domain.personality import (
    apply_personality_drift,
    base_personality_score,
    determine_strategic_intent,
    get_dynamic_personality,
)
from tests.helpers.builders import make_fighter, make_move


def test_momentum_swings_follow_effectiveness() -> None:
    assert momentum_swing("Critical") == (3, -3)
    assert momentum_swing("Weak") == (-1, 1)
    assert momentum_swing("Unknown") == (0, 0)


def test_momentum_is_clamped() -> None:
    fighter = make_fighter("alpha")
    fighter.momentum = 99

    assert apply_momentum_change(fighter, 5) == 1
    assert fighter.momentum == 100
    assert apply_momentum_change(fighter, -250) == -200
    assert fighter.momentum == -100


def test_stress_levels_and_changes() -> None:
    assert mental_level_for_stress(0) == "stable"
    assert mental_level_for_stress(30) == "stressed"
    assert mental_level_for_stress(60) == "shaken"
    assert mental_level_for_stress(95) == "broken"

    fighter = make_fighter("alpha")
    assert apply_stress(fighter, "Critical", 20) == "stressed"
    assert fighter.mental_state.stress == 30.0
    assert apply_stress(fighter, "Normal", 2) is None


def test_relationship_scales_stress() -> None:
    fighter = make_fighter("alpha")
    fighter.relationships = {"beta": RelationshipDef(opponent_id="beta", relationship_type="sibling", stress_modifier=0.5)}

    apply_stress(fighter, "Strong", 10, opponent_id="beta")

    assert fighter.mental_state.stress == 10.0


def test_dynamic_personality_applies_mental_state_and_override() -> None:
    fighter = make_fighter("alpha")
    fighter.mental_state.level = "broken"

    profile = get_dynamic_personality(fighter, "Mid", override={"creativity": 2.0})

    assert profile.patience == 0.05
    assert profile.aggression == 0.5 * 1.1 + 0.4
    assert profile.creativity == 1.5
    assert fighter.personality.patience == 0.5


def test_intent_prefers_opening_for_opportunists() -> None:
    fighter, opponent = make_fighter("alpha"), make_fighter("beta")
    profile = fighter.personality.copy()
    profile.opportunism = 0.9
    opponent.stun_duration = 1

    assert determine_strategic_intent(fighter, opponent, 5, profile) == "CapitalizeOnOpening"
    opponent.stun_duration = 0
    assert determine_strategic_intent(fighter, opponent, 1, profile) == "OpeningMoves"
    fighter.energy = 20
    assert determine_strategic_intent(fighter, opponent, 5, profile) == "ConserveEnergy"


def test_unaffordable_move_scores_zero() -> None:
    fighter, opponent = make_fighter("alpha"), make_fighter("beta")
    fighter.energy = 5

    result = base_personality_score(make_move("blast", power=80), fighter, opponent, fighter.personality, "StandardExchange", "Mid")

    assert result.score == 0.0
    assert "EnergyTooHigh" in result.reasons


def test_early_finisher_is_suppressed() -> None:
    fighter, opponent = make_fighter("alpha"), make_fighter("beta")
    finisher = fighter.get_move("final_blow")

    early = base_personality_score(finisher, fighter, opponent, fighter.personality, "StandardExchange", "Opening")
    late = base_personality_score(finisher, fighter, opponent, fighter.personality, "StandardExchange", "Late")

    assert "FinisherTooEarly" in early.reasons
    assert "FinisherWindow" in late.reasons
    assert late.score > early.score


def test_drift_after_weak_and_strong_streaks() -> None:
    fighter = make_fighter("alpha")
    fighter.effectiveness_history = ["Weak", "Weak"]

    assert apply_personality_drift(fighter) == ["creativity", "risk_tolerance"]
    assert fighter.personality.creativity == pytest.approx(0.65)

    fighter.effectiveness_history = ["Strong", "Critical"]
    assert apply_personality_drift(fighter) == ["aggression"]

    fighter.effectiveness_history = ["Weak", "Strong"]
    assert apply_personality_drift(fighter) == []
