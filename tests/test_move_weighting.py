import pytest

from duelsim.domain.defs import EscalationBehaviorDef
from duelsim.domain.move_weighting import compute_escalation_weight
from tests.helpers.builders import make_fighter, make_move


def _make_severe_defender():
    defender = make_fighter("beta")
    defender.incapacitation_score = 9.0
    defender.escalation_state = "Severely Incapacitated"
    return defender


def test_missing_inputs_give_neutral_weight() -> None:
    attacker = make_fighter("alpha")
    move = make_move("strike")

    assert compute_escalation_weight(None, attacker, move).final_multiplier == 1.0
    assert compute_escalation_weight(attacker, None, move).final_multiplier == 1.0
    assert compute_escalation_weight(attacker, make_fighter("beta"), None).final_multiplier == 1.0


def test_malformed_move_gives_neutral_weight() -> None:
    attacker = make_fighter("alpha")
    move = make_move("broken")
    move.power = None  # type: ignore[assignment]

    result = compute_escalation_weight(attacker, _make_severe_defender(), move)

    assert result.final_multiplier == 1.0
    assert result.reasons_applied == []


def test_normal_defender_leaves_weight_untouched() -> None:
    move = make_move("final_blow", move_type="Finisher", power=90)

    result = compute_escalation_weight(make_fighter("alpha"), make_fighter("beta"), move)

    assert result.final_multiplier == 1.0
    assert result.reasons_applied == []


def test_finisher_against_severe_defender_is_boosted() -> None:
    move = make_move("final_blow", move_type="Finisher", power=90)

    result = compute_escalation_weight(make_fighter("alpha"), _make_severe_defender(), move)

    assert result.final_multiplier == pytest.approx(2.5 * 1.8)
    assert "ScoreEscalationBias:Finisher(x2.5)" in result.reasons_applied
    assert "EscalationStateBias:Finisher(x1.8)" in result.reasons_applied


def test_low_impact_offense_is_damped_against_severe_defender() -> None:
    move = make_move("jab", power=20)

    result = compute_escalation_weight(make_fighter("alpha"), _make_severe_defender(), move)

    assert result.final_multiplier == pytest.approx(0.4 * 0.6)


def test_setup_utility_is_not_a_low_impact_candidate() -> None:
    move = make_move("trip", move_type="Utility", power=20, tags=["setup"])

    result = compute_escalation_weight(make_fighter("alpha"), _make_severe_defender(), move)

    # only the broad low-power factor applies
    assert result.final_multiplier == pytest.approx(0.6)


def test_signature_move_gets_both_biases() -> None:
    attacker = make_fighter("alpha")
    move = make_move("blaze", power=70)
    attacker.personality.signature_move_bias[move.name] = 1.2

    result = compute_escalation_weight(attacker, _make_severe_defender(), move)

    assert result.final_multiplier == pytest.approx(1.5 * 1.4)


def test_attacker_behavior_replaces_constants_in_severe_state() -> None:
    attacker = make_fighter("alpha")
    attacker.escalation_state = "Severely Incapacitated"
    attacker.escalation_behavior = {"Severely Incapacitated": EscalationBehaviorDef(finisher_bias=2.0)}
    move = make_move("final_blow", move_type="Finisher", power=90)

    result = compute_escalation_weight(attacker, _make_severe_defender(), move)

    assert result.final_multiplier == pytest.approx(4.0)
    assert result.reasons_applied[0] == "EscalationBehavior:Severely Incapacitated"


def test_behavior_is_ignored_while_attacker_is_only_pressured() -> None:
    attacker = make_fighter("alpha")
    attacker.escalation_state = "Pressured"
    attacker.escalation_behavior = {"Severely Incapacitated": EscalationBehaviorDef(finisher_bias=2.0)}
    move = make_move("final_blow", move_type="Finisher", power=90)

    result = compute_escalation_weight(attacker, _make_severe_defender(), move)

    assert result.final_multiplier == pytest.approx(2.5 * 1.8)


def test_offensive_bias_favors_strong_attacks_over_weak_ones() -> None:
    attacker = make_fighter("alpha")
    attacker.escalation_state = "Severely Incapacitated"
    attacker.escalation_behavior = {"Severely Incapacitated": EscalationBehaviorDef(offensive_bias=2.0)}
    defender = _make_severe_defender()

    weak = compute_escalation_weight(attacker, defender, make_move("jab", power=20))
    strong = compute_escalation_weight(attacker, defender, make_move("haymaker", power=80))

    assert weak.final_multiplier == pytest.approx(0.4 * 0.6 * 2.0)
    assert strong.final_multiplier == pytest.approx(2.0)
    assert strong.final_multiplier > weak.final_multiplier
    assert "EscalationBehavior:OffenseBias(x2)" in strong.reasons_applied


def test_utility_bias_scales_every_utility_move() -> None:
    attacker = make_fighter("alpha")
    attacker.escalation_state = "Terminal Collapse"
    attacker.escalation_behavior = {"Terminal Collapse": EscalationBehaviorDef(utility_bias=0.5)}
    move = make_move("trip", move_type="Utility", power=50, tags=["setup"])

    result = compute_escalation_weight(attacker, make_fighter("beta"), move)

    assert result.final_multiplier == pytest.approx(0.5)
    assert result.reasons_applied[0] == "EscalationBehavior:Terminal Collapse"


def test_behavior_reason_only_when_an_override_is_applied() -> None:
    attacker = make_fighter("alpha")
    attacker.escalation_state = "Severely Incapacitated"
    attacker.escalation_behavior = {"Severely Incapacitated": EscalationBehaviorDef(finisher_bias=2.0)}
    finisher = make_move("final_blow", move_type="Finisher", power=90)
    guard = make_move("guard", move_type="Defense", power=10)

    against_normal = compute_escalation_weight(attacker, make_fighter("beta"), finisher)
    unaffected_type = compute_escalation_weight(attacker, _make_severe_defender(), guard)

    assert against_normal.final_multiplier == 1.0
    assert against_normal.reasons_applied == []
    assert unaffected_type.reasons_applied == ["EscalationStateBias:LowPower(x0.6)"]
