import pytest

from duelsim.core.config import EngineConfig
from duelsim.services.errors import InvariantViolation
from duelsim.services.invariants import validate_invariants
from tests.helpers.builders import make_state


def test_clean_state_has_no_reports() -> None:
    assert validate_invariants(make_state(), 1, EngineConfig()) == []


def test_hp_out_of_range_is_critical() -> None:
    state = make_state()
    state.fighter1.hp = -1

    with pytest.raises(InvariantViolation) as excinfo:
        validate_invariants(state, 3, EngineConfig())
    assert excinfo.value.code == "hp_range"
    assert excinfo.value.fighter_id == "alpha"
    assert excinfo.value.to_dict()["turn"] == 3


def test_energy_out_of_range_is_critical() -> None:
    state = make_state()
    state.fighter2.energy = 101

    with pytest.raises(InvariantViolation):
        validate_invariants(state, 1, EngineConfig())


def test_escalation_state_must_match_score() -> None:
    state = make_state()
    state.fighter1.incapacitation_score = 9.0

    with pytest.raises(InvariantViolation) as excinfo:
        validate_invariants(state, 1, EngineConfig())
    assert excinfo.value.code == "escalation_mismatch"


def test_score_decrease_is_reported_not_raised() -> None:
    previous = make_state()
    previous.fighter1.incapacitation_score = 5.0
    previous.fighter1.escalation_state = "Pressured"
    current = previous.clone()
    current.fighter1.incapacitation_score = 4.0

    reports = validate_invariants(current, 2, EngineConfig(), previous=previous)

    assert [(report.code, report.severity) for report in reports] == [("score_decreased", "error")]


def test_stun_stacking_and_momentum_are_reported() -> None:
    state = make_state()
    state.fighter1.stun_duration = 5
    state.fighter2.momentum = 150

    codes = {report.code for report in validate_invariants(state, 1, EngineConfig())}

    assert codes == {"stun_stacking", "momentum_range"}


def test_environment_saturation_is_reported_once() -> None:
    state = make_state()
    state.environment.damage_level = 100.0

    first = validate_invariants(state, 1, EngineConfig())
    second = validate_invariants(state, 2, EngineConfig())

    assert [report.code for report in first] == ["environment_saturated"]
    assert second == []
