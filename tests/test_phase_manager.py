import pytest

from duelsim.core.config import EngineConfig
from duelsim.domain.phases import estimate_phase, phase_floor_for_turn
from duelsim.services.errors import InvariantViolation
from duelsim.services.phase_manager import PhaseManager
from tests.helpers.builders import make_state


def test_opening_advances_to_early_on_turn_limit() -> None:
    state = make_state()
    manager = PhaseManager(EngineConfig())

    assert manager.check(state, 1) is None
    event = manager.check(state, 2)

    assert event is not None
    assert (event.from_phase, event.to_phase) == ("Opening", "Early")
    assert state.phase_state.current_phase == "Early"
    assert state.phase_state.phase_turn_count == 0


def test_escalation_advances_one_step_per_check() -> None:
    state = make_state()
    state.fighter2.escalation_state = "Terminal Collapse"
    state.fighter2.incapacitation_score = 11.0
    manager = PhaseManager(EngineConfig())

    phases = []
    for turn in (1, 2, 3):
        event = manager.check(state, turn)
        phases.append(event.to_phase if event else None)

    assert phases == ["Early", "Mid", "Late"]
    assert manager.check(state, 4) is None


def test_phase_never_moves_backwards() -> None:
    state = make_state()
    state.phase_state.current_phase = "Mid"
    manager = PhaseManager(EngineConfig())

    assert manager.check(state, 1) is None
    assert state.phase_state.current_phase == "Mid"
    assert state.phase_state.phase_turn_count == 1


def test_transition_resets_environment_phase_counters() -> None:
    state = make_state()
    state.environment.impact_count = 3
    state.environment.narrative_triggered_this_phase = True
    state.tracker.claim("environment_impact", "fire:high")

    PhaseManager(EngineConfig()).check(state, 2)

    assert state.environment.impact_count == 0
    assert not state.environment.narrative_triggered_this_phase
    assert not state.tracker.was_used("environment_impact", "fire:high")


def test_unknown_phase_is_critical() -> None:
    state = make_state()
    state.phase_state.current_phase = "Overtime"  # type: ignore[assignment]

    with pytest.raises(InvariantViolation):
        PhaseManager(EngineConfig()).check(state, 1)


def test_phase_floor_for_turn_uses_config() -> None:
    config = EngineConfig(opening_turn_limit=3, mid_phase_turn=6, late_phase_turn=9)

    assert phase_floor_for_turn(2, config) == "Opening"
    assert phase_floor_for_turn(3, config) == "Early"
    assert phase_floor_for_turn(6, config) == "Mid"
    assert phase_floor_for_turn(9, config) == "Late"


def test_estimate_phase_takes_later_of_turn_and_hp() -> None:
    config = EngineConfig()

    assert estimate_phase(1, 1.0, 0.5, config) == "Mid"
    assert estimate_phase(25, 1.0, 1.0, config) == "Late"
    assert estimate_phase(12, 0.9, 0.8, config) == "Mid"
