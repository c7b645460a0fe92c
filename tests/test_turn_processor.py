import pytest

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG
from duelsim.domain.battle_models import InactionEvent, MoveActionEvent, TurnMarkerEvent
from duelsim.domain.entities import TacticalState
from duelsim.services.errors import InvariantViolation
from duelsim.services.turn_processor import TurnProcessor
from tests.helpers.builders import make_location, make_state


def _make_processor(seed: int = 3, **kwargs) -> TurnProcessor:
    return TurnProcessor(EngineConfig(), RNG(seed), make_location(), **kwargs)


def test_fighter_one_acts_on_odd_turns() -> None:
    processor = _make_processor()
    state = make_state()

    first = processor.process_turn(state, 1)
    second = processor.process_turn(first.state, 2)

    assert isinstance(first.events[0], TurnMarkerEvent)
    assert first.events[0].actor_id == "alpha"
    assert second.events[0].actor_id == "beta"


def test_input_state_is_not_mutated() -> None:
    state = make_state()
    before = (state.fighter1.energy, state.fighter2.hp, state.turn, len(state.log))

    outcome = _make_processor().process_turn(state, 1)

    assert outcome.state is not state
    assert (state.fighter1.energy, state.fighter2.hp, state.turn, len(state.log)) == before
    assert outcome.state.turn == 1


def test_normal_turn_emits_move_action() -> None:
    outcome = _make_processor().process_turn(make_state(), 1)

    actions = [event for event in outcome.events if isinstance(event, MoveActionEvent)]
    assert len(actions) == 1
    assert actions[0].actor_id == "alpha"
    assert actions[0].target_id == "beta"
    assert outcome.decision is not None
    assert outcome.state.fighter1.last_move_id == actions[0].move_id


def test_stunned_fighter_loses_turn() -> None:
    state = make_state()
    state.fighter1.stun_duration = 2

    outcome = _make_processor().process_turn(state, 1)

    inaction = [event for event in outcome.events if isinstance(event, InactionEvent)]
    assert [event.reason for event in inaction] == ["stunned"]
    assert not any(isinstance(event, MoveActionEvent) for event in outcome.events)
    assert outcome.state.fighter1.stun_duration == 1


def test_exhausted_fighter_recovers_energy() -> None:
    state = make_state()
    state.fighter1.energy = 5

    outcome = _make_processor().process_turn(state, 1)

    assert [event.reason for event in outcome.events if isinstance(event, InactionEvent)] == ["exhausted"]
    # doubled recovery plus the regular regeneration
    assert outcome.state.fighter1.energy == 20


def test_disabled_moves_clear_after_own_turn() -> None:
    state = make_state()
    state.fighter2.disabled_move_ids.add("strike")

    outcome = _make_processor().process_turn(state, 2)

    assert outcome.state.fighter2.disabled_move_ids == set()


def test_tactical_state_expires_after_source_turns() -> None:
    state = make_state()
    state.fighter2.tactical_state = TacticalState(name="Pinned", duration=1, intensity=1.5, source_id="alpha")
    state.fighter1.stun_duration = 1

    outcome = _make_processor().process_turn(state, 1)

    assert outcome.state.fighter2.tactical_state is None


def test_escalation_is_recomputed_for_both_fighters() -> None:
    state = make_state()
    state.fighter2.stun_duration = 3

    outcome = _make_processor().process_turn(state, 1)

    assert outcome.state.fighter2.incapacitation_score >= 6.0
    assert outcome.state.fighter2.escalation_state != "Normal"


def test_critical_invariant_aborts_turn_without_touching_input() -> None:
    state = make_state()
    state.phase_state.current_phase = "Overtime"  # type: ignore[assignment]

    with pytest.raises(InvariantViolation):
        _make_processor().process_turn(state, 1)
    assert state.turn == 0
    assert state.fighter1.energy == 100
