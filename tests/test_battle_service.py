import pytest

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG, InputLog, ReplayDivergenceError
from duelsim.domain.battle_models import ConclusionEvent, ErrorEvent, MoveActionEvent
from duelsim.services.battle_service import BattleService, StepBudget, check_battle_termination
from duelsim.services.errors import BattleAbortedError, ValidationError
from tests.helpers.builders import (
    get_fighters_repo,
    get_locations_repo,
    get_rules_repo,
    make_fighter,
    make_location,
    make_state,
)

_OUTCOMES = {"decisive", "double_knockout", "stalemate", "terminated"}


def _make_battle_service(config: EngineConfig | None = None) -> BattleService:
    return BattleService(get_fighters_repo(), get_locations_repo(), get_rules_repo(), config)


def test_battles_end_within_max_turns_with_known_outcome() -> None:
    service = _make_battle_service()
    matchups = [
        ("azula", "zuko", "fire-nation-capital"),
        ("aang", "toph", "ba-sing-se"),
        ("katara", "sokka", "northern-water-tribe"),
        ("ty-lee", "mai", "neutral-arena"),
    ]
    for seed, (first, second, location) in enumerate(matchups):
        result = service.simulate_battle(first, second, location, seed=seed)

        assert result.outcome in _OUTCOMES
        assert result.turn_count <= EngineConfig().max_turns
        assert isinstance(result.log[-1], ConclusionEvent)
        assert result.log[0].event_type == "battle_start"
        if result.outcome == "decisive":
            assert {result.winner_id, result.loser_id} == {first, second}
            assert not result.is_draw


def test_hp_and_energy_stay_in_bounds_over_random_battles() -> None:
    service = _make_battle_service()
    fighter_ids = get_fighters_repo().ids()
    location_ids = get_locations_repo().ids()
    picker = RNG(2024)
    for seed in range(15):
        first, second = picker.choice(fighter_ids), picker.choice(fighter_ids)
        if first == second:
            continue
        result = service.simulate_battle(first, second, picker.choice(location_ids), seed=seed)

        for event in result.log:
            if isinstance(event, MoveActionEvent):
                assert 0 <= event.target_hp <= 100
                assert 0 <= event.actor_energy <= 100
                assert 0 <= event.damage <= 50
        for fighter in result.final_state.fighters:
            assert 0 <= fighter.hp <= fighter.max_hp
            assert 0 <= fighter.energy <= fighter.max_energy


def test_replay_reproduces_recorded_battle() -> None:
    service = _make_battle_service()
    original = service.simulate_battle("azula", "katara", "eastern-air-temple", seed=11)
    assert original.input_log is not None

    replayed = service.replay_battle(
        "azula", "katara", "eastern-air-temple", InputLog.from_dict(original.input_log)
    )

    assert [event.to_dict() for event in replayed.log] == [event.to_dict() for event in original.log]
    assert replayed.outcome == original.outcome
    assert replayed.input_log is None


def test_replay_with_truncated_log_diverges() -> None:
    service = _make_battle_service()
    original = service.simulate_battle("zuko", "mai", "neutral-arena", seed=5)
    log = InputLog.from_dict(original.input_log)
    log.entries.pop()

    with pytest.raises(ReplayDivergenceError):
        service.replay_battle("zuko", "mai", "neutral-arena", log)


def test_turn_cap_produces_stalemate() -> None:
    service = _make_battle_service()
    config = EngineConfig(max_turns=2)

    result = service.run_battle(make_fighter("alpha"), make_fighter("beta"), make_location(), config, RNG(1))

    assert result.outcome == "stalemate"
    assert result.is_draw
    assert result.winner_id is None
    assert result.metadata["stalemate"]
    assert result.turn_count == 2


def test_budget_produces_terminated_result() -> None:
    service = _make_battle_service()

    result = service.run_battle(
        make_fighter("alpha"),
        make_fighter("beta"),
        make_location(),
        EngineConfig(),
        RNG(1),
        budget=StepBudget(max_turns=1),
    )

    assert result.outcome == "terminated"
    assert not result.is_draw
    assert result.metadata["terminated"]
    assert result.turn_count == 1


def test_both_fighters_down_is_double_knockout() -> None:
    state = make_state()
    for fighter in state.fighters:
        fighter.hp = 0
        fighter.incapacitation_score = 100.0
        fighter.escalation_state = "Terminal Collapse"

    termination = check_battle_termination(state, EngineConfig())

    assert termination is not None
    assert termination.outcome == "double_knockout"
    assert termination.is_draw


def test_terminal_collapse_alone_downs_fighter() -> None:
    state = make_state()
    state.fighter1.incapacitation_score = 11.0
    state.fighter1.escalation_state = "Terminal Collapse"

    termination = check_battle_termination(state, EngineConfig())

    assert termination is not None
    assert (termination.winner_id, termination.loser_id) == ("beta", "alpha")


def test_invalid_inputs_raise_validation_error() -> None:
    service = _make_battle_service()

    with pytest.raises(ValidationError):
        service.simulate_battle("azula", "azula", "neutral-arena", seed=1)
    with pytest.raises(ValidationError):
        service.simulate_battle("azula", "zuko", "moon", seed=1)
    with pytest.raises(ValidationError):
        service.simulate_battle("azula", "nobody", "neutral-arena", seed=1)
    with pytest.raises(ValidationError):
        service.run_battle(make_fighter("alpha"), make_fighter("beta"), make_location(), EngineConfig(max_turns=0), RNG(1))


def test_fatal_turn_error_aborts_with_partial_log(monkeypatch) -> None:
    def _explode(self, state, turn):
        raise RuntimeError("boom")

    monkeypatch.setattr("duelsim.services.battle_service.TurnProcessor.process_turn", _explode)
    service = _make_battle_service()

    with pytest.raises(BattleAbortedError) as excinfo:
        service.run_battle(make_fighter("alpha"), make_fighter("beta"), make_location(), EngineConfig(), RNG(1))

    error = excinfo.value
    assert error.turn == 1
    assert isinstance(error.__cause__, RuntimeError)
    assert isinstance(error.partial_log[-1], ErrorEvent)
    assert error.to_dict()["cause"]["error"] == "RuntimeError"


def test_battles_do_not_share_fighter_state() -> None:
    service = _make_battle_service()
    template = get_fighters_repo().get("toph")
    original_aggression = template.personality.aggression

    first = service.simulate_battle("toph", "aang", "ba-sing-se", seed=3)
    second = service.simulate_battle("toph", "aang", "ba-sing-se", seed=4)

    assert first.final_state.fighter1 is not second.final_state.fighter1
    assert first.final_state.fighter1.personality is not template.personality
    assert template.personality.aggression == original_aggression


def test_fallback_decisions_are_rare_in_regular_battles() -> None:
    service = _make_battle_service()
    fighter_ids = get_fighters_repo().ids()
    actions = []
    for seed in range(20):
        first = fighter_ids[seed % len(fighter_ids)]
        second = fighter_ids[(seed + 3) % len(fighter_ids)]
        result = service.simulate_battle(first, second, "neutral-arena", seed=seed)
        actions.extend(event for event in result.log if isinstance(event, MoveActionEvent))

    fallbacks = sum(event.fallback for event in actions)
    assert actions
    assert fallbacks / len(actions) < 0.15
