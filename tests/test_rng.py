import pytest

from duelsim.core.rng import RNG, InputLog, RecordingRNG, ReplayDivergenceError, ReplayRNG


def test_rng_determinism_same_seed() -> None:
    rng_a = RNG(12345)
    rng_b = RNG(12345)

    ints_a = [rng_a.randint(1, 100) for _ in range(5)]
    ints_b = [rng_b.randint(1, 100) for _ in range(5)]
    floats_a = [rng_a.random() for _ in range(5)]
    floats_b = [rng_b.random() for _ in range(5)]
    choices_a = [rng_a.choice(["a", "b", "c"]) for _ in range(5)]
    choices_b = [rng_b.choice(["a", "b", "c"]) for _ in range(5)]

    assert ints_a == ints_b
    assert floats_a == floats_b
    assert choices_a == choices_b


def test_rng_different_seed() -> None:
    rng_a = RNG(11111)
    rng_b = RNG(22222)

    draws_a = [rng_a.randint(1, 100) for _ in range(5)]
    draws_b = [rng_b.randint(1, 100) for _ in range(5)]

    assert draws_a != draws_b


def test_choice_rejects_empty_sequence() -> None:
    with pytest.raises(ValueError):
        RNG(1).choice([])


def test_shuffle_keeps_elements() -> None:
    items = list(range(10))
    RNG(3).shuffle(items)
    assert sorted(items) == list(range(10))


def test_recording_rng_logs_draws_and_choices_with_turn() -> None:
    rng = RecordingRNG(7)
    rng.current_turn = 4
    rng.uniform(0.0, 1.0)
    rng.note_choice("ai_choice", "alpha", "strike")

    kinds = [(entry.turn, entry.kind, entry.actor_id) for entry in rng.log.entries]
    assert kinds == [(4, "uniform", None), (4, "ai_choice", "alpha")]
    assert rng.log.entries[1].value == "strike"


def test_replay_substitutes_recorded_values() -> None:
    recorder = RecordingRNG(99)
    recorded = [recorder.randint(1, 6), recorder.random(), recorder.choice(["x", "y", "z"])]

    replay = ReplayRNG(InputLog.from_dict(recorder.log.to_dict()))
    replayed = [replay.randint(1, 6), replay.random(), replay.choice(["x", "y", "z"])]

    assert replayed == recorded
    assert replay.exhausted


def test_replay_raises_on_kind_mismatch() -> None:
    recorder = RecordingRNG(1)
    recorder.random()

    replay = ReplayRNG(recorder.log)
    with pytest.raises(ReplayDivergenceError):
        replay.randint(1, 10)


def test_replay_raises_on_turn_mismatch() -> None:
    recorder = RecordingRNG(1)
    recorder.current_turn = 2
    recorder.random()

    replay = ReplayRNG(recorder.log)
    replay.current_turn = 3
    with pytest.raises(ReplayDivergenceError) as excinfo:
        replay.random()
    assert excinfo.value.turn == 3


def test_replay_raises_when_choice_belongs_to_other_actor() -> None:
    recorder = RecordingRNG(1)
    recorder.note_choice("ai_choice", "alpha", "strike")

    replay = ReplayRNG(recorder.log)
    with pytest.raises(ReplayDivergenceError):
        replay.note_choice("ai_choice", "beta", "strike")


def test_replay_raises_when_log_is_exhausted() -> None:
    replay = ReplayRNG(InputLog(seed=0))
    with pytest.raises(ReplayDivergenceError):
        replay.random()


def test_input_log_from_dict_rejects_bad_payload() -> None:
    with pytest.raises(ValueError):
        InputLog.from_dict({"seed": "abc", "entries": []})
