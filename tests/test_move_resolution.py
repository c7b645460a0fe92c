from duelsim.core.rng import RNG
from duelsim.domain.battle_models import EnvironmentState
from duelsim.domain.defs import SetupEffectDef
from duelsim.domain.entities import TacticalState
from duelsim.domain.personality import energy_cost
from duelsim.services.move_resolution import classify_effectiveness, resolve_move
from tests.helpers.builders import make_fighter, make_move


class _FixedRNG(RNG):
    """RNG whose uniform draws always return the same value."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self._value = value

    def uniform(self, a: float, b: float) -> float:
        return self._value


def test_classify_effectiveness_thresholds() -> None:
    assert classify_effectiveness(20, 40) == "Weak"
    assert classify_effectiveness(40, 40) == "Normal"
    assert classify_effectiveness(48, 40) == "Strong"
    assert classify_effectiveness(70, 40) == "Critical"
    assert classify_effectiveness(10, 0) == "Normal"


def test_energy_cost_is_clamped() -> None:
    assert energy_cost(make_move("tap", power=0)) == 4
    assert energy_cost(make_move("strike", power=50)) == 15
    assert energy_cost(make_move("nova", power=500)) == 100


def test_offense_deals_damage_and_pays_energy() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    move = make_move("strike", power=60)

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.0), EnvironmentState("arena"))

    assert outcome.effectiveness == "Normal"
    assert outcome.damage == 20
    assert defender.hp == 80
    assert attacker.energy == 100 - energy_cost(move)


def test_guard_halves_damage_and_is_consumed() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    defender.guarding = True

    outcome = resolve_move(attacker, defender, make_move("strike", power=60), _FixedRNG(1.0), EnvironmentState("arena"))

    assert outcome.damage == 10
    assert not defender.guarding


def test_defense_move_sets_guard() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")

    outcome = resolve_move(attacker, defender, make_move("guard", move_type="Defense", power=10), _FixedRNG(1.0), EnvironmentState("arena"))

    assert outcome.damage == 0
    assert attacker.guarding
    assert defender.hp == 100


def test_damage_never_exceeds_cap_or_drops_hp_below_zero() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    defender.hp = 10
    defender.escalation_state = "Terminal Collapse"

    outcome = resolve_move(attacker, defender, make_move("nova", power=400), _FixedRNG(1.3), EnvironmentState("arena"))

    assert outcome.damage <= 50
    assert defender.hp == 0


def test_setup_move_applies_tactical_state_unless_weak() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    move = make_move("sweep", move_type="Utility", power=20)
    move.setup = SetupEffectDef(name="Off-Balance", duration=2, intensity=1.3)

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.0), EnvironmentState("arena"))
    assert outcome.applied_setup == "Off-Balance"
    assert defender.tactical_state is not None
    assert defender.tactical_state.source_id == "alpha"

    other = make_fighter("gamma")
    weak = resolve_move(attacker, other, move, _FixedRNG(0.65), EnvironmentState("arena"))
    assert weak.effectiveness == "Weak"
    assert other.tactical_state is None


def test_requires_opening_exploits_and_clears_tactical_state() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    defender.tactical_state = TacticalState(name="Pinned", duration=2, intensity=1.5, source_id="alpha")
    move = make_move("punish", power=30, tags=["requires_opening"])

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.0), EnvironmentState("arena"))

    assert outcome.opening_exploited
    assert outcome.effectiveness == "Strong"
    assert outcome.damage == 15 + 5
    assert defender.tactical_state is None


def test_requires_opening_without_opening_is_weak() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    move = make_move("punish", power=30, tags=["requires_opening"])

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.0), EnvironmentState("arena"))

    assert not outcome.opening_exploited
    assert outcome.effectiveness == "Weak"


def test_critical_disable_blocks_last_move_and_stuns() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    defender.last_move_id = "strike"
    move = make_move("pressure_point", move_type="Utility", power=20, tags=["debuff_disable"])

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.3), EnvironmentState("arena"))
    assert outcome.effectiveness == "Strong"
    assert outcome.disabled_move_id == "strike"
    assert not outcome.stunned

    attacker.momentum = 10
    outcome = resolve_move(attacker, make_fighter("gamma"), move, _FixedRNG(1.3), EnvironmentState("arena"))
    assert outcome.effectiveness == "Critical"
    assert outcome.stunned


def test_finisher_is_used_once() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")

    resolve_move(attacker, defender, attacker.get_move("final_blow"), _FixedRNG(1.0), EnvironmentState("arena"))

    assert "final_blow" not in {move.id for move in attacker.available_moves()}


def test_collateral_raises_environment_damage() -> None:
    attacker, defender = make_fighter("alpha"), make_fighter("beta")
    environment = EnvironmentState("arena")
    move = make_move("inferno", power=80, collateral_impact="high")

    outcome = resolve_move(attacker, defender, move, _FixedRNG(1.0), environment, fragility=1.0)

    assert outcome.impact_key == "fire:high"
    assert outcome.impact_level > 0
    assert environment.damage_level == outcome.impact_level
    assert environment.impacts_this_phase == ["fire:high"]
