"""Resolves a chosen move into damage, tactical effects and collateral."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from duelsim.core.rng import RNG
from duelsim.core.types import Effectiveness
from duelsim.domain.battle_models import EnvironmentState
from duelsim.domain.defs import MoveDef
from duelsim.domain.entities import Fighter, TacticalState
from duelsim.domain.escalation import escalation_damage_modifier
from duelsim.domain.personality import energy_cost

MAX_DAMAGE = 50
POWER_ROLL = (0.65, 1.3)
TACTICAL_OPENING_BONUS = 5
STUN_OPENING_BONUS = 3
STUN_OPENING_MULTIPLIER = 1.3
NO_OPENING_MULTIPLIER = 0.5

COLLATERAL_FACTORS: Dict[str, float] = {
    "none": 0.0,
    "low": 0.05,
    "medium": 0.15,
    "high": 0.3,
    "catastrophic": 0.5,
}
MENTAL_POWER_PENALTY: Dict[str, float] = {"shaken": 0.9, "broken": 0.8}


@dataclass(slots=True)
class MoveOutcome:
    move_id: str
    effectiveness: Effectiveness
    total_power: float
    damage: int
    energy_cost: int
    opening_exploited: bool = False
    applied_setup: str | None = None
    disabled_move_id: str | None = None
    stunned: bool = False
    impact_key: str | None = None
    impact_level: float = 0.0


def classify_effectiveness(total_power: float, base_power: float) -> Effectiveness:
    """Label a result by how far the rolled power strayed from the move's base."""
    ratio = total_power / base_power if base_power > 0 else 1.0
    if ratio < 0.7:
        return "Weak"
    if ratio > 1.5:
        return "Critical"
    if ratio > 1.1:
        return "Strong"
    return "Normal"


def resolve_move(
    attacker: Fighter,
    defender: Fighter,
    move: MoveDef,
    rng: RNG,
    environment: EnvironmentState,
    *,
    fragility: float = 0.5,
) -> MoveOutcome:
    """Apply ``move`` from ``attacker`` to ``defender`` in place and describe the result."""
    cost = energy_cost(move)
    attacker.energy = max(0, attacker.energy - cost)

    multiplier = rng.uniform(*POWER_ROLL)
    multiplier *= 1.0 + max(-0.2, min(0.2, attacker.momentum * 0.02))
    multiplier *= MENTAL_POWER_PENALTY.get(attacker.mental_state.level, 1.0)

    bonus_damage = 0
    opening = False
    tactical = defender.tactical_state
    if move.has_tag("requires_opening"):
        if tactical is not None:
            multiplier *= tactical.intensity
            bonus_damage = TACTICAL_OPENING_BONUS
            opening = True
        elif defender.stun_duration > 0:
            multiplier *= STUN_OPENING_MULTIPLIER
            bonus_damage = STUN_OPENING_BONUS
            opening = True
        else:
            multiplier *= NO_OPENING_MULTIPLIER
    elif tactical is not None and tactical.source_id == attacker.id and move.move_type == "Offense":
        multiplier *= tactical.intensity
        opening = True

    total = move.power * multiplier
    effectiveness = classify_effectiveness(total, move.power)
    outcome = MoveOutcome(
        move_id=move.id,
        effectiveness=effectiveness,
        total_power=round(total, 2),
        damage=0,
        energy_cost=cost,
        opening_exploited=opening,
    )

    if move.move_type in ("Offense", "Finisher"):
        damage = max(0, min(MAX_DAMAGE, round(total / 3))) + bonus_damage
        damage = round(damage * escalation_damage_modifier(defender.escalation_state))
        if defender.guarding:
            damage //= 2
            defender.guarding = False
        outcome.damage = max(0, min(MAX_DAMAGE, damage))
        defender.hp = max(0, defender.hp - outcome.damage)
    elif move.move_type == "Defense":
        attacker.guarding = True
        attacker.tactical_state = None

    if opening:
        defender.tactical_state = None
    if move.setup is not None and effectiveness != "Weak":
        defender.tactical_state = TacticalState(
            name=move.setup.name,
            duration=move.setup.duration,
            intensity=move.setup.intensity,
            source_id=attacker.id,
        )
        outcome.applied_setup = move.setup.name

    if move.has_tag("debuff_disable") and effectiveness in ("Strong", "Critical"):
        target_id = defender.last_move_id
        if target_id is not None and len(defender.available_moves()) > 1:
            defender.disabled_move_ids.add(target_id)
            outcome.disabled_move_id = target_id
        if effectiveness == "Critical":
            defender.stun_duration = max(defender.stun_duration, 1)
            outcome.stunned = True

    if move.move_type == "Finisher":
        attacker.exhausted_move_ids.add(move.id)

    _apply_collateral(outcome, environment, move, total, fragility)
    return outcome


def _apply_collateral(
    outcome: MoveOutcome,
    environment: EnvironmentState,
    move: MoveDef,
    total: float,
    fragility: float,
) -> None:
    factor = COLLATERAL_FACTORS.get(move.collateral_impact, 0.0)
    if factor <= 0:
        return
    level = round(factor * total * (0.5 + fragility) / 10, 2)
    outcome.impact_key = f"{move.element}:{move.collateral_impact}"
    outcome.impact_level = level
    environment.damage_level = min(100.0, environment.damage_level + level)
    environment.specific_impacts.add(outcome.impact_key)
    environment.impact_count += 1
    environment.impacts_this_phase.append(outcome.impact_key)
    environment.highest_impact_level_this_phase = max(environment.highest_impact_level_this_phase, level)
