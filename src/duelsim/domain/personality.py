"""Personality-driven move scoring, strategic intents and drift."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from duelsim.core.types import Phase
from duelsim.domain.defs import PERSONALITY_TRAITS, MoveDef, PersonalityProfile
from duelsim.domain.entities import Fighter
from duelsim.domain.phases import phase_ai_modifiers

TRAIT_CAP = 1.5
LOW_COST_ENERGY = 20
MIN_SCORE = 0.05

INTENT_MULTIPLIERS: Dict[str, Dict[str, float]] = {
    "PressAdvantage": {"Offense": 2.0, "Finisher": 1.5, "Defense": 0.5},
    "CapitalizeOnOpening": {"Offense": 1.8, "Finisher": 2.5, "Utility": 1.5, "Defense": 0.2},
    "DesperateGambit": {"Finisher": 2.0, "highRisk": 2.0, "Defense": 0.3},
    "CautiousDefense": {"Defense": 2.0, "evasive": 1.5, "Finisher": 0.2},
    "ConserveEnergy": {"low_cost": 3.0},
    "UnfocusedRage": {"Offense": 2.5, "Defense": 0.1, "Utility": 0.1},
    "PanickedDefense": {"Defense": 3.0, "evasive": 2.0, "Offense": 0.3, "Finisher": 0.05},
}

_MENTAL_ADJUSTMENTS: Dict[str, Dict[str, tuple[str, float]]] = {
    "stressed": {"patience": ("mul", 0.7), "risk_tolerance": ("add", 0.15)},
    "shaken": {
        "patience": ("mul", 0.4),
        "opportunism": ("mul", 0.6),
        "aggression": ("add", 0.2),
        "risk_tolerance": ("add", 0.3),
    },
    "broken": {
        "patience": ("set", 0.05),
        "opportunism": ("set", 0.1),
        "aggression": ("add", 0.4),
        "risk_tolerance": ("add", 0.5),
    },
}


@dataclass(slots=True)
class MoveScore:
    score: float
    reasons: List[str] = field(default_factory=list)


def energy_cost(move: MoveDef) -> int:
    """Energy needed to perform ``move``."""
    return max(4, min(100, round(move.power * 0.22) + 4))


def get_dynamic_personality(
    fighter: Fighter,
    phase: Phase,
    opponent_id: str | None = None,
    override: Mapping[str, float] | None = None,
) -> PersonalityProfile:
    """Return the fighter's traits adjusted for phase, mental state and rivalry."""
    profile = fighter.personality.copy()
    for trait, factor in phase_ai_modifiers(phase).items():
        setattr(profile, trait, getattr(profile, trait) * factor)

    for trait, (op, amount) in _MENTAL_ADJUSTMENTS.get(fighter.mental_state.level, {}).items():
        current = getattr(profile, trait)
        if op == "mul":
            setattr(profile, trait, current * amount)
        elif op == "add":
            setattr(profile, trait, current + amount)
        else:
            setattr(profile, trait, amount)

    relationship = fighter.relationships.get(opponent_id) if opponent_id else None
    if relationship is not None:
        for trait, delta in relationship.trait_modifiers.items():
            if trait in PERSONALITY_TRAITS:
                setattr(profile, trait, getattr(profile, trait) + delta)

    if override:
        for trait, value in override.items():
            if trait in PERSONALITY_TRAITS:
                setattr(profile, trait, float(value))

    for trait in PERSONALITY_TRAITS:
        setattr(profile, trait, max(0.0, min(TRAIT_CAP, getattr(profile, trait))))
    return profile


def determine_strategic_intent(
    fighter: Fighter,
    opponent: Fighter,
    turn: int,
    profile: PersonalityProfile,
) -> str:
    health_gap = fighter.hp - opponent.hp
    if profile.opportunism > 0.8 and opponent.has_opening:
        return "CapitalizeOnOpening"
    if profile.risk_tolerance > 0.8 and fighter.hp < 40:
        return "DesperateGambit"
    if profile.patience > 0.8 and turn <= 2:
        return "CautiousDefense"
    if profile.aggression > 0.9 and health_gap > 20:
        return "PressAdvantage"
    if fighter.mental_state.level == "broken":
        return "UnfocusedRage"
    if fighter.mental_state.level == "shaken":
        return "PanickedDefense"
    if fighter.energy < 30:
        return "ConserveEnergy"
    if turn <= 2:
        return "OpeningMoves"
    return "StandardExchange"


def base_personality_score(
    move: MoveDef,
    fighter: Fighter,
    opponent: Fighter,
    profile: PersonalityProfile,
    intent: str,
    phase: Phase,
) -> MoveScore:
    """Score ``move`` from personality alone, before escalation weighting."""
    result = MoveScore(score=1.0)
    type_factor = {
        "Offense": 1 + profile.aggression * 1.5,
        "Defense": 1 + profile.defensive_bias * 1.5 + profile.patience,
        "Utility": 1 + profile.creativity * 0.8 + profile.opportunism * 0.5,
        "Finisher": 1 + profile.risk_tolerance * 2.0,
    }[move.move_type]
    _scale(result, type_factor, f"Type:{move.move_type}")

    if move.name in profile.signature_move_bias:
        _scale(result, profile.signature_move_bias[move.name], "SigMove")
    if fighter.last_move_id == move.id:
        _scale(result, 1.0 - profile.anti_repeater, "AntiRepeat")
    if move.has_tag("counter") and profile.opportunism > 0.7:
        _scale(result, 1.0 + profile.opportunism, "CounterTag")
    if move.has_tag("evasive") and profile.patience > 0.6:
        _scale(result, 1.0 + profile.patience, "EvasiveTag")
    if move.has_tag("highRisk") and profile.risk_tolerance > 0.5:
        _scale(result, 1.0 + profile.risk_tolerance * 1.2, "HighRiskTag")

    multipliers = INTENT_MULTIPLIERS.get(intent, {})
    if move.move_type in multipliers:
        _scale(result, multipliers[move.move_type], f"Intent:{intent}")
    if "low_cost" in multipliers and energy_cost(move) < LOW_COST_ENERGY:
        _scale(result, multipliers["low_cost"], "IntentTag:low_cost")
    for tag in move.tags:
        if tag in multipliers:
            _scale(result, multipliers[tag], f"IntentTag:{tag}")

    if move.move_type == "Finisher":
        if phase == "Late" or opponent.hp <= 30:
            _scale(result, 2.5, "FinisherWindow")
        else:
            _scale(result, 0.1, "FinisherTooEarly")
    if move.has_tag("requires_opening") and not opponent.has_opening:
        _scale(result, 0.01, "NoOpening")
    if fighter.energy < energy_cost(move):
        result.score = 0.0
        result.reasons.append("EnergyTooHigh")

    if result.score < MIN_SCORE:
        result.score = 0.0
    return result


def apply_personality_drift(fighter: Fighter) -> List[str]:
    """Nudge traits after streaks of poor or strong results. Returns drifted trait names."""
    recent = fighter.effectiveness_history[-2:]
    if len(recent) < 2:
        return []
    profile = fighter.personality
    if all(label == "Weak" for label in recent):
        profile.creativity = min(1.0, profile.creativity + 0.15)
        profile.risk_tolerance = min(1.0, profile.risk_tolerance + 0.1)
        return ["creativity", "risk_tolerance"]
    if all(label in ("Strong", "Critical") for label in recent):
        profile.aggression = min(1.0, profile.aggression + 0.1)
        return ["aggression"]
    return []


def _scale(result: MoveScore, factor: float, reason: str) -> None:
    result.score *= factor
    result.reasons.append(reason)
