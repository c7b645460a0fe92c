"""Incapacitation scoring and the escalation state machine."""
from __future__ import annotations

from typing import Dict, List, Tuple

from duelsim.core.types import ESCALATION_ORDER, EscalationState
from duelsim.domain.entities import Fighter

DEFAULT_ESCALATION_THRESHOLDS: Tuple[float, float, float] = (4.0, 8.0, 11.0)
DEFAULT_KNOCKOUT_SCORE = 100.0

INCAPACITATION_WEIGHTS: Dict[str, float] = {
    "stun_per_turn": 2.0,
    "Pinned": 2.0,
    "Outmaneuvered": 1.0,
    "Exposed": 2.0,
    "Off-Balance": 1.0,
    "stressed": 0.5,
    "shaken": 2.0,
    "broken": 3.0,
    "hp_below_50": 1.0,
    "hp_below_25": 2.0,
    "momentum_deficit_3": 1.0,
    "momentum_deficit_5": 2.0,
}

ESCALATION_DAMAGE_MODIFIERS: Dict[str, float] = {
    "Normal": 1.0,
    "Pressured": 1.1,
    "Severely Incapacitated": 1.3,
    "Terminal Collapse": 1.6,
}


def determine_escalation_state(
    score: float,
    thresholds: Tuple[float, float, float] = DEFAULT_ESCALATION_THRESHOLDS,
) -> EscalationState:
    """Map an incapacitation score to its escalation state, highest threshold first."""
    pressured, severe, terminal = thresholds
    if score >= terminal:
        return "Terminal Collapse"
    if score >= severe:
        return "Severely Incapacitated"
    if score >= pressured:
        return "Pressured"
    return "Normal"


def escalation_rank(state: EscalationState) -> int:
    return ESCALATION_ORDER.index(state)


def escalation_path(old: EscalationState, new: EscalationState) -> List[EscalationState]:
    """Return every state entered when moving from ``old`` up to ``new``."""
    start, end = escalation_rank(old), escalation_rank(new)
    if end <= start:
        return []
    return list(ESCALATION_ORDER[start + 1 : end + 1])


def calculate_incapacitation_pressure(
    fighter: Fighter,
    opponent: Fighter,
    *,
    knockout_score: float = DEFAULT_KNOCKOUT_SCORE,
) -> float:
    """Score how close ``fighter`` is to defeat given the current situation."""
    if fighter.hp <= 0:
        return knockout_score
    weights = INCAPACITATION_WEIGHTS
    score = 0.0
    if fighter.stun_duration > 0:
        score += weights["stun_per_turn"] * fighter.stun_duration
    if fighter.tactical_state is not None:
        score += weights.get(fighter.tactical_state.name, 0.0)
    score += weights.get(fighter.mental_state.level, 0.0)
    if fighter.hp < fighter.max_hp * 0.25:
        score += weights["hp_below_25"]
    elif fighter.hp < fighter.max_hp * 0.5:
        score += weights["hp_below_50"]
    deficit = opponent.momentum - fighter.momentum
    if deficit >= 5:
        score += weights["momentum_deficit_5"]
    elif deficit >= 3:
        score += weights["momentum_deficit_3"]
    return max(0.0, score)


def apply_incapacitation(
    fighter: Fighter,
    score: float,
    thresholds: Tuple[float, float, float] = DEFAULT_ESCALATION_THRESHOLDS,
) -> List[EscalationState]:
    """Raise the fighter's score to ``score`` and return the states passed through.

    The score never decreases; the escalation state is always re-derived from it.
    """
    old_state = fighter.escalation_state
    fighter.incapacitation_score = max(fighter.incapacitation_score, score)
    fighter.escalation_state = determine_escalation_state(fighter.incapacitation_score, thresholds)
    return escalation_path(old_state, fighter.escalation_state)


def escalation_damage_modifier(defender_state: EscalationState) -> float:
    return ESCALATION_DAMAGE_MODIFIERS.get(defender_state, 1.0)
