"""Battle phase helpers shared by the AI context and the phase manager."""
from __future__ import annotations

from typing import Dict

from duelsim.core.config import EngineConfig
from duelsim.core.types import PHASE_ORDER, Phase

PHASE_AI_MODIFIERS: Dict[str, Dict[str, float]] = {
    "Opening": {"aggression": 0.8, "patience": 1.2, "risk_tolerance": 0.7, "defensive_bias": 1.1, "opportunism": 0.9},
    "Early": {"aggression": 0.8, "patience": 1.2, "risk_tolerance": 0.7, "defensive_bias": 1.1, "opportunism": 0.9},
    "Mid": {
        "aggression": 1.1,
        "patience": 0.9,
        "risk_tolerance": 1.1,
        "defensive_bias": 0.9,
        "creativity": 1.1,
        "opportunism": 1.2,
    },
    "Late": {
        "aggression": 1.3,
        "patience": 0.6,
        "risk_tolerance": 1.4,
        "defensive_bias": 0.7,
        "creativity": 0.9,
        "opportunism": 1.3,
    },
}


def phase_rank(phase: Phase) -> int:
    return PHASE_ORDER.index(phase)


def phase_floor_for_turn(turn: int, config: EngineConfig) -> Phase:
    """Return the earliest phase the battle must have reached by ``turn``."""
    if turn >= config.late_phase_turn:
        return "Late"
    if turn >= config.mid_phase_turn:
        return "Mid"
    if turn >= config.opening_turn_limit:
        return "Early"
    return "Opening"


def estimate_phase(turn: int, hp_ratio_a: float, hp_ratio_b: float, config: EngineConfig) -> Phase:
    """Estimate the phase from the turn number and how hurt the fighters are."""
    phase = phase_floor_for_turn(turn, config)
    lowest = min(hp_ratio_a, hp_ratio_b)
    if lowest < 0.3:
        hp_phase: Phase = "Late"
    elif lowest < 0.6:
        hp_phase = "Mid"
    else:
        hp_phase = phase
    return hp_phase if phase_rank(hp_phase) > phase_rank(phase) else phase


def phase_ai_modifiers(phase: Phase) -> Dict[str, float]:
    return PHASE_AI_MODIFIERS.get(phase, {})
