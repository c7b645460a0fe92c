"""Mental state (stress) tracking."""
from __future__ import annotations

from typing import Dict

from duelsim.core.types import MentalLevel
from duelsim.domain.entities import Fighter

STRESS_MAX = 100.0
STRESS_THRESHOLDS = (("broken", 90.0), ("shaken", 60.0), ("stressed", 25.0))
EFFECTIVENESS_STRESS: Dict[str, float] = {"Critical": 20.0, "Strong": 15.0}


def mental_level_for_stress(stress: float) -> MentalLevel:
    for level, threshold in STRESS_THRESHOLDS:
        if stress >= threshold:
            return level  # type: ignore[return-value]
    return "stable"


def apply_stress(fighter: Fighter, effectiveness: str, damage: int, opponent_id: str | None = None) -> MentalLevel | None:
    """Accumulate stress from a hit taken and return the new level if it changed."""
    gain = EFFECTIVENESS_STRESS.get(effectiveness, 0.0) + damage / 2
    if fighter.momentum < 0:
        gain += -fighter.momentum * 2
    relationship = fighter.relationships.get(opponent_id) if opponent_id else None
    if relationship is not None:
        gain *= relationship.stress_modifier
    previous = fighter.mental_state.level
    fighter.mental_state.stress = min(STRESS_MAX, fighter.mental_state.stress + max(0.0, gain))
    fighter.mental_state.level = mental_level_for_stress(fighter.mental_state.stress)
    if fighter.mental_state.level != previous:
        return fighter.mental_state.level
    return None
