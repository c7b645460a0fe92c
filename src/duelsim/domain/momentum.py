"""Momentum bookkeeping."""
from __future__ import annotations

from typing import Dict, Tuple

from duelsim.domain.entities import Fighter

MOMENTUM_MIN = -100
MOMENTUM_MAX = 100

# attacker delta, defender delta
MOMENTUM_SWINGS: Dict[str, Tuple[int, int]] = {
    "Critical": (3, -3),
    "Strong": (2, -2),
    "Normal": (1, -1),
    "Weak": (-1, 1),
}


def momentum_swing(effectiveness: str) -> Tuple[int, int]:
    return MOMENTUM_SWINGS.get(effectiveness, (0, 0))


def apply_momentum_change(fighter: Fighter, delta: int) -> int:
    """Shift momentum within bounds and return the change actually applied."""
    before = fighter.momentum
    fighter.momentum = max(MOMENTUM_MIN, min(MOMENTUM_MAX, fighter.momentum + delta))
    return fighter.momentum - before
