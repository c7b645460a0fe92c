"""Utilities for creating deterministic battle identifiers."""
from __future__ import annotations

from duelsim.core.rng import RNG


def make_battle_id(fighter1_id: str, fighter2_id: str, rng: RNG) -> str:
    """Generate a deterministic battle identifier using the provided RNG."""
    suffix = rng.randint(100000, 999999)
    return f"battle_{fighter1_id}_vs_{fighter2_id}_{suffix}"
