"""Factory for creating battle-ready fighters from templates."""
from __future__ import annotations

from duelsim.data.repositories import FightersRepository
from duelsim.domain.defs import FighterDef
from duelsim.domain.entities import Fighter
from duelsim.services.errors import FactoryError


def create_fighter(fighter_id: str, fighters_repo: FightersRepository) -> Fighter:
    """Instantiate a fighter using the provided repository."""
    try:
        fighter_def = fighters_repo.get(fighter_id)
    except KeyError as exc:
        raise FactoryError(f"Fighter '{fighter_id}' not found.") from exc
    return fighter_from_def(fighter_def)


def fighter_from_def(fighter_def: FighterDef) -> Fighter:
    """Build a fresh runtime fighter. Mutable parts are copied, never shared."""
    if not fighter_def.moves:
        raise FactoryError(f"Fighter '{fighter_def.id}' has no moves.")
    return Fighter(
        id=fighter_def.id,
        name=fighter_def.name,
        element=fighter_def.element,
        fighter_type=fighter_def.fighter_type,
        power_tier=fighter_def.power_tier,
        hp=fighter_def.max_hp,
        max_hp=fighter_def.max_hp,
        energy=fighter_def.max_energy,
        max_energy=fighter_def.max_energy,
        personality=fighter_def.personality.copy(),
        moves=fighter_def.moves,
        escalation_behavior=fighter_def.escalation_behavior,
        relationships=fighter_def.relationships,
    )
