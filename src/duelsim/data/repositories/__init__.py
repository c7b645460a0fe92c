"""Repository exports."""

from .fighters_repo import FightersRepository
from .instant_rules_repo import InstantRulesRepository
from .locations_repo import LocationsRepository

__all__ = [
    "FightersRepository",
    "InstantRulesRepository",
    "LocationsRepository",
]
