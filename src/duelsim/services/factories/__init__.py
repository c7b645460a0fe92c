"""Factory exports."""

from .fighter_factory import create_fighter, fighter_from_def
from .id_factory import make_battle_id

__all__ = ["create_fighter", "fighter_from_def", "make_battle_id"]
