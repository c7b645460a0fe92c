"""Runtime entity exports."""

from .fighter import Fighter, MentalState, TacticalState

__all__ = ["Fighter", "MentalState", "TacticalState"]
