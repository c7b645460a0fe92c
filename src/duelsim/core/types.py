"""Shared type aliases for the core and domain layers."""
from typing import Literal, Tuple

EscalationState = Literal["Normal", "Pressured", "Severely Incapacitated", "Terminal Collapse"]
Phase = Literal["Opening", "Early", "Mid", "Late"]
MoveType = Literal["Offense", "Defense", "Utility", "Finisher"]
MentalLevel = Literal["stable", "stressed", "shaken", "broken"]
Effectiveness = Literal["Weak", "Normal", "Strong", "Critical"]
OutcomeKind = Literal["decisive", "double_knockout", "stalemate", "terminated"]
InvariantSeverity = Literal["critical", "error", "warning"]

ESCALATION_ORDER: Tuple[EscalationState, ...] = (
    "Normal",
    "Pressured",
    "Severely Incapacitated",
    "Terminal Collapse",
)
PHASE_ORDER: Tuple[Phase, ...] = ("Opening", "Early", "Mid", "Late")
MOVE_TYPES: Tuple[MoveType, ...] = ("Offense", "Defense", "Utility", "Finisher")
MENTAL_LEVELS: Tuple[MentalLevel, ...] = ("stable", "stressed", "shaken", "broken")

__all__ = [
    "EscalationState",
    "Phase",
    "MoveType",
    "MentalLevel",
    "Effectiveness",
    "OutcomeKind",
    "InvariantSeverity",
    "ESCALATION_ORDER",
    "PHASE_ORDER",
    "MOVE_TYPES",
    "MENTAL_LEVELS",
]
