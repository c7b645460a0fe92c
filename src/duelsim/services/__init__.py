"""Service layer exports."""

from .errors import (
    BattleAbortedError,
    BattleEngineError,
    FactoryError,
    InvariantViolation,
    ReplayDivergenceError,
    ValidationError,
)
from .battle_service import BattleService, StepBudget, check_battle_termination
from .batch_service import BatchService, Matchup, round_robin
from .win_probability import WinProbability, WinProbabilityService, calculate_win_probability

__all__ = [
    "BattleAbortedError",
    "BattleEngineError",
    "FactoryError",
    "InvariantViolation",
    "ReplayDivergenceError",
    "ValidationError",
    "BattleService",
    "StepBudget",
    "check_battle_termination",
    "BatchService",
    "Matchup",
    "round_robin",
    "WinProbability",
    "WinProbabilityService",
    "calculate_win_probability",
]
