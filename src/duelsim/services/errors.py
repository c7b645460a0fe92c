"""Service-layer exceptions.

Every battle error carries the turn it happened on and can be serialized
with ``to_dict`` so callers receive a structured cause.
"""
from __future__ import annotations

from typing import Any, Dict

from duelsim.core.rng import ReplayDivergenceError


class BattleEngineError(Exception):
    """Base exception for battle engine failures."""

    def __init__(self, message: str, *, turn: int | None = None) -> None:
        super().__init__(message)
        self.turn = turn

    def to_dict(self) -> Dict[str, Any]:
        return {"error": type(self).__name__, "message": str(self), "turn": self.turn}


class ValidationError(BattleEngineError):
    """Raised when fighters, locations or config are malformed before a battle starts."""


class InvalidStateError(BattleEngineError):
    """Raised when a turn cannot proceed from the current battle state."""


class NoAvailableMovesError(InvalidStateError):
    """Raised when the acting fighter has no usable move."""

    def __init__(self, fighter_id: str, *, turn: int | None = None) -> None:
        super().__init__(f"Fighter '{fighter_id}' has no available moves.", turn=turn)
        self.fighter_id = fighter_id

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["fighter_id"] = self.fighter_id
        return payload


class DecisionValidationError(BattleEngineError):
    """Raised when the AI produced a decision that fails validation."""


class InvariantViolation(BattleEngineError):
    """Raised for critical invariant violations."""

    def __init__(self, code: str, message: str, *, turn: int | None = None, fighter_id: str | None = None) -> None:
        super().__init__(message, turn=turn)
        self.code = code
        self.fighter_id = fighter_id

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({"code": self.code, "fighter_id": self.fighter_id})
        return payload


class BattleAbortedError(BattleEngineError):
    """Raised when a battle stops because of a fatal error."""

    def __init__(self, turn: int, cause: Exception, partial_log: list | None = None) -> None:
        super().__init__(f"Battle aborted on turn {turn}: {cause}", turn=turn)
        self.cause = cause
        self.partial_log = list(partial_log or [])

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload["cause"] = describe_error(self.cause)
        return payload


class FactoryError(ValidationError):
    """Raised when a runtime fighter cannot be created."""


def describe_error(exc: BaseException) -> Dict[str, Any]:
    """Return a serializable description of any exception."""
    to_dict = getattr(exc, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return {"error": type(exc).__name__, "message": str(exc), "turn": None}


__all__ = [
    "BattleEngineError",
    "ValidationError",
    "InvalidStateError",
    "NoAvailableMovesError",
    "DecisionValidationError",
    "InvariantViolation",
    "BattleAbortedError",
    "FactoryError",
    "ReplayDivergenceError",
    "describe_error",
]
