"""Deterministic RNG wrapper built on top of random.Random.

Every draw goes through ``RNG._draw`` so a battle can be captured into an
``InputLog`` with ``RecordingRNG`` and played back draw-for-draw with
``ReplayRNG``. AI choices are noted the same way through ``note_choice``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from random import Random
from typing import Callable, List, MutableSequence, Sequence, TypeVar

T_co = TypeVar("T_co")
V = TypeVar("V")


class ReplayDivergenceError(Exception):
    """Raised when a replayed battle asks for a different input than was recorded."""

    def __init__(self, message: str, *, turn: int | None = None) -> None:
        super().__init__(message)
        self.turn = turn

    def to_dict(self) -> dict[str, object]:
        return {"error": type(self).__name__, "message": str(self), "turn": self.turn}


@dataclass(slots=True)
class InputLogEntry:
    """A single recorded random draw or AI choice."""

    turn: int
    kind: str
    value: object
    actor_id: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {"turn": self.turn, "kind": self.kind, "value": self.value, "actor_id": self.actor_id}


@dataclass(slots=True)
class InputLog:
    """Ordered record of every input a battle consumed."""

    seed: int
    entries: List[InputLogEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {"seed": self.seed, "entries": [entry.to_dict() for entry in self.entries]}

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "InputLog":
        seed = payload.get("seed", 0)
        raw_entries = payload.get("entries", [])
        if not isinstance(seed, int) or not isinstance(raw_entries, list):
            raise ValueError("Input log payload must contain an integer seed and an entry list.")
        entries = [
            InputLogEntry(
                turn=int(raw["turn"]),
                kind=str(raw["kind"]),
                value=raw["value"],
                actor_id=raw.get("actor_id"),
            )
            for raw in raw_entries
        ]
        return cls(seed=seed, entries=entries)


class RNG:
    """Wrapper around random.Random that provides deterministic helpers."""

    def __init__(self, seed: int) -> None:
        self.seed = seed
        self.current_turn = 0
        self._random = Random(seed)

    def randint(self, a: int, b: int) -> int:
        """Return a random integer N such that a <= N <= b."""
        return self._draw("randint", lambda: self._random.randint(a, b))

    def random(self) -> float:
        """Return the next random floating point number in the range [0.0, 1.0)."""
        return self._draw("random", self._random.random)

    def uniform(self, a: float, b: float) -> float:
        """Return a random floating point number N such that a <= N <= b."""
        return self._draw("uniform", lambda: self._random.uniform(a, b))

    def choice(self, seq: Sequence[T_co]) -> T_co:
        """Return a random element from the non-empty sequence."""
        if not seq:
            raise ValueError("Cannot choose from an empty sequence.")
        index = self._draw("choice", lambda: self._random.randrange(len(seq)))
        return seq[index]

    def shuffle(self, seq: MutableSequence[T_co]) -> None:
        """Shuffle the sequence in-place."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.randint(0, i)
            seq[i], seq[j] = seq[j], seq[i]

    def note_choice(self, kind: str, actor_id: str, value: V) -> V:
        """Register a decision made from earlier draws and return the value to use."""
        return value

    def _draw(self, kind: str, producer: Callable[[], V]) -> V:
        return producer()


class RecordingRNG(RNG):
    """RNG that appends every draw and noted choice to an ``InputLog``."""

    def __init__(self, seed: int) -> None:
        super().__init__(seed)
        self.log = InputLog(seed=seed)

    def note_choice(self, kind: str, actor_id: str, value: V) -> V:
        self.log.entries.append(InputLogEntry(self.current_turn, kind, value, actor_id))
        return value

    def _draw(self, kind: str, producer: Callable[[], V]) -> V:
        value = producer()
        self.log.entries.append(InputLogEntry(self.current_turn, kind, value))
        return value


class ReplayRNG(RNG):
    """RNG that substitutes logged values for new draws."""

    def __init__(self, log: InputLog) -> None:
        super().__init__(log.seed)
        self.log = log
        self._cursor = 0

    @property
    def exhausted(self) -> bool:
        return self._cursor >= len(self.log.entries)

    def note_choice(self, kind: str, actor_id: str, value: V) -> V:
        entry = self._next(kind)
        if entry.actor_id != actor_id:
            raise ReplayDivergenceError(
                f"Recorded {kind} belongs to '{entry.actor_id}', not '{actor_id}'.",
                turn=self.current_turn,
            )
        return entry.value  # type: ignore[return-value]

    def _draw(self, kind: str, producer: Callable[[], V]) -> V:
        return self._next(kind).value  # type: ignore[return-value]

    def _next(self, kind: str) -> InputLogEntry:
        if self.exhausted:
            raise ReplayDivergenceError(
                f"Input log exhausted while replaying a '{kind}' input.", turn=self.current_turn
            )
        entry = self.log.entries[self._cursor]
        if entry.kind != kind or entry.turn != self.current_turn:
            raise ReplayDivergenceError(
                f"Expected '{kind}' on turn {self.current_turn}, "
                f"recorded '{entry.kind}' on turn {entry.turn}.",
                turn=self.current_turn,
            )
        self._cursor += 1
        return entry
