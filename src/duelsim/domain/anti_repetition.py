"""Per-battle (or per-call) tracker of keys that were already used."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Set


@dataclass(slots=True)
class AntiRepetitionTracker:
    """Remembers used keys per namespace so each is emitted at most once.

    Every battle owns its own tracker; nothing is shared between battles.
    """

    _used: Dict[str, Set[str]] = field(default_factory=dict)

    def claim(self, namespace: str, key: str) -> bool:
        """Mark ``key`` as used, returning False when it already was."""
        used = self._used.setdefault(namespace, set())
        if key in used:
            return False
        used.add(key)
        return True

    def reset(self, namespace: str) -> None:
        self._used.pop(namespace, None)

    def clone(self) -> "AntiRepetitionTracker":
        return AntiRepetitionTracker({name: set(keys) for name, keys in self._used.items()})
