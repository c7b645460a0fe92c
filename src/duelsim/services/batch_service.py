"""Runs many independent battles, yielding after each one."""
from __future__ import annotations

import itertools
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Sequence

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG
from duelsim.domain.battle_models import BattleResult
from duelsim.services.battle_service import BattleService
from duelsim.services.errors import BattleEngineError, describe_error

logger = logging.getLogger(__name__)

_MAX_SEED = 2**31 - 1


@dataclass(slots=True, frozen=True)
class Matchup:
    fighter1_id: str
    fighter2_id: str
    location_id: str


@dataclass(slots=True)
class BatchEntry:
    """One finished matchup: either a result or the error that stopped it."""

    index: int
    matchup: Matchup
    seed: int
    result: BattleResult | None = None
    error: Dict[str, Any] | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(slots=True)
class BatchSummary:
    total: int = 0
    completed: int = 0
    errors: int = 0
    outcomes: Counter = field(default_factory=Counter)
    wins: Counter = field(default_factory=Counter)
    error_details: List[Dict[str, Any]] = field(default_factory=list)

    def add(self, entry: BatchEntry) -> None:
        self.total += 1
        if entry.result is None:
            self.errors += 1
            self.error_details.append({"matchup": entry.matchup, "error": entry.error})
            return
        self.completed += 1
        self.outcomes[entry.result.outcome] += 1
        if entry.result.winner_id is not None:
            self.wins[entry.result.winner_id] += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "completed": self.completed,
            "errors": self.errors,
            "outcomes": dict(self.outcomes),
            "wins": dict(self.wins),
        }


def round_robin(fighter_ids: Sequence[str], location_ids: Sequence[str]) -> List[Matchup]:
    """Every unordered fighter pair at every location."""
    return [
        Matchup(first, second, location_id)
        for location_id in location_ids
        for first, second in itertools.combinations(fighter_ids, 2)
    ]


class BatchService:
    """Simulates matchups one by one. Each battle builds fresh fighters."""

    def __init__(self, battle_service: BattleService, config: EngineConfig | None = None) -> None:
        self._battle_service = battle_service
        self._config = config

    def iter_batch(self, matchups: Iterable[Matchup], *, seed: int = 0) -> Iterator[BatchEntry]:
        """Yield one entry per matchup. Per-battle seeds derive from ``seed``."""
        seeds = RNG(seed)
        for index, matchup in enumerate(matchups):
            battle_seed = seeds.randint(0, _MAX_SEED)
            try:
                result = self._battle_service.simulate_battle(
                    matchup.fighter1_id,
                    matchup.fighter2_id,
                    matchup.location_id,
                    self._config,
                    seed=battle_seed,
                )
            except BattleEngineError as exc:
                logger.error(
                    "Batch matchup %s vs %s at %s failed: %s",
                    matchup.fighter1_id,
                    matchup.fighter2_id,
                    matchup.location_id,
                    exc,
                )
                yield BatchEntry(index, matchup, battle_seed, error=describe_error(exc))
                continue
            yield BatchEntry(index, matchup, battle_seed, result=result)

    def run_batch(self, matchups: Iterable[Matchup], *, seed: int = 0) -> BatchSummary:
        summary = BatchSummary()
        for entry in self.iter_batch(matchups, seed=seed):
            summary.add(entry)
        logger.info("Batch finished: %s completed, %s errors", summary.completed, summary.errors)
        return summary
