"""Shared CLI rendering helpers."""
from __future__ import annotations

import json
import os
from collections import Counter
from typing import Iterable, Sequence

from duelsim.domain.battle_models import BattleEvent, BattleResult
from duelsim.domain.defs import FighterDef
from duelsim.services.batch_service import BatchSummary
from duelsim.services.win_probability import WinProbability


def debug_enabled() -> bool:
    """Return True only when DUELSIM_DEBUG is explicitly set to '1'."""
    return os.getenv("DUELSIM_DEBUG") == "1"


def render_heading(title: str) -> None:
    """Print a consistent section heading."""
    print(f"\n=== {title} ===")


def render_bullet_lines(lines: Iterable[str]) -> None:
    """Print bullet-prefixed lines."""
    for line in lines:
        print(f"- {line}")


def render_json(payload: object) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def format_event(event: BattleEvent) -> str:
    """Compact ``turn type key=value`` form of an event."""
    payload = event.to_dict()
    payload.pop("turn", None)
    payload.pop("type", None)
    fields = " ".join(f"{key}={value}" for key, value in payload.items() if value is not None)
    return f"t{event.turn:>3} {event.event_type} {fields}".rstrip()


def render_battle_result(result: BattleResult, *, show_events: bool = False) -> None:
    render_heading("Battle")
    render_bullet_lines(
        [
            f"battle_id={result.metadata.get('battle_id')}",
            f"location={result.location_id}",
            f"seed={result.metadata.get('seed')}",
            f"outcome={result.outcome}",
            f"winner={result.winner_id}",
            f"loser={result.loser_id}",
            f"turns={result.turn_count}",
        ]
    )
    render_heading("Fighters")
    render_bullet_lines(
        f"{fighter.id} hp={fighter.hp}/{fighter.max_hp} energy={fighter.energy} "
        f"score={fighter.incapacitation_score:g} state={fighter.escalation_state} "
        f"mental={fighter.mental_state.level} momentum={fighter.momentum}"
        for fighter in result.final_state.fighters
    )
    counts = Counter(event.event_type for event in result.log)
    render_heading("Events")
    render_bullet_lines(f"{event_type}={count}" for event_type, count in sorted(counts.items()))
    if show_events or debug_enabled():
        render_heading("Log")
        for event in result.log:
            print(format_event(event))


def render_odds(odds: WinProbability) -> None:
    render_heading("Odds")
    render_bullet_lines(
        [
            f"winner={odds.winner_id} win_prob={odds.win_prob}",
            f"f1_prob={odds.f1_prob} f2_prob={odds.f2_prob}",
            f"victory_type={odds.victory_type}",
            f"resolution_tone={odds.resolution_tone}",
        ]
    )
    if odds.outcome_reasons:
        render_heading("Reasons")
        render_bullet_lines(odds.outcome_reasons)


def render_fighters(fighters: Sequence[FighterDef]) -> None:
    render_heading("Fighters")
    render_bullet_lines(
        f"{fighter.id} tier={fighter.power_tier} element={fighter.element} "
        f"type={fighter.fighter_type} moves={len(fighter.moves)}"
        for fighter in fighters
    )


def render_batch_summary(summary: BatchSummary) -> None:
    render_heading("Batch")
    render_bullet_lines([f"total={summary.total}", f"completed={summary.completed}", f"errors={summary.errors}"])
    render_heading("Outcomes")
    render_bullet_lines(f"{outcome}={count}" for outcome, count in sorted(summary.outcomes.items()))
    if summary.wins:
        render_heading("Wins")
        render_bullet_lines(f"{fighter_id}={count}" for fighter_id, count in summary.wins.most_common())
