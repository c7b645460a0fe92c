"""Builds the per-decision view the AI reasons over."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from duelsim.core.config import EngineConfig
from duelsim.core.types import Phase
from duelsim.domain.battle_models import BattleState, EnvironmentState
from duelsim.domain.defs import MoveDef
from duelsim.domain.entities import Fighter
from duelsim.domain.phases import estimate_phase
from duelsim.services.errors import NoAvailableMovesError


@dataclass(slots=True)
class DecisionOptions:
    debug: bool = False
    time_limit_ms: float | None = None
    personality_override: Dict[str, float] | None = None


@dataclass(slots=True)
class DecisionContext:
    """Everything one AI decision may look at. Discarded after use."""

    actor: Fighter
    opponent: Fighter
    state: BattleState
    available_moves: List[MoveDef]
    turn_number: int
    phase: Phase
    environment: EnvironmentState
    options: DecisionOptions = field(default_factory=DecisionOptions)


def build_decision_context(
    state: BattleState,
    actor_id: str,
    turn: int,
    config: EngineConfig,
    *,
    debug: bool = False,
    time_limit_ms: float | None = None,
    personality_override: Mapping[str, float] | None = None,
) -> DecisionContext:
    """Assemble the context for ``actor_id``.

    Raises NoAvailableMovesError when every move is disabled or exhausted.
    """
    actor = state.get_fighter(actor_id)
    opponent = state.opponent_of(actor_id)
    available = actor.available_moves()
    if not available:
        raise NoAvailableMovesError(actor_id, turn=turn)
    return DecisionContext(
        actor=actor,
        opponent=opponent,
        state=state,
        available_moves=available,
        turn_number=turn,
        phase=estimate_phase(turn, actor.hp_ratio, opponent.hp_ratio, config),
        environment=state.environment,
        options=DecisionOptions(
            debug=debug,
            time_limit_ms=time_limit_ms,
            personality_override=dict(personality_override) if personality_override else None,
        ),
    )
