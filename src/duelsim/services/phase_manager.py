"""Forward-only battle phase progression."""
from __future__ import annotations

import logging

from duelsim.core.config import EngineConfig
from duelsim.core.types import PHASE_ORDER, Phase
from duelsim.domain.battle_models import BattleState, PhaseTransitionEvent
from duelsim.domain.escalation import escalation_rank
from duelsim.domain.phases import phase_floor_for_turn, phase_rank
from duelsim.services.errors import InvariantViolation

logger = logging.getLogger(__name__)


class PhaseManager:
    """Advances Opening -> Early -> Mid -> Late, at most one step per check."""

    def __init__(self, config: EngineConfig) -> None:
        self._config = config

    def check(self, state: BattleState, turn: int) -> PhaseTransitionEvent | None:
        """Evaluate the guards for the current phase and transition if one holds."""
        current = state.phase_state.current_phase
        if current not in PHASE_ORDER:
            raise InvariantViolation("unknown_phase", f"Unknown phase '{current}'.", turn=turn)
        state.phase_state.phase_turn_count += 1
        if current == "Late":
            return None
        if not self._should_advance(state, current, turn):
            return None
        next_phase = PHASE_ORDER[phase_rank(current) + 1]
        return self._transition(state, current, next_phase, turn)

    def _should_advance(self, state: BattleState, current: Phase, turn: int) -> bool:
        ranks = [escalation_rank(fighter.escalation_state) for fighter in state.fighters]
        turn_floor = phase_rank(phase_floor_for_turn(turn, self._config))
        if current == "Opening":
            return turn_floor > phase_rank("Opening") or max(ranks) > escalation_rank("Normal")
        if current == "Early":
            return turn_floor >= phase_rank("Mid") or max(ranks) >= escalation_rank("Severely Incapacitated")
        return turn_floor >= phase_rank("Late") or max(ranks) >= escalation_rank("Terminal Collapse")

    @staticmethod
    def _transition(state: BattleState, current: Phase, next_phase: Phase, turn: int) -> PhaseTransitionEvent:
        state.phase_state.current_phase = next_phase
        state.phase_state.phase_turn_count = 0
        state.environment.reset_phase_counters()
        state.tracker.reset("environment_impact")
        logger.debug("Battle %s phase %s -> %s on turn %s", state.battle_id, current, next_phase, turn)
        return PhaseTransitionEvent(turn=turn, from_phase=current, to_phase=next_phase)
