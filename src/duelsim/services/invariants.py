"""End-of-turn invariant validation.

Critical violations raise InvariantViolation. Error and warning severities
are logged and reported as events; the battle continues.
"""
from __future__ import annotations

import logging
from typing import List

from duelsim.core.config import EngineConfig
from duelsim.core.types import PHASE_ORDER
from duelsim.domain.battle_models import BattleState, InvariantWarningEvent
from duelsim.domain.escalation import determine_escalation_state
from duelsim.domain.momentum import MOMENTUM_MAX, MOMENTUM_MIN
from duelsim.services.errors import InvariantViolation

logger = logging.getLogger(__name__)

HP_CEILING = 100
STUN_WARNING_TURNS = 3


def validate_invariants(
    state: BattleState,
    turn: int,
    config: EngineConfig,
    previous: BattleState | None = None,
) -> List[InvariantWarningEvent]:
    """Check the working state at the end of ``turn``."""
    if state.phase_state.current_phase not in PHASE_ORDER:
        raise InvariantViolation(
            "unknown_phase", f"Unknown phase '{state.phase_state.current_phase}'.", turn=turn
        )

    reports: List[InvariantWarningEvent] = []
    for fighter in state.fighters:
        if not 0 < fighter.max_hp <= HP_CEILING:
            raise InvariantViolation(
                "max_hp_range", f"{fighter.id} max_hp {fighter.max_hp} outside (0, {HP_CEILING}].",
                turn=turn, fighter_id=fighter.id,
            )
        if not 0 <= fighter.hp <= fighter.max_hp:
            raise InvariantViolation(
                "hp_range", f"{fighter.id} hp {fighter.hp} outside [0, {fighter.max_hp}].",
                turn=turn, fighter_id=fighter.id,
            )
        if not 0 <= fighter.energy <= fighter.max_energy:
            raise InvariantViolation(
                "energy_range", f"{fighter.id} energy {fighter.energy} outside [0, {fighter.max_energy}].",
                turn=turn, fighter_id=fighter.id,
            )
        expected = determine_escalation_state(fighter.incapacitation_score, config.escalation_thresholds)
        if fighter.escalation_state != expected:
            raise InvariantViolation(
                "escalation_mismatch",
                f"{fighter.id} is '{fighter.escalation_state}' but score implies '{expected}'.",
                turn=turn, fighter_id=fighter.id,
            )

        if not MOMENTUM_MIN <= fighter.momentum <= MOMENTUM_MAX:
            reports.append(_report(turn, "momentum_range", "error", fighter.id, fighter.momentum))
        if previous is not None:
            before = previous.get_fighter(fighter.id)
            if fighter.incapacitation_score < before.incapacitation_score:
                reports.append(
                    _report(turn, "score_decreased", "error", fighter.id, fighter.incapacitation_score)
                )
        if fighter.stun_duration > STUN_WARNING_TURNS:
            reports.append(_report(turn, "stun_stacking", "warning", fighter.id, fighter.stun_duration))

    if state.environment.damage_level >= 100.0 and state.tracker.claim("invariant", "environment_saturated"):
        reports.append(_report(turn, "environment_saturated", "warning", None, state.environment.damage_level))

    for report in reports:
        logger.warning(
            "Invariant %s (%s) on turn %s for %s: %s",
            report.code,
            report.severity,
            turn,
            report.fighter_id,
            report.value,
        )
    return reports


def _report(turn: int, code: str, severity: str, fighter_id: str | None, value: float) -> InvariantWarningEvent:
    return InvariantWarningEvent(turn=turn, code=code, severity=severity, fighter_id=fighter_id, value=float(value))
