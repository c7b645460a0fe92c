"""Escalation-aware move weighting.

``compute_escalation_weight`` is total: malformed or missing input yields a
neutral ``WeightResult`` instead of an exception.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from duelsim.domain.defs import EscalationBehaviorDef, MoveDef
from duelsim.domain.entities import Fighter

logger = logging.getLogger(__name__)

SCORE_BIAS_MIN_SCORE = 5
SCORE_BIAS_STATES = ("Pressured", "Severely Incapacitated", "Terminal Collapse")
BROAD_BIAS_STATES = ("Severely Incapacitated", "Terminal Collapse")
BEHAVIOR_OVERRIDE_STATES = ("Severely Incapacitated", "Terminal Collapse")
LOW_UTILITY_EXEMPT_TAGS = ("debuff_disable", "setup")


@dataclass(slots=True)
class WeightResult:
    final_multiplier: float = 1.0
    reasons_applied: List[str] = field(default_factory=list)


@dataclass(slots=True)
class _BiasConstants:
    score_signature: float = 1.5
    score_finisher: float = 2.5
    score_low_impact: float = 0.4
    broad_finisher: float = 1.8
    broad_low_power: float = 0.6
    broad_signature: float = 1.4


def compute_escalation_weight(
    attacker: Fighter | None,
    defender: Fighter | None,
    move: MoveDef | None,
) -> WeightResult:
    """Return the escalation multiplier for ``attacker`` using ``move`` on ``defender``."""
    if attacker is None or defender is None or move is None:
        return WeightResult()
    if not getattr(defender, "escalation_state", None) or getattr(attacker, "personality", None) is None:
        return WeightResult()
    try:
        return _compute(attacker, defender, move)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.debug("Escalation weighting skipped for move %r: %s", getattr(move, "id", None), exc)
        return WeightResult()


def _compute(attacker: Fighter, defender: Fighter, move: MoveDef) -> WeightResult:
    result = WeightResult()
    constants = _BiasConstants()
    signature_bias = attacker.personality.signature_move_bias
    is_signature = move.name in signature_bias
    is_finisher = move.move_type == "Finisher"

    behavior = _active_behavior(attacker)
    overridden: set[str] = set()
    type_bias: float | None = None
    if behavior is not None:
        if move.name in behavior.signature_move_bias:
            is_signature = True
            constants.score_signature = behavior.signature_move_bias[move.name]
            constants.broad_signature = behavior.signature_move_bias[move.name]
            overridden.update(("score_signature", "broad_signature"))
        if is_finisher and behavior.finisher_bias is not None:
            constants.score_finisher = behavior.finisher_bias
            constants.broad_finisher = behavior.finisher_bias
            overridden.update(("score_finisher", "broad_finisher"))
        type_bias = {"Offense": behavior.offensive_bias, "Utility": behavior.utility_bias}.get(move.move_type)

    applied: set[str] = set()

    def apply(name: str, reason: str) -> None:
        _apply(result, getattr(constants, name), reason)
        applied.add(name)

    if defender.incapacitation_score >= SCORE_BIAS_MIN_SCORE and defender.escalation_state in SCORE_BIAS_STATES:
        if is_signature:
            apply("score_signature", "ScoreEscalationBias:SigMove")
        if is_finisher or move.has_tag("requires_opening"):
            apply("score_finisher", "ScoreEscalationBias:Finisher")
        if move.power < 30 and _is_low_impact_candidate(move):
            apply("score_low_impact", "ScoreEscalationBias:LowImpact")

    if defender.escalation_state in BROAD_BIAS_STATES:
        if is_finisher:
            apply("broad_finisher", "EscalationStateBias:Finisher")
        if move.power < 40:
            apply("broad_low_power", "EscalationStateBias:LowPower")
        if is_signature:
            apply("broad_signature", "EscalationStateBias:SigMove")

    # type biases scale every move of that type while the behavior is active
    if type_bias is not None:
        _apply(result, type_bias, f"EscalationBehavior:{move.move_type}Bias")
    if type_bias is not None or applied & overridden:
        result.reasons_applied.insert(0, f"EscalationBehavior:{attacker.escalation_state}")

    result.final_multiplier = max(0.0, result.final_multiplier)
    return result


def _active_behavior(attacker: Fighter) -> EscalationBehaviorDef | None:
    if attacker.escalation_state not in BEHAVIOR_OVERRIDE_STATES:
        return None
    return attacker.escalation_behavior.get(attacker.escalation_state)


def _is_low_impact_candidate(move: MoveDef) -> bool:
    if move.move_type == "Offense":
        return True
    if move.move_type == "Utility":
        return not any(move.has_tag(tag) for tag in LOW_UTILITY_EXEMPT_TAGS)
    return False


def _apply(result: WeightResult, factor: float, reason: str) -> None:
    result.final_multiplier *= factor
    result.reasons_applied.append(f"{reason}(x{factor:g})")
