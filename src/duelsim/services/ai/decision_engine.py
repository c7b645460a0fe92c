"""Personality-weighted, stochastic move selection."""
from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG, ReplayDivergenceError
from duelsim.domain.defs import MoveDef
from duelsim.domain.entities import Fighter
from duelsim.domain.move_weighting import compute_escalation_weight
from duelsim.domain.personality import (
    base_personality_score,
    determine_strategic_intent,
    get_dynamic_personality,
)
from duelsim.services.ai.decision_context import DecisionContext
from duelsim.services.errors import DecisionValidationError

logger = logging.getLogger(__name__)

FALLBACK_CONFIDENCE = 0.2
FALLBACK_REASONING = "fallback"
MIN_TEMPERATURE = 0.01


class _ScoringTimeout(Exception):
    pass


@dataclass(slots=True)
class AiDecision:
    move_id: str
    confidence: float
    reasoning: str
    move_scores: Dict[str, float] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_fallback(self) -> bool:
        return bool(self.metadata.get("fallback"))


def softmax_temperature(predictability: float) -> float:
    """Higher predictability gives a colder, more peaked distribution."""
    return max(MIN_TEMPERATURE, (1.0 - predictability) * 1.5 + 0.5)


def selection_probabilities(scores: List[float], predictability: float) -> List[float]:
    """Softmax over raw scores, shifted by the top score for numerical stability."""
    top = max(scores)
    temperature = softmax_temperature(predictability)
    exp_weights = [math.exp((score - top) / temperature) for score in scores]
    total = sum(exp_weights)
    return [weight / total for weight in exp_weights]


class AIDecisionEngine:
    """Chooses a move for the acting fighter from a DecisionContext."""

    def __init__(self, config: EngineConfig, rng: RNG) -> None:
        self._config = config
        self._rng = rng

    def decide(self, context: DecisionContext) -> AiDecision:
        """Return a validated decision. Falls back to the first move when unsure."""
        actor = context.actor
        try:
            decision = self._score_and_select(context)
        except ReplayDivergenceError:
            raise
        except _ScoringTimeout:
            logger.warning(
                "AI scoring for %s exceeded %sms on turn %s",
                actor.id,
                context.options.time_limit_ms,
                context.turn_number,
            )
            decision = self._fallback(context, reason="timeout")
        except Exception as exc:
            logger.warning("AI scoring for %s failed on turn %s: %s", actor.id, context.turn_number, exc)
            decision = self._fallback(context, reason=type(exc).__name__)
        else:
            if decision.confidence < self._config.min_confidence:
                logger.debug(
                    "Low confidence %.2f for %s on turn %s, using fallback",
                    decision.confidence,
                    actor.id,
                    context.turn_number,
                )
                decision = self._fallback(context, reason="low_confidence", scores=decision.move_scores)
        self._validate(actor, decision, context.turn_number)
        return decision

    # -----------------------
    # Scoring
    # -----------------------
    def _score_and_select(self, context: DecisionContext) -> AiDecision:
        actor, opponent = context.actor, context.opponent
        started = time.perf_counter()
        profile = get_dynamic_personality(
            actor, context.phase, opponent.id, context.options.personality_override
        )
        intent = determine_strategic_intent(actor, opponent, context.turn_number, profile)

        scores: Dict[str, float] = {}
        reasons: Dict[str, List[str]] = {}
        for move in context.available_moves:
            base = base_personality_score(move, actor, opponent, profile, intent, context.phase)
            weight = compute_escalation_weight(actor, opponent, move)
            scores[move.id] = base.score * weight.final_multiplier
            reasons[move.id] = base.reasons + weight.reasons_applied
            self._check_time_limit(context, started)

        candidates = [move for move in context.available_moves if scores[move.id] > 0]
        if not candidates:
            return AiDecision(
                move_id=context.available_moves[0].id,
                confidence=0.0,
                reasoning="no_viable_move",
                move_scores=scores,
                metadata={"intent": intent, "phase": context.phase, "fallback": False},
            )

        chosen = self._draw(candidates, scores, profile.predictability)
        chosen_id = self._rng.note_choice("ai_choice", actor.id, chosen.id)
        top = max(scores[move.id] for move in candidates)
        confidence = scores.get(chosen_id, 0.0) / top if top > 0 else 0.0
        metadata: Dict[str, Any] = {"intent": intent, "phase": context.phase, "fallback": False}
        if context.options.debug:
            metadata["reasons"] = reasons
        return AiDecision(
            move_id=chosen_id,
            confidence=min(1.0, confidence),
            reasoning=f"intent:{intent}",
            move_scores=scores,
            metadata=metadata,
        )

    def _draw(self, candidates: List[MoveDef], scores: Dict[str, float], predictability: float) -> MoveDef:
        probabilities = selection_probabilities([scores[move.id] for move in candidates], predictability)
        roll = self._rng.random()
        cumulative = 0.0
        for move, probability in zip(candidates, probabilities):
            cumulative += probability
            if roll < cumulative:
                return move
        return candidates[-1]

    @staticmethod
    def _check_time_limit(context: DecisionContext, started: float) -> None:
        limit = context.options.time_limit_ms
        if limit is not None and (time.perf_counter() - started) * 1000 > limit:
            raise _ScoringTimeout()

    # -----------------------
    # Fallback & validation
    # -----------------------
    def _fallback(self, context: DecisionContext, *, reason: str, scores: Dict[str, float] | None = None) -> AiDecision:
        move_id = self._rng.note_choice("ai_fallback", context.actor.id, context.available_moves[0].id)
        return AiDecision(
            move_id=move_id,
            confidence=FALLBACK_CONFIDENCE,
            reasoning=FALLBACK_REASONING,
            move_scores=dict(scores or {}),
            metadata={"fallback": True, "fallback_reason": reason, "phase": context.phase},
        )

    @staticmethod
    def _validate(actor: Fighter, decision: AiDecision, turn: int) -> None:
        if not any(move.id == decision.move_id for move in actor.moves):
            raise DecisionValidationError(
                f"Move '{decision.move_id}' is not in the moveset of '{actor.id}'.", turn=turn
            )
        if not 0.0 <= decision.confidence <= 1.0:
            raise DecisionValidationError(
                f"Decision confidence {decision.confidence} is outside [0, 1].", turn=turn
            )
