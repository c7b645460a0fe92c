"""Instant-resolution (curbstomp) rule definitions.

Rules are data, not code: each condition is a tagged variant from a closed
set of kinds and is interpreted by ``services.instant_resolution``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Tuple

ConditionKind = Literal[
    "opponent_type_is",
    "opponent_id_is",
    "opponent_element_is",
    "location_tag_includes",
    "score_threshold",
    "opponent_hp_below",
    "turn_at_least",
]
OutcomeKind = Literal["instant_win", "instant_loss", "incapacitate", "self_sabotage"]
RuleTiming = Literal["pre_battle", "turn"]

CONDITION_KINDS: Tuple[str, ...] = (
    "opponent_type_is",
    "opponent_id_is",
    "opponent_element_is",
    "location_tag_includes",
    "score_threshold",
    "opponent_hp_below",
    "turn_at_least",
)
NUMERIC_CONDITION_KINDS: Tuple[str, ...] = ("score_threshold", "opponent_hp_below", "turn_at_least")
OUTCOME_KINDS: Tuple[str, ...] = ("instant_win", "instant_loss", "incapacitate", "self_sabotage")
RULE_TIMINGS: Tuple[str, ...] = ("pre_battle", "turn")


@dataclass(slots=True)
class RuleCondition:
    kind: ConditionKind
    value: str | float


@dataclass(slots=True)
class InstantRuleDef:
    """A probabilistic short-circuit owned by one fighter."""

    id: str
    owner_id: str
    conditions: Tuple[RuleCondition, ...]
    outcome: OutcomeKind
    trigger_chance: float
    timing: RuleTiming = "turn"
    stun_turns: int = 2
