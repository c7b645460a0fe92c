"""Interpreter for data-declared instant-resolution (curbstomp) rules."""
from __future__ import annotations

import logging
from typing import Iterable, List, Sequence

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG
from duelsim.domain.battle_models import BattleEvent, BattleState, CurbstompEvent, escalation_change_events
from duelsim.domain.defs import InstantRuleDef, LocationDef, RuleCondition
from duelsim.domain.entities import Fighter
from duelsim.domain.escalation import apply_incapacitation

logger = logging.getLogger(__name__)


def condition_holds(
    condition: RuleCondition,
    owner: Fighter,
    opponent: Fighter,
    location: LocationDef,
    turn: int,
) -> bool:
    """Evaluate one tagged condition. Unknown kinds never match."""
    kind, value = condition.kind, condition.value
    if kind == "opponent_type_is":
        return opponent.fighter_type == str(value).lower()
    if kind == "opponent_id_is":
        return opponent.id == value
    if kind == "opponent_element_is":
        return opponent.element == value
    if kind == "location_tag_includes":
        return value in location.terrain_tags
    if kind == "score_threshold":
        return opponent.incapacitation_score >= float(value)
    if kind == "opponent_hp_below":
        return opponent.hp_ratio < float(value)
    if kind == "turn_at_least":
        return turn >= float(value)
    return False


def rule_applies(rule: InstantRuleDef, owner: Fighter, opponent: Fighter, location: LocationDef, turn: int) -> bool:
    return all(condition_holds(condition, owner, opponent, location, turn) for condition in rule.conditions)


class InstantResolutionService:
    """Rolls each matching rule once per battle and applies its outcome."""

    def __init__(self, rules: Sequence[InstantRuleDef], config: EngineConfig) -> None:
        self._rules = list(rules)
        self._config = config

    def evaluate(
        self,
        state: BattleState,
        owner_ids: Iterable[str],
        location: LocationDef,
        rng: RNG,
        *,
        timing: str,
        turn: int,
    ) -> List[BattleEvent]:
        """Evaluate rules with ``timing`` owned by ``owner_ids`` and return emitted events."""
        events: List[BattleEvent] = []
        for owner_id in owner_ids:
            owner = state.get_fighter(owner_id)
            opponent = state.opponent_of(owner_id)
            for rule in self._rules:
                if rule.owner_id != owner_id or rule.timing != timing or rule.id in state.resolved_rule_ids:
                    continue
                if not rule_applies(rule, owner, opponent, location, turn):
                    continue
                state.resolved_rule_ids.add(rule.id)
                triggered = rng.random() < rule.trigger_chance
                target = self._target_of(rule, owner, opponent)
                events.append(
                    CurbstompEvent(
                        turn=turn,
                        rule_id=rule.id,
                        owner_id=owner.id,
                        target_id=target.id,
                        outcome=rule.outcome,
                        triggered=triggered,
                    )
                )
                if triggered:
                    logger.info("Instant rule %s triggered on turn %s (%s)", rule.id, turn, rule.outcome)
                    events.extend(self._apply(rule, target, turn))
        return events

    @staticmethod
    def _target_of(rule: InstantRuleDef, owner: Fighter, opponent: Fighter) -> Fighter:
        if rule.outcome in ("instant_loss", "self_sabotage"):
            return owner
        return opponent

    def _apply(self, rule: InstantRuleDef, target: Fighter, turn: int) -> List[BattleEvent]:
        if rule.outcome in ("instant_win", "instant_loss"):
            target.hp = 0
            score = self._config.knockout_score
        else:
            target.stun_duration = max(target.stun_duration, rule.stun_turns)
            score = target.incapacitation_score
        before = target.escalation_state
        path = apply_incapacitation(target, score, self._config.escalation_thresholds)
        return list(escalation_change_events(turn, target.id, before, path, target.incapacitation_score))
