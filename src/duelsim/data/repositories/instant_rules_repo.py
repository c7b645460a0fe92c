"""Repository for instant-resolution (curbstomp) rules."""
from __future__ import annotations

from typing import Dict, List

from duelsim.data.errors import DataValidationError
from duelsim.data.repositories.base import RepositoryBase
from duelsim.domain.defs import InstantRuleDef, RuleCondition
from duelsim.domain.defs.instant_rule_def import (
    CONDITION_KINDS,
    NUMERIC_CONDITION_KINDS,
    OUTCOME_KINDS,
    RULE_TIMINGS,
)


class InstantRulesRepository(RepositoryBase[InstantRuleDef]):
    """Loads tagged-variant instant-resolution rules keyed by rule id."""

    def __init__(self, base_path=None) -> None:
        super().__init__("instant_resolution_rules.json", base_path)

    def for_owner(self, owner_id: str) -> List[InstantRuleDef]:
        """Return the rules owned by ``owner_id`` in deterministic order."""
        return [rule for rule in self.all() if rule.owner_id == owner_id]

    def _build(self, raw: dict[str, object]) -> Dict[str, InstantRuleDef]:
        rules: Dict[str, InstantRuleDef] = {}
        for rule_id, payload in raw.items():
            context = f"rule '{rule_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(data, {"owner_id", "conditions", "outcome", "trigger_chance"}, context)
            chance = self._require_unit_interval(data["trigger_chance"], f"{context} trigger_chance")
            conditions: List[RuleCondition] = []
            for index, entry in enumerate(self._require_list(data["conditions"], f"{context} conditions")):
                cond_context = f"{context} conditions[{index}]"
                cond = self._require_mapping(entry, cond_context)
                kind = self._require_literal(cond.get("kind"), CONDITION_KINDS, f"{cond_context} kind")
                if "value" not in cond:
                    raise DataValidationError(f"{cond_context} missing fields: ['value']")
                if kind in NUMERIC_CONDITION_KINDS:
                    value: str | float = self._require_number(cond["value"], f"{cond_context} value")
                else:
                    value = self._require_str(cond["value"], f"{cond_context} value")
                conditions.append(RuleCondition(kind=kind, value=value))  # type: ignore[arg-type]
            stun_turns = self._require_int(data.get("stun_turns", 2), f"{context} stun_turns")
            if stun_turns < 1:
                raise DataValidationError(f"{context} stun_turns must be >= 1.")
            rules[rule_id] = InstantRuleDef(
                id=rule_id,
                owner_id=self._require_str(data["owner_id"], f"{context} owner_id"),
                conditions=tuple(conditions),
                outcome=self._require_literal(data["outcome"], OUTCOME_KINDS, f"{context} outcome"),  # type: ignore[arg-type]
                trigger_chance=chance,
                timing=self._require_literal(data.get("timing", "turn"), RULE_TIMINGS, f"{context} timing"),  # type: ignore[arg-type]
                stun_turns=stun_turns,
            )
        return rules
