"""Fighters repository."""
from __future__ import annotations

from typing import Dict, List

from duelsim.core.types import MOVE_TYPES
from duelsim.data.errors import DataReferenceError, DataValidationError
from duelsim.data.repositories.base import RepositoryBase
from duelsim.domain.defs import (
    PERSONALITY_TRAITS,
    EscalationBehaviorDef,
    FighterDef,
    MoveDef,
    PersonalityProfile,
    RelationshipDef,
    SetupEffectDef,
)

COLLATERAL_LEVELS = ("none", "low", "medium", "high", "catastrophic")
BEHAVIOR_STATES = ("Severely Incapacitated", "Terminal Collapse")
MAX_HP_CAP = 100


class FightersRepository(RepositoryBase[FighterDef]):
    """Loads fighter templates with their movesets and personalities."""

    def __init__(self, base_path=None) -> None:
        super().__init__("fighters.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, FighterDef]:
        fighters: Dict[str, FighterDef] = {}
        for raw_id, payload in raw.items():
            if not isinstance(raw_id, str) or not raw_id.strip():
                raise DataValidationError("Fighter IDs must be non-empty strings.")
            context = f"fighter '{raw_id}'"
            data = self._require_mapping(payload, context)
            self._assert_required(
                data,
                {"name", "element", "fighter_type", "power_tier", "personality", "moves"},
                context,
            )
            max_hp = self._require_int(data.get("max_hp", MAX_HP_CAP), f"{context} max_hp")
            if not 0 < max_hp <= MAX_HP_CAP:
                raise DataValidationError(f"{context} max_hp must be in 1..{MAX_HP_CAP}.")
            max_energy = self._require_int(data.get("max_energy", 100), f"{context} max_energy")
            if max_energy <= 0:
                raise DataValidationError(f"{context} max_energy must be positive.")

            fighters[raw_id] = FighterDef(
                id=raw_id,
                name=self._require_str(data["name"], f"{context} name"),
                element=self._require_str(data["element"], f"{context} element"),
                fighter_type=self._require_str(data["fighter_type"], f"{context} fighter_type").lower(),
                power_tier=self._require_int(data["power_tier"], f"{context} power_tier"),
                max_hp=max_hp,
                max_energy=max_energy,
                personality=self._build_personality(data["personality"], context),
                moves=self._build_moves(data["moves"], context),
                role=self._optional_str(data.get("role"), f"{context} role"),
                tone=tuple(self._require_str_list(data.get("tone", []), f"{context} tone")),
                fighting_styles=tuple(
                    self._require_str_list(data.get("fighting_styles", []), f"{context} fighting_styles")
                ),
                strengths=tuple(self._require_str_list(data.get("strengths", []), f"{context} strengths")),
                weaknesses=tuple(self._require_str_list(data.get("weaknesses", []), f"{context} weaknesses")),
                escalation_behavior=self._build_behavior(data.get("escalation_behavior", {}), context),
                relationships=self._build_relationships(data.get("relationships", {}), context),
            )

        for fighter in fighters.values():
            for opponent_id in fighter.relationships:
                if opponent_id not in fighters:
                    raise DataReferenceError(
                        f"fighter '{fighter.id}' relationship references unknown fighter '{opponent_id}'."
                    )
        return fighters

    def _build_personality(self, payload: object, context: str) -> PersonalityProfile:
        data = self._require_mapping(payload, f"{context} personality")
        profile = PersonalityProfile()
        for trait in PERSONALITY_TRAITS:
            if trait in data:
                setattr(profile, trait, self._require_unit_interval(data[trait], f"{context} personality.{trait}"))
        bias_raw = self._require_mapping(data.get("signature_move_bias", {}), f"{context} signature_move_bias")
        for move_name, factor in bias_raw.items():
            value = self._require_number(factor, f"{context} signature_move_bias['{move_name}']")
            if value <= 0:
                raise DataValidationError(f"{context} signature_move_bias values must be positive.")
            profile.signature_move_bias[move_name] = value
        return profile

    def _build_moves(self, payload: object, context: str) -> tuple[MoveDef, ...]:
        entries = self._require_list(payload, f"{context} moves")
        if not entries:
            raise DataValidationError(f"{context} must define at least one move.")
        moves: List[MoveDef] = []
        seen: set[str] = set()
        for index, entry in enumerate(entries):
            move_context = f"{context} moves[{index}]"
            data = self._require_mapping(entry, move_context)
            self._assert_required(data, {"id", "name", "type", "power", "element"}, move_context)
            move_id = self._require_str(data["id"], f"{move_context} id")
            if move_id in seen:
                raise DataValidationError(f"{context} has duplicate move id '{move_id}'.")
            seen.add(move_id)
            power = self._require_int(data["power"], f"{move_context} power")
            if power < 0:
                raise DataValidationError(f"{move_context} power must be >= 0.")
            setup = None
            if data.get("setup") is not None:
                setup_data = self._require_mapping(data["setup"], f"{move_context} setup")
                setup = SetupEffectDef(
                    name=self._require_str(setup_data.get("name"), f"{move_context} setup.name"),
                    duration=self._require_int(setup_data.get("duration", 1), f"{move_context} setup.duration"),
                    intensity=self._require_number(
                        setup_data.get("intensity", 1.0), f"{move_context} setup.intensity"
                    ),
                )
            moves.append(
                MoveDef(
                    id=move_id,
                    name=self._require_str(data["name"], f"{move_context} name"),
                    move_type=self._require_literal(data["type"], MOVE_TYPES, f"{move_context} type"),  # type: ignore[arg-type]
                    power=power,
                    element=self._require_str(data["element"], f"{move_context} element"),
                    tags=tuple(self._require_str_list(data.get("tags", []), f"{move_context} tags")),
                    setup=setup,
                    collateral_impact=self._require_literal(
                        data.get("collateral_impact", "none"), COLLATERAL_LEVELS, f"{move_context} collateral_impact"
                    ),
                )
            )
        if all(move.move_type == "Finisher" for move in moves):
            raise DataValidationError(f"{context} needs at least one non-Finisher move.")
        return tuple(moves)

    def _build_behavior(self, payload: object, context: str) -> Dict[str, EscalationBehaviorDef]:
        data = self._require_mapping(payload, f"{context} escalation_behavior")
        behaviors: Dict[str, EscalationBehaviorDef] = {}
        for state, entry in data.items():
            state_context = f"{context} escalation_behavior['{state}']"
            self._require_literal(state, BEHAVIOR_STATES, state_context)
            table = self._require_mapping(entry, state_context)
            signature = self._require_mapping(table.get("signature_move_bias", {}), f"{state_context} signature_move_bias")
            behaviors[state] = EscalationBehaviorDef(
                signature_move_bias={
                    name: self._require_number(value, f"{state_context} signature_move_bias['{name}']")
                    for name, value in signature.items()
                },
                offensive_bias=self._optional_number(table.get("offensive_bias"), f"{state_context} offensive_bias"),
                finisher_bias=self._optional_number(table.get("finisher_bias"), f"{state_context} finisher_bias"),
                utility_bias=self._optional_number(table.get("utility_bias"), f"{state_context} utility_bias"),
            )
        return behaviors

    def _build_relationships(self, payload: object, context: str) -> Dict[str, RelationshipDef]:
        data = self._require_mapping(payload, f"{context} relationships")
        relationships: Dict[str, RelationshipDef] = {}
        for opponent_id, entry in data.items():
            rel_context = f"{context} relationships['{opponent_id}']"
            rel = self._require_mapping(entry, rel_context)
            traits = self._require_mapping(rel.get("trait_modifiers", {}), f"{rel_context} trait_modifiers")
            for trait in traits:
                self._require_literal(trait, PERSONALITY_TRAITS, f"{rel_context} trait_modifiers key")
            relationships[opponent_id] = RelationshipDef(
                opponent_id=opponent_id,
                relationship_type=self._require_str(rel.get("relationship_type"), f"{rel_context} relationship_type"),
                strength=self._require_unit_interval(rel.get("strength", 0.0), f"{rel_context} strength"),
                stress_modifier=self._require_number(rel.get("stress_modifier", 1.0), f"{rel_context} stress_modifier"),
                win_modifier=self._require_int(rel.get("win_modifier", 0), f"{rel_context} win_modifier"),
                reason=self._optional_str(rel.get("reason"), f"{rel_context} reason"),
                trait_modifiers={
                    trait: self._require_number(value, f"{rel_context} trait_modifiers['{trait}']")
                    for trait, value in traits.items()
                },
            )
        return relationships

    def _optional_str(self, value: object, context: str) -> str | None:
        return None if value is None else self._require_str(value, context)

    def _optional_number(self, value: object, context: str) -> float | None:
        if value is None:
            return None
        number = self._require_number(value, context)
        if number < 0:
            raise DataValidationError(f"{context} must be >= 0.")
        return number
