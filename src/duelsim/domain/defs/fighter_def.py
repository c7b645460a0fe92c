"""Fighter definition data structures."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from duelsim.core.types import MoveType

PERSONALITY_TRAITS: Tuple[str, ...] = (
    "aggression",
    "patience",
    "risk_tolerance",
    "opportunism",
    "creativity",
    "defensive_bias",
    "anti_repeater",
    "predictability",
)


@dataclass(slots=True)
class SetupEffectDef:
    """Tactical state a move leaves on its target."""

    name: str
    duration: int
    intensity: float


@dataclass(slots=True)
class MoveDef:
    """A technique a fighter can perform."""

    id: str
    name: str
    move_type: MoveType
    power: int
    element: str
    tags: Tuple[str, ...] = ()
    setup: SetupEffectDef | None = None
    collateral_impact: str = "none"

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags


@dataclass(slots=True)
class PersonalityProfile:
    """Behavioral traits in [0, 1] that drive move selection."""

    aggression: float = 0.5
    patience: float = 0.5
    risk_tolerance: float = 0.5
    opportunism: float = 0.5
    creativity: float = 0.5
    defensive_bias: float = 0.5
    anti_repeater: float = 0.5
    predictability: float = 0.8
    signature_move_bias: Dict[str, float] = field(default_factory=dict)

    def copy(self) -> "PersonalityProfile":
        return PersonalityProfile(
            aggression=self.aggression,
            patience=self.patience,
            risk_tolerance=self.risk_tolerance,
            opportunism=self.opportunism,
            creativity=self.creativity,
            defensive_bias=self.defensive_bias,
            anti_repeater=self.anti_repeater,
            predictability=self.predictability,
            signature_move_bias=dict(self.signature_move_bias),
        )


@dataclass(slots=True)
class EscalationBehaviorDef:
    """Per-escalation-state replacements for the move weighting constants."""

    signature_move_bias: Dict[str, float] = field(default_factory=dict)
    offensive_bias: float | None = None
    finisher_bias: float | None = None
    utility_bias: float | None = None


@dataclass(slots=True)
class RelationshipDef:
    """How a fighter reacts to one specific opponent."""

    opponent_id: str
    relationship_type: str
    strength: float = 0.0
    stress_modifier: float = 1.0
    win_modifier: int = 0
    reason: str | None = None
    trait_modifiers: Dict[str, float] = field(default_factory=dict)


@dataclass(slots=True)
class FighterDef:
    """Immutable template for a fighter."""

    id: str
    name: str
    element: str
    fighter_type: str
    power_tier: int
    max_hp: int
    max_energy: int
    personality: PersonalityProfile
    moves: Tuple[MoveDef, ...]
    role: str | None = None
    tone: Tuple[str, ...] = ()
    fighting_styles: Tuple[str, ...] = ()
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    escalation_behavior: Dict[str, EscalationBehaviorDef] = field(default_factory=dict)
    relationships: Dict[str, RelationshipDef] = field(default_factory=dict)
