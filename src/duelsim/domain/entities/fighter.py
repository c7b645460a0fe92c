"""Fighter runtime models."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set, Tuple

from duelsim.core.types import EscalationState, MentalLevel
from duelsim.domain.defs import EscalationBehaviorDef, MoveDef, PersonalityProfile, RelationshipDef


@dataclass(slots=True)
class TacticalState:
    """A temporary positional disadvantage left by an opponent's setup move."""

    name: str
    duration: int
    intensity: float
    source_id: str | None = None


@dataclass(slots=True)
class MentalState:
    level: MentalLevel = "stable"
    stress: float = 0.0


@dataclass(slots=True)
class Fighter:
    """A fighter instance owned by exactly one battle."""

    id: str
    name: str
    element: str
    fighter_type: str
    power_tier: int
    hp: int
    max_hp: int
    energy: int
    max_energy: int
    personality: PersonalityProfile
    moves: Tuple[MoveDef, ...]
    momentum: int = 0
    incapacitation_score: float = 0.0
    escalation_state: EscalationState = "Normal"
    stun_duration: int = 0
    mental_state: MentalState = field(default_factory=MentalState)
    escalation_behavior: Dict[str, EscalationBehaviorDef] = field(default_factory=dict)
    relationships: Dict[str, RelationshipDef] = field(default_factory=dict)
    tactical_state: TacticalState | None = None
    guarding: bool = False
    last_move_id: str | None = None
    move_history: List[str] = field(default_factory=list)
    effectiveness_history: List[str] = field(default_factory=list)
    disabled_move_ids: Set[str] = field(default_factory=set)
    exhausted_move_ids: Set[str] = field(default_factory=set)

    @property
    def hp_ratio(self) -> float:
        return self.hp / self.max_hp if self.max_hp else 0.0

    @property
    def has_opening(self) -> bool:
        """True when the fighter can be punished by ``requires_opening`` moves."""
        return self.stun_duration > 0 or self.tactical_state is not None

    def get_move(self, move_id: str) -> MoveDef:
        for move in self.moves:
            if move.id == move_id:
                return move
        raise KeyError(move_id)

    def available_moves(self) -> List[MoveDef]:
        blocked = self.disabled_move_ids | self.exhausted_move_ids
        return [move for move in self.moves if move.id not in blocked]

    def clone(self) -> "Fighter":
        """Return a structural copy that shares only immutable definitions."""
        tactical = self.tactical_state
        return Fighter(
            id=self.id,
            name=self.name,
            element=self.element,
            fighter_type=self.fighter_type,
            power_tier=self.power_tier,
            hp=self.hp,
            max_hp=self.max_hp,
            energy=self.energy,
            max_energy=self.max_energy,
            personality=self.personality.copy(),
            moves=self.moves,
            momentum=self.momentum,
            incapacitation_score=self.incapacitation_score,
            escalation_state=self.escalation_state,
            stun_duration=self.stun_duration,
            mental_state=MentalState(self.mental_state.level, self.mental_state.stress),
            escalation_behavior=self.escalation_behavior,
            relationships=self.relationships,
            tactical_state=(
                TacticalState(tactical.name, tactical.duration, tactical.intensity, tactical.source_id)
                if tactical is not None
                else None
            ),
            guarding=self.guarding,
            last_move_id=self.last_move_id,
            move_history=list(self.move_history),
            effectiveness_history=list(self.effectiveness_history),
            disabled_move_ids=set(self.disabled_move_ids),
            exhausted_move_ids=set(self.exhausted_move_ids),
        )
