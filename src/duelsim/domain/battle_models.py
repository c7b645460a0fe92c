"""Battle domain models and the events a battle emits."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, ClassVar, Dict, List, Set, Tuple

from duelsim.core.types import EscalationState, OutcomeKind, Phase
from duelsim.domain.anti_repetition import AntiRepetitionTracker
from duelsim.domain.entities import Fighter


# -----------------------
# Events
# -----------------------
@dataclass(slots=True)
class BattleEvent:
    """Base battle event. Events carry ids, classifications and numbers only."""

    event_type: ClassVar[str] = "event"
    turn: int

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["type"] = self.event_type
        return payload


@dataclass(slots=True)
class BattleStartEvent(BattleEvent):
    event_type: ClassVar[str] = "battle_start"
    battle_id: str
    fighter1_id: str
    fighter2_id: str
    location_id: str


@dataclass(slots=True)
class TurnMarkerEvent(BattleEvent):
    event_type: ClassVar[str] = "turn_marker"
    actor_id: str
    phase: Phase


@dataclass(slots=True)
class MoveActionEvent(BattleEvent):
    event_type: ClassVar[str] = "move_action"
    actor_id: str
    target_id: str
    move_id: str
    move_name: str
    move_type: str
    effectiveness: str
    damage: int
    energy_cost: int
    target_hp: int
    actor_energy: int
    confidence: float
    fallback: bool = False
    opening_exploited: bool = False
    applied_setup: str | None = None


@dataclass(slots=True)
class InactionEvent(BattleEvent):
    event_type: ClassVar[str] = "inaction"
    actor_id: str
    reason: str


@dataclass(slots=True)
class EscalationChangeEvent(BattleEvent):
    event_type: ClassVar[str] = "escalation_change"
    fighter_id: str
    from_state: EscalationState
    to_state: EscalationState
    score: float


@dataclass(slots=True)
class MentalStateChangeEvent(BattleEvent):
    event_type: ClassVar[str] = "mental_state_change"
    fighter_id: str
    level: str
    stress: float


@dataclass(slots=True)
class MomentumChangeEvent(BattleEvent):
    event_type: ClassVar[str] = "momentum_change"
    fighter_id: str
    delta: int
    momentum: int


@dataclass(slots=True)
class EnvironmentImpactEvent(BattleEvent):
    event_type: ClassVar[str] = "environment_impact"
    impact: str
    level: float
    damage_level: float


@dataclass(slots=True)
class PhaseTransitionEvent(BattleEvent):
    event_type: ClassVar[str] = "phase_transition"
    from_phase: Phase
    to_phase: Phase


@dataclass(slots=True)
class CurbstompEvent(BattleEvent):
    event_type: ClassVar[str] = "curbstomp"
    rule_id: str
    owner_id: str
    target_id: str
    outcome: str
    triggered: bool


@dataclass(slots=True)
class InvariantWarningEvent(BattleEvent):
    event_type: ClassVar[str] = "invariant_warning"
    code: str
    severity: str
    fighter_id: str | None = None
    value: float | None = None


@dataclass(slots=True)
class ErrorEvent(BattleEvent):
    event_type: ClassVar[str] = "error"
    error: str
    cause: Dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class ConclusionEvent(BattleEvent):
    event_type: ClassVar[str] = "conclusion"
    outcome: OutcomeKind
    winner_id: str | None
    loser_id: str | None
    is_draw: bool


# -----------------------
# State
# -----------------------
@dataclass(slots=True)
class EnvironmentState:
    """Cumulative battleground damage plus counters that reset every phase."""

    location_id: str
    damage_level: float = 0.0
    specific_impacts: Set[str] = field(default_factory=set)
    impact_count: int = 0
    impacts_this_phase: List[str] = field(default_factory=list)
    highest_impact_level_this_phase: float = 0.0
    narrative_triggered_this_phase: bool = False

    def reset_phase_counters(self) -> None:
        self.impact_count = 0
        self.impacts_this_phase = []
        self.highest_impact_level_this_phase = 0.0
        self.narrative_triggered_this_phase = False

    def clone(self) -> "EnvironmentState":
        return EnvironmentState(
            location_id=self.location_id,
            damage_level=self.damage_level,
            specific_impacts=set(self.specific_impacts),
            impact_count=self.impact_count,
            impacts_this_phase=list(self.impacts_this_phase),
            highest_impact_level_this_phase=self.highest_impact_level_this_phase,
            narrative_triggered_this_phase=self.narrative_triggered_this_phase,
        )


@dataclass(slots=True)
class PhaseState:
    current_phase: Phase = "Opening"
    phase_turn_count: int = 0


@dataclass(slots=True)
class BattleState:
    """Tracks the state of an ongoing battle."""

    battle_id: str
    fighter1: Fighter
    fighter2: Fighter
    environment: EnvironmentState
    phase_state: PhaseState = field(default_factory=PhaseState)
    turn: int = 0
    log: List[BattleEvent] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    resolved_rule_ids: Set[str] = field(default_factory=set)
    tracker: AntiRepetitionTracker = field(default_factory=AntiRepetitionTracker)

    @property
    def location_id(self) -> str:
        return self.environment.location_id

    @property
    def fighters(self) -> Tuple[Fighter, Fighter]:
        return (self.fighter1, self.fighter2)

    def get_fighter(self, fighter_id: str) -> Fighter:
        for fighter in self.fighters:
            if fighter.id == fighter_id:
                return fighter
        raise KeyError(fighter_id)

    def opponent_of(self, fighter_id: str) -> Fighter:
        if self.fighter1.id == fighter_id:
            return self.fighter2
        if self.fighter2.id == fighter_id:
            return self.fighter1
        raise KeyError(fighter_id)

    def clone(self) -> "BattleState":
        """Structural copy used as the working state for one turn."""
        return BattleState(
            battle_id=self.battle_id,
            fighter1=self.fighter1.clone(),
            fighter2=self.fighter2.clone(),
            environment=self.environment.clone(),
            phase_state=PhaseState(self.phase_state.current_phase, self.phase_state.phase_turn_count),
            turn=self.turn,
            log=list(self.log),
            metadata=dict(self.metadata),
            resolved_rule_ids=set(self.resolved_rule_ids),
            tracker=self.tracker.clone(),
        )


@dataclass(slots=True, frozen=True)
class BattleResult:
    """Final outcome of a simulated battle."""

    winner_id: str | None
    loser_id: str | None
    is_draw: bool
    outcome: OutcomeKind
    turn_count: int
    final_state: BattleState
    log: Tuple[BattleEvent, ...]
    location_id: str
    timestamp: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    input_log: Dict[str, Any] | None = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner_id": self.winner_id,
            "loser_id": self.loser_id,
            "is_draw": self.is_draw,
            "outcome": self.outcome,
            "turn_count": self.turn_count,
            "location_id": self.location_id,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
            "log": [event.to_dict() for event in self.log],
        }


def escalation_change_events(
    turn: int,
    fighter_id: str,
    before: EscalationState,
    path: List[EscalationState],
    score: float,
) -> List[EscalationChangeEvent]:
    """One event per state entered, in order, so no transition is skipped."""
    events: List[EscalationChangeEvent] = []
    previous = before
    for entered in path:
        events.append(
            EscalationChangeEvent(turn=turn, fighter_id=fighter_id, from_state=previous, to_state=entered, score=score)
        )
        previous = entered
    return events
