"""Single-turn state machine.

A turn runs on a structural copy of the battle state. Any exception aborts
the turn and leaves the caller's state untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG
from duelsim.domain.battle_models import (
    BattleEvent,
    BattleState,
    EnvironmentImpactEvent,
    InactionEvent,
    MentalStateChangeEvent,
    MomentumChangeEvent,
    MoveActionEvent,
    TurnMarkerEvent,
    escalation_change_events,
)
from duelsim.domain.defs import LocationDef
from duelsim.domain.entities import Fighter
from duelsim.domain.escalation import apply_incapacitation, calculate_incapacitation_pressure
from duelsim.domain.mental_state import apply_stress
from duelsim.domain.momentum import apply_momentum_change, momentum_swing
from duelsim.domain.personality import apply_personality_drift
from duelsim.services.ai import AIDecisionEngine, AiDecision, build_decision_context
from duelsim.services.instant_resolution import InstantResolutionService
from duelsim.services.invariants import validate_invariants
from duelsim.services.move_resolution import MoveOutcome, resolve_move
from duelsim.services.phase_manager import PhaseManager

logger = logging.getLogger(__name__)

NOTABLE_IMPACT_LEVEL = 3.0


@dataclass(slots=True)
class TurnOutcome:
    state: BattleState
    events: List[BattleEvent] = field(default_factory=list)
    decision: AiDecision | None = None


class TurnProcessor:
    """Runs one turn: pre-effects, action, post-effects, escalation, phase, invariants."""

    def __init__(
        self,
        config: EngineConfig,
        rng: RNG,
        location: LocationDef,
        *,
        instant_resolution: InstantResolutionService | None = None,
        debug: bool = False,
        time_limit_ms: float | None = None,
        personality_overrides: Mapping[str, Mapping[str, float]] | None = None,
    ) -> None:
        self._config = config
        self._rng = rng
        self._location = location
        self._instant_resolution = instant_resolution
        self._debug = debug
        self._time_limit_ms = time_limit_ms
        self._personality_overrides: Dict[str, Mapping[str, float]] = dict(personality_overrides or {})
        self._engine = AIDecisionEngine(config, rng)
        self._phase_manager = PhaseManager(config)

    @staticmethod
    def active_and_inactive(state: BattleState, turn: int) -> Tuple[Fighter, Fighter]:
        """Fighter 1 acts on odd turns, fighter 2 on even turns."""
        if turn % 2 == 1:
            return state.fighter1, state.fighter2
        return state.fighter2, state.fighter1

    def process_turn(self, state: BattleState, turn: int) -> TurnOutcome:
        """Run ``turn`` against a copy of ``state`` and return the new state and events."""
        working = state.clone()
        working.turn = turn
        self._rng.current_turn = turn
        active, inactive = self.active_and_inactive(working, turn)
        outcome = TurnOutcome(state=working)
        events = outcome.events
        events.append(TurnMarkerEvent(turn=turn, actor_id=active.id, phase=working.phase_state.current_phase))

        blocked_reason = self._apply_pre_turn_effects(active)
        if self._instant_resolution is not None:
            events.extend(
                self._instant_resolution.evaluate(
                    working, [active.id], self._location, self._rng, timing="turn", turn=turn
                )
            )

        move_outcome: MoveOutcome | None = None
        if active.hp <= 0 or inactive.hp <= 0:
            events.append(InactionEvent(turn=turn, actor_id=active.id, reason="resolved"))
        elif blocked_reason is not None:
            events.append(InactionEvent(turn=turn, actor_id=active.id, reason=blocked_reason))
        else:
            outcome.decision, move_outcome = self._determine_and_execute_action(
                working, active, inactive, turn, events
            )

        self._apply_post_turn_effects(active, inactive, move_outcome)
        self._update_momentum_and_escalation(working, active, inactive, move_outcome, turn, events)

        phase_event = self._phase_manager.check(working, turn)
        if phase_event is not None:
            events.append(phase_event)
        events.extend(validate_invariants(working, turn, self._config, previous=state))
        logger.debug("Turn %s (%s) produced %d events", turn, active.id, len(events))
        return outcome

    # -----------------------
    # Turn steps
    # -----------------------
    def _apply_pre_turn_effects(self, active: Fighter) -> str | None:
        if active.stun_duration > 0:
            active.stun_duration -= 1
            return "stunned"
        if active.energy < self._config.min_energy_for_action:
            active.energy = min(active.max_energy, active.energy + self._config.energy_regen * 2)
            return "exhausted"
        return None

    def _determine_and_execute_action(
        self,
        state: BattleState,
        active: Fighter,
        inactive: Fighter,
        turn: int,
        events: List[BattleEvent],
    ) -> Tuple[AiDecision, MoveOutcome]:
        context = build_decision_context(
            state,
            active.id,
            turn,
            self._config,
            debug=self._debug,
            time_limit_ms=self._time_limit_ms,
            personality_override=self._personality_overrides.get(active.id),
        )
        decision = self._engine.decide(context)
        move = active.get_move(decision.move_id)
        result = resolve_move(
            active, inactive, move, self._rng, state.environment, fragility=self._location.fragility
        )
        events.append(
            MoveActionEvent(
                turn=turn,
                actor_id=active.id,
                target_id=inactive.id,
                move_id=move.id,
                move_name=move.name,
                move_type=move.move_type,
                effectiveness=result.effectiveness,
                damage=result.damage,
                energy_cost=result.energy_cost,
                target_hp=inactive.hp,
                actor_energy=active.energy,
                confidence=round(decision.confidence, 3),
                fallback=decision.is_fallback,
                opening_exploited=result.opening_exploited,
                applied_setup=result.applied_setup,
            )
        )
        if result.impact_key is not None and state.tracker.claim("environment_impact", result.impact_key):
            events.append(
                EnvironmentImpactEvent(
                    turn=turn,
                    impact=result.impact_key,
                    level=result.impact_level,
                    damage_level=round(state.environment.damage_level, 2),
                )
            )
            if result.impact_level >= NOTABLE_IMPACT_LEVEL:
                state.environment.narrative_triggered_this_phase = True

        new_level = apply_stress(inactive, result.effectiveness, result.damage, active.id)
        if new_level is not None:
            events.append(
                MentalStateChangeEvent(
                    turn=turn,
                    fighter_id=inactive.id,
                    level=new_level,
                    stress=round(inactive.mental_state.stress, 2),
                )
            )
        active.last_move_id = move.id
        active.move_history.append(move.id)
        active.effectiveness_history.append(result.effectiveness)
        return decision, result

    def _apply_post_turn_effects(self, active: Fighter, inactive: Fighter, result: MoveOutcome | None) -> None:
        active.energy = min(active.max_energy, active.energy + self._config.energy_regen)
        active.disabled_move_ids.clear()
        tactical = inactive.tactical_state
        if tactical is not None and tactical.source_id == active.id and (result is None or result.applied_setup is None):
            tactical.duration -= 1
            if tactical.duration <= 0:
                inactive.tactical_state = None
        if result is not None:
            drifted = apply_personality_drift(active)
            if drifted:
                logger.debug("Personality drift for %s: %s", active.id, ", ".join(drifted))

    def _update_momentum_and_escalation(
        self,
        state: BattleState,
        active: Fighter,
        inactive: Fighter,
        result: MoveOutcome | None,
        turn: int,
        events: List[BattleEvent],
    ) -> None:
        if result is not None:
            attacker_delta, defender_delta = momentum_swing(result.effectiveness)
            for fighter, delta in ((active, attacker_delta), (inactive, defender_delta)):
                applied = apply_momentum_change(fighter, delta)
                if applied:
                    events.append(
                        MomentumChangeEvent(turn=turn, fighter_id=fighter.id, delta=applied, momentum=fighter.momentum)
                    )

        pressures = {
            fighter.id: calculate_incapacitation_pressure(
                fighter, state.opponent_of(fighter.id), knockout_score=self._config.knockout_score
            )
            for fighter in state.fighters
        }
        for fighter in state.fighters:
            before = fighter.escalation_state
            path = apply_incapacitation(fighter, pressures[fighter.id], self._config.escalation_thresholds)
            events.extend(escalation_change_events(turn, fighter.id, before, path, fighter.incapacitation_score))
