"""Battle service running a full deterministic duel."""
from __future__ import annotations

import logging
import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Mapping

from duelsim.core.config import EngineConfig
from duelsim.core.rng import RNG, InputLog, RecordingRNG, ReplayDivergenceError, ReplayRNG
from duelsim.core.types import OutcomeKind
from duelsim.data.repositories import FightersRepository, InstantRulesRepository, LocationsRepository
from duelsim.domain.battle_models import (
    BattleResult,
    BattleStartEvent,
    BattleState,
    ConclusionEvent,
    EnvironmentState,
    ErrorEvent,
)
from duelsim.domain.defs import InstantRuleDef, LocationDef
from duelsim.domain.entities import Fighter
from duelsim.services.errors import BattleAbortedError, ValidationError, describe_error
from duelsim.services.factories import create_fighter, make_battle_id
from duelsim.services.instant_resolution import InstantResolutionService
from duelsim.services.turn_processor import TurnProcessor

logger = logging.getLogger(__name__)

_MAX_RANDOM_SEED = 2**31 - 1


@dataclass(slots=True)
class StepBudget:
    """Host-imposed limit on how long a battle may run."""

    max_turns: int | None = None
    max_seconds: float | None = None
    _started: float | None = field(default=None, init=False, repr=False)

    def start(self) -> None:
        self._started = time.monotonic()

    def exhausted(self, turns_run: int) -> bool:
        if self.max_turns is not None and turns_run >= self.max_turns:
            return True
        if self.max_seconds is not None and self._started is not None:
            return time.monotonic() - self._started >= self.max_seconds
        return False


@dataclass(slots=True, frozen=True)
class Termination:
    outcome: OutcomeKind
    winner_id: str | None = None
    loser_id: str | None = None

    @property
    def is_draw(self) -> bool:
        return self.outcome in ("double_knockout", "stalemate")


def is_downed(fighter: Fighter, config: EngineConfig) -> bool:
    """A fighter is out once the knockout score is reached or they collapse."""
    return fighter.incapacitation_score >= config.knockout_score or fighter.escalation_state == "Terminal Collapse"


def check_battle_termination(state: BattleState, config: EngineConfig) -> Termination | None:
    """Return the outcome when at least one fighter is down, else None."""
    first_down = is_downed(state.fighter1, config)
    second_down = is_downed(state.fighter2, config)
    if first_down and second_down:
        return Termination("double_knockout")
    if first_down:
        return Termination("decisive", winner_id=state.fighter2.id, loser_id=state.fighter1.id)
    if second_down:
        return Termination("decisive", winner_id=state.fighter1.id, loser_id=state.fighter2.id)
    return None


class BattleService:
    """Runs duels between repository fighters at repository locations."""

    def __init__(
        self,
        fighters_repo: FightersRepository,
        locations_repo: LocationsRepository,
        rules_repo: InstantRulesRepository | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._fighters_repo = fighters_repo
        self._locations_repo = locations_repo
        self._rules_repo = rules_repo
        self._config = config or EngineConfig()

    # -----------------------
    # Entry points
    # -----------------------
    def simulate_battle(
        self,
        fighter1_id: str,
        fighter2_id: str,
        location_id: str,
        config: EngineConfig | None = None,
        *,
        seed: int | None = None,
        budget: StepBudget | None = None,
        debug: bool = False,
        time_limit_ms: float | None = None,
        personality_overrides: Mapping[str, Mapping[str, float]] | None = None,
    ) -> BattleResult:
        """Simulate a recorded battle between two fighters looked up by id."""
        if seed is None:
            seed = secrets.randbelow(_MAX_RANDOM_SEED)
        fighter1, fighter2, location = self._prepare(fighter1_id, fighter2_id, location_id)
        return self.run_battle(
            fighter1,
            fighter2,
            location,
            config or self._config,
            RecordingRNG(seed),
            budget=budget,
            debug=debug,
            time_limit_ms=time_limit_ms,
            personality_overrides=personality_overrides,
        )

    def replay_battle(
        self,
        fighter1_id: str,
        fighter2_id: str,
        location_id: str,
        input_log: InputLog,
        config: EngineConfig | None = None,
        *,
        personality_overrides: Mapping[str, Mapping[str, float]] | None = None,
    ) -> BattleResult:
        """Re-run a battle from its input log. Raises ReplayDivergenceError on mismatch."""
        fighter1, fighter2, location = self._prepare(fighter1_id, fighter2_id, location_id)
        rng = ReplayRNG(input_log)
        result = self.run_battle(
            fighter1,
            fighter2,
            location,
            config or self._config,
            rng,
            personality_overrides=personality_overrides,
        )
        if not rng.exhausted:
            raise ReplayDivergenceError(
                "Replay finished before consuming the whole input log.", turn=result.turn_count
            )
        return result

    def run_battle(
        self,
        fighter1: Fighter,
        fighter2: Fighter,
        location: LocationDef,
        config: EngineConfig,
        rng: RNG,
        *,
        budget: StepBudget | None = None,
        debug: bool = False,
        time_limit_ms: float | None = None,
        personality_overrides: Mapping[str, Mapping[str, float]] | None = None,
    ) -> BattleResult:
        """Run the turn loop until a fighter is down, turns run out or the budget ends."""
        self._validate_setup(fighter1, fighter2, config)
        rng.current_turn = 0
        battle_id = make_battle_id(fighter1.id, fighter2.id, rng)
        state = BattleState(
            battle_id=battle_id,
            fighter1=fighter1,
            fighter2=fighter2,
            environment=EnvironmentState(location_id=location.id),
        )
        state.log.append(
            BattleStartEvent(
                turn=0,
                battle_id=battle_id,
                fighter1_id=fighter1.id,
                fighter2_id=fighter2.id,
                location_id=location.id,
            )
        )
        logger.info("Battle %s started: %s vs %s at %s", battle_id, fighter1.id, fighter2.id, location.id)

        instant = InstantResolutionService(self._rules_for(fighter1.id, fighter2.id), config)
        state.log.extend(
            instant.evaluate(state, [fighter1.id, fighter2.id], location, rng, timing="pre_battle", turn=0)
        )
        processor = TurnProcessor(
            config,
            rng,
            location,
            instant_resolution=instant,
            debug=debug,
            time_limit_ms=time_limit_ms,
            personality_overrides=personality_overrides,
        )
        if budget is not None:
            budget.start()

        termination = check_battle_termination(state, config)
        while termination is None:
            if state.turn >= config.max_turns:
                termination = Termination("stalemate")
                break
            if budget is not None and budget.exhausted(state.turn):
                termination = Termination("terminated")
                break
            turn = state.turn + 1
            try:
                outcome = processor.process_turn(state, turn)
            except ReplayDivergenceError:
                raise
            except Exception as exc:
                state.log.append(ErrorEvent(turn=turn, error=type(exc).__name__, cause=describe_error(exc)))
                logger.error("Battle %s aborted on turn %s: %s", battle_id, turn, exc)
                raise BattleAbortedError(turn, exc, state.log) from exc
            state = outcome.state
            state.log.extend(outcome.events)
            termination = check_battle_termination(state, config)

        return self._conclude(state, termination, location, rng)

    # -----------------------
    # Helpers
    # -----------------------
    def _prepare(self, fighter1_id: str, fighter2_id: str, location_id: str) -> tuple[Fighter, Fighter, LocationDef]:
        if fighter1_id == fighter2_id:
            raise ValidationError(f"A fighter cannot duel itself ('{fighter1_id}').")
        fighter1 = create_fighter(fighter1_id, self._fighters_repo)
        fighter2 = create_fighter(fighter2_id, self._fighters_repo)
        try:
            location = self._locations_repo.get(location_id)
        except KeyError as exc:
            raise ValidationError(f"Location '{location_id}' not found.") from exc
        return fighter1, fighter2, location

    @staticmethod
    def _validate_setup(fighter1: Fighter, fighter2: Fighter, config: EngineConfig) -> None:
        try:
            config.validate()
        except ValueError as exc:
            raise ValidationError(f"Invalid engine config: {exc}") from exc
        if fighter1.id == fighter2.id:
            raise ValidationError(f"A fighter cannot duel itself ('{fighter1.id}').")
        for fighter in (fighter1, fighter2):
            if not fighter.moves:
                raise ValidationError(f"Fighter '{fighter.id}' has no moves.")
            if not 0 < fighter.hp <= fighter.max_hp:
                raise ValidationError(f"Fighter '{fighter.id}' must start with hp in (0, {fighter.max_hp}].")

    def _rules_for(self, *fighter_ids: str) -> List[InstantRuleDef]:
        if self._rules_repo is None:
            return []
        rules: List[InstantRuleDef] = []
        for fighter_id in fighter_ids:
            rules.extend(self._rules_repo.for_owner(fighter_id))
        return rules

    @staticmethod
    def _conclude(state: BattleState, termination: Termination, location: LocationDef, rng: RNG) -> BattleResult:
        state.log.append(
            ConclusionEvent(
                turn=state.turn,
                outcome=termination.outcome,
                winner_id=termination.winner_id,
                loser_id=termination.loser_id,
                is_draw=termination.is_draw,
            )
        )
        metadata = {
            "battle_id": state.battle_id,
            "seed": rng.seed,
            "stalemate": termination.outcome == "stalemate",
            "terminated": termination.outcome == "terminated",
            "final_phase": state.phase_state.current_phase,
            "scores": {fighter.id: fighter.incapacitation_score for fighter in state.fighters},
        }
        logger.info(
            "Battle %s ended after %s turns: %s (winner=%s)",
            state.battle_id,
            state.turn,
            termination.outcome,
            termination.winner_id,
        )
        input_log = rng.log.to_dict() if isinstance(rng, RecordingRNG) else None
        return BattleResult(
            winner_id=termination.winner_id,
            loser_id=termination.loser_id,
            is_draw=termination.is_draw,
            outcome=termination.outcome,
            turn_count=state.turn,
            final_state=state,
            log=tuple(state.log),
            location_id=location.id,
            timestamp=datetime.now(timezone.utc).isoformat(),
            metadata=metadata,
            input_log=input_log,
        )
