"""Static matchup odds computed from fighter and location definitions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from duelsim.core.config import EngineConfig, WinFormula
from duelsim.core.rng import RNG
from duelsim.data.repositories import FightersRepository, LocationsRepository
from duelsim.domain.anti_repetition import AntiRepetitionTracker
from duelsim.domain.defs import FighterDef, LocationDef
from duelsim.services.errors import ValidationError

logger = logging.getLogger(__name__)

BASE_SCORE = 50.0
TERRAIN_MODIFIER = 10.0
NOISE_RANGE = (-5.0, 5.0)
MIN_SCORE = 1.0

STRATEGIST_ROLES = ("tactician", "mentor_strategist")
MORALE_TONES = ("reluctant", "pacifistic")
EMOTIONAL_BOND_STRENGTH = 0.6


@dataclass(slots=True)
class WinProbability:
    """Predicted outcome of a matchup. Probabilities are whole percentages.

    ``outcome_reasons`` covers both fighters; each entry is ``"<fighter_id>:<code>"``.
    """

    winner_id: str
    loser_id: str
    win_prob: int
    f1_prob: int
    f2_prob: int
    victory_type: str
    resolution_tone: str
    outcome_reasons: List[str] = field(default_factory=list)
    scores: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {
            "winner_id": self.winner_id,
            "loser_id": self.loser_id,
            "win_prob": self.win_prob,
            "f1_prob": self.f1_prob,
            "f2_prob": self.f2_prob,
            "victory_type": self.victory_type,
            "resolution_tone": self.resolution_tone,
            "outcome_reasons": list(self.outcome_reasons),
            "scores": dict(self.scores),
        }


def tier_modifier(gap: int, formula: WinFormula = "quadratic") -> float:
    """Score bonus for a power-tier gap; the sign follows the gap."""
    if formula == "linear":
        return gap * 5.0
    sign = 1 if gap > 0 else -1 if gap < 0 else 0
    return sign * (abs(gap) * 5.0 + gap * gap)


def calculate_win_probability(
    fighter1: FighterDef,
    fighter2: FighterDef,
    location: LocationDef,
    rng: RNG,
    formula: WinFormula = "quadratic",
) -> WinProbability:
    """Estimate who wins the matchup at ``location`` and how."""
    tracker = AntiRepetitionTracker()
    reasons: List[str] = []

    def note(fighter_id: str, code: str) -> None:
        if tracker.claim(fighter_id, code):
            reasons.append(f"{fighter_id}:{code}")

    scores = {fighter1.id: BASE_SCORE, fighter2.id: BASE_SCORE}

    gap = fighter1.power_tier - fighter2.power_tier
    modifier = tier_modifier(gap, formula)
    scores[fighter1.id] += modifier
    scores[fighter2.id] -= modifier
    if gap:
        higher, lower = (fighter1, fighter2) if gap > 0 else (fighter2, fighter1)
        note(higher.id, "power_tier_advantage")
        note(lower.id, "power_tier_disadvantage")

    for fighter, opponent in ((fighter1, fighter2), (fighter2, fighter1)):
        relationship = fighter.relationships.get(opponent.id)
        if relationship is not None and relationship.win_modifier:
            scores[fighter.id] += relationship.win_modifier
            scores[opponent.id] -= relationship.win_modifier
            label = relationship.reason or relationship.relationship_type
            note(fighter.id, f"relationship:{label}")
            note(opponent.id, f"faced_relationship:{label}")

    for fighter in (fighter1, fighter2):
        for tag in location.terrain_tags:
            if tag in fighter.strengths:
                scores[fighter.id] += TERRAIN_MODIFIER
                note(fighter.id, f"terrain_strength:{tag}")
            if tag in fighter.weaknesses:
                scores[fighter.id] -= TERRAIN_MODIFIER
                note(fighter.id, f"terrain_weakness:{tag}")

    for fighter in (fighter1, fighter2):
        scores[fighter.id] = max(MIN_SCORE, scores[fighter.id] + rng.uniform(*NOISE_RANGE))

    f1_score, f2_score = scores[fighter1.id], scores[fighter2.id]
    f1_prob = round(100 * f1_score / (f1_score + f2_score))
    f2_prob = 100 - f1_prob
    winner, loser = (fighter1, fighter2) if f1_prob >= 50 else (fighter2, fighter1)
    win_prob = max(f1_prob, f2_prob)

    victory_type = determine_victory_type(winner, loser, win_prob)
    tone = determine_resolution_tone(winner, loser, victory_type, win_prob)
    result = WinProbability(
        winner_id=winner.id,
        loser_id=loser.id,
        win_prob=win_prob,
        f1_prob=f1_prob,
        f2_prob=f2_prob,
        victory_type=victory_type,
        resolution_tone=tone,
        outcome_reasons=reasons,
        scores={fighter_id: round(score, 2) for fighter_id, score in scores.items()},
    )
    logger.debug(
        "Odds %s vs %s at %s: %s/%s (%s)", fighter1.id, fighter2.id, location.id, f1_prob, f2_prob, victory_type
    )
    return result


def determine_victory_type(winner: FighterDef, loser: FighterDef, win_prob: int) -> str:
    """First matching rule wins."""
    if "Chi-Blocking" in winner.fighting_styles and loser.fighter_type == "bender":
        return "disabling_strike"
    if win_prob >= 90:
        return "overwhelm"
    if winner.role in STRATEGIST_ROLES:
        return "outsmart"
    if winner.role == "tank_disabler":
        return "terrain_kill"
    if any(tone in MORALE_TONES for tone in winner.tone):
        return "morale_break"
    return "overwhelm"


def determine_resolution_tone(winner: FighterDef, loser: FighterDef, victory_type: str, win_prob: int) -> str:
    relationship = winner.relationships.get(loser.id)
    bond = relationship.strength if relationship is not None else 0.0
    if victory_type == "morale_break" and bond >= EMOTIONAL_BOND_STRENGTH:
        return "emotional_yield"
    if victory_type == "overwhelm" and win_prob >= 85:
        return "overwhelming_power"
    if victory_type == "outsmart":
        return "clever_victory"
    return "technical_win"


class WinProbabilityService:
    """Looks fighters and locations up by id and computes matchup odds."""

    def __init__(
        self,
        fighters_repo: FightersRepository,
        locations_repo: LocationsRepository,
        rng: RNG,
        config: EngineConfig | None = None,
    ) -> None:
        self._fighters_repo = fighters_repo
        self._locations_repo = locations_repo
        self._rng = rng
        self._config = config or EngineConfig()

    def calculate(self, fighter1_id: str, fighter2_id: str, location_id: str) -> WinProbability:
        fighter1, fighter2, location = self._lookup(fighter1_id, fighter2_id, location_id)
        return calculate_win_probability(
            fighter1, fighter2, location, self._rng, self._config.win_probability_formula
        )

    def _lookup(self, fighter1_id: str, fighter2_id: str, location_id: str) -> Tuple[FighterDef, FighterDef, LocationDef]:
        if fighter1_id == fighter2_id:
            raise ValidationError(f"A fighter cannot duel itself ('{fighter1_id}').")
        try:
            return (
                self._fighters_repo.get(fighter1_id),
                self._fighters_repo.get(fighter2_id),
                self._locations_repo.get(location_id),
            )
        except KeyError as exc:
            raise ValidationError(f"Unknown id {exc}.") from exc
