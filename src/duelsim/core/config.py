"""Engine configuration and JSON persistence helpers."""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Literal, Tuple

logger = logging.getLogger(__name__)

WinFormula = Literal["quadratic", "linear"]
_WIN_FORMULAS = ("quadratic", "linear")


@dataclass(slots=True)
class EngineConfig:
    """Tunable constants for a battle run. Every field has a default."""

    max_turns: int = 50
    opening_turn_limit: int = 2
    mid_phase_turn: int = 10
    late_phase_turn: int = 20
    pressured_threshold: float = 4.0
    severe_threshold: float = 8.0
    terminal_threshold: float = 11.0
    knockout_score: float = 100.0
    min_energy_for_action: int = 10
    energy_regen: int = 5
    min_confidence: float = 0.3
    win_probability_formula: WinFormula = "quadratic"

    @property
    def escalation_thresholds(self) -> Tuple[float, float, float]:
        return (self.pressured_threshold, self.severe_threshold, self.terminal_threshold)

    def validate(self) -> None:
        """Raise ValueError when the configuration cannot drive a battle."""
        if self.max_turns < 1:
            raise ValueError("max_turns must be >= 1.")
        if not 0 < self.opening_turn_limit <= self.mid_phase_turn <= self.late_phase_turn:
            raise ValueError("phase turn thresholds must be positive and ascending.")
        if not 0 < self.pressured_threshold < self.severe_threshold < self.terminal_threshold:
            raise ValueError("escalation thresholds must be positive and strictly ascending.")
        if self.knockout_score < self.terminal_threshold:
            raise ValueError("knockout_score must not be below the terminal threshold.")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise ValueError("min_confidence must lie in [0, 1].")
        if self.win_probability_formula not in _WIN_FORMULAS:
            raise ValueError(f"win_probability_formula must be one of {list(_WIN_FORMULAS)}.")

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


def config_from_dict(raw: dict[str, object]) -> EngineConfig:
    """Build a config from a mapping, ignoring unknown keys and bad values."""
    config = EngineConfig()
    for config_field in fields(EngineConfig):
        if config_field.name not in raw:
            continue
        value = raw[config_field.name]
        default = getattr(config, config_field.name)
        if isinstance(default, str):
            if value in _WIN_FORMULAS:
                setattr(config, config_field.name, value)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.warning("Ignoring non-numeric config value for %s: %r", config_field.name, value)
            continue
        setattr(config, config_field.name, type(default)(value))
    config.validate()
    return config


def load_engine_config(path: Path | str | None = None) -> EngineConfig:
    """Load config from disk or return defaults."""
    if path is None:
        return EngineConfig()
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.info("Engine config %s not found, using defaults", config_path)
        return EngineConfig()
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Unreadable engine config %s (%s), using defaults", config_path, exc)
        return EngineConfig()
    if not isinstance(raw, dict):
        return EngineConfig()
    return config_from_dict(raw)


def save_engine_config(config: EngineConfig, path: Path | str) -> None:
    """Persist config to disk."""
    config_path = Path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(json.dumps(config.to_dict(), indent=2, sort_keys=True), encoding="utf-8")
