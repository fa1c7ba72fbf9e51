"""Configuration loading and validation utilities for training runs."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from configs.game_config import DIFFICULTY_PRESETS, GameConfig, preset


_REQUIRED_KEYS: tuple[str, ...] = (
    "population_size",
    "generations",
    "mutation_rate",
    "seed",
)

_OPTIONAL_DEFAULTS: dict[str, Any] = {
    "difficulty": "medium",
    "crossover_rate": 0.7,
    "elite_fraction": 0.1,
    "tournament_size": 3,
    "simulation_speed": 1,
    "frame_delta_ms": 1000.0 / 60.0,
    "max_frames_per_generation": None,
}


class ConfigValidationError(ValueError):
    """Raised when a configuration payload is missing keys or holds bad values."""


@dataclass(frozen=True)
class TrainingConfig:
    """Validated training configuration container.

    Required keys are the population and evolution knobs plus the seed.
    World parameters come from the ``difficulty`` preset with optional
    per-field ``game`` overrides on top.
    """

    population_size: int
    generations: int
    mutation_rate: float
    seed: int
    difficulty: str = "medium"
    crossover_rate: float = 0.7
    elite_fraction: float = 0.1
    tournament_size: int = 3
    simulation_speed: int = 1
    frame_delta_ms: float = 1000.0 / 60.0
    max_frames_per_generation: int | None = None
    game: dict[str, Any] = field(default_factory=dict)
    extras: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a configuration value by key.

        Args:
            key: Configuration key name.
            default: Value to return if key does not exist.

        Returns:
            Value associated with ``key`` or ``default``.
        """
        if hasattr(self, key):
            return getattr(self, key)
        return self.extras.get(key, default)

    def game_config(self) -> GameConfig:
        """Resolve the difficulty preset with ``game`` overrides applied."""
        return preset(self.difficulty, **self.game)

    def to_dict(self) -> dict[str, Any]:
        """Return a full dictionary view of the configuration."""
        payload = {
            "population_size": self.population_size,
            "generations": self.generations,
            "mutation_rate": self.mutation_rate,
            "seed": self.seed,
            "difficulty": self.difficulty,
            "crossover_rate": self.crossover_rate,
            "elite_fraction": self.elite_fraction,
            "tournament_size": self.tournament_size,
            "simulation_speed": self.simulation_speed,
            "frame_delta_ms": self.frame_delta_ms,
            "max_frames_per_generation": self.max_frames_per_generation,
            "game": dict(self.game),
        }
        payload.update(self.extras)
        return payload


class ConfigLoader:
    """Load and validate training configuration files (YAML or JSON)."""

    @staticmethod
    def load(path: str | Path) -> TrainingConfig:
        """Load a single training config from ``path``.

        Args:
            path: Path to a YAML or JSON config file.

        Returns:
            A validated ``TrainingConfig`` instance.
        """
        payload = _read_config_payload(path)
        if not isinstance(payload, Mapping):
            raise ConfigValidationError("Single config file must contain a mapping object.")
        return validate_config(payload)

    @staticmethod
    def load_many(path: str | Path) -> list[TrainingConfig]:
        """Load one or many training configs from ``path``.

        Supports:
            - top-level mapping for single run
            - top-level list of mappings
            - top-level mapping with an ``experiments`` list
        """
        payload = _read_config_payload(path)

        if isinstance(payload, list):
            return [validate_config(item) for item in payload]

        if isinstance(payload, Mapping) and "experiments" in payload:
            experiments = payload["experiments"]
            if not isinstance(experiments, list):
                raise ConfigValidationError("'experiments' must be a list of mappings.")
            return [validate_config(item) for item in experiments]

        if isinstance(payload, Mapping):
            return [validate_config(payload)]

        raise ConfigValidationError("Unsupported config file structure.")


def _read_config_payload(path: str | Path) -> Any:
    """Read raw config payload from JSON or YAML file."""
    config_path = Path(path)
    suffix = config_path.suffix.lower()
    content = config_path.read_text(encoding="utf-8")

    if suffix == ".json":
        return json.loads(content)

    if suffix in {".yaml", ".yml"}:
        return yaml.safe_load(content)

    raise ConfigValidationError(f"Unsupported config extension: {suffix}")


def validate_config(payload: Any) -> TrainingConfig:
    """Validate raw mapping and build ``TrainingConfig``."""
    if not isinstance(payload, Mapping):
        raise ConfigValidationError("Each experiment entry must be a mapping.")

    missing = [key for key in _REQUIRED_KEYS if key not in payload]
    if missing:
        raise ConfigValidationError(f"Missing required config keys: {', '.join(missing)}")

    values = dict(_OPTIONAL_DEFAULTS)
    values.update({key: payload[key] for key in _OPTIONAL_DEFAULTS if key in payload})

    try:
        population_size = int(payload["population_size"])
        generations = int(payload["generations"])
        mutation_rate = float(payload["mutation_rate"])
        seed = int(payload["seed"])
        crossover_rate = float(values["crossover_rate"])
        elite_fraction = float(values["elite_fraction"])
        tournament_size = int(values["tournament_size"])
        simulation_speed = int(values["simulation_speed"])
        frame_delta_ms = float(values["frame_delta_ms"])
        max_frames = values["max_frames_per_generation"]
        max_frames_per_generation = int(max_frames) if max_frames is not None else None
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Invalid config value: {exc}") from exc

    difficulty = str(values["difficulty"])

    if population_size <= 0:
        raise ConfigValidationError("population_size must be > 0")
    if generations < 0:
        raise ConfigValidationError("generations must be >= 0")
    if not 0.0 <= mutation_rate <= 1.0:
        raise ConfigValidationError("mutation_rate must be in [0.0, 1.0]")
    if not 0.0 <= crossover_rate <= 1.0:
        raise ConfigValidationError("crossover_rate must be in [0.0, 1.0]")
    if not 0.0 <= elite_fraction <= 1.0:
        raise ConfigValidationError("elite_fraction must be in [0.0, 1.0]")
    if tournament_size < 1:
        raise ConfigValidationError("tournament_size must be >= 1")
    if simulation_speed < 1:
        raise ConfigValidationError("simulation_speed must be >= 1")
    if frame_delta_ms <= 0.0:
        raise ConfigValidationError("frame_delta_ms must be > 0")
    if max_frames_per_generation is not None and max_frames_per_generation <= 0:
        raise ConfigValidationError("max_frames_per_generation must be > 0")
    if difficulty not in DIFFICULTY_PRESETS:
        available = ", ".join(sorted(DIFFICULTY_PRESETS))
        raise ConfigValidationError(f"difficulty must be one of: {available}")

    game = payload.get("game") or {}
    if not isinstance(game, Mapping):
        raise ConfigValidationError("game must be a mapping of world parameter overrides")
    game = dict(game)
    try:
        preset(difficulty, **game)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"Invalid game overrides: {exc}") from exc

    known = set(_REQUIRED_KEYS) | set(_OPTIONAL_DEFAULTS) | {"game"}
    extras = {k: v for k, v in payload.items() if k not in known}

    return TrainingConfig(
        population_size=population_size,
        generations=generations,
        mutation_rate=mutation_rate,
        seed=seed,
        difficulty=difficulty,
        crossover_rate=crossover_rate,
        elite_fraction=elite_fraction,
        tournament_size=tournament_size,
        simulation_speed=simulation_speed,
        frame_delta_ms=frame_delta_ms,
        max_frames_per_generation=max_frames_per_generation,
        game=game,
        extras=extras,
    )
