"""World and physics parameters plus difficulty presets."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class GameConfig:
    """Immutable physics, world, and obstacle parameters.

    Units are pixels per tick for speeds, pixels for sizes, and milliseconds
    for ``pipe_spawn_rate``. The legal vertical range for a live bird is
    ``[ceiling_margin, world_height - floor_margin]``.
    """

    gravity: float = 0.5
    bird_size: float = 30.0
    bird_x: float = 50.0
    bird_y: float = 200.0
    jump_force: float = -10.0
    pipe_width: float = 60.0
    pipe_gap: float = 150.0
    pipe_speed: float = 2.0
    pipe_spawn_rate: float = 1500.0
    game_speed: float = 1.0
    world_width: float = 600.0
    world_height: float = 400.0
    ceiling_margin: float = 50.0
    floor_margin: float = 70.0
    min_velocity: float = -8.0
    max_velocity: float = 6.0
    min_pipe_top: float = 50.0
    min_world_height: float = 200.0
    jump_ceiling_buffer: float = 20.0
    dead_y: float = -1000.0
    stuck_check_interval: int = 20

    @property
    def min_y(self) -> float:
        return self.ceiling_margin

    @property
    def max_y(self) -> float:
        return self.world_height - self.floor_margin

    def with_overrides(self, overrides: Mapping[str, Any]) -> "GameConfig":
        """Return a copy with ``overrides`` applied, rejecting unknown keys."""
        known = {f.name: f for f in dataclasses.fields(self)}
        unknown = sorted(key for key in overrides if key not in known)
        if unknown:
            raise ValueError(f"Unknown game config field(s): {unknown}")
        coerced: dict[str, Any] = {}
        for key, value in overrides.items():
            coerced[key] = int(value) if known[key].type in ("int", int) else float(value)
        return dataclasses.replace(self, **coerced)

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


DEFAULT_GAME_CONFIG = GameConfig()

# Overrides applied on top of the defaults for each difficulty level.
DIFFICULTY_PRESETS: dict[str, dict[str, float]] = {
    "easy": {
        "gravity": 0.3,
        "pipe_gap": 180.0,
        "pipe_speed": 1.5,
        "pipe_spawn_rate": 2000.0,
        "game_speed": 0.8,
    },
    "medium": {},
    "hard": {
        "gravity": 0.7,
        "pipe_gap": 120.0,
        "pipe_speed": 3.0,
        "pipe_spawn_rate": 1200.0,
        "game_speed": 1.2,
    },
}


def preset(name: str, **overrides: Any) -> GameConfig:
    """Build a ``GameConfig`` for difficulty ``name`` with extra overrides."""
    if name not in DIFFICULTY_PRESETS:
        available = ", ".join(sorted(DIFFICULTY_PRESETS))
        raise KeyError(f"Unknown difficulty '{name}'. Available presets: {available}")
    merged = dict(DIFFICULTY_PRESETS[name])
    merged.update(overrides)
    return DEFAULT_GAME_CONFIG.with_overrides(merged)
