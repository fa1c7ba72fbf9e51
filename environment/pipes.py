"""Shared obstacle stream: spawning, scrolling, and pruning pipes."""

from __future__ import annotations

import logging
import random
from collections.abc import Collection
from dataclasses import dataclass
from typing import Any

from configs.game_config import GameConfig

LOGGER = logging.getLogger(__name__)

# Distance kept between the bottom pipe's top edge and the world floor.
BOTTOM_CLEARANCE = 50.0
# Fraction of the world height the gap top may reach.
MAX_TOP_FRACTION = 0.7
# Offset above ``min_pipe_top`` used when the random range is empty.
FALLBACK_TOP_OFFSET = 50.0


@dataclass
class Pipe:
    """Pipe pair with a gap starting at ``top_height``.

    ``passed`` flips once, when the first bird clears the right edge. Scoring
    is tracked per bird, so the flag is informational only.
    """

    pipe_id: int
    x: float
    top_height: float
    passed: bool = False

    def right_edge(self, width: float) -> float:
        return self.x + width

    def to_dict(self, gap: float) -> dict[str, Any]:
        return {
            "id": int(self.pipe_id),
            "x": float(self.x),
            "top_height": float(self.top_height),
            "gap": float(gap),
            "passed": bool(self.passed),
        }


class PipeStream:
    """Owns the pipe list and spawn timer shared by every bird."""

    def __init__(self, config: GameConfig, rng: random.Random) -> None:
        self.config = config
        self.rng = rng
        self.pipes: list[Pipe] = []
        self.spawn_timer = 0.0
        self._next_pipe_id = 0

    def reset(self) -> None:
        """Clear pipes and the spawn timer. Pipe ids keep increasing."""
        self.pipes = []
        self.spawn_timer = 0.0

    def advance(self, elapsed: float) -> None:
        """Run the spawn timer, then scroll and prune pipes by one tick."""
        self.spawn_timer += elapsed
        if self.spawn_timer >= self.config.pipe_spawn_rate:
            self.spawn_timer = 0.0
            self.spawn()

        shift = self.config.pipe_speed * self.config.game_speed
        for pipe in self.pipes:
            pipe.x -= shift
        self.pipes = [pipe for pipe in self.pipes if pipe.x > -self.config.pipe_width]

    def spawn(self) -> Pipe | None:
        """Append a pipe at the right edge, or skip when the world is too short."""
        top_height = self.choose_top_height()
        if top_height is None:
            return None
        pipe = Pipe(pipe_id=self._next_pipe_id, x=float(self.config.world_width), top_height=top_height)
        self._next_pipe_id += 1
        self.pipes.append(pipe)
        LOGGER.debug("Spawned pipe %d with top height %.1f", pipe.pipe_id, top_height)
        return pipe

    def choose_top_height(self) -> float | None:
        """Sample a gap-top height that keeps both pipe halves on screen.

        Returns ``None`` when the world is below ``min_world_height``; falls
        back to a fixed placement when the sampling range is empty.
        """
        config = self.config
        height = config.world_height
        if height < config.min_world_height:
            LOGGER.warning("World height %.1f is too small, skipping pipe spawn", height)
            return None

        min_top = config.min_pipe_top
        max_top = min(
            height * MAX_TOP_FRACTION - config.pipe_gap - min_top,
            height - config.pipe_gap - BOTTOM_CLEARANCE,
        )
        if max_top <= min_top:
            LOGGER.warning("Invalid pipe dimensions, using fallback placement")
            return float(min_top + FALLBACK_TOP_OFFSET)

        top_height = float(int(self.rng.random() * (max_top - min_top + 1)) + min_top)
        if top_height + config.pipe_gap >= height - BOTTOM_CLEARANCE:
            LOGGER.warning("Pipe gap would leave bottom pipe off-screen, clamping")
            top_height = float(height - config.pipe_gap - BOTTOM_CLEARANCE)
        return top_height

    def next_pipe_for(self, x: float, scored: Collection[int] = ()) -> Pipe | None:
        """First pipe whose right edge is still ahead of ``x`` and not yet scored."""
        for pipe in self.pipes:
            if pipe.right_edge(self.config.pipe_width) > x and pipe.pipe_id not in scored:
                return pipe
        return None

    def to_dicts(self) -> list[dict[str, Any]]:
        return [pipe.to_dict(self.config.pipe_gap) for pipe in self.pipes]
