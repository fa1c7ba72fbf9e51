"""Axis-aligned hitboxes for birds and pipes."""

from __future__ import annotations

from typing import NamedTuple

from configs.game_config import GameConfig
from environment.pipes import Pipe


class Rect(NamedTuple):
    left: float
    right: float
    top: float
    bottom: float

    def overlaps(self, other: "Rect") -> bool:
        """Strict overlap; touching edges do not collide."""
        return (
            self.left < other.right
            and self.right > other.left
            and self.top < other.bottom
            and self.bottom > other.top
        )


def bird_rect(x: float, y: float, size: float) -> Rect:
    half = size / 2.0
    return Rect(left=x - half, right=x + half, top=y - half, bottom=y + half)


def pipe_rects(pipe: Pipe, config: GameConfig) -> tuple[Rect, Rect]:
    """Return the (top, bottom) rectangles of a pipe pair."""
    left = pipe.x
    right = pipe.x + config.pipe_width
    top_rect = Rect(left=left, right=right, top=0.0, bottom=pipe.top_height)
    bottom_rect = Rect(
        left=left,
        right=right,
        top=pipe.top_height + config.pipe_gap,
        bottom=config.world_height,
    )
    return top_rect, bottom_rect


def hits_any_pipe(x: float, y: float, pipes: list[Pipe], config: GameConfig) -> Pipe | None:
    """Return the first pipe the bird hitbox at ``(x, y)`` overlaps."""
    hitbox = bird_rect(x, y, config.bird_size)
    for pipe in pipes:
        top_rect, bottom_rect = pipe_rects(pipe, config)
        if hitbox.overlaps(top_rect) or hitbox.overlaps(bottom_rect):
            return pipe
    return None
