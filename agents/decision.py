"""Sensory encoding and jump decisions for bird agents."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from environment.pipes import Pipe

if TYPE_CHECKING:
    from agents.bird import BirdAgent

INPUT_COUNT = 5
OUTPUT_COUNT = 1
JUMP_THRESHOLD = 0.5
VELOCITY_SCALE = 10.0

# Inputs used when no pipe lies ahead: max distance, mid-height top and gap.
NO_PIPE_DISTANCE = 1.0
NO_PIPE_TOP = 0.5
NO_PIPE_GAP = 0.5


@dataclass(frozen=True)
class WorldView:
    """Read-only slice of world state one agent perceives on a tick."""

    width: float
    height: float
    pipe_gap: float
    next_pipe: Pipe | None = None


def sense_inputs(agent: "BirdAgent", world: WorldView) -> list[float]:
    """Return the five normalized inputs fed to the agent's brain.

    Order: own height, own vertical velocity, horizontal distance to the next
    pipe, that pipe's gap-top height, and the gap size.
    """
    normalized_y = agent.y / world.height
    normalized_velocity = agent.velocity / VELOCITY_SCALE
    pipe = world.next_pipe
    if pipe is None:
        return [normalized_y, normalized_velocity, NO_PIPE_DISTANCE, NO_PIPE_TOP, NO_PIPE_GAP]
    return [
        normalized_y,
        normalized_velocity,
        (pipe.x - agent.x) / world.width,
        pipe.top_height / world.height,
        world.pipe_gap / world.height,
    ]


def decide(agent: "BirdAgent", world: WorldView) -> bool:
    """Ask the agent's brain whether to jump; records the decision.

    Call at most once per agent per tick.
    """
    return agent.act(agent.observe(world))
