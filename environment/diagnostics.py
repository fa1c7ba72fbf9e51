"""Periodic sweep that kills birds wedged against the floor."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from agents.bird import BirdAgent
from configs.game_config import GameConfig

LOGGER = logging.getLogger(__name__)

MIN_SAMPLES = 5
FLOOR_STUCK_SAMPLES = 30
FLOOR_PROXIMITY = 50.0
FLOOR_DANGER_ZONE = 20.0
FLOOR_MAX_VARIATION = 5.0
STILL_TOLERANCE = 1e-6
UPWARD_VELOCITY = -1.0


@dataclass(frozen=True)
class StuckKill:
    agent_id: int
    reason: str
    y: float


def _spread(values: Iterable[float]) -> float:
    samples = list(values)
    return max(samples) - min(samples) if samples else 0.0


class StuckAgentDetector:
    """Samples live birds every ``interval`` ticks and kills stuck ones.

    Rules, in order:
      - motionless for ``MIN_SAMPLES`` samples while near the floor;
      - motionless for a full position history anywhere;
      - under ``FLOOR_MAX_VARIATION`` pixels of movement over
        ``FLOOR_STUCK_SAMPLES`` samples while near the floor;
      - inside the floor danger zone with no upward velocity over
        ``MIN_SAMPLES`` velocity samples and under ``FLOOR_MAX_VARIATION``
        pixels of movement over the last ``MIN_SAMPLES`` positions.

    Velocity samples only accumulate inside the danger zone; leaving it
    clears them.
    """

    def __init__(self, config: GameConfig, interval: int | None = None) -> None:
        self.config = config
        self.interval = max(1, int(interval if interval is not None else config.stuck_check_interval))

    def due(self, tick: int) -> bool:
        return tick > 0 and tick % self.interval == 0

    def sweep(self, agents: Sequence[BirdAgent]) -> list[StuckKill]:
        kills: list[StuckKill] = []
        for agent in agents:
            if not agent.alive:
                continue
            reason = self._inspect(agent)
            if reason is None:
                continue
            kills.append(StuckKill(agent_id=agent.agent_id, reason=reason, y=agent.y))
            LOGGER.info("Killing stuck bird %d at y=%.2f (%s)", agent.agent_id, agent.y, reason)
            agent.kill(self.config.dead_y)
        return kills

    def _inspect(self, agent: BirdAgent) -> str | None:
        floor_limit = self.config.max_y
        near_floor = agent.y > floor_limit - FLOOR_PROXIMITY

        history = agent.position_history
        history.append(agent.y)
        if len(history) >= MIN_SAMPLES and _spread(history) <= STILL_TOLERANCE:
            if near_floor:
                return "motionless near floor"
            if history.maxlen is not None and len(history) >= history.maxlen:
                return "motionless"

        if near_floor and len(history) >= FLOOR_STUCK_SAMPLES:
            if _spread(history) < FLOOR_MAX_VARIATION:
                return "barely moving near floor"

        if agent.y < floor_limit - FLOOR_DANGER_ZONE:
            agent.velocity_history.clear()
            return None

        agent.velocity_history.append(agent.velocity)
        recent = list(history)[-MIN_SAMPLES:]
        if (
            len(agent.velocity_history) >= MIN_SAMPLES
            and len(recent) >= MIN_SAMPLES
            and _spread(recent) <= FLOOR_MAX_VARIATION
            and not any(v < UPWARD_VELOCITY for v in agent.velocity_history)
        ):
            return "no upward movement near floor"
        return None
