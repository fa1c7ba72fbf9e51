"""Fixed-timestep stepper for a population of birds on one pipe stream."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Sequence

from agents.bird import BirdAgent
from agents.decision import WorldView, decide
from configs.game_config import GameConfig
from environment.base import Environment
from environment.collision import hits_any_pipe
from environment.diagnostics import StuckAgentDetector
from environment.pipes import Pipe, PipeStream

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class StepOutcome:
    """Result of one stepper tick.

    ``generation_complete`` is true only when the tick found no live bird;
    in that case nothing else was advanced.
    """

    generation_complete: bool
    tick: int
    alive_count: int
    deaths: tuple[int, ...] = field(default_factory=tuple)


class FlappyEnvironment(Environment):
    """Moves pipes and birds, resolves deaths, and scores passed pipes.

    Per live bird and tick: boundary check, pipe collision, gravity with
    velocity clamp, move, boundary and collision re-check, scoring, brain
    decision, fitness update. Birds never interact with each other, so the
    order of the per-bird loop does not affect outcomes.
    """

    def __init__(self, config: GameConfig, rng: random.Random) -> None:
        self.config = config
        self.rng = rng
        self.pipe_stream = PipeStream(config, rng)
        self.detector = StuckAgentDetector(config)
        self.tick = 0
        self._deaths: list[int] = []

    @property
    def pipes(self) -> list[Pipe]:
        return self.pipe_stream.pipes

    def reset(self) -> None:
        self.pipe_stream.reset()
        self.tick = 0

    def step(self, agents: Sequence[BirdAgent], elapsed: float) -> StepOutcome:
        alive_count = sum(1 for agent in agents if agent.alive)
        if agents and alive_count == 0:
            return StepOutcome(generation_complete=True, tick=self.tick, alive_count=0)

        self.tick += 1
        self._deaths = []
        self.pipe_stream.advance(elapsed)

        next_pipes = {
            agent.agent_id: self.pipe_stream.next_pipe_for(agent.x, agent.scored_pipes)
            for agent in agents
            if agent.alive
        }
        for agent in agents:
            if agent.alive:
                self._update_agent(agent, next_pipes.get(agent.agent_id))

        if self.detector.due(self.tick):
            for kill in self.detector.sweep(agents):
                self._deaths.append(kill.agent_id)

        return StepOutcome(
            generation_complete=False,
            tick=self.tick,
            alive_count=sum(1 for agent in agents if agent.alive),
            deaths=tuple(self._deaths),
        )

    def observe(self, agent: BirdAgent) -> WorldView:
        return self._world_view(self.pipe_stream.next_pipe_for(agent.x, agent.scored_pipes))

    def out_of_bounds(self, y: float) -> bool:
        return y < self.config.min_y or y > self.config.max_y

    def kill_all(self, agents: Sequence[BirdAgent]) -> int:
        """Kill every live bird; returns how many died."""
        killed = 0
        for agent in agents:
            if agent.kill(self.config.dead_y):
                killed += 1
        return killed

    def export_state(self) -> dict[str, Any]:
        return {
            "tick": int(self.tick),
            "spawn_timer": float(self.pipe_stream.spawn_timer),
            "pipes": self.pipe_stream.to_dicts(),
            "bounds": [float(self.config.world_width), float(self.config.world_height)],
            "min_y": float(self.config.min_y),
            "max_y": float(self.config.max_y),
        }

    def _update_agent(self, agent: BirdAgent, next_pipe: Pipe | None) -> None:
        config = self.config

        if self.out_of_bounds(agent.y):
            self._kill(agent, "outside vertical bounds")
            return
        if hits_any_pipe(agent.x, agent.y, self.pipes, config) is not None:
            self._kill(agent, "hit pipe")
            return

        agent.velocity = max(config.min_velocity, min(config.max_velocity, agent.velocity + config.gravity))
        agent.y += agent.velocity

        if self.out_of_bounds(agent.y):
            self._kill(agent, "moved outside vertical bounds")
            return
        if hits_any_pipe(agent.x, agent.y, self.pipes, config) is not None:
            self._kill(agent, "hit pipe after moving")
            return

        for pipe in self.pipes:
            if pipe.pipe_id in agent.scored_pipes:
                continue
            if agent.x > pipe.right_edge(config.pipe_width):
                agent.scored_pipes.add(pipe.pipe_id)
                agent.score += 1
                pipe.passed = True

        if decide(agent, self._world_view(next_pipe)):
            if agent.y + config.jump_force >= config.min_y + config.jump_ceiling_buffer:
                agent.velocity = config.jump_force
            else:
                LOGGER.debug("Bird %d prevented from jumping into the ceiling", agent.agent_id)

        agent.recompute_fitness(config.bird_y)

    def _kill(self, agent: BirdAgent, reason: str) -> None:
        y = agent.y
        if agent.kill(self.config.dead_y):
            self._deaths.append(agent.agent_id)
            LOGGER.debug("Bird %d died at y=%.2f: %s", agent.agent_id, y, reason)

    def _world_view(self, next_pipe: Pipe | None) -> WorldView:
        return WorldView(
            width=self.config.world_width,
            height=self.config.world_height,
            pipe_gap=self.config.pipe_gap,
            next_pipe=next_pipe,
        )
