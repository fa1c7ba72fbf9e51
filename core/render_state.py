"""Immutable render-state contracts for streaming and visualization."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AgentState:
    """Drawable snapshot of one bird."""

    id: int
    position: tuple[float, float]
    velocity: float
    alive: bool
    score: int
    fitness: float
    decisions: int = 0
    last_decision: bool = False


@dataclass(frozen=True)
class PipeState:
    x: float
    top_height: float
    gap: float
    passed: bool = False


@dataclass(frozen=True)
class EnvironmentState:
    """World bounds, legal vertical band, and current pipes."""

    bounds: tuple[float, float]
    pipes: list[PipeState] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderState:
    """Top-level immutable render frame emitted by a training session."""

    generation_index: int
    step_index: int
    agents: list[AgentState]
    environment: EnvironmentState
    metrics: dict[str, float]
    selected_agent_id: int | None
    selected_brain: dict[str, Any] | None
    timestamp: float


def build_render_state(session: Any) -> RenderState:
    """Snapshot a ``TrainingSession`` into a ``RenderState`` frame."""
    population = session.population
    environment = session.environment
    world = environment.export_state()

    agents = [
        AgentState(
            id=int(agent.agent_id),
            position=(float(agent.x), float(agent.y)),
            velocity=float(agent.velocity),
            alive=bool(agent.alive),
            score=int(agent.score),
            fitness=float(agent.fitness),
            decisions=len(agent.decisions),
            last_decision=bool(agent.decisions[-1]) if agent.decisions else False,
        )
        for agent in population.agents
    ]
    pipes = [
        PipeState(
            x=float(pipe["x"]),
            top_height=float(pipe["top_height"]),
            gap=float(pipe["gap"]),
            passed=bool(pipe["passed"]),
        )
        for pipe in world["pipes"]
    ]
    env_state = EnvironmentState(
        bounds=(float(world["bounds"][0]), float(world["bounds"][1])),
        pipes=pipes,
        metadata={
            "min_y": world["min_y"],
            "max_y": world["max_y"],
            "spawn_timer": world["spawn_timer"],
            "paused": bool(session.is_paused),
            "simulation_speed": int(session.simulation_speed),
        },
    )
    stats = population.get_stats().to_dict()
    selected_id = session.selected_agent_id

    return RenderState(
        generation_index=int(population.generation),
        step_index=int(world["tick"]),
        agents=agents,
        environment=env_state,
        metrics={key: float(value) for key, value in stats.items()},
        selected_agent_id=selected_id,
        selected_brain=population.brain_visualization(selected_id) if selected_id is not None else None,
        timestamp=float(time.time()),
    )
