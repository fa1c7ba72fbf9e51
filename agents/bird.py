"""Bird agent state owned by the population and moved by the stepper."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Any

from agents.base import Agent
from agents.brain import PerceptronBrain
from agents.decision import JUMP_THRESHOLD, WorldView, sense_inputs
from agents.genome import Genome

POSITION_HISTORY_SIZE = 100
VELOCITY_HISTORY_SIZE = 10

# Fitness weights.
SCORE_WEIGHT = 10.0
SURVIVAL_WEIGHT = 0.1
JUMP_PENALTY = 0.05
CENTER_BONUS = 0.5
CENTER_BAND = 200.0


@dataclass
class BirdAgent(Agent):
    """One bird: brain, kinematics, score, and diagnostic histories.

    Once ``alive`` is false the stepper never touches position, velocity, or
    decisions again for the rest of the generation.
    """

    agent_id: int
    brain: PerceptronBrain
    x: float
    y: float
    velocity: float = 0.0
    fitness: float = 0.0
    score: int = 0
    alive: bool = True
    decisions: list[bool] = field(default_factory=list)
    scored_pipes: set[int] = field(default_factory=set)
    position_history: deque[float] = field(
        default_factory=lambda: deque(maxlen=POSITION_HISTORY_SIZE)
    )
    velocity_history: deque[float] = field(
        default_factory=lambda: deque(maxlen=VELOCITY_HISTORY_SIZE)
    )

    @property
    def position(self) -> tuple[float, float]:
        return (self.x, self.y)

    @property
    def jump_count(self) -> int:
        return sum(1 for decision in self.decisions if decision)

    def observe(self, environment_state: Any) -> list[float]:
        if not isinstance(environment_state, WorldView):
            raise TypeError("BirdAgent observes a WorldView.")
        return sense_inputs(self, environment_state)

    def act(self, observation: Any) -> bool:
        """Jump when the brain's first output exceeds 0.5."""
        output = self.brain.activate(observation)
        should_jump = output[0] > JUMP_THRESHOLD
        self.decisions.append(should_jump)
        return should_jump

    def get_genome(self) -> Genome:
        return self.brain

    def kill(self, dead_y: float) -> bool:
        """Mark dead and park off-screen. Returns False if already dead."""
        if not self.alive:
            return False
        self.alive = False
        self.velocity = 0.0
        self.y = float(dead_y)
        return True

    def recompute_fitness(self, ideal_y: float) -> float:
        """Derive fitness from score, survival, jumps, and closeness to ``ideal_y``."""
        fitness = self.score * SCORE_WEIGHT
        fitness += len(self.decisions) * SURVIVAL_WEIGHT
        fitness -= self.jump_count * JUMP_PENALTY
        center_bonus = max(0.0, 1.0 - abs(self.y - ideal_y) / CENTER_BAND)
        fitness += center_bonus * CENTER_BONUS
        self.fitness = max(0.0, fitness)
        return self.fitness

    def to_dict(self) -> dict[str, Any]:
        """Serialize agent state for render/export."""
        return {
            "id": int(self.agent_id),
            "position": [float(self.x), float(self.y)],
            "velocity": float(self.velocity),
            "alive": bool(self.alive),
            "score": int(self.score),
            "fitness": float(self.fitness),
            "decisions": len(self.decisions),
            "last_decision": bool(self.decisions[-1]) if self.decisions else False,
        }
