"""Generation bookkeeping for a population of bird agents."""

from __future__ import annotations

import copy
import logging
import random
from dataclasses import asdict, dataclass
from typing import Any

from agents.bird import BirdAgent
from agents.brain import PerceptronBrain
from agents.decision import INPUT_COUNT, OUTPUT_COUNT
from evolution.ga import GeneticEvolutionStrategy

LOGGER = logging.getLogger(__name__)

DEFAULT_POPULATION_SIZE = 50


@dataclass(frozen=True)
class PopulationStats:
    """Aggregate snapshot of the current generation."""

    generation: int
    max_fitness: float
    average_fitness: float
    best_score: int
    population_size: int
    alive_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class PopulationManager:
    """Owns the agents of one generation and breeds the next.

    The manager never touches world state. After ``evolve`` returns, the
    caller must clear the pipe stream and spawn timer before the next tick.
    """

    def __init__(
        self,
        population_size: int = DEFAULT_POPULATION_SIZE,
        rng: random.Random | None = None,
        strategy: GeneticEvolutionStrategy | None = None,
        spawn: tuple[float, float] = (50.0, 200.0),
        input_count: int = INPUT_COUNT,
        output_count: int = OUTPUT_COUNT,
    ) -> None:
        self.rng = rng or random.Random(0)
        self.strategy = strategy or GeneticEvolutionStrategy()
        self.spawn = (float(spawn[0]), float(spawn[1]))
        self.input_count = int(input_count)
        self.output_count = int(output_count)
        self.population_size = 0
        self.generation = 0
        self.agents: list[BirdAgent] = []
        self.best_agent: BirdAgent | None = None
        self.create_initial_population(population_size)

    def create_initial_population(self, size: int | None = None) -> None:
        """Replace the population with ``size`` freshly randomized agents at generation 0."""
        population_size = int(size if size is not None else self.population_size)
        if population_size <= 0:
            raise ValueError("population_size must be > 0")
        self.population_size = population_size
        self.generation = 0
        self.agents = [
            self._spawn_agent(index, PerceptronBrain.create(self.input_count, self.output_count, self.rng))
            for index in range(population_size)
        ]

    def alive_count(self) -> int:
        return sum(1 for agent in self.agents if agent.alive)

    def get_agent(self, agent_id: int) -> BirdAgent | None:
        for agent in self.agents:
            if agent.agent_id == agent_id:
                return agent
        return None

    def evolve(self) -> int:
        """Breed the next generation and return its index."""
        if not self.agents:
            raise ValueError("Cannot evolve an empty population.")

        fitness = [agent.fitness for agent in self.agents]
        leader = max(self.agents, key=lambda agent: agent.fitness)
        if self.best_agent is None or leader.fitness > self.best_agent.fitness:
            self.best_agent = copy.deepcopy(leader)

        genomes = self.strategy.evolve(self.agents, fitness, self.rng)
        if len(genomes) != self.population_size:
            raise ValueError("Evolution strategy must preserve population size.")

        self.agents = [self._spawn_agent(index, genome) for index, genome in enumerate(genomes)]
        self.generation += 1
        LOGGER.info(
            "Evolution complete - generation %d (previous max fitness %.2f)",
            self.generation,
            max(fitness),
        )
        return self.generation

    def force_evolution(self) -> int:
        """Kill every live agent and evolve immediately."""
        LOGGER.info("Force evolving generation %d", self.generation)
        for agent in self.agents:
            if agent.alive:
                agent.alive = False
        return self.evolve()

    def reset(self) -> None:
        self.best_agent = None
        self.create_initial_population(self.population_size)

    def get_stats(self) -> PopulationStats:
        """Recompute aggregate stats from the live agent list."""
        total_fitness = sum(agent.fitness for agent in self.agents)
        return PopulationStats(
            generation=self.generation,
            max_fitness=max([agent.fitness for agent in self.agents] + [0.0]),
            average_fitness=total_fitness / self.population_size if self.population_size else 0.0,
            best_score=max([agent.score for agent in self.agents] + [0]),
            population_size=self.population_size,
            alive_count=self.alive_count(),
        )

    def diversity(self) -> float:
        """Mean pairwise brain distance across the population."""
        if len(self.agents) < 2:
            return 0.0
        brains = [agent.brain for agent in self.agents]
        total = 0.0
        pairs = 0
        for i in range(len(brains)):
            for j in range(i + 1, len(brains)):
                total += brains[i].distance(brains[j])
                pairs += 1
        return total / pairs

    def brain_visualization(self, agent_id: int) -> dict[str, Any] | None:
        agent = self.get_agent(agent_id)
        if agent is None:
            return None
        return agent.brain.to_graph()

    def _spawn_agent(self, index: int, genome: Any) -> BirdAgent:
        if not isinstance(genome, PerceptronBrain):
            raise TypeError("Population genomes must be PerceptronBrain instances.")
        x, y = self.spawn
        return BirdAgent(agent_id=index, brain=genome, x=x, y=y)
