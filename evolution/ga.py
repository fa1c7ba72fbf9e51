"""Elitist genetic algorithm with tournament selection."""

from __future__ import annotations

import copy
import math
import random
from typing import Sequence

from agents.base import Agent
from agents.genome import Genome
from evolution.base import EvolutionStrategy


class GeneticEvolutionStrategy(EvolutionStrategy):
    """Elitism, then tournament-selected parents bred by crossover or cloning.

    The top ``max(1, floor(elite_fraction * n))`` genomes are copied
    unchanged. Every remaining slot draws two parents by independent
    tournaments; with probability ``crossover_rate`` the child is a uniform
    crossover of both, otherwise a mutated clone of the first parent.
    """

    def __init__(
        self,
        mutation_rate: float = 0.3,
        crossover_rate: float = 0.7,
        elite_fraction: float = 0.1,
        tournament_size: int = 3,
    ) -> None:
        if not 0.0 <= mutation_rate <= 1.0:
            raise ValueError("mutation_rate must be in [0.0, 1.0]")
        if not 0.0 <= crossover_rate <= 1.0:
            raise ValueError("crossover_rate must be in [0.0, 1.0]")
        if not 0.0 <= elite_fraction <= 1.0:
            raise ValueError("elite_fraction must be in [0.0, 1.0]")
        self.mutation_rate = mutation_rate
        self.crossover_rate = crossover_rate
        self.elite_fraction = elite_fraction
        self.tournament_size = max(1, int(tournament_size))
        self.last_mutation_ratio: float = 0.0

    def elite_count(self, population_size: int) -> int:
        if population_size <= 0:
            return 0
        return min(population_size, max(1, math.floor(population_size * self.elite_fraction)))

    def evolve(
        self,
        population: Sequence[Agent],
        fitness: Sequence[float],
        rng: random.Random,
    ) -> list[Genome]:
        """Return next-generation genomes with preserved population size."""
        if len(population) != len(fitness):
            raise ValueError("Population and fitness lengths must match.")
        if not population:
            raise ValueError("Cannot evolve an empty population.")

        # Stable sort: ties keep their original population order.
        order = sorted(range(len(population)), key=lambda i: fitness[i], reverse=True)
        ranked = [population[i].get_genome() for i in order]
        ranked_fitness = [float(fitness[i]) for i in order]

        next_genomes: list[Genome] = [
            copy.deepcopy(genome) for genome in ranked[: self.elite_count(len(ranked))]
        ]

        mutation_count = 0
        offspring = 0
        while len(next_genomes) < len(population):
            parent_a = ranked[self._tournament_select(ranked_fitness, rng)]
            parent_b = ranked[self._tournament_select(ranked_fitness, rng)]
            if rng.random() < self.crossover_rate:
                child = parent_a.crossover(parent_b, rng)
            else:
                child = parent_a.clone(self.mutation_rate, rng)
                mutation_count += 1
            next_genomes.append(child)
            offspring += 1

        self.last_mutation_ratio = float(mutation_count) / float(offspring) if offspring else 0.0
        return next_genomes

    def _tournament_select(self, fitness: Sequence[float], rng: random.Random) -> int:
        """Index of the fittest of ``tournament_size`` uniform draws; first draw wins ties."""
        best = rng.randrange(len(fitness))
        for _ in range(self.tournament_size - 1):
            contender = rng.randrange(len(fitness))
            if fitness[contender] > fitness[best]:
                best = contender
        return best
