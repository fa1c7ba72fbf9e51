"""Evolution strategy contracts."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from typing import Sequence

from agents.base import Agent
from agents.genome import Genome


class EvolutionStrategy(ABC):
    """Abstract interface for population evolution algorithms.

    Strategies only breed genomes. Agent identity, kinematic state, and
    generation bookkeeping stay with the population manager.
    """

    @abstractmethod
    def evolve(
        self,
        population: Sequence[Agent],
        fitness: Sequence[float],
        rng: random.Random,
    ) -> list[Genome]:
        """Breed the genomes of the next generation.

        Args:
            population (Sequence[Agent]): Current generation agents.
            fitness (Sequence[float]): Fitness scores aligned by index with
                ``population``.
            rng (random.Random): Source of every selection and variation draw.

        Returns:
            list[Genome]: One genome per slot of the next generation.

        Invariants:
            - Output length must equal input population size.
            - Must not mutate input genomes or containers in place.
            - Index alignment between ``population`` and ``fitness`` is required.
        """
