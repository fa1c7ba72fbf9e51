"""Genome contracts for evolutionary operators."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod


class Genome(ABC):
    """Abstract genome representation used by evolutionary strategies.

    Implementations must keep a fixed representation size across the whole
    population so crossover and cloning never change structure, and must
    draw all randomness from the ``rng`` they are handed.
    """

    @abstractmethod
    def crossover(self, other: "Genome", rng: random.Random) -> "Genome":
        """Create an offspring genome from this genome and ``other``.

        Args:
            other (Genome): The second parent genome.
            rng (random.Random): Source of per-gene parent choices.

        Returns:
            Genome: A newly created offspring genome.

        Invariants:
            - Must not mutate either parent genome.
            - Must validate compatibility of parent genome sizes.
        """

    @abstractmethod
    def mutate(self, rate: float, rng: random.Random) -> None:
        """Perturb this genome in place.

        Args:
            rate (float): Per-gene mutation probability in ``[0, 1]``.
            rng (random.Random): Source of mutation draws.

        Invariants:
            - Only the receiving genome changes; no other genome shares its
              storage.
        """

    @abstractmethod
    def clone(self, mutation_rate: float, rng: random.Random) -> "Genome":
        """Return an independent copy of this genome, mutated at ``mutation_rate``."""

    @abstractmethod
    def distance(self, other: "Genome") -> float:
        """Measure distance between this genome and ``other``.

        Returns:
            float: Non-negative distance metric value.
        """
