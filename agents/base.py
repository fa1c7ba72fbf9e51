"""Agent interface definitions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from agents.genome import Genome


class Agent(ABC):
    """Something the stepper can move that decides through an evolvable genome.

    Agents own their genome and per-generation state. Selection, breeding,
    and generation counting belong to the population manager.
    """

    @abstractmethod
    def observe(self, environment_state: Any) -> Any:
        """Encode the world slice this agent perceives into brain inputs."""

    @abstractmethod
    def act(self, observation: Any) -> Any:
        """Turn brain inputs into this tick's action.

        Args:
            observation (Any): Output of ``observe``.

        Returns:
            Any: Action the stepper applies.

        Invariants:
            - Called at most once per tick per agent.
            - Same genome and observation give the same action.
        """

    @abstractmethod
    def get_genome(self) -> Genome:
        """Return the genome currently associated with this agent."""
