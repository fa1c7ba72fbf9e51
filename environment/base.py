"""Environment contracts for evolutionary simulations."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from agents.base import Agent


class Environment(ABC):
    """Abstract interface for simulation environments.

    Implementations own the shared world state that a whole population moves
    through. Environments must replay deterministically when initialized with
    equivalent configuration and RNG state.
    """

    @abstractmethod
    def reset(self) -> None:
        """Reset the shared world state for a new generation.

        Invariants:
            - Must fully reset per-generation world state.
            - Must not touch agent-owned state.
        """

    @abstractmethod
    def step(self, agents: Sequence[Agent], elapsed: float) -> Any:
        """Advance the world and every live agent by one tick.

        Args:
            agents (Sequence[Agent]): Current population in stable order.
            elapsed (float): Time covered by this tick, in milliseconds.

        Returns:
            Any: Step outcome payload.

        Invariants:
            - Deterministic under equivalent pre-step state and RNG state.
        """

    @abstractmethod
    def observe(self, agent: Agent) -> Any:
        """Return the current observation for a specific agent.

        Invariants:
            - Must not mutate environment state.
        """
