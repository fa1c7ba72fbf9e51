"""Single-layer perceptron brain controlling one bird."""

from __future__ import annotations

import math
import random
from typing import Any, Sequence

from agents.genome import Genome

# Half-width of the uniform perturbation added to a mutated weight.
MUTATION_STEP = 0.2


def sigmoid(value: float) -> float:
    """Numerically safe logistic function."""
    if value >= 0:
        return 1.0 / (1.0 + math.exp(-value))
    exp_value = math.exp(value)
    return exp_value / (1.0 + exp_value)


class PerceptronBrain(Genome):
    """Weight vector of length ``input_count * output_count`` with a sigmoid output.

    Weights are read as a flattened ``input_count x output_count`` matrix:
    output ``j`` uses the weight at offset ``i * output_count + j`` for input
    ``i``. There is no hidden layer and no bias, which keeps every brain in a
    population the same length for crossover and cloning.
    """

    def __init__(self, input_count: int, output_count: int, weights: Sequence[float]) -> None:
        if input_count <= 0 or output_count <= 0:
            raise ValueError("input_count and output_count must be > 0")
        if len(weights) != input_count * output_count:
            raise ValueError(
                f"Expected {input_count * output_count} weights, got {len(weights)}."
            )
        self.input_count = int(input_count)
        self.output_count = int(output_count)
        self.weights: list[float] = [float(w) for w in weights]

    @classmethod
    def create(cls, input_count: int, output_count: int, rng: random.Random) -> "PerceptronBrain":
        """Return a brain with weights drawn uniformly from ``[-1, 1]``."""
        total = int(input_count) * int(output_count)
        return cls(input_count, output_count, [rng.uniform(-1.0, 1.0) for _ in range(total)])

    def activate(self, inputs: Sequence[float]) -> list[float]:
        """Return one sigmoid activation per output."""
        if len(inputs) != self.input_count:
            raise ValueError(
                f"Brain expects {self.input_count} inputs, got {len(inputs)}."
            )
        outputs: list[float] = []
        for j in range(self.output_count):
            total = 0.0
            for i, value in enumerate(inputs):
                total += float(value) * self.weights[i * self.output_count + j]
            outputs.append(sigmoid(total))
        return outputs

    def mutate(self, rate: float, rng: random.Random) -> None:
        """Nudge each weight by ``U(-0.2, 0.2)`` with probability ``rate``."""
        self.weights = [
            weight + rng.uniform(-MUTATION_STEP, MUTATION_STEP) if rng.random() < rate else weight
            for weight in self.weights
        ]

    def copy(self) -> "PerceptronBrain":
        return PerceptronBrain(self.input_count, self.output_count, list(self.weights))

    def clone(self, mutation_rate: float, rng: random.Random) -> "PerceptronBrain":
        child = self.copy()
        child.mutate(mutation_rate, rng)
        return child

    def crossover(self, other: Genome, rng: random.Random) -> "PerceptronBrain":
        """Uniform crossover: each weight comes from either parent with p=0.5."""
        self._require_compatible(other)
        assert isinstance(other, PerceptronBrain)
        weights = [
            mine if rng.random() < 0.5 else theirs
            for mine, theirs in zip(self.weights, other.weights)
        ]
        return PerceptronBrain(self.input_count, self.output_count, weights)

    def distance(self, other: Genome) -> float:
        """Euclidean distance between weight vectors."""
        self._require_compatible(other)
        assert isinstance(other, PerceptronBrain)
        return math.sqrt(sum((a - b) ** 2 for a, b in zip(self.weights, other.weights)))

    def to_graph(self) -> dict[str, Any]:
        """Export a node/edge view of the network for visualizers."""
        neurons: list[dict[str, Any]] = [
            {"id": i, "type": "input", "layer": 0, "bias": 0.0} for i in range(self.input_count)
        ]
        neurons.extend(
            {"id": self.input_count + j, "type": "output", "layer": 1, "bias": 0.0}
            for j in range(self.output_count)
        )
        connections = [
            {
                "from": i,
                "to": self.input_count + j,
                "weight": self.weights[i * self.output_count + j],
            }
            for i in range(self.input_count)
            for j in range(self.output_count)
        ]
        return {"neurons": neurons, "connections": connections}

    def _require_compatible(self, other: Genome) -> None:
        if not isinstance(other, PerceptronBrain):
            raise TypeError("PerceptronBrain operations require another PerceptronBrain.")
        if (other.input_count, other.output_count) != (self.input_count, self.output_count):
            raise ValueError("Brains must share input and output counts.")

    def __repr__(self) -> str:
        return f"PerceptronBrain(inputs={self.input_count}, outputs={self.output_count})"
