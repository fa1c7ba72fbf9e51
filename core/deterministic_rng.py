"""Deterministic RNG container handing out named, independent streams."""

from __future__ import annotations

import hashlib
import random
from dataclasses import dataclass, field


@dataclass
class DeterministicRNG:
    """Owns deterministic RNG streams without touching global random state.

    Each consumer (population, pipe stream, ...) asks for its own named
    stream so draws made by one never shift the sequence seen by another.
    """

    seed: int
    _streams: dict[str, random.Random] = field(default_factory=dict, init=False, repr=False)

    def stream(self, name: str) -> random.Random:
        """Return independent deterministic stream by name."""
        if name not in self._streams:
            # Use stable cross-process seed derivation instead of built-in hash().
            digest = hashlib.sha256(f"{self.seed}:{name}".encode("utf-8")).digest()
            derived_seed = int.from_bytes(digest[:8], byteorder="big", signed=False) & 0xFFFFFFFF
            self._streams[name] = random.Random(derived_seed)
        return self._streams[name]
