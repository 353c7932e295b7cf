"""Seeded random source threaded through the quarterly engine."""

from __future__ import annotations

import random
from typing import Any, Dict, List


class DeterministicRNG:
    """Wraps :mod:`random` so escalation rolls replay from a snapshot."""

    def __init__(self, seed: int) -> None:
        self._seed = seed & 0xFFFFFFFF
        # nosec B311 - deterministic pseudo-RNG acceptable for game mechanics
        self._random = random.Random(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def random(self) -> float:
        return self._random.random()

    def chance(self, probability: float) -> bool:
        """Return ``True`` with the given probability; one draw per call."""

        return self._random.random() < probability

    def export_state(self) -> Dict[str, Any]:
        version, internal, gauss_next = self._random.getstate()
        return {
            "seed": self._seed,
            "version": version,
            "internal": list(internal),
            "gauss_next": gauss_next,
        }

    @classmethod
    def from_state(cls, data: Dict[str, Any]) -> "DeterministicRNG":
        rng = cls(int(data["seed"]))
        internal: List[int] = [int(value) for value in data["internal"]]
        rng._random.setstate((int(data["version"]), tuple(internal), data.get("gauss_next")))
        return rng


__all__ = ["DeterministicRNG"]
