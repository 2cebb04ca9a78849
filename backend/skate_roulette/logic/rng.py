"""Random sources used to pick where each reel lands."""
import random
import secrets
from abc import ABC, abstractmethod


class RNGBase(ABC):
    """Uniform integer draws; each call is independent of the previous one."""

    @abstractmethod
    def randbelow(self, n: int) -> int:
        """Return random int in [0, n)."""
        pass

    def draw_index(self, length: int) -> int:
        """Pick a target index into an option set of the given length."""
        if length <= 0:
            raise ValueError(f"Cannot draw from an empty option set (length={length})")
        return self.randbelow(length)


class ProductionRNG(RNGBase):
    """OS-backed source, no seed."""

    def randbelow(self, n: int) -> int:
        return secrets.randbelow(n)


class SeededRNG(RNGBase):
    """
    Deterministic source for tests and the audit simulation.

    Same seed, same sequence of draws.
    """

    def __init__(self, seed: int):
        self._rng = random.Random(seed)
        self.seed = seed

    def randbelow(self, n: int) -> int:
        return self._rng.randrange(n)


class ScriptedRNG(RNGBase):
    """Replays a fixed list of indices; used to force exact landings in tests."""

    def __init__(self, draws: list[int]):
        self._draws = list(draws)

    def randbelow(self, n: int) -> int:
        if not self._draws:
            raise RuntimeError("ScriptedRNG ran out of draws")
        value = self._draws.pop(0)
        return value % n
