"""
Seedable random source shared by every stochastic stage.

One RandomSource is created per generation request from the request seed;
each stage derives its own child stream from a label so that the streams
are independent of each other and of execution order.
"""
import zlib
from typing import List, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


class RandomSource:
    """Thin wrapper around numpy's Generator with label-derived children."""

    def __init__(self, seed: int, path: Sequence[int] = ()):
        self.seed = int(seed) & 0xFFFFFFFF
        self._path = tuple(path)
        self.generator = np.random.default_rng([self.seed, *self._path])

    def child(self, label: str, index: int = 0) -> "RandomSource":
        """Independent stream for a named stage (and optional index, e.g. chain id)."""
        key = zlib.crc32(label.encode("utf-8"))
        return RandomSource(self.seed, (*self._path, key, int(index)))

    def random(self) -> float:
        return float(self.generator.random())

    def integers(self, low: int, high: int) -> int:
        """Uniform integer in [low, high)."""
        return int(self.generator.integers(low, high))

    def choice(self, items: Sequence[T]) -> T:
        return items[self.integers(0, len(items))]

    def shuffled(self, items: Sequence[T]) -> List[T]:
        result = list(items)
        self.generator.shuffle(result)
        return result

    def sample(self, items: Sequence[T], k: int) -> List[T]:
        return self.shuffled(items)[:k]


def seed_from_timestamp(timestamp_ms: int) -> int:
    """Folds an epoch-milliseconds timestamp into a 32-bit seed."""
    timestamp_ms = int(timestamp_ms)
    return (timestamp_ms ^ (timestamp_ms >> 32)) & 0xFFFFFFFF
