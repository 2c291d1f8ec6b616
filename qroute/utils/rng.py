"""Random number generation utilities for Q-learning training."""

import random
import numpy as np
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRNG:
    """Seeded random number generator for reproducible training runs."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._generator = np.random.default_rng(seed)

    def random(self) -> float:
        """Generate random float in [0, 1)."""
        return float(self._generator.random())

    def index(self, n: int) -> int:
        """Generate random index in [0, n)."""
        return int(self._generator.integers(n))

    def choice(self, seq: Sequence[T]) -> T:
        """Choose random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.index(len(seq))]


# Default RNG instance
default_rng = SeededRNG()


def set_global_seed(seed: Optional[int]):
    """Set global random seed for reproducibility."""
    global default_rng
    default_rng = SeededRNG(seed)
    if seed is not None:
        random.seed(seed)
        np.random.seed(seed)
