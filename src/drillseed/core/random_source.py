"""
Random Source - seedable randomness for the record synthesizer

Every random draw made while building records goes through one RandomSource,
so a fixed seed reproduces a run (up to wall-clock "now").
"""

import random
import uuid
from typing import List, Optional, Sequence, TypeVar

import numpy as np

MS_PER_DAY = 24 * 60 * 60 * 1_000

T = TypeVar('T')


class RandomSource:
    """Uniform random draws backed by random.Random, with a numpy generator on demand"""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._random = random.Random(seed)

    def choice(self, pool: Sequence[T]) -> T:
        return self._random.choice(pool)

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high], both ends inclusive"""
        return self._random.randint(low, high)

    def uniform_round(self, low: float, high: float, digits: int) -> float:
        return round(self._random.uniform(low, high), digits)

    def coin(self) -> bool:
        return self._random.random() < 0.5

    def hex_bytes(self, n_bytes: int) -> str:
        """Hex string of n_bytes random bytes (2 * n_bytes characters)"""
        return self._random.randbytes(n_bytes).hex()

    def uuid4(self) -> str:
        return str(uuid.UUID(int=self._random.getrandbits(128), version=4))

    def sample_between(self, pool: Sequence[T], low: int, high: int) -> List[T]:
        """Distinct sample of pool whose size is drawn uniformly from [low, high]"""
        return self._random.sample(pool, self.randint(low, high))

    def epoch_seconds_within(self, now_ms: int, days: int) -> int:
        """Epoch seconds somewhere in the `days` days before now_ms"""
        return int((now_ms - self._random.random() * days * MS_PER_DAY) // 1_000)

    def numpy_generator(self) -> np.random.Generator:
        """Child numpy generator seeded from this source (for vectorised sampling)"""
        return np.random.default_rng(self._random.getrandbits(64))
