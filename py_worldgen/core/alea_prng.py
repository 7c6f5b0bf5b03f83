"""
Seedable Alea PRNG used by every randomized generation stage.

Based on Johannes Baagøe's Alea algorithm. A seed string fully determines
the sequence, so a map can be regenerated from the seed printed at startup.
"""

from typing import List, Sequence, TypeVar

T = TypeVar("T")


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """
    Alea generator with the sampling helpers the generators need.

    Provides uniform floats, integer ranges, Bernoulli trials and
    sampling without replacement on top of the raw ``random()`` stream.
    """

    def __init__(self, seed):
        """Initialize with seed string or number."""
        self.seed = str(seed)
        self.call_count = 0

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            for char in str(data):
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000
            return _uint32(mash_n) * 2.3283064365386963e-10

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        self.s0 -= mash(self.seed)
        if self.s0 < 0:
            self.s0 += 1
        self.s1 -= mash(self.seed)
        if self.s1 < 0:
            self.s1 += 1
        self.s2 -= mash(self.seed)
        if self.s2 < 0:
            self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Uniform float in [low, high)."""
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Uniform integer in [low, high] inclusive."""
        if high < low:
            raise ValueError(f"Empty range: [{low}, {high}]")
        return low + min(int(self.random() * (high - low + 1)), high - low)

    def bernoulli(self, probability: float) -> bool:
        """Return True with the given probability."""
        if probability >= 1:
            return True
        if probability <= 0:
            return False
        return self.random() < probability

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]

    def sample(self, population: Sequence[T], k: int) -> List[T]:
        """
        Choose ``k`` distinct elements uniformly without replacement.

        Uses a partial Fisher-Yates shuffle over a copy of the population.
        """
        n = len(population)
        if not 0 <= k <= n:
            raise ValueError(f"Sample size {k} out of range for population of {n}")
        pool = list(population)
        for i in range(k):
            j = self.randint(i, n - 1)
            pool[i], pool[j] = pool[j], pool[i]
        return pool[:k]
