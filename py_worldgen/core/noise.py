"""Coherent noise sampled at cell positions."""

from typing import Iterable

import numpy as np
from opensimplex import OpenSimplex

from .alea_prng import AleaPRNG


class NoiseField:
    """
    Fractal OpenSimplex noise, deterministic for a fixed seed.

    Values are roughly in [-1, 1].
    """

    def __init__(self, seed: int, frequency: float = 1.0, octaves: int = 1,
                 persistence: float = 0.5, lacunarity: float = 2.0):
        self._noise = OpenSimplex(seed=seed)
        self.seed = seed
        self.frequency = frequency
        self.octaves = octaves
        self.persistence = persistence
        self.lacunarity = lacunarity

    @classmethod
    def from_prng(cls, prng: AleaPRNG, **kwargs) -> "NoiseField":
        """Create a field whose seed is drawn from ``prng``."""
        return cls(prng.randint(0, 2**31 - 1), **kwargs)

    def sample(self, x: float, y: float) -> float:
        value = 0.0
        amplitude = 1.0
        frequency = self.frequency
        total = 0.0
        for _ in range(self.octaves):
            value += amplitude * self._noise.noise2(x * frequency, y * frequency)
            total += amplitude
            amplitude *= self.persistence
            frequency *= self.lacunarity
        return value / total

    def sample_many(self, points: Iterable) -> np.ndarray:
        """Sample at every (x, y) row of ``points``."""
        return np.array([self.sample(float(x), float(y)) for x, y in points], dtype=np.float64)


def ridged(values: np.ndarray) -> np.ndarray:
    """Fold noise into sharp crests: 1 at zero crossings, 0 at extremes."""
    return 1.0 - np.abs(values)
