"""Seedable exponential variate streams."""

from typing import List, Optional, Union

import numpy as np

from ..core.errors import InvalidParameter

SeedLike = Union[None, int, np.random.SeedSequence]


class RandomVariateSource:
    """Exponential sampler backed by its own numpy Generator.

    Each source owns an independent stream, so the arrival process and every
    station can be given separate sources derived from one seed with spawn().
    """

    def __init__(self, seed: SeedLike = None):
        """Initialize the source.

        Args:
            seed: Integer seed, SeedSequence, or None for OS entropy
        """
        if isinstance(seed, np.random.SeedSequence):
            self._seed_seq = seed
        else:
            self._seed_seq = np.random.SeedSequence(seed)
        self._rng = np.random.default_rng(self._seed_seq)

    def sample(self, rate: float) -> float:
        """Draw one exponential sample with mean 1 / rate.

        Args:
            rate: Rate parameter (must be > 0)

        Returns:
            Non-negative sample

        Raises:
            InvalidParameter: If rate <= 0
        """
        if not rate > 0:
            raise InvalidParameter(f"Exponential rate must be > 0, got {rate!r}")
        return float(self._rng.exponential(1.0 / rate))

    def spawn(self, n: int) -> List["RandomVariateSource"]:
        """Derive n statistically independent child sources."""
        return [RandomVariateSource(child) for child in self._seed_seq.spawn(n)]

    def __repr__(self) -> str:
        return f"RandomVariateSource(entropy={self._seed_seq.entropy})"
