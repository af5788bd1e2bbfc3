# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Sampling distributions for the DISTRIBUTION weight init scheme.

A layer config can carry a Distribution object. When the layer's scheme is
DISTRIBUTION, the weight initializer hands the requested shape to
``Distribution.sample`` and uses whatever comes back as the raw weights.

All samplers accept an optional torch.Generator so initialization stays
reproducible regardless of the global random state.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import torch


class Distribution(ABC):
    """Base class for weight sampling distributions."""

    @abstractmethod
    def sample(
        self,
        shape: Sequence[int],
        generator: Optional[torch.Generator] = None,
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        """
        Draw a fresh tensor of the given shape.

        Args:
            shape: Dimension sizes of the result.
            generator: Optional seeded generator.
            dtype: Element dtype of the result.

        Returns:
            A new tensor of ``shape`` with values from this distribution.
        """
        ...


class NormalDistribution(Distribution):
    """Gaussian N(mean, std^2)."""

    def __init__(self, mean: float = 0.0, std: float = 1.0) -> None:
        if std < 0:
            raise ValueError(f"Standard deviation must be >= 0, got {std}")
        self.mean = mean
        self.std = std

    def sample(
        self,
        shape: Sequence[int],
        generator: Optional[torch.Generator] = None,
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        out = torch.empty(tuple(shape), dtype=dtype)
        return out.normal_(self.mean, self.std, generator=generator)

    def __repr__(self) -> str:
        return f"NormalDistribution(mean={self.mean}, std={self.std})"


class UniformDistribution(Distribution):
    """Uniform on [lower, upper)."""

    def __init__(self, lower: float = 0.0, upper: float = 1.0) -> None:
        if lower > upper:
            raise ValueError(f"Lower bound {lower} is greater than upper bound {upper}")
        self.lower = lower
        self.upper = upper

    def sample(
        self,
        shape: Sequence[int],
        generator: Optional[torch.Generator] = None,
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        out = torch.empty(tuple(shape), dtype=dtype)
        return out.uniform_(self.lower, self.upper, generator=generator)

    def __repr__(self) -> str:
        return f"UniformDistribution(lower={self.lower}, upper={self.upper})"


class BinomialDistribution(Distribution):
    """Number of successes in ``trials`` Bernoulli draws with success ``probability``."""

    def __init__(self, trials: int = 1, probability: float = 0.5) -> None:
        if trials < 0:
            raise ValueError(f"Number of trials must be >= 0, got {trials}")
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Probability must be in [0, 1], got {probability}")
        self.trials = trials
        self.probability = probability

    def sample(
        self,
        shape: Sequence[int],
        generator: Optional[torch.Generator] = None,
        dtype: torch.dtype = torch.float32,
    ) -> torch.Tensor:
        shape = tuple(shape)
        # Sum of Bernoulli draws; torch.distributions.Binomial has no generator hook.
        probs = torch.full((self.trials, *shape), self.probability, dtype=torch.float64)
        draws = torch.bernoulli(probs, generator=generator)
        return draws.sum(dim=0).to(dtype)

    def __repr__(self) -> str:
        return f"BinomialDistribution(trials={self.trials}, probability={self.probability})"
