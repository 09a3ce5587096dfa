"""Splitting and weighting of observations before density estimation."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np

from ...errors import InvalidInputError
from ...observation import Obs


class Preprocessor(Protocol):
    def divide_observations(self, observations: Sequence[Obs]) -> int:
        """Return how many of the value-sorted ``observations`` are superior."""

        ...

    def weight_observations(self, observations: Sequence[Obs], is_superior: bool) -> np.ndarray:
        ...


def linspace(low: float, high: float, num: int) -> np.ndarray:
    """``num`` evenly spaced values from ``low`` with ``high`` excluded."""

    return np.linspace(low, high, num, endpoint=False)


@dataclass(frozen=True)
class DefaultPreprocessor:
    """Hyperopt-style split: ``gamma = min(ceil(divide_factor * sqrt(n)), max_superiors)``.

    Superior observations all get weight 1. Inferior observations beyond the
    ``ramp_start``-th get a linear ramp from ``1/n`` towards 1, the rest 1.
    """

    divide_factor: float = 0.25
    max_superiors: int = 25
    ramp_start: int = 25

    def __post_init__(self) -> None:
        if not (self.divide_factor > 0.0 and math.isfinite(self.divide_factor)):
            raise InvalidInputError(f"divide_factor must be positive and finite: {self.divide_factor}")
        if self.max_superiors < 1:
            raise InvalidInputError(f"max_superiors must be positive: {self.max_superiors}")

    def divide_observations(self, observations: Sequence[Obs]) -> int:
        n = len(observations)
        return min(math.ceil(self.divide_factor * math.sqrt(n)), self.max_superiors)

    def weight_observations(self, observations: Sequence[Obs], is_superior: bool) -> np.ndarray:
        n = len(observations)
        if is_superior or n == 0:
            return np.ones(n)

        m = max(n, self.ramp_start) - self.ramp_start
        return np.concatenate([linspace(1.0 / n, 1.0, m), np.ones(n - m)])
