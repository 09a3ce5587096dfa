"""Benchmark objective functions.

All problems are minimisation problems exposing a ``domain`` and an
``evaluate`` method, so they satisfy :class:`~optimise_blackbox.interface.Problem`.
They are used by the tests and the study runner.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Sequence

import numpy as np

from .budget import Budgeted
from .domains import ContinuousDomain, VecDomain
from .errors import InvalidInputError


def _vec_domain(dim: int, low: float, high: float) -> VecDomain:
    if dim < 1:
        raise InvalidInputError(f"dim must be positive: {dim}")
    return VecDomain([ContinuousDomain(low, high) for _ in range(dim)])


@dataclass
class SphereProblem:
    """``sum(x_i^2)``, minimised at the origin."""

    dim: int = 2
    low: float = -5.0
    high: float = 5.0
    domain: VecDomain = field(init=False)

    def __post_init__(self) -> None:
        self.domain = _vec_domain(self.dim, self.low, self.high)

    def evaluate(self, param: Sequence[float]) -> float:
        x = np.asarray(param, dtype=float)
        return float(np.sum(x ** 2))


@dataclass
class RosenbrockProblem:
    """Rosenbrock's banana function, minimised at ``(1, ..., 1)``."""

    dim: int = 2
    low: float = -2.0
    high: float = 2.0
    domain: VecDomain = field(init=False)

    def __post_init__(self) -> None:
        if self.dim < 2:
            raise InvalidInputError(f"Rosenbrock needs at least two dimensions: {self.dim}")
        self.domain = _vec_domain(self.dim, self.low, self.high)

    def evaluate(self, param: Sequence[float]) -> float:
        x = np.asarray(param, dtype=float)
        return float(np.sum(100.0 * (x[1:] - x[:-1] ** 2) ** 2 + (1.0 - x[:-1]) ** 2))


@dataclass
class QuadraticProblem:
    """Scalar ``(x - target)^2`` over ``[low, high)``."""

    target: float = 3.0
    low: float = -10.0
    high: float = 10.0
    domain: ContinuousDomain = field(init=False)

    def __post_init__(self) -> None:
        self.domain = ContinuousDomain(self.low, self.high)

    def evaluate(self, param: Any) -> float:
        return (float(param) - self.target) ** 2


@dataclass
class BudgetedSphereProblem:
    """Sphere with a fidelity-dependent penalty for multi-fidelity optimisers.

    Params are :class:`~optimise_blackbox.budget.Budgeted` points. Evaluating
    one consumes its remaining budget; the value is the sphere function plus
    ``1 / consumption``, so longer evaluations are more accurate.
    """

    dim: int = 2
    low: float = -5.0
    high: float = 5.0
    domain: VecDomain = field(init=False)

    def __post_init__(self) -> None:
        self.domain = _vec_domain(self.dim, self.low, self.high)

    def evaluate(self, param: Budgeted) -> float:
        budget = param.budget
        budget.consume(budget.remaining)
        x = np.asarray(param.get(), dtype=float)
        return float(np.sum(x ** 2)) + 1.0 / max(budget.consumption, 1)


@dataclass
class ZdtProblem:
    """ZDT1 two-objective problem over ``[0, 1]^dim``.

    The Pareto front is ``f2 = 1 - sqrt(f1)``, reached when ``x_2..x_n = 0``.
    """

    dim: int = 30
    domain: VecDomain = field(init=False)

    def __post_init__(self) -> None:
        if self.dim < 2:
            raise InvalidInputError(f"ZDT1 needs at least two dimensions: {self.dim}")
        self.domain = _vec_domain(self.dim, 0.0, 1.0)

    def evaluate(self, param: Sequence[float]) -> List[float]:
        x = np.asarray(param, dtype=float)
        f1 = float(x[0])
        g = 1.0 + 9.0 * float(np.sum(x[1:])) / (self.dim - 1)
        f2 = g * (1.0 - np.sqrt(f1 / g))
        return [f1, float(f2)]
