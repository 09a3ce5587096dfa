"""Evaluation budgets for multi-fidelity optimisers.

A :class:`Budget` tracks how much of some resource (epochs, samples,
simulation steps) an evaluation is allowed to spend and how much it actually
spent. :class:`Budgeted` attaches a budget to a parameter so successive
halving optimisers can resume an evaluation with a larger allowance.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Generic, TypeVar

from .errors import InvalidInputError

T = TypeVar("T")


@dataclass
class Budget:
    amount: int
    consumption: int = 0

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise InvalidInputError(f"Budget amount must be non-negative: {self.amount}")
        if self.consumption < 0:
            raise InvalidInputError(f"Budget consumption must be non-negative: {self.consumption}")

    def consume(self, n: int) -> None:
        if n < 0:
            raise InvalidInputError(f"Cannot consume a negative budget: {n}")
        self.consumption += n

    @property
    def remaining(self) -> int:
        return max(self.amount - self.consumption, 0)

    @property
    def excess(self) -> int:
        return max(self.consumption - self.amount, 0)

    def is_exhausted(self) -> bool:
        return self.consumption >= self.amount


@dataclass
class Budgeted(Generic[T]):
    """A value together with the budget allotted to evaluating it."""

    budget: Budget
    value: T

    def get(self) -> T:
        return self.value

    def into_inner(self) -> T:
        return self.value


@total_ordering
@dataclass(frozen=True)
class Leveled:
    """A value observed at a given fidelity level.

    Higher levels are better than lower ones regardless of the value; within a
    level the smaller value is better. ``min`` over a collection therefore
    returns the best observation.
    """

    level: int
    value: Any

    def _key(self) -> tuple:
        return (-self.level, self.value)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Leveled):
            return NotImplemented
        return self._key() < other._key()
