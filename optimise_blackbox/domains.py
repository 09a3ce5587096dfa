"""Parameter search domains.

A domain describes where an optimiser may look and how to draw a point from
its prior (uniform) distribution. Sampling always goes through an explicit
``numpy.random.Generator`` so runs are reproducible from a single seed.

Numerical optimisers additionally rely on ``encode``/``decode``: ``encode``
maps an external parameter to the internal representation the optimiser
works with (a float for continuous domains, an index for categorical ones)
and ``decode`` maps it back.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Hashable, List, Protocol, Sequence, Tuple

import numpy as np

from .errors import InvalidInputError


class Domain(Protocol):
    def sample(self, rng: np.random.Generator) -> Any:
        ...


@dataclass(frozen=True)
class ContinuousDomain:
    """Half-open interval ``[low, high)``."""

    low: float
    high: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.low) and math.isfinite(self.high)):
            raise InvalidInputError(f"Bounds must be finite: low={self.low}, high={self.high}")
        if self.low >= self.high:
            raise InvalidInputError(f"Expected low < high: low={self.low}, high={self.high}")
        if not math.isfinite(self.high - self.low):
            raise InvalidInputError(f"Width is not finite: low={self.low}, high={self.high}")

    @property
    def size(self) -> float:
        return self.high - self.low

    def contains(self, x: float) -> bool:
        return self.low <= x < self.high

    def sample(self, rng: np.random.Generator) -> float:
        return float(rng.uniform(self.low, self.high))

    def encode(self, param: float) -> float:
        x = float(param)
        if not math.isfinite(x):
            raise InvalidInputError(f"Parameter is not finite: {param}")
        if not self.contains(x):
            raise InvalidInputError(f"Parameter {x} is outside [{self.low}, {self.high})")
        return x

    def decode(self, value: float) -> float:
        return self.encode(value)

    def clip(self, value: float) -> float:
        """Clamp ``value`` into ``[low, high)``."""

        v = max(self.low, float(value))
        if v >= self.high:
            v = float(np.nextafter(self.high, self.low))
        return v


@dataclass(frozen=True)
class DiscreteDomain:
    """Integers ``0..size-1``."""

    size: int

    def __post_init__(self) -> None:
        if self.size < 1:
            raise InvalidInputError(f"Discrete domain size must be positive: {self.size}")

    def sample(self, rng: np.random.Generator) -> int:
        return int(rng.integers(0, self.size))

    def encode(self, param: int) -> int:
        if not 0 <= param < self.size:
            raise InvalidInputError(f"Parameter {param} is outside 0..{self.size}")
        return int(param)

    def decode(self, index: int) -> int:
        return self.encode(index)


@dataclass(frozen=True)
class CategoricalDomain:
    """Category indices ``0..cardinality-1``."""

    cardinality: int

    def __post_init__(self) -> None:
        if self.cardinality < 1:
            raise InvalidInputError(f"Cardinality must be positive: {self.cardinality}")

    def sample(self, rng: np.random.Generator) -> Any:
        return self.decode(int(rng.integers(0, self.cardinality)))

    def encode(self, param: Any) -> int:
        index = int(param)
        if not 0 <= index < self.cardinality:
            raise InvalidInputError(f"Category {param} is outside 0..{self.cardinality}")
        return index

    def decode(self, index: int) -> Any:
        if not 0 <= index < self.cardinality:
            raise InvalidInputError(f"Category index {index} is outside 0..{self.cardinality}")
        return int(index)


class BoolDomain(CategoricalDomain):
    def __init__(self) -> None:
        super().__init__(cardinality=2)

    def encode(self, param: Any) -> int:
        if not isinstance(param, (bool, np.bool_)):
            raise InvalidInputError(f"Expected a boolean parameter: {param!r}")
        return int(param)

    def decode(self, index: int) -> bool:
        if index not in (0, 1):
            raise InvalidInputError(f"Boolean index must be 0 or 1: {index}")
        return bool(index)


class ChoiceDomain(CategoricalDomain):
    """Categorical domain over arbitrary hashable labels."""

    choices: Tuple[Hashable, ...]

    def __init__(self, choices: Sequence[Hashable]) -> None:
        choices = tuple(choices)
        if len(set(choices)) != len(choices):
            raise InvalidInputError(f"Choices must be distinct: {choices!r}")
        super().__init__(cardinality=len(choices))
        object.__setattr__(self, "choices", choices)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ChoiceDomain) and self.choices == other.choices

    def __hash__(self) -> int:
        return hash(self.choices)

    def __repr__(self) -> str:
        return f"ChoiceDomain(choices={self.choices!r})"

    def encode(self, param: Any) -> int:
        try:
            return self.choices.index(param)
        except ValueError:
            raise InvalidInputError(f"Unknown choice: {param!r}") from None

    def decode(self, index: int) -> Any:
        if not 0 <= index < self.cardinality:
            raise InvalidInputError(f"Choice index {index} is outside 0..{self.cardinality}")
        return self.choices[index]


@dataclass(frozen=True, init=False)
class VecDomain:
    """Product of element domains; points are lists."""

    domains: Tuple[Any, ...]

    def __init__(self, domains: Sequence[Any]) -> None:
        domains = tuple(domains)
        if not domains:
            raise InvalidInputError("VecDomain requires at least one element domain.")
        object.__setattr__(self, "domains", domains)

    def __len__(self) -> int:
        return len(self.domains)

    def __iter__(self):
        return iter(self.domains)

    def __getitem__(self, i: int) -> Any:
        return self.domains[i]

    def sample(self, rng: np.random.Generator) -> List[Any]:
        return [d.sample(rng) for d in self.domains]
