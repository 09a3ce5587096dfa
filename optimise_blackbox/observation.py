"""Observations and their identifiers.

An observation pairs a parameter with the value obtained by evaluating it.
Optimisers hand out *unevaluated* observations from ``ask`` (``value`` is
``None``) and receive evaluated ones back through ``tell``. The identifier is
what ties the two together, so every transformation below keeps it.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

P = TypeVar("P")
V = TypeVar("V")


@dataclass(frozen=True, order=True)
class ObsId:
    """Observation identifier."""

    value: int

    def get(self) -> int:
        return self.value

    def __str__(self) -> str:
        return f"#{self.value}"


class IdGen(Protocol):
    """Observation identifier generator."""

    def generate(self) -> ObsId:
        ...


@dataclass(frozen=True)
class Obs(Generic[P, V]):
    """A parameter, its identifier and (once evaluated) its value."""

    id: ObsId
    param: P
    value: Optional[V] = None

    @classmethod
    def new(cls, idg: IdGen, param: P) -> "Obs[P, Any]":
        """Make a new unevaluated observation with a fresh identifier."""

        return cls(id=idg.generate(), param=param)

    def map_param(self, f: Callable[[P], Any]) -> "Obs[Any, V]":
        return replace(self, param=f(self.param))

    def map_value(self, f: Callable[[Optional[V]], Any]) -> "Obs[P, Any]":
        return replace(self, value=f(self.value))

    def with_value(self, value: Any) -> "Obs[P, Any]":
        return replace(self, value=value)

    @property
    def is_evaluated(self) -> bool:
        return self.value is not None


@dataclass
class SerialIdGenerator:
    """Generates serial identifiers starting from zero.

    Generation is guarded by a lock so one generator can be shared with the
    parallel driver.
    """

    next_id: int = 0
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False, compare=False)

    def generate(self) -> ObsId:
        with self._lock:
            obs_id = ObsId(self.next_id)
            self.next_id += 1
        return obs_id


@dataclass(frozen=True)
class ConstIdGenerator:
    """Always returns the same identifier."""

    id: ObsId

    def generate(self) -> ObsId:
        return self.id
