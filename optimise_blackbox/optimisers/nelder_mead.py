"""Adaptive Nelder-Mead simplex optimiser.

The simplex method keeps ``dim + 1`` vertices sorted by value and repeatedly
replaces the worst one by reflecting it through the centroid of the others,
expanding, contracting or shrinking depending on how the new point compares.
Written in ask/tell form, every step of the classic loop becomes a state the
optimiser remembers between an ``ask`` and the matching ``tell``.

Coefficients follow the adaptive variant, which scales them with the
dimension so the method does not stall in higher dimensions:

* reflection ``alpha = 1``
* expansion ``beta = 1 + 2/n``
* contraction ``gamma = 0.75 - 1/(2n)``
* shrink ``delta = 1 - 1/n``

References
----------
- Fuchang Gao and Lixing Han (2010). "Implementing the Nelder-Mead simplex
  algorithm with adaptive parameters". doi:10.1007/s10589-010-9329-3
- Saša Singer and John Nelder (2009). "Nelder-Mead algorithm". Scholarpedia,
  4(7):2928. doi:10.4249/scholarpedia.2928
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence

import numpy as np

from ..domains import ContinuousDomain
from ..errors import InvalidInputError, OptimiserStateError, UnknownObservationError
from ..observation import IdGen, Obs, ObsId

logger = logging.getLogger(__name__)


class Phase(Enum):
    INITIALIZE = "initialize"
    REFLECT = "reflect"
    EXPAND = "expand"
    CONTRACT_OUTSIDE = "contract_outside"
    CONTRACT_INSIDE = "contract_inside"
    SHRINK = "shrink"


@dataclass
class Vertex:
    x: np.ndarray
    value: Any


class NelderMeadOptimiser:
    """Nelder-Mead over a box of continuous domains.

    Parameters
    ----------
    domains:
        One :class:`ContinuousDomain` per coordinate. At least two.
    x0:
        Initial point; must lie inside the domains.

    Only one observation may be pending at a time.
    """

    def __init__(self, domains: Sequence[ContinuousDomain], x0: Sequence[float]) -> None:
        if len(x0) < 2:
            raise InvalidInputError(f"Too few dimensions: {len(x0)}")
        if len(domains) != len(x0):
            raise InvalidInputError(
                f"Dimension mismatch: {len(domains)} domains for a {len(x0)}-dimensional x0"
            )

        self.domains = list(domains)
        dim = float(len(x0))
        self.alpha = 1.0
        self.beta = 1.0 + 2.0 / dim
        self.gamma = 0.75 - 1.0 / (2.0 * dim)
        self.delta = 1.0 - 1.0 / dim

        self._initial: Optional[np.ndarray] = self._encode(x0)
        self._simplex: List[Vertex] = []
        self._centroid: Optional[np.ndarray] = None
        self._evaluating: Optional[ObsId] = None

        self._phase = Phase.INITIALIZE
        self._prev: Optional[Vertex] = None
        self._shrink_index = 0

    @property
    def dim(self) -> int:
        return len(self.domains)

    @property
    def simplex(self) -> List[Vertex]:
        return list(self._simplex)

    def _encode(self, xs: Sequence[float]) -> np.ndarray:
        return np.array([d.encode(x) for d, x in zip(self.domains, xs)], dtype=float)

    def _adjust(self, x: np.ndarray) -> List[float]:
        return [d.clip(v) for d, v in zip(self.domains, x)]

    # ------------------------------------------------------------------
    # ask side
    # ------------------------------------------------------------------

    def _initial_ask(self) -> np.ndarray:
        if self._initial is not None:
            x0, self._initial = self._initial, None
            return x0

        i = len(self._simplex) - 1
        base = self._simplex[0].x
        tau = 0.00025 if base[i] == 0.0 else 0.05
        x = base.copy()
        x[i] += tau
        return x

    def _shrink_ask(self) -> np.ndarray:
        xl = self._lowest.x
        xi = self._simplex[self._shrink_index].x
        return xl + self.delta * (xi - xl)

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:  # noqa: ARG002
        if self._evaluating is not None:
            raise OptimiserStateError(
                f"Observation {self._evaluating} is still being evaluated; tell it before asking again."
            )

        if self._phase is Phase.INITIALIZE:
            x = self._initial_ask()
        elif self._phase is Phase.REFLECT:
            x = self._centroid + self.alpha * (self._centroid - self._highest.x)
        elif self._phase is Phase.EXPAND:
            x = self._centroid + self.beta * (self._prev.x - self._centroid)
        elif self._phase is Phase.CONTRACT_OUTSIDE:
            x = self._centroid + self.gamma * (self._prev.x - self._centroid)
        elif self._phase is Phase.CONTRACT_INSIDE:
            x = self._centroid - self.gamma * (self._prev.x - self._centroid)
        else:
            x = self._shrink_ask()

        obs = Obs.new(idg, self._adjust(x))
        self._evaluating = obs.id
        return obs

    # ------------------------------------------------------------------
    # tell side
    # ------------------------------------------------------------------

    def tell(self, obs: Obs) -> None:
        if self._evaluating != obs.id:
            raise UnknownObservationError(obs.id, f"Expected observation {self._evaluating}, got {obs.id}")
        self._evaluating = None

        curr = Vertex(self._encode(obs.param), obs.value)
        phase = self._phase

        if phase is Phase.INITIALIZE:
            self._initial_tell(curr)
        elif phase is Phase.REFLECT:
            self._reflect_tell(curr)
        elif phase is Phase.EXPAND:
            self._accept(self._prev if self._prev.value < curr.value else curr)
        elif phase is Phase.CONTRACT_OUTSIDE:
            if curr.value <= self._prev.value:
                self._accept(curr)
            else:
                self._shrink()
        elif phase is Phase.CONTRACT_INSIDE:
            if curr.value < self._highest.value:
                self._accept(curr)
            else:
                self._shrink()
        else:
            self._shrink_tell(curr)

        if phase is not self._phase:
            logger.debug("Nelder-Mead %s -> %s", phase.value, self._phase.value)

    def forget(self, obs_id: ObsId) -> None:  # noqa: ARG002
        return None

    def _initial_tell(self, vertex: Vertex) -> None:
        self._simplex.append(vertex)
        if len(self._simplex) == self.dim + 1:
            self._sort_simplex()
            self._update_centroid()
            self._phase = Phase.REFLECT

    def _reflect_tell(self, vertex: Vertex) -> None:
        if vertex.value < self._lowest.value:
            self._set_phase(Phase.EXPAND, vertex)
        elif vertex.value < self._second_highest.value:
            self._accept(vertex)
        elif vertex.value < self._highest.value:
            self._set_phase(Phase.CONTRACT_OUTSIDE, vertex)
        else:
            self._set_phase(Phase.CONTRACT_INSIDE, vertex)

    def _shrink_tell(self, vertex: Vertex) -> None:
        self._simplex[self._shrink_index] = vertex
        if self._shrink_index < len(self._simplex) - 1:
            self._shrink_index += 1
        else:
            self._sort_simplex()
            self._update_centroid()
            self._set_phase(Phase.REFLECT)

    def _accept(self, vertex: Vertex) -> None:
        self._simplex.append(vertex)
        self._sort_simplex()
        self._simplex.pop()
        self._update_centroid()
        self._set_phase(Phase.REFLECT)

    def _shrink(self) -> None:
        self._shrink_index = 1
        self._set_phase(Phase.SHRINK)

    def _set_phase(self, phase: Phase, prev: Optional[Vertex] = None) -> None:
        self._phase = phase
        self._prev = prev

    # ------------------------------------------------------------------
    # simplex helpers
    # ------------------------------------------------------------------

    def _sort_simplex(self) -> None:
        self._simplex.sort(key=lambda v: v.value)

    @property
    def _lowest(self) -> Vertex:
        return self._simplex[0]

    @property
    def _second_highest(self) -> Vertex:
        return self._simplex[-2]

    @property
    def _highest(self) -> Vertex:
        return self._simplex[-1]

    def _update_centroid(self) -> None:
        # Centroid of every vertex except the worst; the simplex is sorted.
        assert len(self._simplex) == self.dim + 1
        self._centroid = np.mean([v.x for v in self._simplex[:-1]], axis=0)
