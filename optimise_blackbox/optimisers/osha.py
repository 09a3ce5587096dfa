"""Optimiser Successive Halving.

Overview
--------
Successive halving applied to optimisers instead of configurations. A meta
optimiser proposes candidate optimisers (its ``param`` is the optimiser
itself). The active candidate drives ``ask``/``tell`` for ``min_evals``
evaluations; it is then parked in its rung and the next candidate is
activated:

* a parked candidate ranked in the better half of its rung is promoted to
  the next rung, where it runs for twice as many evaluations;
* if no candidate can be promoted, a fresh one is asked from the meta
  optimiser.

A candidate that did not improve during a whole rung after its warm-up is
*stagnated*: it is promoted past its rung without running.

The meta optimiser sees ``Obs(candidate_id, None, best_value)`` whenever a
candidate improves on its own best.
"""
from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from ..errors import ErrorKind, InvalidInputError, OptimiserError, OptimiserStateError
from ..interface import Optimiser
from ..observation import IdGen, Obs, ObsId

logger = logging.getLogger(__name__)


@dataclass
class OptimiserState:
    id: ObsId
    inner: Optimiser
    rung_evals: int
    bests: Dict[int, Any] = field(default_factory=dict)
    evals: int = 0
    rung: int = 0
    stagnated: bool = False

    @property
    def best(self) -> Optional[Any]:
        return min(self.bests.values()) if self.bests else None

    def set_best(self, value: Any) -> None:
        self.bests[self.rung] = value

    def key(self, rung: int) -> Optional[Any]:
        """Best value reached up to ``rung``, or ``None`` below that rung."""

        if self.rung < rung:
            return None
        reached = [v for r, v in self.bests.items() if r <= rung]
        return min(reached) if reached else None


def _rank(state: OptimiserState, rung: int):
    key = state.key(rung)
    return (True,) if key is None else (False, key)


class OshaOptimiser:
    """Successive halving over optimisers proposed by ``meta``.

    Parameters
    ----------
    meta:
        Optimiser whose asked params are optimisers.
    min_evals:
        Evaluations a candidate runs for in rung 0; doubled on each promotion.
    warmup_evals:
        Evaluations before a candidate can be marked as stagnated.
    """

    def __init__(self, meta: Optimiser, min_evals: int = 10, warmup_evals: int = 10) -> None:
        if min_evals < 1:
            raise InvalidInputError(f"min_evals must be positive: {min_evals}")
        self.meta = meta
        self.min_evals = min_evals
        self.warmup_evals = warmup_evals
        self.active: Optional[OptimiserState] = None
        self.states: List[OptimiserState] = []
        self._owners: Dict[ObsId, OptimiserState] = {}

    def _activate(self) -> bool:
        for rung in itertools.count():
            self.states.sort(key=lambda s: _rank(s, rung))

            n = sum(1 for s in self.states if s.rung >= rung)
            if n == 0:
                return True
            i = next((j for j, s in enumerate(self.states) if s.rung == rung), None)
            if i is None:
                continue

            if i < n // 2:
                state = self.states.pop(i)
                state.rung_evals *= 2
                state.rung += 1
                if state.stagnated:
                    logger.debug("Skipping stagnated optimiser %s at rung %d", state.id, state.rung)
                    self.states.append(state)
                    return False
                if state.evals >= self.warmup_evals:
                    state.stagnated = True
                logger.debug("Promoted optimiser %s to rung %d", state.id, state.rung)
                self.active = state
                return True
        raise AssertionError("unreachable")

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        if self.active is None:
            obs = self.meta.ask(rng, idg)
            if obs.param is None:
                raise OptimiserError("Meta optimiser proposed no optimiser", kind=ErrorKind.OTHER)
            logger.debug("Activated new optimiser %s", obs.id)
            self.active = OptimiserState(id=obs.id, inner=obs.param, rung_evals=self.min_evals)

        obs = self.active.inner.ask(rng, idg)
        self._owners[obs.id] = self.active
        return obs

    def tell(self, obs: Obs) -> None:
        state = self.active
        if state is None:
            raise OptimiserStateError("No optimiser is active; call ask first")

        state.inner.tell(obs)

        best = state.best
        if best is None or obs.value < best:
            state.set_best(obs.value)
            state.stagnated = False
            self.meta.tell(Obs(id=state.id, param=None, value=obs.value))

        state.evals += 1
        if state.evals >= state.rung_evals:
            self.states.append(state)
            self.active = None
            while not self._activate():
                pass

    def forget(self, obs_id: ObsId) -> None:
        """Forward to the candidate that asked ``obs_id``, if any."""

        state = self._owners.pop(obs_id, None)
        if state is not None:
            state.inner.forget(obs_id)


class FactoryDomain:
    """Domain whose samples are freshly built optimisers.

    Lets :class:`~optimise_blackbox.optimisers.random.RandomOptimiser` act as
    the meta optimiser of :class:`OshaOptimiser`.
    """

    def __init__(self, factories: Sequence[Callable[[], Optimiser]]) -> None:
        if not factories:
            raise InvalidInputError("FactoryDomain needs at least one factory.")
        self.factories = list(factories)

    def sample(self, rng: np.random.Generator) -> Optimiser:
        return self.factories[int(rng.integers(len(self.factories)))]()
