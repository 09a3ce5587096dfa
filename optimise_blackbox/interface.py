"""Generic black-box optimisation interfaces.

This module defines the ask/tell protocol shared by every optimiser in the
package, together with a minimal problem interface and a sequential driver
loop.

A simple mental model is the 1D quadratic example used in the tests:

* The domain is all real numbers ``x`` in some interval.
* ``ask`` returns an unevaluated observation whose ``param`` is a candidate
  ``x``.
* ``evaluate(x)`` returns a value such as ``(x-3)^2``, which is minimised at
  ``x = 3``. Smaller values are better throughout the package.
* ``tell`` feeds the evaluated observation back so the optimiser can decide
  where to look next.

Observations carry an :class:`~optimise_blackbox.observation.ObsId`, which is
what lets optimisers with several evaluations in flight (successive halving,
Hyperband, NSGA-II) match results to the proposals they made.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import numpy as np

from .observation import IdGen, Obs, ObsId, SerialIdGenerator

logger = logging.getLogger(__name__)


class Optimiser(Protocol):
    """Black-box optimiser."""

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        """Return the next observation to evaluate.

        The returned observation is unevaluated (``value is None``). Its
        evaluation result should be told back with :meth:`tell`.
        """

        ...

    def tell(self, obs: Obs) -> None:
        """Tell the result of an evaluated observation.

        If there is an existing observation with the same identifier, its
        state is overwritten by the new one. Some implementations raise
        :class:`~optimise_blackbox.errors.UnknownObservationError` for
        identifiers they did not generate.
        """

        ...

    def forget(self, obs_id: ObsId) -> None:
        """Forget the observation associated with ``obs_id``."""

        ...


class Problem(Protocol):
    """Objective function over a domain.

    ``domain`` is used by configuration helpers to build optimisers;
    ``evaluate`` must return a value comparable with ``<`` (a float for
    single-objective problems, a sequence of floats for multi-objective ones).
    """

    domain: Any

    def evaluate(self, param: Any) -> Any:
        ...


def is_better(candidate: Any, incumbent: Optional[Obs]) -> bool:
    return incumbent is None or candidate < incumbent.value


def run_optimisation(
    problem: Problem,
    optimiser: Optimiser,
    budget: int,
    rng: Optional[np.random.Generator] = None,
    idg: Optional[IdGen] = None,
) -> Optional[Obs]:
    """Simple optimisation loop over a problem.

    The loop is budgeted purely in terms of the number of evaluations:
    ``budget`` is the total number of calls to :meth:`Problem.evaluate`.

    Returns the evaluated observation with the smallest value, or ``None``
    when ``budget <= 0``. Errors raised by the problem or the optimiser
    propagate unchanged.
    """

    if budget <= 0:
        return None

    rng = rng if rng is not None else np.random.default_rng()
    idg = idg if idg is not None else SerialIdGenerator()

    best: Optional[Obs] = None
    for _ in range(budget):
        obs = optimiser.ask(rng, idg)
        value = problem.evaluate(obs.param)
        evaluated = obs.with_value(value)
        optimiser.tell(evaluated)

        if is_better(value, best):
            logger.debug("New best %s: value=%s param=%s", evaluated.id, value, evaluated.param)
            best = evaluated

    return best
