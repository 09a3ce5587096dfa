"""Asynchronous Hyperband.

Overview
--------
Hyperband hedges over how aggressively successive halving should stop
configurations early. It runs one ASHA *bracket* per early-stopping rate
``s``; bracket ``s`` starts every configuration at ``min_budget * eta^s``, so
bracket 0 is the most aggressive and the last bracket evaluates everything
at (close to) ``max_budget``.

Work is spread so that every bracket consumes roughly the same total budget:
each ``ask`` goes to the bracket with the least accounted consumption.

References
----------
- Lisha Li et al. (2018). "Hyperband: A Novel Bandit-Based Approach to
  Hyperparameter Optimization". JMLR.
- Liam Li et al. (2018). "Massively Parallel Hyperparameter Tuning".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List

import numpy as np

from ..errors import InvalidInputError, UnknownObservationError
from ..interface import Optimiser
from ..observation import IdGen, Obs, ObsId
from .asha import AshaBuilder, AshaOptimiser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HyperbandOptions:
    min_budget: int = 1
    eta: int = 4

    def __post_init__(self) -> None:
        if self.min_budget <= 0:
            raise InvalidInputError(f"min_budget must be positive: {self.min_budget}")
        if self.eta < 2:
            raise InvalidInputError(f"eta must be at least 2: {self.eta}")


class Bracket:
    def __init__(self, asha: AshaOptimiser) -> None:
        self.asha = asha
        self.consumption = 0


class HyperbandOptimiser:
    """Hyperband made of ASHA brackets.

    Parameters
    ----------
    factory:
        Zero-argument callable returning a fresh inner optimiser; one is built
        per bracket.
    max_budget:
        Budget of the last rung of every bracket.
    options:
        Minimum budget and reduction factor ``eta``.
    """

    def __init__(
        self,
        factory: Callable[[], Optimiser],
        max_budget: int,
        options: HyperbandOptions = HyperbandOptions(),
    ) -> None:
        if options.min_budget > max_budget:
            raise InvalidInputError(
                f"Expected min_budget <= max_budget: {options.min_budget} > {max_budget}"
            )
        self.options = options
        self.max_budget = max_budget

        self.brackets: List[Bracket] = []
        bracket_min = options.min_budget
        while bracket_min <= max_budget:
            asha = AshaBuilder().reduction_factor(options.eta).finish(factory(), bracket_min, max_budget)
            self.brackets.append(Bracket(asha))
            bracket_min *= options.eta
        logger.debug("Hyperband with %d brackets", len(self.brackets))

        self._runnings: Dict[ObsId, int] = {}

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        index = min(range(len(self.brackets)), key=lambda i: self.brackets[i].consumption)
        bracket = self.brackets[index]

        obs = bracket.asha.ask(rng, idg)
        bracket.consumption += obs.param.budget.remaining
        self._runnings[obs.id] = index
        return obs

    def tell(self, obs: Obs) -> None:
        if obs.id not in self._runnings:
            raise UnknownObservationError(obs.id)
        bracket = self.brackets[self._runnings[obs.id]]
        bracket.asha.tell(obs)
        del self._runnings[obs.id]

        # Settle the estimate made in ask against what was actually spent.
        budget = obs.param.budget
        bracket.consumption -= budget.remaining
        bracket.consumption += budget.excess

    def forget(self, obs_id: ObsId) -> None:
        self._runnings.pop(obs_id, None)
        for bracket in self.brackets:
            bracket.asha.forget(obs_id)
