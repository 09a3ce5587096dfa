"""Asynchronous Successive Halving Algorithm (ASHA).

Overview
--------
Configurations are first evaluated with a small budget. The rungs form a
geometric ladder of budgets ``min_budget, min_budget*f, min_budget*f^2, ...``
capped at ``max_budget`` where ``f`` is the reduction factor. Whenever a
configuration is in the top ``1/f`` of its rung and has not been promoted
yet, it is resumed with the next rung's budget. Otherwise a fresh
configuration is drawn from the inner optimiser.

Unlike synchronous successive halving there is no barrier: promotions are
decided from whatever results are available, so many workers can be kept busy.

Parameters asked by this optimiser are :class:`~optimise_blackbox.budget.Budgeted`.
The evaluator is expected to ``consume`` at least the allotted amount before
telling the observation back. A promoted parameter keeps its previous
consumption, so an evaluator can resume training rather than restart.

The inner optimiser is told ``Leveled(rung_index, value)`` values, which rank
results from higher rungs above results from lower ones.

References
----------
- Liam Li et al. (2018). "Massively Parallel Hyperparameter Tuning".
  https://arxiv.org/abs/1810.05934
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import numpy as np

from ..budget import Budget, Budgeted, Leveled
from ..errors import InvalidInputError
from ..interface import Optimiser
from ..observation import IdGen, Obs, ObsId

logger = logging.getLogger(__name__)


class AshaBuilder:
    """Builder of :class:`AshaOptimiser`."""

    def __init__(self) -> None:
        self._reduction_factor = 2

    def reduction_factor(self, factor: int) -> "AshaBuilder":
        if factor < 2:
            raise InvalidInputError(f"Reduction factor must be at least 2: {factor}")
        self._reduction_factor = factor
        return self

    def finish(self, inner: Optimiser, min_budget: int, max_budget: int) -> "AshaOptimiser":
        return AshaOptimiser(inner, min_budget, max_budget, reduction_factor=self._reduction_factor)


@dataclass
class _Config:
    """A configuration recorded in a rung.

    ``obs`` is kept while the configuration is still promotable; it is
    dropped once promoted, leaving only the value for ranking.
    """

    value: Any
    obs: Optional[Obs] = None

    @property
    def pending(self) -> bool:
        return self.obs is not None


class Rung:
    def __init__(self, budget: int, next_budget: Optional[int], reduction_factor: int) -> None:
        self.budget = budget
        self.next_budget = next_budget
        self.reduction_factor = reduction_factor
        self.configs: Dict[ObsId, _Config] = {}

    def __contains__(self, obs_id: ObsId) -> bool:
        return obs_id in self.configs

    def __len__(self) -> int:
        return len(self.configs)

    def ask_promotable(self) -> Optional[Obs]:
        if self.next_budget is None:
            return None

        promotables = len(self.configs) // self.reduction_factor
        ranked = sorted(self.configs.items(), key=lambda item: item[1].value)
        for obs_id, config in ranked[:promotables]:
            if config.pending:
                obs = config.obs
                config.obs = None
                budgeted: Budgeted = obs.param
                budgeted.budget.amount = self.next_budget
                return Obs(id=obs_id, param=budgeted)
        return None

    def tell(self, obs: Obs) -> None:
        budget: Budget = obs.param.budget
        if budget.consumption < self.budget:
            raise InvalidInputError(
                f"Observation {obs.id} consumed {budget.consumption}, rung requires {self.budget}"
            )
        self.configs[obs.id] = _Config(value=obs.value, obs=obs)

    def forget(self, obs_id: ObsId) -> None:
        self.configs.pop(obs_id, None)


class AshaOptimiser:
    """ASHA wrapped around an inner optimiser.

    Use :class:`AshaBuilder` to change the reduction factor (default 2).
    """

    def __init__(
        self, inner: Optimiser, min_budget: int, max_budget: int, reduction_factor: int = 2
    ) -> None:
        if reduction_factor < 2:
            raise InvalidInputError(f"Reduction factor must be at least 2: {reduction_factor}")
        if min_budget > max_budget:
            raise InvalidInputError(f"Expected min_budget <= max_budget: {min_budget} > {max_budget}")
        if min_budget <= 0:
            raise InvalidInputError(f"min_budget must be positive: {min_budget}")
        self.inner = inner
        self.min_budget = min_budget
        self.max_budget = max_budget
        self.reduction_factor = reduction_factor
        self.rungs = _make_rungs(min_budget, max_budget, reduction_factor)

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        for level in range(len(self.rungs) - 1, -1, -1):
            obs = self.rungs[level].ask_promotable()
            if obs is not None:
                logger.debug(
                    "Promoting %s from rung %d to budget %d", obs.id, level, obs.param.budget.amount
                )
                return obs

        obs = self.inner.ask(rng, idg)
        return obs.map_param(lambda p: Budgeted(Budget(self.min_budget), p))

    def tell(self, obs: Obs) -> None:
        for level, rung in enumerate(self.rungs):
            if obs.id not in rung:
                rung.tell(obs)
                break
        else:
            raise InvalidInputError(f"Observation {obs.id} has already been recorded in every rung")

        inner_obs = Obs(id=obs.id, param=obs.param.into_inner(), value=Leveled(level, obs.value))
        self.inner.tell(inner_obs)

    def forget(self, obs_id: ObsId) -> None:
        for rung in self.rungs:
            rung.forget(obs_id)


def _make_rungs(min_budget: int, max_budget: int, reduction_factor: int) -> List[Rung]:
    rungs: List[Rung] = []
    budget = min_budget
    while budget < max_budget:
        next_budget = min(max_budget, budget * reduction_factor)
        rungs.append(Rung(budget, next_budget, reduction_factor))
        budget = next_budget
    rungs.append(Rung(max_budget, None, reduction_factor))
    return rungs
