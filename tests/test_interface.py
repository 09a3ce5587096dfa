from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List

import numpy as np

from optimise_blackbox import ContinuousDomain, Obs, run_optimisation
from optimise_blackbox.optimisers import RandomOptimiser
from optimise_blackbox.problems import QuadraticProblem


@dataclass
class RecordingOptimiser:
    """Random search that remembers every observation it is told."""

    domain: ContinuousDomain
    told: List[Obs] = field(default_factory=list)

    def ask(self, rng: np.random.Generator, idg: Any) -> Obs:
        return Obs.new(idg, self.domain.sample(rng))

    def tell(self, obs: Obs) -> None:
        self.told.append(obs)

    def forget(self, obs_id: Any) -> None:
        return None


def test_run_optimisation_returns_none_without_budget():
    problem = QuadraticProblem()
    assert run_optimisation(problem, RandomOptimiser(problem.domain), budget=0) is None


def test_random_search_quadratic_converges():
    """Random search should find an x reasonably close to 3.

    The domain is ``[-10, 10)``, so 100 uniform samples land within 1 of the
    optimum with overwhelming probability.
    """

    problem = QuadraticProblem(target=3.0)
    best = run_optimisation(problem, RandomOptimiser(problem.domain), budget=100, rng=np.random.default_rng(0))

    assert best is not None
    assert abs(best.param - 3.0) < 1.0
    assert best.value == (best.param - 3.0) ** 2


def test_run_optimisation_tells_every_evaluation():
    problem = QuadraticProblem()
    optimiser = RecordingOptimiser(problem.domain)
    best = run_optimisation(problem, optimiser, budget=20, rng=np.random.default_rng(1))

    assert len(optimiser.told) == 20
    assert [o.id.get() for o in optimiser.told] == list(range(20))
    assert best.value == min(o.value for o in optimiser.told)
