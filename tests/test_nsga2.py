from __future__ import annotations

import math

import numpy as np
import pytest

from optimise_blackbox import ContinuousDomain, InvalidInputError, Obs, ObsId, SerialIdGenerator, VecDomain
from optimise_blackbox import run_optimisation
from optimise_blackbox.optimisers import (
    Nsga2Optimiser,
    Nsga2Strategy,
    TournamentSelector,
    UniformCrossoverVariator,
    dominates,
)
from optimise_blackbox.optimisers.nsga2 import crowding_distance_sort, fast_non_dominated_sort
from optimise_blackbox.problems import ZdtProblem


def _obs(i: int, *value: float) -> Obs:
    return Obs(id=ObsId(i), param=[float(i)], value=list(value))


def test_dominates():
    assert dominates(_obs(0, 1.0, 1.0), _obs(1, 2.0, 1.0))
    assert not dominates(_obs(0, 1.0, 1.0), _obs(1, 1.0, 1.0))
    assert not dominates(_obs(0, 1.0, 3.0), _obs(1, 2.0, 1.0))
    with pytest.raises(InvalidInputError):
        dominates(_obs(0, 1.0), _obs(1, 1.0, 2.0))


def test_fast_non_dominated_sort():
    population = [
        _obs(0, 1.0, 4.0),
        _obs(1, 2.0, 2.0),
        _obs(2, 3.0, 3.0),
        _obs(3, 4.0, 1.0),
        _obs(4, 5.0, 5.0),
    ]
    fronts = fast_non_dominated_sort(population)
    assert [sorted(o.id.get() for o in front) for front in fronts] == [[0, 1, 3], [2], [4]]


def test_crowding_distance_prefers_boundaries():
    front = [_obs(0, 0.0, 3.0), _obs(1, 1.0, 2.0), _obs(2, 2.0, 1.0), _obs(3, 3.0, 0.0)]
    ordered = crowding_distance_sort(front)
    assert {o.id.get() for o in ordered[:2]} == {0, 3}
    assert {o.id.get() for o in ordered[2:]} == {1, 2}


def test_crowding_distance_handles_flat_objectives():
    front = [_obs(0, 0.0, 1.0), _obs(1, 1.0, 1.0), _obs(2, 2.0, 1.0)]
    ordered = crowding_distance_sort(front)
    assert ordered[-1].id.get() == 1


def test_uniform_crossover_keeps_parent_genes_without_mutation():
    domain = VecDomain([ContinuousDomain(0.0, 1.0)] * 4)
    variator = UniformCrossoverVariator(domain, mutation_rate=0.0)
    a = Obs(id=ObsId(0), param=[0.1, 0.1, 0.1, 0.1], value=[0.0])
    b = Obs(id=ObsId(1), param=[0.9, 0.9, 0.9, 0.9], value=[0.0])
    children = variator.evolve(np.random.default_rng(0), [a, b])

    assert len(children) == 2
    for i in range(4):
        assert sorted([children[0][i], children[1][i]]) == [0.1, 0.9]
    with pytest.raises(InvalidInputError):
        UniformCrossoverVariator(domain, mutation_rate=1.5)


def test_tournament_selector_prefers_dominating_individuals():
    population = [_obs(0, 0.0, 0.0), _obs(1, 1.0, 1.0)]
    selector = TournamentSelector(tournament_size=8)
    rng = np.random.default_rng(0)
    winners = [selector.select(rng, population).id.get() for _ in range(20)]
    assert winners.count(0) > winners.count(1)


def test_nsga2_validation():
    domain = VecDomain([ContinuousDomain(0.0, 1.0)] * 2)
    with pytest.raises(InvalidInputError):
        Nsga2Optimiser(domain, population_size=1)
    with pytest.raises(InvalidInputError):
        Nsga2Optimiser(domain, population_size=4, strategy=Nsga2Strategy())


def test_nsga2_generations():
    domain = VecDomain([ContinuousDomain(0.0, 1.0)] * 2)
    optimiser = Nsga2Optimiser(domain, population_size=4)
    rng = np.random.default_rng(0)
    idg = SerialIdGenerator()

    for i in range(4):
        obs = optimiser.ask(rng, idg)
        optimiser.tell(obs.with_value([obs.param[0], 1.0 - obs.param[0] + obs.param[1]]))
    assert optimiser.generation == 0
    assert optimiser.parent_population == []

    obs = optimiser.ask(rng, idg)
    assert optimiser.generation == 1
    assert len(optimiser.parent_population) == 4
    # Offspring come in pairs: the sibling is queued.
    assert len(optimiser.eval_queue) == 1

    optimiser.forget(optimiser.eval_queue[0].id)
    assert len(optimiser.eval_queue) == 0


def test_nsga2_zdt1():
    problem = ZdtProblem(dim=5)
    optimiser = Nsga2Optimiser(problem.domain, population_size=20)
    run_optimisation(problem, optimiser, budget=600, rng=np.random.default_rng(0))

    parents = optimiser.parent_population
    assert len(parents) == 20
    # Uniform random points average g(x) = 5.5; the front has g(x) = 1.
    mean_g = np.mean([1.0 + 9.0 * sum(o.param[1:]) / 4 for o in parents])
    assert mean_g < 4.0
    assert all(0.0 <= o.value[0] <= 1.0 for o in parents)
    assert all(math.isfinite(v) for o in parents for v in o.value)
