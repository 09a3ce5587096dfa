from __future__ import annotations

import numpy as np
import pytest

from optimise_blackbox import (
    CategoricalDomain,
    ChoiceDomain,
    ContinuousDomain,
    InvalidInputError,
    Obs,
    ObsId,
    SerialIdGenerator,
    UnknownObservationError,
    run_optimisation,
)
from optimise_blackbox.optimisers.tpe import (
    DefaultPreprocessor,
    TpeCategoricalOptimiser,
    TpeNumericalOptimiser,
    TpeOptions,
    TpeVecOptimiser,
)
from optimise_blackbox.optimisers.tpe.categorical import Histogram
from optimise_blackbox.problems import QuadraticProblem, SphereProblem


def _obs(i: int, param, value: float) -> Obs:
    return Obs(id=ObsId(i), param=param, value=value)


def test_default_preprocessor_division():
    pre = DefaultPreprocessor()
    assert pre.divide_observations([]) == 0
    assert pre.divide_observations([None] * 16) == 1
    assert pre.divide_observations([None] * 17) == 2
    assert DefaultPreprocessor(divide_factor=10.0, max_superiors=5).divide_observations([None] * 100) == 5


def test_default_preprocessor_weights():
    pre = DefaultPreprocessor()
    assert pre.weight_observations([None] * 4, is_superior=True).tolist() == [1.0] * 4
    assert pre.weight_observations([None] * 10, is_superior=False).tolist() == [1.0] * 10

    weights = pre.weight_observations([None] * 30, is_superior=False)
    assert len(weights) == 30
    assert weights[0] == pytest.approx(1.0 / 30)
    assert all(w < 1.0 for w in weights[:5])
    assert weights[5:].tolist() == [1.0] * 25


def test_options_validation():
    with pytest.raises(InvalidInputError):
        TpeOptions(prior_weight=0.0)
    with pytest.raises(InvalidInputError):
        TpeOptions(ei_candidates=0)
    with pytest.raises(InvalidInputError):
        DefaultPreprocessor(divide_factor=-1.0)


def test_tpe_numerical_quadratic():
    problem = QuadraticProblem(target=3.0)
    optimiser = TpeNumericalOptimiser(problem.domain)
    best = run_optimisation(problem, optimiser, budget=100, rng=np.random.default_rng(0))
    assert abs(best.param - 3.0) < 1.0


def test_tpe_numerical_estimators_follow_history():
    optimiser = TpeNumericalOptimiser(ContinuousDomain(0.0, 10.0))
    optimiser.tell(_obs(0, 2.0, 5.0))
    superior, inferior = optimiser.estimators()
    assert sorted(superior.mus) == [2.0, 5.0]
    assert inferior.mus == [5.0]

    # Same id: the old observation is replaced.
    optimiser.tell(_obs(0, 7.0, 1.0))
    superior, _ = optimiser.estimators()
    assert sorted(superior.mus) == [5.0, 7.0]


def test_tpe_numerical_rejects_bad_input():
    optimiser = TpeNumericalOptimiser(ContinuousDomain(0.0, 1.0))
    with pytest.raises(InvalidInputError):
        optimiser.tell(_obs(0, 1.5, 0.0))
    with pytest.raises(UnknownObservationError):
        optimiser.forget(ObsId(3))
    with pytest.raises(InvalidInputError):
        TpeNumericalOptimiser(CategoricalDomain(3))


def test_tpe_numerical_forget():
    optimiser = TpeNumericalOptimiser(ContinuousDomain(0.0, 1.0))
    optimiser.tell(_obs(0, 0.5, 0.0))
    optimiser.forget(ObsId(0))
    superior, inferior = optimiser.estimators()
    assert superior.mus == inferior.mus == [0.5]


def test_tpe_vec_sphere():
    problem = SphereProblem(dim=2)
    optimiser = TpeVecOptimiser(problem.domain)
    best = run_optimisation(problem, optimiser, budget=150, rng=np.random.default_rng(0))
    assert best.value < 1.0
    assert len(best.param) == 2


def test_histogram_smoothing():
    hist = Histogram([0, 0, 1], [1.0, 1.0, 1.0], cardinality=3, prior_weight=1.0)
    assert hist.probabilities.tolist() == pytest.approx([3 / 6, 2 / 6, 1 / 6])
    assert hist.pmf(2) == pytest.approx(1 / 6)
    assert hist.sample(np.random.default_rng(0)) in (0, 1, 2)


def test_tpe_categorical_finds_the_best_choice():
    domain = ChoiceDomain(["a", "b", "c", "d"])
    optimiser = TpeCategoricalOptimiser(domain)
    rng = np.random.default_rng(0)
    idg = SerialIdGenerator()

    asked = []
    for _ in range(40):
        obs = optimiser.ask(rng, idg)
        asked.append(obs.param)
        optimiser.tell(obs.with_value(0.0 if obs.param == "c" else 1.0))

    # Random search would ask "c" about ten times.
    assert asked.count("c") > 10
    assert asked[-10:].count("c") >= 3


def test_tpe_categorical_requires_categorical_domain():
    with pytest.raises(InvalidInputError):
        TpeCategoricalOptimiser(ContinuousDomain(0.0, 1.0))
