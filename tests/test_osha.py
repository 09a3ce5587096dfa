from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List

import numpy as np
import pytest

from optimise_blackbox import (
    ContinuousDomain,
    InvalidInputError,
    Obs,
    ObsId,
    OptimiserError,
    OptimiserStateError,
    SerialIdGenerator,
    UnknownObservationError,
    run_optimisation,
)
from optimise_blackbox.optimisers import FactoryDomain, OshaOptimiser, RandomOptimiser, TpeNumericalOptimiser
from optimise_blackbox.problems import QuadraticProblem


@dataclass
class ConstantOptimiser:
    """Always proposes the same parameter."""

    param: float

    def ask(self, rng: np.random.Generator, idg: Any) -> Obs:
        return Obs.new(idg, self.param)

    def tell(self, obs: Obs) -> None:
        return None

    def forget(self, obs_id: Any) -> None:
        return None


@dataclass
class ListMeta:
    """Meta optimiser proposing a fixed sequence of optimisers."""

    optimisers: Iterator[Any]
    told: List[Obs] = field(default_factory=list)

    def ask(self, rng: np.random.Generator, idg: Any) -> Obs:
        return Obs.new(idg, next(self.optimisers, None))

    def tell(self, obs: Obs) -> None:
        self.told.append(obs)

    def forget(self, obs_id: Any) -> None:
        return None


def _step(osha: OshaOptimiser, rng, idg, n: int) -> None:
    for _ in range(n):
        obs = osha.ask(rng, idg)
        osha.tell(obs.with_value(obs.param))


def test_osha_promotes_the_better_half():
    meta = ListMeta(iter([ConstantOptimiser(1.0), ConstantOptimiser(2.0), ConstantOptimiser(0.5)]))
    osha = OshaOptimiser(meta, min_evals=2, warmup_evals=2)
    rng = np.random.default_rng(0)
    idg = SerialIdGenerator()

    # First candidate finishes rung 0 alone: nothing to promote.
    _step(osha, rng, idg, 2)
    assert osha.active is None
    assert len(osha.states) == 1

    # Second candidate finishes rung 0; the first one is better and is resumed.
    _step(osha, rng, idg, 2)
    assert osha.active is not None
    assert osha.active.inner.param == 1.0
    assert osha.active.rung == 1
    assert osha.active.rung_evals == 4
    assert osha.active.stagnated

    # The meta optimiser only heard about improvements.
    assert [(o.param, o.value) for o in meta.told] == [(None, 1.0), (None, 2.0)]
    assert meta.told[0].id != meta.told[1].id


def test_osha_quadratic():
    problem = QuadraticProblem()
    factories = [lambda: RandomOptimiser(problem.domain)]
    osha = OshaOptimiser(RandomOptimiser(FactoryDomain(factories)), min_evals=5, warmup_evals=5)
    best = run_optimisation(problem, osha, budget=200, rng=np.random.default_rng(0))
    assert abs(best.param - 3.0) < 1.0


def test_osha_requires_an_optimiser_from_meta():
    osha = OshaOptimiser(ListMeta(iter([])))
    with pytest.raises(OptimiserError):
        osha.ask(np.random.default_rng(0), SerialIdGenerator())


def test_osha_tell_before_ask():
    osha = OshaOptimiser(ListMeta(iter([])))
    with pytest.raises(OptimiserStateError):
        osha.tell(Obs.new(SerialIdGenerator(), 1.0).with_value(1.0))


def test_factory_domain():
    with pytest.raises(InvalidInputError):
        FactoryDomain([])
    domain = FactoryDomain([lambda: ConstantOptimiser(1.0), lambda: ConstantOptimiser(2.0)])
    rng = np.random.default_rng(0)
    made = [domain.sample(rng) for _ in range(20)]
    assert {o.param for o in made} == {1.0, 2.0}
    assert made[0] is not domain.sample(rng)


def test_osha_skips_stagnated_candidates():
    meta = ListMeta(
        iter(
            [
                ConstantOptimiser(1.0),
                ConstantOptimiser(2.0),
                ConstantOptimiser(0.5),
                ConstantOptimiser(3.0),
            ]
        )
    )
    osha = OshaOptimiser(meta, min_evals=2, warmup_evals=2)
    rng = np.random.default_rng(0)
    idg = SerialIdGenerator()

    # 1.0 and 2.0 finish rung 0; 1.0 is promoted and finishes rung 1 alone.
    _step(osha, rng, idg, 6)
    assert osha.active is None

    # 0.5 beats both at rung 0 and is promoted to rung 1 without improving.
    _step(osha, rng, idg, 2)
    assert osha.active.inner.param == 0.5
    assert osha.active.stagnated
    _step(osha, rng, idg, 2)

    # At rung 1 the stagnated 0.5 outranks 1.0: it moves to rung 2 unrun.
    skipped = next(s for s in osha.states if s.inner.param == 0.5)
    assert skipped.rung == 2
    assert skipped.rung_evals == 8
    assert skipped.evals == 4
    assert osha.active is None

    obs = osha.ask(rng, idg)
    assert obs.param == 3.0
    assert osha.active.inner.param == 3.0
    assert osha.active.rung == 0


def test_osha_forget_reaches_only_the_owner():
    domain = ContinuousDomain(0.0, 1.0)
    meta = RandomOptimiser(FactoryDomain([lambda: TpeNumericalOptimiser(domain)]))
    osha = OshaOptimiser(meta, min_evals=2)
    rng = np.random.default_rng(0)
    idg = SerialIdGenerator()

    for _ in range(6):
        last = osha.ask(rng, idg)
        osha.tell(last.with_value(last.param))
    assert len(osha.states) == 2

    osha.forget(last.id)
    for state in osha.states:
        with pytest.raises(UnknownObservationError):
            state.inner.forget(last.id)

    # Ids asked by no candidate are ignored.
    osha.forget(ObsId(1000))
