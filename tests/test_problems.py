from __future__ import annotations

import pytest

from optimise_blackbox import Budget, Budgeted, InvalidInputError
from optimise_blackbox.problems import (
    BudgetedSphereProblem,
    QuadraticProblem,
    RosenbrockProblem,
    SphereProblem,
    ZdtProblem,
)


def test_sphere_and_rosenbrock():
    assert SphereProblem(dim=3).evaluate([1.0, 2.0, -2.0]) == 9.0
    assert len(SphereProblem(dim=3).domain) == 3

    rosenbrock = RosenbrockProblem(dim=3)
    assert rosenbrock.evaluate([1.0, 1.0, 1.0]) == 0.0
    assert rosenbrock.evaluate([0.0, 0.0, 0.0]) == 2.0
    with pytest.raises(InvalidInputError):
        RosenbrockProblem(dim=1)


def test_quadratic():
    problem = QuadraticProblem(target=3.0)
    assert problem.evaluate(5.0) == 4.0
    assert problem.domain.low == -10.0


def test_budgeted_sphere_consumes_remaining_budget():
    problem = BudgetedSphereProblem(dim=2)
    param = Budgeted(Budget(4, consumption=1), [1.0, 1.0])
    value = problem.evaluate(param)
    assert param.budget.consumption == 4
    assert value == pytest.approx(2.25)


def test_zdt1_front():
    problem = ZdtProblem(dim=3)
    f1, f2 = problem.evaluate([0.25, 0.0, 0.0])
    assert f1 == 0.25
    assert f2 == pytest.approx(0.5)
    with pytest.raises(InvalidInputError):
        SphereProblem(dim=0)
