from __future__ import annotations

import pytest

from optimise_blackbox import Budget, Budgeted, InvalidInputError, Leveled


def test_budget_accounting():
    budget = Budget(10)
    assert budget.remaining == 10
    assert not budget.is_exhausted()

    budget.consume(4)
    assert budget.remaining == 6
    assert budget.excess == 0

    budget.consume(9)
    assert budget.remaining == 0
    assert budget.excess == 3
    assert budget.is_exhausted()


def test_budget_rejects_negative_values():
    with pytest.raises(InvalidInputError):
        Budget(-1)
    with pytest.raises(InvalidInputError):
        Budget(1).consume(-1)


def test_budgeted_wraps_a_value():
    budgeted = Budgeted(Budget(3), [1.0, 2.0])
    assert budgeted.get() == [1.0, 2.0]
    assert budgeted.into_inner() is budgeted.value


def test_leveled_prefers_higher_levels():
    assert Leveled(1, 5.0) < Leveled(0, 1.0)
    assert Leveled(1, 1.0) < Leveled(1, 2.0)
    values = [Leveled(0, 0.1), Leveled(2, 9.0), Leveled(2, 3.0), Leveled(1, 0.0)]
    assert min(values) == Leveled(2, 3.0)
