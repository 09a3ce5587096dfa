"""Parallel utilities for black-box optimisation.

These utilities build on the core :mod:`optimise_blackbox.interface`
abstractions without changing them. Parallelism is treated as an
implementation detail: several observations are evaluated concurrently, but
the optimiser is only ever called from the driving thread, one ``ask`` or
``tell`` at a time.
"""
from __future__ import annotations

import logging
from concurrent.futures import FIRST_COMPLETED, Executor, Future, ThreadPoolExecutor, wait
from typing import Dict, Optional

import numpy as np

from .errors import InvalidInputError
from .interface import Optimiser, Problem, is_better
from .observation import IdGen, Obs, SerialIdGenerator

logger = logging.getLogger(__name__)


def run_optimisation_parallel(
    problem: Problem,
    optimiser: Optimiser,
    budget: int,
    max_workers: int = 4,
    executor: Optional[Executor] = None,
    rng: Optional[np.random.Generator] = None,
    idg: Optional[IdGen] = None,
) -> Optional[Obs]:
    """Parallel optimisation loop over a problem.

    Parameters
    ----------
    problem:
        The problem to optimise.
    optimiser:
        Strategy that proposes observations and receives their values.
    budget:
        Total number of evaluations (calls to ``problem.evaluate``) that will
        be performed across all workers.
    max_workers:
        Upper bound on the number of evaluations in flight.
    executor:
        Optional external :class:`concurrent.futures.Executor`. When
        ``None``, a :class:`ThreadPoolExecutor` is created and managed for the
        duration of the call.

    Notes
    -----
    Optimisers that only allow one pending observation (Nelder-Mead) raise
    :class:`~optimise_blackbox.errors.OptimiserStateError` on the second
    ``ask`` when ``max_workers > 1``.
    """

    if budget <= 0:
        return None
    if max_workers < 1:
        raise InvalidInputError(f"max_workers must be positive: {max_workers}")

    rng = rng if rng is not None else np.random.default_rng()
    idg = idg if idg is not None else SerialIdGenerator()

    if executor is None:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return _run_parallel_with_executor(problem, optimiser, budget, max_workers, pool, rng, idg)
    return _run_parallel_with_executor(problem, optimiser, budget, max_workers, executor, rng, idg)


def _run_parallel_with_executor(
    problem: Problem,
    optimiser: Optimiser,
    budget: int,
    max_workers: int,
    executor: Executor,
    rng: np.random.Generator,
    idg: IdGen,
) -> Optional[Obs]:
    submitted = 0
    in_flight: Dict[Future, Obs] = {}
    best: Optional[Obs] = None

    def submit() -> None:
        nonlocal submitted
        obs = optimiser.ask(rng, idg)
        in_flight[executor.submit(problem.evaluate, obs.param)] = obs
        submitted += 1

    # Prime the pipeline up to the worker limit or budget.
    while submitted < budget and len(in_flight) < max_workers:
        submit()

    while in_flight:
        done, _pending = wait(in_flight.keys(), return_when=FIRST_COMPLETED)
        for future in done:
            obs = in_flight.pop(future)
            evaluated = obs.with_value(future.result())
            optimiser.tell(evaluated)
            if is_better(evaluated.value, best):
                best = evaluated

            if submitted < budget:
                submit()

    logger.debug("Parallel run finished after %d evaluations", submitted)
    return best
