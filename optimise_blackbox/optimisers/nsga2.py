"""NSGA-II (Non-dominated Sorting Genetic Algorithm II).

Overview
--------
A multi-objective evolutionary optimiser. Values are sequences of floats,
all minimised. The algorithm keeps a parent population of
``population_size`` individuals; offspring produced from it are evaluated
and, once a full generation has been told, parents and offspring are merged
and ranked:

1. *Fast non-dominated sort* splits the merged population into fronts; the
   first front holds the individuals no one dominates, the second those only
   dominated by the first, and so on.
2. Fronts are copied into the new parent population in order. The front that
   does not fit entirely is cut by *crowding distance*, preferring
   individuals in sparsely populated regions of the objective space.

How individuals are created, selected and varied is delegated to a
:class:`Nsga2Strategy`.

References
----------
- Kalyanmoy Deb et al. (2002). "A fast and elitist multiobjective genetic
  algorithm: NSGA-II". IEEE Transactions on Evolutionary Computation.
"""
from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional, Protocol, Sequence, Set

import numpy as np

from ..domains import VecDomain
from ..errors import InvalidInputError
from ..observation import IdGen, Obs, ObsId

logger = logging.getLogger(__name__)


def dominates(a: Obs, b: Obs) -> bool:
    """Return whether ``a`` Pareto-dominates ``b``."""

    if len(a.value) != len(b.value):
        raise InvalidInputError(
            f"Objective counts differ: {len(a.value)} != {len(b.value)}"
        )
    if any(x > y for x, y in zip(a.value, b.value)):
        return False
    return any(x < y for x, y in zip(a.value, b.value))


class Generator(Protocol):
    def generate(self, rng: np.random.Generator, domain: Any) -> Any:
        ...


class Selector(Protocol):
    def select(self, rng: np.random.Generator, population: Sequence[Obs]) -> Obs:
        ...


class Variator(Protocol):
    def evolve(self, rng: np.random.Generator, parents: Sequence[Obs]) -> List[Any]:
        ...


class RandomGenerator:
    """Samples root individuals from the domain."""

    def generate(self, rng: np.random.Generator, domain: Any) -> Any:
        return domain.sample(rng)


class TournamentSelector:
    """Binary (by default) tournament on Pareto dominance."""

    def __init__(self, tournament_size: int = 2) -> None:
        if tournament_size < 1:
            raise InvalidInputError(f"tournament_size must be positive: {tournament_size}")
        self.tournament_size = tournament_size

    def select(self, rng: np.random.Generator, population: Sequence[Obs]) -> Obs:
        if not population:
            raise InvalidInputError("Cannot select from an empty population.")
        winner = population[int(rng.integers(len(population)))]
        for _ in range(1, self.tournament_size):
            candidate = population[int(rng.integers(len(population)))]
            if dominates(candidate, winner):
                winner = candidate
        return winner

    def select_parents(
        self, rng: np.random.Generator, population: Sequence[Obs], parent_count: int
    ) -> List[Obs]:
        return [self.select(rng, population) for _ in range(parent_count)]


class UniformCrossoverVariator:
    """Per-gene uniform crossover followed by per-gene resampling.

    Two parents yield two children. Each gene is swapped between the children
    with probability 0.5, then each gene of each child is redrawn from its
    domain with probability ``mutation_rate``.
    """

    def __init__(self, domain: VecDomain, mutation_rate: float = 0.1) -> None:
        if not 0.0 <= mutation_rate <= 1.0:
            raise InvalidInputError(f"mutation_rate must be in [0, 1]: {mutation_rate}")
        self.domain = domain
        self.mutation_rate = mutation_rate

    def evolve(self, rng: np.random.Generator, parents: Sequence[Obs]) -> List[Any]:
        if len(parents) != 2:
            raise InvalidInputError(f"Expected two parents: got {len(parents)}")
        a = list(parents[0].param)
        b = list(parents[1].param)

        for i in range(len(self.domain)):
            if rng.random() < 0.5:
                a[i], b[i] = b[i], a[i]

        children = [a, b]
        for child in children:
            for i, domain in enumerate(self.domain):
                if rng.random() < self.mutation_rate:
                    child[i] = domain.sample(rng)
        return children


@dataclass
class Nsga2Strategy:
    generator: Generator = field(default_factory=RandomGenerator)
    selector: TournamentSelector = field(default_factory=TournamentSelector)
    variator: Optional[Variator] = None

    @classmethod
    def for_domain(cls, domain: VecDomain, mutation_rate: float = 0.1) -> "Nsga2Strategy":
        return cls(variator=UniformCrossoverVariator(domain, mutation_rate))


class Nsga2Optimiser:
    """NSGA-II over ``domain``.

    Parameters
    ----------
    domain:
        Parameter domain; root individuals are generated from it.
    population_size:
        Number of parents kept between generations (at least 2).
    strategy:
        Generator, selector and variator. Defaults to random generation,
        binary tournaments and uniform crossover over ``domain``.
    """

    def __init__(
        self, domain: VecDomain, population_size: int, strategy: Optional[Nsga2Strategy] = None
    ) -> None:
        if population_size < 2:
            raise InvalidInputError(f"population_size must be at least 2: {population_size}")
        if strategy is None:
            strategy = Nsga2Strategy.for_domain(domain)
        elif strategy.variator is None:
            raise InvalidInputError("Nsga2Strategy needs a variator.")
        self.domain = domain
        self.population_size = population_size
        self.strategy = strategy
        self.parent_population: List[Obs] = []
        self.current_population: List[Obs] = []
        self.eval_queue: Deque[Obs] = deque()
        self.generation = 0

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        if self.eval_queue:
            return self.eval_queue.popleft()

        if len(self.current_population) >= self.population_size:
            self._next_generation()

        if not self.parent_population:
            param = self.strategy.generator.generate(rng, self.domain)
            self.eval_queue.append(Obs.new(idg, param))
        else:
            parents = self.strategy.selector.select_parents(rng, self.parent_population, 2)
            for param in self.strategy.variator.evolve(rng, parents):
                self.eval_queue.append(Obs.new(idg, param))

        return self.eval_queue.popleft()

    def tell(self, obs: Obs) -> None:
        self.current_population.append(obs)

    def forget(self, obs_id: ObsId) -> None:
        self.eval_queue = deque(o for o in self.eval_queue if o.id != obs_id)
        self.parent_population = [o for o in self.parent_population if o.id != obs_id]
        self.current_population = [o for o in self.current_population if o.id != obs_id]

    def _next_generation(self) -> None:
        population = self.parent_population + self.current_population
        self.parent_population = []
        self.current_population = []

        for front in fast_non_dominated_sort(population):
            if len(self.parent_population) + len(front) < self.population_size:
                self.parent_population.extend(front)
            else:
                n = self.population_size - len(self.parent_population)
                self.parent_population.extend(crowding_distance_sort(front)[:n])
                break

        self.generation += 1
        logger.debug(
            "Generation %d: %d parents selected from %d individuals",
            self.generation,
            len(self.parent_population),
            len(population),
        )


def fast_non_dominated_sort(population: Sequence[Obs]) -> List[List[Obs]]:
    """Split ``population`` into Pareto fronts, best front first."""

    dominated_count: Dict[ObsId, int] = {}
    dominates_list: Dict[ObsId, Set[ObsId]] = {}
    for p in population:
        sp: Set[ObsId] = set()
        np_ = 0
        for q in population:
            if dominates(p, q):
                sp.add(q.id)
            elif dominates(q, p):
                np_ += 1
        dominated_count[p.id] = np_
        dominates_list[p.id] = sp

    fronts: List[List[Obs]] = []
    remaining = list(population)
    while remaining:
        front = [p for p in remaining if dominated_count[p.id] == 0]
        if not front:
            raise AssertionError("Non-dominated sort made no progress")
        remaining = [p for p in remaining if dominated_count[p.id] != 0]
        for p in front:
            for q in dominates_list[p.id]:
                dominated_count[q] -= 1
        fronts.append(front)
    return fronts


def crowding_distance_sort(front: Sequence[Obs]) -> List[Obs]:
    """Return ``front`` sorted by decreasing crowding distance.

    Boundary individuals of every objective get an infinite distance.
    Objectives with zero width contribute nothing.
    """

    front = list(front)
    if not front:
        return front

    distances: Dict[ObsId, float] = {o.id: 0.0 for o in front}
    for i in range(len(front[0].value)):
        front.sort(key=lambda o: o.value[i])
        distances[front[0].id] = float("inf")
        distances[front[-1].id] = float("inf")

        width = front[-1].value[i] - front[0].value[i]
        if width == 0:
            continue
        for prev, curr, nxt in zip(front, front[1:], front[2:]):
            distances[curr.id] += (nxt.value[i] - prev.value[i]) / width

    front.sort(key=lambda o: distances[o.id], reverse=True)
    return front
