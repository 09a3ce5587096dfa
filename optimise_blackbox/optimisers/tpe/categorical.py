"""TPE over a categorical domain.

The densities are smoothed histograms: every category starts with
``prior_weight`` pseudo-counts and each observation adds its weight to its
category. Since the domain is finite, every category is scored instead of
sampling candidates; ties are broken by a random shuffle.
"""
from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from ...domains import CategoricalDomain
from ...errors import InvalidInputError
from ...observation import IdGen, Obs, ObsId
from .history import SortedHistory
from .options import TpeOptions


class Histogram:
    def __init__(
        self,
        indices: Sequence[int],
        weights: Sequence[float],
        cardinality: int,
        prior_weight: float,
    ) -> None:
        counts = np.full(cardinality, prior_weight, dtype=float)
        for i, w in zip(indices, weights):
            counts[i] += w
        self.probabilities = counts / counts.sum()

    def pmf(self, index: int) -> float:
        return float(self.probabilities[index])

    def sample(self, rng: np.random.Generator) -> int:
        return int(rng.choice(len(self.probabilities), p=self.probabilities))


class TpeCategoricalOptimiser:
    def __init__(self, domain: CategoricalDomain, options: Optional[TpeOptions] = None) -> None:
        if not isinstance(domain, CategoricalDomain):
            raise InvalidInputError("TpeCategoricalOptimiser requires a CategoricalDomain.")
        self.domain = domain
        self.options = options or TpeOptions()
        self._history = SortedHistory()

    def histograms(self) -> tuple[Histogram, Histogram]:
        preprocessor = self.options.preprocessor
        gamma = preprocessor.divide_observations(list(self._history))
        superiors, inferiors = self._history.split(gamma)

        def build(obss, is_superior: bool) -> Histogram:
            return Histogram(
                [self.domain.encode(o.param) for o in obss],
                preprocessor.weight_observations(obss, is_superior),
                self.domain.cardinality,
                self.options.prior_weight,
            )

        return build(superiors, True), build(inferiors, False)

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        superior, inferior = self.histograms()

        indices = rng.permutation(self.domain.cardinality)
        ei = np.log(superior.probabilities[indices]) - np.log(inferior.probabilities[indices])
        best = int(indices[int(np.argmax(ei))])
        return Obs.new(idg, self.domain.decode(best))

    def tell(self, obs: Obs) -> None:
        self.domain.encode(obs.param)
        self._history.insert(obs)

    def forget(self, obs_id: ObsId) -> None:
        self._history.remove(obs_id)
