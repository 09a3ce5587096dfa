"""TPE over a continuous domain.

Observations are split into the best ``gamma`` (superiors) and the rest
(inferiors). Two Parzen estimators, ``l(x)`` over the superiors and ``g(x)``
over the inferiors, are fitted; candidates are drawn from ``l`` and the one
maximising ``log l(x) - log g(x)`` (a monotone proxy for expected
improvement) is asked.
"""
from __future__ import annotations

from typing import Optional

import numpy as np

from ...domains import ContinuousDomain, VecDomain
from ...errors import InvalidInputError
from ...observation import ConstIdGenerator, IdGen, Obs, ObsId
from .history import SortedHistory
from .options import TpeOptions
from .parzen_estimator import ParzenEstimator, ParzenEstimatorBuilder


class TpeNumericalOptimiser:
    def __init__(self, domain: ContinuousDomain, options: Optional[TpeOptions] = None) -> None:
        if not isinstance(domain, ContinuousDomain):
            raise InvalidInputError("TpeNumericalOptimiser requires a ContinuousDomain.")
        self.domain = domain
        self.options = options or TpeOptions()
        self._history = SortedHistory()
        self._builder = ParzenEstimatorBuilder(
            prior_weight=self.options.prior_weight,
            prior_uniform=self.options.prior_uniform,
            uniform_sigma=self.options.uniform_sigma,
        )

    def estimators(self) -> tuple[ParzenEstimator, ParzenEstimator]:
        """Return the superior and inferior estimators for the current history."""

        preprocessor = self.options.preprocessor
        gamma = preprocessor.divide_observations(list(self._history))
        superiors, inferiors = self._history.split(gamma)

        def build(obss, is_superior: bool) -> ParzenEstimator:
            return self._builder.finish(
                [self.domain.encode(o.param) for o in obss],
                preprocessor.weight_observations(obss, is_superior),
                self.domain.low,
                self.domain.high,
            )

        return build(superiors, True), build(inferiors, False)

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        superior, inferior = self.estimators()

        candidates = np.array([superior.sample(rng) for _ in range(self.options.ei_candidates)])
        ei = superior.log_pdf(candidates) - inferior.log_pdf(candidates)
        best = float(candidates[int(np.argmax(ei))])
        return Obs.new(idg, self.domain.decode(best))

    def tell(self, obs: Obs) -> None:
        self.domain.encode(obs.param)
        self._history.insert(obs)

    def forget(self, obs_id: ObsId) -> None:
        self._history.remove(obs_id)


class TpeVecOptimiser:
    """Independent TPE over every dimension of a :class:`VecDomain`.

    Each dimension has its own :class:`TpeNumericalOptimiser`; all of them
    see the same values, so the dimensions are modelled independently as in
    Bergstra et al. (2011).
    """

    def __init__(self, domain: VecDomain, options: Optional[TpeOptions] = None) -> None:
        if not isinstance(domain, VecDomain):
            raise InvalidInputError("TpeVecOptimiser requires a VecDomain.")
        self.domain = domain
        self.optimisers = [TpeNumericalOptimiser(d, options) for d in domain]

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        obs_id = idg.generate()
        const = ConstIdGenerator(obs_id)
        return Obs(id=obs_id, param=[o.ask(rng, const).param for o in self.optimisers])

    def tell(self, obs: Obs) -> None:
        for i, optimiser in enumerate(self.optimisers):
            optimiser.tell(obs.map_param(lambda p: p[i]))

    def forget(self, obs_id: ObsId) -> None:
        for optimiser in self.optimisers:
            optimiser.forget(obs_id)
