"""Baseline optimiser: random search over a domain.

Overview
--------
This optimiser performs pure Monte Carlo search:

* Each call to :meth:`RandomOptimiser.ask` draws a point independently from
  the domain's prior. There is no adaptation based on previous results.
* ``tell`` and ``forget`` are no-ops; the driver loop keeps the best
  observation.

Despite its simplicity, random search is a useful baseline, a convenient way
to exercise the interfaces, and the usual inner optimiser for successive
halving (:mod:`optimise_blackbox.optimisers.asha`).
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ..domains import Domain
from ..observation import IdGen, Obs, ObsId


@dataclass
class RandomOptimiser:
    """Samples parameters independently from ``domain``."""

    domain: Domain

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        return Obs.new(idg, self.domain.sample(rng))

    def tell(self, obs: Obs) -> None:  # noqa: ARG002
        return None

    def forget(self, obs_id: ObsId) -> None:  # noqa: ARG002
        return None
