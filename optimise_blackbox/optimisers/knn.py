"""Nearest-neighbour guided sampling.

With ``n`` observations, the best ``k = floor(sqrt(n))`` of them are the
*superiors*. The optimiser draws ``2 * max(1, ceil(sqrt(n)))`` candidates from
the prior and asks the one whose ``k`` nearest observations contain the most
superiors, i.e. the candidate sitting in the densest good neighbourhood.
With no observations this reduces to random search.
"""
from __future__ import annotations

import math
from typing import Any, Dict, List

import numpy as np

from ..domains import ContinuousDomain, VecDomain
from ..errors import InvalidInputError
from ..observation import IdGen, Obs, ObsId


class KnnOptimiser:
    def __init__(self, domain: Any) -> None:
        elements = domain.domains if isinstance(domain, VecDomain) else (domain,)
        if not all(isinstance(d, ContinuousDomain) for d in elements):
            raise InvalidInputError("KnnOptimiser requires continuous domains.")
        self.domain = domain
        self._obss: Dict[ObsId, Obs] = {}

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:
        n = len(self._obss)
        k = math.isqrt(n)
        k2 = math.ceil(math.sqrt(n))

        obss = sorted(self._obss.values(), key=lambda o: o.value)
        superiors = {o.id for o in obss[:k]}
        points = np.array([np.atleast_1d(np.asarray(o.param, dtype=float)) for o in obss])

        best_param: Any = None
        best_count = -1
        for _ in range(max(1, k2) * 2):
            param = self.domain.sample(rng)
            count = 0
            if k > 0:
                dists = np.linalg.norm(points - np.atleast_1d(np.asarray(param, dtype=float)), axis=1)
                nearest: List[int] = list(np.argsort(dists, kind="stable")[:k])
                count = sum(1 for i in nearest if obss[i].id in superiors)
            if count > best_count:
                best_param, best_count = param, count

        return Obs.new(idg, best_param)

    def tell(self, obs: Obs) -> None:
        self._obss[obs.id] = obs

    def forget(self, obs_id: ObsId) -> None:
        self._obss.pop(obs_id, None)
