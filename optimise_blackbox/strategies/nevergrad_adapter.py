"""Adapter for Nevergrad optimisers.

This module wraps any optimiser from Nevergrad's registry (``OnePlusOne`` by
default) into the ask/tell protocol of
:class:`~optimise_blackbox.interface.Optimiser`. Nevergrad candidates are
kept by observation id so results can be told back in any order.

Nevergrad is an optional dependency (``pip install optimise-blackbox[nevergrad]``);
constructing :class:`NevergradOptimiser` without it raises ``ImportError``.
Both libraries minimise, so values are passed through unchanged.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

import numpy as np

from ..domains import ContinuousDomain, VecDomain
from ..errors import InvalidInputError, UnknownObservationError
from ..observation import IdGen, Obs, ObsId

try:  # pragma: no cover - import guard
    import nevergrad as ng  # type: ignore[import]
except ImportError:  # pragma: no cover - import guard
    ng = None  # type: ignore[assignment]

logger = logging.getLogger(__name__)


class NevergradOptimiser:
    """Nevergrad-based optimiser over continuous domains.

    Parameters
    ----------
    domain:
        A :class:`ContinuousDomain` (params are floats) or a
        :class:`VecDomain` of continuous domains (params are lists of floats).
    name:
        Name of the optimiser in ``nevergrad.optimizers.registry``.
    num_workers:
        Number of candidates Nevergrad should expect in flight.
    """

    def __init__(self, domain: Any, name: str = "OnePlusOne", num_workers: int = 1) -> None:
        if ng is None:
            raise ImportError("NevergradOptimiser requires the 'nevergrad' package")

        if isinstance(domain, ContinuousDomain):
            parametrization = ng.p.Scalar(lower=domain.low, upper=domain.high)
        elif isinstance(domain, VecDomain) and all(isinstance(d, ContinuousDomain) for d in domain):
            lower = np.array([d.low for d in domain], dtype=float)
            upper = np.array([d.high for d in domain], dtype=float)
            parametrization = ng.p.Array(init=(lower + upper) / 2.0).set_bounds(lower, upper)
        else:
            raise InvalidInputError("NevergradOptimiser requires continuous domains.")

        if name not in ng.optimizers.registry:
            raise InvalidInputError(f"Unknown nevergrad optimiser: {name}")

        self.domain = domain
        self.name = name
        self._optimizer = ng.optimizers.registry[name](
            parametrization=parametrization, budget=None, num_workers=num_workers
        )
        self._candidates: Dict[ObsId, Any] = {}
        logger.debug("Nevergrad %s over %r", name, domain)

    def _to_param(self, candidate: Any) -> Any:
        if isinstance(self.domain, VecDomain):
            return [float(x) for x in candidate.value]
        return float(candidate.value)

    def ask(self, rng: np.random.Generator, idg: IdGen) -> Obs:  # noqa: ARG002
        candidate = self._optimizer.ask()
        obs = Obs.new(idg, self._to_param(candidate))
        self._candidates[obs.id] = candidate
        return obs

    def tell(self, obs: Obs) -> None:
        candidate = self._candidates.pop(obs.id, None)
        if candidate is None:
            raise UnknownObservationError(obs.id)
        self._optimizer.tell(candidate, float(obs.value))

    def forget(self, obs_id: ObsId) -> None:
        self._candidates.pop(obs_id, None)

    def recommendation(self) -> Any:
        """Nevergrad's current recommendation, as a param."""

        return self._to_param(self._optimizer.provide_recommendation())
