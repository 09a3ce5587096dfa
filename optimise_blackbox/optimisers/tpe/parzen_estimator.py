"""Adaptive Parzen estimator used by TPE.

The estimator is a mixture of Gaussians, one per observation, plus a prior
component covering the whole range. Each component's bandwidth is the larger
distance to its neighbouring means, clipped so components are never wider
than the range nor narrower than ``range / min(100, 1 + n)``:

    sigma_i = clip(max(mu_i - mu_{i-1}, mu_{i+1} - mu_i), minsigma, maxsigma)

The mixture is truncated to ``[low, high)``: ``p_accept`` is the probability
mass it keeps there and densities are renormalised by it.
"""
from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Iterable, List, Union

import numpy as np
from scipy.special import logsumexp
from scipy.stats import norm

from ...errors import InvalidInputError


@dataclass
class _Entry:
    mu: float
    weight: float
    sigma: float
    prior: bool = False
    uniform: bool = False


@dataclass(frozen=True)
class ParzenEstimatorBuilder:
    prior_weight: float = 1.0
    prior_uniform: bool = False
    uniform_sigma: bool = False

    def finish(
        self,
        mus: Iterable[float],
        weights: Iterable[float],
        low: float,
        high: float,
    ) -> "ParzenEstimator":
        if not low < high:
            raise InvalidInputError(f"Expected low < high: low={low}, high={high}")

        entries = [_Entry(float(mu), float(w), 0.0) for mu, w in zip(mus, weights)]
        entries.sort(key=lambda e: e.mu)
        n_obs = len(entries)

        self._insert_prior_entry(entries, low, high)
        self._normalize_weights(entries)
        self._setup_sigmas(entries, n_obs, low, high)

        return ParzenEstimator(entries, low, high)

    def _insert_prior_entry(self, entries: List[_Entry], low: float, high: float) -> None:
        prior_mu = 0.5 * (low + high)
        # Before any entry with an equal mean.
        pos = bisect_left([e.mu for e in entries], prior_mu)
        if self.prior_uniform:
            entry = _Entry(prior_mu, self.prior_weight, float("nan"), prior=True, uniform=True)
        else:
            entry = _Entry(prior_mu, self.prior_weight, high - low, prior=True)
        entries.insert(pos, entry)

    @staticmethod
    def _normalize_weights(entries: List[_Entry]) -> None:
        weight_sum = 0.0
        for e in entries:
            weight_sum += e.weight
        for e in entries:
            e.weight = e.weight / weight_sum

    def _setup_sigmas(self, entries: List[_Entry], n_obs: int, low: float, high: float) -> None:
        tunable = [e for e in entries if not e.prior]

        if self.uniform_sigma:
            for e in tunable:
                e.sigma = (high - low) / n_obs
            return

        n = len(entries)
        sigmas = []
        for i, e in enumerate(entries):
            prev = low if i == 0 else entries[i - 1].mu
            succ = high if i == n - 1 else entries[i + 1].mu
            sigmas.append(max(e.mu - prev, succ - e.mu))
        if n >= 2:
            sigmas[0] = entries[1].mu - entries[0].mu
            sigmas[n - 1] = entries[n - 1].mu - entries[n - 2].mu

        maxsigma = high - low
        minsigma = (high - low) / min(100.0, 1.0 + n)
        for e, sigma in zip(entries, sigmas):
            if not e.prior:
                e.sigma = min(max(sigma, minsigma), maxsigma)


class ParzenEstimator:
    """Truncated Gaussian mixture built by :class:`ParzenEstimatorBuilder`."""

    def __init__(self, entries: List[_Entry], low: float, high: float) -> None:
        self.low = low
        self.high = high
        self._entries = entries

        self._mus = np.array([e.mu for e in entries])
        self._weights = np.array([e.weight for e in entries])
        self._sigmas = np.array([e.sigma for e in entries])
        self._uniform = np.array([e.uniform for e in entries], dtype=bool)
        # Placeholder scale for uniform components; their density is set separately.
        self._scales = np.where(self._uniform, 1.0, self._sigmas)

        mass = np.where(
            self._uniform,
            1.0,
            norm.cdf(high, self._mus, self._scales) - norm.cdf(low, self._mus, self._scales),
        )
        self.p_accept = float(np.sum(mass * self._weights))

    @property
    def mus(self) -> List[float]:
        return self._mus.tolist()

    @property
    def weights(self) -> List[float]:
        return self._weights.tolist()

    @property
    def sigmas(self) -> List[float]:
        return self._sigmas.tolist()

    def log_pdf(self, x: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        xs = np.atleast_1d(np.asarray(x, dtype=float))[:, None]
        log_density = np.where(
            self._uniform,
            -np.log(self.high - self.low),
            norm.logpdf(xs, self._mus, self._scales),
        )
        log_weights = np.log(self._weights / self.p_accept)
        out = logsumexp(log_density + log_weights, axis=1)
        return float(out[0]) if np.ndim(x) == 0 else out

    def sample(self, rng: np.random.Generator) -> float:
        """Draw one point inside ``[low, high)``."""

        while True:
            i = rng.choice(len(self._entries), p=self._weights)
            if self._uniform[i]:
                return float(rng.uniform(self.low, self.high))
            draw = rng.normal(self._mus[i], self._sigmas[i])
            if self.low <= draw < self.high:
                return float(draw)
