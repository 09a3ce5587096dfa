from __future__ import annotations

import math
from dataclasses import dataclass, field

from ...errors import InvalidInputError
from .preprocess import DefaultPreprocessor, Preprocessor


@dataclass(frozen=True)
class TpeOptions:
    """Options shared by the numerical and categorical TPE optimisers.

    Parameters
    ----------
    preprocessor:
        Splits observations into superiors/inferiors and weights them.
    prior_weight:
        Weight of the prior component (numerical) or the pseudo-count added
        to every category (categorical). Positive and finite.
    ei_candidates:
        Number of candidates drawn from the superior density per ``ask``.
    prior_uniform:
        Use a uniform prior component instead of a wide Gaussian.
    uniform_sigma:
        Give every component the same bandwidth ``range / n``.
    """

    preprocessor: Preprocessor = field(default_factory=DefaultPreprocessor)
    prior_weight: float = 1.0
    ei_candidates: int = 24
    prior_uniform: bool = False
    uniform_sigma: bool = False

    def __post_init__(self) -> None:
        if not (self.prior_weight > 0.0 and math.isfinite(self.prior_weight)):
            raise InvalidInputError(f"prior_weight must be positive and finite: {self.prior_weight}")
        if self.ei_candidates < 1:
            raise InvalidInputError(f"ei_candidates must be positive: {self.ei_candidates}")
