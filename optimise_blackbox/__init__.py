"""Top-level package for black-box optimisation utilities."""

from .budget import Budget, Budgeted, Leveled
from .domains import (
    BoolDomain,
    CategoricalDomain,
    ChoiceDomain,
    ContinuousDomain,
    DiscreteDomain,
    VecDomain,
)
from .errors import (
    ErrorKind,
    InvalidInputError,
    OptimiserError,
    OptimiserStateError,
    UnknownObservationError,
)
from .interface import Optimiser, Problem, run_optimisation
from .observation import ConstIdGenerator, IdGen, Obs, ObsId, SerialIdGenerator
from .parallel import run_optimisation_parallel

__all__ = [
    "Budget",
    "Budgeted",
    "Leveled",
    "BoolDomain",
    "CategoricalDomain",
    "ChoiceDomain",
    "ContinuousDomain",
    "DiscreteDomain",
    "VecDomain",
    "ErrorKind",
    "InvalidInputError",
    "OptimiserError",
    "OptimiserStateError",
    "UnknownObservationError",
    "Optimiser",
    "Problem",
    "run_optimisation",
    "run_optimisation_parallel",
    "ConstIdGenerator",
    "IdGen",
    "Obs",
    "ObsId",
    "SerialIdGenerator",
]
