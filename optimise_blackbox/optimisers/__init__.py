"""Optimiser implementations.

Every optimiser follows the ask/tell protocol of
:class:`optimise_blackbox.interface.Optimiser`.
"""

from .asha import AshaBuilder, AshaOptimiser
from .hyperband import HyperbandOptimiser, HyperbandOptions
from .knn import KnnOptimiser
from .nelder_mead import NelderMeadOptimiser
from .nsga2 import (
    Nsga2Optimiser,
    Nsga2Strategy,
    RandomGenerator,
    TournamentSelector,
    UniformCrossoverVariator,
    dominates,
)
from .osha import FactoryDomain, OshaOptimiser
from .random import RandomOptimiser
from .tpe import TpeCategoricalOptimiser, TpeNumericalOptimiser, TpeOptions, TpeVecOptimiser

__all__ = [
    "AshaBuilder",
    "AshaOptimiser",
    "HyperbandOptimiser",
    "HyperbandOptions",
    "KnnOptimiser",
    "NelderMeadOptimiser",
    "Nsga2Optimiser",
    "Nsga2Strategy",
    "RandomGenerator",
    "TournamentSelector",
    "UniformCrossoverVariator",
    "dominates",
    "FactoryDomain",
    "OshaOptimiser",
    "RandomOptimiser",
    "TpeCategoricalOptimiser",
    "TpeNumericalOptimiser",
    "TpeOptions",
    "TpeVecOptimiser",
]
