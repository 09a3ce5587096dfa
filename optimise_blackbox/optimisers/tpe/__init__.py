"""TPE (Tree-structured Parzen Estimator) optimisers.

References
----------
- James Bergstra et al. (2011). "Algorithms for Hyper-Parameter
  Optimization". NIPS.
"""

from .categorical import TpeCategoricalOptimiser
from .numerical import TpeNumericalOptimiser, TpeVecOptimiser
from .options import TpeOptions
from .parzen_estimator import ParzenEstimator, ParzenEstimatorBuilder
from .preprocess import DefaultPreprocessor, Preprocessor

__all__ = [
    "TpeCategoricalOptimiser",
    "TpeNumericalOptimiser",
    "TpeVecOptimiser",
    "TpeOptions",
    "ParzenEstimator",
    "ParzenEstimatorBuilder",
    "DefaultPreprocessor",
    "Preprocessor",
]
