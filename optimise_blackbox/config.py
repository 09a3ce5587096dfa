"""Study configuration.

A study is a YAML file naming a benchmark problem, a list of optimisers and
how many evaluations and seeds to run them for::

    seed: 0
    seed_count: 3
    budget: 200
    max_workers: 1
    problem: {name: sphere, dim: 2, low: -5.0, high: 5.0}
    optimisers:
      - {name: random}
      - {name: tpe, options: {ei_candidates: 24, preprocessor: {divide_factor: 0.5}}}
      - {name: nevergrad, options: {optimiser: OnePlusOne}}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence

from .domains import ContinuousDomain, VecDomain
from .errors import InvalidInputError
from .interface import Optimiser, Problem
from .optimisers import KnnOptimiser, NelderMeadOptimiser, RandomOptimiser
from .optimisers.tpe import DefaultPreprocessor, TpeNumericalOptimiser, TpeOptions, TpeVecOptimiser
from .problems import QuadraticProblem, RosenbrockProblem, SphereProblem

OPTIMISER_NAMES = ("random", "knn", "nelder_mead", "tpe", "nevergrad")

# Options accepted by each optimiser besides `label`; tpe takes the TpeOptions fields.
OPTIMISER_OPTIONS: Dict[str, frozenset] = {
    "random": frozenset(),
    "knn": frozenset(),
    "nelder_mead": frozenset({"x0"}),
    "nevergrad": frozenset({"optimiser", "num_workers"}),
}


@dataclass(frozen=True)
class ProblemConfig:
    name: str
    dim: int = 2
    low: float = -5.0
    high: float = 5.0


@dataclass(frozen=True)
class OptimiserConfig:
    name: str
    options: Mapping[str, Any] = field(default_factory=dict)

    @property
    def label(self) -> str:
        return str(self.options.get("label", self.name))


@dataclass(frozen=True)
class StudyConfig:
    seed: int
    seed_count: int
    budget: int
    problem: ProblemConfig
    optimisers: Sequence[OptimiserConfig]
    max_workers: int = 1


def load_config(path: Path) -> StudyConfig:
    import yaml  # type: ignore

    data = yaml.safe_load(Path(path).read_text())
    if not isinstance(data, dict):
        raise InvalidInputError(f"Study file {path} must contain a mapping")

    try:
        problem = data["problem"]
        optimisers = [
            OptimiserConfig(name=str(opt["name"]), options=dict(opt.get("options") or {}))
            for opt in data["optimisers"]
        ]
        cfg = StudyConfig(
            seed=int(data.get("seed", 0)),
            seed_count=int(data.get("seed_count", 1)),
            budget=int(data["budget"]),
            max_workers=int(data.get("max_workers", 1)),
            problem=ProblemConfig(
                name=str(problem["name"]),
                dim=int(problem.get("dim", 2)),
                low=float(problem.get("low", -5.0)),
                high=float(problem.get("high", 5.0)),
            ),
            optimisers=optimisers,
        )
    except KeyError as exc:
        raise InvalidInputError(f"Study file {path} is missing {exc}") from exc

    if cfg.seed_count < 1:
        raise InvalidInputError(f"seed_count must be positive: {cfg.seed_count}")
    if cfg.max_workers < 1:
        raise InvalidInputError(f"max_workers must be positive: {cfg.max_workers}")
    for opt in cfg.optimisers:
        if opt.name not in OPTIMISER_NAMES:
            raise InvalidInputError(f"Unknown optimiser {opt.name!r}; expected one of {OPTIMISER_NAMES}")
    return cfg


def build_problem(cfg: ProblemConfig) -> Problem:
    if cfg.name == "sphere":
        return SphereProblem(dim=cfg.dim, low=cfg.low, high=cfg.high)
    if cfg.name == "rosenbrock":
        return RosenbrockProblem(dim=cfg.dim, low=cfg.low, high=cfg.high)
    if cfg.name == "quadratic":
        return QuadraticProblem(low=cfg.low, high=cfg.high)
    raise InvalidInputError(f"Unknown problem {cfg.name!r}")


def build_optimiser(cfg: OptimiserConfig, problem: Problem) -> Optimiser:
    """Instantiate the optimiser named by ``cfg`` for ``problem.domain``."""

    domain = problem.domain
    options: Dict[str, Any] = {k: v for k, v in cfg.options.items() if k != "label"}
    allowed = OPTIMISER_OPTIONS.get(cfg.name)
    if allowed is not None:
        unknown = sorted(set(options) - allowed)
        if unknown:
            raise InvalidInputError(f"Unknown {cfg.name} options: {unknown}")

    if cfg.name == "random":
        return RandomOptimiser(domain)
    if cfg.name == "knn":
        return KnnOptimiser(domain)
    if cfg.name == "nelder_mead":
        if not isinstance(domain, VecDomain):
            raise InvalidInputError("nelder_mead needs a multi-dimensional problem")
        x0 = options.get("x0") or [(d.low + d.high) / 2.0 for d in domain]
        return NelderMeadOptimiser(list(domain), x0)
    if cfg.name == "tpe":
        if "preprocessor" in options and not isinstance(options["preprocessor"], Mapping):
            raise InvalidInputError("tpe preprocessor must be a mapping of DefaultPreprocessor fields")
        try:
            if "preprocessor" in options:
                options["preprocessor"] = DefaultPreprocessor(**options["preprocessor"])
            tpe_options = TpeOptions(**options)
        except TypeError as exc:
            raise InvalidInputError(f"Invalid tpe options: {exc}") from exc
        if isinstance(domain, ContinuousDomain):
            return TpeNumericalOptimiser(domain, tpe_options)
        return TpeVecOptimiser(domain, tpe_options)
    if cfg.name == "nevergrad":
        from .strategies.nevergrad_adapter import NevergradOptimiser

        return NevergradOptimiser(
            domain,
            name=options.get("optimiser", "OnePlusOne"),
            num_workers=int(options.get("num_workers", 1)),
        )
    raise InvalidInputError(f"Unknown optimiser {cfg.name!r}")
