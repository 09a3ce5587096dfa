"""
CLI to run optimisation studies across multiple seeds and optimisers.

Reads a study YAML file (see :mod:`optimise_blackbox.config`), runs every
optimiser for every seed on the configured benchmark problem and appends one
CSV row per run. Rows already present in the output file are skipped, so an
interrupted study can be resumed by running the same command again.

    python -m optimise_blackbox.runner --config study.yml --out runs.csv
"""

from __future__ import annotations

import argparse
import csv
import json
import logging
import time
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from .config import OptimiserConfig, StudyConfig, build_optimiser, build_problem, load_config
from .interface import run_optimisation
from .observation import SerialIdGenerator
from .parallel import run_optimisation_parallel

logger = logging.getLogger(__name__)

RUN_FIELDS = ["optimiser", "seed", "budget", "best_value", "best_param", "duration_sec"]


def run_study(config_path: Path, runs_csv: Optional[Path] = None) -> List[Dict[str, object]]:
    """Run every (optimiser, seed) pair not already recorded in ``runs_csv``.

    Returns the existing rows followed by the new ones.
    """

    cfg = load_config(config_path)
    start = time.time()

    existing_runs = load_runs_csv(runs_csv)
    seen_keys: Set[Tuple[str, int]] = {(str(r["optimiser"]), int(r["seed"])) for r in existing_runs}

    tasks: List[Tuple[OptimiserConfig, int]] = []
    for opt in cfg.optimisers:
        for offset in range(cfg.seed_count):
            seed = cfg.seed + offset
            if (opt.label, seed) in seen_keys:
                continue
            tasks.append((opt, seed))

    logger.info("Queued %d new runs (existing runs: %d)", len(tasks), len(seen_keys))

    new_results: List[Dict[str, object]] = []
    for opt, seed in tasks:
        res = run_single(cfg, opt, seed)
        new_results.append(res)
        if runs_csv:
            append_run_row(runs_csv, res)
        logger.info(
            "Completed optimiser=%s seed=%d best=%.6g duration=%.2fs",
            opt.label,
            seed,
            res["best_value"],
            res["duration_sec"],
        )

    results = existing_runs + new_results
    logger.info("Completed %d total runs in %.2fs", len(results), time.time() - start)
    return results


def run_single(cfg: StudyConfig, opt: OptimiserConfig, seed: int) -> Dict[str, object]:
    start_run = time.time()
    problem = build_problem(cfg.problem)
    optimiser = build_optimiser(opt, problem)
    rng = np.random.default_rng(seed)
    idg = SerialIdGenerator()

    if cfg.max_workers > 1:
        best = run_optimisation_parallel(
            problem, optimiser, cfg.budget, max_workers=cfg.max_workers, rng=rng, idg=idg
        )
    else:
        best = run_optimisation(problem, optimiser, cfg.budget, rng=rng, idg=idg)

    return {
        "optimiser": opt.label,
        "seed": seed,
        "budget": cfg.budget,
        "best_value": float(best.value) if best is not None else float("nan"),
        "best_param": json.dumps(_jsonable(best.param)) if best is not None else "",
        "duration_sec": time.time() - start_run,
    }


def _jsonable(param: object) -> object:
    if isinstance(param, (list, tuple, np.ndarray)):
        return [float(x) for x in param]
    return float(param)  # type: ignore[arg-type]


def load_runs_csv(path: Optional[Path]) -> List[Dict[str, object]]:
    if path is None or not path.exists():
        return []
    with path.open() as f:
        reader = csv.DictReader(f)
        rows: List[Dict[str, object]] = []
        for row in reader:
            # Normalise numeric fields of resumed runs.
            row["seed"] = int(row.get("seed", 0))
            row["budget"] = int(row.get("budget", 0))
            for key in ("best_value", "duration_sec"):
                if row.get(key, "") != "":
                    row[key] = float(row[key])
            rows.append(row)
        return rows


def append_run_row(path: Path, res: Dict[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    write_header = not path.exists()
    with path.open("a", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RUN_FIELDS)
        if write_header:
            writer.writeheader()
        writer.writerow({key: res.get(key) for key in RUN_FIELDS})


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run black-box optimisation studies.")
    parser.add_argument("--config", type=Path, required=True, help="Study YAML file.")
    parser.add_argument("--out", type=Path, default=None, help="CSV file to append run rows to.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (default: INFO).")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_study(args.config, args.out)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
