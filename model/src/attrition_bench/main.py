# model/src/attrition_bench/main.py
from __future__ import annotations

import argparse
import dataclasses
import logging
from pathlib import Path

from .benchmark import run_benchmark
from .config import Config
from .data import Dataset, load_raw
from .preprocessing import prepare_dataframe
from .save import save_artifacts
from .smote import ALLOCATIONS
from .threshold import THRESHOLD_METRICS
from .tuning import SEARCH_STRATEGIES

logger = logging.getLogger("attrition_bench")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def parse_args(cfg: Config, argv=None):
    p = argparse.ArgumentParser(
        description="Attrition benchmark (LR / DT / RF, with and without SMOTE, across thresholds)"
    )
    p.add_argument("--csv", default=str(cfg.data_path), help=f"Path to dataset CSV (default: {cfg.data_path})")
    p.add_argument("--target", default=None, help="Override target column (default from config)")
    p.add_argument("--positive", default=None, help="Target value meaning attrition (default from config)")
    p.add_argument("--out", default=None, help="Override artifacts dir (default from config)")

    p.add_argument("--seed", type=int, default=None, help="Override seed")
    p.add_argument("--cv-folds", type=int, default=None, help="Override CV folds")
    p.add_argument("--n-jobs", type=int, default=None, help="Parallel folds/candidates (-1 = all cores)")

    p.add_argument("--smote-rate", type=float, default=None, help="Override SMOTE rate (percent)")
    p.add_argument("--smote-k", type=int, default=None, help="Override SMOTE neighbours")
    p.add_argument(
        "--smote-allocation",
        default=None,
        choices=list(ALLOCATIONS),
        help="What the SMOTE rate is a percentage of: minority rows or neighbour pairs",
    )

    p.add_argument("--thresholds", default=None, help="Comma-separated fixed thresholds, e.g. 0.5,0.4,0.3")
    p.add_argument(
        "--metric",
        default=None,
        choices=list(THRESHOLD_METRICS),
        help="Metric used to tune thresholds and pick the best cell (default from config)",
    )
    p.add_argument(
        "--learner",
        action="append",
        default=None,
        help="Only run this learner (repeatable), e.g. --learner 'Random Forest'",
    )

    p.add_argument("--tune", action="store_true", help="Tune hyperparameters (and SMOTE rate/k) per cell")
    p.add_argument("--strategy", default=None, choices=list(SEARCH_STRATEGIES), help="Search strategy")
    p.add_argument("--n-iter", type=int, default=None, help="Override search iterations")

    p.add_argument("--log-level", type=str.upper, default=None, choices=LOG_LEVELS, help="Logging level")

    args = p.parse_args(argv)
    if args.log_level is None and cfg.log_level.upper() not in LOG_LEVELS:
        p.error(f"LOG_LEVEL must be one of {LOG_LEVELS}, got {cfg.log_level!r}")
    return args


def _apply_overrides(cfg: Config, args) -> Config:
    overrides = {
        "target_col": args.target,
        "positive_label": args.positive,
        "artifacts_dir": Path(args.out) if args.out else None,
        "seed": args.seed,
        "cv_folds": args.cv_folds,
        "n_jobs": args.n_jobs,
        "smote_rate": args.smote_rate,
        "smote_k": args.smote_k,
        "smote_allocation": args.smote_allocation,
        "thresholds": [float(t) for t in args.thresholds.split(",") if t.strip()] if args.thresholds else None,
        "select_metric": args.metric,
        "search_strategy": args.strategy,
        "n_iter_tune": args.n_iter,
        "log_level": args.log_level,
    }
    return dataclasses.replace(cfg, **{k: v for k, v in overrides.items() if v is not None})


def run(cfg: Config, csv_path: str | Path, learners=None, do_tune: bool = False) -> int:
    # 1) Load
    df = load_raw(csv_path)

    # 2) Preprocess (drop IDs/constants, target -> 0/1)
    df = prepare_dataframe(
        df,
        target=cfg.target_col,
        positive_label=cfg.positive_label,
        drop_cols=cfg.drop_cols,
    )
    dataset = Dataset.from_frame(df, target=cfg.target_col, cat_cols=cfg.cat_cols)

    # 3) Benchmark every learner x {plain, smote}
    result = run_benchmark(dataset, cfg, learners=learners, do_tune=do_tune)
    best = result.best()

    # 4) Refit best cell on all rows for the saved artifact
    best.pipeline.fit(dataset.X, dataset.y)

    report = {
        "selected_metric": cfg.select_metric,
        "best_cell": {
            "learner": best.learner,
            "resampling": best.resampling,
            "threshold": best.tuned_threshold.threshold,
            "score": best.tuned_threshold.score,
        },
        "cells": {
            cell.key: {
                "tuned_threshold": cell.tuned_threshold.threshold,
                "tuned_score": cell.tuned_threshold.score,
                "tuned_metrics": cell.tuned_metrics,
                "fixed_thresholds": cell.fixed,
                "search": None if cell.tuning is None else {
                    "best_cv_score": cell.tuning.best_score,
                    "best_params": cell.tuning.best_params,
                },
            }
            for cell in result.cells
        },
        "columns": {"categorical": dataset.cat_cols, "numeric": dataset.num_cols},
        "data": {"csv": str(Path(csv_path).resolve()), "n_rows": len(dataset), "class_counts": dataset.class_counts()},
        "cv": {"folds": cfg.cv_folds, "seed": cfg.seed},
        "smote": {
            "rate": cfg.smote_rate,
            "k": cfg.smote_k,
            "categorical_metric": cfg.smote_categorical_metric,
            "allocation": cfg.smote_allocation,
        },
        "tuning": {"enabled": do_tune, "strategy": cfg.search_strategy, "n_iter": cfg.n_iter_tune},
    }

    # 5) Save model + metrics.json + benchmark.csv
    model_path, metrics_path, table_path = save_artifacts(cfg.artifacts_dir, best.pipeline, report, result.table())
    print(f"\nSaved model   to: {model_path.resolve()}")
    print(f"Saved metrics to: {metrics_path.resolve()}")
    print(f"Saved table   to: {table_path.resolve()}")
    return 0


def main(argv=None) -> int:
    cfg = Config()
    args = parse_args(cfg, argv)
    cfg = _apply_overrides(cfg, args)

    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return run(cfg, args.csv, learners=args.learner, do_tune=args.tune)
    except (FileNotFoundError, ValueError) as e:
        # Config / data problems (including SMOTE errors): one line, non-zero exit
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
