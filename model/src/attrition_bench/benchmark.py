from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.base import clone

from .config import Config
from .data import Dataset
from .features import build_preprocessor
from .smote import SmoteOversampler
from .threshold import THRESHOLD_METRICS, ThresholdResult, tune_threshold
from .training import build_models, make_pipeline
from .tuning import TuneResult, tune
from .evaluate import compute_metrics, metric_to_sklearn_scoring
from .validation import cross_val_proba, evaluate_thresholds, make_cv

logger = logging.getLogger(__name__)

RESAMPLING_VARIANTS = ("plain", "smote")


@dataclass
class CellResult:
    """One learner x resampling variant."""
    learner: str
    resampling: str
    pipeline: Any
    proba: np.ndarray
    fixed: List[Dict[str, Any]]
    tuned_threshold: ThresholdResult
    tuned_metrics: Dict[str, Any]
    tuning: Optional[TuneResult] = None

    @property
    def key(self) -> str:
        return f"{self.learner} [{self.resampling}]"


@dataclass
class BenchmarkResult:
    select_metric: str
    cells: List[CellResult] = field(default_factory=list)

    def table(self) -> pd.DataFrame:
        """
        One row per cell x threshold (fixed thresholds first, then the tuned one).

        The confusion matrix is flattened into tn / fp / fn / tp columns.
        """
        rows = []
        for cell in self.cells:
            entries = [("fixed", r) for r in cell.fixed]
            entries.append(("tuned", {"threshold": cell.tuned_threshold.threshold, **cell.tuned_metrics}))
            for kind, r in entries:
                (tn, fp), (fn, tp) = r["confusion_matrix"]
                row = {
                    "learner": cell.learner,
                    "resampling": cell.resampling,
                    "threshold_kind": kind,
                }
                row.update({k: v for k, v in r.items() if k != "confusion_matrix"})
                row.update({"tn": tn, "fp": fp, "fn": fn, "tp": tp})
                rows.append(row)
        return pd.DataFrame(rows)

    def best(self) -> CellResult:
        """Cell with the highest score at its own tuned threshold (first one wins ties)."""
        if not self.cells:
            raise ValueError("Benchmark has no results")
        return max(self.cells, key=lambda c: c.tuned_threshold.score)


def _make_smote(cfg: Config, dataset: Dataset) -> SmoteOversampler:
    return SmoteOversampler(
        rate=cfg.smote_rate,
        k=cfg.smote_k,
        seed=cfg.seed,
        cat_cols=dataset.cat_cols,
        minority_label=1,
        categorical_metric=cfg.smote_categorical_metric,
        allocation=cfg.smote_allocation,
    )


def run_cell(
    learner: str,
    model,
    resampling: str,
    dataset: Dataset,
    cfg: Config,
    cv,
    do_tune: bool = False,
) -> CellResult:
    """
    Cross-validate one learner with or without SMOTE.

    What happens:
    - Build [SMOTE ->] preprocess -> model
    - Optionally tune it first (search CV on the same folds); the tuned params are
      then cross-validated again to get out-of-fold probabilities
    - Score those probabilities at every fixed threshold and at the tuned threshold
    """
    if resampling not in RESAMPLING_VARIANTS:
        raise ValueError(f"Unknown resampling variant: {resampling}. Available: {list(RESAMPLING_VARIANTS)}")

    pre = build_preprocessor(cat_cols=dataset.cat_cols, num_cols=dataset.num_cols)
    smote = _make_smote(cfg, dataset) if resampling == "smote" else None
    pipe = make_pipeline(pre, clone(model), smote)

    tuning = None
    if do_tune:
        tuning = tune(
            learner,
            pipe,
            dataset.X,
            dataset.y,
            cv=cv,
            scoring=metric_to_sklearn_scoring(cfg.select_metric),
            strategy=cfg.search_strategy,
            with_smote=smote is not None,
            seed=cfg.seed,
            n_iter=cfg.n_iter_tune,
            n_jobs=cfg.n_jobs,
        )
        pipe = clone(tuning.best_estimator)

    proba = cross_val_proba(pipe, dataset.X, dataset.y, cv=cv, n_jobs=cfg.n_jobs)
    fixed = evaluate_thresholds(dataset.y, proba, cfg.thresholds)

    best_t = tune_threshold(dataset.y, proba, metric=cfg.select_metric)
    tuned_metrics = compute_metrics(dataset.y, (proba >= best_t.threshold).astype(int), proba)

    return CellResult(
        learner=learner,
        resampling=resampling,
        pipeline=pipe,
        proba=proba,
        fixed=fixed,
        tuned_threshold=best_t,
        tuned_metrics=tuned_metrics,
        tuning=tuning,
    )


def run_benchmark(
    dataset: Dataset,
    cfg: Config,
    learners: Optional[List[str]] = None,
    resampling: tuple = RESAMPLING_VARIANTS,
    do_tune: bool = False,
) -> BenchmarkResult:
    """
    Run every learner x resampling cell on the same CV folds.

    Args:
        dataset: Prepared Dataset (y = 0/1).
        cfg: Config (thresholds, SMOTE params, folds, selection metric).
        learners: Subset of build_models() names. None = all three.
        resampling: Variants to run ("plain", "smote").
        do_tune: Tune each cell's hyperparameters (and SMOTE rate/k) first.

    Returns:
        BenchmarkResult with one CellResult per cell.
    """
    if cfg.select_metric not in THRESHOLD_METRICS:
        raise ValueError(
            f"Unknown select_metric: {cfg.select_metric}. Available: {list(THRESHOLD_METRICS)}"
        )

    models = build_models(seed=cfg.seed)
    names = learners or list(models)
    unknown = [n for n in names if n not in models]
    if unknown:
        raise ValueError(f"Unknown learners: {unknown}. Available: {list(models)}")

    cv = make_cv(cfg.cv_folds, cfg.seed)
    counts = dataset.class_counts()
    logger.info(
        "Benchmarking %d rows (class counts %s), %d-fold CV, thresholds %s",
        len(dataset), counts, cfg.cv_folds, cfg.thresholds,
    )

    result = BenchmarkResult(select_metric=cfg.select_metric)
    for name in names:
        for variant in resampling:
            logger.info("Running %s [%s]", name, variant)
            cell = run_cell(name, models[name], variant, dataset, cfg, cv, do_tune=do_tune)
            result.cells.append(cell)

            # Compact summary row for comparison
            m = cell.tuned_metrics
            print(
                f"{cell.key:32s} | {cfg.select_metric}={cell.tuned_threshold.score:.4f} "
                f"@ t={cell.tuned_threshold.threshold:.3f} "
                f"| recall_attr={m['recall_attrition']:.4f} "
                f"| roc_auc={m['roc_auc']:.4f}"
            )

    best = result.best()
    print(f"\nBest cell: {best.key} ({cfg.select_metric}={best.tuned_threshold.score:.4f})")
    return result
