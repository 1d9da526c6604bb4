from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, Optional

import numpy as np
import pandas as pd
from imblearn.metrics import geometric_mean_score
from sklearn.metrics import (
    accuracy_score,
    balanced_accuracy_score,
    cohen_kappa_score,
    f1_score,
    matthews_corrcoef,
    precision_score,
    recall_score,
)

from .exceptions import ThresholdTuningError

# Every scorer takes (y_true, y_pred) with 0/1 labels, higher = better.
THRESHOLD_METRICS: Dict[str, Callable[[np.ndarray, np.ndarray], float]] = {
    "f1": lambda t, p: f1_score(t, p, pos_label=1, zero_division=0),
    "precision": lambda t, p: precision_score(t, p, pos_label=1, zero_division=0),
    "recall": lambda t, p: recall_score(t, p, pos_label=1, zero_division=0),
    "accuracy": accuracy_score,
    "balanced_accuracy": balanced_accuracy_score,
    "kappa": cohen_kappa_score,
    "mcc": matthews_corrcoef,
    "gmean": lambda t, p: geometric_mean_score(t, p, average="binary", pos_label=1),
}


@dataclass(frozen=True)
class ThresholdResult:
    threshold: float
    score: float
    metric: str


def _validate(y_true, y_proba, metric: str) -> tuple[np.ndarray, np.ndarray]:
    if metric not in THRESHOLD_METRICS:
        raise ThresholdTuningError(
            f"Unknown metric: {metric}. Available: {list(THRESHOLD_METRICS)}"
        )

    y_true = np.asarray(y_true).ravel()
    y_proba = np.asarray(y_proba, dtype=float).ravel()

    if y_true.size == 0:
        raise ThresholdTuningError("Need at least one prediction to tune a threshold")
    if y_true.size != y_proba.size:
        raise ThresholdTuningError(
            f"y_true has {y_true.size} labels but y_proba has {y_proba.size} scores"
        )
    if np.isnan(y_proba).any() or (y_proba < 0).any() or (y_proba > 1).any():
        raise ThresholdTuningError("Probabilities must lie in [0, 1] with no NaN")
    if not set(np.unique(y_true).tolist()) <= {0, 1}:
        raise ThresholdTuningError("y_true must be encoded as 0/1")

    return y_true.astype(int), y_proba


def score_at(y_true, y_proba, threshold: float, metric: str = "f1") -> float:
    """Score hard predictions made with `proba >= threshold`."""
    y_true, y_proba = _validate(y_true, y_proba, metric)
    y_pred = (y_proba >= threshold).astype(int)
    return float(THRESHOLD_METRICS[metric](y_true, y_pred))


def tune_threshold(
    y_true,
    y_proba,
    metric: str = "f1",
    candidates: Optional[Iterable[float]] = None,
) -> ThresholdResult:
    """
    Pick the decision threshold that maximises `metric`.

    How it works:
    - Candidates default to every distinct observed probability (exhaustive grid:
      any threshold between two observed values gives the same predictions as the
      upper one, so nothing is missed).
    - A row is predicted positive (attrition) when proba >= threshold.
    - Ties keep the LOWER threshold (candidates are scanned in ascending order and
      only a strictly better score replaces the current best).

    Returns:
        ThresholdResult(threshold, score, metric)
    """
    y_true, y_proba = _validate(y_true, y_proba, metric)
    scorer = THRESHOLD_METRICS[metric]

    grid = np.unique(y_proba) if candidates is None else np.unique(np.asarray(list(candidates), dtype=float))
    if grid.size == 0:
        raise ThresholdTuningError("No candidate thresholds to scan")

    best_t, best_score = float(grid[0]), float("-inf")
    for t in grid:
        score = float(scorer(y_true, (y_proba >= t).astype(int)))
        if score > best_score:
            best_t, best_score = float(t), score

    return ThresholdResult(threshold=best_t, score=best_score, metric=metric)


def threshold_curve(y_true, y_proba, thresholds: Iterable[float], metric: str = "f1") -> pd.DataFrame:
    """Score at each fixed threshold, e.g. for the 0.5 / 0.4 / 0.3 comparison tables."""
    y_true, y_proba = _validate(y_true, y_proba, metric)
    scorer = THRESHOLD_METRICS[metric]
    rows = [
        {"threshold": float(t), metric: float(scorer(y_true, (y_proba >= t).astype(int)))}
        for t in thresholds
    ]
    return pd.DataFrame(rows, columns=["threshold", metric])
