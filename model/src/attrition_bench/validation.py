from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List

import numpy as np
import pandas as pd
from joblib import Parallel, delayed
from sklearn.base import clone
from sklearn.model_selection import StratifiedKFold

from .evaluate import compute_metrics, get_proba

logger = logging.getLogger(__name__)


def make_cv(cv_folds: int = 5, seed: int = 42) -> StratifiedKFold:
    """StratifiedKFold keeps the leaver ratio the same in every fold."""
    if cv_folds < 2:
        raise ValueError(f"cv_folds must be >= 2, got {cv_folds}")
    return StratifiedKFold(n_splits=cv_folds, shuffle=True, random_state=seed)


def _fit_fold(pipe, X: pd.DataFrame, y: pd.Series, train, test):
    est = clone(pipe).fit(X.iloc[train], y.iloc[train])
    return test, get_proba(est, X.iloc[test])


def cross_val_proba(pipe, X, y, cv, n_jobs: int = 1) -> np.ndarray:
    """
    Out-of-fold attrition probabilities for every row.

    Each fold clones `pipe`, fits it on the training part (SMOTE included, if the
    pipeline has it) and scores the held-out part with get_proba(). Folds share
    nothing, so joblib runs them in parallel with n_jobs.
    """
    X = X if isinstance(X, pd.DataFrame) else pd.DataFrame(np.asarray(X))
    y = y if isinstance(y, pd.Series) else pd.Series(np.asarray(y))

    folds = Parallel(n_jobs=n_jobs)(
        delayed(_fit_fold)(pipe, X, y, train, test) for train, test in cv.split(X, y)
    )

    proba = np.full(len(X), np.nan)
    for test, p in folds:
        proba[test] = p
    return proba


def evaluate_thresholds(y, proba, thresholds: Iterable[float]) -> List[Dict[str, Any]]:
    """
    Metrics + confusion matrix at each fixed decision threshold.

    Returns:
        One dict per threshold: {"threshold": t, **compute_metrics(...)}
    """
    y = np.asarray(y).ravel()
    proba = np.asarray(proba).ravel()

    rows = []
    for t in thresholds:
        y_pred = (proba >= t).astype(int)
        m = compute_metrics(y, y_pred, proba)
        logger.debug("threshold=%.3f cm=%s", t, m["confusion_matrix"])
        rows.append({"threshold": float(t), **m})
    return rows
