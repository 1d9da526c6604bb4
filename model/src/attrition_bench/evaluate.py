from __future__ import annotations

from typing import Any, Dict
import numpy as np

from imblearn.metrics import geometric_mean_score
from sklearn.metrics import (
    make_scorer,
    average_precision_score,
    roc_auc_score,
    f1_score,
    precision_score,
    accuracy_score,
    recall_score,
    cohen_kappa_score,
    confusion_matrix,
)


def get_proba(model, X) -> np.ndarray:
    """
    Attrition scores in [0, 1] for a fitted pipeline or classifier.

    Uses predict_proba column 1 when the model has it. A decision_function margin
    is passed through a sigmoid; a model with neither scores its hard labels.
    """
    if hasattr(model, "predict_proba"):
        proba = np.asarray(model.predict_proba(X))
        if proba.ndim == 2 and proba.shape[1] >= 2:
            return proba[:, 1].ravel()
        return proba.ravel()

    if hasattr(model, "decision_function"):
        margin = np.asarray(model.decision_function(X)).ravel()
        return 1.0 / (1.0 + np.exp(-margin))

    return np.asarray(model.predict(X)).astype(float).ravel()


def _safe_auc(fn, y_true, y_proba) -> float:
    # Ranking metrics are undefined when a fold holds a single class
    if len(np.unique(y_true)) < 2:
        return float("nan")
    return float(fn(y_true, y_proba))


def compute_metrics(y_true, y_pred, y_proba) -> Dict[str, Any]:
    """
    Compute metrics for imbalanced binary classification.

    Notes:
    - Keys returned here are the names accepted by --metric / SELECT_METRIC
      when choosing the best benchmark cell.
    - Threshold metrics (accuracy/f1/precision/recall/kappa) use y_pred;
      ranking metrics (PR-AUC, ROC-AUC) use y_proba and do not depend on the threshold.

    Returns:
        Dictionary of metrics + the confusion matrix.
    """
    y_true = np.asarray(y_true).ravel()
    y_pred = np.asarray(y_pred).ravel()
    y_proba = np.asarray(y_proba).ravel()

    return {
        # Accuracy can be misleading with imbalance but still useful for reference
        "accuracy": float(accuracy_score(y_true, y_pred)),

        "pr_auc": _safe_auc(average_precision_score, y_true, y_proba),
        "roc_auc": _safe_auc(roc_auc_score, y_true, y_proba),

        # Focus on the leavers (attrition = 1)
        "f1_attrition": float(f1_score(y_true, y_pred, pos_label=1, zero_division=0)),
        "recall_attrition": float(recall_score(y_true, y_pred, pos_label=1, zero_division=0)),
        "precision_attrition": float(
            precision_score(y_true, y_pred, pos_label=1, zero_division=0)
        ),

        "f1_macro": float(f1_score(y_true, y_pred, average="macro", zero_division=0)),
        "kappa": float(cohen_kappa_score(y_true, y_pred)),

        # Confusion matrix: [[TN, FP], [FN, TP]]
        "confusion_matrix": confusion_matrix(y_true, y_pred, labels=[0, 1]).tolist(),
    }


def metric_to_sklearn_scoring(select_metric: str):
    """
    Map our metric names to scikit-learn scoring (a name or a scorer object).

    Accepts both the compute_metrics() keys and the threshold-tuning names, so a
    search optimizes the same metric the thresholds are tuned on.
    Unknown names raise ValueError.
    """
    mapping = {
        "pr_auc": "average_precision",
        "roc_auc": "roc_auc",
        "f1": "f1",
        "f1_attrition": "f1",
        "recall": "recall",
        "recall_attrition": "recall",
        "precision": "precision",
        "precision_attrition": "precision",
        "f1_macro": "f1_macro",
        "accuracy": "accuracy",
        "balanced_accuracy": "balanced_accuracy",
        "mcc": "matthews_corrcoef",
        "kappa": make_scorer(cohen_kappa_score),
        "gmean": make_scorer(geometric_mean_score, average="binary", pos_label=1),
    }
    if select_metric not in mapping:
        raise ValueError(f"No scorer for metric: {select_metric}. Available: {list(mapping)}")
    return mapping[select_metric]
