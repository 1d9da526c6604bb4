from __future__ import annotations

from typing import Any, Dict, Optional

from imblearn.pipeline import Pipeline as ImbPipeline

from sklearn.linear_model import LogisticRegression
from sklearn.ensemble import RandomForestClassifier
from sklearn.tree import DecisionTreeClassifier

from .smote import SmoteOversampler


def build_models(seed: int = 42) -> Dict[str, Any]:
    """
    The three learners compared in the attrition benchmark.

    No class_weight here: the point of the benchmark is to see what SMOTE alone
    does for each learner, so the "plain" cells must be genuinely unbalanced.

    Args:
        seed: Random seed for the models that involve randomness.

    Returns:
        Dictionary mapping {model_name: sklearn_estimator}
    """
    return {
        # Linear baseline (fast, interpretable)
        "Logistic Regression": LogisticRegression(max_iter=5000),

        # Single tree; depth left to tuning
        "Decision Tree": DecisionTreeClassifier(random_state=seed),

        # Random Forest: strong baseline for tabular data
        "Random Forest": RandomForestClassifier(random_state=seed, n_estimators=300),
    }


def make_pipeline(preprocessor, model, smote: Optional[SmoteOversampler] = None) -> ImbPipeline:
    """
    Build the full pipeline: [SMOTE ->] preprocess -> model.

    Why imblearn Pipeline:
    - SMOTE must only see the training part of each fold.
    - imblearn runs samplers inside fit() and skips them in predict(), so
      cross-validation never scores synthetic rows.

    Why SMOTE comes first:
    - It votes on the raw categorical values (JobRole, OverTime, ...) instead of
      interpolating one-hot columns into fractional categories.

    Args:
        preprocessor: ColumnTransformer handling encoding/scaling/imputation.
        model: sklearn classifier.
        smote: Optional SmoteOversampler. None = "plain" (no resampling).

    Returns:
        An imblearn Pipeline ready to fit/predict.
    """
    steps = []
    if smote is not None:
        steps.append(("smote", smote))
    steps += [
        ("pre", preprocessor),
        ("model", model),
    ]
    return ImbPipeline(steps=steps)
