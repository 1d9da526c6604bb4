from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from sklearn.experimental import enable_halving_search_cv  # noqa: F401
from sklearn.model_selection import GridSearchCV, HalvingRandomSearchCV, RandomizedSearchCV

logger = logging.getLogger(__name__)

SEARCH_STRATEGIES = ("grid", "random", "halving")

# SMOTE percentage / neighbour count, tuned together with the model params
SMOTE_SPACE = {
    "smote__rate": [100, 200, 300, 400, 500],
    "smote__k": [3, 5, 7, 9],
}


@dataclass
class TuneResult:
    best_estimator: Any
    best_score: Optional[float]
    best_params: Dict[str, Any]


def halving_min_resources(y, cv, space: dict, margin: int = 3) -> int:
    """
    Smallest subsample successive halving may start from.

    Every training fold of the first round must hold more minority rows than the
    largest smote__k in the space (at least two rows without SMOTE), or the sampler
    raises. Halving subsamples without stratifying, so the expected minority count
    is kept `margin` times above that floor. Capped at len(y).
    """
    y = np.asarray(y)
    n_samples = len(y)
    _, counts = np.unique(y, return_counts=True)
    minority_frac = counts.min() / n_samples

    n_splits = cv if isinstance(cv, int) else cv.get_n_splits()
    train_frac = (n_splits - 1) / n_splits

    need = max(space.get("smote__k", [1])) + 1
    rows = margin * math.ceil(need / (minority_frac * train_frac))
    return min(rows, n_samples)


def param_space_for(name: str, with_smote: bool = False) -> dict:
    """
    Hyperparameter search space for one benchmark learner.

    Important:
    - The classifier sits under the pipeline step "model" and the oversampler
      under "smote", so keys are prefixed "model__" / "smote__".

    Args:
        name: Learner name from build_models().
        with_smote: Add SMOTE rate / k to the space.

    Returns:
        Dict of parameter lists. Empty dict means "no tuning defined".
    """
    if name == "Logistic Regression":
        space = {
            "model__C": np.logspace(-3, 2, 12).tolist(),   # regularization strength
            "model__solver": ["lbfgs", "liblinear"],
        }
    elif name == "Decision Tree":
        space = {
            "model__max_depth": [None, 3, 5, 8, 12],
            "model__min_samples_leaf": [1, 5, 10, 20],
            "model__ccp_alpha": [0.0, 0.001, 0.005, 0.01],   # cost-complexity pruning
        }
    elif name == "Random Forest":
        space = {
            "model__n_estimators": [200, 300, 500],
            "model__max_depth": [None, 8, 12, 16],
            "model__min_samples_leaf": [1, 2, 5],
            "model__max_features": ["sqrt", "log2", 0.5],
        }
    else:
        return {}

    if with_smote:
        space.update(SMOTE_SPACE)
    return space


def make_search(
    strategy: str,
    pipe,
    space: dict,
    cv,
    scoring,
    seed: int = 42,
    n_iter: int = 20,
    n_jobs: int = 1,
    y=None,
):
    """
    Build the search object for a strategy.

    - "grid": every combination (GridSearchCV)
    - "random": n_iter random combinations (RandomizedSearchCV)
    - "halving": successive halving over random candidates; weak configs are
      dropped early on small subsamples, the survivors get the full data.
      Pass y so the first subsample is big enough for SMOTE (halving_min_resources).

    A failing fit raises instead of being scored NaN.
    """
    if strategy == "grid":
        return GridSearchCV(pipe, param_grid=space, scoring=scoring, cv=cv, n_jobs=n_jobs, error_score="raise")

    if strategy == "random":
        return RandomizedSearchCV(
            pipe,
            param_distributions=space,
            n_iter=n_iter,
            scoring=scoring,
            cv=cv,
            random_state=seed,
            n_jobs=n_jobs,
            error_score="raise",
        )

    if strategy == "halving":
        return HalvingRandomSearchCV(
            pipe,
            param_distributions=space,
            scoring=scoring,
            cv=cv,
            factor=3,
            min_resources="smallest" if y is None else halving_min_resources(y, cv, space),
            random_state=seed,
            n_jobs=n_jobs,
            error_score="raise",
        )

    raise ValueError(f"Unknown search strategy: {strategy}. Available: {list(SEARCH_STRATEGIES)}")


def tune(
    name: str,
    pipe,
    X,
    y,
    cv,
    scoring,
    strategy: str = "random",
    with_smote: bool = False,
    seed: int = 42,
    n_iter: int = 20,
    n_jobs: int = 1,
) -> TuneResult:
    """
    Tune one benchmark cell on the training data only (CV is done inside the search).

    Returns:
        TuneResult with the refitted best pipeline, its CV score and params.
        If no space is defined for `name`, the pipeline is just fitted.
    """
    space = param_space_for(name, with_smote=with_smote)

    if not space:
        pipe.fit(X, y)
        return TuneResult(best_estimator=pipe, best_score=None, best_params={})

    search = make_search(strategy, pipe, space, cv, scoring, seed=seed, n_iter=n_iter, n_jobs=n_jobs, y=y)
    search.fit(X, y)

    logger.info("%s: best score=%.4f with %s", name, search.best_score_, search.best_params_)
    return TuneResult(
        best_estimator=search.best_estimator_,
        best_score=float(search.best_score_),
        best_params=dict(search.best_params_),
    )
