from __future__ import annotations

import math
import numbers
from collections import Counter
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator
from sklearn.neighbors import NearestNeighbors

from .exceptions import (
    DistanceComputationError,
    EmptyDataset,
    InsufficientMinoritySamples,
    InvalidConfiguration,
)

CATEGORICAL_METRICS = ("overlap", "onehot")
ALLOCATIONS = ("row", "pair")


@dataclass
class SmoteConfig:
    """
    Configuration holder for SMOTE (Synthetic Minority Over-sampling Technique).

    Why we use SMOTE:
    - Attrition is the rare event (roughly 1 leaver for every 5 stayers).
    - SMOTE interpolates new leavers between real ones instead of duplicating rows,
      so the classifier sees a denser minority region.

    Fields:
        rate: How many synthetic rows to create, as a percentage of the minority count.
          Examples:
            - 100: one synthetic row per minority row (minority doubles)
            - 250: minority grows by 2.5x its size
        k: Number of minority nearest neighbours to interpolate towards.
        seed: Seed for neighbour choice / interpolation gap. None = fresh entropy each call.
        categorical_metric: "overlap" (a category mismatch adds 1 to the squared distance)
          or "onehot" (plain Euclidean on one-hot columns, a mismatch adds 2).
        standardize: z-score numeric columns over the minority rows before computing distances.
        allocation: What rate is a percentage of.
            - "row": minority rows (default)
            - "pair": distinct neighbour pairs, e.g. two mutual neighbours at rate=100
              give exactly one synthetic row on the segment between them
    """
    rate: float = 200.0
    k: int = 5
    seed: Optional[int] = 42
    categorical_metric: str = "overlap"
    standardize: bool = True
    allocation: str = "row"


@dataclass
class SmoteResult:
    """Augmented training partition: original rows first, synthetic rows appended."""
    X: pd.DataFrame
    y: pd.Series
    n_synthetic: int
    # source_index / neighbor_index refer to the index labels of the input X
    provenance: pd.DataFrame


def _check_params(rate: Any, k: Any, categorical_metric: str, allocation: str = "row") -> None:
    if (
        isinstance(rate, bool)
        or not isinstance(rate, numbers.Real)
        or not math.isfinite(float(rate))
        or rate <= 0
    ):
        raise InvalidConfiguration(f"rate must be a positive percentage, got {rate!r}")

    if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k <= 0:
        raise InvalidConfiguration(f"k must be a positive integer, got {k!r}")

    if categorical_metric not in CATEGORICAL_METRICS:
        raise InvalidConfiguration(
            f"Unknown categorical_metric: {categorical_metric}. Available: {list(CATEGORICAL_METRICS)}"
        )

    if allocation not in ALLOCATIONS:
        raise InvalidConfiguration(f"Unknown allocation: {allocation}. Available: {list(ALLOCATIONS)}")


def _resolve_minority_label(y: np.ndarray, minority_label: Any) -> Any:
    if minority_label is not None:
        return minority_label

    counts = Counter(y.tolist())
    if len(counts) < 2:
        raise InvalidConfiguration(
            f"Need at least two classes to find the minority, got {sorted(counts)}"
        )

    # Least frequent label; equal counts fall back to label order
    fewest = min(counts.values())
    return sorted(label for label, c in counts.items() if c == fewest)[0]


def _split_columns(X: pd.DataFrame, cat_cols: Optional[Sequence[str]]) -> tuple[list[str], list[str]]:
    cat_cols = list(cat_cols or [])

    missing = [c for c in cat_cols if c not in X.columns]
    if missing:
        raise InvalidConfiguration(f"Categorical columns not found: {missing}")

    # Booleans interpolate badly, treat them like categories
    cat_cols += [
        c for c in X.columns
        if c not in cat_cols and pd.api.types.is_bool_dtype(X[c])
    ]
    num_cols = [c for c in X.columns if c not in cat_cols]

    bad = [c for c in num_cols if not pd.api.types.is_numeric_dtype(X[c])]
    if bad:
        raise DistanceComputationError(
            f"Non-numeric columns must be encoded or listed in cat_cols: {bad}"
        )
    return num_cols, cat_cols


def _encode(
    X_min: pd.DataFrame,
    num_cols: list[str],
    cat_cols: list[str],
    categorical_metric: str,
    standardize: bool,
) -> np.ndarray:
    """
    Turn the minority rows into a float matrix where Euclidean distance is the SMOTE distance.

    Numeric part:
      - z-scored over the minority rows (constant columns keep a divisor of 1)
    Categorical part:
      - one-hot indicators
      - "overlap" scales them by 1/sqrt(2), so two rows that disagree on one category
        are exactly 1 apart in squared distance (same as one standard deviation)
    """
    parts = []

    if num_cols:
        num = X_min[num_cols].to_numpy(dtype=float)
        if not np.isfinite(num).all():
            raise DistanceComputationError("Minority rows contain missing or infinite numeric values")
        if standardize:
            std = num.std(axis=0)
            std[std == 0] = 1.0
            num = (num - num.mean(axis=0)) / std
        parts.append(num)

    if cat_cols:
        if X_min[cat_cols].isna().any().any():
            raise DistanceComputationError("Minority rows contain missing categorical values")
        onehot = pd.get_dummies(X_min[cat_cols].astype(str), dtype=float).to_numpy()
        weight = 1.0 / math.sqrt(2.0) if categorical_metric == "overlap" else 1.0
        parts.append(onehot * weight)

    if not parts:
        raise DistanceComputationError("No feature columns to compute distances on")
    return np.hstack(parts)


def _nearest_neighbors(Z: np.ndarray, k: int) -> np.ndarray:
    """Return an (n, k) array of neighbour positions, excluding each row itself."""
    _, idx = NearestNeighbors(n_neighbors=k + 1).fit(Z).kneighbors(Z)

    out = np.empty((Z.shape[0], k), dtype=int)
    for i, row in enumerate(idx):
        # Exact duplicates can push the row itself out of first place
        out[i] = row[row != i][:k]
    return out


def _vote(values: np.ndarray, group: np.ndarray) -> Any:
    """Most common value in values[group]; ties go to whoever appears first (the row itself)."""
    counts = Counter(values[group].tolist())
    top = max(counts.values())
    for j in group:
        if counts[values[j]] == top:
            return values[j]
    return values[group[0]]


def _allocate(units: int, rate: float, rng: np.random.Generator) -> np.ndarray:
    """
    Decide how many synthetic rows each unit (minority row or neighbour pair) produces.

    Total = round(rate * units / 100). Every unit gets total // units; the remainder
    goes to distinct units drawn at random.
    """
    total = int(round(rate * units / 100.0))
    per_unit = np.full(units, total // units, dtype=int)
    extra = total % units
    if extra:
        per_unit[rng.choice(units, size=extra, replace=False)] += 1
    return per_unit


def _neighbor_pairs(neighbors: np.ndarray) -> np.ndarray:
    """Distinct unordered (i, j) pairs of the k-NN graph, sorted; mutual neighbours count once."""
    pairs = {
        (min(i, int(j)), max(i, int(j)))
        for i, row in enumerate(neighbors)
        for j in row
    }
    return np.array(sorted(pairs), dtype=int).reshape(-1, 2)


def _draw_parents(
    neighbors: np.ndarray,
    rate: float,
    allocation: str,
    rng: np.random.Generator,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Return (sources, picks): minority positions of both parents of every synthetic row.

    "row":  rate applies to minority rows; each child picks one of its source's
            k neighbours at random.
    "pair": rate applies to distinct neighbour pairs; each child is drawn on one
            pair, with the source end chosen at random.
    """
    n, k = neighbors.shape

    if allocation == "row":
        sources = np.repeat(np.arange(n), _allocate(n, rate, rng))
        picks = neighbors[sources, rng.integers(0, k, size=len(sources))]
        return sources, picks

    pairs = _neighbor_pairs(neighbors)
    chosen = pairs[np.repeat(np.arange(len(pairs)), _allocate(len(pairs), rate, rng))]
    flip = rng.integers(0, 2, size=len(chosen))
    rows = np.arange(len(chosen))
    return chosen[rows, flip], chosen[rows, 1 - flip]


def oversample(
    X,
    y,
    rate: float,
    k: int,
    seed: Optional[int] = None,
    cat_cols: Optional[Sequence[str]] = None,
    minority_label: Any = None,
    categorical_metric: str = "overlap",
    standardize: bool = True,
    allocation: str = "row",
) -> SmoteResult:
    """
    Augment a training partition with synthetic minority rows (SMOTE).

    Steps:
      1) Isolate the minority rows M (label = minority_label, or least frequent label)
      2) Find the k nearest neighbours of every row inside M
      3) Allocate synthetic rows: round(rate * |M| / 100) across M ("row"), or
         round(rate * |P| / 100) across the distinct neighbour pairs P ("pair")
      4) For each synthetic row: pick its two parents (source + one of its k neighbours),
         draw gap ~ U[0, 1) and set numeric = source + gap * (neighbour - source).
         Categorical columns take the majority value among the source and its k
         neighbours (ties keep the source's value).
      5) Append the synthetic rows after the untouched original rows

    Args:
        X: Feature table (DataFrame or 2D array). Not modified.
        y: Labels aligned with X by position.
        rate: Percentage of the minority count to create (> 0).
        k: Neighbours per minority row (1 <= k < minority count).
        seed: Seed for reproducible output. None = non-reproducible.
        cat_cols: Columns holding categories. Other non-numeric columns are an error.
        minority_label: Label to oversample. Default: least frequent label.
        categorical_metric: "overlap" or "onehot" (see SmoteConfig).
        standardize: z-score numeric columns before distances.
        allocation: "row" (rate is a percentage of minority rows) or "pair" (rate is a
          percentage of distinct neighbour pairs; two mutual neighbours form one pair).

    Returns:
        SmoteResult with the augmented X / y (fresh RangeIndex) and per-row provenance.

    Raises:
        EmptyDataset, InvalidConfiguration, InsufficientMinoritySamples, DistanceComputationError
    """
    X = X if isinstance(X, pd.DataFrame) else pd.DataFrame(np.asarray(X))
    y_name = getattr(y, "name", None)
    y_arr = np.asarray(y)

    if len(X) == 0:
        raise EmptyDataset("Cannot oversample an empty training set")
    if y_arr.ndim != 1 or len(y_arr) != len(X):
        raise InvalidConfiguration(f"X has {len(X)} rows but y has shape {y_arr.shape}")
    _check_params(rate, k, categorical_metric, allocation)

    label = _resolve_minority_label(y_arr, minority_label)
    min_pos = np.flatnonzero(y_arr == label)
    n = len(min_pos)
    if n < k + 1:
        raise InsufficientMinoritySamples(
            f"k={k} needs at least {k + 1} minority rows (label {label!r}), found {n}"
        )

    num_cols, cat_cols = _split_columns(X, cat_cols)
    X_min = X.iloc[min_pos]
    Z = _encode(X_min, num_cols, cat_cols, categorical_metric, standardize)
    neighbors = _nearest_neighbors(Z, k)

    rng = np.random.default_rng(seed)
    sources, picks = _draw_parents(neighbors, float(rate), allocation, rng)
    g = len(sources)

    y_out = pd.Series(y_arr, name=y_name)
    if g == 0:
        return SmoteResult(
            X=X.reset_index(drop=True),
            y=y_out,
            n_synthetic=0,
            provenance=pd.DataFrame(columns=["source_index", "neighbor_index", "gap"]),
        )

    gaps = rng.random(g)

    synth = {}
    for c in num_cols:
        col = X_min[c].to_numpy(dtype=float)
        values = col[sources] + gaps * (col[picks] - col[sources])
        if pd.api.types.is_integer_dtype(X[c]):
            values = np.rint(values)
        synth[c] = pd.Series(values).astype(X[c].dtype)
    for c in cat_cols:
        col = X_min[c].to_numpy()
        voted = [_vote(col, np.concatenate(([i], neighbors[i]))) for i in range(n)]
        synth[c] = pd.Series([voted[i] for i in sources], dtype=X[c].dtype)

    X_syn = pd.DataFrame(synth, columns=X.columns)
    y_syn = pd.Series(np.repeat(np.asarray([label], dtype=y_arr.dtype), g), name=y_name)

    provenance = pd.DataFrame({
        "source_index": X.index[min_pos[sources]],
        "neighbor_index": X.index[min_pos[picks]],
        "gap": gaps,
    })

    return SmoteResult(
        X=pd.concat([X, X_syn], ignore_index=True),
        y=pd.concat([y_out, y_syn], ignore_index=True),
        n_synthetic=g,
        provenance=provenance,
    )


class SmoteOversampler(BaseEstimator):
    """
    scikit-learn / imbalanced-learn compatible wrapper around oversample().

    Notes:
    - Exposes fit_resample(), so an imblearn Pipeline treats it as a sampler:
      it runs on the training folds only and is skipped at predict time.
    - rate / k are plain estimator params, so searches can tune them as
      "smote__rate" / "smote__k".
    """

    def __init__(
        self,
        rate: float = 200.0,
        k: int = 5,
        seed: Optional[int] = None,
        cat_cols: Optional[Sequence[str]] = None,
        minority_label: Any = None,
        categorical_metric: str = "overlap",
        standardize: bool = True,
        allocation: str = "row",
    ):
        self.rate = rate
        self.k = k
        self.seed = seed
        self.cat_cols = cat_cols
        self.minority_label = minority_label
        self.categorical_metric = categorical_metric
        self.standardize = standardize
        self.allocation = allocation

    @classmethod
    def from_config(cls, cfg: SmoteConfig, cat_cols: Optional[Sequence[str]] = None) -> "SmoteOversampler":
        return cls(
            rate=cfg.rate,
            k=cfg.k,
            seed=cfg.seed,
            cat_cols=cat_cols,
            categorical_metric=cfg.categorical_metric,
            standardize=cfg.standardize,
            allocation=cfg.allocation,
        )

    def fit_resample(self, X, y):
        result = oversample(
            X,
            y,
            rate=self.rate,
            k=self.k,
            seed=self.seed,
            cat_cols=self.cat_cols,
            minority_label=self.minority_label,
            categorical_metric=self.categorical_metric,
            standardize=self.standardize,
            allocation=self.allocation,
        )
        self.n_synthetic_ = result.n_synthetic
        return result.X, result.y
