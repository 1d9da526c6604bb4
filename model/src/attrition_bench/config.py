# model/src/attrition_bench/config.py
# Central configuration for the attrition benchmark.
# Defaults live here and can be overridden via environment variables
# (then again via CLI flags in main.py).

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _float_list(raw: str) -> list[float]:
    return [float(x) for x in raw.split(",") if x.strip()]


@dataclass(frozen=True)
class Config:
    # --------------------
    # Paths (file locations)
    # --------------------
    # Attrition CSV (one row per employee).
    data_path: Path = Path(os.getenv("DATA_PATH", "model/data/employee_attrition.csv"))

    # Where best_model.joblib, metrics.json and benchmark.csv are written.
    artifacts_dir: Path = Path(os.getenv("ARTIFACT_DIR", "model/artifacts"))

    # --------------------
    # Problem setup
    # --------------------
    # Target column and the value that means "employee left".
    target_col: str = os.getenv("TARGET_COL", "Attrition")
    positive_label: str = os.getenv("POSITIVE_LABEL", "Yes")

    # Nominal columns (one-hot encoded for the models, voted on by SMOTE).
    cat_cols: list[str] = field(
        default_factory=lambda: [
            "BusinessTravel",
            "Department",
            "EducationField",
            "Gender",
            "JobRole",
            "MaritalStatus",
            "OverTime",
        ]
    )

    # IDs and constant columns carry no signal.
    drop_cols: list[str] = field(
        default_factory=lambda: [
            "EmployeeNumber",
            "EmployeeCount",
            "Over18",
            "StandardHours",
        ]
    )

    # --------------------
    # Cross-validation + reproducibility
    # --------------------
    cv_folds: int = int(os.getenv("CV_FOLDS", "5"))
    seed: int = int(os.getenv("SEED", "42"))

    # Parallel folds / search candidates (-1 = all cores).
    n_jobs: int = int(os.getenv("N_JOBS", "1"))

    # --------------------
    # SMOTE
    # --------------------
    # rate is a percentage of the minority count (200 = two synthetic rows per leaver).
    smote_rate: float = float(os.getenv("SMOTE_RATE", "200"))
    smote_k: int = int(os.getenv("SMOTE_K", "5"))
    # "overlap" or "onehot" distance for categorical columns.
    smote_categorical_metric: str = os.getenv("SMOTE_CAT_METRIC", "overlap")
    # "row": rate is a percentage of leavers; "pair": of distinct neighbour pairs.
    smote_allocation: str = os.getenv("SMOTE_ALLOCATION", "row")

    # --------------------
    # Thresholds / model selection
    # --------------------
    # Fixed decision thresholds reported for every model.
    thresholds: list[float] = field(
        default_factory=lambda: _float_list(os.getenv("THRESHOLDS", "0.5,0.4,0.3"))
    )

    # Metric used to tune thresholds and pick the best benchmark cell.
    select_metric: str = os.getenv("SELECT_METRIC", "f1")

    # --------------------
    # Hyperparameter search
    # --------------------
    # "grid", "random" or "halving".
    search_strategy: str = os.getenv("SEARCH_STRATEGY", "random")
    n_iter_tune: int = int(os.getenv("N_ITER_TUNE", "20"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")
