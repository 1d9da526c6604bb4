from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from attrition_bench.config import Config
from attrition_bench.data import Dataset
from attrition_bench.preprocessing import prepare_dataframe


def make_attrition_frame(n: int = 150, seed: int = 0) -> pd.DataFrame:
    """Small HR-style table: OverTime and low income push attrition up."""
    rng = np.random.default_rng(seed)

    overtime = rng.choice(["Yes", "No"], size=n, p=[0.3, 0.7])
    role = rng.choice(["Sales Executive", "Research Scientist", "Laboratory Technician"], size=n)
    department = rng.choice(["Sales", "Research & Development"], size=n)
    age = rng.integers(18, 60, size=n)
    income = rng.normal(6000, 2000, size=n).round(2)
    years = rng.integers(0, 30, size=n)

    logit = -2.5 + 1.5 * (overtime == "Yes") - 0.04 * (age - 35) - 0.0003 * (income - 6000)
    left = rng.random(n) < 1.0 / (1.0 + np.exp(-logit))
    # Enough leavers for SMOTE neighbours in every training fold
    left[rng.choice(n, size=20, replace=False)] = True

    return pd.DataFrame({
        "EmployeeNumber": np.arange(1, n + 1),
        "EmployeeCount": 1,
        "Age": age,
        "MonthlyIncome": income,
        "YearsAtCompany": years,
        "OverTime": overtime,
        "JobRole": role,
        "Department": department,
        "Attrition": np.where(left, "Yes", "No"),
    })


@pytest.fixture
def attrition_frame() -> pd.DataFrame:
    return make_attrition_frame()


@pytest.fixture
def dataset(attrition_frame) -> Dataset:
    cfg = Config()
    df = prepare_dataframe(
        attrition_frame,
        target=cfg.target_col,
        positive_label=cfg.positive_label,
        drop_cols=cfg.drop_cols,
    )
    return Dataset.from_frame(df, target=cfg.target_col, cat_cols=cfg.cat_cols)


@pytest.fixture
def large_dataset() -> Dataset:
    """900 rows: big enough for halving to start from a real subsample."""
    cfg = Config()
    df = prepare_dataframe(
        make_attrition_frame(n=900, seed=2),
        target=cfg.target_col,
        positive_label=cfg.positive_label,
        drop_cols=cfg.drop_cols,
    )
    return Dataset.from_frame(df, target=cfg.target_col, cat_cols=cfg.cat_cols)


@pytest.fixture
def small_cfg(tmp_path) -> Config:
    return Config(
        artifacts_dir=tmp_path / "artifacts",
        cv_folds=3,
        seed=7,
        n_jobs=1,
        smote_rate=100.0,
        smote_k=3,
        thresholds=[0.5, 0.3],
        select_metric="f1",
        search_strategy="random",
        n_iter_tune=2,
    )


@pytest.fixture
def mixed_xy():
    """40 stayers, 12 leavers; float, int and categorical columns."""
    rng = np.random.default_rng(3)
    n_maj, n_min = 40, 12
    X = pd.DataFrame({
        "income": np.concatenate([rng.normal(7000, 800, n_maj), rng.normal(3500, 600, n_min)]),
        "age": np.concatenate([rng.integers(30, 60, n_maj), rng.integers(20, 35, n_min)]),
        "overtime": ["No"] * n_maj + ["Yes"] * 9 + ["No"] * 3,
    })
    y = pd.Series([0] * n_maj + [1] * n_min, name="Attrition")
    return X, y
