from __future__ import annotations

import numpy as np
import pandas as pd


def drop_ids_and_constants(df: pd.DataFrame, drop_cols: list[str] | tuple[str, ...]) -> pd.DataFrame:
    """
    Drop ID / constant columns if they exist in the dataset.

    Why we do this:
    - EmployeeNumber is an ID; it can only help by accident (leakage).
    - EmployeeCount / StandardHours / Over18 hold one value for everyone.
    - Any other single-valued column is dropped too, since it cannot split anything.

    Returns:
        A NEW DataFrame (does not modify input).
    """
    df = df.drop(columns=[c for c in drop_cols if c in df.columns], errors="ignore")
    constant = [c for c in df.columns if df[c].nunique(dropna=False) <= 1]
    return df.drop(columns=constant)


def encode_target(s: pd.Series, positive_label) -> pd.Series:
    """
    Map the target to 0/1 with 1 = attrition.

    Accepts both text labels ("Yes"/"No") and data that is already 0/1.
    """
    if pd.api.types.is_numeric_dtype(s) and set(s.dropna().unique()) <= {0, 1}:
        return s.astype(np.int64)

    norm = s.astype(str).str.strip().str.lower()
    if str(positive_label).strip().lower() not in set(norm.unique()):
        raise ValueError(
            f"Positive label '{positive_label}' not found in target values: {sorted(norm.unique())}"
        )
    return (norm == str(positive_label).strip().lower()).astype(np.int64)


def prepare_dataframe(
    df: pd.DataFrame,
    target: str,
    positive_label,
    drop_cols: list[str] | tuple[str, ...],
) -> pd.DataFrame:
    """
    Standard preprocessing before splitting into folds.

    Steps:
      1) Drop ID/constant columns
      2) Drop rows without a target
      3) Encode target to 0/1

    Returns:
        A cleaned DataFrame ready for Dataset.from_frame().
    """
    if target not in df.columns:
        raise ValueError(f"Target column '{target}' not found. Columns: {list(df.columns)}")

    df2 = df.dropna(subset=[target])
    df2 = drop_ids_and_constants(df2, drop_cols=[c for c in drop_cols if c != target])
    if target not in df2.columns:
        raise ValueError(f"Target column '{target}' has a single value, nothing to predict")

    df2 = df2.copy()
    df2[target] = encode_target(df2[target], positive_label)
    return df2.reset_index(drop=True)
