from __future__ import annotations

from typing import List
from sklearn.compose import ColumnTransformer
from sklearn.preprocessing import OneHotEncoder, StandardScaler
from sklearn.impute import SimpleImputer
from sklearn.pipeline import Pipeline


def build_preprocessor(cat_cols: List[str], num_cols: List[str]) -> ColumnTransformer:
    """
    Build the preprocessing step that sits between SMOTE and the classifier.

    What it does:
    - Categorical columns:
        1) Impute missing values using the most frequent category
        2) One-hot encode (dense); handle_unknown="ignore" keeps rare job roles
           that only show up in a validation fold from crashing predict()

    - Numerical columns:
        1) Impute missing values using the median
        2) Standardize (mean=0, std=1); logistic regression needs comparable scales

    Important:
    - It runs AFTER oversampling inside the pipeline, so the scaler is fitted on
      the augmented training fold, which is what the classifier trains on.
    - remainder="drop" keeps unexpected columns out of the model.
    """
    cat_pipe = Pipeline(
        steps=[
            ("imputer", SimpleImputer(strategy="most_frequent")),
            ("ohe", OneHotEncoder(handle_unknown="ignore", sparse_output=False)),
        ]
    )

    num_pipe = Pipeline(
        steps=[
            ("imputer", SimpleImputer(strategy="median")),
            ("scaler", StandardScaler()),
        ]
    )

    transformers = []
    if cat_cols:
        transformers.append(("cat", cat_pipe, list(cat_cols)))
    if num_cols:
        transformers.append(("num", num_pipe, list(num_cols)))

    return ColumnTransformer(transformers=transformers, remainder="drop")
