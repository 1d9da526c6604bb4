from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Sequence

import pandas as pd


def load_raw(csv_path: str | Path) -> pd.DataFrame:
    """
    Load the raw attrition table from a CSV file.

    Args:
        csv_path: Path to the CSV file. Accepts either a string or a pathlib.Path.

    Returns:
        A pandas DataFrame containing the raw data (no cleaning/processing done here).

    Raises:
        FileNotFoundError: If the provided CSV path does not exist.
    """
    csv_path = Path(csv_path)

    # Fail fast with a clear error message if the file path is wrong
    if not csv_path.exists():
        raise FileNotFoundError(f"CSV not found: {csv_path}")

    return pd.read_csv(csv_path)


@dataclass(frozen=True)
class Dataset:
    """
    Features + 0/1 target, with the column roles the pipeline needs.

    y is already binarised: 1 = attrition (minority / positive), 0 = stayed.
    """
    X: pd.DataFrame
    y: pd.Series
    cat_cols: list[str]
    num_cols: list[str]
    positive_label: Any = 1

    @classmethod
    def from_frame(cls, df: pd.DataFrame, target: str, cat_cols: Sequence[str] = ()) -> "Dataset":
        if target not in df.columns:
            raise ValueError(f"Target column '{target}' not found. Columns: {list(df.columns)}")

        X = df.drop(columns=[target]).copy()
        y = df[target].astype(int).copy()

        # Choose columns safely: listed categoricals that exist + any other text columns
        cats = [c for c in cat_cols if c in X.columns]
        cats += [
            c for c in X.columns
            if c not in cats and not pd.api.types.is_numeric_dtype(X[c])
        ]
        nums = [c for c in X.columns if c not in cats]

        if not nums and not cats:
            raise ValueError("No feature columns left after preprocessing.")
        return cls(X=X, y=y, cat_cols=cats, num_cols=nums)

    def class_counts(self) -> Dict[Any, int]:
        return {k: int(v) for k, v in self.y.value_counts().sort_index().items()}

    def minority_label(self) -> Any:
        counts = self.class_counts()
        return min(counts, key=lambda label: (counts[label], label))

    def __len__(self) -> int:
        return len(self.X)
