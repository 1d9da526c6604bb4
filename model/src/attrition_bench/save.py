from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Tuple
import json

import joblib
import numpy as np
import pandas as pd


def _to_jsonable(obj):
    """json.dumps fallback for numpy scalars/arrays coming out of searches and metrics."""
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        return float(obj)
    if isinstance(obj, np.ndarray):
        return obj.tolist()
    if isinstance(obj, Path):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _nan_to_none(obj):
    """Replace NaN (e.g. ROC-AUC of a single-class fold) with None, which json writes as null."""
    if isinstance(obj, dict):
        return {k: _nan_to_none(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_nan_to_none(v) for v in obj]
    if isinstance(obj, np.ndarray):
        return _nan_to_none(obj.tolist())
    if isinstance(obj, (float, np.floating)) and np.isnan(obj):
        return None
    return obj


def save_artifacts(
    out_dir: str | Path,
    model,
    report: Dict[str, Any],
    table: pd.DataFrame,
) -> Tuple[Path, Path, Path]:
    """
    Save everything a benchmark run produces.

    What gets written:
      1) best_model.joblib -> best cell's pipeline refitted on all rows
      2) metrics.json      -> settings, per-cell tuned thresholds and metrics
      3) benchmark.csv     -> the full cell x threshold table

    Returns:
        (model_path, metrics_path, table_path)
    """
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    model_path = out_dir / "best_model.joblib"
    metrics_path = out_dir / "metrics.json"
    table_path = out_dir / "benchmark.csv"

    joblib.dump(model, model_path)

    # indent=2 keeps it readable when diffing two runs; NaN is not valid JSON
    text = json.dumps(_nan_to_none(report), indent=2, default=_to_jsonable, allow_nan=False)
    metrics_path.write_text(text, encoding="utf-8")
    table.to_csv(table_path, index=False)

    return model_path, metrics_path, table_path
