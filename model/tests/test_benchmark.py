from __future__ import annotations

import dataclasses

import numpy as np
import pytest
from sklearn.experimental import enable_halving_search_cv  # noqa: F401
from sklearn.model_selection import GridSearchCV, HalvingRandomSearchCV, RandomizedSearchCV

from attrition_bench.benchmark import run_benchmark, run_cell
from attrition_bench.smote import SmoteOversampler
from attrition_bench.training import build_models, make_pipeline
from attrition_bench.features import build_preprocessor
from attrition_bench.tuning import SMOTE_SPACE, halving_min_resources, make_search, param_space_for, tune
from attrition_bench.validation import cross_val_proba, make_cv


def test_build_models_names():
    assert list(build_models()) == ["Logistic Regression", "Decision Tree", "Random Forest"]


def test_plain_pipeline_has_no_sampler(dataset):
    pre = build_preprocessor(dataset.cat_cols, dataset.num_cols)
    pipe = make_pipeline(pre, build_models()["Decision Tree"])
    assert [name for name, _ in pipe.steps] == ["pre", "model"]


def test_cross_val_proba_covers_every_row(dataset, small_cfg):
    pre = build_preprocessor(dataset.cat_cols, dataset.num_cols)
    pipe = make_pipeline(pre, build_models(seed=0)["Logistic Regression"])
    proba = cross_val_proba(pipe, dataset.X, dataset.y, cv=make_cv(3, 0))
    assert proba.shape == (len(dataset),)
    assert ((proba >= 0) & (proba <= 1)).all()


def test_smote_cell_raises_recall_floor(dataset, small_cfg):
    cv = make_cv(small_cfg.cv_folds, small_cfg.seed)
    model = build_models(seed=0)["Logistic Regression"]
    plain = run_cell("Logistic Regression", model, "plain", dataset, small_cfg, cv)
    smote = run_cell("Logistic Regression", model, "smote", dataset, small_cfg, cv)

    # Oversampling shifts probabilities up for the minority class on average
    assert smote.proba.mean() > plain.proba.mean()
    assert smote.pipeline.steps[0][0] == "smote"


def test_run_benchmark_table(dataset, small_cfg):
    result = run_benchmark(dataset, small_cfg, learners=["Logistic Regression", "Decision Tree"])

    assert [c.key for c in result.cells] == [
        "Logistic Regression [plain]",
        "Logistic Regression [smote]",
        "Decision Tree [plain]",
        "Decision Tree [smote]",
    ]

    table = result.table()
    # 2 fixed thresholds + 1 tuned per cell
    assert len(table) == 4 * 3
    assert set(table["threshold_kind"]) == {"fixed", "tuned"}
    assert (table[["tn", "fp", "fn", "tp"]].sum(axis=1) == len(dataset)).all()

    best = result.best()
    assert best.tuned_threshold.score == max(c.tuned_threshold.score for c in result.cells)
    for cell in result.cells:
        assert cell.tuned_threshold.threshold in set(np.unique(cell.proba))


def test_run_benchmark_is_deterministic(dataset, small_cfg):
    a = run_benchmark(dataset, small_cfg, learners=["Decision Tree"], resampling=("smote",))
    b = run_benchmark(dataset, small_cfg, learners=["Decision Tree"], resampling=("smote",))
    np.testing.assert_array_equal(a.cells[0].proba, b.cells[0].proba)


def test_run_benchmark_with_tuning(dataset, small_cfg):
    result = run_benchmark(dataset, small_cfg, learners=["Decision Tree"], resampling=("smote",), do_tune=True)
    cell = result.cells[0]
    assert cell.tuning is not None
    assert "smote__rate" in cell.tuning.best_params
    assert "smote__k" in cell.tuning.best_params
    assert cell.pipeline.named_steps["smote"].rate == cell.tuning.best_params["smote__rate"]


def test_run_benchmark_rejects_unknown_inputs(dataset, small_cfg):
    with pytest.raises(ValueError):
        run_benchmark(dataset, small_cfg, learners=["SVM"])
    with pytest.raises(ValueError):
        run_benchmark(dataset, dataclasses.replace(small_cfg, select_metric="pr_auc"))


def test_param_space():
    assert param_space_for("Unknown") == {}
    plain = param_space_for("Random Forest")
    assert all(k.startswith("model__") for k in plain)
    with_smote = param_space_for("Random Forest", with_smote=True)
    assert set(SMOTE_SPACE) <= set(with_smote)


@pytest.mark.parametrize(
    "strategy,cls",
    [("grid", GridSearchCV), ("random", RandomizedSearchCV), ("halving", HalvingRandomSearchCV)],
)
def test_make_search_strategies(strategy, cls, dataset):
    pre = build_preprocessor(dataset.cat_cols, dataset.num_cols)
    pipe = make_pipeline(pre, build_models()["Decision Tree"])
    search = make_search(strategy, pipe, param_space_for("Decision Tree"), make_cv(3), "f1", n_iter=2)
    assert isinstance(search, cls)


def test_make_search_unknown_strategy(dataset):
    with pytest.raises(ValueError):
        make_search("evolutionary", None, {"model__C": [1]}, make_cv(3), "f1")


def test_tune_grid_logistic(dataset):
    pre = build_preprocessor(dataset.cat_cols, dataset.num_cols)
    pipe = make_pipeline(pre, build_models()["Logistic Regression"])
    res = tune("Logistic Regression", pipe, dataset.X, dataset.y, cv=make_cv(3), scoring="f1", strategy="random", n_iter=3)
    assert res.best_score is not None
    assert set(res.best_params) == {"model__C", "model__solver"}


def test_halving_min_resources_leaves_room_for_smote():
    y = np.array([1] * 200 + [0] * 800)
    cv = make_cv(5)
    # 10 minority rows per training fold, 20% minority, 80% of rows train, 3x margin
    assert halving_min_resources(y, cv, {"smote__k": [3, 9]}) == 3 * 63
    assert halving_min_resources(y, cv, {"model__C": [1.0]}) == 3 * 13
    assert halving_min_resources(np.array([1] * 6 + [0] * 24), cv, {"smote__k": [9]}) == 30


def test_halving_search_with_smote_scores_first_round(large_dataset):
    data = large_dataset

    cv = make_cv(3, 0)
    smote = SmoteOversampler(rate=200, k=3, seed=0, cat_cols=data.cat_cols, minority_label=1)
    pipe = make_pipeline(build_preprocessor(data.cat_cols, data.num_cols), build_models(seed=0)["Decision Tree"], smote)
    space = param_space_for("Decision Tree", with_smote=True)

    search = make_search("halving", pipe, space, cv, "f1", seed=0, y=data.y)
    search.fit(data.X, data.y)

    first_round = np.asarray(search.cv_results_["mean_test_score"])[np.asarray(search.cv_results_["iter"]) == 0]
    assert len(first_round) > 0
    assert not np.isnan(first_round).any()
    assert search.min_resources_ > 2 * 3 * 2
