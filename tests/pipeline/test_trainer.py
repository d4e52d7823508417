"""Tests for Trainer tuning over shared folds."""

import numpy as np
import pytest

from microplastics.models import get_spec, make_folds
from microplastics.pipeline import Trainer, TuningResult
from microplastics.pipeline.trainer import one_se_index

OUTCOME = "particle_concentration"


@pytest.fixture
def xy(model_frame):
    return model_frame.drop(columns=[OUTCOME]), model_frame[OUTCOME].to_numpy()


@pytest.fixture
def trainer(model_frame):
    folds = make_folds(model_frame, OUTCOME, n_folds=3, n_repeats=2, seed=0)
    return Trainer(folds, seed=0)


class TestOneSeIndex:

    CV_RESULTS = {
        "mean_test_score": [-1.0, -1.05, -1.5],
        "std_test_score": [0.3, 0.3, 0.3],
        "param_model__alpha": [0.01, 0.1, 1.0],
    }

    def test_larger_is_simpler(self):
        # SE = 0.3 / sqrt(9) = 0.1 -> candidates 0 and 1
        assert one_se_index(self.CV_RESULTS, "model__alpha", True, n_splits=9) == 1

    def test_smaller_is_simpler(self):
        assert one_se_index(self.CV_RESULTS, "model__alpha", False, n_splits=9) == 0

    def test_ties_broken_by_rmse(self):
        results = {
            "mean_test_score": [-1.02, -1.0, -1.01],
            "std_test_score": [0.3, 0.3, 0.3],
            "param_model__min_samples_leaf": [5, 1, 5],
        }
        assert one_se_index(results, "model__min_samples_leaf", True, n_splits=9) == 2


class TestTune:

    def test_linear_has_no_grid(self, trainer, xy):
        X, y = xy
        result = trainer.tune(get_spec("linear", X), X, y)
        assert isinstance(result, TuningResult)
        assert result.best_params == {}
        assert result.n_candidates == 1
        assert result.cv_rmse > 0
        assert len(result.estimator.predict(X)) == len(X)

    def test_lasso_grid_search(self, trainer, xy):
        X, y = xy
        spec = get_spec("lasso", X, grid={"model__alpha": [0.001, 0.1, 1.0]})
        result = trainer.tune(spec, X, y)
        assert result.best_params["model__alpha"] in (0.001, 0.1, 1.0)
        assert len(result.cv_results) == 3
        assert result.to_dict()["n_candidates"] == 3

    def test_one_se_never_less_regularized(self, trainer, xy):
        X, y = xy
        grid = {"model__alpha": [0.001, 0.01, 0.1, 0.5, 1.0]}
        best = trainer.tune(get_spec("lasso", X, grid=grid), X, y, selection="best")
        one_se = trainer.tune(get_spec("lasso", X, grid=grid), X, y, selection="one_se")
        assert one_se.best_params["model__alpha"] >= best.best_params["model__alpha"]
        assert one_se.cv_rmse >= best.cv_rmse

    def test_tree_and_boosted(self, trainer, xy):
        X, y = xy
        tree = trainer.tune(get_spec("tree", X, grid={"model__max_depth": [2, 4]}), X, y)
        boosted = trainer.tune(
            get_spec("boosted", X, grid={"model__num_leaves": [4]}, n_estimators=20), X, y,
        )
        assert tree.best_params["model__max_depth"] in (2, 4)
        assert boosted.best_params == {"model__num_leaves": 4}

    def test_models_beat_null(self, trainer, xy):
        X, y = xy
        null_rmse, null_std = trainer.cross_validate_null(X, y)
        linear = trainer.tune(get_spec("linear", X), X, y)
        assert null_std >= 0
        assert linear.cv_rmse < null_rmse

    def test_unknown_selection_raises(self, trainer, xy):
        X, y = xy
        with pytest.raises(ValueError, match="Unknown selection rule"):
            trainer.tune(get_spec("linear", X), X, y, selection="worst")

    def test_stale_folds_raise(self, trainer, xy):
        X, y = xy
        with pytest.raises(ValueError, match="Rebuild folds"):
            trainer.tune(get_spec("linear", X), X.iloc[:-1], y[:-1])


class TestOutOfFold:

    def test_every_row_predicted(self, trainer, xy):
        X, y = xy
        spec = get_spec("linear", X)
        pred = trainer.out_of_fold_predictions(spec.pipeline, X, y)
        assert pred.shape == (len(X),)
        assert not np.isnan(pred).any()

    def test_single_repeat_matches_manual_fit(self, trainer, xy):
        X, y = xy
        spec = get_spec("linear", X)
        pred = trainer.out_of_fold_predictions(spec.pipeline, X, y, repeats=1)

        train_idx, val_idx = trainer.folds.repeat(0)[0]
        manual = trainer.fit_final(spec.pipeline, X.iloc[train_idx], y[train_idx]).predict(X.iloc[val_idx])
        assert np.allclose(pred[val_idx], manual)

    def test_does_not_fit_input_estimator(self, trainer, xy):
        X, y = xy
        spec = get_spec("linear", X)
        trainer.out_of_fold_predictions(spec.pipeline, X, y, repeats=1)
        assert not hasattr(spec.pipeline.named_steps["model"], "coef_")
