"""Tests for model family specs."""

import numpy as np
import pandas as pd
import pytest
from lightgbm import LGBMRegressor
from sklearn.linear_model import Lasso

from microplastics.models import DEFAULT_FAMILIES, build_preprocessor, get_spec, list_families


@pytest.fixture
def X(model_frame):
    return model_frame.drop(columns=["particle_concentration"])


def test_list_families():
    assert list_families() == ["linear", "lasso", "tree", "forest", "boosted"]
    assert "boosted" not in DEFAULT_FAMILIES


def test_unknown_family_raises(X):
    with pytest.raises(ValueError, match="Unknown model family"):
        get_spec("svm", X)


@pytest.mark.parametrize("name, n_candidates", [
    ("linear", 1),
    ("lasso", 50),
    ("tree", 48),
    ("forest", 16),
    ("boosted", 9),
])
def test_grid_sizes(X, name, n_candidates):
    spec = get_spec(name, X)
    assert spec.name == name
    assert spec.n_candidates == n_candidates
    assert all(key.startswith("model__") for key in spec.grid)


def test_lasso_grid_is_log_spaced(X):
    alphas = get_spec("lasso", X).grid["model__alpha"]
    assert alphas[0] == pytest.approx(1e-10)
    assert alphas[-1] == pytest.approx(1.0)
    assert isinstance(get_spec("lasso", X).pipeline.named_steps["model"], Lasso)


def test_grid_override_and_options(X):
    spec = get_spec("forest", X, grid={"model__min_samples_leaf": [5]}, n_estimators=25)
    assert spec.n_candidates == 1
    assert spec.pipeline.named_steps["model"].n_estimators == 25


def test_boosted_simplicity_direction(X):
    spec = get_spec("boosted", X)
    assert isinstance(spec.pipeline.named_steps["model"], LGBMRegressor)
    assert spec.one_se_param == "model__num_leaves"
    assert not spec.one_se_larger_is_simpler


def test_preprocessor_dummy_encodes(X):
    pre = build_preprocessor(X).fit(X)
    names = list(pre.get_feature_names_out())
    # Three water bodies -> two dummies (first level dropped)
    assert len([n for n in names if n.startswith("water_body_")]) == 2
    assert "turbidity" in names


def test_preprocessor_unseen_category_and_missing(X):
    pre = build_preprocessor(X, scale=True).fit(X)
    row = X.head(1).copy()
    row["water_body"] = "estuary"
    row["turbidity"] = np.nan
    out = pre.transform(row)
    assert not np.isnan(out).any()


def test_numeric_only_frame():
    X = pd.DataFrame({"a": [1.0, 2.0, 3.0]})
    pre = build_preprocessor(X).fit(X)
    assert list(pre.get_feature_names_out()) == ["a"]


def test_scaled_preprocessor_standardizes_dummies(X):
    pre = build_preprocessor(X, scale=True).fit(X)
    out = pre.transform(X)
    # Every column, dummies included, has unit variance for comparable coefficients
    assert np.allclose(out.mean(axis=0), 0.0, atol=1e-8)
    assert np.allclose(out.std(axis=0), 1.0)


def test_unscaled_preprocessor_keeps_raw_dummies(X):
    pre = build_preprocessor(X).fit(X)
    names = list(pre.get_feature_names_out())
    out = pd.DataFrame(pre.transform(X), columns=names)
    dummies = [n for n in names if n.startswith("water_body_")]
    assert set(np.unique(out[dummies].to_numpy())) <= {0.0, 1.0}
