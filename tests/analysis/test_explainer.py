"""Tests for PredictionExplainer importance rankings."""

import pytest
from sklearn.dummy import DummyRegressor
from sklearn.pipeline import Pipeline as SkPipeline

from microplastics.analysis import PredictionExplainer, feature_importance
from microplastics.models import build_preprocessor, get_spec

OUTCOME = "particle_concentration"


@pytest.fixture
def xy(model_frame):
    return model_frame.drop(columns=[OUTCOME]), model_frame[OUTCOME]


def _fit(name, X, y, **kwargs):
    return get_spec(name, X, **kwargs).pipeline.fit(X, y)


class TestPredictionExplainer:

    def test_tree_impurity(self, xy):
        X, y = xy
        explainer = PredictionExplainer(_fit("tree", X, y))
        table = explainer.get_feature_importance()

        assert list(table.columns) == ["feature", "importance", "method"]
        assert (table["method"] == "impurity").all()
        assert table["importance"].sum() == pytest.approx(1.0)
        assert table["importance"].is_monotonic_decreasing
        # Dummy columns carry encoded names
        assert any(f.startswith("water_body_") for f in table["feature"])
        assert table.loc[0, "feature"] in {"facility_distance_km", "turbidity"}

    def test_lasso_coefficients(self, xy):
        X, y = xy
        explainer = PredictionExplainer(_fit("lasso", X, y))
        table = explainer.get_feature_importance()
        assert (table["method"] == "coefficient").all()
        assert (table["importance"] >= 0).all()
        assert len(table) == len(explainer.feature_names)

    def test_strong_penalty_selects_fewer_features(self, xy):
        X, y = xy
        weak = _fit("lasso", X, y)
        weak.set_params(model__alpha=0.001).fit(X, y)
        strong = _fit("lasso", X, y)
        strong.set_params(model__alpha=3.0).fit(X, y)

        n_weak = len(PredictionExplainer(weak).selected_features())
        n_strong = len(PredictionExplainer(strong).selected_features())
        assert n_strong < n_weak

    def test_permutation_fallback(self, xy):
        X, y = xy
        pipeline = SkPipeline([("pre", build_preprocessor(X)), ("model", DummyRegressor())]).fit(X, y)
        explainer = PredictionExplainer(pipeline)

        with pytest.raises(ValueError, match="Permutation importance needs X and y"):
            explainer.get_feature_importance()

        table = explainer.get_feature_importance(X, y)
        assert (table["method"] == "permutation").all()
        assert sorted(table["feature"]) == sorted(X.columns)
        # Mean-only model ignores every predictor
        assert table["importance"].abs().max() == pytest.approx(0.0)

    def test_cached_and_top_features(self, xy):
        X, y = xy
        explainer = PredictionExplainer(_fit("forest", X, y, n_estimators=20))
        first = explainer.get_feature_importance()
        assert explainer.get_feature_importance() is first

        top = explainer.get_top_features(n=3)
        assert len(top) == 3
        assert top[0][1] >= top[1][1] >= top[2][1]

    def test_shortcut(self, xy):
        X, y = xy
        table = feature_importance(_fit("linear", X, y))
        assert (table["method"] == "coefficient").all()
