"""Feature importance for fitted model pipelines.

Importance is reported against the encoded feature names coming out of
the preprocessing step (one column per dummy level).

Sources, by regressor type:
    - Trees, forests, LightGBM: impurity / split-gain importance
    - Linear, LASSO: absolute coefficient. LASSO inputs, dummies included,
      are standardized so its ranking is per standard deviation; plain linear
      coefficients are in raw units and only rank features of like scale
    - Anything else: permutation importance on the supplied data

Key Classes:
    PredictionExplainer - Importance ranking for one fitted pipeline

Usage:
    from microplastics.analysis import PredictionExplainer

    explainer = PredictionExplainer(fitted_pipeline)
    ranking = explainer.get_feature_importance(X_train, y_train)
    print(explainer.get_top_features(n=5))
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.inspection import permutation_importance

from microplastics.config import RANDOM_SEED


class PredictionExplainer:
    """Global importance ranking for a fitted preprocessing + model Pipeline."""

    def __init__(self, pipeline, seed: int = RANDOM_SEED):
        """
        Args:
            pipeline: Fitted sklearn Pipeline with "pre" and "model" steps
        """
        self.pipeline = pipeline
        self.seed = seed
        self._importance_cache: Optional[pd.DataFrame] = None

    @property
    def model(self):
        return self.pipeline.named_steps["model"]

    @property
    def feature_names(self) -> List[str]:
        pre = self.pipeline.named_steps["pre"]
        return [str(n) for n in pre.get_feature_names_out()]

    def get_feature_importance(self, X: Optional[pd.DataFrame] = None, y=None) -> pd.DataFrame:
        """Importance per encoded feature, sorted descending.

        Args:
            X, y: Data for permutation importance; only needed when the
                regressor exposes neither importances nor coefficients.

        Returns:
            DataFrame [feature, importance, method].
        """
        if self._importance_cache is not None:
            return self._importance_cache

        if hasattr(self.model, "feature_importances_"):
            values = np.asarray(self.model.feature_importances_, dtype=float)
            names = self.feature_names
            method = "impurity"
        elif hasattr(self.model, "coef_"):
            values = np.abs(np.ravel(self.model.coef_))
            names = self.feature_names
            method = "coefficient"
        else:
            if X is None or y is None:
                raise ValueError("Permutation importance needs X and y")
            result = permutation_importance(
                self.pipeline, X, y,
                scoring="neg_root_mean_squared_error",
                n_repeats=10,
                random_state=self.seed,
            )
            values = result.importances_mean
            # Permutation works on the raw columns
            names = list(X.columns)
            method = "permutation"

        table = pd.DataFrame({"feature": names, "importance": values, "method": method})
        self._importance_cache = (
            table.sort_values("importance", ascending=False, kind="stable")
            .reset_index(drop=True)
        )
        return self._importance_cache

    def get_top_features(self, n: int = 10) -> List[Tuple[str, float]]:
        """Top N (feature, importance) pairs."""
        table = self.get_feature_importance()
        return list(zip(table["feature"].head(n), table["importance"].head(n)))

    def selected_features(self, tol: float = 0.0) -> List[str]:
        """Features with importance above `tol` (LASSO: non-zero coefficients)."""
        table = self.get_feature_importance()
        return table.loc[table["importance"] > tol, "feature"].tolist()


def feature_importance(pipeline, X: Optional[pd.DataFrame] = None, y=None) -> pd.DataFrame:
    """Shortcut for PredictionExplainer(pipeline).get_feature_importance(X, y)."""
    return PredictionExplainer(pipeline).get_feature_importance(X, y)
