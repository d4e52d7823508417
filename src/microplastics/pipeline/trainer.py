"""Model tuning and fitting.

ALL FITTING GOES THROUGH HERE. Every family is tuned on the same
repeated k-fold partitions so their CV RMSE values are comparable,
including the null baseline.

Selection rules:
    "best"   - Configuration with minimum mean CV RMSE
    "one_se" - Simplest configuration within one standard error of the best

Key Classes:
    Trainer - Tune, cross-validate, and refit model families
    TuningResult - Outcome of tuning one family

Usage:
    from microplastics.pipeline import Trainer

    trainer = Trainer(folds)
    result = trainer.tune(get_spec("lasso", X), X, y)
    print(result.best_params, result.cv_rmse)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd
from sklearn.base import clone
from sklearn.model_selection import GridSearchCV, cross_val_score, cross_validate

from microplastics.config import RANDOM_SEED
from microplastics.models.baseline import null_model
from microplastics.models.specs import ModelSpec
from microplastics.models.splits import Folds

SCORING = "neg_root_mean_squared_error"
SELECTION_RULES = ("best", "one_se")


@dataclass
class TuningResult:
    """Outcome of tuning one model family."""

    family: str
    best_params: Dict[str, Any]
    cv_rmse: float
    cv_rmse_std: float
    n_candidates: int
    estimator: Any  # fitted on the full training set
    cv_results: pd.DataFrame = field(repr=False, default_factory=pd.DataFrame)

    def to_dict(self) -> dict:
        return {
            "family": self.family,
            "cv_rmse": round(self.cv_rmse, 4),
            "cv_rmse_std": round(self.cv_rmse_std, 4),
            "n_candidates": self.n_candidates,
            "best_params": {k: _plain(v) for k, v in self.best_params.items()},
        }


def _plain(value):
    """numpy scalar -> Python scalar for JSON."""
    return value.item() if isinstance(value, np.generic) else value


def one_se_index(
    cv_results: Dict[str, Any],
    param: str,
    larger_is_simpler: bool,
    n_splits: int,
) -> int:
    """Index of the simplest candidate within one SE of the best mean RMSE."""
    mean_rmse = -np.asarray(cv_results["mean_test_score"], dtype=float)
    std_rmse = np.asarray(cv_results["std_test_score"], dtype=float)

    best = int(np.nanargmin(mean_rmse))
    threshold = mean_rmse[best] + std_rmse[best] / np.sqrt(n_splits)
    candidates = np.flatnonzero(mean_rmse <= threshold)

    values = np.asarray(cv_results[f"param_{param}"], dtype=float)
    target = values[candidates].max() if larger_is_simpler else values[candidates].min()
    simplest = candidates[values[candidates] == target]
    # Among equally simple candidates, lowest RMSE
    return int(simplest[np.argmin(mean_rmse[simplest])])


class Trainer:
    """Tunes model families over one fixed set of CV partitions."""

    def __init__(self, folds: Folds, seed: int = RANDOM_SEED, n_jobs: Optional[int] = None):
        self.folds = folds
        self.seed = seed
        self.n_jobs = n_jobs

    def tune(
        self,
        spec: ModelSpec,
        X: pd.DataFrame,
        y,
        selection: str = "best",
    ) -> TuningResult:
        """Grid-search one family and refit the selected configuration.

        Args:
            spec: Family to tune
            X: Training predictors (the frame the folds were built on)
            y: Training outcome
            selection: "best" or "one_se"

        Returns:
            TuningResult with the estimator refit on all of X.
        """
        if selection not in SELECTION_RULES:
            raise ValueError(f"Unknown selection rule: {selection}. Use one of {SELECTION_RULES}")
        self.folds.check(X)

        if not spec.grid:
            return self._cross_validate_fixed(spec, X, y)

        refit = True
        # A replacement grid may not vary the simplicity parameter
        if selection == "one_se" and spec.one_se_param in spec.grid:
            param = spec.one_se_param
            larger = spec.one_se_larger_is_simpler
            n_splits = len(self.folds)
            refit = lambda results: one_se_index(results, param, larger, n_splits)  # noqa: E731

        print(f"Tuning {spec.name}: {spec.n_candidates} candidates x {len(self.folds)} resamples...")
        search = GridSearchCV(
            spec.pipeline,
            param_grid=spec.grid,
            scoring=SCORING,
            cv=self.folds.splits,
            refit=refit,
            n_jobs=self.n_jobs,
            error_score="raise",
        )
        search.fit(X, y)

        idx = search.best_index_
        results = pd.DataFrame(search.cv_results_)
        cv_rmse = float(-results.loc[idx, "mean_test_score"])
        cv_std = float(results.loc[idx, "std_test_score"])
        print(f"  -> {spec.name}: CV RMSE={cv_rmse:.3f} (±{cv_std:.3f}) {search.best_params_}")

        return TuningResult(
            family=spec.name,
            best_params=dict(search.best_params_),
            cv_rmse=cv_rmse,
            cv_rmse_std=cv_std,
            n_candidates=spec.n_candidates,
            estimator=search.best_estimator_,
            cv_results=results,
        )

    def _cross_validate_fixed(self, spec: ModelSpec, X: pd.DataFrame, y) -> TuningResult:
        """Families without a grid: plain CV, then refit."""
        print(f"Cross-validating {spec.name} ({len(self.folds)} resamples)...")
        scores = cross_validate(
            spec.pipeline, X, y,
            scoring=SCORING,
            cv=self.folds.splits,
            n_jobs=self.n_jobs,
            error_score="raise",
        )
        rmse_values = -scores["test_score"]
        estimator = self.fit_final(spec.pipeline, X, y)
        print(f"  -> {spec.name}: CV RMSE={rmse_values.mean():.3f} (±{rmse_values.std():.3f})")

        return TuningResult(
            family=spec.name,
            best_params={},
            cv_rmse=float(rmse_values.mean()),
            cv_rmse_std=float(rmse_values.std()),
            n_candidates=1,
            estimator=estimator,
            cv_results=pd.DataFrame({
                "mean_test_score": [-rmse_values.mean()],
                "std_test_score": [rmse_values.std()],
            }),
        )

    def cross_validate_null(self, X: pd.DataFrame, y) -> Tuple[float, float]:
        """Mean and std of the null model's RMSE over the same folds."""
        self.folds.check(X)
        scores = -cross_val_score(null_model(), X, y, scoring=SCORING, cv=self.folds.splits)
        print(f"Null model: CV RMSE={scores.mean():.3f} (±{scores.std():.3f})")
        return float(scores.mean()), float(scores.std())

    def out_of_fold_predictions(
        self,
        estimator,
        X: pd.DataFrame,
        y,
        repeats: Optional[int] = None,
    ) -> np.ndarray:
        """Held-out predictions for every training row, averaged over repeats.

        Args:
            estimator: Pipeline to refit per fold (cloned, not modified)
            repeats: Number of repeats to use (default: all)
        """
        self.folds.check(X)
        y = np.asarray(y, dtype=float)
        n_repeats = self.folds.n_repeats if repeats is None else min(repeats, self.folds.n_repeats)

        totals = np.zeros(len(X))
        counts = np.zeros(len(X))
        for r in range(n_repeats):
            for train_idx, val_idx in self.folds.repeat(r):
                model = clone(estimator).fit(X.iloc[train_idx], y[train_idx])
                totals[val_idx] += model.predict(X.iloc[val_idx])
                counts[val_idx] += 1

        return totals / np.maximum(counts, 1)

    def fit_final(self, estimator, X: pd.DataFrame, y):
        """Refit a fresh copy of `estimator` on the full training set."""
        return clone(estimator).fit(X, y)
