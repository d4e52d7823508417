"""Microplastic concentration modeling pipeline.

End-to-end pipeline that orchestrates:
1. Load the cached sample frame (and any auxiliary tables)
2. Prepare: validate, join, handle missing values, drop identifiers
3. Stratified train/test split
4. Repeated k-fold partitions over the training split
5. Tune every model family (and cross-validate the null model)
6. Residual diagnostics from out-of-fold predictions
7. Compare families against the null model by CV RMSE
8. Final fit on the training split, one evaluation on the test split,
   feature-importance ranking
9. Artifact saving

Usage:
    from microplastics.pipeline import Pipeline

    # Full pipeline
    Pipeline.run()

    # Or step by step
    pipeline = Pipeline(families=["lasso", "forest"])
    pipeline.load()
    pipeline.prepare()
    pipeline.split()
    pipeline.make_folds()
    pipeline.tune()
    pipeline.diagnose()
    pipeline.compare()
    pipeline.finalize()
    pipeline.save_artifacts()
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import joblib
import numpy as np
import pandas as pd

from microplastics.analysis import plots
from microplastics.analysis.explainer import PredictionExplainer
from microplastics.analysis.metrics import residuals
from microplastics.config import (
    CV_FOLDS,
    CV_REPEATS,
    DEFAULT_DATASET,
    RANDOM_SEED,
    RESULTS_DIR,
    TEST_PROPORTION,
)
from microplastics.data import DataReader, read_fgdc_metadata, validate_facilities, validate_samples
from microplastics.data.schemas import HydrographyMetadata
from microplastics.features import FeatureConfig, Wrangler
from microplastics.models import DEFAULT_FAMILIES, Folds, Split, get_spec, initial_split, make_folds
from microplastics.pipeline.evaluator import EvaluationMetrics, Evaluator
from microplastics.pipeline.trainer import Trainer, TuningResult

# Auxiliary tables the wrangler knows how to join
AUXILIARY_TABLES = ("zip_population", "tract_population", "land_use", "facilities")


class Pipeline:
    """End-to-end microplastic concentration modeling pipeline."""

    def __init__(
        self,
        dataset: str = DEFAULT_DATASET,
        data_dir: Optional[Union[str, Path]] = None,
        results_dir: Optional[Union[str, Path]] = None,
        families: Optional[List[str]] = None,
        selection: str = "best",
        missing: str = "drop",
        test_proportion: float = TEST_PROPORTION,
        n_folds: int = CV_FOLDS,
        n_repeats: int = CV_REPEATS,
        seed: int = RANDOM_SEED,
        grids: Optional[Dict[str, Dict[str, list]]] = None,
        family_options: Optional[Dict[str, Dict[str, Any]]] = None,
        feature_config: Optional[FeatureConfig] = None,
        metadata_path: Optional[Union[str, Path]] = None,
        diagnostic_repeats: int = 1,
    ):
        """Initialize pipeline.

        Args:
            dataset: Name of the cached sample frame
            data_dir: Directory of cached frames (default: config.DATA_DIR)
            results_dir: Where plots and tables are written
            families: Model families to tune (default: linear, lasso, tree, forest)
            selection: "best" or "one_se" configuration selection
            missing: "drop" or "impute" for missing predictors
            grids: Per-family grid overrides
            family_options: Per-family constructor options (e.g. n_estimators)
            metadata_path: FGDC document of the hydrography reference layer;
                samples outside its extent are reported
            diagnostic_repeats: CV repeats used for out-of-fold residuals
        """
        self.dataset = dataset
        self.data_dir = data_dir
        self.results_dir = Path(results_dir) if results_dir is not None else RESULTS_DIR
        self.families = list(families or DEFAULT_FAMILIES)
        self.selection = selection
        self.missing = missing
        self.test_proportion = test_proportion
        self.n_folds = n_folds
        self.n_repeats = n_repeats
        self.seed = seed
        self.grids = grids or {}
        self.family_options = family_options or {}
        self.feature_config = feature_config or FeatureConfig()
        self.metadata_path = metadata_path
        self.diagnostic_repeats = diagnostic_repeats

        # State
        self.raw_df: Optional[pd.DataFrame] = None
        self.auxiliary: Dict[str, pd.DataFrame] = {}
        self.model_df: Optional[pd.DataFrame] = None
        self.split_: Optional[Split] = None
        self.folds: Optional[Folds] = None
        self.results: Dict[str, TuningResult] = {}
        self.null_rmse: Optional[float] = None
        self.null_rmse_std: Optional[float] = None
        self.diagnostics: Dict[str, pd.DataFrame] = {}
        self.comparison: Optional[pd.DataFrame] = None
        self.best_family: Optional[str] = None
        self.final_model = None
        self.test_metrics: Optional[EvaluationMetrics] = None
        self.importance: Optional[pd.DataFrame] = None
        self.metadata: Optional[HydrographyMetadata] = None
        self.artifacts: Dict[str, Path] = {}

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @property
    def features(self) -> List[str]:
        if self.model_df is None:
            raise ValueError("Call prepare() first")
        return self.feature_config.present(self.model_df.columns)

    def _xy(self, df: pd.DataFrame):
        return df[self.features], df[self.feature_config.outcome].to_numpy(dtype=float)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def load(self, samples: Optional[pd.DataFrame] = None, **auxiliary: pd.DataFrame) -> pd.DataFrame:
        """Step 1: Load the sample frame and any auxiliary tables.

        Frames passed in are used as-is; otherwise the cached dataset is
        read from the data directory.
        """
        unknown = [k for k in auxiliary if k not in AUXILIARY_TABLES]
        if unknown:
            raise ValueError(f"Unknown auxiliary tables: {unknown}. Use {list(AUXILIARY_TABLES)}")

        if samples is None:
            reader = DataReader(self.data_dir)
            print(f"Data directory: {reader.data_dir}")
            samples = reader.load_dataset(self.dataset)

        self.raw_df = samples.copy()
        self.auxiliary = {k: v for k, v in auxiliary.items() if v is not None}
        print(f"Loaded {len(self.raw_df):,} samples, {len(self.raw_df.columns)} columns")
        return self.raw_df

    def prepare(self) -> pd.DataFrame:
        """Step 2: Validate, join auxiliary tables, handle missing values, drop ids."""
        if self.raw_df is None:
            raise ValueError("Call load() first")

        if {"site", "latitude", "longitude"} <= set(self.raw_df.columns):
            validate_samples(self.raw_df)
            if self.metadata_path is not None:
                self._flag_outside_extent()
        if "facilities" in self.auxiliary:
            validate_facilities(self.auxiliary["facilities"])

        wrangler = Wrangler(self.feature_config)
        self.model_df = wrangler.get_model_ready_data(
            self.raw_df, missing=self.missing, **self.auxiliary,
        )
        if not self.features:
            raise ValueError("No predictor columns left after preparation")

        dropped = len(self.raw_df) - len(self.model_df)
        print(f"Model frame: {len(self.model_df):,} rows ({dropped:,} dropped), "
              f"{len(self.features)} predictors")
        return self.model_df

    def _flag_outside_extent(self) -> None:
        self.metadata = read_fgdc_metadata(self.metadata_path)
        inside = [
            self.metadata.contains(lat, lon)
            for lat, lon in zip(self.raw_df["latitude"], self.raw_df["longitude"])
        ]
        outside = len(inside) - sum(inside)
        if outside:
            print(f"Warning: {outside} samples fall outside '{self.metadata.title}'")

    def split(self) -> Split:
        """Step 3: Stratified train/test split."""
        if self.model_df is None:
            raise ValueError("Call prepare() first")

        self.split_ = initial_split(
            self.model_df,
            self.feature_config.outcome,
            prop=1 - self.test_proportion,
            seed=self.seed,
        )
        # Folds from an earlier split no longer line up
        self.folds = None
        self.split_.print_summary()
        return self.split_

    def make_folds(self) -> Folds:
        """Step 4: Repeated k-fold partitions over the training split."""
        if self.split_ is None:
            raise ValueError("Call split() first")

        self.folds = make_folds(
            self.split_.train,
            self.feature_config.outcome,
            n_folds=self.n_folds,
            n_repeats=self.n_repeats,
            seed=self.seed,
        )
        print(f"Folds: {self.n_folds}-fold x {self.n_repeats} repeats = {len(self.folds)} resamples")
        return self.folds

    def tune(self) -> Dict[str, TuningResult]:
        """Step 5: Tune every family and cross-validate the null model."""
        if self.folds is None:
            raise ValueError("Call make_folds() first")

        X, y = self._xy(self.split_.train)
        trainer = Trainer(self.folds, seed=self.seed)

        self.results = {}
        for family in self.families:
            spec = get_spec(
                family, X, seed=self.seed,
                grid=self.grids.get(family),
                **self.family_options.get(family, {}),
            )
            self.results[family] = trainer.tune(spec, X, y, selection=self.selection)

        self.null_rmse, self.null_rmse_std = trainer.cross_validate_null(X, y)
        return self.results

    def diagnose(self) -> Dict[str, pd.DataFrame]:
        """Step 6: Out-of-fold residuals and diagnostic plots per family."""
        if not self.results:
            raise ValueError("Call tune() first")

        X, y = self._xy(self.split_.train)
        trainer = Trainer(self.folds, seed=self.seed)

        self.diagnostics = {}
        for family, res in self.results.items():
            pred = trainer.out_of_fold_predictions(res.estimator, X, y, repeats=self.diagnostic_repeats)
            resid = residuals(y, pred)
            self.diagnostics[family] = pd.DataFrame({"outcome": y, "prediction": pred, "residual": resid})

            self.artifacts[f"predictions_{family}"] = plots.plot_predictions(
                y, pred, self.results_dir / f"predictions_{family}.png",
                title=f"{family}: out-of-fold predictions",
            )
            self.artifacts[f"residuals_{family}"] = plots.plot_residuals(
                pred, resid, self.results_dir / f"residuals_{family}.png",
                title=f"{family}: residuals",
            )
        print(f"Diagnostics written to {self.results_dir}")
        return self.diagnostics

    def compare(self) -> pd.DataFrame:
        """Step 7: Compare families against the null model by CV RMSE."""
        if not self.results or self.null_rmse is None:
            raise ValueError("Call tune() first")

        evaluator = Evaluator()
        self.comparison = evaluator.compare(self.results, self.null_rmse)
        self.best_family = evaluator.select_best(self.comparison)
        print(f"Selected family: {self.best_family}")
        return self.comparison

    def finalize(self) -> EvaluationMetrics:
        """Step 8: Refit the selected model, evaluate once on test, rank features."""
        if self.best_family is None:
            raise ValueError("Call compare() first")

        X_train, y_train = self._xy(self.split_.train)
        X_test, y_test = self._xy(self.split_.test)

        evaluator = Evaluator()
        self.final_model, self.test_metrics = evaluator.last_fit(
            self.results[self.best_family].estimator,
            X_train, y_train, X_test, y_test,
            family=self.best_family,
        )
        self.test_metrics.print_summary()

        self.importance = PredictionExplainer(self.final_model, seed=self.seed).get_feature_importance(
            X_train, y_train,
        )
        print("\nTop features:")
        for _, row in self.importance.head(10).iterrows():
            print(f"  {row['feature']:28s} {row['importance']:.4f}")

        y_pred = self.final_model.predict(X_test)
        self.artifacts["predictions_test"] = plots.plot_predictions(
            y_test, y_pred, self.results_dir / "predictions_test.png",
            title=f"{self.best_family}: test set",
        )
        return self.test_metrics

    def save_artifacts(self) -> Dict[str, Path]:
        """Step 9: Save comparison, metrics, importance, and the final model."""
        if self.test_metrics is None:
            raise ValueError("Call finalize() first")

        self.results_dir.mkdir(parents=True, exist_ok=True)

        comparison_path = self.results_dir / "model_comparison.csv"
        self.comparison.to_csv(comparison_path, index=False)
        self.artifacts["comparison"] = comparison_path
        self.artifacts["comparison_plot"] = plots.plot_comparison(
            self.comparison[self.comparison["family"] != "null"],
            self.results_dir / "model_comparison.png",
            null_rmse=self.null_rmse,
        )

        importance_path = self.results_dir / "feature_importance.csv"
        self.importance.to_csv(importance_path, index=False)
        self.artifacts["importance"] = importance_path
        self.artifacts["importance_plot"] = plots.plot_importance(
            self.importance, self.results_dir / "feature_importance.png",
            title=f"Feature importance ({self.best_family})",
        )

        metrics_path = Evaluator().save_results(
            self.test_metrics,
            self.results_dir / "test_metrics.json",
            extra={
                "cv": {k: v.to_dict() for k, v in self.results.items()},
                "null_cv_rmse": round(float(self.null_rmse), 4),
                "selection": self.selection,
                "seed": self.seed,
            },
        )
        self.artifacts["metrics"] = Path(metrics_path)

        model_path = self.results_dir / "final_model.joblib"
        joblib.dump({
            "model": self.final_model,
            "family": self.best_family,
            "feature_cols": self.features,
            "outcome": self.feature_config.outcome,
        }, model_path)
        self.artifacts["model"] = model_path
        print(f"Model saved to {model_path}")
        return self.artifacts

    @classmethod
    def run(cls, samples: Optional[pd.DataFrame] = None, **kwargs) -> "Pipeline":
        """Run the full pipeline end-to-end.

        Args:
            samples: Sample frame to use instead of the cached dataset
            **kwargs: Pipeline constructor arguments
        """
        pipeline = cls(**kwargs)
        pipeline.load(samples)
        pipeline.prepare()
        pipeline.split()
        pipeline.make_folds()
        pipeline.tune()
        pipeline.diagnose()
        pipeline.compare()
        pipeline.finalize()
        pipeline.save_artifacts()
        print("\nPipeline complete!")
        return pipeline


def load_final_model(path: Union[str, Path]) -> Dict[str, Any]:
    """Load a saved final model bundle."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Missing {path}")
    return joblib.load(path)


def predict_concentration(bundle: Dict[str, Any], df: pd.DataFrame) -> np.ndarray:
    """Predict with a saved bundle; the frame must hold its feature columns."""
    missing = [c for c in bundle["feature_cols"] if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required feature columns: {missing}")
    return bundle["model"].predict(df[bundle["feature_cols"]])
