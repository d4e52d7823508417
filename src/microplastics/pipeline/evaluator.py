"""Model comparison and final test-set evaluation.

Decoupled from training: the evaluator only reads tuning results and
fitted estimators.

Key Classes:
    Evaluator - Compare families, pick the winner, score the test split
    EvaluationMetrics - Test-set performance against the null baseline

Usage:
    from microplastics.pipeline.evaluator import Evaluator

    evaluator = Evaluator()
    table = evaluator.compare(results, null_rmse)
    best = evaluator.select_best(table)
    model, metrics = evaluator.last_fit(results[best].estimator, X_train, y_train, X_test, y_test)
    metrics.print_summary()
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.base import clone

from microplastics.analysis.metrics import evaluate_predictions, rmse
from microplastics.models.baseline import predict_baseline
from microplastics.pipeline.trainer import TuningResult


@dataclass
class EvaluationMetrics:
    """Held-out test performance of the final model."""

    family: str
    model_rmse: float
    model_mae: float
    model_r2: float
    baseline_rmse: float
    n_samples: int

    @property
    def rmse_improvement(self) -> float:
        """Relative RMSE reduction vs. the null model (negative is worse)."""
        if self.baseline_rmse == 0:
            return 0.0
        return (self.baseline_rmse - self.model_rmse) / self.baseline_rmse

    def to_dict(self) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "family": self.family,
            "model_rmse": round(self.model_rmse, 4),
            "model_mae": round(self.model_mae, 4),
            "model_r2": round(self.model_r2, 4),
            "baseline_rmse": round(self.baseline_rmse, 4),
            "rmse_improvement_pct": round(self.rmse_improvement * 100, 2),
            "n_samples": self.n_samples,
        }

    def print_summary(self):
        print(f"\n{'='*60}")
        print(f"Test evaluation: {self.family.upper()}")
        print(f"{'='*60}")
        print(f"Model RMSE:             {self.model_rmse:.4f}")
        print(f"Null RMSE:              {self.baseline_rmse:.4f}")
        print(f"RMSE Improvement:       {self.rmse_improvement*100:+.2f}%")
        print(f"\nModel MAE:              {self.model_mae:.4f}")
        print(f"Model R²:               {self.model_r2:.4f}")
        print(f"\nSamples:                {self.n_samples}")


class Evaluator:
    """Compare tuned families and score the chosen one on the test split."""

    def compare(self, results: Dict[str, TuningResult], null_rmse: float) -> pd.DataFrame:
        """Comparison table sorted by CV RMSE, with the null model as a row.

        Returns:
            DataFrame [family, cv_rmse, cv_rmse_std, improvement_pct, n_candidates, best_params]
        """
        if not results:
            raise ValueError("No tuning results to compare")

        rows = []
        for family, res in results.items():
            rows.append({
                "family": family,
                "cv_rmse": res.cv_rmse,
                "cv_rmse_std": res.cv_rmse_std,
                "improvement_pct": _improvement(null_rmse, res.cv_rmse) * 100,
                "n_candidates": res.n_candidates,
                "best_params": json.dumps(res.to_dict()["best_params"]),
            })
        rows.append({
            "family": "null",
            "cv_rmse": null_rmse,
            "cv_rmse_std": np.nan,
            "improvement_pct": 0.0,
            "n_candidates": 1,
            "best_params": "{}",
        })

        table = pd.DataFrame(rows).sort_values("cv_rmse", kind="stable").reset_index(drop=True)
        print("\nModel comparison (CV RMSE):")
        for _, row in table.iterrows():
            print(f"  {row['family']:8s} {row['cv_rmse']:.4f}  ({row['improvement_pct']:+.1f}% vs null)")
        return table

    def select_best(self, table: pd.DataFrame) -> str:
        """Family with the lowest CV RMSE, excluding the null row."""
        candidates = table[table["family"] != "null"]
        if candidates.empty:
            raise ValueError("Comparison table has no model families")
        best = candidates.loc[candidates["cv_rmse"].idxmin(), "family"]
        if candidates["cv_rmse"].min() >= table.loc[table["family"] == "null", "cv_rmse"].min():
            print(f"Warning: best family '{best}' does not beat the null model")
        return str(best)

    def last_fit(
        self,
        estimator,
        X_train: pd.DataFrame,
        y_train,
        X_test: pd.DataFrame,
        y_test,
        family: str = "model",
    ) -> Tuple[Any, EvaluationMetrics]:
        """Refit on the full training split and score once on the test split.

        Returns:
            (fitted model, EvaluationMetrics)
        """
        model = clone(estimator).fit(X_train, y_train)
        y_pred = model.predict(X_test)
        metrics = evaluate_predictions(y_test, y_pred)
        baseline = predict_baseline(y_train, len(X_test))

        return model, EvaluationMetrics(
            family=family,
            model_rmse=metrics.rmse,
            model_mae=metrics.mae,
            model_r2=metrics.r2,
            baseline_rmse=rmse(y_test, baseline),
            n_samples=metrics.n_samples,
        )

    def save_results(
        self,
        metrics: EvaluationMetrics,
        out_path: Union[str, Path],
        extra: Optional[Dict] = None,
    ) -> str:
        """Save test metrics (plus optional fields) to JSON."""
        out_path = Path(out_path)
        out_path.parent.mkdir(parents=True, exist_ok=True)

        payload = metrics.to_dict()
        if extra:
            payload.update(extra)
        with open(out_path, "w") as f:
            json.dump(payload, f, indent=2)

        print(f"Results saved to {out_path}")
        return str(out_path)


def _improvement(baseline: float, value: float) -> float:
    return (baseline - value) / baseline if baseline else 0.0
