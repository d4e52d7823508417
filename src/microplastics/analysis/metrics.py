"""Evaluation metrics for concentration predictions.

Key Classes:
    PredictionMetrics - RMSE, MAE, R² for predictions

Key Functions:
    evaluate_predictions() - Compute prediction accuracy metrics
    residuals() - Outcome minus prediction
    rmse() - Root-mean-squared error

Metrics Explained:
    RMSE: Root mean square error, the selection metric throughout
    MAE: Average absolute error
    R²: Share of outcome variance explained (0 for the null model)

Usage:
    from microplastics.analysis import evaluate_predictions

    metrics = evaluate_predictions(y_test, y_pred)
    print(f"RMSE: {metrics.rmse:.2f}")
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score


@dataclass
class PredictionMetrics:
    """Metrics for point prediction accuracy."""

    rmse: float
    mae: float
    r2: float
    n_samples: int

    def to_dict(self) -> dict:
        return {
            "rmse": round(self.rmse, 4),
            "mae": round(self.mae, 4),
            "r2": round(self.r2, 4),
            "n_samples": self.n_samples,
        }

    def __repr__(self) -> str:
        return f"RMSE: {self.rmse:.3f}, MAE: {self.mae:.3f}, R²: {self.r2:.3f} (n={self.n_samples})"


def rmse(y_true, y_pred) -> float:
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def residuals(y_true, y_pred) -> np.ndarray:
    """Outcome minus prediction."""
    y_true = np.asarray(y_true, dtype=float).flatten()
    y_pred = np.asarray(y_pred, dtype=float).flatten()
    if len(y_true) != len(y_pred):
        raise ValueError(f"Length mismatch: {len(y_true)} outcomes, {len(y_pred)} predictions")
    return y_true - y_pred


def evaluate_predictions(y_true, y_pred) -> PredictionMetrics:
    """Calculate prediction metrics, ignoring pairs with a NaN.

    Args:
        y_true: Observed concentrations
        y_pred: Predicted concentrations

    Returns:
        PredictionMetrics with RMSE, MAE, R².
    """
    y_true = np.asarray(y_true, dtype=float).flatten()
    y_pred = np.asarray(y_pred, dtype=float).flatten()

    mask = ~(np.isnan(y_true) | np.isnan(y_pred))
    y_true = y_true[mask]
    y_pred = y_pred[mask]

    n = len(y_true)
    if n == 0:
        return PredictionMetrics(0.0, 0.0, 0.0, 0)

    # R² is undefined for a constant outcome
    r2 = float(r2_score(y_true, y_pred)) if n > 1 and np.ptp(y_true) > 0 else 0.0

    return PredictionMetrics(
        rmse=rmse(y_true, y_pred),
        mae=float(mean_absolute_error(y_true, y_pred)),
        r2=r2,
        n_samples=n,
    )
