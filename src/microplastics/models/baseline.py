"""Null (mean-only) baseline for model comparison.

Predicts the training-set mean for every row. If a model family can't
beat this by cross-validated RMSE, the predictors carry no signal.
"""

from __future__ import annotations

import numpy as np
from sklearn.dummy import DummyRegressor


def null_model() -> DummyRegressor:
    """Unfitted mean-only regressor."""
    return DummyRegressor(strategy="mean")


def predict_baseline(y_train, n: int) -> np.ndarray:
    """Training mean repeated `n` times.

    Args:
        y_train: Training outcome values (NaN ignored).
        n: Number of rows to predict.

    Returns:
        Array of length n.
    """
    y = np.asarray(y_train, dtype=float)
    y = y[~np.isnan(y)]
    if len(y) == 0:
        raise ValueError("Cannot fit baseline on an empty outcome")
    return np.full(n, y.mean())
