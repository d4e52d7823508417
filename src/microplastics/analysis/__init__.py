"""Model analysis - metrics, importance, and diagnostic plots.

This module provides tools for understanding fitted models:
- metrics: RMSE, MAE, R², residuals
- explainer: Feature importance ranking
- plots: Prediction, residual, importance, and comparison plots
"""

from microplastics.analysis.explainer import PredictionExplainer, feature_importance
from microplastics.analysis.metrics import PredictionMetrics, evaluate_predictions, residuals, rmse

__all__ = [
    "PredictionExplainer",
    "feature_importance",
    "PredictionMetrics",
    "evaluate_predictions",
    "residuals",
    "rmse",
]
